"""
Observation Feed

Periodically asks the detection collaborator for the faces in the current
camera frame and publishes the result into the shared ObservationSlot.

The feed is the only writer of the slot. Downstream sessions cannot force
a fresh sample; they read whatever was published last.

Usage:
    feed = ObservationFeed(stream, detector, slot, interval_sec=0.1)
    feed.start()          # inside a running event loop
    ...
    await feed.stop()     # no tick fires after this returns
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Sequence, Union

import numpy as np

from core.feedback import StatusCallback, StatusLevel, emit_status
from core.observation import Observation, ObservationSlot

logger = logging.getLogger(__name__)

DetectResult = Sequence[Observation]
DetectFn = Callable[[np.ndarray], Union[DetectResult, Awaitable[DetectResult]]]
DetectionsCallback = Callable[[Sequence[Observation]], None]


class ObservationFeed:
    """
    Refreshes the shared slot on a fixed tick while a stream is active.

    Attributes:
        stream: Camera stream provider. Needs ``is_active`` and
                ``read_frame() -> (ok, frame)``.
        detect: Detection collaborator, sync or async.
        slot: The shared slot this feed writes to.
        interval_sec: Tick period (100 ms by default).
    """

    def __init__(
        self,
        stream,
        detect: DetectFn,
        slot: ObservationSlot,
        interval_sec: float = 0.1,
        on_status: Optional[StatusCallback] = None,
        on_detections: Optional[DetectionsCallback] = None,
    ):
        self.stream = stream
        self.detect = detect
        self.slot = slot
        self.interval_sec = interval_sec
        self._on_status = on_status
        self._on_detections = on_detections
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0
        self.publishes = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> bool:
        """
        Run one feed tick.

        The frame read runs in a worker thread so a blocking camera read
        never stalls the other tasks on the loop.

        Returns:
            True if the slot was updated on this tick.
        """
        self.ticks += 1

        if not self.stream.is_active:
            return False

        ok, frame = await asyncio.to_thread(self.stream.read_frame)
        if not ok or frame is None:
            return False

        try:
            result = self.detect(frame)
            if inspect.isawaitable(result):
                result = await result
            observations = tuple(result)
        except Exception as e:
            # Slot keeps the previous publish
            logger.warning(f"Detection failed on tick {self.ticks}: {e}")
            return False

        self.slot.publish(observations)
        self.publishes += 1
        logger.debug(f"Feed tick {self.ticks}: {len(observations)} face(s)")

        if self._on_detections is not None:
            self._on_detections(observations)

        if len(observations) > 1:
            emit_status(
                self._on_status,
                "Alert: Multiple Faces Detected. Retry.",
                StatusLevel.ERROR,
            )

        return True

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while True:
            try:
                await self.tick()
            except Exception:
                # A failing callback costs one tick, never the feed
                logger.exception(f"Feed tick {self.ticks} failed")
            next_at += self.interval_sec
            delay = next_at - loop.time()
            if delay < 0:
                # Fell behind; restart the schedule from now
                next_at = loop.time()
                delay = 0.0
            await asyncio.sleep(delay)

    def start(self) -> asyncio.Task:
        """
        Schedule the periodic task on the running event loop.

        Raises:
            RuntimeError: If the feed is already running.
        """
        if self.is_running:
            raise RuntimeError("Observation feed is already running")
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Observation feed started ({self.interval_sec * 1000:.0f} ms tick)")
        return self._task

    async def stop(self) -> None:
        """Cancel the periodic task and wait until it has finished."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(
            f"Observation feed stopped after {self.ticks} ticks "
            f"({self.publishes} publishes)"
        )
