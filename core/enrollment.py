"""
Enrollment Session Module

Drives the state machine that turns a stream of gate results into one
finalized identity template and registers it with the identity service.

    IDLE -> CAPTURING -> FINALIZING -> COMPLETE | FAILED

While CAPTURING the session samples the shared slot on its own 200 ms tick,
independent of the feed's 100 ms tick. Each tick either appends one
accepted embedding or reports why the snapshot was rejected. The tick after
the target count is reached moves the session to FINALIZING, which
averages the samples into a template and submits it.

Usage:
    controller = EnrollmentController(slot, client, target_count=10)
    session = await controller.start("Alice")
    state = await session.wait()
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional

import numpy as np

from core import gate
from core.errors import (
    EmptyIdentityLabelError,
    ErrorKind,
    MalformedResponseError,
    TransportError,
)
from core.feedback import StatusCallback, StatusLevel, emit_status
from core.observation import ObservationSlot
from core.template import average_embeddings

logger = logging.getLogger(__name__)

DEFAULT_TARGET_COUNT = 10
DEFAULT_INTERVAL_SEC = 0.2


class EnrollmentState(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    FAILED = "failed"


_TRANSITIONS: Dict[EnrollmentState, FrozenSet[EnrollmentState]] = {
    EnrollmentState.IDLE: frozenset({EnrollmentState.CAPTURING}),
    EnrollmentState.CAPTURING: frozenset({EnrollmentState.FINALIZING}),
    EnrollmentState.FINALIZING: frozenset({EnrollmentState.COMPLETE, EnrollmentState.FAILED}),
    EnrollmentState.COMPLETE: frozenset(),
    EnrollmentState.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({EnrollmentState.COMPLETE, EnrollmentState.FAILED})


def normalize_label(label: Optional[str], on_status: Optional[StatusCallback] = None) -> str:
    """
    Strip an identity label and reject it if nothing is left.

    Raises:
        EmptyIdentityLabelError: If the label is empty or whitespace.
    """
    name = (label or "").strip()
    if not name:
        emit_status(
            on_status,
            "Please enter a name.",
            StatusLevel.ERROR,
            ErrorKind.EMPTY_IDENTITY_LABEL,
        )
        raise EmptyIdentityLabelError("Identity label must not be empty")
    return name


class EnrollmentSession:
    """
    One enrollment attempt for one identity label.

    Attributes:
        state: Current lifecycle state.
        label: Identity label, set by start().
        accepted: Embeddings accepted so far, in capture order.
        template: The averaged template once FINALIZING has computed it.
        failure: ErrorKind of the failure when state is FAILED.
        failure_reason: Human-readable failure reason when state is FAILED.
    """

    def __init__(
        self,
        slot: ObservationSlot,
        client,
        target_count: int = DEFAULT_TARGET_COUNT,
        interval_sec: float = DEFAULT_INTERVAL_SEC,
        on_status: Optional[StatusCallback] = None,
    ):
        if target_count < 1:
            raise ValueError(f"target_count must be >= 1, got {target_count}")

        self._slot = slot
        self._client = client
        self.target_count = target_count
        self.interval_sec = interval_sec
        self._on_status = on_status

        self.state = EnrollmentState.IDLE
        self.label: Optional[str] = None
        self.accepted: List[np.ndarray] = []
        self.template: Optional[np.ndarray] = None
        self.failure: Optional[ErrorKind] = None
        self.failure_reason: Optional[str] = None

        self._task: Optional[asyncio.Task] = None
        self._cancelled = False
        self._done = asyncio.Event()
        self._state_listeners: List[Callable[[EnrollmentState], None]] = []

    # ==================== State ====================

    @property
    def count(self) -> int:
        return len(self.accepted)

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def add_state_listener(self, listener: Callable[[EnrollmentState], None]) -> None:
        self._state_listeners.append(listener)

    def _transition(self, new_state: EnrollmentState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal enrollment transition {self.state.value} -> {new_state.value}"
            )
        logger.info(f"Enrollment '{self.label}': {self.state.value} -> {new_state.value}")
        self.state = new_state
        if new_state in TERMINAL_STATES:
            self._done.set()
        for listener in self._state_listeners:
            listener(new_state)

    def _emit(self, text: str, level: StatusLevel, kind: Optional[ErrorKind] = None) -> None:
        emit_status(self._on_status, text, level, kind)

    def _fail(self, kind: ErrorKind, reason: str, text: str) -> None:
        self.failure = kind
        self.failure_reason = reason
        self._transition(EnrollmentState.FAILED)
        self._emit(text, StatusLevel.ERROR, kind)

    # ==================== Lifecycle ====================

    def start(self, label: Optional[str], schedule: bool = True) -> None:
        """
        Leave IDLE and begin capturing samples for ``label``.

        Args:
            label: Identity label; surrounding whitespace is removed.
            schedule: If True, schedule the periodic capture task on the
                      running event loop. Pass False to drive
                      capture_tick() by hand.

        Raises:
            EmptyIdentityLabelError: The label is empty. State stays IDLE.
            RuntimeError: The session has already been started.
        """
        if self.state is not EnrollmentState.IDLE:
            raise RuntimeError(f"Enrollment session already {self.state.value}")

        self.label = normalize_label(label, self._on_status)
        self._transition(EnrollmentState.CAPTURING)
        self._emit("Enrollment Mode: Capturing Frames...", StatusLevel.INFO)

        if schedule:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while self.state is EnrollmentState.CAPTURING and not self._cancelled:
            await self.capture_tick()
            if self.state is not EnrollmentState.CAPTURING:
                break
            next_at += self.interval_sec
            await asyncio.sleep(max(0.0, next_at - loop.time()))

    async def capture_tick(self) -> None:
        """
        Run one capture tick.

        Once the target count has been reached this moves to FINALIZING
        and finishes the session; otherwise it samples the slot once.
        """
        if self._cancelled or self.state is not EnrollmentState.CAPTURING:
            return

        if self.count >= self.target_count:
            self._transition(EnrollmentState.FINALIZING)
            await self._finalize()
            return

        result = gate.evaluate(self._slot.snapshot())

        if result.outcome is gate.GateOutcome.REJECTED_NONE:
            self._emit(
                "No Face Detected. Stay still.",
                StatusLevel.ERROR,
                ErrorKind.NO_FACE_DETECTED,
            )
        elif result.outcome is gate.GateOutcome.REJECTED_MULTIPLE:
            self._emit(
                "Multiple Faces Detected. Ensure only one face.",
                StatusLevel.ERROR,
                ErrorKind.MULTIPLE_FACES_DETECTED,
            )
        else:
            self.accepted.append(result.embedding)
            self._emit(f"Capturing... {self.count}/{self.target_count}", StatusLevel.INFO)
            logger.debug(f"Enrollment '{self.label}': sample {self.count}/{self.target_count}")

    async def _finalize(self) -> None:
        if not self.accepted:
            self._fail(
                ErrorKind.NO_VALID_SAMPLES,
                "No valid frames.",
                "Enrollment Failed. No valid frames.",
            )
            return

        try:
            self.template = average_embeddings(self.accepted)
            response = await self._client.register(self.label, self.template)
        except TransportError as e:
            logger.error(f"Registration of '{self.label}' failed: {e}")
            self._fail(
                ErrorKind.TRANSPORT_FAILURE,
                str(e),
                "Network error during registration.",
            )
            return
        except MalformedResponseError as e:
            logger.error(f"Registration of '{self.label}' got a malformed response: {e}")
            self._fail(
                ErrorKind.MALFORMED_RESPONSE,
                str(e),
                f"Error: {e}",
            )
            return
        except Exception as e:
            # The template never reached the service
            logger.exception(f"Registration of '{self.label}' could not be sent")
            self._fail(
                ErrorKind.TRANSPORT_FAILURE,
                str(e),
                "Network error during registration.",
            )
            return

        if response.success:
            self._transition(EnrollmentState.COMPLETE)
            self._emit(f"Enrollment Complete for {self.label}.", StatusLevel.SUCCESS)
        else:
            reason = response.message or "Registration rejected"
            self._fail(ErrorKind.SERVER_REJECTED, reason, f"Error: {reason}")

    async def cancel(self) -> None:
        """
        Stop the periodic capture task. No tick runs after this returns.

        The session stays in CAPTURING and becomes inert. Sessions that are
        not capturing are left alone; a registration already in flight
        runs to its conclusion.
        """
        if self.state is not EnrollmentState.CAPTURING:
            return
        self._cancelled = True
        self._done.set()
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(f"Enrollment '{self.label}' cancelled at {self.count}/{self.target_count}")

    async def wait(self) -> EnrollmentState:
        """Wait for COMPLETE, FAILED or cancellation and return the state."""
        await self._done.wait()
        return self.state


class EnrollmentController:
    """
    Owns the currently capturing enrollment session.

    Starting a new enrollment cancels a session that is still CAPTURING
    before the new one begins, so only one session advances at a time. A
    session that already reached FINALIZING is left to finish.
    """

    def __init__(
        self,
        slot: ObservationSlot,
        client,
        target_count: int = DEFAULT_TARGET_COUNT,
        interval_sec: float = DEFAULT_INTERVAL_SEC,
        on_status: Optional[StatusCallback] = None,
    ):
        self._slot = slot
        self._client = client
        self.target_count = target_count
        self.interval_sec = interval_sec
        self._on_status = on_status
        self.active: Optional[EnrollmentSession] = None

    @classmethod
    def from_config(cls, slot: ObservationSlot, client, config: dict, **kwargs):
        return cls(
            slot,
            client,
            target_count=int(config.get("target_count", DEFAULT_TARGET_COUNT)),
            interval_sec=float(config.get("interval_ms", DEFAULT_INTERVAL_SEC * 1000)) / 1000.0,
            **kwargs,
        )

    async def start(self, label: Optional[str], schedule: bool = True) -> EnrollmentSession:
        """
        Start enrolling ``label``.

        Raises:
            EmptyIdentityLabelError: The label is empty. Any running
                                     session is left untouched.
        """
        name = normalize_label(label, self._on_status)

        await self.cancel()

        session = EnrollmentSession(
            self._slot,
            self._client,
            target_count=self.target_count,
            interval_sec=self.interval_sec,
            on_status=self._on_status,
        )
        session.start(name, schedule=schedule)
        self.active = session
        return session

    async def cancel(self) -> None:
        """Cancel the active session if it is still capturing."""
        previous = self.active
        if previous is not None and previous.state is EnrollmentState.CAPTURING:
            await previous.cancel()
