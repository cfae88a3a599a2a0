"""
Tests for the Observation Feed.

This test suite verifies:
- Ticks are skipped while the stream is inactive or a read fails
- Detections are published into the slot, sync or async detectors
- A failing detector leaves the previous slot value in place
- The multiple-faces alert
- Deterministic start/stop of the periodic task
- A failing callback never ends the periodic task

Run with: pytest tests/test_feed.py -v
"""

import asyncio
import os
import sys
import threading

import numpy as np
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.feed import ObservationFeed
from core.feedback import StatusLevel
from core.observation import Observation, ObservationSlot


def make_observation(value: float) -> Observation:
    return Observation(bbox=(0, 0, 50, 50), embedding=np.full(128, value))


class FakeStream:
    """Stream stub with a switchable active flag."""

    def __init__(self, active=True, read_ok=True):
        self.is_active = active
        self.read_ok = read_ok
        self.reads = 0

    def read_frame(self):
        self.reads += 1
        if not self.read_ok:
            return False, None
        return True, np.zeros((4, 4, 3), dtype=np.uint8)


class ScriptedDetector:
    """Returns the queued results in order, repeating the last one."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def __call__(self, frame):
        self.calls += 1
        result = self.results[0] if len(self.results) == 1 else self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


# ============================================================
# Single ticks
# ============================================================

class TestFeedTick:
    """Tests for one feed tick."""

    @pytest.mark.asyncio
    async def test_inactive_stream_skips_tick(self):
        slot = ObservationSlot()
        stream = FakeStream(active=False)
        detector = ScriptedDetector([make_observation(0.1)])
        feed = ObservationFeed(stream, detector, slot)

        assert await feed.tick() is False
        assert stream.reads == 0
        assert detector.calls == 0
        assert slot.version == 0

    @pytest.mark.asyncio
    async def test_failed_read_skips_tick(self):
        slot = ObservationSlot()
        detector = ScriptedDetector([make_observation(0.1)])
        feed = ObservationFeed(FakeStream(read_ok=False), detector, slot)

        assert await feed.tick() is False
        assert detector.calls == 0
        assert slot.snapshot() == ()

    @pytest.mark.asyncio
    async def test_publishes_detections(self):
        slot = ObservationSlot()
        obs = make_observation(0.1)
        feed = ObservationFeed(FakeStream(), ScriptedDetector([obs]), slot)

        assert await feed.tick() is True
        assert slot.snapshot() == (obs,)
        assert feed.publishes == 1

    @pytest.mark.asyncio
    async def test_empty_detection_clears_slot(self):
        slot = ObservationSlot()
        feed = ObservationFeed(
            FakeStream(), ScriptedDetector([make_observation(0.1)], []), slot
        )

        await feed.tick()
        await feed.tick()

        assert slot.snapshot() == ()
        assert slot.version == 2

    @pytest.mark.asyncio
    async def test_async_detector(self):
        slot = ObservationSlot()
        obs = make_observation(0.2)

        async def detect(frame):
            await asyncio.sleep(0)
            return [obs]

        feed = ObservationFeed(FakeStream(), detect, slot)
        await feed.tick()

        assert slot.snapshot() == (obs,)

    @pytest.mark.asyncio
    async def test_detector_error_keeps_previous_value(self):
        slot = ObservationSlot()
        obs = make_observation(0.3)
        detector = ScriptedDetector([obs], RuntimeError("model crashed"))
        feed = ObservationFeed(FakeStream(), detector, slot)

        assert await feed.tick() is True
        assert await feed.tick() is False

        assert slot.snapshot() == (obs,)
        assert slot.version == 1

    @pytest.mark.asyncio
    async def test_detector_returning_none_keeps_previous_value(self):
        slot = ObservationSlot()
        obs = make_observation(0.3)
        feed = ObservationFeed(FakeStream(), ScriptedDetector([obs], None), slot)

        await feed.tick()
        assert await feed.tick() is False

        assert slot.snapshot() == (obs,)

    @pytest.mark.asyncio
    async def test_frame_read_off_the_event_loop(self):
        loop_thread = threading.get_ident()
        read_threads = []

        class RecordingStream(FakeStream):
            def read_frame(self):
                read_threads.append(threading.get_ident())
                return super().read_frame()

        feed = ObservationFeed(
            RecordingStream(), ScriptedDetector([make_observation(0.1)]), ObservationSlot()
        )
        await feed.tick()

        assert read_threads and read_threads[0] != loop_thread

    @pytest.mark.asyncio
    async def test_multiple_faces_alert(self):
        messages = []
        slot = ObservationSlot()
        two = [make_observation(0.1), make_observation(0.2)]
        feed = ObservationFeed(
            FakeStream(), ScriptedDetector(two), slot, on_status=messages.append
        )

        await feed.tick()

        assert len(slot.snapshot()) == 2
        assert [m.text for m in messages] == ["Alert: Multiple Faces Detected. Retry."]
        assert messages[0].level is StatusLevel.ERROR

    @pytest.mark.asyncio
    async def test_single_face_no_alert(self):
        messages = []
        feed = ObservationFeed(
            FakeStream(),
            ScriptedDetector([make_observation(0.1)]),
            ObservationSlot(),
            on_status=messages.append,
        )
        await feed.tick()
        assert messages == []

    @pytest.mark.asyncio
    async def test_detections_callback(self):
        seen = []
        obs = make_observation(0.1)
        feed = ObservationFeed(
            FakeStream(), ScriptedDetector([obs]), ObservationSlot(), on_detections=seen.append
        )
        await feed.tick()
        assert seen == [(obs,)]


# ============================================================
# Periodic task
# ============================================================

class TestFeedLifecycle:
    """Tests for start/stop of the periodic task."""

    @pytest.mark.asyncio
    async def test_runs_periodically(self):
        slot = ObservationSlot()
        feed = ObservationFeed(
            FakeStream(), ScriptedDetector([make_observation(0.1)]), slot, interval_sec=0.01
        )

        feed.start()
        await asyncio.sleep(0.08)
        await feed.stop()

        assert feed.ticks >= 3
        assert slot.version == feed.publishes

    @pytest.mark.asyncio
    async def test_no_tick_after_stop(self):
        feed = ObservationFeed(
            FakeStream(), ScriptedDetector([make_observation(0.1)]), ObservationSlot(),
            interval_sec=0.01,
        )

        feed.start()
        await asyncio.sleep(0.03)
        await feed.stop()
        ticks_at_stop = feed.ticks

        await asyncio.sleep(0.05)

        assert not feed.is_running
        assert feed.ticks == ticks_at_stop

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_stop_feed(self):
        calls = []

        def render(observations):
            calls.append(observations)
            if len(calls) == 2:
                raise RuntimeError("render failed")

        feed = ObservationFeed(
            FakeStream(),
            ScriptedDetector([make_observation(0.1)]),
            ObservationSlot(),
            interval_sec=0.01,
            on_detections=render,
        )

        feed.start()
        await asyncio.sleep(0.1)

        assert feed.is_running
        assert len(calls) > 2
        await feed.stop()
        assert not feed.is_running

    @pytest.mark.asyncio
    async def test_failing_status_callback_does_not_stop_feed(self):
        def broken_status(message):
            raise RuntimeError("status panel gone")

        two = [make_observation(0.1), make_observation(0.2)]
        feed = ObservationFeed(
            FakeStream(), ScriptedDetector(two), ObservationSlot(),
            interval_sec=0.01, on_status=broken_status,
        )

        feed.start()
        await asyncio.sleep(0.05)

        assert feed.is_running
        assert feed.ticks >= 2
        await feed.stop()

    @pytest.mark.asyncio
    async def test_double_start_rejected(self):
        feed = ObservationFeed(FakeStream(), ScriptedDetector([]), ObservationSlot())
        feed.start()
        try:
            with pytest.raises(RuntimeError):
                feed.start()
        finally:
            await feed.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        feed = ObservationFeed(FakeStream(), ScriptedDetector([]), ObservationSlot())
        await feed.stop()
        assert not feed.is_running

    @pytest.mark.asyncio
    async def test_inactive_stream_keeps_slot_while_running(self):
        slot = ObservationSlot()
        stream = FakeStream(active=False)
        feed = ObservationFeed(
            stream, ScriptedDetector([make_observation(0.1)]), slot, interval_sec=0.01
        )

        feed.start()
        await asyncio.sleep(0.04)
        await feed.stop()

        assert feed.ticks >= 1
        assert slot.version == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
