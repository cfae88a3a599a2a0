"""
Capture client application controller.

Wires the pieces together for one camera:

    camera stream -> ObservationFeed -> ObservationSlot -> sessions -> IdentityClient

Owns the shared slot, the active stream/feed pair, the enrollment
controller, and creates a fresh VerificationSession per attempt. Switching
devices fully stops the old feed and releases the old stream before the new
feed starts, so two feeds never write the slot at once.

Usage:
    app = FaceAuthApp(client, detector)
    await app.select_device(0)
    session = await app.enroll("Alice")
    await session.wait()
    outcome = await app.verify()
    await app.shutdown()
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Union

from api.schemas import DeleteResponse, UserSummary
from core.enrollment import EnrollmentController, EnrollmentSession
from core.errors import ErrorKind, FaceAuthError
from core.feed import DetectFn, DetectionsCallback, ObservationFeed
from core.feedback import StatusCallback, StatusLevel, StatusMessage, emit_status
from core.observation import ObservationSlot
from core.verification import VerificationOutcome, VerificationSession
from frontend.components.debug_log import DebugLog
from frontend.components.webcam_capture import CaptureConfig, WebcamCapture

logger = logging.getLogger(__name__)

StreamFactory = Callable[[CaptureConfig], Any]


def threaded(detect: Callable) -> DetectFn:
    """Wrap a blocking detector so feed ticks run it in a worker thread."""
    async def _detect(frame):
        return await asyncio.to_thread(detect, frame)
    return _detect


class FaceAuthApp:
    """
    Application controller for the capture client.

    Args:
        client: IdentityClient (or anything with the same async methods).
        detect: Detection collaborator, sync or async.
        config: Full configuration dict (see config.yaml). Missing sections
                fall back to built-in defaults.
        on_status: Receives every StatusMessage.
        on_detections: Receives every published observation tuple.
        stream_factory: Builds a camera stream from a CaptureConfig.

    Attributes:
        debug_log: Recent "HH:MM:SS - message" lines from the core and
                   frontend loggers.
    """

    def __init__(
        self,
        client,
        detect: DetectFn,
        config: Optional[Dict[str, Any]] = None,
        on_status: Optional[StatusCallback] = None,
        on_detections: Optional[DetectionsCallback] = None,
        stream_factory: StreamFactory = WebcamCapture,
    ):
        config = config or {}
        self.client = client
        self.detect = detect
        self.slot = ObservationSlot()
        self.last_status: Optional[StatusMessage] = None

        self._user_status = on_status
        self._on_detections = on_detections
        self._stream_factory = stream_factory
        self._camera_config = CaptureConfig.from_dict(config.get("camera", {}))
        self._feed_interval_sec = float(config.get("feed", {}).get("interval_ms", 100)) / 1000.0

        self.stream = None
        self.feed: Optional[ObservationFeed] = None
        self.enrollment = EnrollmentController.from_config(
            self.slot, client, config.get("enrollment", {}), on_status=self._status
        )
        self._switch_lock = asyncio.Lock()
        self.debug_log = DebugLog.from_config(config.get("logging")).attach("core", "frontend")

    def _status(self, message: StatusMessage) -> None:
        self.last_status = message
        if self._user_status is not None:
            self._user_status(message)

    # ==================== Camera ====================

    async def select_device(self, device_id: Union[int, str]) -> bool:
        """
        Switch the active camera.

        The previous feed is stopped and its stream released before the new
        stream is opened. The slot is cleared so sessions never sample faces
        from the old device.

        Returns:
            True if the new stream opened and its feed is running.
        """
        async with self._switch_lock:
            await self._stop_stream()
            self.slot.clear()

            camera_config = CaptureConfig(
                width=self._camera_config.width,
                height=self._camera_config.height,
                fps=self._camera_config.fps,
                device_id=device_id,
            )
            logger.info(f"Starting video with device: {device_id}")
            stream = self._stream_factory(camera_config)
            if not stream.open():
                emit_status(
                    self._status,
                    f"Camera Error: could not open device {device_id}",
                    StatusLevel.ERROR,
                )
                return False

            self.stream = stream
            self.feed = ObservationFeed(
                stream,
                self.detect,
                self.slot,
                interval_sec=self._feed_interval_sec,
                on_status=self._status,
                on_detections=self._on_detections,
            )
            self.feed.start()
            emit_status(self._status, "System Ready.", StatusLevel.INFO)
            return True

    async def _stop_stream(self) -> None:
        feed, self.feed = self.feed, None
        stream, self.stream = self.stream, None
        try:
            if feed is not None:
                await feed.stop()
        finally:
            if stream is not None:
                stream.close()

    # ==================== Workflows ====================

    async def enroll(self, label: Optional[str]) -> EnrollmentSession:
        """
        Start enrolling ``label``; any session still capturing is cancelled.

        Raises:
            EmptyIdentityLabelError: The label is empty.
        """
        return await self.enrollment.start(label)

    async def verify(self) -> VerificationOutcome:
        """Run one verification attempt against the current slot."""
        session = VerificationSession(self.slot, self.client, on_status=self._status)
        return await session.verify()

    async def list_users(self) -> List[UserSummary]:
        try:
            return await self.client.list_users()
        except FaceAuthError as e:
            logger.error(f"Error fetching users: {e}")
            return []

    async def delete_user(self, name: str) -> Optional[DeleteResponse]:
        """
        Delete an enrolled identity.

        Returns:
            The server's DeleteResponse, or None if the call itself failed.
        """
        try:
            result = await self.client.delete_user(name)
        except FaceAuthError as e:
            emit_status(self._status, f"Delete failed: {e}", StatusLevel.ERROR, e.kind)
            return None

        if result.success:
            emit_status(self._status, f"User {name} deleted.", StatusLevel.SUCCESS)
        else:
            emit_status(
                self._status,
                f"Error: {result.message}",
                StatusLevel.ERROR,
                ErrorKind.SERVER_REJECTED,
            )
        return result

    async def shutdown(self) -> None:
        """Cancel capture, stop the feed and release the camera."""
        await self.enrollment.cancel()
        async with self._switch_lock:
            await self._stop_stream()
        self.debug_log.detach()
