"""
Webcam capture component.

Camera stream provider for the observation feed: opens a device, hands out
frames, and reports whether the stream is active, paused or ended so the
feed knows when to skip a tick.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class CaptureConfig:
    """Configuration for webcam capture."""
    width: int = 1280
    height: int = 720
    fps: int = 30
    device_id: Union[int, str] = 0

    @classmethod
    def from_dict(cls, config: dict) -> "CaptureConfig":
        return cls(
            width=int(config.get("width", cls.width)),
            height=int(config.get("height", cls.height)),
            fps=int(config.get("fps", cls.fps)),
            device_id=config.get("device_id", cls.device_id),
        )


class WebcamCapture:
    """
    Manages one webcam stream.

    This component handles:
    - Opening/closing the webcam device
    - Pausing and resuming frame delivery
    - Capturing frames at the configured resolution
    - Reporting active / paused / ended for the observation feed
    """

    def __init__(self, config: Optional[CaptureConfig] = None):
        self.config = config or CaptureConfig()
        self._cap: Optional[cv2.VideoCapture] = None
        self._is_running: bool = False
        self._is_paused: bool = False
        self._ended: bool = False

    def open(self) -> bool:
        """
        Open the webcam device.

        Returns:
            True if webcam opened successfully, False otherwise.
        """
        if self._cap is not None:
            self.close()

        self._cap = cv2.VideoCapture(self.config.device_id)

        if not self._cap.isOpened():
            logger.error(f"Failed to open camera {self.config.device_id}")
            self._cap.release()
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
        self._cap.set(cv2.CAP_PROP_FPS, self.config.fps)

        self._is_running = True
        self._is_paused = False
        self._ended = False
        width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info(f"Opened camera {self.config.device_id} at {width}x{height}")
        return True

    def close(self) -> None:
        """Release the webcam device."""
        self._is_running = False
        self._ended = True
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info(f"Camera {self.config.device_id} closed")

    def pause(self) -> None:
        self._is_paused = True

    def resume(self) -> None:
        self._is_paused = False

    def read_frame(self) -> Tuple[bool, Optional[np.ndarray]]:
        """
        Read a single frame from the webcam.

        A failed read on an open device marks the stream as ended.

        Returns:
            Tuple of (success, frame) where frame is BGR numpy array or None.
        """
        if not self.is_active:
            return False, None

        ret, frame = self._cap.read()
        if not ret:
            logger.warning(f"Camera {self.config.device_id} stopped delivering frames")
            self._ended = True
            return False, None

        return True, frame

    @property
    def is_open(self) -> bool:
        """Check if webcam is currently open."""
        return self._cap is not None and self._cap.isOpened()

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def is_ended(self) -> bool:
        return self._ended

    @property
    def is_active(self) -> bool:
        """True while frames can be read: open, not paused, not ended."""
        return self._is_running and self.is_open and not self._is_paused and not self._ended

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def get_available_cameras(max_check: int = 5) -> List[int]:
    """
    Probe for available camera devices.

    Args:
        max_check: Maximum device IDs to check.

    Returns:
        List of available camera device IDs.
    """
    available = []
    for i in range(max_check):
        cap = cv2.VideoCapture(i)
        if cap.isOpened():
            available.append(i)
        cap.release()
    logger.info(f"Found {len(available)} video devices: {available}")
    return available
