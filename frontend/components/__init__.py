"""
Frontend components for the face enrollment and verification client.
"""

from .debug_log import DebugLog
from .webcam_capture import WebcamCapture, CaptureConfig, get_available_cameras

__all__ = [
    "DebugLog", "WebcamCapture", "CaptureConfig", "get_available_cameras",
]
