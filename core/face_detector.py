"""
Face Detection Module

Detection collaborator for the observation feed. Finds every face in a
camera frame and computes its 128-d identity descriptor with the
face_recognition library (dlib ResNet face encoder).

face_recognition is an optional install (`pip install .[detector]`); the
rest of the package only depends on the `detect(frame) -> observations`
call shape, so tests and alternative backends never import this module.

Usage:
    from core.face_detector import FaceDetector

    detector = FaceDetector(config)
    observations = detector(frame_bgr)
"""

import logging
from typing import Any, Dict, List, Optional

import cv2
import face_recognition
import numpy as np

from core.observation import Observation

logger = logging.getLogger(__name__)


class FaceDetector:
    """
    Detects faces and their descriptors in BGR frames.

    Args:
        config: Optional dictionary with:
            - model: "hog" (CPU, default) or "cnn" (GPU)
            - upsample: Times to upsample the frame when looking for faces
            - num_jitters: Re-sampling passes when encoding (default 1)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.model = config.get("model", "hog")
        self.upsample = int(config.get("upsample", 1))
        self.num_jitters = int(config.get("num_jitters", 1))
        logger.info(f"FaceDetector ready (model={self.model}, upsample={self.upsample})")

    def detect(self, frame: np.ndarray) -> List[Observation]:
        """
        Detect all faces in a frame.

        Args:
            frame: BGR image as delivered by OpenCV.

        Returns:
            One Observation per detected face, in detector order.
        """
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

        locations = face_recognition.face_locations(
            rgb, number_of_times_to_upsample=self.upsample, model=self.model
        )
        if not locations:
            return []

        encodings = face_recognition.face_encodings(
            rgb, known_face_locations=locations, num_jitters=self.num_jitters
        )

        observations = []
        for (top, right, bottom, left), encoding in zip(locations, encodings):
            observations.append(
                Observation(bbox=(left, top, right, bottom), embedding=encoding)
            )
        return observations

    __call__ = detect
