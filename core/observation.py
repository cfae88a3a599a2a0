"""
Observation and Shared Slot

An Observation is one face detected in one frame: a bounding box and a
fixed-length identity embedding. The ObservationSlot is the single
last-writer-wins mailbox the feed publishes into and the sessions read
from.

Usage:
    slot = ObservationSlot()
    slot.publish([Observation(bbox=(10, 10, 90, 90), embedding=vec)])
    current = slot.snapshot()
"""

import threading
from dataclasses import dataclass, field
from typing import Iterable, Tuple

import numpy as np

# Length of the face descriptor produced by the detection collaborator.
EMBEDDING_DIM = 128


@dataclass(frozen=True)
class Observation:
    """
    One face detected in one frame.

    Attributes:
        bbox: Bounding box (x1, y1, x2, y2) in pixels. Opaque to the
              sampling core, kept for rendering.
        embedding: Identity embedding, shape (EMBEDDING_DIM,), float32.
                   Stored read-only.
        confidence: Detection confidence (0.0 to 1.0).
    """

    bbox: Tuple[int, int, int, int]
    embedding: np.ndarray = field(repr=False, compare=False)
    confidence: float = 1.0

    def __post_init__(self):
        embedding = np.array(self.embedding, dtype=np.float32).ravel()
        if embedding.shape != (EMBEDDING_DIM,):
            raise ValueError(
                f"embedding must have {EMBEDDING_DIM} values, got {embedding.shape[0]}"
            )
        if not np.isfinite(embedding).all():
            raise ValueError("embedding contains NaN or infinite values")
        embedding.setflags(write=False)
        object.__setattr__(self, "embedding", embedding)
        object.__setattr__(self, "bbox", tuple(int(v) for v in self.bbox))


class ObservationSlot:
    """
    Holds the most recent sequence of observations.

    Every publish replaces the whole value with a new immutable tuple, so a
    reader always gets either the previous complete sequence or the new
    one. The lock only guards the swap itself.
    """

    def __init__(self):
        self._observations: Tuple[Observation, ...] = ()
        self._version = 0
        self._lock = threading.Lock()

    def publish(self, observations: Iterable[Observation]) -> int:
        """
        Replace the slot contents.

        Returns:
            The new publish version.
        """
        snapshot = tuple(observations)
        with self._lock:
            self._observations = snapshot
            self._version += 1
            return self._version

    def snapshot(self) -> Tuple[Observation, ...]:
        """Return the current complete sequence (possibly empty)."""
        with self._lock:
            return self._observations

    @property
    def version(self) -> int:
        """Number of publishes so far."""
        return self._version

    def clear(self) -> None:
        """Publish an empty sequence."""
        self.publish(())
