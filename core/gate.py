"""
Single-face gate.

Classifies a slot snapshot as a usable sample (exactly one face) or
rejects it, telling "no face" apart from "multiple faces". Stateless:
both sessions call it on every sampling attempt.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from core.errors import ErrorKind
from core.observation import Observation


class GateOutcome(str, Enum):
    ACCEPTED = "accepted"
    REJECTED_NONE = "rejected_none"
    REJECTED_MULTIPLE = "rejected_multiple"


@dataclass(frozen=True)
class GateResult:
    """
    Outcome of one gate evaluation.

    Attributes:
        outcome: Which of the three cases applied.
        face_count: Number of observations in the evaluated snapshot.
        embedding: The sole observation's embedding when accepted, else None.
    """

    outcome: GateOutcome
    face_count: int
    embedding: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    @property
    def accepted(self) -> bool:
        return self.outcome is GateOutcome.ACCEPTED

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        """The rejection reason as an ErrorKind, or None when accepted."""
        if self.outcome is GateOutcome.REJECTED_NONE:
            return ErrorKind.NO_FACE_DETECTED
        if self.outcome is GateOutcome.REJECTED_MULTIPLE:
            return ErrorKind.MULTIPLE_FACES_DETECTED
        return None


def evaluate(observations: Sequence[Observation]) -> GateResult:
    """
    Apply the single-face gate to a snapshot.

    Args:
        observations: Slot contents at the moment of sampling.

    Returns:
        ACCEPTED with that face's embedding iff exactly one observation,
        REJECTED_NONE for an empty snapshot, REJECTED_MULTIPLE otherwise.
    """
    count = len(observations)
    if count == 0:
        return GateResult(outcome=GateOutcome.REJECTED_NONE, face_count=0)
    if count > 1:
        return GateResult(outcome=GateOutcome.REJECTED_MULTIPLE, face_count=count)
    return GateResult(
        outcome=GateOutcome.ACCEPTED,
        face_count=1,
        embedding=observations[0].embedding,
    )
