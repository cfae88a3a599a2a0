"""
Verification Session Module

A single authentication attempt against one slot snapshot: gate the
snapshot once, and if exactly one face is present send its embedding to
the identity service exactly once. No retries, no timer.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from core import gate
from core.errors import ErrorKind, MalformedResponseError, TransportError
from core.feedback import StatusCallback, StatusLevel, emit_status
from core.observation import ObservationSlot

logger = logging.getLogger(__name__)


class VerificationState(str, Enum):
    IDLE = "idle"
    VERIFYING = "verifying"
    GRANTED = "granted"
    DENIED = "denied"
    FAILED = "failed"


@dataclass
class VerificationOutcome:
    """
    Result of one verification attempt.

    A mismatch is DENIED with no error kind; FAILED always carries one.
    """
    state: VerificationState
    message: str
    identity: Optional[str] = None
    error: Optional[ErrorKind] = None
    distance: Optional[float] = field(default=None, repr=False)

    @property
    def granted(self) -> bool:
        return self.state is VerificationState.GRANTED


class VerificationSession:
    """
    Single-use verification attempt.

    Attributes:
        state: Current lifecycle state.
        embedding: The one embedding captured by this session, if any.
        outcome: The VerificationOutcome once verify() has finished.
    """

    def __init__(
        self,
        slot: ObservationSlot,
        client,
        on_status: Optional[StatusCallback] = None,
    ):
        self._slot = slot
        self._client = client
        self._on_status = on_status
        self.state = VerificationState.IDLE
        self.embedding: Optional[np.ndarray] = None
        self.outcome: Optional[VerificationOutcome] = None

    def _finish(
        self,
        state: VerificationState,
        message: str,
        level: StatusLevel,
        identity: Optional[str] = None,
        error: Optional[ErrorKind] = None,
        distance: Optional[float] = None,
    ) -> VerificationOutcome:
        self.state = state
        self.outcome = VerificationOutcome(
            state=state,
            message=message,
            identity=identity,
            error=error,
            distance=distance,
        )
        emit_status(self._on_status, message, level, error)
        logger.info(f"Verification finished: {state.value}")
        return self.outcome

    async def verify(self) -> VerificationOutcome:
        """
        Run the attempt.

        Raises:
            RuntimeError: If this session has already been used.
        """
        if self.state is not VerificationState.IDLE:
            raise RuntimeError("Verification session has already been used")

        result = gate.evaluate(self._slot.snapshot())

        if result.outcome is gate.GateOutcome.REJECTED_NONE:
            return self._finish(
                VerificationState.FAILED,
                "Alert: No Face Detected.",
                StatusLevel.ERROR,
                error=ErrorKind.NO_FACE_DETECTED,
            )
        if result.outcome is gate.GateOutcome.REJECTED_MULTIPLE:
            return self._finish(
                VerificationState.FAILED,
                "Alert: Multiple Faces Detected.",
                StatusLevel.ERROR,
                error=ErrorKind.MULTIPLE_FACES_DETECTED,
            )

        self.embedding = result.embedding
        self.state = VerificationState.VERIFYING
        emit_status(self._on_status, "Auth Mode: Verifying...", StatusLevel.INFO)

        try:
            response = await self._client.verify(self.embedding)
        except TransportError as e:
            logger.error(f"Verification request failed: {e}")
            return self._finish(
                VerificationState.FAILED,
                "Network error during verification.",
                StatusLevel.ERROR,
                error=ErrorKind.TRANSPORT_FAILURE,
            )
        except MalformedResponseError as e:
            logger.error(f"Verification got a malformed response: {e}")
            return self._finish(
                VerificationState.FAILED,
                f"Error: {e}",
                StatusLevel.ERROR,
                error=ErrorKind.MALFORMED_RESPONSE,
            )
        except Exception as e:
            logger.exception(f"Verification request could not be sent: {e}")
            return self._finish(
                VerificationState.FAILED,
                "Network error during verification.",
                StatusLevel.ERROR,
                error=ErrorKind.TRANSPORT_FAILURE,
            )

        if response.success:
            name = response.user.name
            return self._finish(
                VerificationState.GRANTED,
                f"Auth Success: Access Granted. Welcome {name}",
                StatusLevel.SUCCESS,
                identity=name,
                distance=response.distance,
            )

        return self._finish(
            VerificationState.DENIED,
            "Alert: Face Mismatch. Access Denied.",
            StatusLevel.ERROR,
        )
