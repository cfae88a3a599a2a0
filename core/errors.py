"""
Error taxonomy for enrollment and verification.

Gate rejections (no face / multiple faces) are reported through session
state and status messages, never raised. Exceptions are raised at the
seams where a caller cannot continue: an empty identity label at session
start, and transport or response-format failures in the identity client.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Every failure a session or the identity client can report."""
    NO_FACE_DETECTED = "no_face_detected"
    MULTIPLE_FACES_DETECTED = "multiple_faces_detected"
    EMPTY_IDENTITY_LABEL = "empty_identity_label"
    NO_VALID_SAMPLES = "no_valid_samples"
    TRANSPORT_FAILURE = "transport_failure"
    MALFORMED_RESPONSE = "malformed_response"
    SERVER_REJECTED = "server_rejected"


class FaceAuthError(Exception):
    """Base class for errors raised by this package."""

    kind: ErrorKind

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class EmptyIdentityLabelError(FaceAuthError, ValueError):
    """Enrollment was requested without a usable identity label."""

    kind = ErrorKind.EMPTY_IDENTITY_LABEL


class TransportError(FaceAuthError):
    """The identity service could not be reached or did not answer."""

    kind = ErrorKind.TRANSPORT_FAILURE


class MalformedResponseError(FaceAuthError):
    """The identity service answered with a body of the wrong form."""

    kind = ErrorKind.MALFORMED_RESPONSE

