"""
Core Module for face enrollment and verification.

This package contains the sampling core shared by the capture client and
the storage/matching pieces of the development identity server.

Main components:
    - config: Configuration loading and management
    - observation: Observation and the shared ObservationSlot
    - gate: Single-face gate over a slot snapshot
    - feed: Periodic ObservationFeed that refreshes the slot
    - enrollment: Enrollment session state machine and controller
    - verification: Single-shot verification session
    - template: Per-dimension template averaging
    - template_manager: Identity template storage (server side)
    - matching: Nearest-identity matching (server side)
    - face_detector: face_recognition detection backend (optional extra,
      import it directly)

Usage:
    from core.config import get_config
    from core.observation import ObservationSlot
    from core.enrollment import EnrollmentController
"""

from core.config import (
    get_config,
    get_section,
    get_camera_config,
    get_feed_config,
    get_enrollment_config,
    get_detector_config,
    get_matching_config,
    get_storage_config,
    get_api_config,
    get_server_config,
    configure_logging,
)

from core.errors import (
    ErrorKind,
    FaceAuthError,
    EmptyIdentityLabelError,
    TransportError,
    MalformedResponseError,
)

from core.feedback import StatusLevel, StatusMessage

from core.observation import EMBEDDING_DIM, Observation, ObservationSlot

from core.gate import GateOutcome, GateResult, evaluate

from core.template import average_embeddings

from core.feed import ObservationFeed

from core.enrollment import (
    EnrollmentState,
    EnrollmentSession,
    EnrollmentController,
)

from core.verification import (
    VerificationState,
    VerificationOutcome,
    VerificationSession,
)

from core.template_manager import (
    TemplateManager,
    IdentityTemplate,
    get_template_manager,
)

__all__ = [
    # Configuration
    "get_config",
    "get_section",
    "get_camera_config",
    "get_feed_config",
    "get_enrollment_config",
    "get_detector_config",
    "get_matching_config",
    "get_storage_config",
    "get_api_config",
    "get_server_config",
    "configure_logging",
    # Errors and feedback
    "ErrorKind",
    "FaceAuthError",
    "EmptyIdentityLabelError",
    "TransportError",
    "MalformedResponseError",
    "StatusLevel",
    "StatusMessage",
    # Sampling core
    "EMBEDDING_DIM",
    "Observation",
    "ObservationSlot",
    "GateOutcome",
    "GateResult",
    "evaluate",
    "average_embeddings",
    "ObservationFeed",
    # Sessions
    "EnrollmentState",
    "EnrollmentSession",
    "EnrollmentController",
    "VerificationState",
    "VerificationOutcome",
    "VerificationSession",
    # Template storage
    "TemplateManager",
    "IdentityTemplate",
    "get_template_manager",
]
