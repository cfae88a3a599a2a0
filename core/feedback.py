"""
User-facing status messages emitted by the feed and the sessions.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from core.errors import ErrorKind

logger = logging.getLogger(__name__)


class StatusLevel(str, Enum):
    NORMAL = "normal"
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class StatusMessage:
    """A human-readable status line plus the failure it reports, if any."""
    text: str
    level: StatusLevel = StatusLevel.NORMAL
    kind: Optional[ErrorKind] = None


StatusCallback = Callable[[StatusMessage], None]


def emit_status(
    callback: Optional[StatusCallback],
    text: str,
    level: StatusLevel = StatusLevel.NORMAL,
    kind: Optional[ErrorKind] = None,
) -> StatusMessage:
    """Build a StatusMessage, log it and hand it to ``callback`` if set."""
    message = StatusMessage(text=text, level=level, kind=kind)
    if level is StatusLevel.ERROR:
        logger.info(f"[status:{level.value}] {text}")
    else:
        logger.debug(f"[status:{level.value}] {text}")
    if callback is not None:
        callback(message)
    return message
