"""
Debug log component.

A logging handler that keeps the most recent client log lines as
"HH:MM:SS - message" strings, for a debug panel under the camera view or
for dumping after a failed run.

Usage:
    debug_log = DebugLog(max_lines=200)
    debug_log.attach("core", "frontend")
    ...
    print("\\n".join(debug_log.lines()))
    debug_log.detach()
"""

import logging
import threading
from collections import deque
from datetime import datetime
from typing import List, Optional


class DebugLog(logging.Handler):
    """
    Bounded in-memory sink for log records.

    Records are formatted with their own timestamp and message only; the
    logger name and level stay in the regular log output.
    """

    def __init__(self, max_lines: int = 200, level: int = logging.INFO):
        super().__init__(level=level)
        self._lines = deque(maxlen=max_lines)
        self._lines_lock = threading.Lock()
        self._loggers: List[logging.Logger] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
            line = f"{stamp} - {record.getMessage()}"
        except Exception:
            self.handleError(record)
            return
        with self._lines_lock:
            self._lines.append(line)

    def lines(self) -> List[str]:
        """Oldest first."""
        with self._lines_lock:
            return list(self._lines)

    def clear(self) -> None:
        with self._lines_lock:
            self._lines.clear()

    def attach(self, *logger_names: str) -> "DebugLog":
        """Start collecting records from the named loggers (root if none)."""
        for name in logger_names or ("",):
            target = logging.getLogger(name or None)
            if self not in target.handlers:
                target.addHandler(self)
                self._loggers.append(target)
        return self

    def detach(self) -> None:
        for target in self._loggers:
            target.removeHandler(self)
        self._loggers.clear()

    @classmethod
    def from_config(cls, log_config: Optional[dict]) -> "DebugLog":
        return cls(max_lines=int((log_config or {}).get("debug_log_lines", 200)))
