"""Error hierarchy for the event exporter.

All event-exporter exceptions inherit from EventExportError so callers can
catch the base class for broad error handling.
"""

from __future__ import annotations

import errno
from typing import Optional

from .diagnostics import open_failure_message, write_failure_message


class EventExportError(Exception):
    """Base exception for all event-exporter errors."""


class ConfigurationError(EventExportError):
    """Invalid exporter settings or configuration values."""


class TargetOpenError(EventExportError):
    """Opening a file or connecting a socket destination failed.

    Never propagated out of a transport ``send()``: the target logs it
    (subject to error suppression) and the record is dropped.
    """

    def __init__(self, func: str, path: str, error: OSError) -> None:
        self.func = func
        self.path = path
        self.error = error
        super().__init__(open_failure_message(func, path, error))

    @property
    def permission_denied(self) -> bool:
        return self.error.errno == errno.EACCES


class TargetWriteError(EventExportError):
    """Writing or flushing to an open destination failed."""

    def __init__(self, path: str, error: Optional[OSError]) -> None:
        self.path = path
        self.error = error
        super().__init__(write_failure_message(path, error))


__all__ = [
    "ConfigurationError",
    "EventExportError",
    "TargetOpenError",
    "TargetWriteError",
]
