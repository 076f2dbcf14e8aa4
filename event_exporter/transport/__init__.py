"""Destination transports for the event exporter.

Provides the ``EventTransport`` protocol and concrete transports.
Built-in transports:
- ``FileTransport`` appends records to local files
- ``UnixSocketTransport`` streams records to Unix domain sockets
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..exporter import EventExporter


@runtime_checkable
class EventTransport(Protocol):
    """Protocol that all transports must satisfy.

    The pipeline dispatches each record to the transport named by its
    exporter, fans out reopen signals, and calls ``deinit`` once at
    shutdown.
    """

    name: str

    def send(self, exporter: EventExporter, record: bytes) -> None:
        """Deliver one serialized record. Must not raise."""
        ...

    def reopen(self) -> None:
        """React to an external reopen (log rotation) signal."""
        ...

    def deinit(self) -> None:
        """Release every resource held by this transport."""
        ...


# Re-export concrete implementations
from .file import FileTransport, UnixSocketTransport  # noqa: E402
from .registry import TargetRegistry  # noqa: E402
from .targets import ExportTarget, FileTarget, SocketTarget  # noqa: E402

__all__ = [
    "EventTransport",
    "ExportTarget",
    "FileTarget",
    "FileTransport",
    "SocketTarget",
    "TargetRegistry",
    "UnixSocketTransport",
]
