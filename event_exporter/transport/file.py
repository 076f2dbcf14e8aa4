"""File and Unix socket transports.

Both transports share one ``TargetRegistry`` so a single reopen or deinit
call reaches every target, whichever transport created it.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from ..exporter import EventExporter
from ..schema import TransportKind
from .registry import TargetRegistry

logger = logging.getLogger(__name__)


class _TargetTransport:
    """Send records through lazily created export targets."""

    name: ClassVar[TransportKind]

    def __init__(self, registry: TargetRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> TargetRegistry:
        return self._registry

    def send(self, exporter: EventExporter, record: bytes) -> None:
        """Write one record for ``exporter``.

        Never raises: open and write failures are logged (rate limited per
        target) and the record is dropped.
        """
        target = exporter.transport_context
        if target is None or target.retired:
            target = self._registry.create(exporter.settings, self.name)
            exporter.transport_context = target
        try:
            if not target.open():
                return
            target.write(record)
        except OSError as exc:
            logger.error("send(%s) failed: %s", target.destination, exc)
            target.close()

    def reopen(self) -> None:
        """Close file targets so rotated files are reopened on next send."""
        try:
            self._registry.reopen()
        except OSError as exc:
            logger.error("reopen failed: %s", exc)

    def deinit(self) -> None:
        """Close and drop every target, files and sockets alike."""
        try:
            self._registry.teardown()
        except OSError as exc:
            logger.error("deinit failed: %s", exc)


class FileTransport(_TargetTransport):
    """Append records to local files."""

    name: ClassVar[TransportKind] = "file"


class UnixSocketTransport(_TargetTransport):
    """Stream records over persistent Unix domain socket connections."""

    name: ClassVar[TransportKind] = "unix"


__all__ = ["FileTransport", "UnixSocketTransport"]
