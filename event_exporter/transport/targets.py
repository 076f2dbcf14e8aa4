"""Export targets: the live state behind one configured destination.

``ExportTarget`` is either a ``FileTarget`` (append-only local file) or a
``SocketTarget`` (persistent Unix domain socket connection). Both open
lazily, drop records that cannot be written, and reopen on the next send.
They differ in how they open and in how they react to a reopen signal.
"""

from __future__ import annotations

import errno
import logging
import os
import time
from typing import Callable, ClassVar, Optional, Union

from ..config import DESTINATION_FILE_MODE, ExporterConfig
from ..exceptions import EventExportError, TargetOpenError, TargetWriteError
from ..schema import ExporterSettings, TransportKind
from ..suppression import ErrorSuppressor
from .net import connect_unix_with_retries
from .sink import OutputSink

logger = logging.getLogger(__name__)

RECORD_TERMINATOR = b"\n"


def _invalid_path(exc: ValueError) -> OSError:
    # e.g. an embedded NUL byte, which the OS layer rejects before any syscall
    return OSError(errno.EINVAL, str(exc))


class BaseExportTarget:
    """Shared open/write/close behaviour for both destination kinds.

    Subclasses provide ``_open_sink()`` and ``reopen()``.
    """

    kind: ClassVar[TransportKind]

    def __init__(self, destination: str, *, suppressor: ErrorSuppressor) -> None:
        self._destination = destination
        self._sink: Optional[OutputSink] = None
        self.suppressor = suppressor
        self.retired = False

    @property
    def destination(self) -> str:
        return self._destination

    @property
    def sink(self) -> Optional[OutputSink]:
        return self._sink

    @property
    def is_open(self) -> bool:
        return self._sink is not None and not self._sink.closed

    @property
    def last_error_time(self) -> Optional[float]:
        return self.suppressor.last_error_time

    def open(self) -> bool:
        """Make sure the destination is open. Returns False if it is not.

        An open, healthy sink is left alone. Otherwise any stale sink is
        released and a fresh one is opened.
        """
        if self.is_open:
            return True
        self._release()
        try:
            self._sink = self._open_sink()
        except TargetOpenError as exc:
            self._report(exc)
            return False
        return True

    def write(self, record: bytes) -> None:
        """Append ``record`` and its terminator in a single vectored write.

        On failure the target is closed so the next send reopens it; the
        record itself is dropped.
        """
        sink = self._sink
        if sink is None or sink.closed:
            self._report(TargetWriteError(self._destination, sink.error if sink else None))
            self._release()
            return
        try:
            sink.sendv((record, RECORD_TERMINATOR))
        except OSError as exc:
            self._report(TargetWriteError(sink.name, exc))
            self._release()

    def close(self) -> None:
        """Flush and release the sink. The target can be opened again.

        Flush and descriptor-close failures are reported, not raised.
        """
        sink, self._sink = self._sink, None
        if sink is None:
            return
        try:
            sink.finish()
        except OSError as exc:
            self._report(TargetWriteError(sink.name, exc))
        try:
            sink.release()
        except OSError as exc:
            self._report(TargetWriteError(sink.name, exc))

    def reopen(self) -> None:
        raise NotImplementedError("Subclasses must implement reopen().")

    def teardown(self) -> None:
        """Close for good; the owning exporter must create a new target."""
        try:
            self.close()
        finally:
            self.retired = True

    def _open_sink(self) -> OutputSink:
        raise NotImplementedError("Subclasses must implement _open_sink().")

    def _release(self) -> None:
        sink, self._sink = self._sink, None
        if sink is None:
            return
        try:
            sink.release()
        except OSError as exc:
            self._report(TargetWriteError(sink.name, exc))

    def _report(self, exc: EventExportError) -> None:
        if self.suppressor.should_report():
            logger.error("%s", exc)

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"{type(self).__name__}({self._destination!r}, {state})"


class FileTarget(BaseExportTarget):
    """Append-only local file, created owner read/write only."""

    kind: ClassVar[TransportKind] = "file"

    def _open_sink(self) -> OutputSink:
        flags = os.O_CREAT | os.O_APPEND | os.O_WRONLY | os.O_CLOEXEC
        try:
            fd = os.open(self._destination, flags, DESTINATION_FILE_MODE)
        except OSError as exc:
            raise TargetOpenError("open", self._destination, exc) from exc
        except ValueError as exc:
            raise TargetOpenError("open", self._destination, _invalid_path(exc)) from exc
        return OutputSink(fd, self._destination)

    def reopen(self) -> None:
        # The path may have been rotated away; the next write reopens it.
        self.close()


class SocketTarget(BaseExportTarget):
    """Persistent connection to a Unix domain socket."""

    kind: ClassVar[TransportKind] = "unix"

    def __init__(
        self,
        destination: str,
        *,
        suppressor: ErrorSuppressor,
        connect_timeout_ms: int,
        block_size: int,
    ) -> None:
        super().__init__(destination, suppressor=suppressor)
        self.connect_timeout_ms = connect_timeout_ms
        self.block_size = block_size

    def _open_sink(self) -> OutputSink:
        try:
            sock = connect_unix_with_retries(self._destination, self.connect_timeout_ms)
        except OSError as exc:
            raise TargetOpenError("connect", self._destination, exc) from exc
        except ValueError as exc:
            raise TargetOpenError("connect", self._destination, _invalid_path(exc)) from exc
        return OutputSink(sock.detach(), self._destination, max_buffer_size=self.block_size)

    def reopen(self) -> None:
        # Socket endpoints do not rotate; keep the connection.
        return None


ExportTarget = Union[FileTarget, SocketTarget]


def build_target(
    settings: ExporterSettings,
    kind: TransportKind,
    config: ExporterConfig,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> ExportTarget:
    """Create an unopened target for ``settings`` of the given kind."""
    suppressor = ErrorSuppressor(config.error_suppression_secs, clock=clock)
    if kind == "file":
        return FileTarget(settings.destination, suppressor=suppressor)
    if kind == "unix":
        timeout_ms = settings.transport_timeout_ms
        if timeout_ms is None:
            timeout_ms = config.connect_timeout_ms
        return SocketTarget(
            settings.destination,
            suppressor=suppressor,
            connect_timeout_ms=timeout_ms,
            block_size=config.socket_block_size,
        )
    raise ValueError(f"Unknown transport kind {kind!r}")


__all__ = [
    "BaseExportTarget",
    "ExportTarget",
    "FileTarget",
    "RECORD_TERMINATOR",
    "SocketTarget",
    "build_target",
]
