"""Buffered output sink owning a single OS descriptor.

The sink and its descriptor are one object: releasing the sink closes the
descriptor, so the two can never be out of step. Writes are vectored so a
record and its terminator reach the kernel in a single call.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)


class OutputSink:
    """Write-side wrapper around a file or socket descriptor.

    Args:
        fd: Descriptor to take ownership of.
        name: Destination name used in diagnostics.
        max_buffer_size: Upper bound on bytes kept pending when the
            descriptor would block. ``None`` means unbounded.
    """

    def __init__(self, fd: int, name: str, *, max_buffer_size: Optional[int] = None) -> None:
        self._fd: Optional[int] = fd
        self._name = name
        self._max_buffer_size = max_buffer_size
        self._pending = bytearray()
        self.closed = False
        self.error: Optional[OSError] = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def fd(self) -> Optional[int]:
        return self._fd

    @property
    def pending_bytes(self) -> int:
        return len(self._pending)

    def sendv(self, chunks: Sequence[bytes]) -> int:
        """Send ``chunks`` as one vectored write and return bytes accepted.

        Bytes the descriptor could not take right away stay pending and go
        out ahead of later data. A bounded sink refuses a new record that
        would overflow the buffer (returns 0) but always keeps the rest of
        a record it has started writing.

        Raises:
            OSError: The write failed; the sink is now closed.
        """
        if self.closed or self._fd is None:
            raise BrokenPipeError(f"output stream {self._name} is closed")

        total = sum(len(chunk) for chunk in chunks)
        self._flush_pending()
        if self._pending:
            if not self._has_room(total):
                return 0
            for chunk in chunks:
                self._pending += chunk
            return total

        try:
            written = os.writev(self._fd, list(chunks))
        except BlockingIOError:
            written = 0
        except OSError as exc:
            self._fail(exc)
            raise

        if written < total:
            if written == 0 and not self._has_room(total):
                return 0
            self._pending += b"".join(chunks)[written:]
            self._flush_pending()
        return total

    def finish(self) -> None:
        """Flush whatever is pending.

        Data that still cannot be written because the peer would block is
        dropped.

        Raises:
            OSError: Flushing failed; the sink is now closed.
        """
        if self.closed or self._fd is None:
            return
        self._flush_pending()
        if self._pending:
            logger.debug(
                "Dropping %d unflushed bytes for %s", len(self._pending), self._name
            )
            self._pending.clear()

    def release(self) -> None:
        """Close the descriptor. Safe to call more than once."""
        self.closed = True
        self._pending.clear()
        fd, self._fd = self._fd, None
        if fd is not None:
            os.close(fd)

    def _has_room(self, size: int) -> bool:
        if self._max_buffer_size is None:
            return True
        return len(self._pending) + size <= self._max_buffer_size

    def _flush_pending(self) -> None:
        while self._pending and self._fd is not None:
            try:
                written = os.write(self._fd, self._pending)
            except BlockingIOError:
                return
            except OSError as exc:
                self._fail(exc)
                raise
            del self._pending[:written]

    def _fail(self, exc: OSError) -> None:
        self.closed = True
        self.error = exc

    def __enter__(self) -> "OutputSink":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"OutputSink({self._name!r}, fd={self._fd}, {state})"


__all__ = ["OutputSink"]
