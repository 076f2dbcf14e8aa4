"""Bounded Unix domain socket connect."""

from __future__ import annotations

import errno
import random
import socket
import time

_RETRY_ERRNOS = frozenset({errno.EAGAIN, errno.ECONNREFUSED})


def connect_unix_with_retries(path: str, timeout_ms: int) -> socket.socket:
    """Connect a non-blocking stream socket to ``path``.

    A full listen backlog (``EAGAIN``) or a listener that is restarting
    (``ECONNREFUSED``) is retried after a short random sleep until
    ``timeout_ms`` has elapsed. Any other error ends the attempt at once.
    The returned socket is left in non-blocking mode.

    Raises:
        OSError: The last connect error once retries are exhausted.
    """
    deadline = time.monotonic() + max(0, timeout_ms) / 1000.0
    while True:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.setblocking(False)
            sock.connect(path)
        except OSError as exc:
            sock.close()
            if exc.errno not in _RETRY_ERRNOS or time.monotonic() >= deadline:
                raise
            time.sleep(random.randint(1, 10) / 1000.0)
            continue
        return sock


__all__ = ["connect_unix_with_retries"]
