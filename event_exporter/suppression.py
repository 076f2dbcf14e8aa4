"""Per-target error suppression window."""

from __future__ import annotations

import time
from typing import Callable, Optional

from .config import DEFAULT_ERROR_SUPPRESSION_SECS


class ErrorSuppressor:
    """Rate-limit diagnostics for one destination.

    A sink that stays down would otherwise log on every send. After an
    error is reported, further errors are silently dropped until
    ``window`` seconds have passed on the monotonic clock.

    Args:
        window: Minimum number of seconds between two reported errors.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        window: float = DEFAULT_ERROR_SUPPRESSION_SECS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window = max(0.0, float(window))
        self._clock = clock
        self.last_error_time: Optional[float] = None

    @property
    def window(self) -> float:
        return self._window

    def should_report(self) -> bool:
        """Return True and restart the window if an error may be logged now."""
        now = self._clock()
        if self.last_error_time is not None and now - self.last_error_time < self._window:
            return False
        self.last_error_time = now
        return True


__all__ = ["ErrorSuppressor"]
