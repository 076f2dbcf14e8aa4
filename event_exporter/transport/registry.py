"""Registry of live export targets, used for reopen and teardown sweeps."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterator, Optional

from ..config import ExporterConfig, get_export_config
from ..schema import ExporterSettings, TransportKind
from .targets import ExportTarget, build_target

logger = logging.getLogger(__name__)


class TargetRegistry:
    """Every export target created for one pipeline.

    Membership changes only in ``create()`` and ``teardown()``; ``reopen()``
    touches per-target open state but never the membership. Not thread
    safe: one thread is expected to drive all sends.
    """

    def __init__(
        self,
        config: Optional[ExporterConfig] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or get_export_config()
        self._clock = clock
        self._targets: list[ExportTarget] = []

    @property
    def config(self) -> ExporterConfig:
        return self._config

    def create(self, settings: ExporterSettings, kind: TransportKind) -> ExportTarget:
        """Register a new, unopened target for ``settings``."""
        target = build_target(settings, kind, self._config, clock=self._clock)
        self._targets.append(target)
        logger.debug("Registered %s target for exporter %s", kind, settings.name)
        return target

    def reopen(self) -> None:
        """Close file targets so they reopen at their current path."""
        for target in self._targets:
            try:
                target.reopen()
            except OSError as exc:
                self._report(target, "reopen", exc)

    def teardown(self) -> None:
        """Close and retire every target, leaving the registry empty."""
        targets, self._targets = self._targets, []
        for target in targets:
            try:
                target.teardown()
            except OSError as exc:
                self._report(target, "close", exc)

    @staticmethod
    def _report(target: ExportTarget, func: str, exc: OSError) -> None:
        if target.suppressor.should_report():
            logger.error("%s(%s) failed: %s", func, target.destination, exc.strerror or exc)

    def __len__(self) -> int:
        return len(self._targets)

    def __iter__(self) -> Iterator[ExportTarget]:
        return iter(list(self._targets))

    def __contains__(self, target: object) -> bool:
        return any(item is target for item in self._targets)


__all__ = ["TargetRegistry"]
