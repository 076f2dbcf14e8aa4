"""EventExportPipeline: primary public API for sending event records.

The pipeline owns the target registry and the transport table, routes
each record to the transport named by its exporter, and fans out reopen
and shutdown signals.
"""

from __future__ import annotations

import logging
import signal
import time
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Union

from .config import ExporterConfig, get_export_config, load_pipeline_config
from .exceptions import ConfigurationError
from .exporter import EventExporter
from .schema import ExporterSettings
from .transport import EventTransport, FileTransport, TargetRegistry, UnixSocketTransport

logger = logging.getLogger(__name__)

Record = Union[bytes, bytearray, memoryview, str]


class EventExportPipeline:
    """Route serialized event records to their configured destinations.

    Usage::

        pipeline = EventExportPipeline(
            [ExporterSettings(name="audit", transport="file",
                              transport_args="/var/log/events.log")]
        )
        with pipeline:
            pipeline.send("audit", b'{"event": "login"}')
    """

    def __init__(
        self,
        exporters: Iterable[ExporterSettings],
        *,
        config: Optional[ExporterConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or get_export_config()
        self._registry = TargetRegistry(self._config, clock=clock)
        self._transports: dict[str, EventTransport] = {
            transport.name: transport
            for transport in (
                FileTransport(self._registry),
                UnixSocketTransport(self._registry),
            )
        }
        self._exporters: dict[str, EventExporter] = {}
        for settings in exporters:
            if settings.name in self._exporters:
                raise ConfigurationError(f"Duplicate exporter name {settings.name!r}")
            self._exporters[settings.name] = EventExporter(settings)
        self._closed = False
        self._reopen_requested = False
        self._busy = False

    @classmethod
    def from_yaml(
        cls,
        yaml_path: str | Path,
        *,
        allow_env_override: bool = True,
    ) -> "EventExportPipeline":
        """Build a pipeline from a YAML file with an ``exporters:`` list."""
        config, exporters = load_pipeline_config(
            yaml_path, allow_env_override=allow_env_override
        )
        return cls(exporters, config=config)

    @property
    def config(self) -> ExporterConfig:
        return self._config

    @property
    def registry(self) -> TargetRegistry:
        return self._registry

    @property
    def exporters(self) -> dict[str, EventExporter]:
        return dict(self._exporters)

    def transport(self, name: str) -> EventTransport:
        return self._transports[name]

    def send(self, exporter_name: str, record: Record) -> None:
        """Send one record to the named exporter's destination.

        ``str`` records are UTF-8 encoded. Unknown exporters and sends after
        ``close()`` are logged and dropped.
        """
        if self._closed:
            logger.warning("EventExportPipeline.send() called after close(); ignoring.")
            return
        exporter = self._exporters.get(exporter_name)
        if exporter is None:
            logger.warning("Unknown exporter %r; dropping record", exporter_name)
            return
        payload = record.encode("utf-8") if isinstance(record, str) else bytes(record)
        self._busy = True
        try:
            if self._reopen_requested:
                self._reopen_requested = False
                self._transports[FileTransport.name].reopen()
            self._transports[exporter.transport].send(exporter, payload)
        finally:
            self._busy = False

    def reopen(self) -> None:
        """Reopen file destinations, e.g. after log rotation."""
        self._reopen_requested = False
        self._busy = True
        try:
            # All transports share the registry, so one sweep covers every target.
            self._transports[FileTransport.name].reopen()
        finally:
            self._busy = False

    def close(self) -> None:
        """Flush and release every destination."""
        if self._closed:
            return
        self._closed = True
        self._busy = True
        try:
            for transport in self._transports.values():
                try:
                    transport.deinit()
                except Exception as exc:
                    logger.warning("Transport %s deinit failed: %s", transport.name, exc)
        finally:
            self._busy = False

    def install_reopen_signal(self, signum: int = signal.SIGHUP) -> None:
        """Reopen file destinations after ``signum`` is delivered.

        When the signal arrives while the pipeline is idle, files are closed
        right away so a rotated-away file is released even if no further
        records come in. If it interrupts a send, reopen or close, the
        request is recorded and runs at the start of the next ``send()`` so
        it never interleaves with a write. Must be called from the main
        thread.
        """

        def _handler(_signum: int, _frame: Any) -> None:
            if self._busy or self._closed:
                self._reopen_requested = not self._closed
                return
            self.reopen()

        signal.signal(signum, _handler)

    def __enter__(self) -> "EventExportPipeline":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


__all__ = ["EventExportPipeline", "Record"]
