"""Event Exporter: destination writers for event/telemetry export.

Deliver serialized event records to append-only files or persistent Unix
domain socket connections, without blocking the producer and without
flooding the logs when a destination is down.

Usage::

    from event_exporter import EventExportPipeline, ExporterSettings

    pipeline = EventExportPipeline([
        ExporterSettings(name="audit", transport="file",
                         transport_args="/var/log/events.log"),
        ExporterSettings(name="stats", transport="unix",
                         transport_args="/run/stats.sock",
                         transport_timeout_ms=250),
    ])
    pipeline.send("audit", b'{"event": "login"}')
    pipeline.reopen()  # after log rotation
    pipeline.close()
"""

from .config import ExporterConfig, get_export_config, load_exporters, load_pipeline_config
from .exceptions import (
    ConfigurationError,
    EventExportError,
    TargetOpenError,
    TargetWriteError,
)
from .exporter import EventExporter
from .pipeline import EventExportPipeline
from .schema import ExporterSettings, TransportKind
from .suppression import ErrorSuppressor
from .transport import (
    EventTransport,
    ExportTarget,
    FileTarget,
    FileTransport,
    SocketTarget,
    TargetRegistry,
    UnixSocketTransport,
)

__version__ = "1.0.0"

__all__ = [
    "ConfigurationError",
    "ErrorSuppressor",
    "EventExportError",
    "EventExportPipeline",
    "EventExporter",
    "EventTransport",
    "ExportTarget",
    "ExporterConfig",
    "ExporterSettings",
    "FileTarget",
    "FileTransport",
    "SocketTarget",
    "TargetOpenError",
    "TargetRegistry",
    "TargetWriteError",
    "TransportKind",
    "UnixSocketTransport",
    "get_export_config",
    "load_exporters",
    "load_pipeline_config",
]
