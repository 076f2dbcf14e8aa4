"""Runtime exporter descriptor."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .schema import ExporterSettings

if TYPE_CHECKING:
    from .transport.targets import ExportTarget


class EventExporter:
    """A configured exporter plus the target its transport attached to it.

    ``transport_context`` starts empty; the transport fills it on the first
    send and reuses it afterwards.
    """

    def __init__(self, settings: ExporterSettings) -> None:
        self.settings = settings
        self.transport_context: Optional["ExportTarget"] = None

    @property
    def name(self) -> str:
        return self.settings.name

    @property
    def transport(self) -> str:
        return self.settings.transport

    @property
    def transport_args(self) -> str:
        return self.settings.transport_args

    @property
    def transport_timeout_ms(self) -> Optional[int]:
        return self.settings.transport_timeout_ms

    def __repr__(self) -> str:
        return f"EventExporter(name={self.name!r}, transport={self.transport!r})"


__all__ = ["EventExporter"]
