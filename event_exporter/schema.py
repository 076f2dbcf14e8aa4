"""Pydantic schemas for exporter descriptors.

An exporter descriptor names a destination and the transport used to reach
it. The record format itself is decided upstream; this package only sees
opaque byte buffers.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

TransportKind = Literal["file", "unix"]


def destination_from_args(transport_args: str) -> str:
    """Return the destination path: everything before the first space."""
    return transport_args.split(" ", 1)[0]


class ExporterSettings(BaseModel):
    """Configured exporter: where records go and how.

    ``transport_args`` may carry trailing space-separated parameters; only
    the first token is used as the file or socket path.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    transport: TransportKind
    transport_args: str
    transport_timeout_ms: Optional[int] = Field(default=None, ge=0)

    @field_validator("transport_args")
    @classmethod
    def _validate_transport_args(cls, value: str) -> str:
        stripped = value.lstrip()
        if not destination_from_args(stripped):
            raise ValueError("transport_args must start with a file or socket path")
        if "\x00" in stripped:
            raise ValueError("transport_args must not contain NUL bytes")
        return stripped

    @property
    def destination(self) -> str:
        return destination_from_args(self.transport_args)


__all__ = ["ExporterSettings", "TransportKind", "destination_from_args"]
