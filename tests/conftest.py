"""Shared fixtures for the event-exporter test suite."""

from __future__ import annotations

import socket
from pathlib import Path
from typing import Iterator

import pytest

from event_exporter import ExporterConfig


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> ExporterConfig:
    return ExporterConfig(error_suppression_secs=60.0, connect_timeout_ms=50, socket_block_size=8192)


@pytest.fixture
def socket_path(tmp_path: Path) -> Path:
    return tmp_path / "sink.sock"


@pytest.fixture
def listener(socket_path: Path) -> Iterator[socket.socket]:
    """A listening Unix stream socket at ``socket_path``."""
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    server.bind(str(socket_path))
    server.listen(8)
    server.settimeout(2.0)
    try:
        yield server
    finally:
        server.close()

