"""Tests for EventExportPipeline."""

from __future__ import annotations

import signal
import socket
from pathlib import Path
from typing import Any

import pytest

from event_exporter import (
    ConfigurationError,
    EventExportPipeline,
    ExporterConfig,
    ExporterSettings,
)


def _settings(tmp_path: Path) -> list[ExporterSettings]:
    return [
        ExporterSettings(name="audit", transport="file", transport_args=f"{tmp_path}/audit.log json"),
        ExporterSettings(name="debug", transport="file", transport_args=f"{tmp_path}/debug.log"),
    ]


class TestSend:
    """Routing records to exporters."""

    def test_routes_by_exporter_name(self, tmp_path: Path, config: ExporterConfig) -> None:
        """Each record goes to the destination of the exporter it names."""
        with EventExportPipeline(_settings(tmp_path), config=config) as pipeline:
            pipeline.send("audit", b'{"event":"login"}')
            pipeline.send("debug", "text record")
            pipeline.send("audit", bytearray(b"raw"))

        assert (tmp_path / "audit.log").read_bytes() == b'{"event":"login"}\nraw\n'
        assert (tmp_path / "debug.log").read_bytes() == b"text record\n"

    def test_targets_are_lazy(self, tmp_path: Path, config: ExporterConfig) -> None:
        """Nothing is opened until an exporter first sends."""
        pipeline = EventExportPipeline(_settings(tmp_path), config=config)
        assert len(pipeline.registry) == 0
        pipeline.send("audit", b"x")
        assert len(pipeline.registry) == 1
        assert not (tmp_path / "debug.log").exists()
        pipeline.close()

    def test_unknown_exporter_is_dropped(
        self, tmp_path: Path, config: ExporterConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Records for an unconfigured exporter are logged and dropped."""
        pipeline = EventExportPipeline(_settings(tmp_path), config=config)
        with caplog.at_level("WARNING"):
            pipeline.send("nope", b"x")
        assert "Unknown exporter 'nope'" in caplog.text
        assert len(pipeline.registry) == 0

    def test_send_after_close_is_ignored(self, tmp_path: Path, config: ExporterConfig) -> None:
        """Sends after close() are dropped without reopening anything."""
        pipeline = EventExportPipeline(_settings(tmp_path), config=config)
        pipeline.send("audit", b"kept")
        pipeline.close()
        pipeline.send("audit", b"ignored")
        assert (tmp_path / "audit.log").read_bytes() == b"kept\n"
        assert len(pipeline.registry) == 0

    def test_duplicate_exporter_names_rejected(self, tmp_path: Path, config: ExporterConfig) -> None:
        """Exporter names must be unique within a pipeline."""
        settings = _settings(tmp_path)
        with pytest.raises(ConfigurationError):
            EventExportPipeline([settings[0], settings[0]], config=config)

    def test_socket_exporter(
        self, socket_path: Path, listener: socket.socket, config: ExporterConfig
    ) -> None:
        """Socket exporters are flushed on close."""
        pipeline = EventExportPipeline(
            [ExporterSettings(name="stats", transport="unix", transport_args=str(socket_path))],
            config=config,
        )
        pipeline.send("stats", b"metric=1")
        conn, _ = listener.accept()
        with conn:
            pipeline.close()
            conn.settimeout(2.0)
            assert conn.recv(100) == b"metric=1\n"


class TestReopenSignal:
    """Reopen requests delivered as a signal."""

    @pytest.fixture
    def handlers(self, monkeypatch: pytest.MonkeyPatch) -> dict[int, Any]:
        installed: dict[int, Any] = {}
        monkeypatch.setattr(signal, "signal", lambda signum, handler: installed.__setitem__(signum, handler))
        return installed

    def test_signal_while_idle_reopens_immediately(
        self, tmp_path: Path, config: ExporterConfig, handlers: dict[int, Any]
    ) -> None:
        """An idle pipeline lets go of a rotated file without waiting for a send."""
        pipeline = EventExportPipeline(_settings(tmp_path), config=config)
        pipeline.install_reopen_signal()
        assert signal.SIGHUP in handlers

        pipeline.send("audit", b"old")
        target = pipeline.exporters["audit"].transport_context
        (tmp_path / "audit.log").rename(tmp_path / "audit.log.1")

        handlers[signal.SIGHUP](signal.SIGHUP, None)
        assert target.is_open is False

        pipeline.send("audit", b"new")
        pipeline.close()
        assert (tmp_path / "audit.log.1").read_bytes() == b"old\n"
        assert (tmp_path / "audit.log").read_bytes() == b"new\n"

    def test_signal_during_send_waits_for_next_send(
        self, tmp_path: Path, config: ExporterConfig, handlers: dict[int, Any],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A signal that interrupts a write is honoured at the start of the next send."""
        pipeline = EventExportPipeline(_settings(tmp_path), config=config)
        pipeline.install_reopen_signal()
        file_transport = pipeline.transport("file")
        real_send = file_transport.send

        def send_then_signal(exporter: Any, record: bytes) -> None:
            real_send(exporter, record)
            handlers[signal.SIGHUP](signal.SIGHUP, None)

        monkeypatch.setattr(file_transport, "send", send_then_signal)
        pipeline.send("audit", b"old")
        target = pipeline.exporters["audit"].transport_context
        assert target.is_open is True

        monkeypatch.setattr(file_transport, "send", real_send)
        (tmp_path / "audit.log").rename(tmp_path / "audit.log.1")
        pipeline.send("audit", b"new")
        pipeline.close()
        assert (tmp_path / "audit.log.1").read_bytes() == b"old\n"
        assert (tmp_path / "audit.log").read_bytes() == b"new\n"

    def test_signal_after_close_is_ignored(
        self, tmp_path: Path, config: ExporterConfig, handlers: dict[int, Any]
    ) -> None:
        """A late signal on a closed pipeline touches nothing."""
        pipeline = EventExportPipeline(_settings(tmp_path), config=config)
        pipeline.install_reopen_signal()
        pipeline.send("audit", b"x")
        pipeline.close()
        handlers[signal.SIGHUP](signal.SIGHUP, None)
        assert len(pipeline.registry) == 0


class TestFromYaml:
    """Building a pipeline from a YAML file."""

    def test_builds_pipeline(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A YAML file yields tunables and exporters in one pass."""
        monkeypatch.delenv("EVENT_EXPORT_ERROR_SUPPRESSION_SECS", raising=False)
        config_path = tmp_path / "exporters.yaml"
        config_path.write_text(
            "error_suppression_secs: 10\n"
            "exporters:\n"
            f"  - name: audit\n    transport: file\n    transport_args: {tmp_path}/audit.log\n",
            encoding="utf-8",
        )
        pipeline = EventExportPipeline.from_yaml(config_path)
        assert pipeline.config.error_suppression_secs == 10.0
        assert list(pipeline.exporters) == ["audit"]
        pipeline.send("audit", b"hello")
        pipeline.close()
        assert (tmp_path / "audit.log").read_bytes() == b"hello\n"

    def test_invalid_exporter_raises(self, tmp_path: Path) -> None:
        """A malformed exporter entry is a ConfigurationError."""
        config_path = tmp_path / "exporters.yaml"
        config_path.write_text(
            "exporters:\n  - name: audit\n    transport: smoke-signal\n    transport_args: /x\n",
            encoding="utf-8",
        )
        with pytest.raises(ConfigurationError):
            EventExportPipeline.from_yaml(config_path)
