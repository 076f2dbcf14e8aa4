"""Configuration helpers for the event exporter.

This module centralizes the tunables for destination writers and the list
of configured exporters. Configuration can come from:
1. Constructor kwargs (highest priority)
2. YAML file (file-based)
3. Environment variables (deployment)
4. Built-in defaults (lowest priority)
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import yaml
from pydantic import ValidationError

from .exceptions import ConfigurationError
from .schema import ExporterSettings

logger = logging.getLogger(__name__)

EVENT_EXPORT_ERROR_SUPPRESSION_SECS_ENV = "EVENT_EXPORT_ERROR_SUPPRESSION_SECS"
EVENT_EXPORT_CONNECT_TIMEOUT_MS_ENV = "EVENT_EXPORT_CONNECT_TIMEOUT_MS"
EVENT_EXPORT_SOCKET_BLOCK_SIZE_ENV = "EVENT_EXPORT_SOCKET_BLOCK_SIZE"

DEFAULT_ERROR_SUPPRESSION_SECS = 60.0
DEFAULT_CONNECT_TIMEOUT_MS = 250
DEFAULT_SOCKET_BLOCK_SIZE = 8192

# Newly created destination files are readable and writable by the owner only.
DESTINATION_FILE_MODE = 0o600


@dataclass(frozen=True, slots=True)
class ExporterConfig:
    """Runtime tunables shared by every export target."""

    error_suppression_secs: float = DEFAULT_ERROR_SUPPRESSION_SECS
    connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS
    socket_block_size: int = DEFAULT_SOCKET_BLOCK_SIZE

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExporterConfig":
        """Build an ExporterConfig from a plain dictionary.

        Unknown keys are silently ignored. Values that cannot be coerced
        fall back to the defaults.
        """

        kwargs: dict[str, Any] = {}

        if "error_suppression_secs" in data:
            try:
                value = float(data["error_suppression_secs"])
                if math.isfinite(value) and value >= 0.0:
                    kwargs["error_suppression_secs"] = value
            except (TypeError, ValueError):
                pass

        for key, min_value in (("connect_timeout_ms", 0), ("socket_block_size", 1)):
            if key in data:
                try:
                    value = int(data[key])
                except (TypeError, ValueError):
                    continue
                if value >= min_value:
                    kwargs[key] = value

        return cls(**kwargs)

    @classmethod
    def from_yaml(
        cls,
        yaml_path: str | Path,
        *,
        allow_env_override: bool = True,
    ) -> "ExporterConfig":
        """Build an ExporterConfig from a YAML file.

        Environment variables that are set take precedence over YAML values
        unless ``allow_env_override`` is False.
        """

        data = _read_yaml_mapping(Path(yaml_path))
        config = cls.from_dict(data)
        if not allow_env_override:
            return config

        env_instance = cls.from_env()
        overrides: dict[str, Any] = {}
        for field_name, env_var in (
            ("error_suppression_secs", EVENT_EXPORT_ERROR_SUPPRESSION_SECS_ENV),
            ("connect_timeout_ms", EVENT_EXPORT_CONNECT_TIMEOUT_MS_ENV),
            ("socket_block_size", EVENT_EXPORT_SOCKET_BLOCK_SIZE_ENV),
        ):
            if _normalize(os.getenv(env_var)) is not None:
                overrides[field_name] = getattr(env_instance, field_name)
        if not overrides:
            return config
        return cls(
            error_suppression_secs=overrides.get(
                "error_suppression_secs", config.error_suppression_secs
            ),
            connect_timeout_ms=overrides.get("connect_timeout_ms", config.connect_timeout_ms),
            socket_block_size=overrides.get("socket_block_size", config.socket_block_size),
        )

    @classmethod
    def from_env(cls) -> "ExporterConfig":
        """Build an ExporterConfig instance from environment variables."""

        return cls(
            error_suppression_secs=_parse_float(
                EVENT_EXPORT_ERROR_SUPPRESSION_SECS_ENV,
                default=DEFAULT_ERROR_SUPPRESSION_SECS,
                min_value=0.0,
            ),
            connect_timeout_ms=_parse_int(
                EVENT_EXPORT_CONNECT_TIMEOUT_MS_ENV,
                default=DEFAULT_CONNECT_TIMEOUT_MS,
                min_value=0,
            ),
            socket_block_size=_parse_int(
                EVENT_EXPORT_SOCKET_BLOCK_SIZE_ENV,
                default=DEFAULT_SOCKET_BLOCK_SIZE,
                min_value=1,
            ),
        )


def get_export_config() -> ExporterConfig:
    """Return an ExporterConfig instance built from the current environment."""

    return ExporterConfig.from_env()


def load_exporters(entries: Any) -> list[ExporterSettings]:
    """Validate the ``exporters:`` section of a configuration file.

    Raises:
        ConfigurationError: If the section is malformed, an entry fails
            validation, or two exporters share a name.
    """

    if entries is None:
        return []
    if not isinstance(entries, Sequence) or isinstance(entries, (str, bytes)):
        raise ConfigurationError("'exporters' must be a list of mappings")

    settings: list[ExporterSettings] = []
    seen: set[str] = set()
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"exporters[{index}] is not a mapping")
        try:
            item = ExporterSettings.model_validate(dict(entry))
        except ValidationError as exc:
            raise ConfigurationError(f"exporters[{index}] is invalid: {exc}") from exc
        if item.name in seen:
            raise ConfigurationError(f"Duplicate exporter name {item.name!r}")
        seen.add(item.name)
        settings.append(item)
    return settings


def load_pipeline_config(
    yaml_path: str | Path,
    *,
    allow_env_override: bool = True,
) -> tuple[ExporterConfig, list[ExporterSettings]]:
    """Read tunables and exporter descriptors from one YAML file."""

    path = Path(yaml_path)
    data = _read_yaml_mapping(path)
    config = ExporterConfig.from_yaml(path, allow_env_override=allow_env_override)
    return config, load_exporters(data.get("exporters"))


def _read_yaml_mapping(path: Path) -> Mapping[str, Any]:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Exporter config not found at {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Exporter config at {path} is not valid YAML: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Exporter config at {path} is not a mapping")
    return raw


def _normalize(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def _parse_int(
    env_name: str,
    *,
    default: int,
    min_value: Optional[int] = None,
) -> int:
    raw = _normalize(os.getenv(env_name))
    if raw is None:
        return default
    try:
        parsed = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid %s=%r; using default=%s", env_name, raw, default)
        return default

    if min_value is not None and parsed < min_value:
        logger.warning("Out-of-range %s=%r; clamping to %s", env_name, raw, min_value)
        parsed = min_value
    return parsed


def _parse_float(
    env_name: str,
    *,
    default: float,
    min_value: Optional[float] = None,
) -> float:
    raw = _normalize(os.getenv(env_name))
    if raw is None:
        return float(default)
    try:
        parsed = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid %s=%r; using default=%s", env_name, raw, default)
        return float(default)

    if not math.isfinite(parsed):
        logger.warning("Invalid %s=%r; using default=%s", env_name, raw, default)
        return float(default)

    if min_value is not None and parsed < min_value:
        logger.warning("Out-of-range %s=%r; using default=%s", env_name, raw, default)
        return float(default)
    return parsed


__all__ = [
    "DEFAULT_CONNECT_TIMEOUT_MS",
    "DEFAULT_ERROR_SUPPRESSION_SECS",
    "DEFAULT_SOCKET_BLOCK_SIZE",
    "DESTINATION_FILE_MODE",
    "ExporterConfig",
    "get_export_config",
    "load_exporters",
    "load_pipeline_config",
]
