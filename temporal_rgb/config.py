"""Configuration dataclasses and loading helpers for temporal RGB composition."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from temporal_rgb.encoding import SUPPORTED_FORMATS
from temporal_rgb.pipeline import DEFAULT_DELTA_T
from temporal_rgb.sampler import DEFAULT_FETCH_WORKERS

ENV_PREFIX = "TEMPORAL_RGB_"


def _default_series_workers() -> int:
    """Determine a sensible default for composite rendering workers."""
    return max(1, min(4, os.cpu_count() or 1))


def _parse_positive_int(value: Any, default: int) -> int:
    """Parse a positive integer with fallback to default."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _parse_float(value: Any, default: float) -> float:
    """Parse a floating point number with fallback to default."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _parse_positive_float(value: Any, default: float) -> float:
    parsed = _parse_float(value, default)
    return parsed if parsed > 0 else default


def _parse_format(value: Any, default: str) -> str:
    if not isinstance(value, str):
        return default
    normalized = value.strip().lower()
    return normalized if normalized in SUPPORTED_FORMATS else default


def _parse_level(value: Any, default: str) -> str:
    if not isinstance(value, str):
        return default
    normalized = value.strip().upper()
    return normalized if isinstance(logging.getLevelName(normalized), int) else default


def _parse_optional_path(value: Any) -> Optional[Path]:
    if value is None:
        return None
    text = str(value).strip()
    return Path(text) if text else None


@dataclass(frozen=True)
class SeriesSettings:
    """Settings for rendering composites across a whole video."""

    stride: float = 1.0
    workers: int = field(default_factory=_default_series_workers)


@dataclass(frozen=True)
class OutputSettings:
    """Still-image encoding settings."""

    format: str = "png"
    jpeg_quality: int = 95


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    file: Optional[Path] = None


@dataclass(frozen=True)
class Settings:
    """Root configuration object."""

    delta_t: float = DEFAULT_DELTA_T
    fetch_workers: int = DEFAULT_FETCH_WORKERS
    series: SeriesSettings = field(default_factory=SeriesSettings)
    output: OutputSettings = field(default_factory=OutputSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def _parse_series_settings(raw: Any) -> SeriesSettings:
    default = SeriesSettings()
    if not isinstance(raw, Mapping):
        return default
    return SeriesSettings(
        stride=_parse_positive_float(raw.get("stride"), default.stride),
        workers=_parse_positive_int(raw.get("workers"), default.workers),
    )


def _parse_output_settings(raw: Any) -> OutputSettings:
    default = OutputSettings()
    if not isinstance(raw, Mapping):
        return default
    quality = _parse_positive_int(raw.get("jpeg_quality"), default.jpeg_quality)
    return OutputSettings(
        format=_parse_format(raw.get("format"), default.format),
        jpeg_quality=max(1, min(100, quality)),
    )


def _parse_logging_settings(raw: Any) -> LoggingSettings:
    default = LoggingSettings()
    if not isinstance(raw, Mapping):
        return default
    return LoggingSettings(
        level=_parse_level(raw.get("level"), default.level),
        file=_parse_optional_path(raw.get("file")),
    )


def _parse_settings(data: Mapping[str, Any]) -> Settings:
    # delta_t is kept as given; the pipeline rejects non-positive offsets.
    return Settings(
        delta_t=_parse_float(data.get("delta_t"), DEFAULT_DELTA_T),
        fetch_workers=_parse_positive_int(data.get("fetch_workers"), DEFAULT_FETCH_WORKERS),
        series=_parse_series_settings(data.get("series", {})),
        output=_parse_output_settings(data.get("output", {})),
        logging=_parse_logging_settings(data.get("logging", {})),
    )


def _settings_from_env(env: Mapping[str, str]) -> Settings:
    """Configuration derived from ``TEMPORAL_RGB_*`` environment variables."""

    def get(name: str) -> Optional[str]:
        return env.get(f"{ENV_PREFIX}{name}")

    return _parse_settings({
        "delta_t": get("DELTA_T"),
        "fetch_workers": get("FETCH_WORKERS"),
        "series": {
            "stride": get("SERIES_STRIDE"),
            "workers": get("SERIES_WORKERS"),
        },
        "output": {
            "format": get("OUTPUT_FORMAT"),
            "jpeg_quality": get("JPEG_QUALITY"),
        },
        "logging": {
            "level": get("LOG_LEVEL"),
            "file": get("LOG_FILE"),
        },
    })


def load_settings(
    config_path: Optional[Path | str] = None,
    env: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from a JSON file, or from the environment when absent."""
    source_env = os.environ if env is None else env

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
            if not isinstance(data, Mapping):
                raise ValueError(f"Configuration root in {path} must be a JSON object")
            return _parse_settings(data)

    return _settings_from_env(source_env)


__all__ = [
    "ENV_PREFIX",
    "LoggingSettings",
    "OutputSettings",
    "SeriesSettings",
    "Settings",
    "load_settings",
]
