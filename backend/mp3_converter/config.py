"""MP3 converter application configuration.

Loads settings from a single YAML file:
  * converter.settings.yaml  — non-secret configuration

The file location can be overridden with the ``MP3_CONVERTER_SETTINGS``
environment variable, and ``PORT`` always wins over ``server.port`` so the
service behaves like any other twelve-factor web process.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("converter.settings.yaml")
SETTINGS_ENV_VAR = "MP3_CONVERTER_SETTINGS"

MIB = 1024 * 1024

DEFAULT_ALLOWED_EXTENSIONS = [".mp4", ".avi", ".mov", ".mkv", ".flv", ".wmv", ".webm"]


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s (using defaults)", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host:            str           = "0.0.0.0"
    port:            int           = 3000
    public_base_url: Optional[str] = None

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {value}")
        return value


class StorageSettings(BaseModel):
    """Working directory and upload/cleanup policy."""
    work_dir:                str       = "./uploads"
    max_upload_bytes:        int       = 500 * MIB
    allowed_extensions:      List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_EXTENSIONS))
    cleanup_max_age_seconds: int       = 3600
    delete_after_download:   bool      = False
    chunk_size_bytes:        int       = MIB

    @field_validator("max_upload_bytes", "chunk_size_bytes")
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("cleanup_max_age_seconds")
    @classmethod
    def _check_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("allowed_extensions")
    @classmethod
    def _normalise_extensions(cls, value: List[str]) -> List[str]:
        normalised = []
        for ext in value:
            ext = ext.strip().lower()
            if not ext:
                continue
            normalised.append(ext if ext.startswith(".") else f".{ext}")
        return normalised

    @property
    def max_upload_mb(self) -> int:
        return self.max_upload_bytes // MIB


class ConverterSettings(BaseModel):
    """How the external ffmpeg binary is invoked."""
    ffmpeg_path:      str  = "ffmpeg"
    default_bitrate:  str  = "192k"
    output_format:    str  = "mp3"
    probe_on_startup: bool = True


class LoggingSettings(BaseModel):
    level: str = "info"


class AppConfig(BaseModel):
    server:    ServerSettings    = Field(default_factory=ServerSettings)
    storage:   StorageSettings   = Field(default_factory=StorageSettings)
    converter: ConverterSettings = Field(default_factory=ConverterSettings)
    logging:   LoggingSettings   = Field(default_factory=LoggingSettings)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    port = os.environ.get("PORT")
    if port:
        data.setdefault("server", {})
        data["server"]["port"] = int(port)
        logger.debug("server.port overridden by PORT=%s", port)
    return data


def load_config(settings_path: Optional[Path] = None) -> AppConfig:
    """Load settings from YAML and apply environment overrides.

    Args:
        settings_path: Explicit settings file. Falls back to
            ``$MP3_CONVERTER_SETTINGS`` and then ``converter.settings.yaml``.

    Returns:
        A validated ``AppConfig``.
    """
    if settings_path is None:
        settings_path = Path(os.environ.get(SETTINGS_ENV_VAR, SETTINGS_FILE))

    data = _apply_env_overrides(_load_yaml(Path(settings_path)))
    config = AppConfig(**data)
    logger.info(
        "Settings loaded (server=%s:%s, work_dir=%s, max_upload=%dMB)",
        config.server.host,
        config.server.port,
        config.storage.work_dir,
        config.storage.max_upload_mb,
    )
    return config


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config (for testing)."""
    global _config
    _config = None
