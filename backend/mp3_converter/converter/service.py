"""Process-wide converter instance.

The default ``FFmpegConverter`` is built lazily from config; tests replace it
with ``set_converter`` or through ``app.dependency_overrides``.
"""
import logging
from typing import Optional

from mp3_converter.config import get_config

from .base import Converter
from .ffmpeg import FFmpegConverter

logger = logging.getLogger(__name__)

_converter: Optional[Converter] = None


def get_converter() -> Converter:
    """Return the global Converter, creating an FFmpegConverter on first use."""
    global _converter
    if _converter is None:
        cfg = get_config().converter
        _converter = FFmpegConverter(
            ffmpeg_path=cfg.ffmpeg_path,
            output_format=cfg.output_format,
        )
        logger.debug("Created FFmpegConverter (ffmpeg_path=%s)", cfg.ffmpeg_path)
    return _converter


def set_converter(converter: Optional[Converter]) -> None:
    """Set (or clear) the global Converter instance."""
    global _converter
    _converter = converter
