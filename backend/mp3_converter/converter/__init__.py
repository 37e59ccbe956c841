"""Converter adapters for audio extraction.

Usage:
    from mp3_converter.converter import FFmpegConverter, get_converter

    converter = get_converter()
    result = await converter.convert(source, output_path, "192k")
"""
from .base import (
    ConversionJob,
    ConversionProgress,
    ConversionResult,
    Converter,
    ConverterStatus,
    ProgressCallback,
)
from .ffmpeg import FFmpegConverter
from .service import get_converter, set_converter

__all__ = [
    "ConversionJob",
    "ConversionProgress",
    "ConversionResult",
    "Converter",
    "ConverterStatus",
    "FFmpegConverter",
    "ProgressCallback",
    "get_converter",
    "set_converter",
]
