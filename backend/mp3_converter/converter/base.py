"""Converter abstract interface.

A converter turns a video source (local path or remote URL) into an audio
file.  Implementations report exactly one terminal ``ConversionResult`` per
call and never raise for conversion failures.

Usage:
    from mp3_converter.converter import FFmpegConverter

    converter = FFmpegConverter()
    status = await converter.check_available()
    result = await converter.convert("in.mp4", Path("out.mp3"), "192k")
    if not result.success:
        print(result.error)
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional


@dataclass
class ConversionJob:
    """A single conversion request.

    Attributes:
        source: Local file path or remote URL.
        output_path: Where the converted file is written.
        bitrate: Audio bitrate token passed through to the tool (e.g. "192k").
        target_format: Output container/codec name.
    """
    source: str
    output_path: Path
    bitrate: str
    target_format: str = "mp3"


@dataclass
class ConversionProgress:
    """Progress snapshot emitted while a conversion runs."""
    out_time_seconds: float
    percent: Optional[float] = None
    speed: Optional[str] = None


@dataclass
class ConversionResult:
    """Terminal outcome of a conversion.

    Attributes:
        success: True when the output file was produced.
        output_path: Path of the (possibly partial) output.
        error: Diagnostic message when ``success`` is False.
        unavailable: True when the converter could not be started.
    """
    success: bool
    output_path: Path
    error: Optional[str] = None
    unavailable: bool = False

    @classmethod
    def ok(cls, output_path: Path) -> "ConversionResult":
        return cls(success=True, output_path=output_path)

    @classmethod
    def failed(cls, output_path: Path, error: str, unavailable: bool = False) -> "ConversionResult":
        return cls(success=False, output_path=output_path, error=error, unavailable=unavailable)


@dataclass
class ConverterStatus:
    """Result of a capability probe."""
    available: bool
    message: str = ""


ProgressCallback = Callable[[ConversionProgress], None]


class Converter(ABC):
    """Abstract base class for converter implementations."""

    @abstractmethod
    async def check_available(self) -> ConverterStatus:
        """Check whether the converter is installed and usable.

        Returns:
            ConverterStatus with a diagnostic message when unavailable.
        """

    @abstractmethod
    async def convert(
        self,
        source: str,
        output_path: Path,
        bitrate: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ConversionResult:
        """Convert ``source`` to audio at ``output_path``.

        On success ``output_path`` exists with nonzero size.  On failure it
        may or may not exist and callers must clean it up.

        Args:
            source: Local file path or remote URL.
            output_path: Destination file.
            bitrate: Bitrate token, passed through unvalidated.
            on_progress: Optional callback for progress snapshots.

        Returns:
            ConversionResult
        """
