"""ffmpeg-backed converter.

Spawns one ffmpeg process per conversion with ``asyncio`` subprocess APIs so
the event loop keeps serving other requests while the process runs.

Progress comes from ``-progress pipe:1`` (``key=value`` lines on stdout);
the total duration needed for a percentage is scraped from the ``Duration:``
banner ffmpeg prints on stderr.  Remote URLs are handed to ffmpeg as-is.
"""
import asyncio
import logging
import re
import shlex
from collections import deque
from pathlib import Path
from typing import Deque, Dict, List, Optional

from .base import (
    ConversionJob,
    ConversionProgress,
    ConversionResult,
    Converter,
    ConverterStatus,
    ProgressCallback,
)

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")

# Lines of stderr kept for error reporting
_STDERR_TAIL = 20


def parse_duration(line: str) -> Optional[float]:
    """Return the duration in seconds from an ffmpeg ``Duration:`` line."""
    match = _DURATION_RE.search(line)
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def _parse_out_time(fields: Dict[str, str]) -> float:
    # out_time_ms is microseconds despite its name
    for key in ("out_time_us", "out_time_ms"):
        value = fields.get(key)
        if value and value != "N/A":
            try:
                return max(int(value), 0) / 1_000_000
            except ValueError:
                continue
    return 0.0


def build_progress(fields: Dict[str, str], duration: Optional[float]) -> ConversionProgress:
    """Turn one block of ``-progress`` fields into a snapshot."""
    out_time = _parse_out_time(fields)
    percent = None
    if duration:
        percent = round(min(out_time / duration * 100, 100.0), 2)
    speed = fields.get("speed")
    if speed == "N/A":
        speed = None
    return ConversionProgress(out_time_seconds=out_time, percent=percent, speed=speed)


def _log_progress(progress: ConversionProgress) -> None:
    if progress.percent is not None:
        logger.debug("Progress: %.2f%%", progress.percent)
    else:
        logger.debug("Progress: %.2fs converted", progress.out_time_seconds)


class FFmpegConverter(Converter):
    """Converter that shells out to the ffmpeg executable.

    Args:
        ffmpeg_path: Executable name or absolute path.
        output_format: Value passed to ``-f``.
    """

    def __init__(self, ffmpeg_path: str = "ffmpeg", output_format: str = "mp3") -> None:
        self._ffmpeg_path = ffmpeg_path
        self._output_format = output_format

    @property
    def ffmpeg_path(self) -> str:
        return self._ffmpeg_path

    def build_command(self, job: ConversionJob) -> List[str]:
        return [
            self._ffmpeg_path,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-i", job.source,
            "-vn",
            "-f", job.target_format,
            "-b:a", job.bitrate,
            "-progress", "pipe:1",
            "-nostats",
            str(job.output_path),
        ]

    async def check_available(self) -> ConverterStatus:
        try:
            proc = await asyncio.create_subprocess_exec(
                self._ffmpeg_path,
                "-hide_banner",
                "-formats",
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            return ConverterStatus(
                available=False,
                message=f"Cannot run {self._ffmpeg_path}: {exc}",
            )
        _, stderr_b = await proc.communicate()
        if proc.returncode != 0:
            message = f"{self._ffmpeg_path} exited with code {proc.returncode}"
            stderr = stderr_b.decode(errors="replace").strip()
            if stderr:
                message = f"{message}: {stderr}"
            return ConverterStatus(available=False, message=message)
        return ConverterStatus(available=True, message="available")

    async def convert(
        self,
        source: str,
        output_path: Path,
        bitrate: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ConversionResult:
        job = ConversionJob(
            source=source,
            output_path=Path(output_path),
            bitrate=bitrate,
            target_format=self._output_format,
        )
        cmd = self.build_command(job)
        logger.info("FFmpeg started: %s", " ".join(shlex.quote(part) for part in cmd))

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error("FFmpeg could not be started: %s", exc)
            return ConversionResult.failed(
                job.output_path,
                f"Cannot run {self._ffmpeg_path}: {exc}",
                unavailable=True,
            )

        duration: List[Optional[float]] = [None]
        stderr_tail: Deque[str] = deque(maxlen=_STDERR_TAIL)
        await asyncio.gather(
            self._read_stderr(proc.stderr, stderr_tail, duration),
            self._read_progress(proc.stdout, duration, on_progress or _log_progress),
        )
        returncode = await proc.wait()

        if returncode != 0:
            detail = "\n".join(line for line in stderr_tail if line)
            message = f"ffmpeg exited with code {returncode}"
            if detail:
                message = f"{message}: {detail}"
            logger.error("FFmpeg error: %s", message)
            return ConversionResult.failed(job.output_path, message)

        if not job.output_path.is_file() or job.output_path.stat().st_size == 0:
            logger.error("FFmpeg finished without writing %s", job.output_path)
            return ConversionResult.failed(job.output_path, "ffmpeg produced an empty output file")

        logger.info("Conversion completed: %s", job.output_path)
        return ConversionResult.ok(job.output_path)

    @staticmethod
    async def _read_stderr(
        stream: asyncio.StreamReader,
        tail: Deque[str],
        duration: List[Optional[float]],
    ) -> None:
        async for raw in stream:
            line = raw.decode(errors="replace").rstrip()
            tail.append(line)
            if duration[0] is None:
                duration[0] = parse_duration(line)

    @staticmethod
    async def _read_progress(
        stream: asyncio.StreamReader,
        duration: List[Optional[float]],
        on_progress: ProgressCallback,
    ) -> None:
        fields: Dict[str, str] = {}
        async for raw in stream:
            key, sep, value = raw.decode(errors="replace").strip().partition("=")
            if not sep:
                continue
            fields[key] = value
            # "progress" closes each block
            if key == "progress":
                on_progress(build_progress(fields, duration[0]))
                fields = {}
