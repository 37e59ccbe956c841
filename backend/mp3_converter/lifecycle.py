"""Process lifecycle: startup banner, converter probe and signal handling.

``run()`` is the console entry point.  It serves the app with uvicorn through
``ConverterServer``, whose signal handler stops the server at once instead of
waiting for in-flight conversions, so SIGTERM/SIGINT end the process with
exit code 0.
"""
import logging
import signal
from typing import Optional

import uvicorn

from mp3_converter.config import AppConfig, get_config
from mp3_converter.converter import Converter, ConverterStatus

logger = logging.getLogger(__name__)

BANNER_WIDTH = 60

ENDPOINTS = [
    ("GET ", "/health", "Server status"),
    ("POST", "/convert", "Convert an uploaded file"),
    ("POST", "/convert-url", "Convert from a URL"),
    ("GET ", "/download/:filename", "Download a converted file"),
    ("POST", "/cleanup", "Delete old files"),
]


def log_startup_banner(config: AppConfig) -> None:
    """Log the listening address, the endpoints and a few curl examples."""
    base = f"http://localhost:{config.server.port}"
    lines = [
        "=" * BANNER_WIDTH,
        "MP4 to MP3 conversion server started",
        "=" * BANNER_WIDTH,
        f"Listening on: {base}",
        "Available endpoints:",
    ]
    lines += [f"   {method} {path:<20} - {desc}" for method, path, desc in ENDPOINTS]
    lines += [
        "Usage examples:",
        "   # Upload and convert:",
        f'   curl -X POST -F "file=@video.mp4" {base}/convert',
        "   # Custom bitrate:",
        f'   curl -X POST -F "file=@video.mp4" -F "bitrate=320k" {base}/convert',
        "   # Download directly:",
        f'   curl -X POST -F "file=@video.mp4" -F "return_file=true" {base}/convert -o audio.mp3',
        "=" * BANNER_WIDTH,
    ]
    for line in lines:
        logger.info(line)


async def probe_converter(converter: Converter) -> ConverterStatus:
    """Probe the converter once and log whether it is usable."""
    status = await converter.check_available()
    if status.available:
        logger.info("ffmpeg is available and ready")
    else:
        logger.warning("WARNING: ffmpeg is not available: %s", status.message)
        logger.warning("Install ffmpeg for the server to work correctly")
    return status


class ConverterServer(uvicorn.Server):
    """uvicorn server that exits immediately on SIGTERM/SIGINT."""

    def handle_exit(self, sig: int, frame) -> None:
        try:
            name = signal.Signals(sig).name
        except ValueError:
            name = str(sig)
        logger.info("%s received, shutting down server...", name)
        # No draining: in-flight requests are dropped
        self.should_exit = True
        self.force_exit = True


def run(config: Optional[AppConfig] = None) -> None:
    """Serve the application until a termination signal arrives."""
    config = config or get_config()
    server = ConverterServer(
        uvicorn.Config(
            "mp3_converter.main:app",
            host=config.server.host,
            port=config.server.port,
            log_level=config.logging.level.lower(),
        )
    )
    server.run()
