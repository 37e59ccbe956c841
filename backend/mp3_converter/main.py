"""MP3 Converter Application.

This is the main entry point for the conversion service.  Clients upload a
video (or point at one by URL), ffmpeg extracts the audio as MP3, and the
result comes back as a JSON descriptor or as the file itself.

Modules:
    - conversion: /convert, /convert-url, /download and /cleanup endpoints
    - converter: ffmpeg adapter behind an injectable Converter interface
    - files: working-directory store and upload validation
    - lifecycle: startup banner and signal handling
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mp3_converter import __version__
from mp3_converter.config import get_config
from mp3_converter.conversion.router import router as conversion_router
from mp3_converter.converter import Converter, get_converter
from mp3_converter.errors import ConversionAPIError
from mp3_converter.files import get_file_store
from mp3_converter.lifecycle import log_startup_banner, probe_converter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# multipart logs every parsed part at DEBUG
for _noisy in ("multipart", "python_multipart"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config = get_config()

    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    get_file_store().ensure_directory()
    log_startup_banner(config)

    if config.converter.probe_on_startup:
        await probe_converter(get_converter())

    yield  # Application runs here

    # Shutdown
    logger.info("Application shutdown complete")


# Create FastAPI application with metadata
app = FastAPI(
    title="MP3 Converter API",
    description="Extracts MP3 audio from video files or URLs using ffmpeg",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(conversion_router)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


@app.exception_handler(ConversionAPIError)
async def conversion_error_handler(request: Request, exc: ConversionAPIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse({"success": False, "error": message}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"success": False, "error": str(exc)}, status_code=500)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/health")
async def health(converter: Converter = Depends(get_converter)):
    """Health check endpoint.

    Probes the converter; does not touch the working directory.

    Returns:
        200 with ``{status, ffmpeg, timestamp}`` when ffmpeg is usable,
        500 with ``{status, error, message}`` otherwise.
    """
    status = await converter.check_available()
    if not status.available:
        return JSONResponse(
            {
                "status": "unhealthy",
                "error": "ffmpeg no está instalado o configurado correctamente",
                "message": status.message,
            },
            status_code=500,
        )

    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return {
        "status": "healthy",
        "ffmpeg": "available",
        "timestamp": timestamp.replace("+00:00", "Z"),
    }
