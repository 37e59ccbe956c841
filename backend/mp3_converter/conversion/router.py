"""FastAPI router for conversion, download and cleanup endpoints."""
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from mp3_converter.config import MIB, AppConfig, get_config
from mp3_converter.converter import Converter, get_converter
from mp3_converter.errors import (
    ConversionAPIError,
    ConverterFailedError,
    ConverterUnavailableError,
    FileNotFoundInStoreError,
    FilesystemError,
    MissingFileError,
    MissingURLError,
)
from mp3_converter.files import FileStore, accept_upload, get_file_store

from .schemas import (
    CleanupResponse,
    ConvertUrlRequest,
    UploadConversionResponse,
    UrlConversionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["conversion"])

AUDIO_MEDIA_TYPE = "audio/mpeg"


def get_download_url(request: Request, filename: str, config: AppConfig) -> str:
    """Generate the download URL for a converted file."""
    base_url = config.server.public_base_url or str(request.base_url)
    return f"{base_url.rstrip('/')}/download/{quote(filename)}"


def _size_mb(size: int) -> float:
    return round(size / MIB, 2)


async def _run_conversion(
    converter: Converter,
    store: FileStore,
    source: str,
    output_path: Path,
    bitrate: str,
    error_message: str,
) -> int:
    """Run one conversion and return the output size in bytes.

    Raises:
        ConverterUnavailableError: The converter could not be started.
        ConverterFailedError: The converter reported a failure.
    """
    try:
        result = await converter.convert(source, output_path, bitrate)
        if not result.success:
            error_cls = ConverterUnavailableError if result.unavailable else ConverterFailedError
            raise error_cls(error_message, details=result.error)
        return store.stat(output_path).st_size
    except ConversionAPIError:
        raise
    except Exception as exc:
        logger.exception("Conversion of %s failed", source)
        raise ConverterFailedError(error_message, details=str(exc)) from exc


@router.post("/convert")
async def convert_upload(
    request: Request,
    file: Optional[UploadFile] = File(None),
    bitrate: Optional[str] = Form(None),
    return_file: Optional[str] = Form(None),
    store: FileStore = Depends(get_file_store),
    converter: Converter = Depends(get_converter),
    config: AppConfig = Depends(get_config),
):
    """Convert an uploaded video to MP3.

    Form fields:
        file: The video (.mp4, .avi, .mov, .mkv, .flv, .wmv, .webm).
        bitrate: Audio bitrate, defaults to ``converter.default_bitrate``.
        return_file: ``"true"`` streams the MP3 back instead of JSON.

    Returns:
        UploadConversionResponse, or the MP3 as an attachment.

    Raises:
        MissingFileError, UnsupportedFormatError, FileTooLargeError: 400
        ConverterFailedError: 500
    """
    if file is None:
        raise MissingFileError()

    uploaded = await accept_upload(
        file,
        store,
        max_size_bytes=config.storage.max_upload_bytes,
        allowed_extensions=config.storage.allowed_extensions,
        chunk_size=config.storage.chunk_size_bytes,
    )

    bitrate = bitrate or config.converter.default_bitrate
    output_name = f"{uploaded.stem}.{config.converter.output_format}"
    output_path = store.path_for(output_name)

    try:
        size = await _run_conversion(
            converter, store, str(uploaded.stored_path), output_path, bitrate,
            "Error al convertir el archivo",
        )
    except ConversionAPIError:
        store.discard(uploaded.stored_path, output_path)
        raise

    if return_file == "true":
        logger.info("Returning %s directly (%d bytes)", output_name, size)
        return FileResponse(
            path=output_path,
            filename=output_name,
            media_type=AUDIO_MEDIA_TYPE,
            background=BackgroundTask(store.discard, uploaded.stored_path, output_path),
        )

    response = UploadConversionResponse(
        input_file=uploaded.original_name,
        output_file=output_name,
        output_path=str(output_path),
        file_size=size,
        file_size_mb=_size_mb(size),
        bitrate=bitrate,
        download_url=get_download_url(request, output_name, config),
    )
    store.discard(uploaded.stored_path)
    return response


@router.post("/convert-url", response_model=UrlConversionResponse)
async def convert_url(
    request: Request,
    body: Optional[ConvertUrlRequest] = None,
    store: FileStore = Depends(get_file_store),
    converter: Converter = Depends(get_converter),
    config: AppConfig = Depends(get_config),
) -> UrlConversionResponse:
    """Convert a remote video, read directly by ffmpeg, to MP3.

    The output stays in the working directory for /download.
    """
    if body is None or not body.url:
        raise MissingURLError()

    bitrate = body.bitrate or config.converter.default_bitrate
    output_name = store.timestamped_name("converted", f".{config.converter.output_format}")
    output_path = store.path_for(output_name)

    try:
        store.ensure_directory()
    except OSError as exc:
        raise FilesystemError("Error al preparar el directorio de trabajo", details=str(exc)) from exc

    try:
        size = await _run_conversion(
            converter, store, body.url, output_path, bitrate,
            "Error al convertir desde URL",
        )
    except ConversionAPIError:
        store.discard(output_path)
        raise

    return UrlConversionResponse(
        source_url=body.url,
        output_file=output_name,
        output_path=str(output_path),
        file_size=size,
        file_size_mb=_size_mb(size),
        bitrate=bitrate,
        download_url=get_download_url(request, output_name, config),
    )


@router.get("/download/{filename}")
async def download_file(
    filename: str,
    store: FileStore = Depends(get_file_store),
    config: AppConfig = Depends(get_config),
):
    """Download a converted file by name.

    Files are kept after download unless ``storage.delete_after_download``
    is enabled.

    Raises:
        FileNotFoundInStoreError: 404 if the file does not exist.
    """
    try:
        path = store.path_for(filename)
    except ValueError:
        raise FileNotFoundInStoreError() from None
    if not store.exists(path):
        raise FileNotFoundInStoreError()

    background = None
    if config.storage.delete_after_download:
        background = BackgroundTask(store.discard, path)
    return FileResponse(path=path, filename=filename, background=background)


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup_old_files(
    store: FileStore = Depends(get_file_store),
    config: AppConfig = Depends(get_config),
) -> CleanupResponse:
    """Delete files older than ``storage.cleanup_max_age_seconds``.

    Runs in the threadpool. The first filesystem error aborts the pass.
    """
    max_age_ms = config.storage.cleanup_max_age_seconds * 1000
    cleaned = 0
    try:
        for artifact in store.list_with_age():
            if artifact.age_ms > max_age_ms and store.delete(artifact.path):
                cleaned += 1
    except OSError as exc:
        logger.error("Cleanup aborted after %d deletions: %s", cleaned, exc)
        raise FilesystemError("Error al limpiar archivos", details=str(exc)) from exc

    logger.info("Cleanup removed %d file(s) from %s", cleaned, store.work_dir)
    return CleanupResponse(
        files_cleaned=cleaned,
        message=f"Se eliminaron {cleaned} archivos antiguos",
    )
