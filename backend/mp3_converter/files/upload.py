"""Validation and persistence of multipart video uploads."""
import logging
from pathlib import Path
from typing import Iterable

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from mp3_converter.config import MIB
from mp3_converter.errors import FileTooLargeError, UnsupportedFormatError

from .schemas import UploadedFile
from .service import FileStore

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = MIB


def get_file_extension(filename: str) -> str:
    """Extract file extension in lowercase."""
    return Path(filename).suffix.lower()


async def accept_upload(
    upload: UploadFile,
    store: FileStore,
    max_size_bytes: int,
    allowed_extensions: Iterable[str],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> UploadedFile:
    """Validate an upload and write it to the working directory.

    Starlette spools the whole multipart part to a temporary file before the
    endpoint runs, so an oversize body is buffered before it is rejected here.

    Args:
        upload: The multipart file received by the endpoint.
        store: File store owning the working directory.
        max_size_bytes: Hard cap on the number of bytes accepted.
        allowed_extensions: Lower-case extensions (with dot) accepted.
        chunk_size: Bytes copied per read.

    Returns:
        UploadedFile describing the stored copy.

    Raises:
        UnsupportedFormatError: Extension not on the allow-list. Nothing is
            written.
        FileTooLargeError: More than ``max_size_bytes`` bytes. Any partial
            copy is deleted.
    """
    allowed = list(allowed_extensions)
    original_name = upload.filename or ""
    ext = get_file_extension(original_name)
    if ext not in allowed:
        logger.info("Rejected upload %r: extension %r not allowed", original_name, ext)
        raise UnsupportedFormatError(allowed)

    # Starlette reports the spooled size when it is known.
    if upload.size is not None and upload.size > max_size_bytes:
        logger.info("Rejected upload %r: %d bytes over limit", original_name, upload.size)
        raise FileTooLargeError(max_size_bytes)

    store.ensure_directory()
    stored_name = store.generate_unique_name(ext)
    stored_path = store.path_for(stored_name)

    written = 0
    try:
        with open(stored_path, "wb") as fh:
            while True:
                chunk = await upload.read(chunk_size)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_size_bytes:
                    raise FileTooLargeError(max_size_bytes)
                await run_in_threadpool(fh.write, chunk)
    except BaseException:
        store.discard(stored_path)
        raise

    logger.info("Saved upload %r as %s (%d bytes)", original_name, stored_path, written)
    return UploadedFile(
        original_name=original_name,
        stored_name=stored_name,
        stored_path=stored_path,
        extension=ext,
        size=written,
    )
