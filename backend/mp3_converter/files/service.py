"""File store for the conversion service.

Owns the single working directory used for uploaded inputs and converted
outputs.  Handlers never touch the filesystem directly; they receive a
``FileStore`` through the ``get_file_store`` dependency.

Files are stored flat in: {work_dir}/{name}
"""
import logging
import os
import random
import time
from pathlib import Path
from typing import Iterator, Optional, Union

from mp3_converter.config import get_config

from .schemas import StoredArtifact

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _now_ms() -> int:
    return int(time.time() * 1000)


class FileStore:
    """Service for naming, listing and deleting files in the working directory."""

    def __init__(self, work_dir: PathLike):
        self._work_dir = Path(work_dir)

    @property
    def work_dir(self) -> Path:
        return self._work_dir

    def ensure_directory(self) -> None:
        """Ensure the working directory exists."""
        self._work_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    @staticmethod
    def generate_unique_name(extension: str) -> str:
        """Return ``<epochMillis>-<random><extension>``.

        Uniqueness relies on the time prefix and the random suffix; the
        directory is not checked for collisions.
        """
        return f"{_now_ms()}-{random.randint(0, 10**9)}{extension}"

    @staticmethod
    def timestamped_name(prefix: str, extension: str) -> str:
        return f"{prefix}_{_now_ms()}{extension}"

    def path_for(self, name: str) -> Path:
        """Resolve a bare filename under the working directory.

        Raises:
            ValueError: If ``name`` is empty, contains a path separator or
                would resolve outside the working directory.
        """
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ValueError(f"Invalid filename: {name!r}")
        path = self._work_dir / name
        if path.resolve().parent != self._work_dir.resolve():
            raise ValueError(f"Invalid filename: {name!r}")
        return path

    # ------------------------------------------------------------------
    # Existence / metadata / removal
    # ------------------------------------------------------------------

    @staticmethod
    def exists(path: PathLike) -> bool:
        return Path(path).is_file()

    @staticmethod
    def stat(path: PathLike) -> os.stat_result:
        return Path(path).stat()

    @staticmethod
    def delete(path: PathLike) -> bool:
        """Delete a file. A missing file is a no-op.

        Returns:
            True if a file was removed.
        """
        try:
            Path(path).unlink()
        except FileNotFoundError:
            return False
        logger.info("Deleted file: %s", path)
        return True

    def discard(self, *paths: Optional[PathLike]) -> None:
        """Best-effort delete of temporary files; failures are only logged."""
        for path in paths:
            if path is None:
                continue
            try:
                self.delete(path)
            except OSError as exc:
                logger.error("Failed to delete %s: %s", path, exc)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_with_age(self) -> Iterator[StoredArtifact]:
        """Yield every regular file in the working directory with its age.

        The directory is re-read on each call. A missing directory yields
        nothing; any other ``OSError`` propagates to the caller.
        """
        if not self._work_dir.is_dir():
            return
        now_ms = time.time() * 1000
        with os.scandir(self._work_dir) as entries:
            for entry in entries:
                if not entry.is_file(follow_symlinks=False):
                    continue
                st = entry.stat(follow_symlinks=False)
                yield StoredArtifact(
                    name=entry.name,
                    path=Path(entry.path),
                    size=st.st_size,
                    modified_at=st.st_mtime,
                    age_ms=now_ms - st.st_mtime * 1000,
                )


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_store: Optional[FileStore] = None


def get_file_store() -> FileStore:
    """Return the global FileStore, creating it from config on first use."""
    global _store
    if _store is None:
        _store = FileStore(get_config().storage.work_dir)
    return _store


def set_file_store(store: Optional[FileStore]) -> None:
    """Set (or clear) the global FileStore instance."""
    global _store
    _store = store
