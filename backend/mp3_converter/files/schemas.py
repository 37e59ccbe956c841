"""Data models for files held in the working directory.

- UploadedFile: a validated upload persisted for the duration of one request
- StoredArtifact: any file found in the working directory, with its age

Both are plain dataclasses; they never leave the process as JSON.
"""
from dataclasses import dataclass
from pathlib import Path


@dataclass
class UploadedFile:
    """A validated upload written to the working directory.

    Attributes:
        original_name: Filename as declared by the client.
        stored_name: Store-generated unique filename.
        stored_path: Full path of the stored file.
        extension: Lower-cased extension, including the leading dot.
        size: Number of bytes written.
    """
    original_name: str
    stored_name: str
    stored_path: Path
    extension: str
    size: int

    @property
    def stem(self) -> str:
        return Path(self.stored_name).stem


@dataclass
class StoredArtifact:
    """A file in the working directory as seen by a directory scan."""
    name: str
    path: Path
    size: int
    modified_at: float
    age_ms: float
