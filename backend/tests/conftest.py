"""Shared test fixtures and configuration for backend tests."""
from pathlib import Path
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from mp3_converter.config import AppConfig, get_config
from mp3_converter.converter import (
    ConversionResult,
    Converter,
    ConverterStatus,
    get_converter,
)
from mp3_converter.files import FileStore, get_file_store
from mp3_converter.main import app

# Large enough that file_size_mb rounds to a nonzero value
FAKE_MP3_BYTES = b"ID3" + b"\x00" * (64 * 1024)


class FakeConverter(Converter):
    """In-process stand-in for ffmpeg.

    Args:
        available: Result of the capability probe.
        fail_with: When set, every conversion fails with this message.
        unavailable: Report failures as "could not start the converter".
        partial_output: Write a partial output file before failing.
    """

    def __init__(
        self,
        available: bool = True,
        fail_with: Optional[str] = None,
        unavailable: bool = False,
        partial_output: bool = True,
        output_bytes: bytes = FAKE_MP3_BYTES,
    ):
        self.available = available
        self.fail_with = fail_with
        self.unavailable = unavailable
        self.partial_output = partial_output
        self.output_bytes = output_bytes
        self.calls: List[dict] = []

    async def check_available(self) -> ConverterStatus:
        if self.available:
            return ConverterStatus(available=True, message="available")
        return ConverterStatus(available=False, message="ffmpeg: command not found")

    async def convert(self, source, output_path, bitrate, on_progress=None) -> ConversionResult:
        output_path = Path(output_path)
        self.calls.append({"source": source, "output_path": output_path, "bitrate": bitrate})
        if self.fail_with is not None:
            if self.partial_output:
                output_path.write_bytes(b"ID3partial")
            return ConversionResult.failed(output_path, self.fail_with, unavailable=self.unavailable)
        output_path.write_bytes(self.output_bytes)
        return ConversionResult.ok(output_path)


@pytest.fixture
def work_dir(tmp_path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def file_store(work_dir) -> FileStore:
    return FileStore(work_dir)


@pytest.fixture
def fake_converter() -> FakeConverter:
    return FakeConverter()


@pytest.fixture
def app_config(work_dir) -> AppConfig:
    return AppConfig(storage={"work_dir": str(work_dir)})


@pytest.fixture
def api_client(file_store, fake_converter, app_config):
    """Provide a TestClient with the store, converter and config overridden."""
    app.dependency_overrides[get_file_store] = lambda: file_store
    app.dependency_overrides[get_converter] = lambda: fake_converter
    app.dependency_overrides[get_config] = lambda: app_config
    yield TestClient(app)
    app.dependency_overrides.clear()


def stored_files(work_dir: Path) -> List[str]:
    """Names of the files currently in the working directory."""
    if not work_dir.exists():
        return []
    return sorted(p.name for p in work_dir.iterdir())
