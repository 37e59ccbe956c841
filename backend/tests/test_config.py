"""Tests for settings loading and validation."""
import pytest
from pydantic import ValidationError

from mp3_converter import config as config_module
from mp3_converter.config import (
    DEFAULT_ALLOWED_EXTENSIONS,
    AppConfig,
    StorageSettings,
    get_config,
    load_config,
    reset_config,
)


@pytest.fixture(autouse=True)
def _no_port_env(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv(config_module.SETTINGS_ENV_VAR, raising=False)
    yield
    reset_config()


class TestDefaults:
    def test_defaults(self):
        cfg = AppConfig()
        assert cfg.server.port == 3000
        assert cfg.storage.work_dir == "./uploads"
        assert cfg.storage.max_upload_bytes == 500 * 1024 * 1024
        assert cfg.storage.max_upload_mb == 500
        assert cfg.storage.cleanup_max_age_seconds == 3600
        assert cfg.storage.delete_after_download is False
        assert cfg.storage.allowed_extensions == DEFAULT_ALLOWED_EXTENSIONS
        assert cfg.converter.default_bitrate == "192k"
        assert cfg.converter.output_format == "mp3"

    def test_missing_file_uses_defaults(self, tmp_path):
        cfg = load_config(settings_path=tmp_path / "absent.yaml")
        assert cfg == AppConfig()


class TestLoading:
    def test_yaml_values_are_applied(self, tmp_path):
        settings = tmp_path / "converter.settings.yaml"
        settings.write_text(
            "server:\n"
            "  port: 8080\n"
            "storage:\n"
            "  work_dir: /srv/uploads\n"
            "  max_upload_bytes: 1048576\n"
            "  cleanup_max_age_seconds: 600\n"
            "  delete_after_download: true\n"
            "converter:\n"
            "  default_bitrate: 128k\n",
            encoding="utf-8",
        )
        cfg = load_config(settings_path=settings)
        assert cfg.server.port == 8080
        assert cfg.storage.work_dir == "/srv/uploads"
        assert cfg.storage.max_upload_mb == 1
        assert cfg.storage.cleanup_max_age_seconds == 600
        assert cfg.storage.delete_after_download is True
        assert cfg.converter.default_bitrate == "128k"

    def test_port_env_overrides_yaml(self, tmp_path, monkeypatch):
        settings = tmp_path / "s.yaml"
        settings.write_text("server:\n  port: 8080\n", encoding="utf-8")
        monkeypatch.setenv("PORT", "5050")
        assert load_config(settings_path=settings).server.port == 5050

    def test_settings_env_var_selects_file(self, tmp_path, monkeypatch):
        settings = tmp_path / "other.yaml"
        settings.write_text("logging:\n  level: debug\n", encoding="utf-8")
        monkeypatch.setenv(config_module.SETTINGS_ENV_VAR, str(settings))
        assert load_config().logging.level == "debug"

    def test_get_config_is_cached(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config_module, "SETTINGS_FILE", tmp_path / "absent.yaml")
        reset_config()
        assert get_config() is get_config()


class TestValidation:
    def test_extensions_are_normalised(self):
        storage = StorageSettings(allowed_extensions=["MP4", ".MoV", " webm ", ""])
        assert storage.allowed_extensions == [".mp4", ".mov", ".webm"]

    @pytest.mark.parametrize("port", [0, 70000])
    def test_invalid_port(self, port):
        with pytest.raises(ValidationError):
            AppConfig(server={"port": port})

    def test_non_positive_upload_limit(self):
        with pytest.raises(ValidationError):
            StorageSettings(max_upload_bytes=0)

    def test_negative_cleanup_age(self):
        with pytest.raises(ValidationError):
            StorageSettings(cleanup_max_age_seconds=-1)
