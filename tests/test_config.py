import sys

import pytest

from reelscribe.core.config import ConfigurationError, load_settings
from reelscribe.core.context import build_context
from reelscribe.services.pipeline import TranscriptionPipeline


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("PORT", "8088")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.0-flash")
    monkeypatch.setenv("DOWNLOAD_TIMEOUT_SECONDS", "15")
    monkeypatch.delenv("YT_DLP_BINARY", raising=False)

    settings = load_settings()

    assert settings.port == 8088
    assert settings.gemini_model == "gemini-2.0-flash"
    assert settings.download_timeout_seconds == 15
    assert settings.yt_dlp_binary == [sys.executable, "-m", "yt_dlp"]


def test_yt_dlp_binary_override(monkeypatch):
    monkeypatch.setenv("YT_DLP_BINARY", "/usr/local/bin/yt-dlp")
    assert load_settings().yt_dlp_binary == ["/usr/local/bin/yt-dlp"]


def test_invalid_number_is_configuration_error(monkeypatch):
    monkeypatch.setenv("PORT", "not-a-port")
    with pytest.raises(ConfigurationError):
        load_settings()


def test_missing_api_key_is_fatal(monkeypatch, tmp_path):
    monkeypatch.setenv("GEMINI_API_KEY", "")
    monkeypatch.setenv("TEMP_DIR", str(tmp_path / "temp"))
    with pytest.raises(ConfigurationError):
        build_context(load_settings())


def test_build_context_creates_temp_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    monkeypatch.setenv("TEMP_DIR", str(tmp_path / "temp"))

    context = build_context(load_settings())

    assert context.temp_dir == (tmp_path / "temp").resolve()
    assert context.temp_dir.is_dir()
    assert context.client.api_key == "k"
    pipeline = context.new_pipeline()
    assert isinstance(pipeline, TranscriptionPipeline)
    assert pipeline.temp_dir == context.temp_dir
    # Idempotent on a second startup
    build_context(load_settings())
