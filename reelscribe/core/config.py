from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError


def _env(name: str, default: str = ""):
	return lambda: os.getenv(name, default)


def _env_int(name: str, default: int):
	return lambda: int(os.getenv(name, str(default)))


def _default_yt_dlp() -> List[str]:
	raw = os.getenv("YT_DLP_BINARY", "").strip()
	if raw:
		return raw.split()
	# Same interpreter as the server so the yt_dlp package from our env is used
	return [sys.executable, "-m", "yt_dlp"]


class ConfigurationError(RuntimeError):
	pass


class AppSettings(BaseModel):
	environment: str = Field(default_factory=_env("ENVIRONMENT", "development"))
	log_level: str = Field(default_factory=_env("LOG_LEVEL", "INFO"))

	# HTTP
	host: str = Field(default_factory=_env("HOST", "0.0.0.0"))
	port: int = Field(default_factory=_env_int("PORT", 3050))
	cors_origins: str = Field(default_factory=_env("CORS_ORIGINS", "*"))

	# Scratch space for downloaded media and normalized WAV files
	temp_dir: str = Field(default_factory=_env("TEMP_DIR", "temp"))

	# Gemini
	gemini_api_key: str = Field(default_factory=_env("GEMINI_API_KEY", ""))
	gemini_model: str = Field(default_factory=_env("GEMINI_MODEL", "gemini-1.5-flash"))
	gemini_base_url: str = Field(default_factory=_env("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"))

	# External tools
	yt_dlp_binary: List[str] = Field(default_factory=_default_yt_dlp)
	ffmpeg_binary: str = Field(default_factory=_env("FFMPEG_BINARY", "ffmpeg"))

	# Per-stage limits
	download_timeout_seconds: int = Field(default_factory=_env_int("DOWNLOAD_TIMEOUT_SECONDS", 180))
	transcode_timeout_seconds: int = Field(default_factory=_env_int("TRANSCODE_TIMEOUT_SECONDS", 120))
	inference_timeout_seconds: int = Field(default_factory=_env_int("INFERENCE_TIMEOUT_SECONDS", 120))


_cached_settings: Optional[AppSettings] = None


def load_settings(dotenv_path: Optional[str | Path] = None) -> AppSettings:
	"""
	Load environment variables and return validated settings with sensible defaults.

	Precedence: passed dotenv_path (if provided) → .env in CWD (if exists) → OS env.
	Values already present in the OS environment are never overridden by a .env file.
	"""
	global _cached_settings
	# In test environment, always reload settings to honor env overrides set by tests
	if os.getenv("ENVIRONMENT", "").lower() != "test":
		if _cached_settings is not None:
			return _cached_settings

	if dotenv_path is not None:
		load_dotenv(dotenv_path)
	else:
		default_env = Path(".env")
		if default_env.exists():
			load_dotenv(default_env)

	try:
		settings = AppSettings()
	except (ValidationError, ValueError) as e:
		raise ConfigurationError(f"Invalid configuration: {e}") from e

	if settings.environment.lower() != "test":
		_cached_settings = settings
	return settings


def get_settings() -> AppSettings:
	return load_settings()
