from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from reelscribe.core.config import AppSettings, ConfigurationError, get_settings
from reelscribe.core.logging import get_logger
from reelscribe.services.fetchers import SubprocessDownloader
from reelscribe.services.normalize import AudioTranscoder
from reelscribe.services.pipeline import TranscriptionPipeline
from reelscribe.services.transcribe import TranscriptionClient


logger = get_logger(__name__)


@dataclass
class AppContext:
    settings: AppSettings
    temp_dir: Path
    downloader: SubprocessDownloader
    transcoder: AudioTranscoder
    client: TranscriptionClient

    def new_pipeline(self) -> TranscriptionPipeline:
        return TranscriptionPipeline(self.downloader, self.transcoder, self.client, self.temp_dir)


def build_context(settings: Optional[AppSettings] = None) -> AppContext:
    """Validate startup requirements and wire the pipeline collaborators.

    Raises ConfigurationError when the Gemini API key is absent.
    """
    settings = settings or get_settings()
    if not settings.gemini_api_key.strip():
        raise ConfigurationError("GEMINI_API_KEY is not defined in the environment or .env file.")

    temp_dir = Path(settings.temp_dir).resolve()
    temp_dir.mkdir(parents=True, exist_ok=True)
    logger.info("temp directory ready", extra={"component": "startup", "job_id": "startup", "path": str(temp_dir)})

    return AppContext(
        settings=settings,
        temp_dir=temp_dir,
        downloader=SubprocessDownloader(settings.yt_dlp_binary, timeout_seconds=settings.download_timeout_seconds),
        transcoder=AudioTranscoder(settings.ffmpeg_binary, timeout_seconds=settings.transcode_timeout_seconds),
        client=TranscriptionClient(
            settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout_seconds=settings.inference_timeout_seconds,
        ),
    )
