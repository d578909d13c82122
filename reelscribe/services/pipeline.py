from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from reelscribe.core.logging import bind_logger, get_logger
from reelscribe.services.errors import PipelineError
from reelscribe.services.fetchers import SubprocessDownloader
from reelscribe.services.normalize import AudioTranscoder
from reelscribe.services.transcribe import TranscriptionClient
from reelscribe.types import TranscriptionResult


logger = get_logger(__name__)


def new_job_id() -> str:
    return uuid.uuid4().hex


@dataclass
class PipelineJob:
    job_id: str
    temp_dir: Path
    raw_media_path: Optional[Path] = None

    @property
    def normalized_audio_path(self) -> Path:
        return self.temp_dir / f"{self.job_id}.wav"

    def cleanup(self) -> None:
        """Remove both scratch files. Never raises."""
        log = bind_logger(logger, self.job_id, "pipeline")
        for path in (self.raw_media_path, self.normalized_audio_path):
            if path is None:
                continue
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                log.warning("temporary file cleanup failed", extra={"path": str(path), "error": str(e)})
        log.info("temporary files cleaned up")


class TranscriptionPipeline:
    """Download, transcode and transcribe one URL.

    Stages run strictly in order and the first failure ends the run. Whatever
    happens, the job's temporary files are removed before ``run`` returns.
    """

    def __init__(
        self,
        downloader: SubprocessDownloader,
        transcoder: AudioTranscoder,
        client: TranscriptionClient,
        temp_dir: Path,
    ) -> None:
        self.downloader = downloader
        self.transcoder = transcoder
        self.client = client
        self.temp_dir = Path(temp_dir)

    async def run(self, url: str, job_id: Optional[str] = None) -> TranscriptionResult:
        job = PipelineJob(job_id=job_id or new_job_id(), temp_dir=self.temp_dir)
        started = time.monotonic()
        log = bind_logger(logger, job.job_id, "pipeline")

        try:
            log.info(f"[1/3] Downloading audio from: {url}")
            job.raw_media_path = await self.downloader.download(url, self.temp_dir, job.job_id)
            log.info(f"[1/3] Download complete. File saved to: {job.raw_media_path}")

            log.info("[2/3] Converting to WAV format...")
            await self.transcoder.transcode(job.raw_media_path, job.normalized_audio_path, job_id=job.job_id)
            log.info("[2/3] Conversion successful.")

            log.info(f"[3/3] Starting transcription and translation for: {job.normalized_audio_path}")
            result = await self.client.transcribe(job.normalized_audio_path, job_id=job.job_id)
            log.info("[3/3] Process complete.", extra={"elapsed_ms": int((time.monotonic() - started) * 1000)})
            return result
        except PipelineError as e:
            log.error("pipeline failed", extra=e.log_fields())
            raise
        finally:
            job.cleanup()
