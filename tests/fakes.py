from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from reelscribe.core.config import AppSettings
from reelscribe.core.context import AppContext
from reelscribe.services.errors import DownloadFailed, TranscodeFailed
from reelscribe.services.transcribe import parse_transcription_reply
from reelscribe.types import TranscriptionResult


VALID_REPLY = '{"language_detected":"es","original_transcript":"hola","english_translation":"hello"}'


class FakeDownloader:
    def __init__(self, fail: bool = False, ext: str = "mp4") -> None:
        self.fail = fail
        self.ext = ext
        self.calls: List[str] = []
        self.paths: List[Path] = []

    async def download(self, url: str, destination_dir: Path, job_id: str) -> Path:
        self.calls.append(url)
        if self.fail:
            raise DownloadFailed(cause="no destination announced")
        path = Path(destination_dir) / f"{job_id}.{self.ext}"
        path.write_bytes(b"media")
        self.paths.append(path)
        return path


class FakeTranscoder:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[tuple] = []

    async def transcode(self, input_path: Path, output_path: Path, job_id: str = "unknown") -> None:
        self.calls.append((input_path, output_path))
        if self.fail:
            raise TranscodeFailed(cause="corrupted_audio_file")
        output_path.write_bytes(b"RIFF....WAVE")


class FakeClient:
    def __init__(self, reply: Optional[str] = VALID_REPLY, error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: List[Path] = []

    async def transcribe(self, waveform_path: Path, job_id: str = "unknown") -> TranscriptionResult:
        self.calls.append(waveform_path)
        assert waveform_path.exists()
        if self.error is not None:
            raise self.error
        return parse_transcription_reply(self.reply)


def make_settings(tmp_path: Path, **overrides) -> AppSettings:
    values = {"gemini_api_key": "test-key", "temp_dir": str(tmp_path), "environment": "test"}
    values.update(overrides)
    return AppSettings(**values)


def make_context(tmp_path: Path, downloader=None, transcoder=None, client=None) -> AppContext:
    return AppContext(
        settings=make_settings(tmp_path),
        temp_dir=tmp_path,
        downloader=downloader or FakeDownloader(),
        transcoder=transcoder or FakeTranscoder(),
        client=client or FakeClient(),
    )


def leftover_files(directory: Path) -> List[Path]:
    return sorted(p for p in directory.iterdir() if p.is_file())


