from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path

import ffmpeg  # type: ignore

from reelscribe.core.logging import bind_logger, get_logger
from reelscribe.services.errors import TranscodeFailed


logger = get_logger(__name__)

SAMPLE_RATE = 16000
CHANNELS = 1


def _describe_ffmpeg_error(stderr_text: str) -> str:
    if "Invalid data found when processing input" in stderr_text:
        return "corrupted_audio_file"
    if "moov atom not found" in stderr_text:
        return "incomplete_audio_file"
    if "No such file or directory" in stderr_text:
        return "input_file_missing"
    if "does not contain any stream" in stderr_text or "Output file #0 does not contain" in stderr_text:
        return "no_audio_stream"
    return "ffmpeg_error"


class AudioTranscoder:
    """Converts any media ffmpeg can read into mono 16 kHz PCM WAV."""

    def __init__(self, ffmpeg_binary: str = "ffmpeg", timeout_seconds: float = 120) -> None:
        self.ffmpeg_binary = ffmpeg_binary
        self.timeout_seconds = timeout_seconds

    def build_command(self, input_path: Path, output_path: Path) -> list:
        return (
            ffmpeg
            .input(str(input_path))
            .output(str(output_path), vn=None, ac=CHANNELS, ar=SAMPLE_RATE, acodec="pcm_s16le", format="wav")
            .global_args("-nostdin", "-loglevel", "error")
            .overwrite_output()
            .compile(cmd=self.ffmpeg_binary)
        )

    async def transcode(self, input_path: Path, output_path: Path, job_id: str = "unknown") -> None:
        cmd = self.build_command(input_path, output_path)
        log = bind_logger(logger, job_id, "normalize")
        log.info("transcoding to WAV", extra={"cmd": cmd})

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            log.error("ffmpeg could not be started", extra={"error": str(e)})
            raise TranscodeFailed(cause=str(e)) from e

        completed = False
        try:
            try:
                _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                log.error("ffmpeg timed out", extra={"timeout_sec": self.timeout_seconds})
                raise TranscodeFailed(cause=f"ffmpeg timed out after {self.timeout_seconds}s")

            stderr_text = stderr.decode("utf-8", "ignore").strip()
            if proc.returncode != 0:
                reason = _describe_ffmpeg_error(stderr_text)
                log.error("ffmpeg transcode failed", extra={"reason": reason, "stderr": stderr_text[-2000:]})
                raise TranscodeFailed(cause=f"{reason}: {stderr_text[-500:]}")

            if not output_path.exists():
                log.error("transcode produced no output")
                raise TranscodeFailed(cause="transcode_output_missing")
            completed = True
        finally:
            # Also reached on cancellation: a live ffmpeg would keep writing after cleanup
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()
            if not completed:
                try:
                    output_path.unlink(missing_ok=True)
                except OSError as e:
                    log.warning("could not remove partial WAV", extra={"path": str(output_path), "error": str(e)})

        log.info("transcode successful", extra={"wav": str(output_path), "wav_size": output_path.stat().st_size})
