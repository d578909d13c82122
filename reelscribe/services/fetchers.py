from __future__ import annotations

import asyncio
import contextlib
import re
from collections import deque
from pathlib import Path
from typing import Optional, Sequence, Tuple

from reelscribe.core.logging import bind_logger, get_logger
from reelscribe.services.errors import DownloadFailed


logger = get_logger(__name__)

AUDIO_FORMAT = "bestaudio"

# yt-dlp prints one "[<extractor or stage>] <text>" line per event when run with --newline
_EVENT_RE = re.compile(r"^\[(\S+)\]\s+(.*)$")
_DESTINATION_MARKER = "Destination: "


def parse_event(line: str) -> Optional[Tuple[str, str]]:
    match = _EVENT_RE.match(line.strip())
    if not match:
        return None
    return match.group(1), match.group(2)


def destination_from_event(event_type: str, data: str) -> Optional[str]:
    """Return the announced file path for a ``[download] Destination: ...`` event."""
    if event_type != "download" or _DESTINATION_MARKER.strip() not in data:
        return None
    _, _, announced = data.partition(_DESTINATION_MARKER)
    announced = announced.strip()
    return announced or None


def _discard(path: Optional[Path], job_id: str) -> None:
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        bind_logger(logger, job_id, "fetch").warning("could not remove partial download", extra={"path": str(path), "error": str(e)})


class SubprocessDownloader:
    """Runs yt-dlp for one URL and reports where it put the audio."""

    def __init__(self, command: Sequence[str], timeout_seconds: float = 180) -> None:
        self.command = list(command)
        self.timeout_seconds = timeout_seconds

    def build_command(self, url: str, destination_dir: Path, job_id: str) -> list:
        template = str(destination_dir / f"{job_id}.%(ext)s")
        return [
            *self.command,
            url,
            "-f", AUDIO_FORMAT,
            "-o", template,
            "--newline",
            "--no-playlist",
            "--no-part",
            "--no-cache-dir",
        ]

    async def download(self, url: str, destination_dir: Path, job_id: str) -> Path:
        destination_dir = Path(destination_dir)
        cmd = self.build_command(url, destination_dir, job_id)
        log = bind_logger(logger, job_id, "fetch")
        log.info("fetching with yt-dlp", extra={"cmd": cmd})

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            log.error("yt-dlp could not be started", extra={"error": str(e)})
            raise DownloadFailed(cause=str(e)) from e

        tail: deque = deque(maxlen=20)
        announced: list = []

        async def consume() -> int:
            assert proc.stdout is not None
            async for raw in proc.stdout:
                line = raw.decode("utf-8", "ignore").rstrip()
                if not line:
                    continue
                tail.append(line)
                event = parse_event(line)
                if event is None:
                    continue
                destination = destination_from_event(*event)
                if destination:
                    # Post-processing can announce a second file; the last one is what stays on disk
                    announced.append(destination)
            return await proc.wait()

        downloaded: Optional[Path] = None
        try:
            try:
                returncode = await asyncio.wait_for(consume(), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                log.error("yt-dlp timed out", extra={"timeout_sec": self.timeout_seconds})
                raise DownloadFailed(cause=f"yt-dlp timed out after {self.timeout_seconds}s")
            except (ValueError, asyncio.LimitOverrunError) as e:
                # StreamReader refuses lines over its buffer limit
                log.error("yt-dlp output could not be read", extra={"error": str(e)})
                raise DownloadFailed(cause=f"unreadable yt-dlp output: {e}") from e

            output = "\n".join(tail)
            if returncode != 0:
                log.warning("yt-dlp failed", extra={"code": returncode, "out": output})
                raise DownloadFailed(cause=f"yt-dlp exited with {returncode}: {output}")

            if not announced:
                log.warning("yt-dlp announced no destination", extra={"out": output})
                raise DownloadFailed(cause="no destination announced")

            candidate = Path(announced[-1])
            if not candidate.exists():
                log.warning("downloaded file not found", extra={"path": str(candidate)})
                raise DownloadFailed(cause=f"announced file missing: {candidate}")
            downloaded = candidate
        finally:
            # Also reached on cancellation: the child must not outlive the job's cleanup
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()
            leftovers = {Path(p) for p in announced} | set(destination_dir.glob(f"{job_id}.*"))
            for path in leftovers - {downloaded}:
                _discard(path, job_id)

        log.info("download complete", extra={"path": str(downloaded), "size": downloaded.stat().st_size})
        return downloaded
