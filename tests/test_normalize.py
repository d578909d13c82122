import asyncio
import os
import stat
import sys

import pytest

from reelscribe.services.errors import TranscodeFailed
from reelscribe.services.normalize import AudioTranscoder


def _fake_ffmpeg(tmp_path, body: str) -> str:
    script = tmp_path / "fake-ffmpeg"
    script.write_text("#!/bin/sh\n" + body)
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return str(script)


def test_command_requests_mono_16k_wav(tmp_path):
    cmd = AudioTranscoder().build_command(tmp_path / "in.webm", tmp_path / "out.wav")
    assert cmd[0] == "ffmpeg"
    assert cmd[cmd.index("-i") + 1] == str(tmp_path / "in.webm")
    assert cmd[cmd.index("-ac") + 1] == "1"
    assert cmd[cmd.index("-ar") + 1] == "16000"
    assert cmd[cmd.index("-f") + 1] == "wav"
    assert "-vn" in cmd
    assert "-y" in cmd
    assert str(tmp_path / "out.wav") in cmd


@pytest.mark.asyncio
async def test_successful_conversion_writes_output(tmp_path):
    # Write to whichever argument names the .wav output
    binary = _fake_ffmpeg(tmp_path, 'for a; do case "$a" in *.wav) out="$a";; esac; done\nprintf RIFF > "$out"\n')
    source = tmp_path / "in.webm"
    source.write_bytes(b"media")

    await AudioTranscoder(binary).transcode(source, tmp_path / "out.wav")

    assert (tmp_path / "out.wav").read_bytes() == b"RIFF"
    assert source.exists()


@pytest.mark.asyncio
async def test_ffmpeg_error_is_transcode_failed(tmp_path):
    binary = _fake_ffmpeg(tmp_path, 'echo "in.webm: Invalid data found when processing input" >&2\nexit 1\n')

    with pytest.raises(TranscodeFailed) as excinfo:
        await AudioTranscoder(binary).transcode(tmp_path / "in.webm", tmp_path / "out.wav")

    assert excinfo.value.cause.startswith("corrupted_audio_file")


@pytest.mark.asyncio
async def test_missing_output_is_transcode_failed(tmp_path):
    binary = _fake_ffmpeg(tmp_path, "exit 0\n")
    with pytest.raises(TranscodeFailed):
        await AudioTranscoder(binary).transcode(tmp_path / "in.webm", tmp_path / "out.wav")


@pytest.mark.asyncio
async def test_missing_binary_is_transcode_failed(tmp_path):
    transcoder = AudioTranscoder(os.fspath(tmp_path / "no-such-ffmpeg"))
    with pytest.raises(TranscodeFailed):
        await transcoder.transcode(tmp_path / "in.webm", tmp_path / "out.wav")


@pytest.mark.asyncio
async def test_hung_ffmpeg_times_out(tmp_path):
    binary = _fake_ffmpeg(tmp_path, "exec sleep 30\n")
    with pytest.raises(TranscodeFailed) as excinfo:
        await AudioTranscoder(binary, timeout_seconds=0.5).transcode(tmp_path / "in.webm", tmp_path / "out.wav")
    assert "timed out" in excinfo.value.cause


@pytest.mark.asyncio
async def test_cancelled_transcode_kills_ffmpeg_before_it_writes(tmp_path):
    script = tmp_path / "slow-ffmpeg"
    script.write_text(
        f"#!{sys.executable}\n"
        "import sys, time\n"
        "time.sleep(1.5)\n"
        "out = [a for a in sys.argv if a.endswith('.wav')][0]\n"
        "open(out, 'wb').write(b'RIFF')\n"
    )
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    output = tmp_path / "out.wav"

    task = asyncio.create_task(AudioTranscoder(str(script)).transcode(tmp_path / "in.webm", output))
    await asyncio.sleep(0.5)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    await asyncio.sleep(2)
    assert not output.exists()


@pytest.mark.asyncio
async def test_failed_transcode_removes_partial_output(tmp_path):
    binary = _fake_ffmpeg(tmp_path, 'for a; do case "$a" in *.wav) out="$a";; esac; done\nprintf RI > "$out"\nexit 1\n')
    with pytest.raises(TranscodeFailed):
        await AudioTranscoder(binary).transcode(tmp_path / "in.webm", tmp_path / "out.wav")
    assert not (tmp_path / "out.wav").exists()
