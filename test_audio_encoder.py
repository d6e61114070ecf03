"""Tests for the ffmpeg encoder wrapper."""

import json
import subprocess
from pathlib import Path

import pytest

from clipsync.services import audio_encoder
from clipsync.services.audio_encoder import (
    AudioEncoder,
    EncodeRequest,
    EncoderUnavailable,
    format_seconds,
)


def completed(cmd, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)


def test_command_with_trim_window(tmp_path):
    encoder = AudioEncoder()
    request = EncodeRequest(
        source_url="https://stream/abc.audio",
        output_path=tmp_path / "r1-Test_Clip.mp3",
        start_time=10.0,
        duration=5.0,
    )

    assert encoder.build_command(request) == [
        "ffmpeg", "-hide_banner", "-nostdin",
        "-i", "https://stream/abc.audio",
        "-ss", "10",
        "-t", "5",
        "-vn",
        "-c:a", "libmp3lame",
        str(tmp_path / "r1-Test_Clip.mp3"),
    ]


def test_command_without_trim_window(tmp_path):
    encoder = AudioEncoder(ffmpeg_path="/opt/ffmpeg/bin/ffmpeg", audio_codec="aac")
    request = EncodeRequest(source_url="https://stream/x", output_path=tmp_path / "x.m4a")

    cmd = encoder.build_command(request)

    assert cmd[0] == "/opt/ffmpeg/bin/ffmpeg"
    assert "-ss" not in cmd
    assert "-t" not in cmd
    assert cmd[-3:] == ["-c:a", "aac", str(tmp_path / "x.m4a")]


def test_zero_start_is_still_passed(tmp_path):
    request = EncodeRequest(source_url="u", output_path=tmp_path / "o.mp3", start_time=0.0)

    cmd = AudioEncoder().build_command(request)

    assert cmd[cmd.index("-ss") + 1] == "0"


def test_format_seconds():
    assert format_seconds(10.0) == "10"
    assert format_seconds(2.5) == "2.5"
    assert format_seconds(90.25) == "90.25"


def test_successful_encode(tmp_path, monkeypatch):
    output = tmp_path / "clip.mp3"

    def fake_run(cmd, **kwargs):
        Path(cmd[-1]).write_bytes(b"mp3")
        return completed(cmd)

    monkeypatch.setattr(audio_encoder.subprocess, "run", fake_run)

    result = AudioEncoder().encode(EncodeRequest(source_url="u", output_path=output))

    assert result.success is True
    assert result.returncode == 0
    assert output.read_bytes() == b"mp3"


def test_failed_encode_removes_partial_output(tmp_path, monkeypatch):
    output = tmp_path / "clip.mp3"

    def fake_run(cmd, **kwargs):
        Path(cmd[-1]).write_bytes(b"partial")
        return completed(cmd, returncode=1, stderr="line\nServer returned 403 Forbidden")

    monkeypatch.setattr(audio_encoder.subprocess, "run", fake_run)

    result = AudioEncoder().encode(EncodeRequest(source_url="u", output_path=output))

    assert result.success is False
    assert result.returncode == 1
    assert "403 Forbidden" in result.error
    assert not output.exists()


def test_undecodable_ffmpeg_output_is_replaced(tmp_path, monkeypatch):
    seen = {}

    def fake_run(cmd, **kwargs):
        seen.update(kwargs)
        stderr = b"Input #0\n\xff\xfe broken title".decode("utf-8", errors=kwargs.get("errors", "strict"))
        return completed(cmd, returncode=1, stderr=stderr)

    monkeypatch.setattr(audio_encoder.subprocess, "run", fake_run)

    result = AudioEncoder().encode(EncodeRequest(source_url="u", output_path=tmp_path / "clip.mp3"))

    assert seen["text"] is True
    assert seen["errors"] == "replace"
    assert result.success is False
    assert "\ufffd" in result.error


def test_zero_exit_without_output_counts_as_failure(tmp_path, monkeypatch):
    monkeypatch.setattr(audio_encoder.subprocess, "run", lambda cmd, **kwargs: completed(cmd))

    result = AudioEncoder().encode(EncodeRequest(source_url="u", output_path=tmp_path / "none.mp3"))

    assert result.success is False


def test_check_available_reports_version(monkeypatch):
    monkeypatch.setattr(
        audio_encoder.subprocess,
        "run",
        lambda cmd, **kwargs: completed(cmd, stdout="ffmpeg version 6.1 Copyright\nbuilt with gcc\n"),
    )

    assert AudioEncoder().check_available() == "ffmpeg version 6.1 Copyright"


def test_check_available_without_ffmpeg(monkeypatch):
    def missing(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(audio_encoder.subprocess, "run", missing)

    with pytest.raises(EncoderUnavailable):
        AudioEncoder(ffmpeg_path="no-such-ffmpeg").check_available()


def test_check_available_with_broken_ffmpeg(monkeypatch):
    def broken(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd)

    monkeypatch.setattr(audio_encoder.subprocess, "run", broken)

    with pytest.raises(EncoderUnavailable):
        AudioEncoder().check_available()


def test_probe_duration(tmp_path, monkeypatch):
    payload = json.dumps({"format": {"duration": "5.015510"}})
    monkeypatch.setattr(
        audio_encoder.subprocess, "run", lambda cmd, **kwargs: completed(cmd, stdout=payload)
    )

    assert AudioEncoder().probe_duration(tmp_path / "clip.mp3") == 5.016


def test_probe_duration_without_ffprobe(tmp_path, monkeypatch):
    def missing(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(audio_encoder.subprocess, "run", missing)

    assert AudioEncoder().probe_duration(tmp_path / "clip.mp3") is None
