import os
import subprocess

import pytest

import video_processing
from errors import ConfigError
from video_processing import VideoEncoder, parse_resolution_labels, RESOLUTIONS


def test_resolution_table():
    assert RESOLUTIONS["144p"] == "256:144"
    assert RESOLUTIONS["1080p"] == "1920:1080"
    assert RESOLUTIONS["4k"] == "3840:2160"
    assert len(RESOLUTIONS) == 8


@pytest.mark.parametrize("value", [None, "", " , "])
def test_parse_resolution_labels_defaults_to_144p(value):
    assert parse_resolution_labels(value) == [("144p", "256:144")]


def test_parse_resolution_labels_keeps_order_and_drops_duplicates():
    assert parse_resolution_labels("720p, 144p,720p") == [("720p", "1280:720"), ("144p", "256:144")]


def test_parse_resolution_labels_rejects_unknown():
    with pytest.raises(ConfigError, match="8k"):
        parse_resolution_labels("144p,8k")


def test_output_path_is_prefixed_with_label(tmp_path):
    encoder = VideoEncoder(str(tmp_path / "videostore"))
    assert encoder.output_path_for("./upload/abc_clip.mp4", "144p") == str(
        tmp_path / "videostore" / "144p_abc_clip.mp4"
    )
    assert os.path.isdir(tmp_path / "videostore")


def test_build_command_passes_path_as_single_argument(tmp_path):
    encoder = VideoEncoder(str(tmp_path), ffmpeg_binary="/opt/ffmpeg")
    tricky = "./upload/id_it's a $(clip); rm -rf.mp4"
    cmd = encoder.build_command(tricky, "256:144", "/out/144p_x.mp4")
    assert cmd == [
        "/opt/ffmpeg", "-y", "-i", tricky, "-vf", "scale=256:144", "-c:a", "copy", "/out/144p_x.mp4"
    ]


def test_transcode_success(tmp_path, monkeypatch):
    calls = []

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    monkeypatch.setattr(video_processing.subprocess, "run", fake_run)
    encoder = VideoEncoder(str(tmp_path), timeout=12)

    result = encoder.transcode("upload/abc_clip.mp4", "144p", "256:144")

    assert result.success is True
    assert result.returncode == 0
    assert result.output_path == str(tmp_path / "144p_abc_clip.mp4")
    assert len(calls) == 1
    cmd, kwargs = calls[0]
    assert cmd[0] == "ffmpeg"
    assert "shell" not in kwargs
    assert kwargs["timeout"] == 12
    assert kwargs["stdin"] is subprocess.DEVNULL


def test_transcode_nonzero_exit_is_reported(tmp_path, monkeypatch):
    monkeypatch.setattr(
        video_processing.subprocess, "run",
        lambda cmd, **kw: subprocess.CompletedProcess(cmd, 1, stdout="", stderr="boom\nInvalid data")
    )
    result = VideoEncoder(str(tmp_path)).transcode("in.mp4", "144p", "256:144")
    assert result.success is False
    assert result.returncode == 1
    assert "status 1" in result.error


def test_transcode_missing_binary_is_reported(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(video_processing.subprocess, "run", fake_run)
    result = VideoEncoder(str(tmp_path), ffmpeg_binary="nope").transcode("in.mp4", "144p", "256:144")
    assert result.success is False
    assert "not found" in result.error


def test_transcode_timeout_is_reported(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

    monkeypatch.setattr(video_processing.subprocess, "run", fake_run)
    result = VideoEncoder(str(tmp_path), timeout=1).transcode("in.mp4", "144p", "256:144")
    assert result.success is False
    assert "timed out" in result.error


def write_fake_ffmpeg(tmp_path, exit_code):
    script = tmp_path / "ffmpeg"
    script.write_text(
        "#!/bin/sh\n"
        "printf 'title: \\377\\376 caf\\351\\n' >&2\n"
        f"exit {exit_code}\n"
    )
    script.chmod(0o755)
    return str(script)


@pytest.mark.skipif(os.name != "posix", reason="shell script stands in for ffmpeg")
def test_transcode_tolerates_undecodable_stderr(tmp_path):
    binary = write_fake_ffmpeg(tmp_path, 0)
    result = VideoEncoder(str(tmp_path / "out"), ffmpeg_binary=binary).transcode("in.mp4", "144p", "256:144")
    assert result.success is True
    assert result.returncode == 0


@pytest.mark.skipif(os.name != "posix", reason="shell script stands in for ffmpeg")
def test_transcode_failure_with_undecodable_stderr_is_reported(tmp_path):
    binary = write_fake_ffmpeg(tmp_path, 1)
    result = VideoEncoder(str(tmp_path / "out"), ffmpeg_binary=binary).transcode("in.mp4", "144p", "256:144")
    assert result.success is False
    assert result.returncode == 1
