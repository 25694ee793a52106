from __future__ import annotations

import subprocess

from seq2gif.config import IntermediateFormat
from seq2gif.tools import check


def test_missing_binary(monkeypatch):
    monkeypatch.setattr(check, "which", lambda name: None)

    ok, problems = check.check_tools("ffmpeg-nope")

    assert not ok
    assert problems == ["ffmpeg-nope not found in PATH"]


def test_missing_filter_and_encoder(monkeypatch):
    listings = {
        "-filters": " T.. paletteuse        VV->V      Use a palette to downsample an input video stream.\n",
        "-encoders": " V....D ffv1                 FFmpeg video codec #1\n V....D gif  GIF (Graphics Interchange Format)\n",
    }

    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 0, stdout=listings[cmd[-1]], stderr="")

    monkeypatch.setattr(check, "which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(check.subprocess, "run", fake_run)

    ok, problems = check.check_tools()

    assert not ok
    assert problems == ["ffmpeg lacks the 'palettegen' filter"]


def test_required_encoders_follow_intermediate_format():
    assert check.required_encoders(IntermediateFormat.MKV) == ("ffv1", "gif")
    assert check.required_encoders(IntermediateFormat.MP4) == ("libx264", "gif")


def test_mp4_intermediate_needs_libx264(monkeypatch):
    listings = {
        "-filters": " ... palettegen V->V Find the optimal palette\n ... paletteuse VV->V Use a palette\n",
        "-encoders": " V....D ffv1 FFmpeg video codec #1\n V....D gif GIF\n",
    }
    monkeypatch.setattr(check, "which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(
        check.subprocess, "run", lambda cmd, **kw: subprocess.CompletedProcess(cmd, 0, stdout=listings[cmd[-1]])
    )

    assert check.check_tools("ffmpeg", IntermediateFormat.MKV) == (True, [])
    assert check.check_tools("ffmpeg", IntermediateFormat.MP4) == (False, ["ffmpeg lacks the 'libx264' encoder"])
