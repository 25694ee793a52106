"""
Sequencing stage: ordered frames -> intermediate video.

The frames are validated first (contiguity, decodability, uniform size),
then handed to ffmpeg's image2 demuxer at the requested frame rate. When the
file names cannot be described by one printf pattern, the frames are staged
into a temporary directory under canonical names.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from fractions import Fraction
from pathlib import Path
from typing import Any

from ..config import IntermediateFormat, format_frame_rate, parse_frame_rate
from ..core.errors import CodecError, InputError, PipelineError, StorageError
from ..core.types import FrameSequence, IntermediateVideo, Stage
from ..output.logger import SimpleLogger
from ..utils.subprocess import pretty_command, run_subprocess, stderr_tail
from .ffmpeg import FFmpegCommandBuilder
from .frames import validate_frames
from .image import ProbeError, probe_video

STAGED_PAD_WIDTH = 6


def stage_frames(seq: FrameSequence, target_dir: Path) -> str:
    """Link (or copy) frames to ``frame_000000<ext>`` names; return the image2 pattern."""
    target_dir.mkdir(parents=True, exist_ok=True)
    ext = seq.ext.lower()
    for pos, frame in enumerate(seq.frames):
        dst = target_dir / f"frame_{pos:0{STAGED_PAD_WIDTH}d}{ext}"
        src = frame.path.resolve()
        try:
            os.symlink(src, dst)
        except OSError:
            shutil.copy2(src, dst)
    return str(target_dir / f"frame_%0{STAGED_PAD_WIDTH}d{ext}")


class Sequencer:
    """Concatenate a validated frame sequence into one intermediate video."""

    stage = Stage.SEQUENCING

    def __init__(
        self,
        fmt: IntermediateFormat = IntermediateFormat.MKV,
        *,
        ffmpeg_bin: str = "ffmpeg",
        timeout_sec: int | None = None,
        logger: SimpleLogger | None = None,
    ) -> None:
        self.fmt = fmt
        self.ffmpeg_bin = ffmpeg_bin
        self.timeout_sec = timeout_sec
        self.logger = logger

    def run(self, seq: FrameSequence, frame_rate: Any, dest: Path) -> IntermediateVideo:
        """Write `seq` to `dest` at `frame_rate`, overwriting any previous artifact.

        Raises:
            InputError: bad frame rate, gap, missing/corrupt frame, size mismatch.
            CodecError: ffmpeg failed or wrote a video with the wrong frame count.
            StorageError: the destination could not be prepared.
        """
        try:
            return self._run(seq, frame_rate, dest)
        except PipelineError as ex:
            raise ex.with_stage(self.stage)

    def _run(self, seq: FrameSequence, frame_rate: Any, dest: Path) -> IntermediateVideo:
        try:
            rate = parse_frame_rate(frame_rate)
        except ValueError as ex:
            raise InputError(str(ex)) from ex

        seq = validate_frames(seq)
        width, height = seq.frames[0].size
        if self.logger:
            self.logger.info(
                f"Sequencing {len(seq)} frames ({seq.display_name}, {width}x{height}) "
                f"at {format_frame_rate(rate)} fps -> {dest.name}"
            )

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as ex:
            raise StorageError(f"Cannot create {dest.parent}: {ex}") from ex

        pattern = seq.ffmpeg_pattern
        if pattern is not None:
            self._encode(pattern, seq.start_index, len(seq), rate, dest)
        else:
            with tempfile.TemporaryDirectory(prefix="seq2gif_") as td:
                try:
                    staged = stage_frames(seq, Path(td))
                except OSError as ex:
                    raise StorageError(f"Cannot stage frames in {td}: {ex}") from ex
                self._encode(staged, 0, len(seq), rate, dest)

        video = self._verify(dest, len(seq), width, height)
        return IntermediateVideo(
            path=dest,
            frame_rate=rate,
            frame_count=video.frame_count,
            width=width,
            height=height,
            codec=self.fmt.codec,
        )

    def _encode(self, pattern: str, start: int, count: int, rate: Fraction, dest: Path) -> None:
        cmd = FFmpegCommandBuilder.build_sequence_cmd(
            pattern, start, count, rate, dest, self.fmt, ffmpeg_bin=self.ffmpeg_bin
        )
        code, stderr = run_subprocess(cmd, logger=self.logger, timeout=self.timeout_sec)
        if code != 0:
            raise CodecError(
                f"ffmpeg failed to sequence frames ({code}): {stderr_tail(stderr) or pretty_command(cmd)}",
                returncode=code,
                stderr=stderr,
            )

    def _verify(self, dest: Path, count: int, width: int, height: int):
        try:
            info = probe_video(dest)
        except ProbeError as ex:
            raise CodecError(f"Intermediate video is not decodable: {ex}") from ex
        if info.frame_count != count:
            raise CodecError(f"Intermediate video has {info.frame_count} frames, expected {count}")
        if (info.width, info.height) != (width, height):
            raise CodecError(
                f"Intermediate video is {info.width}x{info.height}, frames are {width}x{height}"
            )
        return info
