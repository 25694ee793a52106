"""
FFmpeg command building module for seq2gif.

This module consolidates all FFmpeg command construction for the three
pipeline stages, separating it from stage orchestration so the commands can
be inspected and tested without running ffmpeg.
"""

from __future__ import annotations

from fractions import Fraction
from pathlib import Path

from ..config import DiffMode, DitherMode, IntermediateFormat, StatsMode, format_frame_rate

BITEXACT_ARGS = ["-map_metadata", "-1", "-fflags", "+bitexact", "-flags:v", "+bitexact"]


class FFmpegCommandBuilder:
    """Builder class for constructing FFmpeg commands."""

    @staticmethod
    def base_args(ffmpeg_bin: str = "ffmpeg") -> list[str]:
        """Quiet, non-interactive, overwrite-on-output prefix shared by every stage."""
        return [
            ffmpeg_bin,
            "-hide_banner",
            "-loglevel", "error",
            "-nostdin",
            "-y",
        ]

    @staticmethod
    def build_sequence_cmd(
        input_pattern: str,
        start_number: int,
        frame_count: int,
        frame_rate: Fraction,
        out_path: Path,
        fmt: IntermediateFormat,
        ffmpeg_bin: str = "ffmpeg",
    ) -> list[str]:
        """Create ffmpeg command concatenating numbered frames into the intermediate video.

        The image2 demuxer stamps frame k with pts k/frame_rate, so every input
        frame maps to exactly one output frame.
        """
        return (
            FFmpegCommandBuilder.base_args(ffmpeg_bin)
            + [
                "-f", "image2",
                "-pattern_type", "sequence",
                "-framerate", format_frame_rate(frame_rate),
                "-start_number", str(start_number),
                "-i", input_pattern,
                "-frames:v", str(frame_count),
                "-an",
            ]
            + fmt.codec_args()
            + BITEXACT_ARGS
            + [str(out_path)]
        )

    @staticmethod
    def build_palettegen_cmd(
        video_path: Path,
        palette_path: Path,
        max_colors: int,
        stats_mode: StatsMode = StatsMode.FULL,
        ffmpeg_bin: str = "ffmpeg",
    ) -> list[str]:
        """Create ffmpeg command deriving a palette image from the whole video."""
        return FFmpegCommandBuilder.base_args(ffmpeg_bin) + [
            "-i", str(video_path),
            "-vf", FFmpegCommandBuilder.palettegen_filter(max_colors, stats_mode),
            "-frames:v", "1",
            "-update", "1",
            str(palette_path),
        ]

    @staticmethod
    def palettegen_filter(max_colors: int, stats_mode: StatsMode) -> str:
        # reserve_transparent=0: frames are opaque, so every slot holds a real colour
        return f"palettegen=max_colors={max_colors}:reserve_transparent=0:stats_mode={stats_mode.value}"

    @staticmethod
    def build_paletteuse_cmd(
        video_path: Path,
        palette_path: Path,
        out_path: Path,
        dither: DitherMode = DitherMode.SIERRA2_4A,
        bayer_scale: int = 2,
        diff_mode: DiffMode = DiffMode.NONE,
        loop: int = 0,
        ffmpeg_bin: str = "ffmpeg",
    ) -> list[str]:
        """Create ffmpeg command re-rendering the video through the palette into a GIF."""
        filter_chain = "[0:v][1:v]" + FFmpegCommandBuilder.paletteuse_filter(dither, bayer_scale, diff_mode)
        return FFmpegCommandBuilder.base_args(ffmpeg_bin) + [
            "-i", str(video_path),
            "-f", "image2",
            "-pattern_type", "none",
            "-i", str(palette_path),
            "-filter_complex", filter_chain,
            "-an",
            "-loop", str(loop),
            "-map_metadata", "-1",
            "-f", "gif",
            str(out_path),
        ]

    @staticmethod
    def paletteuse_filter(dither: DitherMode, bayer_scale: int, diff_mode: DiffMode) -> str:
        parts = [f"paletteuse=dither={dither.value}"]
        if dither is DitherMode.BAYER:
            parts.append(f"bayer_scale={bayer_scale}")
        parts.append(f"diff_mode={diff_mode.value}")
        return ":".join(parts)
