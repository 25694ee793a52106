"""
Palette stages: derive a bounded palette from the intermediate video, then
re-render the video through it into a looping GIF.

Both stages run ffmpeg (palettegen / paletteuse) and then read back what was
written, so a stage either returns a verified artifact or raises.
"""

from __future__ import annotations

import json
from pathlib import Path

from ..config import MAX_PALETTE_COLORS, MIN_PALETTE_COLORS, DiffMode, DitherMode, StatsMode
from ..core.errors import CodecError, InputError, PipelineError, StorageError, ValidationError
from ..core.types import AnimatedImage, IntermediateVideo, Palette, Stage
from ..output.logger import SimpleLogger
from ..utils.json import load_json, write_json
from ..utils.subprocess import pretty_command, run_subprocess, stderr_tail
from .ffmpeg import FFmpegCommandBuilder
from .image import ProbeError, probe_gif, probe_video, read_palette_image


def validate_max_colors(max_colors: object) -> int:
    """Return `max_colors` if it is an int in [2, 256]; never clamps.

    Raises:
        ValidationError: for anything else.
    """
    if isinstance(max_colors, bool) or not isinstance(max_colors, int):
        raise ValidationError(f"Palette size must be an integer, got {max_colors!r}")
    if not MIN_PALETTE_COLORS <= max_colors <= MAX_PALETTE_COLORS:
        raise ValidationError(
            f"Palette size must be between {MIN_PALETTE_COLORS} and {MAX_PALETTE_COLORS}, got {max_colors}"
        )
    return max_colors


def save_palette(palette: Palette) -> Path:
    """Write the palette's JSON sidecar next to its image."""
    try:
        write_json(palette.sidecar_path, palette.to_dict())
    except OSError as ex:
        raise StorageError(f"Cannot write {palette.sidecar_path}: {ex}") from ex
    return palette.sidecar_path


def load_palette(path: Path) -> Palette:
    """Restore a palette from its image and JSON sidecar.

    Without a sidecar the entries are read from the image and the source
    dimensions are unknown (0x0), which disables the dimension check.

    Raises:
        InputError: the palette image is missing.
        CodecError: the image or sidecar cannot be decoded.
    """
    if not path.exists():
        raise InputError(f"Palette not found: {path}")
    sidecar = path.with_suffix(path.suffix + ".json")
    if sidecar.exists():
        try:
            return Palette.from_dict(path, load_json(sidecar))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as ex:
            raise CodecError(f"Palette sidecar {sidecar.name} is invalid: {ex}") from ex
    try:
        entries = read_palette_image(path)
    except ProbeError as ex:
        raise CodecError(f"Palette image {path.name} is not decodable: {ex}") from ex
    return Palette(
        path=path,
        entries=entries,
        capacity=min(max(len(entries), MIN_PALETTE_COLORS), MAX_PALETTE_COLORS),
        source_width=0,
        source_height=0,
    )


class PaletteExtractor:
    """Compute a palette of at most K colours sampled across every frame.

    palettegen is a median-cut quantizer over a colour histogram; it has no
    random component, so a fixed video and K always give the same palette.
    """

    stage = Stage.PALETTE_EXTRACTING

    def __init__(
        self,
        stats_mode: StatsMode = StatsMode.FULL,
        *,
        ffmpeg_bin: str = "ffmpeg",
        timeout_sec: int | None = None,
        logger: SimpleLogger | None = None,
    ) -> None:
        self.stats_mode = stats_mode
        self.ffmpeg_bin = ffmpeg_bin
        self.timeout_sec = timeout_sec
        self.logger = logger

    def run(self, video: IntermediateVideo, dest: Path, max_colors: int = MAX_PALETTE_COLORS) -> Palette:
        """Write the palette image (and sidecar) for `video` to `dest`.

        Raises:
            ValidationError: `max_colors` out of range, or no colours extracted.
            CodecError: the video cannot be decoded or ffmpeg failed.
        """
        try:
            return self._run(video, dest, max_colors)
        except PipelineError as ex:
            raise ex.with_stage(self.stage)

    def _run(self, video: IntermediateVideo, dest: Path, max_colors: int) -> Palette:
        max_colors = validate_max_colors(max_colors)

        try:
            info = probe_video(video.path)
        except ProbeError as ex:
            raise CodecError(f"Intermediate video is not decodable: {ex}") from ex

        if self.logger:
            self.logger.info(
                f"Extracting palette (max {max_colors} colours, stats {self.stats_mode.value}) "
                f"from {info.frame_count} frames -> {dest.name}"
            )
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as ex:
            raise StorageError(f"Cannot create {dest.parent}: {ex}") from ex

        cmd = FFmpegCommandBuilder.build_palettegen_cmd(
            video.path, dest, max_colors, self.stats_mode, ffmpeg_bin=self.ffmpeg_bin
        )
        code, stderr = run_subprocess(cmd, logger=self.logger, timeout=self.timeout_sec)
        if code != 0:
            raise CodecError(
                f"ffmpeg palettegen failed ({code}): {stderr_tail(stderr) or pretty_command(cmd)}",
                returncode=code,
                stderr=stderr,
            )

        try:
            entries = read_palette_image(dest, max_colors)
        except ProbeError as ex:
            raise CodecError(f"Palette image is not decodable: {ex}") from ex
        if not entries:
            raise ValidationError("palettegen produced an empty palette")

        palette = Palette(
            path=dest,
            entries=entries,
            capacity=max_colors,
            source_width=info.width,
            source_height=info.height,
            source_video=video.path,
        )
        save_palette(palette)
        return palette


class PaletteApplicator:
    """Map every pixel of every frame to its nearest palette entry and write a GIF."""

    stage = Stage.PALETTE_APPLYING

    def __init__(
        self,
        dither: DitherMode = DitherMode.SIERRA2_4A,
        *,
        bayer_scale: int = 2,
        diff_mode: DiffMode = DiffMode.NONE,
        loop: int = 0,
        ffmpeg_bin: str = "ffmpeg",
        timeout_sec: int | None = None,
        logger: SimpleLogger | None = None,
    ) -> None:
        self.dither = dither
        self.bayer_scale = bayer_scale
        self.diff_mode = diff_mode
        self.loop = loop
        self.ffmpeg_bin = ffmpeg_bin
        self.timeout_sec = timeout_sec
        self.logger = logger

    def run(self, video: IntermediateVideo, palette: Palette, dest: Path) -> AnimatedImage:
        """Render `video` through `palette` into the GIF at `dest`, overwriting it.

        A palette taken from another video of the same size is accepted.

        Raises:
            ValidationError: the palette is empty.
            InputError: the palette was derived from a video of other dimensions.
            CodecError: ffmpeg failed or the GIF does not match the video.
        """
        try:
            return self._run(video, palette, dest)
        except PipelineError as ex:
            raise ex.with_stage(self.stage)

    def _run(self, video: IntermediateVideo, palette: Palette, dest: Path) -> AnimatedImage:
        if not palette.entries:
            raise ValidationError(f"Palette {palette.path.name} is empty")
        if palette.source_size != (0, 0) and palette.source_size != video.size:
            raise InputError(
                f"Palette was derived from a {palette.source_width}x{palette.source_height} video, "
                f"but the video is {video.width}x{video.height}"
            )
        if not palette.path.exists():
            raise InputError(f"Palette image not found: {palette.path}")

        if self.logger:
            self.logger.info(
                f"Applying {len(palette)}-colour palette (dither {self.dither.value}) "
                f"to {video.frame_count} frames -> {dest.name}"
            )
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as ex:
            raise StorageError(f"Cannot create {dest.parent}: {ex}") from ex

        cmd = FFmpegCommandBuilder.build_paletteuse_cmd(
            video.path,
            palette.path,
            dest,
            dither=self.dither,
            bayer_scale=self.bayer_scale,
            diff_mode=self.diff_mode,
            loop=self.loop,
            ffmpeg_bin=self.ffmpeg_bin,
        )
        code, stderr = run_subprocess(cmd, logger=self.logger, timeout=self.timeout_sec)
        if code != 0:
            raise CodecError(
                f"ffmpeg paletteuse failed ({code}): {stderr_tail(stderr) or pretty_command(cmd)}",
                returncode=code,
                stderr=stderr,
            )

        try:
            gif = probe_gif(dest)
        except ProbeError as ex:
            raise CodecError(f"Output GIF is not readable: {ex}") from ex
        if gif.frame_count != video.frame_count:
            raise CodecError(f"Output GIF has {gif.frame_count} frames, expected {video.frame_count}")
        if (gif.width, gif.height) != video.size:
            raise CodecError(
                f"Output GIF is {gif.width}x{gif.height}, video is {video.width}x{video.height}"
            )
        written_loop = -1 if gif.loop is None else gif.loop
        if written_loop != self.loop:
            raise CodecError(f"Output GIF loop count is {written_loop}, expected {self.loop}")

        return AnimatedImage(
            path=dest,
            frame_count=gif.frame_count,
            width=gif.width,
            height=gif.height,
            loop=written_loop,
            frame_duration_ms=gif.duration_ms,
            palette_size=len(palette),
        )
