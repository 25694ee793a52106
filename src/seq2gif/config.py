"""
Consolidated configuration system for seq2gif.

This module provides a Pydantic-based configuration layer: application-wide
settings (overridable through ``SEQ2GIF_`` environment variables), the
ffmpeg-facing enums, and the validated per-job configuration the pipeline
runs from.
"""

from __future__ import annotations

from enum import Enum
from fractions import Fraction
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_PALETTE_COLORS = 2
MAX_PALETTE_COLORS = 256

# =============================================================================
# FFMPEG-FACING ENUMS
# =============================================================================


class DitherMode(str, Enum):
    """Dithering algorithms understood by ffmpeg's paletteuse filter."""

    NONE = "none"
    BAYER = "bayer"
    HECKBERT = "heckbert"
    FLOYD_STEINBERG = "floyd_steinberg"
    SIERRA2 = "sierra2"
    SIERRA2_4A = "sierra2_4a"
    SIERRA3 = "sierra3"
    BURKES = "burkes"
    ATKINSON = "atkinson"


class StatsMode(str, Enum):
    """How palettegen builds its colour histogram."""

    FULL = "full"  # every frame, whole picture
    DIFF = "diff"  # only pixels that change between frames


class DiffMode(str, Enum):
    """paletteuse diff_mode: limit re-quantization to changed rectangles."""

    NONE = "none"
    RECTANGLE = "rectangle"


class IntermediateFormat(str, Enum):
    """Container/codec pairs usable for the intermediate video."""

    MKV = "mkv"
    MP4 = "mp4"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def codec(self) -> str:
        return "ffv1" if self is IntermediateFormat.MKV else "libx264"

    def codec_args(self) -> list[str]:
        """FFmpeg codec arguments for a lossless intermediate."""
        if self is IntermediateFormat.MKV:
            return ["-c:v", "ffv1", "-level", "3", "-g", "1"]
        if self is IntermediateFormat.MP4:
            # yuv444p keeps odd dimensions legal and avoids chroma subsampling
            return ["-c:v", "libx264", "-preset", "veryfast", "-qp", "0", "-pix_fmt", "yuv444p"]
        raise ValueError(f"Unsupported IntermediateFormat: {self}")


# =============================================================================
# FRAME RATE
# =============================================================================


def parse_frame_rate(value: Any) -> Fraction:
    """Parse a frame rate given as int, float, Fraction or "num/den" string.

    Raises:
        ValueError: when the value is not a positive rational number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid frame rate: {value!r}")
    try:
        if isinstance(value, str):
            rate = Fraction(value.strip())
        elif isinstance(value, float):
            rate = Fraction(value).limit_denominator(1001000)
        else:
            rate = Fraction(value)
    except (ValueError, ZeroDivisionError, TypeError) as ex:
        raise ValueError(f"Invalid frame rate: {value!r}") from ex
    if rate <= 0:
        raise ValueError(f"Frame rate must be positive, got {value!r}")
    return rate


def format_frame_rate(rate: Fraction) -> str:
    """Render a frame rate the way ffmpeg's -framerate option accepts it."""
    if rate.denominator == 1:
        return str(rate.numerator)
    return f"{rate.numerator}/{rate.denominator}"


# =============================================================================
# SETTINGS GROUPS
# =============================================================================


class SequenceSettings(BaseModel):
    """Configuration for frame sequence discovery and sequencing."""

    default_frame_rate: Annotated[str, Field(
        default="25",
        description="Frame rate used when none is given (ffmpeg's image2 default)"
    )] = "25"

    supported_image_exts: Annotated[set[str], Field(
        default={".png", ".ppm", ".pgm", ".pnm", ".bmp", ".tif", ".tiff", ".jpg", ".jpeg"},
        description="Input frame file extensions"
    )] = {".png", ".ppm", ".pgm", ".pnm", ".bmp", ".tif", ".tiff", ".jpg", ".jpeg"}

    @field_validator("default_frame_rate")
    @classmethod
    def validate_default_frame_rate(cls, v):
        parse_frame_rate(v)
        return v


class PaletteSettings(BaseModel):
    """Palette extraction settings."""

    max_colors: Annotated[int, Field(
        default=256,
        ge=MIN_PALETTE_COLORS,
        le=MAX_PALETTE_COLORS,
        description="Palette capacity (GIF colour table limit is 256)"
    )] = 256

    stats_mode: StatsMode = StatsMode.FULL


class DitherSettings(BaseModel):
    """Palette application settings."""

    mode: DitherMode = DitherMode.SIERRA2_4A

    bayer_scale: Annotated[int, Field(
        default=2,
        ge=0,
        le=5,
        description="Crosshatch strength for bayer dithering (lower is more visible)"
    )] = 2

    diff_mode: DiffMode = DiffMode.NONE

    loop: Annotated[int, Field(
        default=0,
        ge=-1,
        le=65535,
        description="GIF loop count: 0 loops forever, -1 plays once"
    )] = 0


class IntermediateSettings(BaseModel):
    """Intermediate video artifact settings."""

    format: IntermediateFormat = IntermediateFormat.MKV


class ToolSettings(BaseModel):
    """External tool configuration."""

    ffmpeg_bin: str = "ffmpeg"

    timeout_sec: Annotated[int, Field(
        default=600,
        gt=0,
        description="Timeout in seconds for a single ffmpeg invocation"
    )] = 600


# =============================================================================
# MAIN APPLICATION CONFIGURATION
# =============================================================================


class AppConfig(BaseSettings):
    """
    Main application configuration with environment variable support.

    All settings can be overridden via environment variables with SEQ2GIF_ prefix.
    Example: SEQ2GIF_PALETTE__MAX_COLORS=64
    """

    model_config = SettingsConfigDict(
        env_prefix="SEQ2GIF_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    sequence: SequenceSettings = SequenceSettings()
    palette: PaletteSettings = PaletteSettings()
    dither: DitherSettings = DitherSettings()
    intermediate: IntermediateSettings = IntermediateSettings()
    tools: ToolSettings = ToolSettings()


def create_config_from_env() -> AppConfig:
    """Create a new configuration instance from environment variables."""
    return AppConfig()


# =============================================================================
# JOB CONFIGURATION
# =============================================================================


class JobConfig(BaseModel):
    """Validated configuration of one conversion job.

    Artifact locations are explicit so that jobs with distinct work
    directories never share files.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    frames_dir: Path
    output: Path
    frame_rate: Fraction = Fraction(25)
    pattern: str | None = None
    start_index: Annotated[int | None, Field(default=None, ge=0)] = None
    max_colors: int = 256
    stats_mode: StatsMode = StatsMode.FULL
    dither: DitherMode = DitherMode.SIERRA2_4A
    bayer_scale: Annotated[int, Field(default=2, ge=0, le=5)] = 2
    diff_mode: DiffMode = DiffMode.NONE
    loop: Annotated[int, Field(default=0, ge=-1, le=65535)] = 0
    intermediate_format: IntermediateFormat = IntermediateFormat.MKV
    work_dir: Path | None = None
    keep_intermediate: bool = False
    ffmpeg_bin: str = "ffmpeg"
    timeout_sec: Annotated[int, Field(default=600, gt=0)] = 600

    @field_validator("frame_rate", mode="before")
    @classmethod
    def validate_frame_rate(cls, v):
        return parse_frame_rate(v)

    @field_validator("output")
    @classmethod
    def validate_output(cls, v: Path):
        if v.suffix.lower() != ".gif":
            raise ValueError(f"Output must be a .gif file, got: {v.name}")
        return v

    # max_colors range is checked by the palette extractor, not here.

    @model_validator(mode="before")
    @classmethod
    def default_work_dir(cls, data):
        """Place the work dir next to the output as ``.<stem>_work`` when unset."""
        if isinstance(data, dict) and data.get("work_dir") is None and data.get("output") is not None:
            output = Path(data["output"])
            data = {**data, "work_dir": output.parent / f".{output.stem}_work"}
        return data

    @property
    def intermediate_path(self) -> Path:
        assert self.work_dir is not None
        return self.work_dir / f"intermediate.{self.intermediate_format.extension}"

    @property
    def palette_path(self) -> Path:
        assert self.work_dir is not None
        return self.work_dir / "palette.png"

    @classmethod
    def from_settings(cls, settings: AppConfig, **overrides: Any) -> JobConfig:
        """Build a job config from app settings; explicit overrides win over settings."""
        values: dict[str, Any] = {
            "frame_rate": settings.sequence.default_frame_rate,
            "max_colors": settings.palette.max_colors,
            "stats_mode": settings.palette.stats_mode,
            "dither": settings.dither.mode,
            "bayer_scale": settings.dither.bayer_scale,
            "diff_mode": settings.dither.diff_mode,
            "loop": settings.dither.loop,
            "intermediate_format": settings.intermediate.format,
            "ffmpeg_bin": settings.tools.ffmpeg_bin,
            "timeout_sec": settings.tools.timeout_sec,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


# =============================================================================
# DEFAULT INSTANCE
# =============================================================================

app_config = AppConfig()
