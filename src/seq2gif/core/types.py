"""
Core data types for seq2gif.

These describe the artifacts handed from one stage to the next. Each one is
a plain record pointing at a file on disk; no stage holds a live handle to
another stage's artifact.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from pathlib import Path
from typing import Any

RGB = tuple[int, int, int]


class Stage(str, Enum):
    """Pipeline stage that produced an artifact or an error."""

    SEQUENCING = "sequencing"
    PALETTE_EXTRACTING = "palette-extracting"
    PALETTE_APPLYING = "palette-applying"


class JobState(str, Enum):
    """Lifecycle of a single conversion job."""

    NOT_STARTED = "not-started"
    SEQUENCING = "sequencing"
    PALETTE_EXTRACTING = "palette-extracting"
    PALETTE_APPLYING = "palette-applying"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Frame:
    """One still image of the input sequence."""

    index: int
    path: Path
    width: int = 0
    height: int = 0
    mode: str = ""

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


@dataclass
class FrameSequence:
    """An ordered, contiguous run of frames sharing one naming convention."""

    directory: Path
    prefix: str
    ext: str
    frames: list[Frame]
    pad_width: int | None = None  # None when names do not share one printf width
    explicit: bool = False  # frames were enumerated by the caller, not scanned

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def start_index(self) -> int:
        return self.frames[0].index if self.frames else 0

    @property
    def ffmpeg_pattern(self) -> str | None:
        """printf-style pattern for ffmpeg's image2 demuxer, or None if unusable."""
        if self.explicit or self.pad_width is None:
            return None
        prefix = self.prefix.replace("%", "%%")
        directory = str(self.directory).replace("%", "%%")
        number = f"%0{self.pad_width}d" if self.pad_width > 1 else "%d"
        return str(Path(directory) / f"{prefix}{number}{self.ext}")

    @property
    def display_name(self) -> str:
        if self.explicit:
            return f"{len(self.frames)} enumerated frames"
        width = self.pad_width or 1
        return f"{self.prefix}{'#' * width}{self.ext}"


@dataclass(frozen=True)
class IntermediateVideo:
    """The frame sequence concatenated into a video at a fixed frame rate."""

    path: Path
    frame_rate: Fraction
    frame_count: int
    width: int
    height: int
    codec: str

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


@dataclass
class Palette:
    """A bounded, ordered colour table derived from one intermediate video."""

    path: Path
    entries: list[RGB]
    capacity: int
    source_width: int
    source_height: int
    source_video: Path | None = None

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def source_size(self) -> tuple[int, int]:
        return self.source_width, self.source_height

    @property
    def sidecar_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".json")

    def to_dict(self) -> dict[str, Any]:
        return {
            "capacity": self.capacity,
            "source": {
                "video": str(self.source_video) if self.source_video else None,
                "width": self.source_width,
                "height": self.source_height,
            },
            "entries": [list(c) for c in self.entries],
        }

    @classmethod
    def from_dict(cls, path: Path, data: dict[str, Any]) -> Palette:
        source = data.get("source") or {}
        video = source.get("video")
        return cls(
            path=path,
            entries=[(int(r), int(g), int(b)) for r, g, b in data.get("entries", [])],
            capacity=int(data["capacity"]),
            source_width=int(source.get("width", 0)),
            source_height=int(source.get("height", 0)),
            source_video=Path(video) if video else None,
        )


@dataclass(frozen=True)
class AnimatedImage:
    """The delivered palette-indexed looping animation."""

    path: Path
    frame_count: int
    width: int
    height: int
    loop: int
    frame_duration_ms: int
    palette_size: int

    @property
    def loops_forever(self) -> bool:
        return self.loop == 0


@dataclass
class JobResult:
    """Artifacts produced by one pipeline run."""

    sequence: FrameSequence
    video: IntermediateVideo
    palette: Palette
    animation: AnimatedImage
    elapsed_sec: float = 0.0
    timings: dict[Stage, float] = field(default_factory=dict)
