from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from shutil import which

import numpy as np
import pytest
from PIL import Image

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)

requires_ffmpeg = pytest.mark.skipif(which("ffmpeg") is None, reason="ffmpeg not found in PATH")


def nearest_palette_distance(color, entries) -> float:
    """Euclidean RGB distance from `color` to its nearest palette entry."""
    if not entries:
        return float("inf")
    table = np.asarray(entries, dtype=np.float64)
    diff = table - np.asarray(color, dtype=np.float64)
    return float(np.sqrt((diff * diff).sum(axis=1)).min())


def write_frames(
    directory: Path,
    colors: Sequence[tuple[int, int, int]],
    *,
    indices: Iterable[int] | None = None,
    size: tuple[int, int] = (64, 64),
    name: str = "frame-{:03d}.png",
) -> list[Path]:
    """Write one solid-colour frame per colour; returns the paths in order."""
    directory.mkdir(parents=True, exist_ok=True)
    indices = list(indices) if indices is not None else list(range(len(colors)))
    paths = []
    for index, color in zip(indices, colors):
        path = directory / name.format(index)
        Image.new("RGB", size, color).save(path)
        paths.append(path)
    return paths


@pytest.fixture
def rgb_frames(tmp_path: Path) -> Path:
    """10 frames of 64x64 cycling red/green/blue."""
    frames_dir = tmp_path / "frames"
    cycle = [RED, GREEN, BLUE]
    write_frames(frames_dir, [cycle[i % 3] for i in range(10)])
    return frames_dir
