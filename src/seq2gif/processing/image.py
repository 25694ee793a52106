"""
Image and video probing utilities for seq2gif.

This module inspects artifacts without modifying them:
- Frame decoding and dimension retrieval (Pillow)
- Intermediate video frame counting (OpenCV)
- Palette image and GIF inspection (Pillow)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np
from PIL import Image, ImageSequence, UnidentifiedImageError

from ..core.types import RGB

PALETTE_ALPHA_OPAQUE = 255


class ProbeError(Exception):
    """An artifact could not be decoded."""


@dataclass(frozen=True)
class VideoInfo:
    """What a decoder actually sees in a video file."""

    frame_count: int
    width: int
    height: int


@dataclass(frozen=True)
class GifInfo:
    """Structural facts of a written GIF."""

    frame_count: int
    width: int
    height: int
    loop: int | None
    duration_ms: int


def probe_frame(path: Path) -> tuple[int, int, str]:
    """Fully decode a still frame and return (width, height, mode).

    Raises:
        FileNotFoundError: when the file does not exist.
        ProbeError: when the file cannot be decoded.
    """
    try:
        with Image.open(path) as im:
            im.load()
            return im.width, im.height, im.mode
    except FileNotFoundError:
        raise
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as ex:
        raise ProbeError(f"{type(ex).__name__}: {ex}") from ex


def probe_video(path: Path) -> VideoInfo:
    """Decode every frame of a video and count them.

    Container frame counts are estimates for some formats, so frames are
    read rather than trusting CAP_PROP_FRAME_COUNT.

    Raises:
        ProbeError: when the video cannot be opened or yields no frames, or
            when frames change size midway.
    """
    if not path.exists():
        raise ProbeError(f"video not found: {path}")
    cap = cv2.VideoCapture(str(path))
    try:
        if not cap.isOpened():
            raise ProbeError(f"OpenCV could not open {path.name}")
        count = 0
        size: tuple[int, int] | None = None
        while True:
            ok, frame = cap.read()
            if not ok:
                break
            h, w = frame.shape[:2]
            if size is None:
                size = (w, h)
            elif size != (w, h):
                raise ProbeError(f"frame {count} is {w}x{h}, expected {size[0]}x{size[1]}")
            count += 1
    finally:
        cap.release()
    if size is None:
        raise ProbeError(f"no decodable frames in {path.name}")
    return VideoInfo(frame_count=count, width=size[0], height=size[1])


def read_palette_image(path: Path, max_colors: int | None = None) -> list[RGB]:
    """Return the colour entries of a palettegen output image, in raster order.

    palettegen writes a 16x16 image and pads slots it did not fill with the
    last colour, so entries are the distinct opaque pixels in order. A
    reserved transparency slot is skipped.

    Raises:
        ProbeError: when the image cannot be decoded.
    """
    try:
        with Image.open(path) as im:
            rgba = np.asarray(im.convert("RGBA"), dtype=np.uint8)
    except (UnidentifiedImageError, OSError) as ex:
        raise ProbeError(f"{type(ex).__name__}: {ex}") from ex

    pixels = rgba.reshape(-1, 4)
    opaque = pixels[pixels[:, 3] == PALETTE_ALPHA_OPAQUE]

    entries: list[RGB] = []
    seen: set[RGB] = set()
    for r, g, b, _ in opaque.tolist():
        color = (r, g, b)
        if color in seen:
            continue
        seen.add(color)
        entries.append(color)
        if max_colors is not None and len(entries) >= max_colors:
            break
    return entries


def probe_gif(path: Path) -> GifInfo:
    """Count frames and read loop/timing metadata of a GIF.

    Raises:
        ProbeError: when the file is not a readable GIF.
    """
    try:
        with Image.open(path) as im:
            if im.format != "GIF":
                raise ProbeError(f"{path.name} is {im.format}, not GIF")
            width, height = im.size
            loop = im.info.get("loop")
            durations: list[int] = []
            for frame in ImageSequence.Iterator(im):
                durations.append(int(frame.info.get("duration", 0)))
            count = len(durations)
    except (UnidentifiedImageError, OSError, EOFError) as ex:
        raise ProbeError(f"{type(ex).__name__}: {ex}") from ex
    return GifInfo(
        frame_count=count,
        width=width,
        height=height,
        loop=loop,
        duration_ms=durations[0] if durations else 0,
    )
