"""
Frame source reading for seq2gif.

A frame source is a directory of still images whose names end in a
fixed-width frame number (``weights-000.ppm``, ``weights-001.ppm``, ...).
This module discovers such a sequence, or wraps an explicit list of frames,
and validates it before anything is encoded:
- indices are contiguous (the first gap is reported)
- every frame exists and decodes
- every frame has the dimensions of the first one
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from pathlib import Path

from ..config import app_config
from ..core.errors import InputError
from ..core.types import Frame, FrameSequence
from ..utils.path import detect_pad_width, name_matcher, parse_stem
from .image import ProbeError, probe_frame


def scan_frames(
    directory: Path,
    *,
    pattern: str | None = None,
    start_index: int | None = None,
    extensions: Iterable[str] | None = None,
) -> FrameSequence:
    """Discover the numbered frame sequence in `directory`.

    Files are grouped by (prefix, extension). Without a `pattern` the largest
    group is the sequence; a tie between groups is ambiguous and fails. With
    a `pattern` (printf ``weights-%03d.ppm`` or glob ``weights-*.ppm``) only
    matching names are considered.

    Args:
        directory: Directory holding the frames (not searched recursively).
        pattern: Optional file name pattern selecting the frames.
        start_index: Expected first index; frames below it are ignored.
        extensions: Accepted suffixes when no pattern is given.

    Raises:
        InputError: when the directory is missing or no usable sequence is found.
    """
    if not directory.is_dir():
        raise InputError(f"Frame directory not found: {directory}")

    matches = None
    if pattern is not None:
        try:
            matches = name_matcher(pattern)
        except ValueError as ex:
            raise InputError(f"Invalid frame pattern: {ex}") from ex

    valid_exts = {e.lower() for e in (extensions or app_config.sequence.supported_image_exts)}
    groups: dict[tuple[str, str], list[tuple[str, Path]]] = {}

    for f_path in sorted(directory.iterdir()):
        if not f_path.is_file():
            continue
        if matches is not None:
            if not matches(f_path.name):
                continue
        elif f_path.suffix.lower() not in valid_exts:
            continue
        parsed = parse_stem(f_path.stem)
        if parsed is None:
            continue
        prefix, digits = parsed
        groups.setdefault((prefix, f_path.suffix), []).append((digits, f_path))

    if not groups:
        what = f"matching {pattern!r}" if pattern else "with a numeric suffix"
        raise InputError(f"No frames {what} found in {directory}")

    ranked = sorted(groups.items(), key=lambda item: len(item[1]), reverse=True)
    if len(ranked) > 1 and len(ranked[0][1]) == len(ranked[1][1]):
        names = ", ".join(f"{p}#{e}" for (p, e), _ in ranked[:4])
        raise InputError(f"Ambiguous frame sequences in {directory} ({names}); pass a pattern")

    (prefix, ext), numbered = ranked[0]
    by_index: dict[int, Path] = {}
    for digits, f_path in numbered:
        index = int(digits)
        if index in by_index:
            raise InputError(
                f"Duplicate frame index {index}: {by_index[index].name} and {f_path.name}"
            )
        by_index[index] = f_path

    indices = sorted(i for i in by_index if start_index is None or i >= start_index)
    if not indices:
        raise InputError(f"No frames at or after index {start_index} in {directory}")

    frames = [Frame(index=i, path=by_index[i]) for i in indices]
    seq = FrameSequence(
        directory=directory,
        prefix=prefix,
        ext=ext,
        frames=frames,
        pad_width=detect_pad_width(d for d, _ in numbered),
    )
    if start_index is not None and indices[0] != start_index:
        raise InputError(f"Missing frame index {start_index} (sequence starts at {indices[0]})")
    return seq


def sequence_from_paths(paths: Sequence[Path], start_index: int = 0) -> FrameSequence:
    """Wrap explicitly enumerated frames; list position defines the index.

    All frames must share one file extension, since they are staged under a
    single image2 pattern.
    """
    if not paths:
        raise InputError("No frames given")
    first = Path(paths[0])
    for i, p in enumerate(paths):
        if Path(p).suffix.lower() != first.suffix.lower():
            raise InputError(
                f"Mixed frame formats: frame index {start_index + i} is {Path(p).name}, "
                f"expected {first.suffix} like {first.name}"
            )
    frames = [Frame(index=start_index + i, path=Path(p)) for i, p in enumerate(paths)]
    return FrameSequence(
        directory=first.parent,
        prefix="",
        ext=first.suffix,
        frames=frames,
        explicit=True,
    )


def first_missing_index(indices: Sequence[int]) -> int | None:
    """Return the first index absent from an ascending run, or None if contiguous."""
    for expected, actual in enumerate(indices, start=indices[0] if indices else 0):
        if actual != expected:
            return expected
    return None


def validate_frames(seq: FrameSequence) -> FrameSequence:
    """Check contiguity, decodability and uniform size; return probed frames.

    Raises:
        InputError: naming the first missing index, the first frame that is
            missing or fails to decode, or the first frame whose size differs
            from the first frame's.
    """
    if not seq.frames:
        raise InputError("Frame sequence is empty")

    missing = first_missing_index([f.index for f in seq.frames])
    if missing is not None:
        raise InputError(f"Missing frame index {missing} in {seq.display_name}")

    probed: list[Frame] = []
    expected: tuple[int, int] | None = None
    for frame in seq.frames:
        try:
            width, height, mode = probe_frame(frame.path)
        except FileNotFoundError:
            raise InputError(f"Missing frame index {frame.index}: {frame.path}") from None
        except ProbeError as ex:
            raise InputError(f"Cannot decode frame index {frame.index} ({frame.path.name}): {ex}") from ex

        if expected is None:
            expected = (width, height)
        elif (width, height) != expected:
            raise InputError(
                f"Dimension mismatch at frame index {frame.index}: "
                f"{width}x{height}, expected {expected[0]}x{expected[1]}"
            )
        probed.append(replace(frame, width=width, height=height, mode=mode))

    return replace(seq, frames=probed)
