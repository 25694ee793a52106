"""
External tool validation utilities for seq2gif.

The pipeline delegates all encoding to ffmpeg; this module checks that the
binary exists and carries the filters and encoders the stages rely on.
"""

from __future__ import annotations

import subprocess
from shutil import which

from ..config import IntermediateFormat

REQUIRED_FILTERS = ("palettegen", "paletteuse")


def required_encoders(fmt: IntermediateFormat) -> tuple[str, ...]:
    """Encoders for the intermediate video and the GIF."""
    return (fmt.codec, "gif")


def check_tools(
    ffmpeg_bin: str = "ffmpeg", fmt: IntermediateFormat = IntermediateFormat.MKV
) -> tuple[bool, list[str]]:
    """Check availability of required external tools for `fmt` intermediates.

    Returns:
        (all_ok, problems). If `all_ok` is False, problems lists the issues.
    """
    problems: list[str] = []
    if which(ffmpeg_bin) is None:
        problems.append(f"{ffmpeg_bin} not found in PATH")
        return False, problems

    filters = _list_capabilities(ffmpeg_bin, "-filters")
    for name in REQUIRED_FILTERS:
        if name not in filters:
            problems.append(f"{ffmpeg_bin} lacks the '{name}' filter")

    encoders = _list_capabilities(ffmpeg_bin, "-encoders")
    for name in required_encoders(fmt):
        if name not in encoders:
            problems.append(f"{ffmpeg_bin} lacks the '{name}' encoder")
    return (len(problems) == 0, problems)


def ffmpeg_version(ffmpeg_bin: str = "ffmpeg") -> str | None:
    """First line of ``ffmpeg -version``, or None when it cannot be run."""
    try:
        result = subprocess.run([ffmpeg_bin, "-version"], capture_output=True, text=True, timeout=30)
    except (OSError, subprocess.TimeoutExpired):
        return None
    lines = result.stdout.splitlines()
    return lines[0] if result.returncode == 0 and lines else None


def _list_capabilities(ffmpeg_bin: str, flag: str) -> set[str]:
    """Names listed by ``ffmpeg -filters`` / ``ffmpeg -encoders``."""
    try:
        result = subprocess.run(
            [ffmpeg_bin, "-hide_banner", flag], capture_output=True, text=True, timeout=30
        )
    except (OSError, subprocess.TimeoutExpired):
        return set()
    names: set[str] = set()
    for line in result.stdout.splitlines():
        parts = line.split()
        # Rows look like " ... palettegen  V->V  Find the optimal palette"
        if len(parts) >= 2:
            names.add(parts[1])
    return names
