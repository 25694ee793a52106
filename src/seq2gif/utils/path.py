"""
Path and file name utilities for seq2gif.

This module handles the frame naming convention:
- Filename parsing for numbered frames
- Detecting the fixed-width numeric suffix of a sequence
- Matching names against printf-style or glob patterns
"""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Callable, Iterable

_PRINTF_RE = re.compile(r"%(0?)(\d*)d")


def parse_stem(stem: str) -> tuple[str, str] | None:
    """Split a filename stem into (prefix, trailing_digits).

    The digits are returned as text so the caller can see their width.
    Examples:
        "weights-007" -> ("weights-", "007")
        "001" -> ("", "001")
        "no_number" -> None
    """
    match = re.search(r"(\d+)$", stem)
    if not match:
        return None
    digits = match.group(1)
    return stem[: -len(digits)], digits


def detect_pad_width(numbers: Iterable[str]) -> int | None:
    """Return the printf zero-pad width shared by every numeric suffix.

    ``["000", "001", "1000"]`` -> 3 (``%03d`` overflows cleanly past 999),
    ``["1", "2", "10"]`` -> 1 (plain ``%d``), ``["01", "2"]`` -> None because
    no single width reproduces both names.
    """
    numbers = list(numbers)
    if not numbers:
        return None
    width = min(len(n) for n in numbers)
    if all(f"{int(n):0{width}d}" == n for n in numbers):
        return width
    return None


def printf_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a printf-style frame name pattern (``weights-%03d.ppm``) to a regex.

    The single ``%d`` conversion becomes a capture group for the digits;
    ``%%`` is a literal percent sign.
    """
    parts: list[str] = []
    pos = 0
    conversions = 0
    for match in re.finditer(r"%%|%0?\d*d", pattern):
        parts.append(re.escape(pattern[pos:match.start()]))
        token = match.group(0)
        if token == "%%":
            parts.append("%")
        else:
            conversions += 1
            conv = _PRINTF_RE.fullmatch(token)
            assert conv is not None
            width = conv.group(2)
            if conv.group(1) and width:
                parts.append(rf"(\d{{{width},}})")
            else:
                parts.append(r"(\d+)")
        pos = match.end()
    parts.append(re.escape(pattern[pos:]))
    if conversions != 1:
        raise ValueError(f"Pattern must contain exactly one %d conversion: {pattern!r}")
    return re.compile("".join(parts) + r"\Z")


def name_matcher(pattern: str) -> Callable[[str], bool]:
    """Compile a printf-style or glob pattern into a file name predicate.

    Raises:
        ValueError: when a printf-style pattern is malformed.
    """
    if "%" in pattern:
        rx = printf_to_regex(pattern)
        return lambda name: rx.match(name) is not None
    return lambda name: fnmatch.fnmatchcase(name, pattern)
