"""Subprocess and external command utilities."""

from __future__ import annotations

import shlex
import subprocess
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..output.logger import SimpleLogger


def pretty_command(cmd: list[str]) -> str:
    """Shell-quoted rendering of a command, for logs and error messages."""
    return " ".join(shlex.quote(c) for c in cmd)


def run_subprocess(
    cmd: list[str],
    *,
    logger: SimpleLogger | None = None,
    timeout: int | None = None,
) -> tuple[int, str]:
    """Run subprocess command with proper error handling.

    Args:
        cmd: Command and arguments list
        logger: When given, the command line is logged before it runs
        timeout: Optional timeout in seconds

    Returns:
        Tuple of (return_code, stderr_output). A command that could not be
        started or timed out reports -1 and a description instead of stderr.
    """
    if logger is not None:
        logger.command(pretty_command(cmd))

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        return result.returncode, result.stderr
    except subprocess.TimeoutExpired:
        return -1, f"Command timed out after {timeout} seconds"
    except OSError as e:
        return -1, str(e)


def stderr_tail(stderr: str, lines: int = 8) -> str:
    """Last non-empty lines of a tool's stderr."""
    kept = [line for line in stderr.splitlines() if line.strip()]
    return "\n".join(kept[-lines:])
