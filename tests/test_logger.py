from __future__ import annotations

import io
from pathlib import Path

from rich.console import Console

from seq2gif.output.logger import SimpleLogger


def _logger(tmp_path: Path, verbose: bool = True):
    out, err = io.StringIO(), io.StringIO()
    logger = SimpleLogger(
        tmp_path / "logs" / "run.log",
        verbose=verbose,
        console=Console(file=out, width=200),
        err_console=Console(file=err, width=200),
    )
    return logger, out, err


def test_messages_reach_console_and_file(tmp_path: Path):
    logger, out, err = _logger(tmp_path)

    logger.info("Sequencing 10 frames")
    logger.error("[sequencing] Missing frame index 3")

    text = (tmp_path / "logs" / "run.log").read_text()
    assert "Session started" in text
    assert "[INFO] Sequencing 10 frames" in text
    assert "[ERROR] [sequencing] Missing frame index 3" in text
    assert "Sequencing 10 frames" in out.getvalue()
    assert "[sequencing] Missing frame index 3" in err.getvalue()
    assert "Missing frame" not in out.getvalue()


def test_quiet_logger_keeps_commands_in_file_only(tmp_path: Path):
    logger, out, _ = _logger(tmp_path, verbose=False)

    logger.command("ffmpeg -i in.mkv out.gif")

    assert "ffmpeg -i" not in out.getvalue()
    assert "[ffmpeg] ffmpeg -i in.mkv out.gif" in (tmp_path / "logs" / "run.log").read_text()


def test_table_written_as_ascii(tmp_path: Path):
    logger, out, _ = _logger(tmp_path)

    logger.table(["Setting", "Value"], [["Colors:", "16"]])

    text = (tmp_path / "logs" / "run.log").read_text()
    assert "| Setting | Value |" in text
    assert "| Colors: | 16    |" in text
    assert "Colors:" in out.getvalue()
