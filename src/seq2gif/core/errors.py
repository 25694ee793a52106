"""
Error taxonomy for the conversion pipeline.

Every error raised out of a stage carries the stage that produced it, so the
CLI can report failures as ``[stage] message`` without inspecting tracebacks.
"""

from __future__ import annotations

from .types import Stage


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    def __init__(self, message: str, stage: Stage | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def with_stage(self, stage: Stage) -> PipelineError:
        """Tag the error with `stage` unless an inner stage already claimed it."""
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        if self.stage is None:
            return self.message
        return f"[{self.stage.value}] {self.message}"


class InputError(PipelineError):
    """Missing or malformed frames, dimension mismatch, bad configuration."""


class ValidationError(PipelineError):
    """Invalid palette capacity or an empty palette."""


class StorageError(PipelineError):
    """Reading or writing an artifact on disk failed."""


class CodecError(PipelineError):
    """ffmpeg (or a decoder used to verify its output) failed."""

    def __init__(
        self,
        message: str,
        stage: Stage | None = None,
        returncode: int | None = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message, stage)
        self.returncode = returncode
        self.stderr = stderr
