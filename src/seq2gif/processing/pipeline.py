"""
Pipeline orchestration for seq2gif.

Runs the three stages of one job strictly in order:

    NOT_STARTED -> SEQUENCING -> PALETTE_EXTRACTING -> PALETTE_APPLYING -> DONE

Any stage error moves the job to FAILED, records (stage, cause) and is
re-raised unchanged. Artifacts written by earlier stages stay on disk so a
failed job can be inspected; nothing is retried or resumed.
"""

from __future__ import annotations

import contextlib
import time

from ..config import JobConfig
from ..core.errors import PipelineError
from ..core.types import JobResult, JobState, Stage
from ..output.logger import SimpleLogger
from .frames import scan_frames
from .palette import PaletteApplicator, PaletteExtractor
from .sequencer import Sequencer

_STAGE_STATES = {
    Stage.SEQUENCING: JobState.SEQUENCING,
    Stage.PALETTE_EXTRACTING: JobState.PALETTE_EXTRACTING,
    Stage.PALETTE_APPLYING: JobState.PALETTE_APPLYING,
}


class Pipeline:
    """One conversion job: frames directory -> intermediate video -> palette -> GIF."""

    def __init__(
        self,
        job: JobConfig,
        logger: SimpleLogger | None = None,
        *,
        sequencer: Sequencer | None = None,
        extractor: PaletteExtractor | None = None,
        applicator: PaletteApplicator | None = None,
    ) -> None:
        self.job = job
        self.logger = logger
        self.sequencer = sequencer or Sequencer(
            job.intermediate_format,
            ffmpeg_bin=job.ffmpeg_bin,
            timeout_sec=job.timeout_sec,
            logger=logger,
        )
        self.extractor = extractor or PaletteExtractor(
            job.stats_mode,
            ffmpeg_bin=job.ffmpeg_bin,
            timeout_sec=job.timeout_sec,
            logger=logger,
        )
        self.applicator = applicator or PaletteApplicator(
            job.dither,
            bayer_scale=job.bayer_scale,
            diff_mode=job.diff_mode,
            loop=job.loop,
            ffmpeg_bin=job.ffmpeg_bin,
            timeout_sec=job.timeout_sec,
            logger=logger,
        )
        self.state = JobState.NOT_STARTED
        self.failure: tuple[Stage, PipelineError] | None = None
        self.history: list[JobState] = [self.state]

    def _enter(self, state: JobState) -> None:
        self.state = state
        self.history.append(state)

    def run(self) -> JobResult:
        """Execute all stages, blocking until the GIF is written or a stage fails.

        Raises:
            PipelineError: the first stage error, tagged with its stage.
            RuntimeError: when the pipeline has already been run.
        """
        if self.state is not JobState.NOT_STARTED:
            raise RuntimeError(f"Pipeline already ran (state: {self.state.value})")

        job = self.job
        t0 = time.time()
        timings: dict[Stage, float] = {}
        stage = Stage.SEQUENCING
        try:
            self._enter(_STAGE_STATES[stage])
            t = time.time()
            try:
                seq = scan_frames(job.frames_dir, pattern=job.pattern, start_index=job.start_index)
            except PipelineError as ex:
                raise ex.with_stage(stage)
            video = self.sequencer.run(seq, job.frame_rate, job.intermediate_path)
            timings[stage] = time.time() - t

            stage = Stage.PALETTE_EXTRACTING
            self._enter(_STAGE_STATES[stage])
            t = time.time()
            palette = self.extractor.run(video, job.palette_path, job.max_colors)
            timings[stage] = time.time() - t

            stage = Stage.PALETTE_APPLYING
            self._enter(_STAGE_STATES[stage])
            t = time.time()
            animation = self.applicator.run(video, palette, job.output)
            timings[stage] = time.time() - t
        except PipelineError as ex:
            ex.with_stage(stage)
            self.failure = (stage, ex)
            self._enter(JobState.FAILED)
            if self.logger:
                self.logger.error(str(ex))
                self.logger.info(f"Artifacts from earlier stages left in {job.work_dir}")
            raise
        except KeyboardInterrupt:
            self.failure = (stage, PipelineError("Cancelled", stage))
            self._enter(JobState.FAILED)
            raise

        self._enter(JobState.DONE)
        if not job.keep_intermediate:
            self._discard_intermediates()

        return JobResult(
            sequence=seq,
            video=video,
            palette=palette,
            animation=animation,
            elapsed_sec=time.time() - t0,
            timings=timings,
        )

    def _discard_intermediates(self) -> None:
        """Remove the intermediate video and palette after a successful run.

        The GIF is already written and verified, so a cleanup failure is only
        reported as a warning.
        """
        job = self.job
        palette_sidecar = job.palette_path.with_suffix(job.palette_path.suffix + ".json")
        for path in (job.intermediate_path, job.palette_path, palette_sidecar):
            try:
                path.unlink(missing_ok=True)
            except OSError as ex:
                if self.logger:
                    self.logger.warning(f"Cannot remove intermediate artifact {path}: {ex}")
        # The work dir may be shared with other files; only remove it when empty.
        assert job.work_dir is not None
        with contextlib.suppress(OSError):
            job.work_dir.rmdir()
