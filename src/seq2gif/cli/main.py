#!/usr/bin/env python3
"""
seq2gif: Convert a numbered frame sequence into a palette-optimized looping GIF.

The conversion runs three blocking stages, each reading the previous stage's
artifact from disk:
- Sequencing: frames -> intermediate video at a fixed frame rate
- Palette extracting: intermediate video -> palette of at most K colours
- Palette applying: intermediate video + palette -> looping GIF
"""

from __future__ import annotations

# Standard library imports
import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

# Third-party imports
import pydantic

# Local application imports
from ..config import (
    MAX_PALETTE_COLORS,
    AppConfig,
    DiffMode,
    DitherMode,
    IntermediateFormat,
    JobConfig,
    StatsMode,
    create_config_from_env,
    format_frame_rate,
)
from ..core.errors import PipelineError, ValidationError
from ..core.types import JobResult, Stage
from ..output.logger import SimpleLogger
from ..processing.palette import validate_max_colors
from ..processing.pipeline import Pipeline
from ..tools.check import check_tools, ffmpeg_version

EXIT_OK = 0
EXIT_FAILED = 1


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    p = argparse.ArgumentParser(
        prog="seq2gif",
        description="Convert a numbered frame sequence to a palette-optimized looping GIF.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("frames_dir", type=Path, nargs="?", help="Directory holding the numbered frames")
    p.add_argument("-o", "--output", type=Path, help="Output GIF. Defaults to '<frames_dir>.gif'")
    p.add_argument("-r", "--frame-rate", help="Frames per second, e.g. 5, 12.5 or 30000/1001 (default: settings)")
    p.add_argument(
        "-k", "--colors", type=int, help=f"Palette capacity, 2..{MAX_PALETTE_COLORS} (default: settings)"
    )
    p.add_argument("--pattern", help="Frame name pattern, printf ('weights-%%03d.ppm') or glob ('weights-*.ppm')")
    p.add_argument("--start-index", type=int, help="Expected first frame index (default: lowest found)")
    p.add_argument("--dither", choices=[d.value for d in DitherMode], help="Dithering algorithm")
    p.add_argument("--bayer-scale", type=int, help="Bayer crosshatch scale 0..5 (bayer dithering only)")
    p.add_argument("--diff-mode", choices=[d.value for d in DiffMode], help="Re-quantize only changed rectangles")
    p.add_argument("--stats-mode", choices=[s.value for s in StatsMode], help="Palette histogram mode")
    p.add_argument("--loop", type=int, help="GIF loop count: 0 forever, -1 play once")
    p.add_argument(
        "--intermediate", choices=[f.value for f in IntermediateFormat], help="Intermediate video container"
    )
    p.add_argument("--work-dir", type=Path, help="Directory for intermediate artifacts")
    p.add_argument("--keep-intermediate", action="store_true", help="Keep the intermediate video and palette")
    p.add_argument("--log-file", type=Path, help="Append a plain-text log to this file")
    p.add_argument("-q", "--quiet", action="store_true", help="Do not echo ffmpeg command lines")
    p.add_argument("--check-tools", action="store_true", help="Verify external tools and exit")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace, settings: AppConfig) -> JobConfig:
    """Create a JobConfig from parsed args; flags win over settings."""
    frames_dir: Path = args.frames_dir
    output = args.output or frames_dir.parent / f"{frames_dir.resolve().name}.gif"
    return JobConfig.from_settings(
        settings,
        frames_dir=frames_dir,
        output=output,
        frame_rate=args.frame_rate,
        pattern=args.pattern,
        start_index=args.start_index,
        max_colors=args.colors,
        stats_mode=args.stats_mode,
        dither=args.dither,
        bayer_scale=args.bayer_scale,
        diff_mode=args.diff_mode,
        loop=args.loop,
        intermediate_format=args.intermediate,
        work_dir=args.work_dir,
        keep_intermediate=args.keep_intermediate or None,
    )


def print_run_header(logger: SimpleLogger, job: JobConfig) -> None:
    """Print the run configuration."""
    logger.section("Run Configuration")
    dither = job.dither.value
    if job.dither is DitherMode.BAYER:
        dither += f" (scale {job.bayer_scale})"
    rows = [
        ["Frames:", str(job.frames_dir.resolve()) + (f" ({job.pattern})" if job.pattern else "")],
        ["Output:", str(job.output.resolve())],
        ["Work dir:", str(job.work_dir)],
        ["Frame rate:", f"{format_frame_rate(job.frame_rate)} fps"],
        ["Colors:", str(job.max_colors)],
        ["Stats mode:", job.stats_mode.value],
        ["Dither:", dither],
        ["Loop:", "forever" if job.loop == 0 else str(job.loop)],
        ["Intermediate:", f"{job.intermediate_format.value} ({job.intermediate_format.codec})"],
    ]
    logger.table(["Setting", "Value"], rows)


def print_summary(logger: SimpleLogger, result: JobResult) -> None:
    """Print per-stage timings and the delivered artifact."""
    logger.section("Summary")
    anim = result.animation
    size = anim.path.stat().st_size if anim.path.exists() else 0
    rows = [
        ["Frames", str(anim.frame_count)],
        ["Dimensions", f"{anim.width}x{anim.height}"],
        ["Frame delay", f"{anim.frame_duration_ms} ms"],
        ["Palette", f"{anim.palette_size}/{result.palette.capacity} colours"],
        ["Loop", "forever" if anim.loops_forever else str(anim.loop)],
        ["Output size", f"{size:,} bytes"],
    ]
    for stage in Stage:
        if stage in result.timings:
            rows.append([f"{stage.value}", f"{result.timings[stage]:.2f}s"])
    rows.append(["Total", f"{result.elapsed_sec:.2f}s"])
    logger.table(["Item", "Value"], rows)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    args = parse_args(argv)
    try:
        settings = create_config_from_env()
    except pydantic.ValidationError as ex:
        print(f"seq2gif: invalid SEQ2GIF_ settings: {ex}", file=sys.stderr)
        return EXIT_FAILED
    ffmpeg_bin = settings.tools.ffmpeg_bin

    if args.check_tools:
        ok, probs = check_tools(ffmpeg_bin, settings.intermediate.format)
        if ok:
            print(f"Tools OK: {ffmpeg_version(ffmpeg_bin) or ffmpeg_bin}")
            return EXIT_OK
        for p in probs:
            print(f"Missing: {p}", file=sys.stderr)
        return EXIT_FAILED

    if args.frames_dir is None:
        print("seq2gif: error: the frames directory is required", file=sys.stderr)
        return 2

    logger = SimpleLogger(args.log_file, verbose=not args.quiet)

    try:
        job = build_config(args, settings)
    except pydantic.ValidationError as ex:
        for err in ex.errors():
            field = ".".join(str(part) for part in err["loc"]) or "config"
            logger.error(f"[config] {field}: {err['msg']}")
        return EXIT_FAILED

    tools_ok, probs = check_tools(job.ffmpeg_bin, job.intermediate_format)
    if not tools_ok:
        for p in probs:
            logger.error(f"Missing: {p}")
        return EXIT_FAILED

    # Reject a bad palette size before spending time on sequencing
    try:
        validate_max_colors(job.max_colors)
    except ValidationError as ex:
        logger.error(str(ex.with_stage(Stage.PALETTE_EXTRACTING)))
        return EXIT_FAILED

    print_run_header(logger, job)
    if job.output.exists():
        logger.warning(f"Overwriting existing {job.output}")

    pipeline = Pipeline(job, logger)
    try:
        result = pipeline.run()
    except PipelineError as ex:
        if pipeline.failure is None:
            # Stage failures are logged by the pipeline itself
            logger.error(str(ex))
        return EXIT_FAILED
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return EXIT_FAILED

    logger.success(f"Wrote {result.animation.path} ({result.animation.frame_count} frames)")
    print_summary(logger, result)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
