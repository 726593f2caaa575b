"""
Command line interface for temporal RGB composition.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .config import Settings, load_settings
from .encoding import SUPPORTED_FORMATS, write_image
from .errors import TemporalRGBError
from .logging_setup import configure_logging
from .models import TemporalTriple
from .pipeline import VAMRGBPipeline
from .sampler import TemporalSampler
from .series import SeriesRenderer, uniform_reference_times
from .sources import VideoFrameSource


def _warn_if_degenerate(logger: logging.Logger, triple: Optional[TemporalTriple]) -> None:
    if triple is not None and triple.is_degenerate:
        logger.warning(
            "Sampling instants were clamped to the video bounds and coincide: "
            "past=%.3fs present=%.3fs future=%.3fs",
            *triple.as_tuple(),
        )


def _output_format(args: argparse.Namespace, settings: Settings, output_path: Optional[Path]) -> str:
    if args.format:
        return args.format
    if output_path is not None:
        suffix = output_path.suffix.lstrip(".").lower()
        if suffix in SUPPORTED_FORMATS:
            return suffix
    return settings.output.format


def _build_pipeline(args: argparse.Namespace, settings: Settings) -> VAMRGBPipeline:
    workers = args.workers or settings.fetch_workers
    return VAMRGBPipeline(sampler=TemporalSampler(max_workers=workers))


def generate_composite(
    args: argparse.Namespace,
    settings: Settings,
    source: VideoFrameSource,
    logger: logging.Logger,
) -> int:
    delta_t = settings.delta_t if args.delta is None else args.delta
    pipeline = _build_pipeline(args, settings)

    composite = pipeline.generate(source, args.at, delta_t)
    _warn_if_degenerate(logger, composite.triple)

    output_path = write_image(
        composite,
        args.output,
        fmt=_output_format(args, settings, args.output),
        jpeg_quality=settings.output.jpeg_quality,
    )
    past, present, future = composite.triple.as_tuple()
    logger.info(
        "Wrote %sx%s composite to %s (R=%.3fs, G=%.3fs, B=%.3fs)",
        composite.width,
        composite.height,
        output_path,
        past,
        present,
        future,
    )
    return 0


def render_series(
    args: argparse.Namespace,
    settings: Settings,
    source: VideoFrameSource,
    logger: logging.Logger,
) -> int:
    delta_t = settings.delta_t if args.delta is None else args.delta
    stride = settings.series.stride if args.stride is None else args.stride
    reference_times = uniform_reference_times(
        source.duration_seconds(),
        stride,
        start=args.start,
        limit=args.limit,
    )
    if not reference_times:
        logger.warning(
            "No reference times between %.3fs and the end of %s (%.3fs)",
            args.start,
            source.path,
            source.duration_seconds(),
        )
        return 0

    renderer = SeriesRenderer(
        _build_pipeline(args, settings),
        logger=logger,
        workers=args.series_workers or settings.series.workers,
        output_format=_output_format(args, settings, None),
        jpeg_quality=settings.output.jpeg_quality,
    )
    logger.info(
        "Rendering %s composites from %s every %.3fs (delta_t=%.3fs) into %s",
        len(reference_times),
        source.path,
        stride,
        delta_t,
        args.output_dir,
    )
    results = renderer.render(source, reference_times, delta_t, args.output_dir)
    logger.info("Series complete: %s composites written to %s", len(results), args.output_dir)
    return 0


def describe_video(source: VideoFrameSource, logger: logging.Logger) -> int:
    summary = {
        "path": str(source.path),
        "width": source.width,
        "height": source.height,
        "fps": source.fps,
        "frame_count": source.frame_count,
        "duration_seconds": source.duration_seconds(),
    }
    logger.info("Video info: %s", json.dumps(summary))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Encode past, present and future luminance of a video into one RGB still.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a JSON settings file (default: TEMPORAL_RGB_* environment variables).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write logs to this file.",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Parallel frame fetches per composite (1 fetches sequentially).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Write a single composite around one reference time.",
    )
    generate_parser.add_argument("video", type=Path, help="Input video file.")
    generate_parser.add_argument(
        "--at",
        type=float,
        required=True,
        help="Reference time in seconds (green channel).",
    )
    generate_parser.add_argument(
        "--delta",
        type=float,
        help="Offset in seconds to the past (red) and future (blue) frames (default: 0.5).",
    )
    generate_parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Output image path.",
    )
    generate_parser.add_argument(
        "--format",
        choices=sorted(SUPPORTED_FORMATS),
        help="Image format (default: output suffix, then configured format).",
    )

    series_parser = subparsers.add_parser(
        "series",
        help="Write composites at evenly spaced reference times.",
    )
    series_parser.add_argument("video", type=Path, help="Input video file.")
    series_parser.add_argument(
        "--output-dir",
        type=Path,
        required=True,
        help="Directory for the rendered composites.",
    )
    series_parser.add_argument(
        "--stride",
        type=float,
        help="Seconds between reference times (default: 1.0).",
    )
    series_parser.add_argument(
        "--delta",
        type=float,
        help="Offset in seconds to the past and future frames (default: 0.5).",
    )
    series_parser.add_argument(
        "--start",
        type=float,
        default=0.0,
        help="First reference time in seconds (default: 0).",
    )
    series_parser.add_argument(
        "--limit",
        type=int,
        help="Maximum number of composites to render.",
    )
    series_parser.add_argument(
        "--series-workers",
        type=int,
        help="Composites rendered in parallel.",
    )
    series_parser.add_argument(
        "--format",
        choices=sorted(SUPPORTED_FORMATS),
        help="Image format for every composite.",
    )

    info_parser = subparsers.add_parser("info", help="Print video duration and geometry.")
    info_parser.add_argument("video", type=Path, help="Input video file.")

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.workers is not None and args.workers <= 0:
        parser.error("--workers must be a positive integer")
    if args.command == "generate":
        suffix = args.output.suffix.lstrip(".").lower()
        if suffix and suffix not in SUPPORTED_FORMATS:
            parser.error(
                f"Unsupported output suffix '.{suffix}'; expected one of: "
                + ", ".join(sorted(SUPPORTED_FORMATS))
            )
    if args.command == "series":
        if args.stride is not None and args.stride <= 0:
            parser.error("--stride must be greater than zero")
        if args.start < 0:
            parser.error("--start must be >= 0")
        if args.limit is not None and args.limit <= 0:
            parser.error("--limit must be a positive integer")
        if args.series_workers is not None and args.series_workers <= 0:
            parser.error("--series-workers must be a positive integer")

    try:
        settings = load_settings(args.config)
    except (OSError, ValueError) as exc:
        parser.error(f"Failed to load settings: {exc}")

    logger = configure_logging(
        level="DEBUG" if args.verbose else settings.logging.level,
        log_file=args.log_file or settings.logging.file,
    )

    try:
        with VideoFrameSource(args.video, logger=logger) as source:
            if args.command == "generate":
                return generate_composite(args, settings, source, logger)
            if args.command == "series":
                return render_series(args, settings, source, logger)
            if args.command == "info":
                return describe_video(source, logger)
    except TemporalRGBError as exc:
        logger.error("%s: %s", type(exc).__name__, exc)
        return 1
    except (OSError, RuntimeError) as exc:
        logger.error("Failed to write output: %s", exc)
        return 1

    parser.error(f"Unhandled command: {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
