"""Render a series of composites across a video."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from time import perf_counter
from typing import Iterable, List, Optional

from temporal_rgb.encoding import SUPPORTED_FORMATS, write_image
from temporal_rgb.models import SeriesResult
from temporal_rgb.pipeline import VAMRGBPipeline
from temporal_rgb.progress import series_progress, should_report
from temporal_rgb.sources import FrameSource


def uniform_reference_times(
    duration: float,
    stride: float,
    *,
    start: float = 0.0,
    limit: Optional[int] = None,
) -> List[float]:
    """Evenly spaced reference times from ``start`` up to and including ``duration``."""
    if stride <= 0:
        raise ValueError("stride must be > 0")
    if start < 0:
        raise ValueError("start must be >= 0")
    if limit is not None and limit < 0:
        raise ValueError("limit must be >= 0")
    if start > duration:
        return []

    count = int(math.floor((duration - start) / stride + 1e-9)) + 1
    times = [round(start + index * stride, 9) for index in range(count)]
    return times if limit is None else times[:limit]


class SeriesRenderer:
    """Generate and write one composite per reference time."""

    def __init__(
        self,
        pipeline: VAMRGBPipeline,
        *,
        logger: logging.Logger,
        workers: int = 1,
        output_format: str = "png",
        jpeg_quality: int = 95,
    ) -> None:
        if output_format.lower() not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported output format '{output_format}'")
        self.pipeline = pipeline
        self.logger = logger
        self.workers = max(1, workers)
        self.output_format = output_format.lower()
        self.jpeg_quality = jpeg_quality

    def filename_for(self, index: int, reference_time: float) -> str:
        stem = f"composite_{index:05d}_{reference_time:.3f}".replace(".", "p")
        return f"{stem}{SUPPORTED_FORMATS[self.output_format]}"

    def render(
        self,
        source: FrameSource,
        reference_times: Iterable[float],
        delta_t: float,
        output_dir: Path,
    ) -> List[SeriesResult]:
        times = list(reference_times)
        total = len(times)
        if total == 0:
            return []

        output_dir.mkdir(parents=True, exist_ok=True)
        results: List[Optional[SeriesResult]] = [None] * total
        progress_start = perf_counter()

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = [
                executor.submit(
                    self._render_one,
                    index,
                    reference_time,
                    source,
                    delta_t,
                    output_dir,
                )
                for index, reference_time in enumerate(times)
            ]

            completed = 0
            try:
                for future in as_completed(futures):
                    result = future.result()
                    results[result.index] = result
                    completed += 1
                    if should_report(completed, total):
                        self.logger.info(
                            "Composite progress: %s",
                            series_progress(completed, total, perf_counter() - progress_start),
                        )
            except BaseException:
                for pending in futures:
                    pending.cancel()
                raise

        return [result for result in results if result is not None]

    def _render_one(
        self,
        index: int,
        reference_time: float,
        source: FrameSource,
        delta_t: float,
        output_dir: Path,
    ) -> SeriesResult:
        composite = self.pipeline.generate(source, reference_time, delta_t)
        triple = composite.triple
        if triple.is_degenerate:
            self.logger.warning(
                "Composite at %.3fs clamped to a degenerate triple %s",
                reference_time,
                triple.as_tuple(),
            )

        output_path = write_image(
            composite,
            output_dir / self.filename_for(index, reference_time),
            fmt=self.output_format,
            jpeg_quality=self.jpeg_quality,
        )
        self.logger.debug("Wrote %s", output_path)
        return SeriesResult(
            index=index,
            reference_time=reference_time,
            triple=triple,
            output_path=output_path,
        )


__all__ = ["SeriesRenderer", "uniform_reference_times"]
