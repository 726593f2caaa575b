"""Temporal sampling of past, present and future frames."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Sequence

from temporal_rgb.errors import (
    FrameUnavailable,
    InvalidChannelCount,
    OutOfRange,
    RasterMismatch,
)
from temporal_rgb.models import RGB_DEPTH, Raster, SampledFrames, TemporalTriple
from temporal_rgb.sources import FrameSource

DEFAULT_FETCH_WORKERS = 3


class TemporalSampler:
    """Fetch the three frames of a temporal triple from a frame source.

    Timestamps that fall before the start or after the end of the source are
    clamped to ``0`` or ``duration`` instead of failing. Near the edges of a
    video this keeps a usable triple, at the cost of a zero-displacement
    sample (e.g. past == present at ``reference_time == 0``).

    With ``max_workers > 1`` the fetches run on a thread pool. The first
    failure is re-raised as soon as it is observed: queued fetches are
    cancelled and the pool is shut down without waiting for fetches still in
    flight, whose results are discarded. No partial result is ever returned.
    """

    def __init__(self, *, max_workers: int = DEFAULT_FETCH_WORKERS) -> None:
        self.max_workers = max(1, int(max_workers))

    def sample(
        self,
        source: FrameSource,
        reference_time: float,
        delta_t: float,
    ) -> SampledFrames:
        candidate = TemporalTriple.around(reference_time, delta_t)
        triple = candidate.clamped(self._duration_of(source))

        timestamps = triple.as_tuple()
        # Clamped triples may repeat an instant; decode it once.
        unique = list(dict.fromkeys(timestamps))
        if self.max_workers == 1 or len(unique) == 1:
            fetched = {timestamp: self._fetch(source, timestamp) for timestamp in unique}
        else:
            fetched = self._fetch_parallel(source, unique)

        past, present, future = (fetched[timestamp] for timestamp in timestamps)

        sizes = {frame.size for frame in (past, present, future)}
        if len(sizes) != 1:
            raise RasterMismatch(
                "Frame source returned frames of different sizes: "
                f"past={past.width}x{past.height} at {triple.past}s, "
                f"present={present.width}x{present.height} at {triple.present}s, "
                f"future={future.width}x{future.height} at {triple.future}s"
            )

        return SampledFrames(past=past, present=present, future=future, triple=triple)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _duration_of(source: FrameSource) -> float:
        try:
            duration = float(source.duration_seconds())
        except (TypeError, ValueError) as exc:
            raise FrameUnavailable(f"Frame source reported an unusable duration: {exc}") from exc
        if not math.isfinite(duration) or duration < 0.0:
            raise FrameUnavailable(f"Frame source reported an invalid duration: {duration}")
        return duration

    @staticmethod
    def _fetch(source: FrameSource, timestamp: float) -> Raster:
        try:
            frame = source.frame_at(timestamp)
        except FrameUnavailable:
            raise
        except OutOfRange as exc:
            raise FrameUnavailable(
                f"Frame source rejected in-range timestamp {timestamp}s: {exc}"
            ) from exc
        except Exception as exc:
            raise FrameUnavailable(
                f"Frame source failed at {timestamp}s: {exc}"
            ) from exc

        if frame is None:
            raise FrameUnavailable(f"Frame source returned no frame at {timestamp}s")

        try:
            raster = Raster.coerce(frame)
        except InvalidChannelCount:
            raise
        except (TypeError, ValueError) as exc:
            raise FrameUnavailable(
                f"Frame source returned an unusable frame at {timestamp}s: {exc}"
            ) from exc
        if raster.depth != RGB_DEPTH:
            raise InvalidChannelCount(
                f"Frame at {timestamp}s has depth {raster.depth}, expected {RGB_DEPTH}"
            )
        return raster

    def _fetch_parallel(
        self,
        source: FrameSource,
        timestamps: Sequence[float],
    ) -> Dict[float, Raster]:
        results: Dict[float, Raster] = {}
        workers = min(self.max_workers, len(timestamps))

        executor = ThreadPoolExecutor(max_workers=workers)
        try:
            futures = {
                executor.submit(self._fetch, source, timestamp): timestamp
                for timestamp in timestamps
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        except BaseException:
            # Fetches already decoding finish in the background; their results are dropped.
            executor.shutdown(wait=False, cancel_futures=True)
            raise

        executor.shutdown(wait=True)
        return results


__all__ = ["DEFAULT_FETCH_WORKERS", "TemporalSampler"]
