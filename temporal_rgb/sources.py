"""Frame sources consumed by the temporal sampler."""

from __future__ import annotations

import logging
import math
import threading
from bisect import bisect_right
from pathlib import Path
from typing import Any, List, Mapping, Optional, Protocol, Union

import cv2

from temporal_rgb.errors import FrameUnavailable, OutOfRange
from temporal_rgb.models import Raster


class FrameSource(Protocol):
    """Read service returning decoded RGB frames by timestamp.

    Implementations document their own thread safety. ``frame_at`` raises
    :class:`OutOfRange` for timestamps outside ``[0, duration_seconds()]``.
    """

    def duration_seconds(self) -> float:
        ...

    def frame_at(self, timestamp: float) -> Raster:
        ...


def _checked_timestamp(timestamp: float, duration: float) -> float:
    try:
        value = float(timestamp)
    except (TypeError, ValueError) as exc:
        raise OutOfRange(f"Timestamp {timestamp!r} is not a number") from exc
    if not math.isfinite(value) or value < 0.0 or value > duration:
        raise OutOfRange(f"Timestamp {value} outside [0, {duration}]")
    return value


class ArrayFrameSource:
    """In-memory source holding keyframes at fixed timestamps.

    ``frame_at(t)`` returns the latest keyframe at or before ``t``, the same
    frame a player would be showing at that instant. Read-only after
    construction, so safe for concurrent reads.
    """

    def __init__(
        self,
        keyframes: Mapping[float, Any],
        *,
        duration: Optional[float] = None,
    ) -> None:
        if not keyframes:
            raise ValueError("ArrayFrameSource needs at least one keyframe")

        ordered = sorted(
            ((float(timestamp), Raster.coerce(frame)) for timestamp, frame in keyframes.items()),
            key=lambda item: item[0],
        )
        self._times: List[float] = [timestamp for timestamp, _ in ordered]
        self._frames: List[Raster] = [frame for _, frame in ordered]

        if self._times[0] < 0.0:
            raise ValueError(f"Keyframe timestamps must be >= 0, got {self._times[0]}")

        last = self._times[-1]
        self._duration = last if duration is None else float(duration)
        if not math.isfinite(self._duration) or self._duration < last:
            raise ValueError(
                f"Duration {self._duration} must be finite and cover the last keyframe at {last}"
            )

    def duration_seconds(self) -> float:
        return self._duration

    def frame_at(self, timestamp: float) -> Raster:
        value = _checked_timestamp(timestamp, self._duration)
        index = bisect_right(self._times, value) - 1
        if index < 0:
            raise FrameUnavailable(
                f"No keyframe at or before {value}s (first keyframe at {self._times[0]}s)"
            )
        return self._frames[index]


class VideoFrameSource:
    """Decode frames from a video file with OpenCV.

    ``cv2.VideoCapture`` keeps a single read position, so seeks are serialised
    with a lock; concurrent callers are safe but do not decode in parallel.
    """

    def __init__(
        self,
        path: Union[str, Path],
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.path = Path(path)
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()

        capture = cv2.VideoCapture(str(self.path))
        if not capture.isOpened():
            capture.release()
            raise FrameUnavailable(f"Failed to open video {self.path}")

        fps = float(capture.get(cv2.CAP_PROP_FPS) or 0.0)
        frame_count = int(capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
        if fps <= 0.0 or frame_count <= 0:
            capture.release()
            raise FrameUnavailable(
                f"Video {self.path} reports fps={fps} and frame_count={frame_count}"
            )

        self._capture: Optional[cv2.VideoCapture] = capture
        self.fps = fps
        self.frame_count = frame_count
        self.width = int(capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        self.height = int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)

        self.logger.debug(
            "Opened %s: %sx%s, %s frames at %.3f fps (%.3fs)",
            self.path,
            self.width,
            self.height,
            self.frame_count,
            self.fps,
            self.duration_seconds(),
        )

    def __enter__(self) -> "VideoFrameSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            if self._capture is not None:
                self._capture.release()
                self._capture = None

    def duration_seconds(self) -> float:
        return self.frame_count / self.fps

    def frame_index_for(self, timestamp: float) -> int:
        """Index of the frame on screen at ``timestamp``."""
        # Small epsilon keeps exact frame boundaries from rounding down.
        index = int(math.floor(timestamp * self.fps + 1e-6))
        return max(0, min(index, self.frame_count - 1))

    def frame_at(self, timestamp: float) -> Raster:
        value = _checked_timestamp(timestamp, self.duration_seconds())
        index = self.frame_index_for(value)

        with self._lock:
            if self._capture is None:
                raise FrameUnavailable(f"Video {self.path} has been closed")
            self._capture.set(cv2.CAP_PROP_POS_FRAMES, index)
            success, frame = self._capture.read()

        if not success or frame is None:
            raise FrameUnavailable(
                f"Failed to decode frame {index} ({value:.3f}s) from {self.path}"
            )

        self.logger.debug("Decoded frame %s (%.3fs) from %s", index, value, self.path)
        if frame.ndim == 2:
            return Raster(cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB))
        return Raster(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))


__all__ = ["ArrayFrameSource", "FrameSource", "VideoFrameSource"]
