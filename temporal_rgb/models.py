"""Data models used across the temporal RGB composition pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple

import numpy as np

from temporal_rgb.errors import InvalidChannelCount, InvalidOffset, OutOfRange

LUMINANCE_DEPTH = 1
RGB_DEPTH = 3


@dataclass(frozen=True, eq=False)
class Raster:
    """Immutable grid of pixel samples.

    ``samples`` has shape ``(H, W)`` for single-channel rasters and
    ``(H, W, 3)`` for RGB rasters. The array is copied on construction and
    flagged read-only, so neither the caller nor downstream stages can
    mutate it in place. ``(H, W, 1)`` input is stored as ``(H, W)``.
    """

    samples: np.ndarray

    def __post_init__(self) -> None:
        array = np.array(self.samples, copy=True)
        if array.ndim == 3 and array.shape[2] == LUMINANCE_DEPTH:
            array = array[:, :, 0].copy()
        if array.ndim not in (2, 3):
            raise ValueError(f"Raster samples must be 2D or 3D, got shape {array.shape}")
        if array.ndim == 3 and array.shape[2] != RGB_DEPTH:
            raise InvalidChannelCount(
                f"Raster depth must be {LUMINANCE_DEPTH} or {RGB_DEPTH}, got {array.shape[2]}"
            )
        if array.shape[0] <= 0 or array.shape[1] <= 0:
            raise ValueError(f"Raster width and height must be positive, got shape {array.shape}")
        if not (np.issubdtype(array.dtype, np.floating) or np.issubdtype(array.dtype, np.integer)):
            raise TypeError(f"Unsupported raster sample type: {array.dtype}")
        array.setflags(write=False)
        object.__setattr__(self, "samples", array)

    @classmethod
    def coerce(cls, value: Any) -> "Raster":
        """Return ``value`` unchanged if it is a raster, else wrap it."""
        if isinstance(value, Raster):
            return value
        return cls(np.asarray(value))

    @property
    def height(self) -> int:
        return int(self.samples.shape[0])

    @property
    def width(self) -> int:
        return int(self.samples.shape[1])

    @property
    def depth(self) -> int:
        if self.samples.ndim == 2:
            return LUMINANCE_DEPTH
        return int(self.samples.shape[2])

    @property
    def dtype(self) -> np.dtype:
        return self.samples.dtype

    @property
    def is_integer(self) -> bool:
        return bool(np.issubdtype(self.samples.dtype, np.integer))

    @property
    def size(self) -> Tuple[int, int]:
        """``(width, height)`` in pixels."""
        return (self.width, self.height)

    def channel(self, index: int) -> "Raster":
        """Extract a single channel of an RGB raster as a luminance-depth raster."""
        if self.depth != RGB_DEPTH:
            raise InvalidChannelCount(
                f"Channel extraction needs depth {RGB_DEPTH}, raster has depth {self.depth}"
            )
        return Raster(self.samples[:, :, index])

    def equals(self, other: "Raster") -> bool:
        """Bitwise equality, including sample type."""
        return self.dtype == other.dtype and np.array_equal(self.samples, other.samples)


def _finite_float(value: Any) -> Optional[float]:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def _clamp(value: float, lo: float, hi: float) -> float:
    return float(min(hi, max(lo, value)))


@dataclass(frozen=True)
class TemporalTriple:
    """Past, present and future sampling instants, in seconds."""

    past: float
    present: float
    future: float

    @classmethod
    def around(cls, reference_time: float, delta_t: float) -> "TemporalTriple":
        """Build the unclamped triple ``(ref - delta_t, ref, ref + delta_t)``."""
        offset = _finite_float(delta_t)
        if offset is None or offset <= 0.0:
            raise InvalidOffset(f"delta_t must be a finite number > 0, got {delta_t!r}")
        reference = _finite_float(reference_time)
        if reference is None:
            raise OutOfRange(f"reference_time must be a finite number, got {reference_time!r}")
        return cls(past=reference - offset, present=reference, future=reference + offset)

    def clamped(self, duration: float) -> "TemporalTriple":
        """Clamp every instant into ``[0, duration]``."""
        return TemporalTriple(
            past=_clamp(self.past, 0.0, duration),
            present=_clamp(self.present, 0.0, duration),
            future=_clamp(self.future, 0.0, duration),
        )

    @property
    def is_degenerate(self) -> bool:
        """True when two or more instants coincide (zero displacement)."""
        return self.past == self.present or self.present == self.future or self.past == self.future

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.past, self.present, self.future)


@dataclass(frozen=True)
class SampledFrames:
    """RGB frames fetched for one triple."""

    past: Raster
    present: Raster
    future: Raster
    triple: TemporalTriple

    def frames(self) -> Tuple[Raster, Raster, Raster]:
        return (self.past, self.present, self.future)


@dataclass(frozen=True, eq=False)
class CompositeImage:
    """RGB raster whose red, green and blue channels hold past, present and
    future luminance respectively."""

    raster: Raster
    triple: Optional[TemporalTriple] = None

    def __post_init__(self) -> None:
        if self.raster.depth != RGB_DEPTH:
            raise InvalidChannelCount(
                f"Composite images have depth {RGB_DEPTH}, got {self.raster.depth}"
            )

    @property
    def samples(self) -> np.ndarray:
        return self.raster.samples

    @property
    def width(self) -> int:
        return self.raster.width

    @property
    def height(self) -> int:
        return self.raster.height

    @property
    def dtype(self) -> np.dtype:
        return self.raster.dtype

    @property
    def past(self) -> np.ndarray:
        return self.raster.samples[:, :, 0]

    @property
    def present(self) -> np.ndarray:
        return self.raster.samples[:, :, 1]

    @property
    def future(self) -> np.ndarray:
        return self.raster.samples[:, :, 2]

    def equals(self, other: "CompositeImage") -> bool:
        return self.raster.equals(other.raster)


@dataclass
class SeriesResult:
    """Summary of one composite written during series rendering."""

    index: int
    reference_time: float
    triple: TemporalTriple
    output_path: Path


__all__ = [
    "CompositeImage",
    "LUMINANCE_DEPTH",
    "RGB_DEPTH",
    "Raster",
    "SampledFrames",
    "SeriesResult",
    "TemporalTriple",
]
