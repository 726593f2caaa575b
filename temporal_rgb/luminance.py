"""Rec.709 luminance conversion for RGB rasters."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from temporal_rgb.errors import InvalidChannelCount
from temporal_rgb.models import RGB_DEPTH, Raster

REC709_COEFFICIENTS: Tuple[float, float, float] = (0.2126, 0.7152, 0.0722)


def weighted_luminance(samples: np.ndarray) -> np.ndarray:
    """Return the Rec.709 weighted sum of an ``(H, W, 3)`` array as float64.

    Samples are treated as linear values in whatever range they come in;
    no gamma decoding or rescaling takes place.
    """
    weights = np.asarray(REC709_COEFFICIENTS, dtype=np.float64)
    return samples.astype(np.float64, copy=False) @ weights


class LuminanceConverter:
    """Convert RGB rasters into single-channel luminance rasters."""

    def convert(self, frame: Raster) -> Raster:
        if frame.depth != RGB_DEPTH:
            raise InvalidChannelCount(
                f"Luminance conversion needs depth {RGB_DEPTH}, got {frame.depth}"
            )

        luminance = weighted_luminance(frame.samples)
        if not frame.is_integer:
            return Raster(luminance.astype(frame.dtype, copy=False))

        # Round half to even, then clip only to what the integer type can hold.
        limits = np.iinfo(frame.dtype)
        rounded = np.clip(np.rint(luminance), limits.min, limits.max)
        return Raster(rounded.astype(frame.dtype))


__all__ = ["LuminanceConverter", "REC709_COEFFICIENTS", "weighted_luminance"]
