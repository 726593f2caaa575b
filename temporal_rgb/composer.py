"""Channel composition of past/present/future luminance rasters."""

from __future__ import annotations

from typing import Optional

import numpy as np

from temporal_rgb.errors import InvalidChannelCount, RasterMismatch
from temporal_rgb.models import LUMINANCE_DEPTH, CompositeImage, Raster, TemporalTriple

# Channel order is fixed: past -> R, present -> G, future -> B.
CHANNEL_ORDER = ("past", "present", "future")


class ChannelComposer:
    """Stack three luminance rasters into one RGB composite."""

    def compose(
        self,
        past_lum: Raster,
        present_lum: Raster,
        future_lum: Raster,
        *,
        triple: Optional[TemporalTriple] = None,
    ) -> CompositeImage:
        layers = (past_lum, present_lum, future_lum)

        for name, layer in zip(CHANNEL_ORDER, layers):
            if layer.depth != LUMINANCE_DEPTH:
                raise InvalidChannelCount(
                    f"{name} luminance must have depth {LUMINANCE_DEPTH}, got {layer.depth}"
                )

        sizes = {layer.size for layer in layers}
        if len(sizes) != 1:
            described = ", ".join(
                f"{name}={layer.width}x{layer.height}" for name, layer in zip(CHANNEL_ORDER, layers)
            )
            raise RasterMismatch(f"Luminance rasters disagree on size: {described}")

        dtypes = {layer.dtype for layer in layers}
        if len(dtypes) != 1:
            described = ", ".join(
                f"{name}={layer.dtype}" for name, layer in zip(CHANNEL_ORDER, layers)
            )
            raise RasterMismatch(f"Luminance rasters disagree on sample type: {described}")

        stacked = np.stack([layer.samples for layer in layers], axis=-1)
        return CompositeImage(raster=Raster(stacked), triple=triple)


__all__ = ["CHANNEL_ORDER", "ChannelComposer"]
