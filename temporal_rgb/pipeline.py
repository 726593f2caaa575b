"""Orchestration of sampling, luminance conversion and channel composition."""

from __future__ import annotations

from typing import Optional

from temporal_rgb.composer import ChannelComposer
from temporal_rgb.luminance import LuminanceConverter
from temporal_rgb.models import CompositeImage
from temporal_rgb.sampler import TemporalSampler
from temporal_rgb.sources import FrameSource

DEFAULT_DELTA_T = 0.5


class VAMRGBPipeline:
    """Build temporal RGB composites from a frame source.

    Holds no per-call state: every ``generate`` call is independent and may
    run concurrently with others against the same source, provided the
    source itself supports concurrent reads. Errors from the stages
    propagate unchanged.
    """

    def __init__(
        self,
        *,
        sampler: Optional[TemporalSampler] = None,
        converter: Optional[LuminanceConverter] = None,
        composer: Optional[ChannelComposer] = None,
    ) -> None:
        self.sampler = sampler or TemporalSampler()
        self.converter = converter or LuminanceConverter()
        self.composer = composer or ChannelComposer()

    def generate(
        self,
        source: FrameSource,
        reference_time: float,
        delta_t: float = DEFAULT_DELTA_T,
    ) -> CompositeImage:
        sampled = self.sampler.sample(source, reference_time, delta_t)
        past, present, future = (self.converter.convert(frame) for frame in sampled.frames())
        return self.composer.compose(past, present, future, triple=sampled.triple)


__all__ = ["DEFAULT_DELTA_T", "VAMRGBPipeline"]
