"""
Temporal RGB composition: encode the luminance of three instants of a video
(past, present, future) into the red, green and blue channels of one still.
"""

from .composer import ChannelComposer
from .errors import (
    FrameUnavailable,
    InvalidChannelCount,
    InvalidOffset,
    OutOfRange,
    RasterMismatch,
    TemporalRGBError,
)
from .luminance import LuminanceConverter
from .models import CompositeImage, Raster, SampledFrames, TemporalTriple
from .pipeline import VAMRGBPipeline
from .sampler import TemporalSampler
from .sources import ArrayFrameSource, FrameSource, VideoFrameSource

__version__ = "0.1.0"

__all__ = [
    "ArrayFrameSource",
    "ChannelComposer",
    "CompositeImage",
    "FrameSource",
    "FrameUnavailable",
    "InvalidChannelCount",
    "InvalidOffset",
    "LuminanceConverter",
    "OutOfRange",
    "Raster",
    "RasterMismatch",
    "SampledFrames",
    "TemporalRGBError",
    "TemporalSampler",
    "TemporalTriple",
    "VAMRGBPipeline",
    "VideoFrameSource",
]
