"""Exception taxonomy for temporal RGB composition."""

from __future__ import annotations


class TemporalRGBError(Exception):
    """Base class for every error raised by the composition pipeline."""


class InvalidOffset(TemporalRGBError, ValueError):
    """Raised when the time offset is not a finite number greater than zero."""


class InvalidChannelCount(TemporalRGBError, ValueError):
    """Raised when a raster does not carry the channel depth an operation needs."""


class FrameUnavailable(TemporalRGBError, RuntimeError):
    """Raised when a frame source cannot produce a frame at an in-range timestamp.

    May be transient; retrying is left to the caller.
    """


class RasterMismatch(TemporalRGBError, ValueError):
    """Raised when rasters that must be combined disagree on size or sample type."""


class OutOfRange(TemporalRGBError, ValueError):
    """Raised by frame sources for timestamps outside ``[0, duration]``."""


__all__ = [
    "FrameUnavailable",
    "InvalidChannelCount",
    "InvalidOffset",
    "OutOfRange",
    "RasterMismatch",
    "TemporalRGBError",
]
