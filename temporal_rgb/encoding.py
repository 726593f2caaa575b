"""Still-image encoding for composites and luminance rasters."""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from temporal_rgb.models import CompositeImage, Raster

SUPPORTED_FORMATS = {"png": ".png", "jpg": ".jpg", "jpeg": ".jpg"}


def _as_raster(image: Union[Raster, CompositeImage]) -> Raster:
    if isinstance(image, CompositeImage):
        return image.raster
    return image


def to_uint8(
    image: Union[Raster, CompositeImage],
    value_range: Optional[float] = None,
) -> np.ndarray:
    """Scale samples into 8-bit display range.

    ``uint8`` samples pass through. Other integer types scale by their dtype
    maximum, floats are treated as normalized ``[0, 1]`` unless
    ``value_range`` says otherwise. Rounds half to even and clips to
    ``[0, 255]``.
    """
    raster = _as_raster(image)
    samples = raster.samples
    if samples.dtype == np.uint8 and value_range is None:
        return samples.copy()

    if value_range is None:
        value_range = float(np.iinfo(samples.dtype).max) if raster.is_integer else 1.0
    if value_range <= 0:
        raise ValueError(f"value_range must be > 0, got {value_range}")

    scaled = samples.astype(np.float64) * (255.0 / value_range)
    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def encode_image(
    image: Union[Raster, CompositeImage],
    fmt: str = "png",
    *,
    jpeg_quality: int = 95,
    value_range: Optional[float] = None,
) -> bytes:
    """Encode an RGB or single-channel raster into PNG or JPEG bytes."""
    extension = SUPPORTED_FORMATS.get(fmt.lower())
    if extension is None:
        raise ValueError(
            f"Unsupported image format '{fmt}'. Expected one of: {', '.join(sorted(SUPPORTED_FORMATS))}"
        )

    pixels = to_uint8(image, value_range)
    if pixels.ndim == 3:
        # OpenCV encoders expect BGR channel order.
        pixels = cv2.cvtColor(pixels, cv2.COLOR_RGB2BGR)

    params = []
    if extension == ".jpg":
        params = [int(cv2.IMWRITE_JPEG_QUALITY), max(1, min(100, int(jpeg_quality)))]

    success, buffer = cv2.imencode(extension, pixels, params)
    if not success:
        raise RuntimeError(f"Failed to encode {pixels.shape} image as {fmt}")
    return buffer.tobytes()


def write_image(
    image: Union[Raster, CompositeImage],
    output_path: Union[str, Path],
    *,
    fmt: Optional[str] = None,
    jpeg_quality: int = 95,
    value_range: Optional[float] = None,
) -> Path:
    """Encode ``image`` and write it to ``output_path`` atomically.

    The format defaults to the file suffix, then to PNG.
    """
    path = Path(output_path)
    image_format = fmt or path.suffix.lstrip(".") or "png"
    payload = encode_image(
        image,
        image_format,
        jpeg_quality=jpeg_quality,
        value_range=value_range,
    )

    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(f".tmp_{uuid.uuid4().hex}_{path.name}")
    try:
        temp_path.write_bytes(payload)
        temp_path.replace(path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return path


__all__ = ["SUPPORTED_FORMATS", "encode_image", "to_uint8", "write_image"]
