# asdf_sort/image_io.py
from __future__ import annotations

import io
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, ImageCms, ImageOps, UnidentifiedImageError

from .core_types import InvalidArgumentError, PixelBuffer, check_pixel_buffer

"""
Decode/encode between image files and RGBA PixelBuffers, plus the optional
pre-sort downscale.

Alpha is passed through verbatim in both directions.
"""

_RESAMPLE = {
    "nearest": Image.Resampling.NEAREST,
    "bilinear": Image.Resampling.BILINEAR,
    "bicubic": Image.Resampling.BICUBIC,
    "lanczos": Image.Resampling.LANCZOS,
}


def _embedded_profile_to_srgb(im: Image.Image) -> Optional[Image.Image]:
    """RGBA copy converted from the embedded ICC profile, or None if not applicable."""
    icc = im.info.get("icc_profile")
    if not icc or im.mode not in ("RGB", "RGBA"):
        return None
    try:
        return ImageCms.profileToProfile(
            im,
            ImageCms.ImageCmsProfile(io.BytesIO(icc)),
            ImageCms.createProfile("sRGB"),
            renderingIntent=ImageCms.Intent.PERCEPTUAL,
            outputMode="RGBA",
        )
    except (ImageCms.PyCMSError, OSError, ValueError):
        return None


def _to_srgb_rgba(im: Image.Image) -> Image.Image:
    upright = ImageOps.exif_transpose(im)
    converted = _embedded_profile_to_srgb(upright)
    return converted if converted is not None else upright.convert("RGBA")


def load_image_rgba(path: Path) -> PixelBuffer:
    """Decode any Pillow-readable image into an RGBA PixelBuffer."""
    with Image.open(path) as src:
        rgba = np.asarray(_to_srgb_rgba(src), dtype=np.uint8)
    return PixelBuffer.from_array(rgba)


def save_image_rgba(path: Path, buffer: PixelBuffer) -> Path:
    """Encode a PixelBuffer as PNG. Any other suffix is replaced by .png."""
    target = Path(path)
    if target.suffix.lower() != ".png":
        target = target.with_suffix(".png")
    pixels = check_pixel_buffer(buffer)
    frame = np.ascontiguousarray(pixels.reshape(int(buffer.height), int(buffer.width), 4))
    Image.fromarray(frame).save(target, format="PNG")
    return target


def pillow_resample_from_name(name: str) -> Image.Resampling:
    """Filter name to a Pillow resampling enum. Unknown names fall back to bicubic."""
    return _RESAMPLE.get(name, Image.Resampling.BICUBIC)


def resize_to_max_width(
    buffer: PixelBuffer,
    max_width: Optional[int],
    resample: Union[Image.Resampling, str] = Image.Resampling.LANCZOS,
) -> PixelBuffer:
    """
    Downscale so width <= max_width, keeping the aspect ratio.
    Returns the same buffer object when no resize is needed.
    """
    if max_width is None:
        return buffer
    if int(max_width) < 1:
        raise InvalidArgumentError(f"max_width must be >= 1, got {max_width}")
    pixels = check_pixel_buffer(buffer)
    w0, h0 = int(buffer.width), int(buffer.height)
    if w0 <= int(max_width):
        return buffer

    if isinstance(resample, str):
        resample = pillow_resample_from_name(resample)
    new_w = int(max_width)
    new_h = max(1, int(round(h0 * new_w / w0)))
    src = Image.fromarray(np.ascontiguousarray(pixels.reshape(h0, w0, 4)))
    return PixelBuffer.from_array(np.asarray(src.resize((new_w, new_h), resample=resample)))


def is_image_file(path: Path) -> bool:
    """True when Pillow can fully decode the first frame."""
    try:
        with Image.open(path) as im:
            im.load()
    except (UnidentifiedImageError, OSError):
        return False
    return True


__all__ = [
    "load_image_rgba",
    "save_image_rgba",
    "pillow_resample_from_name",
    "resize_to_max_width",
    "is_image_file",
]
