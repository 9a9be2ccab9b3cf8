# asdf_sort/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, errors, and lightweight helpers.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .constants import (
    BLACK_VALUE,
    BRIGHT_VALUE,
    DARK_VALUE,
    INT32_MAX,
    INT32_MIN,
    LUMA_RANGE,
    WHITE_VALUE,
)

# Basic aliases

RGBTuple = Tuple[int, int, int]
HexStr = str

U8Image = NDArray[np.uint8]  # (H, W, 3)
U8Mask = NDArray[np.uint8]  # (H, W)
U8Pixels = NDArray[np.uint8]  # (N, 4) flat RGBA, row-major
Packed = NDArray[np.int64]  # (...) signed packed colours
Luma = NDArray[np.int64]  # (...) integer luminance 0..255
BoolLine = NDArray[np.bool_]  # (n,) per-scanline predicate

# Callable signatures

ProgressSink = Callable[[float, str], None]  # (percent 0..100, label)
CancelCheck = Callable[[], bool]


# Errors


class InvalidArgumentError(ValueError):
    """Malformed buffer, mode, or threshold. Raised before any pixel is touched."""


class SortCancelledError(RuntimeError):
    """A cancellation check asked the engine to stop. No output is produced."""


# Value objects


@dataclass(frozen=True)
class PixelBuffer:
    """
    Decoded RGBA image.

    data is uint8 (width*height, 4), row-major: pixel (x, y) lives at x + y*width.
    Validation happens in check_pixel_buffer(), not at construction, so that a
    malformed buffer can still be handed to the engine and rejected there.
    """

    width: int
    height: int
    data: Any

    @classmethod
    def from_array(cls, image: np.ndarray) -> "PixelBuffer":
        """Build from (H,W,4) RGBA or (H,W,3) RGB uint8. RGB gets opaque alpha."""
        arr = np.asarray(image)
        if arr.ndim != 3 or arr.shape[-1] not in (3, 4):
            raise InvalidArgumentError(f"expected (H,W,3|4) image, got {arr.shape}")
        height, width = int(arr.shape[0]), int(arr.shape[1])
        if arr.shape[-1] == 3:
            rgba = np.full((height, width, 4), 255, dtype=np.uint8)
            rgba[..., :3] = arr
        else:
            rgba = arr.astype(np.uint8, copy=True)
        return cls(width, height, rgba.reshape(-1, 4))

    @classmethod
    def from_rgb_alpha(cls, rgb: U8Image, alpha: U8Mask) -> "PixelBuffer":
        height, width = int(rgb.shape[0]), int(rgb.shape[1])
        out = np.empty((height, width, 4), dtype=np.uint8)
        out[..., :3] = rgb
        out[..., 3] = alpha
        return cls(width, height, out.reshape(-1, 4))

    def as_array(self) -> np.ndarray:
        """(H, W, 4) uint8 view of the pixel data."""
        return np.asarray(self.data, dtype=np.uint8).reshape(self.height, self.width, 4)

    @property
    def rgb(self) -> U8Image:
        return self.as_array()[..., :3]

    @property
    def alpha(self) -> U8Mask:
        return self.as_array()[..., 3]


@dataclass(frozen=True)
class SortConfig:
    """
    The four thresholds. Only the pair belonging to the active mode is read.

    white_value / black_value compare against the signed packed colour,
    bright_value / dark_value against integer luminance.
    """

    white_value: int = WHITE_VALUE
    black_value: int = BLACK_VALUE
    bright_value: int = BRIGHT_VALUE
    dark_value: int = DARK_VALUE

    def with_thresholds(
        self,
        white: Optional[int] = None,
        black: Optional[int] = None,
        bright: Optional[int] = None,
        dark: Optional[int] = None,
    ) -> "SortConfig":
        """Copy with the given thresholds replaced. None keeps the current value."""
        changes = {}
        if white is not None:
            changes["white_value"] = white
        if black is not None:
            changes["black_value"] = black
        if bright is not None:
            changes["bright_value"] = bright
        if dark is not None:
            changes["dark_value"] = dark
        return replace(self, **changes)

    def validate(self) -> "SortConfig":
        for name in ("white_value", "black_value"):
            value = getattr(self, name)
            _require_int(name, value)
            if not INT32_MIN <= int(value) <= INT32_MAX:
                raise InvalidArgumentError(
                    f"{name}={value} does not fit a signed 32-bit integer"
                )
        lo, hi = LUMA_RANGE
        for name in ("bright_value", "dark_value"):
            value = getattr(self, name)
            _require_int(name, value)
            if not lo <= int(value) <= hi:
                raise InvalidArgumentError(f"{name}={value} outside [{lo}, {hi}]")
        return self

    def threshold_for(self, field: str) -> int:
        return int(getattr(self, field))


# Small helpers


def _require_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")


def clamp_value(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]."""
    return lo if value < lo else hi if value > hi else value


def rgb_to_hex(rgb: RGBTuple) -> HexStr:
    """RGB tuple to lowercase hex string '#rrggbb'."""
    return f"#{rgb[0]:02x}{rgb[1]:02x}{rgb[2]:02x}"


def hex_to_rgb(hex_str: str) -> RGBTuple:
    """Parse '#rgb' or '#rrggbb' (case-insensitive) into an RGB tuple."""
    s = hex_str.strip().lower()
    if not s.startswith("#"):
        raise ValueError("hex must start with '#'")
    if len(s) == 4:
        r, g, b = s[1], s[2], s[3]
        s = f"#{r}{r}{g}{g}{b}{b}"
    if len(s) != 7:
        raise ValueError("hex must be '#rrggbb' or '#rgb'")
    return (int(s[1:3], 16), int(s[3:5], 16), int(s[5:7], 16))


def check_pixel_buffer(buffer: PixelBuffer) -> U8Pixels:
    """
    Validate a PixelBuffer and return its data as a (N, 4) uint8 array.

    Accepts numpy arrays of shape (N,4) or (H,W,4), flat sequences of 4*N
    channel values, and raw bytes. Raises InvalidArgumentError otherwise.
    """
    width, height = buffer.width, buffer.height
    for name, value in (("width", width), ("height", height)):
        _require_int(name, value)
        if int(value) < 1:
            raise InvalidArgumentError(f"{name} must be >= 1, got {value}")
    n_pixels = int(width) * int(height)

    raw = buffer.data
    if raw is None:
        raise InvalidArgumentError("pixel data is missing")
    if isinstance(raw, (bytes, bytearray, memoryview)):
        arr = np.frombuffer(raw, dtype=np.uint8)
    else:
        arr = np.asarray(raw)

    if arr.dtype != np.uint8:
        if arr.size and arr.dtype.kind not in "iu":
            raise InvalidArgumentError(f"pixel data must be integers, got {arr.dtype}")
        if arr.size and (arr.min() < 0 or arr.max() > 255):
            raise InvalidArgumentError("pixel channel values must be within [0, 255]")
        arr = arr.astype(np.uint8)

    if arr.ndim == 1 and arr.size == 4 * n_pixels:
        arr = arr.reshape(-1, 4)
    elif arr.ndim == 3 and arr.shape == (int(height), int(width), 4):
        arr = arr.reshape(-1, 4)

    if arr.ndim != 2 or arr.shape != (n_pixels, 4):
        raise InvalidArgumentError(
            f"pixel data shape {arr.shape} does not match {width}x{height} RGBA"
        )
    return arr


__all__ = [
    # aliases / types
    "RGBTuple",
    "HexStr",
    "U8Image",
    "U8Mask",
    "U8Pixels",
    "Packed",
    "Luma",
    "BoolLine",
    "ProgressSink",
    "CancelCheck",
    # errors
    "InvalidArgumentError",
    "SortCancelledError",
    # value objects
    "PixelBuffer",
    "SortConfig",
    # helpers
    "clamp_value",
    "rgb_to_hex",
    "hex_to_rgb",
    "check_pixel_buffer",
]
