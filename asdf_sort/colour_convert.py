# asdf_sort/colour_convert.py
from __future__ import annotations

"""
Packed-colour conversions and luminance.

Exports:
  pack_rgb(rgb)            (...,3) uint8 -> (...) int64 signed packed
  unpack_rgb(packed)       (...) int64 -> (...,3) uint8
  luminance(packed)        (...) int64 -> (...) int64 in 0..255
  packed_to_hex(value)     int -> '#rrggbb'
  hex_to_packed(hex_str)   '#rrggbb' | '#rgb' -> int

A packed colour is (r<<16 | g<<8 | b | 0xFF000000) read as a signed 32-bit
integer, i.e. rgb - 2**24. Every packed value is negative: pure black is
-16777216 and pure white is -1. Working arrays are int64 so comparisons with
thresholds never wrap.
"""

import numpy as np

from .constants import LUMA_B, LUMA_G, LUMA_R, PACKED_MIN, RGB_MASK
from .core_types import Luma, Packed, U8Image, hex_to_rgb, rgb_to_hex


def pack_rgb(rgb: np.ndarray) -> Packed:
    """
    Pack RGB channels into signed packed colours.
    Accepts any integer array (...,3); channels are clamped to 0..255 first.
    """
    chans = np.clip(np.asarray(rgb).astype(np.int64, copy=False), 0, 255)
    rgb24 = (chans[..., 0] << 16) | (chans[..., 1] << 8) | chans[..., 2]
    return rgb24 + PACKED_MIN


def unpack_rgb(packed: np.ndarray) -> U8Image:
    """Recover (...,3) uint8 RGB from packed colours. The flag byte is dropped."""
    rgb24 = np.asarray(packed, dtype=np.int64) & RGB_MASK
    out = np.empty(rgb24.shape + (3,), dtype=np.uint8)
    out[..., 0] = (rgb24 >> 16) & 0xFF
    out[..., 1] = (rgb24 >> 8) & 0xFF
    out[..., 2] = rgb24 & 0xFF
    return out


def luminance(packed: np.ndarray) -> Luma:
    """
    Integer luminance round(0.299 R + 0.587 G + 0.114 B).

    Rounds half up (floor(x + 0.5)), not half to even, and sums left to right
    in float64, so .5 ties always go up.
    """
    rgb24 = np.asarray(packed, dtype=np.int64) & RGB_MASK
    r = ((rgb24 >> 16) & 0xFF).astype(np.float64)
    g = ((rgb24 >> 8) & 0xFF).astype(np.float64)
    b = (rgb24 & 0xFF).astype(np.float64)
    return np.floor(LUMA_R * r + LUMA_G * g + LUMA_B * b + 0.5).astype(np.int64)


def packed_to_hex(value: int) -> str:
    """Signed packed colour to '#rrggbb'."""
    rgb24 = int(value) & RGB_MASK
    return rgb_to_hex(((rgb24 >> 16) & 0xFF, (rgb24 >> 8) & 0xFF, rgb24 & 0xFF))


def hex_to_packed(hex_str: str) -> int:
    """'#rrggbb' or '#rgb' to the signed packed value used by White/Black thresholds."""
    r, g, b = hex_to_rgb(hex_str)
    return ((r << 16) | (g << 8) | b) + PACKED_MIN


__all__ = [
    "pack_rgb",
    "unpack_rgb",
    "luminance",
    "packed_to_hex",
    "hex_to_packed",
]
