# asdf_sort/__init__.py
"""
asdf_sort package.

Purpose:
  ASDF-style pixel sorting: reorder RGB values inside threshold-bounded runs
  along every column, then every row. See asdf_pixel_sort.py for the CLI.

Public API:
  sort_pixels     : sort an RGBA PixelBuffer (columns, then rows).
  sort_rgba_array : same, on a (H,W,4) uint8 array.
  PixelSorter     : keeps thresholds between calls.
  PixelBuffer     : width, height, flat RGBA data.
  SortConfig      : the four thresholds (white, black, bright, dark).
  colour_convert  : packed colour helpers (pack_rgb, unpack_rgb, luminance).
  mode            : sort modes and their run predicates.
  image_io        : Pillow decode/encode and the optional downscale.
  utils           : shared helpers (formatting, progress, logging).

Quick start:
  from asdf_sort import PixelBuffer, SortConfig, sort_pixels
  out = sort_pixels(PixelBuffer.from_array(rgba), "bright", SortConfig(bright_value=90))
"""

__version__ = "0.1.0"

# Re-export namespaces for convenience.
from . import constants
from . import core_types
from . import colour_convert
from . import mode
from . import utils
from . import engine
from . import image_io

from .core_types import (  # noqa: E402
    InvalidArgumentError,
    PixelBuffer,
    SortCancelledError,
    SortConfig,
)
from .mode import SortMode, resolve_mode  # noqa: E402
from .engine import PixelSorter, sort_pixels, sort_rgba_array  # noqa: E402

__all__ = [
    "__version__",
    "constants",
    "core_types",
    "colour_convert",
    "mode",
    "utils",
    "engine",
    "image_io",
    "InvalidArgumentError",
    "SortCancelledError",
    "PixelBuffer",
    "SortConfig",
    "SortMode",
    "resolve_mode",
    "PixelSorter",
    "sort_pixels",
    "sort_rgba_array",
]
