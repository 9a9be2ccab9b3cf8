# asdf_sort/engine/__init__.py
"""
Sort engine API.

Provides:
  sort_pixels(buffer, mode="white", config=None, on_progress=None, *,
              should_cancel=None, workers=1, debug=False) -> PixelBuffer
    Sort runs along every column, then every row, of an RGBA buffer.

    Args:
      buffer        : PixelBuffer, (W*H,4) uint8 RGBA row-major
      mode          : "white" | "black" | "bright" | "dark" (or 0..3)
      config        : SortConfig thresholds
      on_progress   : (percent, label) sink, optional
      should_cancel : () -> bool, polled every 10 scanlines, optional
      workers       : threads per phase

    Returns:
      PixelBuffer of the same size. Alpha is copied from the input.

  sort_rgba_array(rgba, mode, config=None, ...) -> uint8 [H,W,4]
  PixelSorter(config).sort(buffer, mode, on_progress)

  iter_runs / sort_line / run_coverage
    Scanline primitives shared by both phases.

Notes:
  - The last column is never column-sorted and the last row is never row-sorted.
  - Within a run only [start, end) is sorted; the run's last pixel stays put.
  - The in-run order is the signed packed colour (red-major), in every mode.
"""

from .run import PixelSorter, sort_pixels, sort_rgba_array
from .scan import iter_runs, run_coverage, sort_line

__all__ = [
    "sort_pixels",
    "sort_rgba_array",
    "PixelSorter",
    "iter_runs",
    "sort_line",
    "run_coverage",
]
