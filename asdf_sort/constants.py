# asdf_sort/constants.py
"""
Threshold defaults and tunables used across the project.

- Packed colour layout (RGB_MASK, PACKED_MIN/MAX)
- Default thresholds for the four sort modes and their UI ranges
- Luminance weights
- Progress / CLI defaults
"""
from __future__ import annotations

from typing import Dict, Tuple

# =========================
# Packed colour layout
# =========================

RGB_MASK = 0x00FFFFFF

# Signed 32-bit range of a packed colour: black is the minimum, white is -1.
PACKED_MIN = -(1 << 24)
PACKED_MAX = -1

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1

# =========================
# Threshold defaults
# =========================

# Compared against the signed packed colour.
WHITE_VALUE = -12345678
BLACK_VALUE = -3456789

# Compared against integer luminance in [0, 255].
BRIGHT_VALUE = 127
DARK_VALUE = 223

# Useful threshold ranges for front ends and CLI help (inclusive).
WHITE_RANGE: Tuple[int, int] = (-16581375, 0)
BLACK_RANGE: Tuple[int, int] = (-16581375, 0)
LUMA_RANGE: Tuple[int, int] = (0, 255)

# =========================
# Modes
# =========================

MODE_NAMES: Tuple[str, ...] = ("white", "black", "bright", "dark")
MODE_IDS: Dict[int, str] = {i: name for i, name in enumerate(MODE_NAMES)}

# =========================
# Luminance (Rec. 601 weights)
# =========================

LUMA_R = 0.299
LUMA_G = 0.587
LUMA_B = 0.114

# =========================
# Progress
# =========================

# Report once every N scanlines.
PROGRESS_EVERY = 10

LABEL_COLUMNS = "Sorting columns..."
LABEL_ROWS = "Sorting rows..."
LABEL_DONE = "Complete!"

# =========================
# CLI / IO
# =========================

# Width used by a bare --max-width.
DEFAULT_MAX_WIDTH = 800

OUTPUT_SUFFIX = "_sorted"
IMAGE_EXTS = frozenset({".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif", ".tif", ".tiff"})
