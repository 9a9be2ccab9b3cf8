"""
Conftest: shared fixtures for asdf_sort tests.

1. Synthetic images (random RGBA, grey ramps) built from numpy arrays
2. A literal pixel-by-pixel sorter used to cross-check the engine
"""

import math

import numpy as np
import pytest

from asdf_sort.core_types import PixelBuffer, SortConfig


def grey_rgba(values, alpha=255):
    """(H,W) grey levels -> (H,W,4) uint8 with R=G=B=value."""
    v = np.asarray(values, dtype=np.uint8)
    out = np.empty(v.shape + (4,), dtype=np.uint8)
    out[..., 0] = v
    out[..., 1] = v
    out[..., 2] = v
    out[..., 3] = alpha
    return out


def random_rgba(h, w, seed=42):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, (h, w, 4), dtype=np.uint8)


# ---------------------------------------------------------------------------
# Naive sorter: scans with the predicates re-evaluated on live values,
# one pixel at a time, over a flat list of signed packed ints.
# ---------------------------------------------------------------------------


def _lum(color):
    rgb = color & 0xFFFFFF
    r, g, b = (rgb >> 16) & 0xFF, (rgb >> 8) & 0xFF, rgb & 0xFF
    return math.floor(0.299 * r + 0.587 * g + 0.114 * b + 0.5)


def _rules(mode, cfg):
    if mode == "white":
        t = cfg.white_value
        return (lambda c: c < t), (lambda c: c > t)
    if mode == "black":
        t = cfg.black_value
        return (lambda c: c > t), (lambda c: c < t)
    if mode == "bright":
        t = cfg.bright_value
        return (lambda c: _lum(c) < t), (lambda c: _lum(c) > t)
    t = cfg.dark_value
    return (lambda c: _lum(c) > t), (lambda c: _lum(c) < t)


def _sort_scanline(px, index_of, n, skip, inside):
    pos = 0
    end = 0
    while end < n - 1:
        p = pos
        while skip(px[index_of(p)]):
            p += 1
            if p >= n:
                return
        start = p
        q = start + 1
        while q < n and inside(px[index_of(q)]):
            q += 1
        end = q - 1
        length = end - start
        if length > 1:
            chunk = sorted(px[index_of(start + i)] for i in range(length))
            for i in range(length):
                px[index_of(start + i)] = chunk[i]
        pos = end + 1


def naive_sort(rgba, mode, cfg=None):
    cfg = cfg or SortConfig()
    h, w, _ = rgba.shape
    px = [
        ((int(r) << 16) | (int(g) << 8) | int(b)) - (1 << 24)
        for r, g, b in rgba[..., :3].reshape(-1, 3).tolist()
    ]
    skip, inside = _rules(mode, cfg)
    for c in range(w - 1):
        _sort_scanline(px, lambda y, c=c: c + y * w, h, skip, inside)
    for r in range(h - 1):
        _sort_scanline(px, lambda x, r=r: x + r * w, w, skip, inside)

    out = rgba.copy()
    flat = out.reshape(-1, 4)
    for i, color in enumerate(px):
        rgb = color & 0xFFFFFF
        flat[i, 0] = (rgb >> 16) & 0xFF
        flat[i, 1] = (rgb >> 8) & 0xFF
        flat[i, 2] = rgb & 0xFF
    return out


@pytest.fixture
def naive():
    return naive_sort


@pytest.fixture
def random_buffer():
    return PixelBuffer.from_array(random_rgba(23, 17))


@pytest.fixture
def progress_log():
    calls = []

    def sink(percent, label):
        calls.append((percent, label))

    sink.calls = calls
    return sink
