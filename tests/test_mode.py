"""Tests for mode resolution and the run predicate table."""

import numpy as np
import pytest

from asdf_sort.colour_convert import pack_rgb
from asdf_sort.core_types import InvalidArgumentError, SortConfig
from asdf_sort.mode import MODE_RULES, resolve_mode, run_predicates


@pytest.mark.parametrize(
    "requested,expected",
    [
        ("white", "white"),
        ("BLACK", "black"),
        (" Bright ", "bright"),
        ("dark", "dark"),
        (0, "white"),
        (1, "black"),
        (2, "bright"),
        (3, "dark"),
        ("3", "dark"),
        (np.int64(2), "bright"),
    ],
)
def test_resolve_mode_accepts_names_and_ids(requested, expected):
    assert resolve_mode(requested) == expected


@pytest.mark.parametrize("requested", ["sepia", "", 4, -1, True, None, 2.0])
def test_resolve_mode_rejects_unknown(requested):
    with pytest.raises(InvalidArgumentError):
        resolve_mode(requested)


def test_every_mode_has_a_rule():
    assert set(MODE_RULES) == {"white", "black", "bright", "dark"}


def test_white_predicates_on_packed_values():
    cfg = SortConfig(white_value=-100)
    packed = np.array([-101, -100, -99, -1], dtype=np.int64)
    start_ok, keep_going = run_predicates(packed, "white", cfg)
    assert start_ok.tolist() == [False, True, True, True]
    assert keep_going.tolist() == [False, False, True, True]


def test_black_predicates_on_packed_values():
    cfg = SortConfig(black_value=-100)
    packed = np.array([-101, -100, -99], dtype=np.int64)
    start_ok, keep_going = run_predicates(packed, "black", cfg)
    assert start_ok.tolist() == [True, True, False]
    assert keep_going.tolist() == [True, False, False]


def test_luma_predicates_use_luminance_not_packed():
    cfg = SortConfig(bright_value=100, dark_value=100)
    # luminance 76 (red) vs 150 (green)
    packed = pack_rgb(np.array([[255, 0, 0], [0, 255, 0], [100, 100, 100]], dtype=np.uint8))
    bright_start, bright_keep = run_predicates(packed, "bright", cfg)
    dark_start, dark_keep = run_predicates(packed, "dark", cfg)
    assert bright_start.tolist() == [False, True, True]
    assert bright_keep.tolist() == [False, True, False]
    assert dark_start.tolist() == [True, False, True]
    assert dark_keep.tolist() == [True, False, False]


def test_predicates_keep_array_shape():
    packed = pack_rgb(np.zeros((5, 7, 3), dtype=np.uint8))
    start_ok, keep_going = run_predicates(packed, "dark", SortConfig())
    assert start_ok.shape == (5, 7)
    assert keep_going.shape == (5, 7)
    assert start_ok.all() and keep_going.all()
