"""End-to-end tests for the asdf_pixel_sort command line."""

import io
import sys

import numpy as np
import pytest

from asdf_pixel_sort import main, parse_cli_args
from asdf_sort.colour_convert import hex_to_packed
from asdf_sort.constants import WHITE_RANGE
from asdf_sort.core_types import PixelBuffer, SortConfig
from asdf_sort.engine import sort_pixels
from asdf_sort.image_io import load_image_rgba, save_image_rgba
from conftest import random_rgba


@pytest.fixture
def image_file(tmp_path):
    rgba = random_rgba(24, 30, seed=21)
    path = save_image_rgba(tmp_path / "photo.png", PixelBuffer.from_array(rgba))
    return path, rgba


def test_parse_defaults(tmp_path):
    args = parse_cli_args([str(tmp_path)])
    assert args.mode == "white"
    assert args.white is None and args.bright is None
    assert args.max_width is None
    assert args.jobs == 1
    assert args.progress is True


def test_parse_threshold_forms(tmp_path):
    args = parse_cli_args(
        [str(tmp_path), "--mode", "2", "--white", "#43a0b2", "--black=-0x10", "--max-width"]
    )
    assert args.mode == "bright"
    assert args.white == hex_to_packed("#43a0b2")
    assert args.black == -16
    assert args.max_width == 800


def test_parse_rejects_unknown_mode(tmp_path):
    with pytest.raises(SystemExit):
        parse_cli_args([str(tmp_path), "--mode", "sepia"])


def test_single_file(image_file):
    path, rgba = image_file
    rc = main([str(path), "--mode", "bright", "--bright", "60", "--no-progress", "--workers", "1"])
    assert rc == 0
    out_path = path.with_name("photo_sorted.png")
    expected = sort_pixels(PixelBuffer.from_array(rgba), "bright", SortConfig(bright_value=60))
    np.testing.assert_array_equal(load_image_rgba(out_path).as_array(), expected.as_array())


def test_single_file_hex_white(image_file):
    path, rgba = image_file
    rc = main([str(path), "--white", "#808080", "--no-progress", "--workers", "2", "--debug"])
    assert rc == 0
    expected = sort_pixels(
        PixelBuffer.from_array(rgba), "white", SortConfig(white_value=hex_to_packed("#808080"))
    )
    out = load_image_rgba(path.with_name("photo_sorted.png"))
    np.testing.assert_array_equal(out.as_array(), expected.as_array())


def test_max_width_downscales(image_file):
    path, _ = image_file
    assert main([str(path), "--max-width", "15", "--no-progress", "--workers", "1"]) == 0
    out = load_image_rgba(path.with_name("photo_sorted.png"))
    assert (out.width, out.height) == (15, 12)


def test_folder_mode(tmp_path):
    src = tmp_path / "in"
    src.mkdir()
    for i in range(3):
        save_image_rgba(src / f"img{i}.png", PixelBuffer.from_array(random_rgba(8, 10, seed=i)))
    save_image_rgba(src / "old_sorted.png", PixelBuffer.from_array(random_rgba(4, 4)))
    (src / "notes.txt").write_text("skip me")
    outdir = tmp_path / "out"

    rc = main([str(src), "--outdir", str(outdir), "--jobs", "2", "--workers", "1", "--mode", "dark"])
    assert rc == 0
    assert sorted(p.name for p in outdir.iterdir()) == [
        "img0_sorted.png",
        "img1_sorted.png",
        "img2_sorted.png",
    ]


def test_folder_mode_reports_broken_file(tmp_path, capsys):
    src = tmp_path / "in"
    src.mkdir()
    save_image_rgba(src / "good.png", PixelBuffer.from_array(random_rgba(6, 6)))
    (src / "broken.png").write_bytes(b"garbage")
    rc = main([str(src), "--no-progress", "--workers", "1"])
    assert rc == 1
    assert (src / "good_sorted.png").exists()
    assert "[error] broken.png" in capsys.readouterr().err


def test_missing_source(tmp_path, capsys):
    assert main([str(tmp_path / "nope.png")]) == 2
    assert "not found" in capsys.readouterr().err


def test_bad_threshold_exit_code(image_file, capsys):
    path, _ = image_file
    assert main([str(path), "--mode", "bright", "--bright", "300"]) == 2
    assert "bright_value=300" in capsys.readouterr().err
    assert not path.with_name("photo_sorted.png").exists()


def test_bad_worker_count_exit_code(image_file):
    path, _ = image_file
    assert main([str(path), "--workers", "0"]) == 2


@pytest.mark.parametrize("max_width", ["0", "-5"])
def test_bad_max_width_exit_code(image_file, max_width):
    path, _ = image_file
    assert main([str(path), f"--max-width={max_width}", "--workers", "1"]) == 2
    assert not path.with_name("photo_sorted.png").exists()


def test_help_lists_threshold_ranges(tmp_path, capsys):
    with pytest.raises(SystemExit):
        parse_cli_args(["--help"])
    out = capsys.readouterr().out
    assert f"{WHITE_RANGE[0]}..{WHITE_RANGE[1]}" in out
    assert "-16777216..-1" in out


def test_parallel_folder_keeps_stdout_and_prints_every_file(tmp_path, monkeypatch):
    src = tmp_path / "in"
    src.mkdir()
    names = [f"img{i}" for i in range(8)]
    for i, name in enumerate(names):
        save_image_rgba(src / f"{name}.png", PixelBuffer.from_array(random_rgba(12, 16, seed=i)))

    console = io.StringIO()
    monkeypatch.setattr(sys, "stdout", console)
    for _ in range(3):
        assert main([str(src), "--jobs", "4", "--workers", "1", "--no-progress"]) == 0
        assert sys.stdout is console

    text = console.getvalue()
    for name in names:
        assert text.count(f"Wrote {name}_sorted.png") == 3
    # each file's block comes out whole and in name order
    last_run = text[text.rindex("[run]"):]
    positions = [last_run.index(f"--- {name}.png ---") for name in names]
    assert positions == sorted(positions)
    for name, start in zip(names, positions):
        block_end = last_run.find("--- ", start + 4)
        block = last_run[start:] if block_end < 0 else last_run[start:block_end]
        assert f"Wrote {name}_sorted.png" in block
