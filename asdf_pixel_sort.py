#!/usr/bin/env python3
"""
asdf_pixel_sort.py
Pixel-sort RGBA images ASDF style: runs along every column, then every row.

Usage:
  python asdf_pixel_sort.py INPUT [--mode white|black|bright|dark] [--white V]
      [--black V] [--bright V] [--dark V] [--max-width [W]] [--jobs N]
      [--workers N] [--outdir DIR] [--no-progress] [--debug]

Modes:
  white  : runs start at colours >= the white threshold (packed colour compare).
  black  : runs start at colours <= the black threshold (packed colour compare).
  bright : runs start at luminance >= the bright threshold (0..255).
  dark   : runs start at luminance <= the dark threshold (0..255).

Input:
  Any Pillow-readable image, or a folder of them. Alpha is preserved exactly.

Output:
  PNG. Writes <stem>_sorted.png next to INPUT, or into --outdir.

Notes:
  White/black thresholds accept integers (-12345678, 0x...) or hex colours (#43a0b2).
  --jobs sorts several files at once; --workers splits each sort phase.
"""

from __future__ import annotations

import argparse
import io
import os
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, TextIO, Tuple

import numpy as np

from asdf_sort.colour_convert import hex_to_packed, packed_to_hex
from asdf_sort.constants import (
    BLACK_RANGE,
    DEFAULT_MAX_WIDTH,
    IMAGE_EXTS,
    LUMA_RANGE,
    MODE_NAMES,
    OUTPUT_SUFFIX,
    PACKED_MAX,
    PACKED_MIN,
    WHITE_RANGE,
)
from asdf_sort.core_types import InvalidArgumentError, SortCancelledError, SortConfig
from asdf_sort.engine import sort_pixels
from asdf_sort.image_io import (
    load_image_rgba,
    pillow_resample_from_name,
    resize_to_max_width,
    save_image_rgba,
)
from asdf_sort.mode import SortMode, resolve_mode
from asdf_sort.utils import (
    ConsoleProgress,
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_duration,
    format_pairs,
    log,
    print_banner,
    print_section,
    warn,
)

# Argument types


def _default_workers() -> int:
    """All cores but one or two, so the desktop stays responsive."""
    cores = os.cpu_count() or 2
    return max(1, cores - (1 if cores <= 8 else 2))


def _threshold_arg(text: str) -> int:
    """Integer (any base prefix) or '#rrggbb' colour converted to a packed value."""
    s = text.strip()
    try:
        return hex_to_packed(s) if s.startswith("#") else int(s, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid threshold {text!r}: expected an integer or #rrggbb"
        ) from None


def _mode_arg(text: str) -> SortMode:
    try:
        return resolve_mode(text)
    except InvalidArgumentError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Returns:
      argparse.Namespace with:
        src: image file or folder
        outdir: optional output folder
        mode: "white" | "black" | "bright" | "dark"
        white / black / bright / dark: threshold overrides or None
        max_width: downscale cap or None
        resample: filter name for the downscale
        jobs: files sorted at once
        workers: threads per sort phase
        progress: draw the live progress line
        debug: extra timing and stats
    """
    p = argparse.ArgumentParser(
        prog="asdf_pixel_sort",
        description="Pixel-sort image(s) along columns, then rows.",
    )
    p.add_argument("src", type=Path, help="Image file or folder of images")
    p.add_argument("--outdir", type=Path, default=None, help="Where to write results")
    p.add_argument(
        "--mode",
        type=_mode_arg,
        default="white",
        help=f"Run detection: {', '.join(MODE_NAMES)} (or 0-3). Default white.",
    )

    th = p.add_argument_group(
        "thresholds",
        f"Colours pack to {PACKED_MIN}..{PACKED_MAX} (black..white).",
    )
    th.add_argument(
        "--white",
        type=_threshold_arg,
        default=None,
        help=f"Packed value or #rrggbb, usually {WHITE_RANGE[0]}..{WHITE_RANGE[1]}",
    )
    th.add_argument(
        "--black",
        type=_threshold_arg,
        default=None,
        help=f"Packed value or #rrggbb, usually {BLACK_RANGE[0]}..{BLACK_RANGE[1]}",
    )
    luma = f"Luminance {LUMA_RANGE[0]}-{LUMA_RANGE[1]}"
    th.add_argument("--bright", type=int, default=None, help=luma)
    th.add_argument("--dark", type=int, default=None, help=luma)

    p.add_argument(
        "--max-width",
        type=int,
        nargs="?",
        const=DEFAULT_MAX_WIDTH,
        default=None,
        help=f"Shrink wider images to this width first (bare flag: {DEFAULT_MAX_WIDTH}).",
    )
    p.add_argument(
        "--resample",
        choices=["nearest", "bilinear", "bicubic", "lanczos"],
        default="lanczos",
        help="Filter used by --max-width.",
    )
    p.add_argument("--jobs", type=int, default=1, help="Files sorted at once (folder mode)")
    p.add_argument(
        "--workers", type=int, default=_default_workers(), help="Threads per sort phase"
    )
    p.add_argument(
        "--no-progress", dest="progress", action="store_false", help="No live progress line"
    )
    p.add_argument("--debug", action="store_true", help="Print timings and stats")
    return p.parse_args(argv)


def _build_config(args: argparse.Namespace) -> SortConfig:
    """Defaults with any threshold flags applied. Raises InvalidArgumentError."""
    return (
        SortConfig()
        .with_thresholds(args.white, args.black, args.bright, args.dark)
        .validate()
    )


def _threshold_pairs(mode: SortMode, config: SortConfig) -> List[Tuple[str, object]]:
    """The one threshold the mode reads, for log lines."""
    value = getattr(config, f"{mode}_value")
    if mode in ("white", "black"):
        value = f"{value} ({packed_to_hex(value)})"
    return [(mode.capitalize(), value)]


def _output_path_for(src_path: Path, outdir: Optional[Path]) -> Path:
    name = f"{src_path.stem}{OUTPUT_SUFFIX}.png"
    return outdir / name if outdir is not None else src_path.with_name(name)


def _collect_images(folder: Path) -> List[Path]:
    """Images directly inside folder, skipping earlier outputs, by name."""
    found = [
        p
        for p in folder.iterdir()
        if p.is_file()
        and p.suffix.lower() in IMAGE_EXTS
        and not p.stem.endswith(OUTPUT_SUFFIX)
    ]
    return sorted(found, key=lambda p: p.name.lower())


# Per-file work


def _sort_file(
    src_path: Path,
    args: argparse.Namespace,
    config: SortConfig,
    progress: bool,
    out: Optional[TextIO] = None,
) -> Path:
    """load -> optional downscale -> sort -> save. Returns the written path."""
    t0 = time.perf_counter()
    print_banner(src_path.name, out)

    buffer = load_image_rgba(src_path)
    if args.debug:
        alpha = buffer.alpha
        debug_log(
            format_pairs(
                [
                    ("Loaded", f"{buffer.width}x{buffer.height}"),
                    ("Opaque", int(np.count_nonzero(alpha == 255))),
                    ("Transparent", int(np.count_nonzero(alpha == 0))),
                ]
            ),
            out,
        )

    t1 = time.perf_counter()
    resized = resize_to_max_width(
        buffer, args.max_width, pillow_resample_from_name(args.resample)
    )
    if args.debug and resized is not buffer:
        debug_log(format_pairs([("Resized", f"{resized.width}x{resized.height}")]), out)

    t2 = time.perf_counter()
    sorted_buffer = sort_pixels(
        resized,
        args.mode,
        config,
        ConsoleProgress("sort", enabled=progress, stream=out),
        workers=args.workers,
        debug=args.debug,
        log_stream=out,
    )

    t3 = time.perf_counter()
    written = save_image_rgba(_output_path_for(src_path, args.outdir), sorted_buffer)
    t4 = time.perf_counter()

    log(
        f"Wrote {written.name} | {resized.width}x{resized.height} | mode={args.mode} "
        + format_pairs(_threshold_pairs(args.mode, config), sep=" ", eq="="),
        out,
    )
    if args.debug:
        sort_secs = t3 - t2
        if sort_secs > 0:
            mpx = resized.width * resized.height / 1e6
            debug_log(f"{mpx / sort_secs:.2f} MPx/s ({mpx:.2f} MPx)", out)
        debug_log(
            format_pairs(
                [
                    ("load", format_duration(t1 - t0, precise=True)),
                    ("resize", format_duration(t2 - t1, precise=True)),
                    ("sort", format_duration(t3 - t2, precise=True)),
                    ("save", format_duration(t4 - t3, precise=True)),
                ],
                sep=" ",
                eq="=",
            ),
            out,
        )
    log(f"Done in {format_duration(t4 - t0)}", out)
    return written


def _process_one(
    path: Path,
    args: argparse.Namespace,
    config: SortConfig,
    progress: bool,
    out: Optional[TextIO] = None,
) -> bool:
    """Sort one file; failures become [error] lines on stderr. Returns success."""
    try:
        _sort_file(path, args, config, progress, out)
    except (InvalidArgumentError, SortCancelledError, OSError) as e:
        error(f"{path.name}: {e}")
        return False
    return True


def _process_one_buffered(
    path: Path, args: argparse.Namespace, config: SortConfig
) -> Tuple[str, bool]:
    """_process_one writing into its own buffer, so parallel files print as whole blocks."""
    buf = io.StringIO()
    ok = _process_one(path, args, config, progress=False, out=buf)
    return buf.getvalue(), ok


def _process_folder(
    folder: Path, args: argparse.Namespace, config: SortConfig
) -> List[bool]:
    files = _collect_images(folder)
    if args.debug:
        debug_log(format_pairs([("Folder", folder), ("Images", len(files))]))
    if not files:
        warn(f"no images in {folder}")
        return []

    if args.jobs == 1:
        return [_process_one(p, args, config, args.progress) for p in files]

    with ThreadPoolExecutor(max_workers=args.jobs) as ex:
        outcomes = list(ex.map(lambda p: _process_one_buffered(p, args, config), files))
    for block, _ in outcomes:
        sys.stdout.write(block)
    sys.stdout.flush()
    return [ok for _, ok in outcomes]


# Entry point


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point. Returns the exit code:
      0 all files sorted, 1 some file failed, 2 bad arguments or missing src.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)

    try:
        config = _build_config(args)
    except InvalidArgumentError as e:
        error(str(e))
        return 2
    if args.workers < 1 or args.jobs < 1:
        error("--workers and --jobs must be >= 1")
        return 2
    if args.max_width is not None and args.max_width < 1:
        error(f"--max-width must be >= 1, got {args.max_width}")
        return 2

    print_section(
        "run",
        [("CPU cores", os.cpu_count() or 1), ("Workers", args.workers), ("Jobs", args.jobs)],
    )
    print_section("sort", [("Mode", args.mode)] + _threshold_pairs(args.mode, config))
    if args.debug:
        print_section(
            "resize",
            [("Max width", args.max_width or "-"), ("Resample", args.resample)],
            debug=True,
        )

    src: Path = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2
    if args.outdir is not None:
        args.outdir.mkdir(parents=True, exist_ok=True)

    if src.is_dir():
        results = _process_folder(src, args, config)
    else:
        results = [_process_one(src, args, config, args.progress)]
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
