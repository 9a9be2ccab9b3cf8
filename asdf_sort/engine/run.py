# asdf_sort/engine/run.py
from __future__ import annotations

"""
Two-phase pixel sort: every column, then every row, over one packed working copy.

The input buffer is never mutated. Alpha is carried over from the input
untouched; only RGB moves, and only within a run of its own scanline.

Optional fast path: each phase's scanlines are split into contiguous chunks
and sorted on a thread pool. Scanlines never share indices, so the result is
identical to the serial path. Progress from all workers goes through one
locked aggregator.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, TextIO, Union

import numpy as np

from asdf_sort.colour_convert import pack_rgb, unpack_rgb
from asdf_sort.constants import (
    LABEL_COLUMNS,
    LABEL_DONE,
    LABEL_ROWS,
    PROGRESS_EVERY,
)
from asdf_sort.core_types import (
    CancelCheck,
    InvalidArgumentError,
    Packed,
    PixelBuffer,
    ProgressSink,
    SortCancelledError,
    SortConfig,
    check_pixel_buffer,
    clamp_value,
)
from asdf_sort.engine.scan import sort_line
from asdf_sort.mode import SortMode, resolve_mode, run_predicates
from asdf_sort.utils import chunk_lines, debug_log, format_duration

# Phases shorter than this stay on the calling thread.
MIN_LINES_PER_WORKER = 16


class _ProgressReporter:
    """
    Single aggregation point for progress and cancellation.

    Every emit happens under one lock and is clamped to the highest value
    already reported, so the sink sees a non-decreasing sequence even when
    several workers finish lines concurrently.
    """

    def __init__(
        self, sink: Optional[ProgressSink], should_cancel: Optional[CancelCheck]
    ):
        self._sink = sink
        self._should_cancel = should_cancel
        self._lock = threading.Lock()
        self._last = 0.0
        self._cancelled = threading.Event()

    def emit(self, percent: float, label: str) -> None:
        with self._lock:
            self._emit_locked(percent, label)

    def _emit_locked(self, percent: float, label: str) -> None:
        value = max(self._last, clamp_value(float(percent), 0.0, 100.0))
        self._last = value
        if self._sink is not None:
            self._sink(value, label)

    def check_cancel(self) -> None:
        if self._cancelled.is_set():
            raise SortCancelledError("pixel sort cancelled")
        if self._should_cancel is not None and self._should_cancel():
            self._cancelled.set()
            raise SortCancelledError("pixel sort cancelled")

    def phase(self, base: float, span: float, dim: int, label: str) -> "_PhaseTicker":
        return _PhaseTicker(self, base, span, dim, label)

    def tick(self, ticker: "_PhaseTicker") -> None:
        """Count one finished scanline; every PROGRESS_EVERY lines poll cancel and emit."""
        if self._cancelled.is_set():
            raise SortCancelledError("pixel sort cancelled")
        with self._lock:
            index = ticker.done
            ticker.done += 1
        if index % PROGRESS_EVERY:
            return
        self.check_cancel()
        self.emit(ticker.percent_at(index), ticker.label)


class _PhaseTicker:
    """Counts finished scanlines in one phase; ticks every PROGRESS_EVERY lines."""

    def __init__(
        self, reporter: _ProgressReporter, base: float, span: float, dim: int, label: str
    ):
        self.reporter = reporter
        self.base = base
        self.span = span
        self.dim = max(1, int(dim))
        self.label = label
        self.done = 0

    def percent_at(self, index: int) -> float:
        return self.base + (index / self.dim) * self.span

    def line_done(self) -> None:
        self.reporter.tick(self)


def _sort_lines(
    work: Packed,
    start_ok: np.ndarray,
    keep_going: np.ndarray,
    axis: int,
    lines: Sequence[int],
    ticker: _PhaseTicker,
) -> int:
    """Sort a set of columns (axis=0) or rows (axis=1). Returns spans sorted."""
    spans = 0
    for idx in lines:
        if axis == 0:
            spans += sort_line(work[:, idx], start_ok[:, idx], keep_going[:, idx])
        else:
            spans += sort_line(work[idx], start_ok[idx], keep_going[idx])
        ticker.line_done()
    return spans


def _run_phase(
    work: Packed,
    mode: SortMode,
    config: SortConfig,
    axis: int,
    n_lines: int,
    ticker: _PhaseTicker,
    workers: int,
) -> int:
    """Evaluate predicates for the whole phase, then sort its scanlines."""
    if n_lines <= 0:
        return 0
    start_ok, keep_going = run_predicates(work, mode, config)

    if workers <= 1 or n_lines < 2 * MIN_LINES_PER_WORKER:
        return _sort_lines(work, start_ok, keep_going, axis, range(n_lines), ticker)

    parts = min(workers, max(1, n_lines // MIN_LINES_PER_WORKER))
    chunks = chunk_lines(n_lines, parts)
    with ThreadPoolExecutor(max_workers=parts) as ex:
        futures = [
            ex.submit(
                _sort_lines, work, start_ok, keep_going, axis, chunk, ticker
            )
            for chunk in chunks
        ]
        return sum(f.result() for f in futures)


def sort_pixels(
    buffer: PixelBuffer,
    mode: Union[SortMode, str, int] = "white",
    config: Optional[SortConfig] = None,
    on_progress: Optional[ProgressSink] = None,
    *,
    should_cancel: Optional[CancelCheck] = None,
    workers: int = 1,
    debug: bool = False,
    log_stream: Optional[TextIO] = None,
) -> PixelBuffer:
    """
    Pixel-sort an RGBA buffer: columns first, then rows.

    Args:
      buffer        : PixelBuffer (width, height, (W*H,4) uint8 RGBA)
      mode          : "white" | "black" | "bright" | "dark" or id 0..3
      config        : thresholds; defaults to SortConfig()
      on_progress   : optional (percent, label) sink, non-decreasing, ends at 100
      should_cancel : optional poll; True raises SortCancelledError
      workers       : threads per phase (1 = serial)
      debug         : print per-phase timing
      log_stream    : where debug lines go (stdout when None)

    Returns:
      New PixelBuffer with the same size and alpha.

    Raises:
      InvalidArgumentError before any pixel is touched when the buffer, mode,
      config, or worker count is malformed.
    """
    pixels = check_pixel_buffer(buffer)
    mode_eff = resolve_mode(mode)
    cfg = (config if config is not None else SortConfig()).validate()
    if isinstance(workers, bool) or not isinstance(workers, (int, np.integer)) or workers < 1:
        raise InvalidArgumentError(f"workers must be a positive integer, got {workers!r}")

    width, height = int(buffer.width), int(buffer.height)
    rgba = pixels.reshape(height, width, 4)
    work = pack_rgb(rgba[..., :3])

    reporter = _ProgressReporter(on_progress, should_cancel)

    t0 = time.perf_counter()
    reporter.emit(0.0, LABEL_COLUMNS)
    reporter.check_cancel()
    col_spans = _run_phase(
        work,
        mode_eff,
        cfg,
        axis=0,
        n_lines=width - 1,
        ticker=reporter.phase(0.0, 50.0, width, LABEL_COLUMNS),
        workers=int(workers),
    )

    t1 = time.perf_counter()
    reporter.emit(50.0, LABEL_ROWS)
    reporter.check_cancel()
    row_spans = _run_phase(
        work,
        mode_eff,
        cfg,
        axis=1,
        n_lines=height - 1,
        ticker=reporter.phase(50.0, 50.0, height, LABEL_ROWS),
        workers=int(workers),
    )
    t2 = time.perf_counter()

    out = np.empty((height, width, 4), dtype=np.uint8)
    out[..., :3] = unpack_rgb(work)
    out[..., 3] = rgba[..., 3]

    if debug:
        debug_log(
            f"[sort] mode={mode_eff} columns: spans={col_spans:,} "
            f"in {format_duration(t1 - t0, precise=True)}  rows: spans={row_spans:,} "
            f"in {format_duration(t2 - t1, precise=True)}",
            log_stream,
        )

    reporter.emit(100.0, LABEL_DONE)
    return PixelBuffer(width, height, out.reshape(-1, 4))


def sort_rgba_array(
    rgba: np.ndarray,
    mode: Union[SortMode, str, int] = "white",
    config: Optional[SortConfig] = None,
    on_progress: Optional[ProgressSink] = None,
    **kwargs,
) -> np.ndarray:
    """Array convenience: (H,W,4) or (H,W,3) uint8 in, (H,W,4) uint8 out."""
    result = sort_pixels(
        PixelBuffer.from_array(rgba), mode, config, on_progress, **kwargs
    )
    return result.as_array()


class PixelSorter:
    """
    Holds the four thresholds between calls.

    The thresholds are the only state; each sort() is otherwise independent.
    """

    def __init__(self, config: Optional[SortConfig] = None):
        self.config = (config if config is not None else SortConfig()).validate()

    def set_thresholds(
        self,
        white: Optional[int] = None,
        black: Optional[int] = None,
        bright: Optional[int] = None,
        dark: Optional[int] = None,
    ) -> SortConfig:
        """Replace the given thresholds. Invalid values leave the sorter unchanged."""
        self.config = self.config.with_thresholds(white, black, bright, dark).validate()
        return self.config

    def sort(
        self,
        buffer: PixelBuffer,
        mode: Union[SortMode, str, int] = "white",
        on_progress: Optional[ProgressSink] = None,
        **kwargs,
    ) -> PixelBuffer:
        return sort_pixels(buffer, mode, self.config, on_progress, **kwargs)


__all__: List[str] = ["sort_pixels", "sort_rgba_array", "PixelSorter"]
