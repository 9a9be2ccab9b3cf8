# asdf_sort/utils.py
from __future__ import annotations

"""
Console helpers shared by the engine and the CLI.

- duration and ETA text
- scanline chunking for threaded phases
- ConsoleProgress, a (percent, label) sink that redraws one status line
- tagged log lines: log / debug_log / warn / error
"""

import sys
import time
from typing import Any, Iterable, List, Optional, TextIO, Tuple

import numpy as np

from .core_types import clamp_value


# Durations


def format_duration(seconds: float, precise: bool = False) -> str:
    """
    '12.3ms', '4.2s' or '3m 07s'.
    precise=True keeps three decimals on the seconds form.
    """
    if seconds < 1.0:
        return f"{seconds * 1e3:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s" if precise else f"{seconds:.1f}s"
    minutes, rem = divmod(seconds, 60.0)
    return f"{int(minutes)}m {int(rem):02d}s"


def format_eta(seconds: Optional[float]) -> str:
    """Remaining time as '1h 05m', '2m 30s', '9s', or '--:--' when unknown."""
    if seconds is None or not np.isfinite(seconds) or seconds < 0:
        return "--:--"
    hours, rest = divmod(int(round(seconds)), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"


# Work partitioning


def chunk_lines(n_lines: int, parts: int) -> List[range]:
    """Split scanline indices [0, n_lines) into at most `parts` contiguous ranges."""
    if n_lines <= 0:
        return []
    parts = max(1, min(int(parts), n_lines))
    step = -(-n_lines // parts)
    return [range(lo, min(lo + step, n_lines)) for lo in range(0, n_lines, step)]


# Progress


class ConsoleProgress:
    """
    Progress sink that redraws '[sort]  42% Sorting rows... (ETA 3s)' in place.

    Redraws only when the whole percent moves forward. 100 always prints and
    ends the line. ETA scales elapsed time by the share still to do.
    """

    def __init__(
        self, section: str = "sort", enabled: bool = True, stream: Optional[TextIO] = None
    ):
        self.section = section
        self.enabled = enabled
        self.stream = stream
        self._started = time.perf_counter()
        self._shown = -1

    def __call__(self, percent: float, label: str) -> None:
        if not self.enabled:
            return
        whole = int(clamp_value(percent, 0.0, 100.0))
        done = whole >= 100
        if whole <= self._shown and not done:
            return
        self._shown = whole
        if done:
            eta: Optional[float] = 0.0
        elif whole:
            eta = (time.perf_counter() - self._started) * (100 - whole) / whole
        else:
            eta = None
        self._redraw(
            f"[{self.section}] {whole:3d}% {label} (ETA {format_eta(eta)})", done
        )

    def _redraw(self, text: str, done: bool) -> None:
        out = self.stream or sys.stdout
        out.write("\r\033[K" + text + ("\n" if done else ""))
        out.flush()


def enable_line_buffered_stdout() -> None:
    """Switch stdout to line buffering where the stream supports reconfigure()."""
    reconfigure = getattr(sys.stdout, "reconfigure", None)
    if reconfigure is None:
        return
    try:
        reconfigure(line_buffering=True, write_through=True)
    except (OSError, ValueError):
        pass


# Log lines


def _display(value: Any) -> str:
    if isinstance(value, bool):
        return "on" if value else "off"
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:.3f}".rstrip("0").rstrip(".")
    return str(value)


def format_pairs(
    pairs: Iterable[Tuple[str, Any]], sep: str = "  ", eq: str = ": "
) -> str:
    """'Name: value' blocks joined by sep. Bools read on/off, ints get separators."""
    return sep.join(f"{name}{eq}{_display(value)}" for name, value in pairs)


def _emit(tag: str, message: str, stream: Optional[TextIO] = None) -> None:
    prefix = f"[{tag}] " if tag else ""
    print(prefix + message, file=stream or sys.stdout, flush=True)


def log(message: str, stream: Optional[TextIO] = None) -> None:
    _emit("", message, stream)


def debug_log(message: str, stream: Optional[TextIO] = None) -> None:
    _emit("debug", message, stream)


def warn(message: str, stream: Optional[TextIO] = None) -> None:
    _emit("warn", message, stream)


def error(message: str) -> None:
    """Error line to stderr."""
    _emit("error", message, sys.stderr)


def print_section(section: str, pairs: Iterable[Tuple[str, Any]], debug: bool = False) -> None:
    """One '[section] Name: value  ...' line, as a debug line when debug=True."""
    (debug_log if debug else log)(f"[{section}] {format_pairs(pairs)}")


def print_banner(title: str, stream: Optional[TextIO] = None) -> None:
    log(f"\n--- {title} ---", stream)


__all__ = [
    "format_duration",
    "format_eta",
    "chunk_lines",
    "ConsoleProgress",
    "enable_line_buffered_stdout",
    "format_pairs",
    "log",
    "debug_log",
    "warn",
    "error",
    "print_section",
    "print_banner",
]
