# asdf_sort/engine/scan.py
from __future__ import annotations

"""
Scanline run detection and in-run sorting.

A scanline is one column or one row of the packed working array. Both phases
share this routine; the caller hands in a 1-D view plus the mode's predicate
pair for that line.
"""

from typing import Iterator, Tuple

import numpy as np

from asdf_sort.core_types import BoolLine, Packed


def iter_runs(start_ok: BoolLine, keep_going: BoolLine) -> Iterator[Tuple[int, int]]:
    """
    Yield (start, end) for each run along a line, end inclusive.

    Walks the line:
      - seek the first index >= pos whose pixel may start a run (none: stop)
      - extend from start+1 while pixels keep the run going; end is the last
        one that did, or n-1 when the line runs out
      - resume at end+1, and stop once end reaches n-1

    The start pixel itself is never tested against keep_going.
    """
    n = int(start_ok.shape[0])
    starts = np.flatnonzero(start_ok)
    stops = np.flatnonzero(~np.asarray(keep_going, dtype=bool))

    pos = 0
    end = 0
    while end < n - 1:
        i = int(np.searchsorted(starts, pos))
        if i >= starts.size:
            return
        start = int(starts[i])
        j = int(np.searchsorted(stops, start + 1))
        end = int(stops[j]) - 1 if j < stops.size else n - 1
        yield start, end
        pos = end + 1


def sort_line(line: Packed, start_ok: BoolLine, keep_going: BoolLine) -> int:
    """
    Sort every run of a line in place, ascending by signed packed value.

    Only [start, end) is sorted: the last pixel of a run stays where it is and
    runs shorter than three pixels are left alone. Returns the number of spans
    sorted.

    Predicates can be computed before any sorting because a sort only touches
    indices the scan has already passed.
    """
    sorted_spans = 0
    for start, end in iter_runs(start_ok, keep_going):
        if end - start > 1:
            line[start:end] = np.sort(line[start:end], kind="stable")
            sorted_spans += 1
    return sorted_spans


def run_coverage(start_ok: BoolLine, keep_going: BoolLine) -> int:
    """Number of pixels that fall inside a run (start..end inclusive)."""
    return sum(end - start + 1 for start, end in iter_runs(start_ok, keep_going))


__all__ = ["iter_runs", "sort_line", "run_coverage"]
