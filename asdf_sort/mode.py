# asdf_sort/mode.py
from __future__ import annotations
from typing import Dict, Literal, NamedTuple, Tuple, Union, get_args

import numpy as np

from .colour_convert import luminance
from .constants import MODE_IDS
from .core_types import InvalidArgumentError, Packed, SortConfig

"""
Sort modes and their run predicates.

Exports:
- SortMode, MODE_RULES
- resolve_mode(requested) -> SortMode
- run_predicates(packed, mode, config) -> (start_ok, keep_going)

Notes:
- Each mode is one row of a table: which key it reads (packed colour or
  luminance), which threshold, and which direction counts as "inside".
- A run starts on the first pixel at or past the threshold and keeps going
  while pixels are strictly past it. The tie case (key == threshold) can start
  a run but never extends one.
"""


SortMode = Literal["white", "black", "bright", "dark"]
ModeKey = Literal["packed", "luma"]


class ModeRule(NamedTuple):
    key: ModeKey
    threshold_field: str  # SortConfig attribute
    rising: bool  # True: inside means key above threshold; False: below


MODE_RULES: Dict[SortMode, ModeRule] = {
    "white": ModeRule("packed", "white_value", True),
    "black": ModeRule("packed", "black_value", False),
    "bright": ModeRule("luma", "bright_value", True),
    "dark": ModeRule("luma", "dark_value", False),
}


def resolve_mode(requested: Union[str, int]) -> SortMode:
    """
    Accept a mode name (any case) or its numeric id
    (0 white, 1 black, 2 bright, 3 dark).
    """
    if isinstance(requested, (int, np.integer)) and not isinstance(requested, bool):
        name = MODE_IDS.get(int(requested))
        if name is None:
            raise InvalidArgumentError(f"unknown sort mode id: {requested}")
        return name  # type: ignore[return-value]
    if isinstance(requested, str):
        text = requested.strip().lower()
        if text.isdigit():
            return resolve_mode(int(text))
        if text in get_args(SortMode):
            return text  # type: ignore[return-value]
    raise InvalidArgumentError(
        f"unknown sort mode: {requested!r} (expected one of {', '.join(get_args(SortMode))})"
    )


def run_predicates(
    packed: Packed, mode: SortMode, config: SortConfig
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Evaluate the mode's predicate pair over a whole packed array.

    Returns (start_ok, keep_going), boolean arrays shaped like packed:
      start_ok   : pixel may open a run
      keep_going : pixel extends an open run
    """
    rule = MODE_RULES[mode]
    threshold = config.threshold_for(rule.threshold_field)
    key = packed if rule.key == "packed" else luminance(packed)
    if rule.rising:
        return key >= threshold, key > threshold
    return key <= threshold, key < threshold


__all__ = ["SortMode", "ModeRule", "MODE_RULES", "resolve_mode", "run_predicates"]
