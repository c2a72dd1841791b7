# File: utils/math_utils.py
"""Math and calculation utilities for Questline.

Pure Python math functions with ZERO Home Assistant dependencies.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.

Functions:
    - round_half_up: Nearest-integer rounding with .5 rounded up
    - clamp_progress: Coerce any value into an integer percentage 0-100
    - calculate_percentage: Completed/total as an integer percentage
"""

from __future__ import annotations

import logging
import math
from typing import Any

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

PROGRESS_MIN = 0
PROGRESS_MAX = 100


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with exact halves rounded up.

    Python's round() uses banker's rounding (round(2.5) == 2); progress
    bars expect 2.5 → 3.

    Examples:
        round_half_up(2.5) → 3
        round_half_up(59.9) → 60
        round_half_up(-0.5) → 0
    """
    return math.floor(value + 0.5)


def clamp_progress(value: Any) -> int:
    """Coerce a progress value into an integer percentage in [0, 100].

    Non-numeric and non-finite values (None, "abc", nan, inf) degrade to 0.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        _LOGGER.debug("Non-numeric progress value %r treated as 0", value)
        return PROGRESS_MIN
    if not math.isfinite(number):
        _LOGGER.debug("Non-finite progress value %r treated as 0", value)
        return PROGRESS_MIN
    return max(PROGRESS_MIN, min(PROGRESS_MAX, round_half_up(number)))


def calculate_percentage(completed: int, total: int) -> int:
    """Return completed/total as a rounded integer percentage.

    Args:
        completed: Number of finished items
        total: Number of items

    Returns:
        Integer percentage, 0 when total is 0.
    """
    if total <= 0:
        return PROGRESS_MIN
    return clamp_progress(completed / total * 100)
