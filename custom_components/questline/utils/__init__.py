# File: utils/__init__.py
"""Pure Python utilities for Questline.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Submodules:
    - dt_utils: Local calendar parsing, day boundaries, timestamp parsing
    - math_utils: Half-up rounding, progress clamping, percentages

Usage:
    from . import dt_utils
    from .math_utils import clamp_progress
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
