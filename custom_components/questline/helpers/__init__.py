# File: helpers/__init__.py
"""Home Assistant-bound helper functions for Questline.

This module contains functions that REQUIRE Home Assistant dependencies.

NOTE: Functions that need `hass` object belong here, NOT in utils/.

Submodules:
    - entity_helpers: Dispatcher signal names, sensor unique_ids, archive cleanup

Usage:
    from .helpers.entity_helpers import get_event_signal
"""

from . import entity_helpers

__all__ = ["entity_helpers"]
