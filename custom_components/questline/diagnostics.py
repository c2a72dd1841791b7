"""Diagnostics support for Questline integration.

The config entry diagnostics return raw storage data, identical to the
questline_data file, so it can be pasted back during data recovery. A
derived status summary and the open review prompt, if any, are added
under their own keys.
"""

from __future__ import annotations

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import QuestlineDataCoordinator
from .engines.progress_engine import ProgressEngine


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: QuestlineDataCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]

    return {
        "storage": coordinator.store.data,
        "summary": ProgressEngine.hierarchy_summary(coordinator.read()),
        "open_review_prompt": _open_prompt(coordinator),
    }


def _open_prompt(coordinator: QuestlineDataCoordinator) -> dict[str, str] | None:
    open_prompt = coordinator.review_manager.open_prompt
    if open_prompt is None:
        return None
    kind, internal_id = open_prompt
    return {const.ATTR_KIND: kind, const.ATTR_INTERNAL_ID: internal_id}
