# File: helpers/entity_helpers.py
"""Dispatcher signal names and sensor registry helpers for Questline."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.const import Platform
from homeassistant.helpers.entity_registry import async_get as async_get_entity_registry

from .. import const

if TYPE_CHECKING:
    from collections.abc import Iterable

    from homeassistant.core import HomeAssistant


def get_event_signal(entry_id: str, suffix: str) -> str:
    """Build the dispatcher signal for one config entry.

    Example:
        get_event_signal("abc123", "review_requested")
        → "questline_abc123_review_requested"
    """
    return f"{const.DOMAIN}_{entry_id}_{suffix}"


def sensor_unique_id(entry_id: str, internal_id: str, uid_suffix: str) -> str:
    """unique_id of the sensor tracking one season, chapter or quest."""
    return f"{entry_id}_{internal_id}{uid_suffix}"


def remove_archived_sensors(
    hass: HomeAssistant,
    entry_id: str,
    season_id: str,
    chapter_ids: Iterable[str],
) -> int:
    """Drop the season progress sensor and its chapters' status sensors.

    Quest sensors stay: quests outlive the season they were filed under.

    Returns:
        Number of registry entries removed.
    """
    ent_reg = async_get_entity_registry(hass)
    unique_ids = [
        sensor_unique_id(entry_id, season_id, const.SENSOR_UID_SUFFIX_SEASON),
        *(
            sensor_unique_id(entry_id, chapter_id, const.SENSOR_UID_SUFFIX_CHAPTER)
            for chapter_id in chapter_ids
        ),
    ]

    removed = 0
    for unique_id in unique_ids:
        entity_id = ent_reg.async_get_entity_id(
            Platform.SENSOR, const.DOMAIN, unique_id
        )
        if entity_id is None:
            continue
        ent_reg.async_remove(entity_id)
        removed += 1
        const.LOGGER.debug("DEBUG: Removed sensor %s (uid: %s)", entity_id, unique_id)

    if removed:
        const.LOGGER.info(
            "INFO: Removed %d sensors for archived season %s", removed, season_id
        )
    return removed
