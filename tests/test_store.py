"""Tests for QuestlineStore - loading, defaults and save/delete."""

from __future__ import annotations

from typing import Any

from homeassistant.core import HomeAssistant

from custom_components.questline import const
from custom_components.questline.store import QuestlineStore


def _preload(hass_storage: dict[str, Any], data: dict[str, Any]) -> None:
    hass_storage[const.STORAGE_KEY] = {
        "version": const.STORAGE_VERSION,
        "minor_version": 1,
        "key": const.STORAGE_KEY,
        "data": data,
    }


async def test_initialize_fresh(hass: HomeAssistant) -> None:
    """No file on disk gives the empty structure."""
    store = QuestlineStore(hass)
    await store.async_initialize()

    assert store.data == QuestlineStore.get_default_structure()
    assert store.data[const.DATA_META][const.DATA_META_SCHEMA_VERSION] == (
        const.SCHEMA_VERSION_CURRENT
    )


async def test_initialize_fills_missing_buckets(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> None:
    """Older files without every bucket are completed on load."""
    _preload(
        hass_storage,
        {const.DATA_QUESTS: {"quest-1": {const.DATA_INTERNAL_ID: "quest-1"}}},
    )

    store = QuestlineStore(hass)
    await store.async_initialize()

    assert "quest-1" in store.data[const.DATA_QUESTS]
    assert store.data[const.DATA_SEASONS] == {}
    assert store.data[const.DATA_SEASON_HISTORY] == {}
    assert store.data[const.DATA_TASKS] == {}


async def test_save_round_trips_through_storage(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> None:
    """set_data followed by async_save writes the storage file."""
    store = QuestlineStore(hass)
    await store.async_initialize()
    data = QuestlineStore.get_default_structure()
    data[const.DATA_SEASONS]["season-1"] = {const.DATA_INTERNAL_ID: "season-1"}

    store.set_data(data)
    await store.async_save()

    assert "season-1" in hass_storage[const.STORAGE_KEY]["data"][const.DATA_SEASONS]


async def test_delete_storage_resets_data(
    hass: HomeAssistant, hass_storage: dict[str, Any]
) -> None:
    """Deleting clears memory and the file."""
    _preload(hass_storage, {const.DATA_QUESTS: {"quest-1": {}}})
    store = QuestlineStore(hass)
    await store.async_initialize()

    await store.async_delete_storage()

    assert store.data[const.DATA_QUESTS] == {}
    assert const.STORAGE_KEY not in hass_storage
