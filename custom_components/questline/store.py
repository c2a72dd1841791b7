# File: store.py
"""Persistent storage for the Questline hierarchy.

One JSON document under `.storage/questline_data`:

    {meta, seasons, season_history, quests, tasks}

Every bucket is keyed by internal_id. Chapters are stored inside their
season, and archived seasons move to season_history.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.helpers.storage import Store

from . import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

_BUCKETS = (
    const.DATA_SEASONS,
    const.DATA_SEASON_HISTORY,
    const.DATA_QUESTS,
    const.DATA_TASKS,
)


class QuestlineStore:
    """Wrapper around Home Assistant's Store for the hierarchy document."""

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Create the store; nothing is read until async_initialize."""
        self.hass = hass
        self._store: Store[dict[str, Any]] = Store(
            hass, const.STORAGE_VERSION, storage_key
        )
        self._data: dict[str, Any] = {}

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Empty document for a fresh install."""
        return {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION_CURRENT,
            },
            **{bucket: {} for bucket in _BUCKETS},
        }

    @staticmethod
    def _bucket_sizes(data: dict[str, Any]) -> dict[str, int]:
        return {bucket: len(data.get(bucket, {})) for bucket in _BUCKETS}

    async def async_initialize(self) -> None:
        """Load the document, filling in any bucket an older file lacks."""
        loaded = await self._store.async_load()
        if loaded is None:
            const.LOGGER.info("INFO: No Questline storage found, starting empty")
            self._data = self.get_default_structure()
            return

        for key, default in self.get_default_structure().items():
            loaded.setdefault(key, default)
        self._data = loaded
        const.LOGGER.debug(
            "DEBUG: Loaded Questline storage: %s", self._bucket_sizes(loaded)
        )

    @property
    def data(self) -> dict[str, Any]:
        """In-memory document."""
        return self._data

    def set_data(self, new_data: dict[str, Any]) -> None:
        """Replace the in-memory document; call async_save to persist it."""
        self._data = new_data

    async def async_save(self) -> None:
        """Write the document to disk.

        Failures are logged, not raised; the next save writes the whole
        document again.
        """
        try:
            await self._store.async_save(self._data)
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Could not write %s (disk full or permissions?): %s",
                self._store.path,
                err,
            )
        except (TypeError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Questline data is not JSON serializable: %s", err
            )
        else:
            const.LOGGER.debug(
                "DEBUG: Saved Questline storage: %s", self._bucket_sizes(self._data)
            )

    async def async_delete_storage(self) -> None:
        """Forget all data and remove the storage file (entry removal)."""
        const.LOGGER.warning("WARNING: Deleting all Questline data")
        self._data = self.get_default_structure()
        try:
            await self._store.async_remove()
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Could not remove %s: %s", self._store.path, err
            )
