# File: coordinator.py
"""Coordinator for the Questline integration.

Owns the in-memory hierarchy loaded from QuestlineStore and exposes the
state-store interface the engines and managers work against:

- read(): snapshot of seasons, quests, chapters (flattened) and tasks
- write(kind, internal_id, fields): last-write-wins partial update that
  persists and notifies listeners

Entity records are addressed by internal_id. Chapters are stored inside
their season's `chapters` list and located through the season.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from . import const
from .managers import HierarchyManager, ReviewManager

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .store import QuestlineStore
    from .type_defs import ChapterData, HierarchySnapshot, SeasonData


class QuestlineDataCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Coordinator for Questline integration.

    The periodic refresh does not change stored data; it re-notifies
    listeners so date-driven display statuses (unlock at midnight, overdue)
    reach the sensors.
    """

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: QuestlineStore,
    ) -> None:
        """Initialize the QuestlineDataCoordinator."""
        update_interval_minutes = config_entry.options.get(
            const.CONF_UPDATE_INTERVAL, const.DEFAULT_UPDATE_INTERVAL
        )

        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=timedelta(minutes=update_interval_minutes),
        )
        self.store = store
        self._data: dict[str, Any] = {}

        self.hierarchy_manager = HierarchyManager(hass, self)
        self.review_manager = ReviewManager(hass, self)

    # -------------------------------------------------------------------------------------
    # Periodic + First Refresh
    # -------------------------------------------------------------------------------------

    async def _async_update_data(self) -> dict[str, Any]:
        """Periodic update: hand the current data back to listeners."""
        return self._data

    async def async_config_entry_first_refresh(self) -> None:
        """Load from storage, set up managers, then run the first refresh."""
        self._data = self.store.data or self.store.get_default_structure()
        for key, default in self.store.get_default_structure().items():
            self._data.setdefault(key, default)

        const.LOGGER.debug(
            "DEBUG: Coordinator loaded %s seasons, %s quests, %s tasks",
            len(self.seasons_data),
            len(self.quests_data),
            len(self.tasks_data),
        )

        await self.hierarchy_manager.async_setup()
        await self.review_manager.async_setup()

        await super().async_config_entry_first_refresh()

    # -------------------------------------------------------------------------------------
    # Data Accessors
    # -------------------------------------------------------------------------------------

    @property
    def seasons_data(self) -> dict[str, SeasonData]:
        """Active seasons keyed by internal_id."""
        return self._data.setdefault(const.DATA_SEASONS, {})

    @property
    def season_history_data(self) -> dict[str, SeasonData]:
        """Archived seasons keyed by internal_id."""
        return self._data.setdefault(const.DATA_SEASON_HISTORY, {})

    @property
    def quests_data(self) -> dict[str, Any]:
        """Quests keyed by internal_id."""
        return self._data.setdefault(const.DATA_QUESTS, {})

    @property
    def tasks_data(self) -> dict[str, Any]:
        """Tasks keyed by internal_id."""
        return self._data.setdefault(const.DATA_TASKS, {})

    def read(self) -> HierarchySnapshot:
        """Return the collections the engines work on.

        Chapters are flattened out of their seasons and tagged with
        season_id; the tag is never written back.
        """
        seasons = list(self.seasons_data.values())
        chapters = [
            {**chapter, const.DATA_CHAPTER_SEASON_ID: season[const.DATA_INTERNAL_ID]}
            for season in seasons
            for chapter in season.get(const.DATA_SEASON_CHAPTERS, [])
        ]
        return {
            const.DATA_SEASONS: seasons,
            const.DATA_QUESTS: list(self.quests_data.values()),
            const.DATA_CHAPTERS: chapters,
            const.DATA_TASKS: list(self.tasks_data.values()),
        }

    # -------------------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------------------

    def find_chapter_season(self, chapter_id: str) -> SeasonData | None:
        """Return the active season that contains a chapter."""
        for season in self.seasons_data.values():
            for chapter in season.get(const.DATA_SEASON_CHAPTERS, []):
                if chapter.get(const.DATA_INTERNAL_ID) == chapter_id:
                    return season
        return None

    def find_chapter(self, chapter_id: str) -> ChapterData | None:
        """Return the stored chapter record (inside its season), or None."""
        season = self.find_chapter_season(chapter_id)
        if season is None:
            return None
        return next(
            chapter
            for chapter in season[const.DATA_SEASON_CHAPTERS]
            if chapter.get(const.DATA_INTERNAL_ID) == chapter_id
        )

    def find_entity(self, kind: str, internal_id: str) -> dict[str, Any] | None:
        """Return the stored record for any kind, or None."""
        if kind == const.KIND_CHAPTER:
            return self.find_chapter(internal_id)
        collection = {
            const.KIND_SEASON: self.seasons_data,
            const.KIND_QUEST: self.quests_data,
            const.KIND_TASK: self.tasks_data,
        }.get(kind)
        if collection is None:
            return None
        return collection.get(internal_id)

    def get_entity_or_raise(self, kind: str, internal_id: str) -> dict[str, Any]:
        """Return the stored record or raise HomeAssistantError."""
        entity = self.find_entity(kind, internal_id)
        if entity is None:
            if kind == const.KIND_SEASON and internal_id in self.season_history_data:
                raise HomeAssistantError(
                    const.ERROR_SEASON_ARCHIVED_FMT.format(internal_id)
                )
            raise HomeAssistantError(
                const.ERROR_ENTITY_NOT_FOUND_FMT.format(kind.capitalize(), internal_id)
            )
        return entity

    # -------------------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------------------

    def write(self, kind: str, internal_id: str, fields: dict[str, Any]) -> None:
        """Apply a partial update to one entity, persist and notify.

        Last write wins. The read-model season_id tag is never stored on a
        chapter.

        Raises:
            HomeAssistantError: If the entity does not exist
        """
        entity = self.get_entity_or_raise(kind, internal_id)
        updates = dict(fields)
        updates.pop(const.DATA_INTERNAL_ID, None)
        if kind == const.KIND_CHAPTER:
            updates.pop(const.DATA_CHAPTER_SEASON_ID, None)
        entity.update(updates)
        const.LOGGER.debug(
            "DEBUG: Wrote %s '%s' fields: %s", kind, internal_id, list(updates)
        )
        self._persist_and_update()

    def add_entity(self, kind: str, record: dict[str, Any]) -> None:
        """Insert a new season, quest or task record and persist."""
        collection = {
            const.KIND_SEASON: self.seasons_data,
            const.KIND_QUEST: self.quests_data,
            const.KIND_TASK: self.tasks_data,
        }[kind]
        collection[record[const.DATA_INTERNAL_ID]] = record
        const.LOGGER.info(
            "INFO: Added %s '%s'", kind, record[const.DATA_INTERNAL_ID]
        )
        self._persist_and_update()

    def add_chapter(self, season_id: str, chapter: ChapterData) -> None:
        """Append a chapter to its season and persist."""
        season = self.get_entity_or_raise(const.KIND_SEASON, season_id)
        season.setdefault(const.DATA_SEASON_CHAPTERS, []).append(chapter)
        const.LOGGER.info(
            "INFO: Added chapter '%s' to season '%s'",
            chapter[const.DATA_INTERNAL_ID],
            season_id,
        )
        self._persist_and_update()

    def move_season_to_history(self, season_id: str) -> SeasonData:
        """Move a season from the active bucket into season_history."""
        season = self.seasons_data.pop(season_id)
        self.season_history_data[season_id] = season
        self._persist_and_update()
        return season

    # -------------------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------------------

    def _persist(self) -> None:
        """Save to persistent storage."""
        self.store.set_data(self._data)
        self.hass.add_job(self.store.async_save)

    def _persist_and_update(self) -> None:
        """Save and push the new data to listeners (entities, watchers)."""
        self._persist()
        self.async_set_updated_data(self._data)
