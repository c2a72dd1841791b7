# File: sensor.py
"""Sensors for the Questline integration.

Read-model sensors for the hierarchy. Nothing here writes to storage.

Sensors Defined in This File (3):
01. SeasonProgressSensor   - aggregated quest progress per active season
02. ChapterStatusSensor    - effective display status per chapter
03. QuestStatusSensor      - effective display status per quest

New seasons, chapters and quests get sensors on the next coordinator
update; archived seasons have their sensors removed by HierarchyManager.
"""

from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import PERCENTAGE
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from . import const
from .coordinator import QuestlineDataCoordinator
from .engines.progress_engine import ProgressEngine
from .entity import QuestlineCoordinatorEntity


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up sensors for Questline integration."""
    coordinator: QuestlineDataCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]
    known: set[tuple[str, str]] = set()

    @callback
    def _async_add_new_entities() -> None:
        """Create sensors for records that do not have one yet."""
        snapshot = coordinator.read()
        entities: list[SensorEntity] = []

        for kind, records, sensor_cls in (
            (const.KIND_SEASON, snapshot[const.DATA_SEASONS], SeasonProgressSensor),
            (const.KIND_CHAPTER, snapshot[const.DATA_CHAPTERS], ChapterStatusSensor),
            (const.KIND_QUEST, snapshot[const.DATA_QUESTS], QuestStatusSensor),
        ):
            for record in records:
                key = (kind, record[const.DATA_INTERNAL_ID])
                if key in known:
                    continue
                known.add(key)
                entities.append(
                    sensor_cls(coordinator, entry, record[const.DATA_INTERNAL_ID])
                )

        if entities:
            const.LOGGER.debug("DEBUG: Adding %d Questline sensors", len(entities))
            async_add_entities(entities)

    _async_add_new_entities()
    entry.async_on_unload(coordinator.async_add_listener(_async_add_new_entities))


class SeasonProgressSensor(QuestlineCoordinatorEntity, SensorEntity):
    """Aggregated progress of an active season.

    State is the half-up rounded average progress of the season's quests;
    it is recomputed on every read and never stored.
    """

    _attr_translation_key = const.TRANS_KEY_SENSOR_SEASON
    _attr_native_unit_of_measurement = PERCENTAGE
    _attr_state_class = SensorStateClass.MEASUREMENT
    _kind = const.KIND_SEASON

    def __init__(
        self, coordinator: QuestlineDataCoordinator, entry: ConfigEntry, season_id: str
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry, season_id, const.SENSOR_UID_SUFFIX_SEASON)

    @property
    def native_value(self) -> int | None:
        """Return the season's aggregated progress."""
        season = self.record
        if season is None:
            return None
        return ProgressEngine.aggregate_season_progress(
            season, self.coordinator.quests_data.values()
        )

    @property
    def icon(self) -> str:
        """Status icon, falling back to the season flag."""
        season = self.record or {}
        return const.DISPLAY_STATUS_ICONS.get(
            self.effective_status(season) if season else "", const.DEFAULT_SEASON_ICON
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Expose status, chapter count and urgency."""
        season = self.record
        if season is None:
            return {}
        return {
            **self.common_attributes(season),
            const.ATTR_CHAPTER_COUNT: len(season.get(const.DATA_SEASON_CHAPTERS, [])),
        }


class ChapterStatusSensor(QuestlineCoordinatorEntity, SensorEntity):
    """Effective display status of a chapter.

    Attributes carry the manual progress and its ratio against the linked
    quest count, as the chapter progress bar shows it.
    """

    _attr_translation_key = const.TRANS_KEY_SENSOR_CHAPTER
    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = list(const.DISPLAY_STATUSES)
    _kind = const.KIND_CHAPTER

    def __init__(
        self, coordinator: QuestlineDataCoordinator, entry: ConfigEntry, chapter_id: str
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry, chapter_id, const.SENSOR_UID_SUFFIX_CHAPTER)

    @property
    def native_value(self) -> str | None:
        """Return the chapter's effective display status."""
        chapter = self.record
        if chapter is None:
            return None
        return self.effective_status(chapter)

    @property
    def icon(self) -> str:
        """Status icon, falling back to the chapter book."""
        return const.DISPLAY_STATUS_ICONS.get(
            self.native_value or "", const.DEFAULT_CHAPTER_ICON
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Expose progress ratio, linked quest count and urgency."""
        chapter = self.record
        if chapter is None:
            return {}
        linked = ProgressEngine.count_linked_quests(
            chapter, self.coordinator.quests_data.values()
        )
        ratio = ProgressEngine.chapter_progress_ratio(chapter, linked)
        season = self.coordinator.find_chapter_season(self._internal_id)
        return {
            **self.common_attributes(chapter),
            const.ATTR_PROGRESS: chapter.get(const.DATA_PROGRESS, const.DEFAULT_PROGRESS),
            const.ATTR_PROGRESS_NUMERATOR: ratio.numerator,
            const.ATTR_PROGRESS_DENOMINATOR: ratio.denominator,
            const.ATTR_LINKED_QUEST_COUNT: linked,
            const.ATTR_SEASON_ID: season[const.DATA_INTERNAL_ID] if season else None,
        }


class QuestStatusSensor(QuestlineCoordinatorEntity, SensorEntity):
    """Effective display status of a quest.

    linked_task_progress is a read-only hint from linked tasks; the stored
    manual progress stays authoritative.
    """

    _attr_translation_key = const.TRANS_KEY_SENSOR_QUEST
    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = list(const.DISPLAY_STATUSES)
    _kind = const.KIND_QUEST

    def __init__(
        self, coordinator: QuestlineDataCoordinator, entry: ConfigEntry, quest_id: str
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry, quest_id, const.SENSOR_UID_SUFFIX_QUEST)

    @property
    def native_value(self) -> str | None:
        """Return the quest's effective display status."""
        quest = self.record
        if quest is None:
            return None
        return self.effective_status(quest)

    @property
    def icon(self) -> str:
        """Status icon, falling back to the quest sword."""
        return const.DISPLAY_STATUS_ICONS.get(
            self.native_value or "", const.DEFAULT_QUEST_ICON
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Expose progress, linked task progress and urgency."""
        quest = self.record
        if quest is None:
            return {}
        return {
            **self.common_attributes(quest),
            const.ATTR_PROGRESS: quest.get(const.DATA_PROGRESS, const.DEFAULT_PROGRESS),
            const.ATTR_LINKED_TASK_PROGRESS: ProgressEngine.quest_progress_from_tasks(
                quest, self.coordinator.tasks_data.values()
            ),
            const.ATTR_SEASON_ID: quest.get(const.DATA_QUEST_SEASON_ID),
        }
