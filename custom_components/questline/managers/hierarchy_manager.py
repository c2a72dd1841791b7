"""Hierarchy Manager - Season/Chapter/Quest/Task lifecycle operations.

This manager handles every edit that changes a lifecycle entity:
- Create: seasons, chapters (inside a season), quests, tasks
- Status: set_status / pause / resume with the pause snapshot
- Progress: manual chapter/quest progress (season progress is derived)
- Dates: unlock/deadline edits that re-resolve the base status
- Archive: move a season into season_history
- Tasks: complete a task

ARCHITECTURE:
- StatusEngine decides display status, actionability and normalization
- data_builders validates and builds records
- Coordinator provides data access, persistence and listener updates

Every status write goes through StatusEngine.normalize_for_storage(), so
overdue_* never reaches storage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.exceptions import HomeAssistantError

from .. import const, data_builders as db
from ..data_builders import EntityValidationError
from ..engines.status_engine import StatusEngine
from ..helpers.entity_helpers import remove_archived_sensors
from ..utils.dt_utils import dt_now_local, to_utc_iso
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.core import HomeAssistant

    from ..coordinator import QuestlineDataCoordinator


def validation_error(err: EntityValidationError) -> HomeAssistantError:
    """Convert a builder validation failure into a HomeAssistantError."""
    detail = err.translation_key
    if err.placeholders:
        detail = f"{detail} ({', '.join(f'{k}={v}' for k, v in err.placeholders.items())})"
    return HomeAssistantError(const.ERROR_VALIDATION_FMT.format(err.field, detail))


class HierarchyManager(BaseManager):
    """Manager for hierarchy creation and lifecycle transitions.

    Responsibilities:
    - Validate and create entities
    - Enforce lock, completion and archival rules on edits
    - Write pause snapshots atomically with the status

    NOT responsible for:
    - Review prompts (ReviewManager)
    - Direct storage persistence (delegated to coordinator)
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: QuestlineDataCoordinator
    ) -> None:
        """Initialize the HierarchyManager."""
        super().__init__(hass, coordinator)

    async def async_setup(self) -> None:
        """Set up the HierarchyManager.

        No event subscriptions needed - services call it directly.
        """
        const.LOGGER.debug(
            "DEBUG: HierarchyManager initialized for entry %s", self.entry_id
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def effective_status(
        self, kind: str, entity: dict[str, Any], now: datetime | None = None
    ) -> str:
        """Display status of an entity including the parent lock cascade."""
        return StatusEngine.derive_effective_status(
            kind, entity, self.coordinator.seasons_data.values(), now
        )

    def _ensure_actionable(
        self, kind: str, internal_id: str, entity: dict[str, Any], now: datetime
    ) -> None:
        if not StatusEngine.is_actionable(self.effective_status(kind, entity, now)):
            raise HomeAssistantError(
                const.ERROR_ENTITY_LOCKED_FMT.format(
                    kind.capitalize(), self._name_of(kind, entity, internal_id)
                )
            )

    @staticmethod
    def _name_of(kind: str, entity: dict[str, Any], fallback: str) -> str:
        return str(entity.get(const.NAME_FIELDS.get(kind, ""), fallback) or fallback)

    @staticmethod
    def _ensure_lifecycle_kind(kind: str) -> None:
        if kind not in const.LIFECYCLE_KINDS:
            raise HomeAssistantError(
                const.ERROR_VALIDATION_FMT.format(const.FIELD_KIND, kind)
            )

    # =========================================================================
    # Public API: Create
    # =========================================================================

    async def create_season(self, user_input: dict[str, Any]) -> str:
        """Create a season; locked when its start date is in the future.

        Returns:
            The new season's internal_id

        Raises:
            HomeAssistantError: On validation failure
        """
        try:
            season = db.build_season(user_input, now=dt_now_local())
        except EntityValidationError as err:
            raise validation_error(err) from err

        self.coordinator.add_entity(const.KIND_SEASON, season)
        return season[const.DATA_INTERNAL_ID]

    async def create_chapter(self, season_id: str, user_input: dict[str, Any]) -> str:
        """Create a chapter at the end of a season's chapter list.

        The chapter starts locked when the season is locked or its own
        unlock date is still ahead.

        Raises:
            HomeAssistantError: Unknown season or validation failure
        """
        season = self.coordinator.get_entity_or_raise(const.KIND_SEASON, season_id)
        try:
            chapter = db.build_chapter(user_input, season=season, now=dt_now_local())
        except EntityValidationError as err:
            raise validation_error(err) from err

        self.coordinator.add_chapter(season_id, chapter)
        return chapter[const.DATA_INTERNAL_ID]

    async def create_quest(self, user_input: dict[str, Any]) -> str:
        """Create a quest, optionally inside a season and linked to a chapter.

        Raises:
            HomeAssistantError: Unknown season/chapter or validation failure
        """
        season_id = user_input.get(const.DATA_QUEST_SEASON_ID)
        if season_id:
            self.coordinator.get_entity_or_raise(const.KIND_SEASON, season_id)

        chapter_id = user_input.get(const.DATA_QUEST_LINKED_CHAPTER_ID)
        if chapter_id:
            self.coordinator.get_entity_or_raise(const.KIND_CHAPTER, chapter_id)
            chapter_season = self.coordinator.find_chapter_season(chapter_id)
            if not season_id and chapter_season is not None:
                user_input = {
                    **user_input,
                    const.DATA_QUEST_SEASON_ID: chapter_season[const.DATA_INTERNAL_ID],
                }

        try:
            quest = db.build_quest(user_input, now=dt_now_local())
        except EntityValidationError as err:
            raise validation_error(err) from err

        self.coordinator.add_entity(const.KIND_QUEST, quest)
        return quest[const.DATA_INTERNAL_ID]

    async def create_task(self, user_input: dict[str, Any]) -> str:
        """Create a task linked to a quest, chapter, season, or nothing.

        Raises:
            HomeAssistantError: Unknown parent or validation failure
        """
        try:
            task = db.build_task(user_input, now=dt_now_local())
        except EntityValidationError as err:
            raise validation_error(err) from err

        parent_kind = {
            const.TASK_LINK_QUEST: const.KIND_QUEST,
            const.TASK_LINK_CHAPTER: const.KIND_CHAPTER,
            const.TASK_LINK_SEASON: const.KIND_SEASON,
        }.get(task[const.DATA_TASK_LINK_TYPE])
        if parent_kind is not None:
            parent_id = task[
                {
                    const.KIND_QUEST: const.DATA_TASK_LINKED_QUEST_ID,
                    const.KIND_CHAPTER: const.DATA_TASK_LINKED_CHAPTER_ID,
                    const.KIND_SEASON: const.DATA_TASK_LINKED_SEASON_ID,
                }[parent_kind]
            ]
            self.coordinator.get_entity_or_raise(parent_kind, parent_id)

        self.coordinator.add_entity(const.KIND_TASK, task)
        return task[const.DATA_INTERNAL_ID]

    # =========================================================================
    # Public API: Status
    # =========================================================================

    async def set_status(
        self,
        kind: str,
        internal_id: str,
        status: str,
        reason: str = const.SENTINEL_EMPTY,
    ) -> str:
        """Commit a status chosen in a form.

        The requested (display or stored) status is normalized first.
        Entering paused writes the pause snapshot in the same write;
        leaving paused clears it. completed_at is set once on completion.

        Returns:
            The stored status actually written

        Raises:
            HomeAssistantError: Unknown entity, archived season, locked
                entity, or an attempt to reopen a completed entity
        """
        self._ensure_lifecycle_kind(kind)
        entity = self.coordinator.get_entity_or_raise(kind, internal_id)
        now = dt_now_local()
        current = entity.get(const.DATA_STATUS, const.STATUS_ACTIVE)

        if current == const.STATUS_ARCHIVED:
            raise HomeAssistantError(const.ERROR_SEASON_ARCHIVED_FMT.format(internal_id))

        new_status = StatusEngine.normalize_for_storage(status, current)
        if new_status == current:
            const.LOGGER.debug(
                "DEBUG: %s '%s' already %s, nothing to write", kind, internal_id, current
            )
            return current

        name = self._name_of(kind, entity, internal_id)
        if current == const.STATUS_COMPLETED:
            raise HomeAssistantError(
                const.ERROR_REOPEN_COMPLETED_FMT.format(kind.capitalize(), name)
            )
        self._ensure_actionable(kind, internal_id, entity, now)

        fields: dict[str, Any] = {const.DATA_STATUS: new_status}
        if new_status == const.STATUS_PAUSED:
            fields[const.DATA_PAUSE_INFO] = StatusEngine.build_pause_info(
                entity, reason, now
            )
        elif current == const.STATUS_PAUSED:
            fields[const.DATA_PAUSE_INFO] = None

        if new_status == const.STATUS_COMPLETED and not entity.get(
            const.DATA_COMPLETED_AT
        ):
            fields[const.DATA_COMPLETED_AT] = to_utc_iso(now)

        if (
            kind == const.KIND_CHAPTER
            and new_status == const.STATUS_ACTIVE
            and not entity.get(const.DATA_CHAPTER_STARTED_AT)
        ):
            fields[const.DATA_CHAPTER_STARTED_AT] = to_utc_iso(now)

        self.coordinator.write(kind, internal_id, fields)
        const.LOGGER.info(
            "INFO: %s '%s' status %s -> %s", kind.capitalize(), name, current, new_status
        )
        self.emit(
            const.SIGNAL_SUFFIX_STATUS_CHANGED,
            kind=kind,
            internal_id=internal_id,
            old_status=current,
            new_status=new_status,
        )
        return new_status

    async def pause(
        self, kind: str, internal_id: str, reason: str = const.SENTINEL_EMPTY
    ) -> str:
        """Pause an entity, capturing reason, time and current progress."""
        return await self.set_status(kind, internal_id, const.STATUS_PAUSED, reason)

    async def resume(self, kind: str, internal_id: str) -> str:
        """Leave paused: back to locked or active depending on the unlock date.

        Raises:
            HomeAssistantError: If the entity is not paused
        """
        self._ensure_lifecycle_kind(kind)
        entity = self.coordinator.get_entity_or_raise(kind, internal_id)
        if entity.get(const.DATA_STATUS) != const.STATUS_PAUSED:
            raise HomeAssistantError(
                const.ERROR_VALIDATION_FMT.format(
                    const.FIELD_STATUS, entity.get(const.DATA_STATUS)
                )
            )

        target = StatusEngine.resolve_base_status(
            kind, entity, const.STATUS_ACTIVE, dt_now_local()
        )
        if target == const.STATUS_LOCKED:
            # set_status rejects edits on locked entities
            self.coordinator.write(
                kind,
                internal_id,
                {const.DATA_STATUS: const.STATUS_LOCKED, const.DATA_PAUSE_INFO: None},
            )
            self.emit(
                const.SIGNAL_SUFFIX_STATUS_CHANGED,
                kind=kind,
                internal_id=internal_id,
                old_status=const.STATUS_PAUSED,
                new_status=const.STATUS_LOCKED,
            )
            return const.STATUS_LOCKED
        return await self.set_status(kind, internal_id, target)

    # =========================================================================
    # Public API: Progress / Dates
    # =========================================================================

    async def set_progress(self, kind: str, internal_id: str, progress: Any) -> int:
        """Set the manual progress of a chapter or quest.

        Raises:
            HomeAssistantError: Season progress (always derived), unknown
                entity, locked entity, or progress outside 0-100
        """
        if kind == const.KIND_SEASON:
            raise HomeAssistantError(const.ERROR_SEASON_PROGRESS_DERIVED)
        self._ensure_lifecycle_kind(kind)
        entity = self.coordinator.get_entity_or_raise(kind, internal_id)
        self._ensure_actionable(kind, internal_id, entity, dt_now_local())

        builder = db.build_chapter if kind == const.KIND_CHAPTER else db.build_quest
        try:
            updated = builder({const.DATA_PROGRESS: progress}, entity)
        except EntityValidationError as err:
            raise validation_error(err) from err

        value = updated[const.DATA_PROGRESS]
        self.coordinator.write(kind, internal_id, {const.DATA_PROGRESS: value})
        return value

    async def set_dates(
        self, kind: str, internal_id: str, dates: dict[str, Any]
    ) -> str:
        """Edit unlock/deadline dates and re-resolve the stored status.

        Args:
            kind: Lifecycle kind
            internal_id: Entity id
            dates: Only the date fields being changed (DATA_* keys);
                None clears a date

        Returns:
            The stored status after the edit

        Raises:
            HomeAssistantError: Unknown entity or invalid dates
        """
        self._ensure_lifecycle_kind(kind)
        entity = self.coordinator.get_entity_or_raise(kind, internal_id)
        now = dt_now_local()
        allowed = const.LIFECYCLE_DATE_FIELDS[kind]
        changes = {key: value for key, value in dates.items() if key in allowed}

        builder = {
            const.KIND_SEASON: db.build_season,
            const.KIND_CHAPTER: db.build_chapter,
            const.KIND_QUEST: db.build_quest,
        }[kind]
        try:
            updated = builder(changes, entity, now=now)
        except EntityValidationError as err:
            raise validation_error(err) from err

        fields: dict[str, Any] = {field: updated.get(field) for field in allowed}
        status = StatusEngine.resolve_base_status(kind, updated, None, now)
        if kind == const.KIND_CHAPTER and status == const.STATUS_ACTIVE:
            season = self.coordinator.find_chapter_season(internal_id)
            if season is not None and (
                StatusEngine.derive_season_status(season, now) == const.DISPLAY_LOCKED
            ):
                status = const.STATUS_LOCKED
        fields[const.DATA_STATUS] = StatusEngine.normalize_for_storage(
            status, entity.get(const.DATA_STATUS, const.STATUS_ACTIVE)
        )

        self.coordinator.write(kind, internal_id, fields)
        return fields[const.DATA_STATUS]

    # =========================================================================
    # Public API: Archive / Tasks
    # =========================================================================

    async def archive_season(self, season_id: str) -> None:
        """Archive a season and move it into season_history.

        The season progress sensor and its chapter sensors are removed from the
        entity registry. Linked quests keep their season_id.
        """
        season = self.coordinator.get_entity_or_raise(const.KIND_SEASON, season_id)
        chapter_ids = [
            chapter[const.DATA_INTERNAL_ID]
            for chapter in season.get(const.DATA_SEASON_CHAPTERS, [])
        ]

        season[const.DATA_STATUS] = const.STATUS_ARCHIVED
        self.coordinator.move_season_to_history(season_id)

        remove_archived_sensors(self.hass, self.entry_id, season_id, chapter_ids)

        const.LOGGER.info(
            "INFO: Season '%s' archived with %d chapters",
            season.get(const.DATA_SEASON_NAME, season_id),
            len(chapter_ids),
        )
        self.emit(
            const.SIGNAL_SUFFIX_SEASON_ARCHIVED,
            season_id=season_id,
            chapter_ids=chapter_ids,
        )

    async def complete_task(self, task_id: str) -> None:
        """Mark a task completed and tick its whole checklist.

        completed_at is only written the first time.
        """
        task = self.coordinator.get_entity_or_raise(const.KIND_TASK, task_id)
        old_status = task.get(const.DATA_STATUS)
        if old_status == const.TASK_STATUS_COMPLETED:
            const.LOGGER.debug("DEBUG: Task '%s' already completed", task_id)
            return

        fields: dict[str, Any] = {
            const.DATA_STATUS: const.TASK_STATUS_COMPLETED,
            const.DATA_TASK_CHECKLIST: [
                {**item, const.DATA_CHECKLIST_COMPLETED: True}
                for item in task.get(const.DATA_TASK_CHECKLIST, [])
            ],
        }
        if not task.get(const.DATA_COMPLETED_AT):
            fields[const.DATA_COMPLETED_AT] = to_utc_iso(dt_now_local())

        self.coordinator.write(const.KIND_TASK, task_id, fields)
        self.emit(
            const.SIGNAL_SUFFIX_STATUS_CHANGED,
            kind=const.KIND_TASK,
            internal_id=task_id,
            old_status=old_status,
            new_status=const.TASK_STATUS_COMPLETED,
        )
