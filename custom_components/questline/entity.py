"""Base entity classes for Questline integration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.helpers.update_coordinator import CoordinatorEntity

from . import const
from .coordinator import QuestlineDataCoordinator
from .engines.status_engine import StatusEngine
from .helpers.entity_helpers import sensor_unique_id

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry


class QuestlineCoordinatorEntity(CoordinatorEntity[QuestlineDataCoordinator]):
    """Base entity for one hierarchy record with typed coordinator access.

    Subclasses set `_kind`; the record is looked up by internal_id on every
    read so edits and archival are picked up without re-creating entities.
    """

    _attr_has_entity_name = True
    _kind: str = const.KIND_QUEST

    def __init__(
        self,
        coordinator: QuestlineDataCoordinator,
        entry: ConfigEntry,
        internal_id: str,
        uid_suffix: str,
    ) -> None:
        """Initialize the entity.

        Args:
            coordinator: QuestlineDataCoordinator instance for data access.
            entry: ConfigEntry for this integration instance.
            internal_id: internal_id of the season, chapter or quest.
            uid_suffix: SENSOR_UID_SUFFIX_* constant for this sensor type.
        """
        super().__init__(coordinator)
        self._entry = entry
        self._internal_id = internal_id
        self._attr_unique_id = sensor_unique_id(entry.entry_id, internal_id, uid_suffix)
        self._attr_translation_placeholders = {
            const.TRANS_KEY_SENSOR_ATTR_NAME: self._entity_name(self.record or {})
        }

    @property
    def coordinator(self) -> QuestlineDataCoordinator:
        """Return typed coordinator."""
        return object.__getattribute__(self, "_coordinator")

    @coordinator.setter
    def coordinator(self, value: QuestlineDataCoordinator) -> None:
        """Set coordinator with proper typing."""
        object.__setattr__(self, "_coordinator", value)

    @property
    def record(self) -> dict[str, Any] | None:
        """Current stored record, or None once deleted or archived."""
        return self.coordinator.find_entity(self._kind, self._internal_id)

    @property
    def available(self) -> bool:
        """Unavailable once the record is gone (e.g. season archived)."""
        return super().available and self.record is not None

    @property
    def due_soon_days(self) -> int:
        """Yellow urgency horizon from the entry options."""
        return int(
            self._entry.options.get(
                const.CONF_DUE_SOON_DAYS, const.DEFAULT_DUE_SOON_DAYS
            )
        )

    def _entity_name(self, record: dict[str, Any]) -> str:
        return str(
            record.get(const.NAME_FIELDS[self._kind]) or self._internal_id
        )

    def effective_status(self, record: dict[str, Any]) -> str:
        """Display status including the parent lock cascade."""
        return StatusEngine.derive_effective_status(
            self._kind, record, self.coordinator.seasons_data.values()
        )

    def common_attributes(self, record: dict[str, Any]) -> dict[str, Any]:
        """Attributes every hierarchy sensor exposes."""
        display_status = self.effective_status(record)
        _, deadline_field = const.LIFECYCLE_DATE_FIELDS[self._kind]
        return {
            const.ATTR_KIND: self._kind,
            const.ATTR_INTERNAL_ID: self._internal_id,
            const.ATTR_NAME: self._entity_name(record),
            const.ATTR_DISPLAY_STATUS: display_status,
            const.ATTR_STORED_STATUS: record.get(const.DATA_STATUS),
            const.ATTR_ACTIONABLE: StatusEngine.is_actionable(display_status),
            const.ATTR_DEADLINE_URGENCY: StatusEngine.deadline_urgency(
                record.get(deadline_field),
                record.get(const.DATA_STATUS),
                due_soon_days=self.due_soon_days,
            ),
            const.ATTR_REVIEWED: bool(record.get(const.DATA_REVIEW)),
        }
