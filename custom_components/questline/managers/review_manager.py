"""Review Manager - One-time completion review prompts.

Hosts one CompletionWatcher per lifecycle kind and runs them after every
coordinator update. When a watcher reports a freshly completed entity, the
manager opens a review prompt for it:

- fires the `questline_review_requested` bus event for the frontend
- emits the instance-scoped review_requested signal

The frontend answers with the submit_review or dismiss_review service.

Session state (seen sets, the open prompt) lives only as long as the config
entry is loaded. A reload cold-starts the watchers from the current data,
so nothing completed while unloaded is prompted retroactively.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.exceptions import HomeAssistantError

from .. import const
from ..engines.review_engine import CompletionWatcher, ReviewCandidate
from ..engines.status_engine import StatusEngine
from ..utils.dt_utils import dt_now_local, to_utc_iso
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.core import HomeAssistant

    from ..coordinator import QuestlineDataCoordinator


class ReviewManager(BaseManager):
    """Manager for completion review prompts.

    Responsibilities:
    - Observe seasons, chapters and quests after each update
    - Keep at most one review prompt open at a time
    - Persist submitted reviews

    NOT responsible for:
    - Presenting the prompt (frontend)
    - Status transitions other than completing on review
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: QuestlineDataCoordinator
    ) -> None:
        """Initialize the ReviewManager."""
        super().__init__(hass, coordinator)
        self._watchers: dict[str, CompletionWatcher] = {
            kind: CompletionWatcher(kind) for kind in const.LIFECYCLE_KINDS
        }
        self._open_prompt: tuple[str, str] | None = None

    async def async_setup(self) -> None:
        """Cold-start the watchers and subscribe to coordinator updates."""
        self.observe()
        unsub = self.coordinator.async_add_listener(self._handle_coordinator_update)
        self.coordinator.config_entry.async_on_unload(unsub)
        self.coordinator.config_entry.async_on_unload(self.reset)
        self.listen(const.SIGNAL_SUFFIX_SEASON_ARCHIVED, self._on_season_archived)
        const.LOGGER.debug(
            "DEBUG: ReviewManager initialized for entry %s", self.entry_id
        )

    @callback
    def _handle_coordinator_update(self) -> None:
        self.observe()

    @callback
    def _on_season_archived(self, payload: dict[str, Any]) -> None:
        """Close prompts left open for an archived season or its chapters."""
        if self._open_prompt is None:
            return
        archived = {
            const.KIND_SEASON: {payload[const.ATTR_SEASON_ID]},
            const.KIND_CHAPTER: set(payload[const.ATTR_CHAPTER_IDS]),
        }
        kind, internal_id = self._open_prompt
        if internal_id in archived.get(kind, set()):
            const.LOGGER.debug(
                "DEBUG: Closing review prompt for archived %s '%s'", kind, internal_id
            )
            self._open_prompt = None

    # =========================================================================
    # Observation
    # =========================================================================

    def _collections(self) -> dict[str, list[dict[str, Any]]]:
        """Current records per kind; archived seasons are not observed."""
        snapshot = self.coordinator.read()
        return {
            const.KIND_SEASON: snapshot[const.DATA_SEASONS],
            const.KIND_CHAPTER: snapshot[const.DATA_CHAPTERS],
            const.KIND_QUEST: snapshot[const.DATA_QUESTS],
        }

    def observe(self, now: datetime | None = None) -> list[ReviewCandidate]:
        """Run every watcher once and open a prompt for a new completion.

        Watchers after the one that opened a prompt still mark their
        completions as seen, so those are never prompted later.

        Returns:
            Candidates that opened a prompt in this pass (at most one)
        """
        opened: list[ReviewCandidate] = []
        for kind, entities in self._collections().items():
            candidate = self._watchers[kind].observe(
                entities,
                prompt_open=self._open_prompt is not None,
                now=now,
            )
            if candidate is not None:
                self.on_entity_needs_review(candidate)
                opened.append(candidate)
        return opened

    def on_entity_needs_review(self, candidate: ReviewCandidate) -> None:
        """Open a review prompt for one entity."""
        self._open_prompt = (candidate.kind, candidate.internal_id)
        payload = {
            const.ATTR_KIND: candidate.kind,
            const.ATTR_INTERNAL_ID: candidate.internal_id,
            const.ATTR_NAME: candidate.name,
        }
        const.LOGGER.info(
            "INFO: Review requested for %s '%s'", candidate.kind, candidate.name
        )
        self.hass.bus.async_fire(const.EVENT_REVIEW_REQUESTED, payload)
        self.emit(const.SIGNAL_SUFFIX_REVIEW_REQUESTED, **payload)

    @property
    def open_prompt(self) -> tuple[str, str] | None:
        """(kind, internal_id) of the open review prompt, if any."""
        return self._open_prompt

    def get_open_prompt(self, kind: str) -> str | None:
        """Entity id of the open review prompt if it belongs to this kind."""
        if self._open_prompt is None or self._open_prompt[0] != kind:
            return None
        return self._open_prompt[1]

    @callback
    def reset(self) -> None:
        """Discard all session state (entry unload)."""
        for watcher in self._watchers.values():
            watcher.reset()
        self._open_prompt = None

    # =========================================================================
    # Public API: Review callbacks
    # =========================================================================

    def _close_prompt(self, kind: str, internal_id: str, *, submitted: bool) -> None:
        if self._open_prompt == (kind, internal_id):
            self._open_prompt = None
        self.emit(
            const.SIGNAL_SUFFIX_REVIEW_CLOSED,
            kind=kind,
            internal_id=internal_id,
            submitted=submitted,
        )

    async def submit_review(
        self,
        kind: str,
        internal_id: str,
        review: str,
        satisfaction: int | None = None,
    ) -> None:
        """Persist a review and mark the entity completed.

        completed_at is only written when absent, so a late review never
        moves the completion time.

        Raises:
            HomeAssistantError: Unknown kind/entity, locked entity, or
                satisfaction out of range
        """
        if kind not in const.LIFECYCLE_KINDS:
            raise HomeAssistantError(
                const.ERROR_VALIDATION_FMT.format(const.FIELD_KIND, kind)
            )
        if satisfaction is not None and not (
            const.REVIEW_SATISFACTION_MIN <= satisfaction <= const.REVIEW_SATISFACTION_MAX
        ):
            raise HomeAssistantError(
                const.ERROR_VALIDATION_FMT.format(const.FIELD_SATISFACTION, satisfaction)
            )

        entity = self.coordinator.get_entity_or_raise(kind, internal_id)
        now = dt_now_local()
        display_status = StatusEngine.derive_effective_status(
            kind, entity, self.coordinator.seasons_data.values(), now
        )
        if not StatusEngine.is_actionable(display_status):
            raise HomeAssistantError(
                const.ERROR_ENTITY_LOCKED_FMT.format(kind.capitalize(), internal_id)
            )

        fields: dict[str, Any] = {
            const.DATA_REVIEW: review,
            const.DATA_REVIEW_SATISFACTION: satisfaction,
            const.DATA_STATUS: const.STATUS_COMPLETED,
        }
        if entity.get(const.DATA_STATUS) == const.STATUS_PAUSED:
            fields[const.DATA_PAUSE_INFO] = None
        if not entity.get(const.DATA_COMPLETED_AT):
            fields[const.DATA_COMPLETED_AT] = to_utc_iso(now)

        self._close_prompt(kind, internal_id, submitted=True)
        self.coordinator.write(kind, internal_id, fields)
        const.LOGGER.info("INFO: Review submitted for %s '%s'", kind, internal_id)

    async def dismiss_review(self, kind: str, internal_id: str) -> None:
        """Close a prompt without writing anything.

        The entity stays unreviewed and is not prompted again this session.
        """
        if self._open_prompt != (kind, internal_id):
            const.LOGGER.debug(
                "DEBUG: No open review prompt for %s '%s'", kind, internal_id
            )
        self._close_prompt(kind, internal_id, submitted=False)
