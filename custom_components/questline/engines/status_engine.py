"""Status Engine - Pure logic for lifecycle status derivation and normalization.

This engine provides stateless, pure Python functions for:
- Deriving the read-only display status of a Season, Chapter or Quest
- Cascading a locked parent onto its children
- Normalizing a display status back into the persisted vocabulary
- Resolving the base status a form commits after editing dates
- Deadline urgency hints and pause snapshots

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data and never
mutate it. `now` is always an explicit parameter (defaulting to the current
local time) so results are deterministic under test.

Derivation is a priority-ordered rule chain rather than a transition table:
the first rule that returns a status wins. The order is the contract:

    1. paused            explicit pause beats every date rule
    2. locked            unlock date not reached yet
    3. completed         stored completed OR progress >= 100
       overdue_completed ... but finished after the deadline day ended
    4. overdue_unfinished deadline day ended, not completed
    5. active
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
import math
from typing import Any

from .. import const
from ..type_defs import PauseInfo
from ..utils.dt_utils import (
    as_local,
    days_until_deadline,
    dt_now_local,
    end_of_day,
    parse_local_date,
    parse_timestamp,
    start_of_day,
    to_utc_iso,
)
from ..utils.math_utils import clamp_progress

# Display statuses a child keeps even when its parent is locked
_CASCADE_EXEMPT: frozenset[str] = frozenset(
    {
        const.DISPLAY_PAUSED,
        const.DISPLAY_COMPLETED,
        const.DISPLAY_OVERDUE_COMPLETED,
    }
)

# Display → storable collapse table
_NORMALIZATION_MAP: dict[str, str] = {
    const.DISPLAY_LOCKED: const.STATUS_LOCKED,
    const.DISPLAY_PAUSED: const.STATUS_PAUSED,
    const.DISPLAY_COMPLETED: const.STATUS_COMPLETED,
    const.DISPLAY_ACTIVE: const.STATUS_ACTIVE,
    const.DISPLAY_OVERDUE_UNFINISHED: const.STATUS_ACTIVE,
    const.DISPLAY_OVERDUE_COMPLETED: const.STATUS_COMPLETED,
}

# Explicit stored statuses that a date edit never overrides
_STICKY_STATUSES: frozenset[str] = frozenset(
    {const.STATUS_PAUSED, const.STATUS_COMPLETED, const.STATUS_ARCHIVED}
)


# =============================================================================
# DERIVATION CONTEXT
# =============================================================================


@dataclass(frozen=True)
class StatusContext:
    """Parsed inputs for one derivation pass.

    Attributes:
        stored_status: Persisted status field
        unlock_at: Start of the unlock day (local), or None
        deadline_end: End of the deadline day (local), or None
        completed_at: Completion timestamp, or None
        progress: Numeric progress (not clamped)
        now: Evaluation instant (local, aware)
    """

    stored_status: str
    unlock_at: datetime | None
    deadline_end: datetime | None
    completed_at: datetime | None
    progress: float
    now: datetime

    @property
    def is_completed(self) -> bool:
        """Completed in storage, or progress has reached 100%."""
        return (
            self.stored_status == const.STATUS_COMPLETED
            or self.progress >= const.PROGRESS_MAX
        )


def _rule_paused(ctx: StatusContext) -> str | None:
    if ctx.stored_status == const.STATUS_PAUSED:
        return const.DISPLAY_PAUSED
    return None


def _rule_locked(ctx: StatusContext) -> str | None:
    if ctx.unlock_at is not None and ctx.now < ctx.unlock_at:
        return const.DISPLAY_LOCKED
    return None


def _rule_completed(ctx: StatusContext) -> str | None:
    if not ctx.is_completed:
        return None
    if (
        ctx.deadline_end is not None
        and ctx.completed_at is not None
        and ctx.completed_at > ctx.deadline_end
    ):
        return const.DISPLAY_OVERDUE_COMPLETED
    return const.DISPLAY_COMPLETED


def _rule_overdue(ctx: StatusContext) -> str | None:
    if ctx.deadline_end is not None and ctx.now > ctx.deadline_end:
        return const.DISPLAY_OVERDUE_UNFINISHED
    return None


def _rule_active(ctx: StatusContext) -> str | None:  # pylint: disable=unused-argument
    return const.DISPLAY_ACTIVE


STATUS_RULES: tuple[Callable[[StatusContext], str | None], ...] = (
    _rule_paused,
    _rule_locked,
    _rule_completed,
    _rule_overdue,
    _rule_active,
)


def _progress_value(raw: Any) -> float:
    """Read a progress field as a float, treating junk and nan/inf as 0."""
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return float(const.DEFAULT_PROGRESS)
    if not math.isfinite(number):
        return float(const.DEFAULT_PROGRESS)
    return number


def _resolve_now(now: datetime | None) -> datetime:
    return as_local(now) if now is not None else dt_now_local()


# =============================================================================
# STATUS ENGINE
# =============================================================================


class StatusEngine:
    """Pure logic engine for lifecycle status derivation and normalization.

    All methods are static - no instance state.
    """

    # =========================================================================
    # DERIVATION
    # =========================================================================

    @staticmethod
    def build_context(
        kind: str, entity: Mapping[str, Any], now: datetime | None = None
    ) -> StatusContext:
        """Parse an entity's lifecycle fields into a StatusContext.

        Args:
            kind: const.KIND_SEASON / KIND_CHAPTER / KIND_QUEST
            entity: Entity record (only lifecycle fields are read)
            now: Evaluation instant; defaults to the current local time

        Returns:
            StatusContext with malformed dates already reduced to None
        """
        unlock_field, deadline_field = const.LIFECYCLE_DATE_FIELDS.get(
            kind, (const.DATA_UNLOCK_TIME, const.DATA_DEADLINE)
        )
        unlock_date = parse_local_date(entity.get(unlock_field))
        deadline_date = parse_local_date(entity.get(deadline_field))

        return StatusContext(
            stored_status=entity.get(const.DATA_STATUS, const.STATUS_ACTIVE),
            unlock_at=start_of_day(unlock_date) if unlock_date else None,
            deadline_end=end_of_day(deadline_date) if deadline_date else None,
            completed_at=parse_timestamp(entity.get(const.DATA_COMPLETED_AT)),
            progress=_progress_value(entity.get(const.DATA_PROGRESS)),
            now=_resolve_now(now),
        )

    @staticmethod
    def derive_display_status(
        kind: str, entity: Mapping[str, Any], now: datetime | None = None
    ) -> str:
        """Derive the effective display status of a lifecycle entity.

        Evaluates STATUS_RULES in order; the first rule returning a status
        wins. Never raises: malformed dates simply skip their rule.

        Args:
            kind: Entity kind (selects the unlock/deadline field names)
            entity: Entity record
            now: Evaluation instant; defaults to the current local time

        Returns:
            One of const.DISPLAY_STATUSES
        """
        ctx = StatusEngine.build_context(kind, entity, now)
        for rule in STATUS_RULES:
            result = rule(ctx)
            if result is not None:
                return result
        return const.DISPLAY_ACTIVE

    @staticmethod
    def derive_chapter_status(
        chapter: Mapping[str, Any], now: datetime | None = None
    ) -> str:
        """Display status of a chapter (unlock_time / deadline)."""
        return StatusEngine.derive_display_status(const.KIND_CHAPTER, chapter, now)

    @staticmethod
    def derive_quest_status(
        quest: Mapping[str, Any], now: datetime | None = None
    ) -> str:
        """Display status of a quest (unlock_time / deadline)."""
        return StatusEngine.derive_display_status(const.KIND_QUEST, quest, now)

    @staticmethod
    def derive_season_status(
        season: Mapping[str, Any], now: datetime | None = None
    ) -> str:
        """Display status of a season (start_date / end_date)."""
        return StatusEngine.derive_display_status(const.KIND_SEASON, season, now)

    # =========================================================================
    # HIERARCHY CASCADE
    # =========================================================================

    @staticmethod
    def apply_parent_lock(display_status: str, parent_locked: bool) -> str:
        """Force a child to `locked` when its parent is locked.

        Paused, completed and overdue-completed children keep their status.
        """
        if not parent_locked or display_status in _CASCADE_EXEMPT:
            return display_status
        return const.DISPLAY_LOCKED

    @staticmethod
    def derive_effective_status(
        kind: str,
        entity: Mapping[str, Any],
        seasons: Iterable[Mapping[str, Any]],
        now: datetime | None = None,
    ) -> str:
        """Derive a display status that also honors locked ancestors.

        - Season: own status only.
        - Chapter: locked if its season is locked.
        - Quest: locked if its season is locked or its linked chapter's
          effective status is locked.

        Missing parents are tolerated and simply do not lock anything.

        Args:
            kind: Entity kind
            entity: Entity record
            seasons: Active season records (with nested chapters)
            now: Evaluation instant; defaults to the current local time

        Returns:
            One of const.DISPLAY_STATUSES
        """
        now = _resolve_now(now)
        own_status = StatusEngine.derive_display_status(kind, entity, now)
        if kind == const.KIND_SEASON:
            return own_status

        season_list = list(seasons)

        if kind == const.KIND_CHAPTER:
            season = _find_chapter_season(
                season_list,
                entity.get(const.DATA_INTERNAL_ID),
                entity.get(const.DATA_CHAPTER_SEASON_ID),
            )
            season_locked = season is not None and (
                StatusEngine.derive_season_status(season, now) == const.DISPLAY_LOCKED
            )
            return StatusEngine.apply_parent_lock(own_status, season_locked)

        season_id = entity.get(const.DATA_QUEST_SEASON_ID)
        season = _find_season(season_list, season_id)
        parent_locked = season is not None and (
            StatusEngine.derive_season_status(season, now) == const.DISPLAY_LOCKED
        )

        chapter_id = entity.get(const.DATA_QUEST_LINKED_CHAPTER_ID)
        if not parent_locked and chapter_id:
            chapter_season = season or _find_chapter_season(season_list, chapter_id)
            chapter = _find_chapter(chapter_season, chapter_id)
            if chapter is not None and chapter_season is not None:
                chapter_status = StatusEngine.apply_parent_lock(
                    StatusEngine.derive_chapter_status(chapter, now),
                    StatusEngine.derive_season_status(chapter_season, now)
                    == const.DISPLAY_LOCKED,
                )
                parent_locked = chapter_status == const.DISPLAY_LOCKED

        return StatusEngine.apply_parent_lock(own_status, parent_locked)

    @staticmethod
    def is_actionable(display_status: str) -> bool:
        """Return True if the entity may be edited or receive children."""
        return display_status != const.DISPLAY_LOCKED

    @staticmethod
    def is_completed(
        kind: str, entity: Mapping[str, Any], now: datetime | None = None
    ) -> bool:
        """Completed in storage, or derived as completed / overdue_completed."""
        if entity.get(const.DATA_STATUS) == const.STATUS_COMPLETED:
            return True
        return (
            StatusEngine.derive_display_status(kind, entity, now)
            in const.DISPLAY_COMPLETED_STATUSES
        )

    # =========================================================================
    # NORMALIZATION
    # =========================================================================

    @staticmethod
    def normalize_for_storage(display_status: str, current_status: str) -> str:
        """Collapse a display status into the persisted vocabulary.

        locked/paused/completed pass through, active and overdue_unfinished
        become active, overdue_completed becomes completed. An archived
        entity stays archived. Unknown input keeps the current status when
        that is storable, else active.

        Args:
            display_status: Status shown or chosen in a form
            current_status: Status currently persisted

        Returns:
            A value from const.STORED_STATUSES (never an overdue_* value)
        """
        if current_status == const.STATUS_ARCHIVED:
            return const.STATUS_ARCHIVED
        if display_status in _NORMALIZATION_MAP:
            return _NORMALIZATION_MAP[display_status]
        if current_status in const.STORABLE_STATUSES:
            return current_status
        return const.STATUS_ACTIVE

    @staticmethod
    def resolve_base_status(
        kind: str,
        entity: Mapping[str, Any],
        requested: str | None = None,
        now: datetime | None = None,
    ) -> str:
        """Resolve the stored status to commit after a create or date edit.

        Explicit paused/completed/archived choices are kept. Otherwise the
        entity is stored as locked while its unlock date is in the future
        and active once it has passed.

        Args:
            kind: Entity kind
            entity: Entity record with the edited dates applied
            requested: Status chosen in the form, if any
            now: Evaluation instant; defaults to the current local time

        Returns:
            A value from const.STORED_STATUSES
        """
        explicit = requested or entity.get(const.DATA_STATUS, const.STATUS_ACTIVE)
        if explicit in _STICKY_STATUSES:
            return explicit

        probe = {**entity, const.DATA_STATUS: const.STATUS_ACTIVE}
        display = StatusEngine.derive_display_status(kind, probe, now)
        if display == const.DISPLAY_LOCKED:
            return const.STATUS_LOCKED
        return const.STATUS_ACTIVE

    # =========================================================================
    # HINTS / SNAPSHOTS
    # =========================================================================

    @staticmethod
    def deadline_urgency(
        deadline: str | None,
        stored_status: str | None,
        now: datetime | None = None,
        due_soon_days: int = const.DEFAULT_DUE_SOON_DAYS,
    ) -> str | None:
        """Classify how close a deadline is.

        Returns:
            URGENCY_RED (expired or under a day left), URGENCY_YELLOW
            (up to due_soon_days), URGENCY_GREEN, or None when there is no
            usable deadline or the entity is already completed.
        """
        if stored_status == const.STATUS_COMPLETED:
            return None
        days_remaining = days_until_deadline(deadline, _resolve_now(now))
        if days_remaining is None:
            return None
        if days_remaining < 1:
            return const.URGENCY_RED
        if days_remaining <= due_soon_days:
            return const.URGENCY_YELLOW
        return const.URGENCY_GREEN

    @staticmethod
    def build_pause_info(
        entity: Mapping[str, Any], reason: str = "", now: datetime | None = None
    ) -> PauseInfo:
        """Capture the pause snapshot written together with status=paused."""
        return PauseInfo(
            reason=reason or const.SENTINEL_EMPTY,
            paused_at=to_utc_iso(_resolve_now(now)),
            progress_snapshot=clamp_progress(entity.get(const.DATA_PROGRESS)),
        )


# =============================================================================
# LOOKUP HELPERS
# =============================================================================


def _find_season(
    seasons: list[Mapping[str, Any]], season_id: str | None
) -> Mapping[str, Any] | None:
    if not season_id:
        return None
    return next(
        (s for s in seasons if s.get(const.DATA_INTERNAL_ID) == season_id), None
    )


def _find_chapter(
    season: Mapping[str, Any] | None, chapter_id: str | None
) -> Mapping[str, Any] | None:
    if season is None or not chapter_id:
        return None
    return next(
        (
            ch
            for ch in season.get(const.DATA_SEASON_CHAPTERS, [])
            if ch.get(const.DATA_INTERNAL_ID) == chapter_id
        ),
        None,
    )


def _find_chapter_season(
    seasons: list[Mapping[str, Any]],
    chapter_id: str | None,
    season_id: str | None = None,
) -> Mapping[str, Any] | None:
    """Find the season that owns a chapter, preferring a known season_id."""
    season = _find_season(seasons, season_id)
    if season is not None:
        return season
    return next(
        (s for s in seasons if _find_chapter(s, chapter_id) is not None), None
    )
