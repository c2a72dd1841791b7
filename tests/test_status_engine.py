"""Tests for StatusEngine - pure logic, no HA fixtures needed.

These tests validate display status derivation, the parent lock cascade
and normalization back into the stored vocabulary.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from freezegun import freeze_time
import pytest

from custom_components.questline import const
from custom_components.questline.engines import (
    STATUS_RULES,
    ProgressEngine,
    StatusEngine,
    derive_display_status,
    normalize_for_storage,
)

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


def _chapter(**fields: Any) -> dict[str, Any]:
    return {const.DATA_INTERNAL_ID: "ch", const.DATA_STATUS: const.STATUS_ACTIVE, **fields}


# =============================================================================
# TEST: PRECEDENCE
# =============================================================================


class TestPrecedence:
    """The first matching rule wins."""

    def test_rule_order(self) -> None:
        """Rules are evaluated paused, locked, completed, overdue, active."""
        assert [rule.__name__ for rule in STATUS_RULES] == [
            "_rule_paused",
            "_rule_locked",
            "_rule_completed",
            "_rule_overdue",
            "_rule_active",
        ]

    @pytest.mark.parametrize(
        "dates",
        [
            {},
            {const.DATA_UNLOCK_TIME: "2099-01-01"},
            {const.DATA_DEADLINE: "2024-01-01"},
            {const.DATA_UNLOCK_TIME: "2099-01-01", const.DATA_DEADLINE: "2024-01-01"},
            {const.DATA_PROGRESS: 100, const.DATA_DEADLINE: "2024-01-01"},
        ],
    )
    def test_paused_beats_every_date_rule(self, dates: dict[str, Any]) -> None:
        """A paused entity is paused whatever its dates say."""
        chapter = _chapter(status=const.STATUS_PAUSED, **dates)
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_PAUSED

    def test_locked_beats_overdue(self) -> None:
        """A future unlock date wins over a passed deadline."""
        chapter = _chapter(unlock_time="2099-01-01", deadline="2024-01-01")
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_LOCKED

    def test_locked_beats_completed(self) -> None:
        """Progress of 100 does not unlock an entity early."""
        chapter = _chapter(unlock_time="2099-01-01", progress=100)
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_LOCKED

    def test_unlock_today_is_active(self) -> None:
        """The unlock day itself is already unlocked."""
        chapter = _chapter(unlock_time="2025-01-01")
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_ACTIVE

    def test_deadline_today_is_not_overdue(self) -> None:
        """The deadline day counts until its end."""
        chapter = _chapter(deadline="2025-01-01")
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_ACTIVE

    def test_malformed_dates_are_ignored(self) -> None:
        """Malformed dates skip their rule instead of raising."""
        chapter = _chapter(unlock_time="soon", deadline="2024-13-45")
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_ACTIVE

    @pytest.mark.parametrize("progress", ["inf", float("inf"), float("nan")])
    def test_non_finite_progress_is_not_completed(self, progress: Any) -> None:
        """nan and inf progress read as 0, matching the progress bar."""
        chapter = _chapter(progress=progress)
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_ACTIVE

    def test_stored_completed_without_progress(self) -> None:
        """Stored completed counts as completed at any progress."""
        chapter = _chapter(status=const.STATUS_COMPLETED, progress=10)
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_COMPLETED

    def test_form_entry_point_alias(self) -> None:
        """The package-level alias derives the same status."""
        chapter = _chapter(deadline="2024-01-01")
        assert derive_display_status(const.KIND_CHAPTER, chapter, NOW) == (
            const.DISPLAY_OVERDUE_UNFINISHED
        )


# =============================================================================
# TEST: SCENARIOS
# =============================================================================


class TestChapterScenarios:
    """Reference chapter scenarios."""

    def test_future_unlock_is_locked(self) -> None:
        """Active chapter unlocking in 2099 is locked."""
        chapter = _chapter(unlock_time="2099-01-01")
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_LOCKED

    def test_passed_deadline_unfinished(self) -> None:
        """Deadline passed at 40% is overdue_unfinished."""
        chapter = _chapter(deadline="2024-01-01", progress=40)
        assert StatusEngine.derive_chapter_status(chapter, NOW) == (
            const.DISPLAY_OVERDUE_UNFINISHED
        )

    def test_completed_after_deadline(self) -> None:
        """Finished after the deadline day is overdue_completed."""
        chapter = _chapter(
            progress=100,
            deadline="2024-01-01",
            completed_at="2024-06-01T00:00:00Z",
        )
        assert StatusEngine.derive_chapter_status(chapter, NOW) == (
            const.DISPLAY_OVERDUE_COMPLETED
        )

    def test_completed_before_deadline(self) -> None:
        """Finished before the deadline day ended is completed."""
        chapter = _chapter(
            progress=100,
            deadline="2024-01-01",
            completed_at="2023-12-31T10:00:00",
        )
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_COMPLETED

    def test_completed_on_deadline_day(self) -> None:
        """Late on the deadline day itself is still on time."""
        chapter = _chapter(
            progress=100,
            deadline="2024-01-01",
            completed_at="2024-01-01T23:59:00Z",
        )
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_COMPLETED

    def test_completed_without_timestamp(self) -> None:
        """No completed_at means completion cannot be late."""
        chapter = _chapter(progress=100, deadline="2024-01-01")
        assert StatusEngine.derive_chapter_status(chapter, NOW) == const.DISPLAY_COMPLETED


class TestSeasonAndQuest:
    """Seasons and quests follow the chapter precedence."""

    def test_season_uses_start_and_end_date(self) -> None:
        """start_date locks, end_date makes a season overdue."""
        future = {const.DATA_SEASON_START_DATE: "2099-01-01"}
        late = {
            const.DATA_SEASON_START_DATE: "2024-01-01",
            const.DATA_SEASON_END_DATE: "2024-06-30",
        }
        assert StatusEngine.derive_season_status(future, NOW) == const.DISPLAY_LOCKED
        assert StatusEngine.derive_season_status(late, NOW) == (
            const.DISPLAY_OVERDUE_UNFINISHED
        )

    def test_season_ignores_chapter_date_fields(self) -> None:
        """A season is not locked by an unlock_time key."""
        season = {const.DATA_UNLOCK_TIME: "2099-01-01"}
        assert StatusEngine.derive_season_status(season, NOW) == const.DISPLAY_ACTIVE

    def test_season_completes_by_status_only(self) -> None:
        """Aggregate quest progress of 100 leaves the season active."""
        season = {const.DATA_INTERNAL_ID: "s1", const.DATA_STATUS: const.STATUS_ACTIVE}
        quests = [
            {const.DATA_QUEST_SEASON_ID: "s1", const.DATA_PROGRESS: 100},
            {const.DATA_QUEST_SEASON_ID: "s1", const.DATA_PROGRESS: 100},
        ]
        assert ProgressEngine.aggregate_season_progress(season, quests) == 100
        assert StatusEngine.derive_season_status(season, NOW) == const.DISPLAY_ACTIVE

        season[const.DATA_STATUS] = const.STATUS_COMPLETED
        assert StatusEngine.derive_season_status(season, NOW) == (
            const.DISPLAY_COMPLETED
        )

    def test_quest_statuses(self) -> None:
        """Quests use unlock_time and deadline."""
        assert StatusEngine.derive_quest_status(
            {const.DATA_STATUS: const.STATUS_PAUSED}, NOW
        ) == const.DISPLAY_PAUSED
        assert StatusEngine.derive_quest_status(
            {const.DATA_PROGRESS: 100}, NOW
        ) == const.DISPLAY_COMPLETED
        assert StatusEngine.derive_quest_status({}, NOW) == const.DISPLAY_ACTIVE


# =============================================================================
# TEST: PARENT LOCK CASCADE
# =============================================================================


class TestParentLockCascade:
    """Locked ancestors lock their children."""

    @pytest.fixture
    def seasons(self) -> list[dict[str, Any]]:
        """One locked and one open season."""
        return [
            {
                const.DATA_INTERNAL_ID: "locked-season",
                const.DATA_SEASON_START_DATE: "2099-01-01",
                const.DATA_SEASON_CHAPTERS: [_chapter(internal_id="ch-in-locked")],
            },
            {
                const.DATA_INTERNAL_ID: "open-season",
                const.DATA_SEASON_START_DATE: "2024-01-01",
                const.DATA_SEASON_CHAPTERS: [
                    _chapter(internal_id="ch-open"),
                    _chapter(internal_id="ch-future", unlock_time="2099-01-01"),
                ],
            },
        ]

    def test_chapter_in_locked_season(self, seasons) -> None:
        """An active chapter of a locked season is locked."""
        chapter = seasons[0][const.DATA_SEASON_CHAPTERS][0]
        assert StatusEngine.derive_effective_status(
            const.KIND_CHAPTER, chapter, seasons, NOW
        ) == const.DISPLAY_LOCKED

    @pytest.mark.parametrize(
        ("fields", "expected"),
        [
            ({const.DATA_STATUS: const.STATUS_PAUSED}, const.DISPLAY_PAUSED),
            ({const.DATA_STATUS: const.STATUS_COMPLETED}, const.DISPLAY_COMPLETED),
            (
                {
                    const.DATA_PROGRESS: 100,
                    const.DATA_DEADLINE: "2024-01-01",
                    const.DATA_COMPLETED_AT: "2024-06-01T00:00:00Z",
                },
                const.DISPLAY_OVERDUE_COMPLETED,
            ),
            ({const.DATA_DEADLINE: "2024-01-01"}, const.DISPLAY_LOCKED),
        ],
    )
    def test_cascade_exemptions(self, seasons, fields, expected) -> None:
        """Paused and finished children keep their own status."""
        chapter = {**seasons[0][const.DATA_SEASON_CHAPTERS][0], **fields}
        assert StatusEngine.derive_effective_status(
            const.KIND_CHAPTER, chapter, seasons, NOW
        ) == expected

    def test_quest_in_locked_season(self, seasons) -> None:
        """A quest of a locked season is locked."""
        quest = {const.DATA_QUEST_SEASON_ID: "locked-season"}
        assert StatusEngine.derive_effective_status(
            const.KIND_QUEST, quest, seasons, NOW
        ) == const.DISPLAY_LOCKED

    def test_quest_linked_to_locked_chapter(self, seasons) -> None:
        """A quest linked to a locked chapter is locked, season or not."""
        quest = {const.DATA_QUEST_LINKED_CHAPTER_ID: "ch-future"}
        assert StatusEngine.derive_effective_status(
            const.KIND_QUEST, quest, seasons, NOW
        ) == const.DISPLAY_LOCKED

    def test_quest_linked_to_open_chapter(self, seasons) -> None:
        """An open chapter does not lock its quests."""
        quest = {
            const.DATA_QUEST_SEASON_ID: "open-season",
            const.DATA_QUEST_LINKED_CHAPTER_ID: "ch-open",
        }
        assert StatusEngine.derive_effective_status(
            const.KIND_QUEST, quest, seasons, NOW
        ) == const.DISPLAY_ACTIVE

    def test_missing_parents_are_tolerated(self, seasons) -> None:
        """Dangling references lock nothing."""
        quest = {
            const.DATA_QUEST_SEASON_ID: "gone",
            const.DATA_QUEST_LINKED_CHAPTER_ID: "also-gone",
        }
        assert StatusEngine.derive_effective_status(
            const.KIND_QUEST, quest, seasons, NOW
        ) == const.DISPLAY_ACTIVE
        assert StatusEngine.derive_effective_status(
            const.KIND_CHAPTER, _chapter(internal_id="orphan"), seasons, NOW
        ) == const.DISPLAY_ACTIVE

    def test_actionable(self) -> None:
        """Only locked blocks edits."""
        assert not StatusEngine.is_actionable(const.DISPLAY_LOCKED)
        for status in const.DISPLAY_STATUSES:
            if status != const.DISPLAY_LOCKED:
                assert StatusEngine.is_actionable(status)


# =============================================================================
# TEST: NORMALIZATION
# =============================================================================


class TestNormalization:
    """Display → stored collapse."""

    @pytest.mark.parametrize(
        ("display", "expected"),
        [
            (const.DISPLAY_LOCKED, const.STATUS_LOCKED),
            (const.DISPLAY_PAUSED, const.STATUS_PAUSED),
            (const.DISPLAY_COMPLETED, const.STATUS_COMPLETED),
            (const.DISPLAY_ACTIVE, const.STATUS_ACTIVE),
            (const.DISPLAY_OVERDUE_UNFINISHED, const.STATUS_ACTIVE),
            (const.DISPLAY_OVERDUE_COMPLETED, const.STATUS_COMPLETED),
        ],
    )
    def test_mapping(self, display: str, expected: str) -> None:
        """Each display status maps to one stored status."""
        assert normalize_for_storage(display, const.STATUS_ACTIVE) == expected

    def test_archived_is_terminal(self) -> None:
        """An archived entity stays archived."""
        assert StatusEngine.normalize_for_storage(
            const.DISPLAY_ACTIVE, const.STATUS_ARCHIVED
        ) == const.STATUS_ARCHIVED

    def test_unknown_input(self) -> None:
        """Unknown input keeps a storable current status, else active."""
        assert StatusEngine.normalize_for_storage("bogus", const.STATUS_PAUSED) == (
            const.STATUS_PAUSED
        )
        assert StatusEngine.normalize_for_storage("bogus", "bogus") == const.STATUS_ACTIVE

    def test_idempotent_and_never_overdue(self) -> None:
        """Normalizing twice equals normalizing once; overdue never stored."""
        for display in (*const.DISPLAY_STATUSES, "bogus"):
            for current in const.STORED_STATUSES:
                once = StatusEngine.normalize_for_storage(display, current)
                assert StatusEngine.normalize_for_storage(once, current) == once
                assert once in const.STORED_STATUSES
                assert once not in (
                    const.DISPLAY_OVERDUE_UNFINISHED,
                    const.DISPLAY_OVERDUE_COMPLETED,
                )


class TestResolveBaseStatus:
    """Stored status after a create or date edit."""

    def test_future_unlock_locks(self) -> None:
        """Future unlock date → locked."""
        chapter = _chapter(unlock_time="2099-01-01")
        assert StatusEngine.resolve_base_status(
            const.KIND_CHAPTER, chapter, None, NOW
        ) == const.STATUS_LOCKED

    def test_passed_unlock_unlocks(self) -> None:
        """A stored locked entity whose date passed becomes active."""
        chapter = _chapter(status=const.STATUS_LOCKED, unlock_time="2024-01-01")
        assert StatusEngine.resolve_base_status(
            const.KIND_CHAPTER, chapter, None, NOW
        ) == const.STATUS_ACTIVE

    @pytest.mark.parametrize(
        "sticky", [const.STATUS_PAUSED, const.STATUS_COMPLETED, const.STATUS_ARCHIVED]
    )
    def test_sticky_statuses(self, sticky: str) -> None:
        """Explicit paused/completed/archived survive date edits."""
        chapter = _chapter(status=sticky, unlock_time="2099-01-01")
        assert StatusEngine.resolve_base_status(
            const.KIND_CHAPTER, chapter, None, NOW
        ) == sticky

    def test_requested_status_wins_when_sticky(self) -> None:
        """A requested pause is kept even before the unlock date."""
        chapter = _chapter(unlock_time="2099-01-01")
        assert StatusEngine.resolve_base_status(
            const.KIND_CHAPTER, chapter, const.STATUS_PAUSED, NOW
        ) == const.STATUS_PAUSED

    def test_overdue_entity_stays_active(self) -> None:
        """A passed deadline still stores active."""
        chapter = _chapter(deadline="2024-01-01")
        assert StatusEngine.resolve_base_status(
            const.KIND_CHAPTER, chapter, None, NOW
        ) == const.STATUS_ACTIVE


# =============================================================================
# TEST: HINTS
# =============================================================================


class TestHints:
    """Urgency, completion and pause snapshots."""

    @pytest.mark.parametrize(
        ("deadline", "expected"),
        [
            ("2024-12-31", const.URGENCY_RED),
            ("2025-01-02", const.URGENCY_YELLOW),
            ("2025-01-03", const.URGENCY_YELLOW),
            ("2025-02-01", const.URGENCY_GREEN),
            (None, None),
            ("garbage", None),
        ],
    )
    def test_deadline_urgency(self, deadline, expected) -> None:
        """Red when expired, yellow within the horizon, green beyond."""
        assert StatusEngine.deadline_urgency(
            deadline, const.STATUS_ACTIVE, NOW
        ) == expected

    def test_no_urgency_once_completed(self) -> None:
        """Completed entities have no urgency."""
        assert StatusEngine.deadline_urgency(
            "2024-12-31", const.STATUS_COMPLETED, NOW
        ) is None

    def test_due_soon_horizon_is_configurable(self) -> None:
        """A wider horizon turns green into yellow."""
        assert StatusEngine.deadline_urgency(
            "2025-01-10", const.STATUS_ACTIVE, NOW, due_soon_days=14
        ) == const.URGENCY_YELLOW

    def test_is_completed(self) -> None:
        """Stored or derived completion both count."""
        assert StatusEngine.is_completed(
            const.KIND_QUEST, {const.DATA_STATUS: const.STATUS_COMPLETED}, NOW
        )
        assert StatusEngine.is_completed(const.KIND_QUEST, {const.DATA_PROGRESS: 100}, NOW)
        assert not StatusEngine.is_completed(
            const.KIND_QUEST, {const.DATA_PROGRESS: 99}, NOW
        )

    def test_build_pause_info(self) -> None:
        """Pause snapshot carries reason, time and clamped progress."""
        info = StatusEngine.build_pause_info(
            {const.DATA_PROGRESS: 42.4}, "Travelling", NOW
        )
        assert info == {
            const.DATA_PAUSE_REASON: "Travelling",
            const.DATA_PAUSE_PAUSED_AT: "2025-01-01T12:00:00+00:00",
            const.DATA_PAUSE_PROGRESS_SNAPSHOT: 42,
        }

    def test_inputs_not_mutated(self) -> None:
        """Derivation never writes to the record."""
        chapter = _chapter(progress=100, deadline="2024-01-01")
        before = dict(chapter)
        StatusEngine.derive_chapter_status(chapter, NOW)
        StatusEngine.resolve_base_status(const.KIND_CHAPTER, chapter, None, NOW)
        assert chapter == before


# =============================================================================
# TEST: DEFAULT NOW
# =============================================================================


class TestDefaultNow:
    """Without an explicit instant the current local time is used."""

    @freeze_time("2025-01-01 12:00:00")
    def test_unlock_tomorrow_is_locked(self) -> None:
        """Tomorrow's unlock date locks today."""
        assert derive_display_status(
            const.KIND_QUEST, {const.DATA_UNLOCK_TIME: "2025-01-02"}
        ) == const.DISPLAY_LOCKED

    @freeze_time("2025-01-02 00:00:01")
    def test_unlocks_at_midnight(self) -> None:
        """The same record is active just after local midnight."""
        assert derive_display_status(
            const.KIND_QUEST, {const.DATA_UNLOCK_TIME: "2025-01-02"}
        ) == const.DISPLAY_ACTIVE

    @freeze_time("2025-01-01 12:00:00")
    def test_default_urgency(self) -> None:
        """Urgency reads the frozen clock."""
        assert StatusEngine.deadline_urgency(
            "2025-01-02", const.STATUS_ACTIVE
        ) == const.URGENCY_YELLOW
