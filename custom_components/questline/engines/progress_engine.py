"""Progress Engine - Pure aggregation of progress up the hierarchy.

Season progress is a read model: it is recomputed from the full quest
collection on every call and never persisted. Chapter progress is stored
manually; the engine only reinterprets it as a ratio against the number of
linked quests for display.

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
Inputs are never mutated. Missing parents or links produce empty/zero results.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from .. import const
from ..type_defs import ChecklistStats, HierarchySnapshot, ProgressRatio
from ..utils.math_utils import calculate_percentage, clamp_progress, round_half_up
from .status_engine import StatusEngine


class ProgressEngine:
    """Pure progress aggregation.

    All methods are static - no instance state.
    """

    # =========================================================================
    # SEASON / CHAPTER
    # =========================================================================

    @staticmethod
    def aggregate_season_progress(
        season: Mapping[str, Any], quests: Iterable[Mapping[str, Any]]
    ) -> int:
        """Average progress of the quests linked to a season.

        Args:
            season: Season record (only internal_id is read)
            quests: Full quest collection

        Returns:
            Integer in [0, 100], rounded half-up; 0 when no quest links to
            the season.

        Example:
            linked quest progress [20, 60, 100] → 60
        """
        season_id = season.get(const.DATA_INTERNAL_ID)
        if not season_id:
            return const.PROGRESS_MIN

        values = [
            clamp_progress(quest.get(const.DATA_PROGRESS))
            for quest in quests
            if quest.get(const.DATA_QUEST_SEASON_ID) == season_id
        ]
        if not values:
            return const.PROGRESS_MIN
        return clamp_progress(sum(values) / len(values))

    @staticmethod
    def count_linked_quests(
        chapter: Mapping[str, Any], quests: Iterable[Mapping[str, Any]]
    ) -> int:
        """Count quests linked to a chapter.

        A quest counts when its linked_chapter_id points at the chapter or
        when the chapter lists its id in linked_quests. Ids of quests that
        no longer exist are ignored.
        """
        chapter_id = chapter.get(const.DATA_INTERNAL_ID)
        listed = set(chapter.get(const.DATA_CHAPTER_LINKED_QUESTS) or [])
        return sum(
            1
            for quest in quests
            if (chapter_id and quest.get(const.DATA_QUEST_LINKED_CHAPTER_ID) == chapter_id)
            or quest.get(const.DATA_INTERNAL_ID) in listed
        )

    @staticmethod
    def chapter_progress_ratio(
        chapter: Mapping[str, Any], linked_quest_count: int
    ) -> ProgressRatio:
        """Reinterpret a chapter's manual percentage for a progress bar.

        With N linked quests the bar shows round(progress / 100 * N) out of
        N. Without linked quests it shows the percentage out of 100.

        Example:
            progress 50, 3 linked quests → ProgressRatio(2, 3)
        """
        progress = clamp_progress(chapter.get(const.DATA_PROGRESS))
        if linked_quest_count <= 0:
            return ProgressRatio(progress, const.PROGRESS_MAX)
        numerator = round_half_up(progress / const.PROGRESS_MAX * linked_quest_count)
        return ProgressRatio(numerator, linked_quest_count)

    # =========================================================================
    # TASKS / CHECKLISTS
    # =========================================================================

    @staticmethod
    def checklist_stats(checklist: Iterable[Mapping[str, Any]] | None) -> ChecklistStats:
        """Completed/total/percent for a Definition-of-Done checklist."""
        items = list(checklist or [])
        completed = sum(
            1 for item in items if item.get(const.DATA_CHECKLIST_COMPLETED)
        )
        return ChecklistStats(
            completed=completed,
            total=len(items),
            percent=calculate_percentage(completed, len(items)),
        )

    @staticmethod
    def is_checklist_complete(checklist: Iterable[Mapping[str, Any]] | None) -> bool:
        """True when a non-empty checklist has every item ticked."""
        stats = ProgressEngine.checklist_stats(checklist)
        return stats["total"] > 0 and stats["completed"] == stats["total"]

    @staticmethod
    def task_progress(task: Mapping[str, Any]) -> int:
        """Task progress from its checklist, or 0/100 from status without one."""
        checklist = task.get(const.DATA_TASK_CHECKLIST) or []
        if not checklist:
            if task.get(const.DATA_STATUS) == const.TASK_STATUS_COMPLETED:
                return const.PROGRESS_MAX
            return const.PROGRESS_MIN
        return ProgressEngine.checklist_stats(checklist)["percent"]

    @staticmethod
    def quest_progress_from_tasks(
        quest: Mapping[str, Any], tasks: Iterable[Mapping[str, Any]]
    ) -> int:
        """Share of completed tasks linked to a quest.

        Read-only hint: falls back to the quest's manual progress when no
        task links to it, and never replaces the stored value.
        """
        quest_id = quest.get(const.DATA_INTERNAL_ID)
        linked = [
            task
            for task in tasks
            if quest_id and task.get(const.DATA_TASK_LINKED_QUEST_ID) == quest_id
        ]
        if not linked:
            return clamp_progress(quest.get(const.DATA_PROGRESS))
        completed = sum(
            1
            for task in linked
            if task.get(const.DATA_STATUS) == const.TASK_STATUS_COMPLETED
        )
        return calculate_percentage(completed, len(linked))

    # =========================================================================
    # OVERVIEW
    # =========================================================================

    @staticmethod
    def hierarchy_summary(
        data: HierarchySnapshot, now: datetime | None = None
    ) -> dict[str, dict[str, int]]:
        """Count entities per effective display status, per kind.

        Returns:
            {"season": {"active": 1, "locked": 0, ...}, "chapter": {...},
             "quest": {...}} with every display status present.
        """
        seasons = data.get(const.DATA_SEASONS, [])
        collections = {
            const.KIND_SEASON: seasons,
            const.KIND_CHAPTER: data.get(const.DATA_CHAPTERS, []),
            const.KIND_QUEST: data.get(const.DATA_QUESTS, []),
        }

        summary: dict[str, dict[str, int]] = {}
        for kind, entities in collections.items():
            counts = dict.fromkeys(const.DISPLAY_STATUSES, 0)
            for entity in entities:
                status = StatusEngine.derive_effective_status(
                    kind, entity, seasons, now
                )
                counts[status] += 1
            summary[kind] = counts
        return summary
