"""Type definitions for Questline data structures.

TypedDict is used for entity records whose keys are fixed at design time
(SeasonData, ChapterData, QuestData, TaskData, PauseInfo). Engines accept
`dict[str, Any]` as well, because records read back from storage may be
missing optional keys or carry keys from newer versions.

IMPORTANT: This file must NOT import from coordinator.py or any module that
imports the coordinator, to avoid circular dependencies.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime defaults (.get() with
fallbacks) remain in the engines and builders.
"""

from typing import Any, NamedTuple, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

SeasonId = str  # UUID string
ChapterId = str  # UUID string
QuestId = str  # UUID string
TaskId = str  # UUID string
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"
LocalDate = str  # Strict calendar date "2026-01-18"

EntityRecord = dict[str, Any]


# =============================================================================
# Lifecycle Entities
# =============================================================================


class PauseInfo(TypedDict):
    """Snapshot captured when an entity is paused."""

    reason: str
    paused_at: ISODatetime
    progress_snapshot: int


class ChapterData(TypedDict):
    """Type definition for a chapter (stored inside its season).

    Created via data_builders.build_chapter().
    """

    internal_id: ChapterId
    title: str
    description: str
    order: int
    progress: int  # Manual 0-100
    status: str  # active | paused | completed | archived | locked
    unlock_time: NotRequired[LocalDate | None]
    deadline: NotRequired[LocalDate | None]
    linked_quests: list[QuestId]
    started_at: NotRequired[ISODatetime | None]
    completed_at: NotRequired[ISODatetime | None]
    pause_info: NotRequired[PauseInfo | None]
    reward_title: NotRequired[str]
    reward_xp: NotRequired[int]
    review: NotRequired[str | None]
    review_satisfaction: NotRequired[int | None]


class SeasonData(TypedDict):
    """Type definition for a season.

    Created via data_builders.build_season(). `start_date` acts as the
    unlock date and `end_date` as the deadline for status derivation.
    """

    internal_id: SeasonId
    name: str
    description: str
    category: str
    start_date: LocalDate
    end_date: NotRequired[LocalDate | None]
    status: str
    chapters: list[ChapterData]
    created_at: ISODatetime
    completed_at: NotRequired[ISODatetime | None]
    pause_info: NotRequired[PauseInfo | None]
    reward_title: NotRequired[str]
    reward_xp: NotRequired[int]
    review: NotRequired[str | None]
    review_satisfaction: NotRequired[int | None]


class QuestData(TypedDict):
    """Type definition for a quest.

    A quest may be an orphan (no season) and may link to one chapter.
    """

    internal_id: QuestId
    title: str
    description: str
    progress: int  # Manual 0-100
    status: str
    unlock_time: NotRequired[LocalDate | None]
    deadline: NotRequired[LocalDate | None]
    season_id: NotRequired[SeasonId | None]
    linked_chapter_id: NotRequired[ChapterId | None]
    created_at: ISODatetime
    completed_at: NotRequired[ISODatetime | None]
    pause_info: NotRequired[PauseInfo | None]
    review: NotRequired[str | None]
    review_satisfaction: NotRequired[int | None]


class ChecklistItem(TypedDict):
    """One Definition-of-Done checklist entry on a task."""

    text: str
    completed: bool


class TaskData(TypedDict):
    """Type definition for a task (leaf of the hierarchy)."""

    internal_id: TaskId
    name: str
    status: str  # todo | in_progress | completed
    link_type: str  # quest | chapter | season | none
    linked_quest_id: NotRequired[QuestId | None]
    linked_chapter_id: NotRequired[ChapterId | None]
    linked_season_id: NotRequired[SeasonId | None]
    deadline: NotRequired[LocalDate | None]
    checklist: list[ChecklistItem]
    created_at: ISODatetime
    completed_at: NotRequired[ISODatetime | None]


# =============================================================================
# Read Models
# =============================================================================


class HierarchySnapshot(TypedDict):
    """Result of coordinator.read(): the collections engines work on."""

    seasons: list[SeasonData]
    quests: list[QuestData]
    chapters: list[ChapterData]  # Flattened, each tagged with season_id
    tasks: list[TaskData]


class ChecklistStats(TypedDict):
    """Checklist completion summary."""

    completed: int
    total: int
    percent: int


class ProgressRatio(NamedTuple):
    """Numerator/denominator pair for a chapter progress bar."""

    numerator: int
    denominator: int
