"""Entity lifecycle management helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Entity field defaults
- Business logic validation
- Complete entity structure building

### Build Functions
Each entity type has a `build_<entity>()` function that:
- Takes user_input with DATA_* keys (service field names are aligned)
- Generates internal_id (UUID) for new entities
- Sets created_at on create
- Applies field defaults
- Resolves the initial stored status (locked before the unlock date)
- Returns complete entity dict ready for storage

Business rule failures raise EntityValidationError naming the field.

Consumers:
- managers/hierarchy_manager.py (create and edit operations)
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
import uuid

from . import const
from .engines.status_engine import StatusEngine
from .type_defs import ChapterData, ChecklistItem, QuestData, SeasonData, TaskData
from .utils.dt_utils import (
    dt_now_local,
    parse_local_date,
    to_utc_iso,
    validate_and_clamp_date,
)
from .utils.math_utils import clamp_progress

# ==============================================================================
# HELPER FUNCTIONS FOR FIELD NORMALIZATION
# ==============================================================================


def _normalize_list_field(value: Any) -> list[Any]:
    """Normalize a field that should be a list.

    None becomes [], a single string becomes a one-item list.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    if isinstance(value, str):
        return [value] if value else []
    return list(value)


def _normalize_date_field(value: Any) -> str | None:
    """Normalize a calendar date field to YYYY-MM-DD, or None when empty.

    Accepts date objects (from cv.date) and strings. The day is clamped to
    the end of its month first, so "2026-02-31" is stored as "2026-02-28".

    Raises:
        ValueError: If the value is not a valid calendar date
    """
    if value is None or value == const.SENTINEL_EMPTY:
        return None
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.isoformat()
    clamped = validate_and_clamp_date(str(value).strip())
    if parse_local_date(clamped) is None:
        raise ValueError(value)
    return clamped


def _normalize_checklist(value: Any) -> list[ChecklistItem]:
    """Normalize checklist input: plain strings or {text, completed} dicts."""
    items: list[ChecklistItem] = []
    for raw in _normalize_list_field(value):
        if isinstance(raw, dict):
            text = str(raw.get(const.DATA_CHECKLIST_TEXT, "")).strip()
            completed = bool(raw.get(const.DATA_CHECKLIST_COMPLETED, False))
        else:
            text = str(raw).strip()
            completed = False
        if text:
            items.append(ChecklistItem(text=text, completed=completed))
    return items


def _is_valid_progress(value: Any) -> bool:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return const.PROGRESS_MIN <= number <= const.PROGRESS_MAX


def _make_field_getter(user_input: dict[str, Any], existing: dict[str, Any] | None):
    """Return get_field(key, default): user_input > existing > default."""

    def get_field(data_key: str, default: Any) -> Any:
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    return get_field


def _require_name(
    user_input: dict[str, Any], raw_name: Any, field: str, is_create: bool
) -> str:
    """Return the stripped name, raising when a required name is blank."""
    name = str(raw_name).strip() if raw_name else ""
    if (is_create or field in user_input) and not name:
        raise EntityValidationError(
            field=field, translation_key=const.TRANS_KEY_INVALID_NAME
        )
    return name


def _build_date(get_field, field: str) -> str | None:
    """Read and normalize one date field, raising EntityValidationError."""
    raw = get_field(field, None)
    try:
        return _normalize_date_field(raw)
    except ValueError as err:
        raise EntityValidationError(
            field=field,
            translation_key=const.TRANS_KEY_INVALID_DATE,
            placeholders={"value": str(raw)},
        ) from err


def _check_date_range(unlock_field: str, unlock: str | None, deadline_field: str, deadline: str | None) -> None:
    """Reject a deadline that falls before the unlock date."""
    if unlock and deadline and deadline < unlock:
        raise EntityValidationError(
            field=deadline_field,
            translation_key=const.TRANS_KEY_INVALID_DATE_RANGE,
            placeholders={"start": unlock, "end": deadline, "field": unlock_field},
        )


# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Raised when business logic validation fails in entity creation or
    update. Services translate it into a HomeAssistantError naming the
    field.

    Attributes:
        field: The DATA_* key identifying the field that failed
        translation_key: The TRANS_KEY_* constant for the error message
        placeholders: Optional dict for translation string placeholders

    Example:
        raise EntityValidationError(
            field=const.DATA_PROGRESS,
            translation_key=const.TRANS_KEY_INVALID_PROGRESS,
            placeholders={"value": "120"},
        )
    """

    def __init__(
        self,
        field: str,
        translation_key: str,
        placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize EntityValidationError."""
        self.field = field
        self.translation_key = translation_key
        self.placeholders = placeholders or {}
        super().__init__(translation_key)


# ==============================================================================
# SEASONS
# ==============================================================================


def build_season(
    user_input: dict[str, Any],
    existing: SeasonData | None = None,
    *,
    now: datetime | None = None,
) -> SeasonData:
    """Build season data for create or update operations.

    One function handles both create (existing=None) and update.

    Args:
        user_input: Data with DATA_* keys (may have missing fields)
        existing: None for create, existing SeasonData for update
        now: Evaluation instant for the initial status

    Returns:
        Complete SeasonData ready for storage

    Raises:
        EntityValidationError: Empty name, malformed date, or end before start

    Examples:
        # CREATE mode - start_date defaults to today, locked if in the future
        season = build_season({DATA_SEASON_NAME: "Spring"})

        # UPDATE mode - preserves chapters and fields not in user_input
        season = build_season({DATA_SEASON_END_DATE: "2026-06-30"}, existing=old)
    """
    is_create = existing is None
    now = now or dt_now_local()
    get_field = _make_field_getter(user_input, existing)

    name = _require_name(
        user_input,
        get_field(const.DATA_SEASON_NAME, ""),
        const.DATA_SEASON_NAME,
        is_create,
    )

    start_date = _build_date(get_field, const.DATA_SEASON_START_DATE)
    if start_date is None:
        start_date = now.date().isoformat()
    end_date = _build_date(get_field, const.DATA_SEASON_END_DATE)
    _check_date_range(
        const.DATA_SEASON_START_DATE,
        start_date,
        const.DATA_SEASON_END_DATE,
        end_date,
    )

    if is_create or existing is None:
        internal_id = str(uuid.uuid4())
        created_at = to_utc_iso(now)
    else:
        internal_id = existing.get(const.DATA_INTERNAL_ID, str(uuid.uuid4()))
        created_at = existing.get(const.DATA_CREATED_AT, to_utc_iso(now))

    season = SeasonData(
        internal_id=internal_id,
        name=name,
        description=str(get_field(const.DATA_DESCRIPTION, const.SENTINEL_EMPTY)),
        category=str(
            get_field(const.DATA_SEASON_CATEGORY, const.DEFAULT_SEASON_CATEGORY)
        ),
        start_date=start_date,
        end_date=end_date,
        status=get_field(const.DATA_STATUS, const.STATUS_ACTIVE),
        chapters=list(get_field(const.DATA_SEASON_CHAPTERS, [])),
        created_at=created_at,
        completed_at=get_field(const.DATA_COMPLETED_AT, None),
        pause_info=get_field(const.DATA_PAUSE_INFO, None),
        reward_title=str(get_field(const.DATA_REWARD_TITLE, const.SENTINEL_EMPTY)),
        reward_xp=int(get_field(const.DATA_REWARD_XP, const.DEFAULT_REWARD_XP)),
        review=get_field(const.DATA_REVIEW, None),
        review_satisfaction=get_field(const.DATA_REVIEW_SATISFACTION, None),
    )
    if is_create:
        season[const.DATA_STATUS] = StatusEngine.resolve_base_status(
            const.KIND_SEASON, season, user_input.get(const.DATA_STATUS), now
        )
    return season


# ==============================================================================
# CHAPTERS
# ==============================================================================


def build_chapter(
    user_input: dict[str, Any],
    existing: ChapterData | None = None,
    *,
    season: SeasonData | None = None,
    now: datetime | None = None,
) -> ChapterData:
    """Build chapter data for create or update operations.

    A new chapter is created locked when its season is still locked or its
    own unlock date has not arrived.

    Args:
        user_input: Data with DATA_* keys
        existing: None for create, existing ChapterData for update
        season: Parent season (used for order and the lock cascade on create)
        now: Evaluation instant for the initial status

    Raises:
        EntityValidationError: Empty title, progress outside 0-100,
            malformed date, or deadline before unlock
    """
    is_create = existing is None
    now = now or dt_now_local()
    get_field = _make_field_getter(user_input, existing)

    title = _require_name(
        user_input,
        get_field(const.DATA_CHAPTER_TITLE, ""),
        const.DATA_CHAPTER_TITLE,
        is_create,
    )

    progress = get_field(const.DATA_PROGRESS, const.DEFAULT_PROGRESS)
    if not _is_valid_progress(progress):
        raise EntityValidationError(
            field=const.DATA_PROGRESS,
            translation_key=const.TRANS_KEY_INVALID_PROGRESS,
            placeholders={"value": str(progress)},
        )

    unlock_time = _build_date(get_field, const.DATA_UNLOCK_TIME)
    deadline = _build_date(get_field, const.DATA_DEADLINE)
    _check_date_range(const.DATA_UNLOCK_TIME, unlock_time, const.DATA_DEADLINE, deadline)

    if is_create or existing is None:
        internal_id = str(uuid.uuid4())
        default_order = len(season.get(const.DATA_SEASON_CHAPTERS, [])) if season else 0
    else:
        internal_id = existing.get(const.DATA_INTERNAL_ID, str(uuid.uuid4()))
        default_order = existing.get(const.DATA_CHAPTER_ORDER, 0)

    chapter = ChapterData(
        internal_id=internal_id,
        title=title,
        description=str(get_field(const.DATA_DESCRIPTION, const.SENTINEL_EMPTY)),
        order=int(get_field(const.DATA_CHAPTER_ORDER, default_order)),
        progress=clamp_progress(progress),
        status=get_field(const.DATA_STATUS, const.STATUS_ACTIVE),
        unlock_time=unlock_time,
        deadline=deadline,
        linked_quests=_normalize_list_field(
            get_field(const.DATA_CHAPTER_LINKED_QUESTS, [])
        ),
        started_at=get_field(const.DATA_CHAPTER_STARTED_AT, None),
        completed_at=get_field(const.DATA_COMPLETED_AT, None),
        pause_info=get_field(const.DATA_PAUSE_INFO, None),
        reward_title=str(get_field(const.DATA_REWARD_TITLE, const.SENTINEL_EMPTY)),
        reward_xp=int(get_field(const.DATA_REWARD_XP, const.DEFAULT_REWARD_XP)),
        review=get_field(const.DATA_REVIEW, None),
        review_satisfaction=get_field(const.DATA_REVIEW_SATISFACTION, None),
    )

    if is_create:
        season_locked = season is not None and (
            StatusEngine.derive_season_status(season, now) == const.DISPLAY_LOCKED
        )
        status = StatusEngine.resolve_base_status(
            const.KIND_CHAPTER, chapter, user_input.get(const.DATA_STATUS), now
        )
        if season_locked and status == const.STATUS_ACTIVE:
            status = const.STATUS_LOCKED
        chapter[const.DATA_STATUS] = status
        if status == const.STATUS_ACTIVE:
            chapter[const.DATA_CHAPTER_STARTED_AT] = to_utc_iso(now)
    return chapter


# ==============================================================================
# QUESTS
# ==============================================================================


def build_quest(
    user_input: dict[str, Any],
    existing: QuestData | None = None,
    *,
    now: datetime | None = None,
) -> QuestData:
    """Build quest data for create or update operations.

    A quest may be an orphan (no season_id) and may link to one chapter.

    Raises:
        EntityValidationError: Empty title, progress outside 0-100,
            malformed date, or deadline before unlock
    """
    is_create = existing is None
    now = now or dt_now_local()
    get_field = _make_field_getter(user_input, existing)

    title = _require_name(
        user_input,
        get_field(const.DATA_QUEST_TITLE, ""),
        const.DATA_QUEST_TITLE,
        is_create,
    )

    progress = get_field(const.DATA_PROGRESS, const.DEFAULT_PROGRESS)
    if not _is_valid_progress(progress):
        raise EntityValidationError(
            field=const.DATA_PROGRESS,
            translation_key=const.TRANS_KEY_INVALID_PROGRESS,
            placeholders={"value": str(progress)},
        )

    unlock_time = _build_date(get_field, const.DATA_UNLOCK_TIME)
    deadline = _build_date(get_field, const.DATA_DEADLINE)
    _check_date_range(const.DATA_UNLOCK_TIME, unlock_time, const.DATA_DEADLINE, deadline)

    if is_create or existing is None:
        internal_id = str(uuid.uuid4())
        created_at = to_utc_iso(now)
    else:
        internal_id = existing.get(const.DATA_INTERNAL_ID, str(uuid.uuid4()))
        created_at = existing.get(const.DATA_CREATED_AT, to_utc_iso(now))

    quest = QuestData(
        internal_id=internal_id,
        title=title,
        description=str(get_field(const.DATA_DESCRIPTION, const.SENTINEL_EMPTY)),
        progress=clamp_progress(progress),
        status=get_field(const.DATA_STATUS, const.STATUS_ACTIVE),
        unlock_time=unlock_time,
        deadline=deadline,
        season_id=get_field(const.DATA_QUEST_SEASON_ID, None) or None,
        linked_chapter_id=get_field(const.DATA_QUEST_LINKED_CHAPTER_ID, None) or None,
        created_at=created_at,
        completed_at=get_field(const.DATA_COMPLETED_AT, None),
        pause_info=get_field(const.DATA_PAUSE_INFO, None),
        review=get_field(const.DATA_REVIEW, None),
        review_satisfaction=get_field(const.DATA_REVIEW_SATISFACTION, None),
    )
    if is_create:
        quest[const.DATA_STATUS] = StatusEngine.resolve_base_status(
            const.KIND_QUEST, quest, user_input.get(const.DATA_STATUS), now
        )
    return quest


# ==============================================================================
# TASKS
# ==============================================================================

_TASK_LINK_FIELDS: dict[str, str] = {
    const.TASK_LINK_QUEST: const.DATA_TASK_LINKED_QUEST_ID,
    const.TASK_LINK_CHAPTER: const.DATA_TASK_LINKED_CHAPTER_ID,
    const.TASK_LINK_SEASON: const.DATA_TASK_LINKED_SEASON_ID,
}


def build_task(
    user_input: dict[str, Any],
    existing: TaskData | None = None,
    *,
    now: datetime | None = None,
) -> TaskData:
    """Build task data for create or update operations.

    link_type defaults to the first linked id that is present (quest, then
    chapter, then season), or "none". Only the id matching link_type is kept.

    Raises:
        EntityValidationError: Empty name, unknown link_type, missing link id,
            or malformed deadline
    """
    is_create = existing is None
    now = now or dt_now_local()
    get_field = _make_field_getter(user_input, existing)

    name = _require_name(
        user_input,
        get_field(const.DATA_TASK_NAME, ""),
        const.DATA_TASK_NAME,
        is_create,
    )

    linked_ids = {
        link: get_field(link_field, None) or None
        for link, link_field in _TASK_LINK_FIELDS.items()
    }
    default_link = next(
        (link for link, link_id in linked_ids.items() if link_id), const.TASK_LINK_NONE
    )
    link_type = get_field(const.DATA_TASK_LINK_TYPE, default_link)
    if link_type not in const.TASK_LINK_TYPES:
        raise EntityValidationError(
            field=const.DATA_TASK_LINK_TYPE,
            translation_key=const.TRANS_KEY_INVALID_LINK_TYPE,
            placeholders={"value": str(link_type)},
        )
    if link_type != const.TASK_LINK_NONE and not linked_ids[link_type]:
        raise EntityValidationError(
            field=_TASK_LINK_FIELDS[link_type],
            translation_key=const.TRANS_KEY_INVALID_PARENT,
        )

    status = get_field(const.DATA_STATUS, const.TASK_STATUS_TODO)
    if status not in const.TASK_STATUSES:
        status = const.TASK_STATUS_TODO

    if is_create or existing is None:
        internal_id = str(uuid.uuid4())
        created_at = to_utc_iso(now)
    else:
        internal_id = existing.get(const.DATA_INTERNAL_ID, str(uuid.uuid4()))
        created_at = existing.get(const.DATA_CREATED_AT, to_utc_iso(now))

    return TaskData(
        internal_id=internal_id,
        name=name,
        status=status,
        link_type=link_type,
        linked_quest_id=(
            linked_ids[const.TASK_LINK_QUEST]
            if link_type == const.TASK_LINK_QUEST
            else None
        ),
        linked_chapter_id=(
            linked_ids[const.TASK_LINK_CHAPTER]
            if link_type == const.TASK_LINK_CHAPTER
            else None
        ),
        linked_season_id=(
            linked_ids[const.TASK_LINK_SEASON]
            if link_type == const.TASK_LINK_SEASON
            else None
        ),
        deadline=_build_date(get_field, const.DATA_DEADLINE),
        checklist=_normalize_checklist(get_field(const.DATA_TASK_CHECKLIST, [])),
        created_at=created_at,
        completed_at=get_field(const.DATA_COMPLETED_AT, None),
    )
