# File: const.py
"""Constants for the Questline integration.

This file centralizes configuration keys, defaults, storage keys, status
vocabularies, service names and event names for consistency across the
integration.
"""

import logging

from homeassistant.const import Platform

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
# Integration Name
QUESTLINE_TITLE = "Questline"

# Integration Domain
DOMAIN = "questline"

# Logger
LOGGER = logging.getLogger(__package__)

# Supported Platforms
PLATFORMS = [
    Platform.SENSOR,
]

# Coordinator
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"
STORE = "store"

# Storage and Versioning
STORAGE_KEY = "questline_data"
STORAGE_VERSION = 1
SCHEMA_VERSION_CURRENT = 1

# ------------------------------------------------------------------------------------------------
# Configuration Keys / Defaults
# ------------------------------------------------------------------------------------------------
CONF_UPDATE_INTERVAL = "update_interval"
CONF_DUE_SOON_DAYS = "due_soon_days"

DEFAULT_UPDATE_INTERVAL = 5  # minutes
DEFAULT_DUE_SOON_DAYS = 3
DEFAULT_PROGRESS = 0
DEFAULT_REWARD_XP = 0
DEFAULT_SEASON_CATEGORY = "general"

PROGRESS_MIN = 0
PROGRESS_MAX = 100

# Review satisfaction scale (1-5 stars)
REVIEW_SATISFACTION_MIN = 1
REVIEW_SATISFACTION_MAX = 5

SENTINEL_EMPTY = ""

# ------------------------------------------------------------------------------------------------
# Entity Kinds
# ------------------------------------------------------------------------------------------------
KIND_SEASON = "season"
KIND_CHAPTER = "chapter"
KIND_QUEST = "quest"
KIND_TASK = "task"

LIFECYCLE_KINDS = (KIND_SEASON, KIND_CHAPTER, KIND_QUEST)

# ------------------------------------------------------------------------------------------------
# Stored Status (persisted vocabulary)
# ------------------------------------------------------------------------------------------------
STATUS_ACTIVE = "active"
STATUS_PAUSED = "paused"
STATUS_COMPLETED = "completed"
STATUS_ARCHIVED = "archived"
STATUS_LOCKED = "locked"

STORED_STATUSES = (
    STATUS_ACTIVE,
    STATUS_PAUSED,
    STATUS_COMPLETED,
    STATUS_ARCHIVED,
    STATUS_LOCKED,
)

# Statuses a form may commit through normalization
STORABLE_STATUSES = (
    STATUS_ACTIVE,
    STATUS_PAUSED,
    STATUS_COMPLETED,
    STATUS_LOCKED,
)

# ------------------------------------------------------------------------------------------------
# Display Status (derived, read-only vocabulary)
# ------------------------------------------------------------------------------------------------
DISPLAY_LOCKED = "locked"
DISPLAY_ACTIVE = "active"
DISPLAY_PAUSED = "paused"
DISPLAY_COMPLETED = "completed"
DISPLAY_OVERDUE_UNFINISHED = "overdue_unfinished"
DISPLAY_OVERDUE_COMPLETED = "overdue_completed"

DISPLAY_STATUSES = (
    DISPLAY_LOCKED,
    DISPLAY_ACTIVE,
    DISPLAY_PAUSED,
    DISPLAY_COMPLETED,
    DISPLAY_OVERDUE_UNFINISHED,
    DISPLAY_OVERDUE_COMPLETED,
)

DISPLAY_COMPLETED_STATUSES = frozenset(
    {DISPLAY_COMPLETED, DISPLAY_OVERDUE_COMPLETED}
)

# ------------------------------------------------------------------------------------------------
# Task Status
# ------------------------------------------------------------------------------------------------
TASK_STATUS_TODO = "todo"
TASK_STATUS_IN_PROGRESS = "in_progress"
TASK_STATUS_COMPLETED = "completed"

TASK_STATUSES = (TASK_STATUS_TODO, TASK_STATUS_IN_PROGRESS, TASK_STATUS_COMPLETED)

TASK_LINK_QUEST = "quest"
TASK_LINK_CHAPTER = "chapter"
TASK_LINK_SEASON = "season"
TASK_LINK_NONE = "none"

TASK_LINK_TYPES = (TASK_LINK_QUEST, TASK_LINK_CHAPTER, TASK_LINK_SEASON, TASK_LINK_NONE)

# ------------------------------------------------------------------------------------------------
# Deadline Urgency
# ------------------------------------------------------------------------------------------------
URGENCY_RED = "red"
URGENCY_YELLOW = "yellow"
URGENCY_GREEN = "green"

# ------------------------------------------------------------------------------------------------
# Storage Data Keys
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schema_version"

DATA_SEASONS = "seasons"
DATA_SEASON_HISTORY = "season_history"
DATA_QUESTS = "quests"
DATA_TASKS = "tasks"
# Read-model key only: chapters live inside their season
DATA_CHAPTERS = "chapters"

# Shared lifecycle fields
DATA_INTERNAL_ID = "internal_id"
DATA_STATUS = "status"
DATA_PROGRESS = "progress"
DATA_UNLOCK_TIME = "unlock_time"
DATA_DEADLINE = "deadline"
DATA_COMPLETED_AT = "completed_at"
DATA_CREATED_AT = "created_at"
DATA_DESCRIPTION = "description"
DATA_PAUSE_INFO = "pause_info"
DATA_REVIEW = "review"
DATA_REVIEW_SATISFACTION = "review_satisfaction"
DATA_REWARD_TITLE = "reward_title"
DATA_REWARD_XP = "reward_xp"

# Pause snapshot
DATA_PAUSE_REASON = "reason"
DATA_PAUSE_PAUSED_AT = "paused_at"
DATA_PAUSE_PROGRESS_SNAPSHOT = "progress_snapshot"

# Season
DATA_SEASON_NAME = "name"
DATA_SEASON_CATEGORY = "category"
DATA_SEASON_START_DATE = "start_date"
DATA_SEASON_END_DATE = "end_date"
DATA_SEASON_CHAPTERS = "chapters"

# Chapter
DATA_CHAPTER_TITLE = "title"
DATA_CHAPTER_ORDER = "order"
DATA_CHAPTER_LINKED_QUESTS = "linked_quests"
DATA_CHAPTER_STARTED_AT = "started_at"
DATA_CHAPTER_SEASON_ID = "season_id"  # Read-model only, not persisted

# Quest
DATA_QUEST_TITLE = "title"
DATA_QUEST_SEASON_ID = "season_id"
DATA_QUEST_LINKED_CHAPTER_ID = "linked_chapter_id"

# Task
DATA_TASK_NAME = "name"
DATA_TASK_LINK_TYPE = "link_type"
DATA_TASK_LINKED_QUEST_ID = "linked_quest_id"
DATA_TASK_LINKED_CHAPTER_ID = "linked_chapter_id"
DATA_TASK_LINKED_SEASON_ID = "linked_season_id"
DATA_TASK_CHECKLIST = "checklist"
DATA_CHECKLIST_TEXT = "text"
DATA_CHECKLIST_COMPLETED = "completed"

# Lifecycle date fields per kind: (unlock field, deadline field)
LIFECYCLE_DATE_FIELDS: dict[str, tuple[str, str]] = {
    KIND_SEASON: (DATA_SEASON_START_DATE, DATA_SEASON_END_DATE),
    KIND_CHAPTER: (DATA_UNLOCK_TIME, DATA_DEADLINE),
    KIND_QUEST: (DATA_UNLOCK_TIME, DATA_DEADLINE),
}

# Display name field per kind
NAME_FIELDS: dict[str, str] = {
    KIND_SEASON: DATA_SEASON_NAME,
    KIND_CHAPTER: DATA_CHAPTER_TITLE,
    KIND_QUEST: DATA_QUEST_TITLE,
    KIND_TASK: DATA_TASK_NAME,
}

# ------------------------------------------------------------------------------------------------
# Events / Signals
# ------------------------------------------------------------------------------------------------
EVENT_REVIEW_REQUESTED = f"{DOMAIN}_review_requested"

SIGNAL_SUFFIX_REVIEW_REQUESTED = "review_requested"
SIGNAL_SUFFIX_REVIEW_CLOSED = "review_closed"
SIGNAL_SUFFIX_STATUS_CHANGED = "status_changed"
SIGNAL_SUFFIX_SEASON_ARCHIVED = "season_archived"

ATTR_KIND = "kind"
ATTR_INTERNAL_ID = "internal_id"
ATTR_NAME = "name"
ATTR_DISPLAY_STATUS = "display_status"
ATTR_STORED_STATUS = "stored_status"
ATTR_PROGRESS = "progress"
ATTR_PROGRESS_NUMERATOR = "progress_numerator"
ATTR_PROGRESS_DENOMINATOR = "progress_denominator"
ATTR_LINKED_QUEST_COUNT = "linked_quest_count"
ATTR_CHAPTER_COUNT = "chapter_count"
ATTR_CHAPTER_IDS = "chapter_ids"
ATTR_DEADLINE_URGENCY = "deadline_urgency"
ATTR_LINKED_TASK_PROGRESS = "linked_task_progress"
ATTR_ACTIONABLE = "actionable"
ATTR_SEASON_ID = "season_id"
ATTR_REVIEWED = "reviewed"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_CREATE_SEASON = "create_season"
SERVICE_CREATE_CHAPTER = "create_chapter"
SERVICE_CREATE_QUEST = "create_quest"
SERVICE_CREATE_TASK = "create_task"
SERVICE_SET_STATUS = "set_status"
SERVICE_SET_PROGRESS = "set_progress"
SERVICE_SET_DATES = "set_dates"
SERVICE_PAUSE = "pause"
SERVICE_RESUME = "resume"
SERVICE_SUBMIT_REVIEW = "submit_review"
SERVICE_DISMISS_REVIEW = "dismiss_review"
SERVICE_ARCHIVE_SEASON = "archive_season"
SERVICE_COMPLETE_TASK = "complete_task"

ALL_SERVICES = (
    SERVICE_CREATE_SEASON,
    SERVICE_CREATE_CHAPTER,
    SERVICE_CREATE_QUEST,
    SERVICE_CREATE_TASK,
    SERVICE_SET_STATUS,
    SERVICE_SET_PROGRESS,
    SERVICE_SET_DATES,
    SERVICE_PAUSE,
    SERVICE_RESUME,
    SERVICE_SUBMIT_REVIEW,
    SERVICE_DISMISS_REVIEW,
    SERVICE_ARCHIVE_SEASON,
    SERVICE_COMPLETE_TASK,
)

# Service fields
FIELD_KIND = "kind"
FIELD_ENTITY_ID = "internal_id"
FIELD_SEASON_ID = "season_id"
FIELD_CHAPTER_ID = "chapter_id"
FIELD_QUEST_ID = "quest_id"
FIELD_TASK_ID = "task_id"
FIELD_NAME = "name"
FIELD_TITLE = "title"
FIELD_DESCRIPTION = "description"
FIELD_CATEGORY = "category"
FIELD_START_DATE = "start_date"
FIELD_END_DATE = "end_date"
FIELD_UNLOCK_TIME = "unlock_time"
FIELD_DEADLINE = "deadline"
FIELD_STATUS = "status"
FIELD_PROGRESS = "progress"
FIELD_REASON = "reason"
FIELD_REVIEW = "review"
FIELD_SATISFACTION = "satisfaction"
FIELD_LINK_TYPE = "link_type"
FIELD_CHECKLIST = "checklist"

# ------------------------------------------------------------------------------------------------
# Error Messages / Translation Keys
# ------------------------------------------------------------------------------------------------
MSG_NO_ENTRY_FOUND = "No Questline entry found"

ERROR_ENTITY_NOT_FOUND_FMT = "{} '{}' not found"
ERROR_ENTITY_LOCKED_FMT = "{} '{}' is locked until its unlock date"
ERROR_REOPEN_COMPLETED_FMT = "{} '{}' is completed and cannot be reopened"
ERROR_SEASON_ARCHIVED_FMT = "Season '{}' is archived"
ERROR_SEASON_PROGRESS_DERIVED = (
    "Season progress is computed from linked quests and cannot be set"
)
ERROR_VALIDATION_FMT = "Invalid value for '{}': {}"

TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_INVALID_NAME = "invalid_name"
TRANS_KEY_INVALID_DATE = "invalid_date"
TRANS_KEY_INVALID_DATE_RANGE = "invalid_date_range"
TRANS_KEY_INVALID_PROGRESS = "invalid_progress"
TRANS_KEY_INVALID_PARENT = "invalid_parent"
TRANS_KEY_INVALID_LINK_TYPE = "invalid_link_type"

# ------------------------------------------------------------------------------------------------
# Sensors
# ------------------------------------------------------------------------------------------------
SENSOR_UID_SUFFIX_SEASON = "_season_progress"
SENSOR_UID_SUFFIX_CHAPTER = "_chapter_status"
SENSOR_UID_SUFFIX_QUEST = "_quest_status"

TRANS_KEY_SENSOR_SEASON = "season_progress_sensor"
TRANS_KEY_SENSOR_CHAPTER = "chapter_status_sensor"
TRANS_KEY_SENSOR_QUEST = "quest_status_sensor"
TRANS_KEY_SENSOR_ATTR_NAME = "name"

DEFAULT_SEASON_ICON = "mdi:flag-variant"
DEFAULT_CHAPTER_ICON = "mdi:book-open-page-variant"
DEFAULT_QUEST_ICON = "mdi:sword"

DISPLAY_STATUS_ICONS: dict[str, str] = {
    DISPLAY_LOCKED: "mdi:lock",
    DISPLAY_PAUSED: "mdi:pause-circle",
    DISPLAY_COMPLETED: "mdi:check-circle",
    DISPLAY_OVERDUE_COMPLETED: "mdi:check-circle-outline",
    DISPLAY_OVERDUE_UNFINISHED: "mdi:alert-circle",
}
