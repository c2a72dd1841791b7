"""Shared fixtures for Questline tests."""

from typing import Any
from unittest.mock import patch
from zoneinfo import ZoneInfo

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.questline import const
from custom_components.questline.coordinator import QuestlineDataCoordinator
from custom_components.questline.utils.dt_utils import set_default_timezone

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name

# Far-away dates keep the seeded hierarchy stable against the real clock
PAST_DATE = "2000-01-01"
FUTURE_DATE = "2099-01-01"

SEASON_ACTIVE_ID = "season-1"
SEASON_LOCKED_ID = "season-2"
CHAPTER_ACTIVE_ID = "chapter-1"
CHAPTER_LOCKED_ID = "chapter-2"
CHAPTER_CASCADE_ID = "chapter-3"
QUEST_ACTIVE_ID = "quest-1"
QUEST_SECOND_ID = "quest-2"
QUEST_COMPLETED_ID = "quest-3"
QUEST_LOCKED_ID = "quest-4"
TASK_ID = "task-1"


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Any:
    """Start every test with calendar dates read in UTC."""
    set_default_timezone(ZoneInfo("UTC"))
    yield
    set_default_timezone(ZoneInfo("UTC"))


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a mock config entry."""
    return MockConfigEntry(
        domain=const.DOMAIN,
        title=const.QUESTLINE_TITLE,
        data={},
        options={
            const.CONF_UPDATE_INTERVAL: const.DEFAULT_UPDATE_INTERVAL,
            const.CONF_DUE_SOON_DAYS: const.DEFAULT_DUE_SOON_DAYS,
        },
        entry_id="test_entry_id",
        unique_id="test_unique_id",
    )


def create_mock_chapter_data(
    internal_id: str,
    title: str,
    *,
    order: int = 0,
    progress: int = 0,
    status: str = const.STATUS_ACTIVE,
    unlock_time: str | None = None,
    deadline: str | None = None,
    linked_quests: list[str] | None = None,
) -> dict[str, Any]:
    """Create mock chapter data for testing."""
    return {
        const.DATA_INTERNAL_ID: internal_id,
        const.DATA_CHAPTER_TITLE: title,
        const.DATA_DESCRIPTION: "",
        const.DATA_CHAPTER_ORDER: order,
        const.DATA_PROGRESS: progress,
        const.DATA_STATUS: status,
        const.DATA_UNLOCK_TIME: unlock_time,
        const.DATA_DEADLINE: deadline,
        const.DATA_CHAPTER_LINKED_QUESTS: linked_quests or [],
        const.DATA_CHAPTER_STARTED_AT: None,
        const.DATA_COMPLETED_AT: None,
        const.DATA_PAUSE_INFO: None,
    }


def create_mock_season_data(
    internal_id: str,
    name: str,
    *,
    start_date: str = PAST_DATE,
    end_date: str | None = None,
    status: str = const.STATUS_ACTIVE,
    chapters: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Create mock season data for testing."""
    return {
        const.DATA_INTERNAL_ID: internal_id,
        const.DATA_SEASON_NAME: name,
        const.DATA_DESCRIPTION: "",
        const.DATA_SEASON_CATEGORY: const.DEFAULT_SEASON_CATEGORY,
        const.DATA_SEASON_START_DATE: start_date,
        const.DATA_SEASON_END_DATE: end_date,
        const.DATA_STATUS: status,
        const.DATA_SEASON_CHAPTERS: chapters or [],
        const.DATA_CREATED_AT: "2000-01-01T00:00:00+00:00",
        const.DATA_COMPLETED_AT: None,
        const.DATA_PAUSE_INFO: None,
    }


def create_mock_quest_data(
    internal_id: str,
    title: str,
    *,
    progress: int = 0,
    status: str = const.STATUS_ACTIVE,
    season_id: str | None = None,
    linked_chapter_id: str | None = None,
    unlock_time: str | None = None,
    deadline: str | None = None,
    completed_at: str | None = None,
) -> dict[str, Any]:
    """Create mock quest data for testing."""
    return {
        const.DATA_INTERNAL_ID: internal_id,
        const.DATA_QUEST_TITLE: title,
        const.DATA_DESCRIPTION: "",
        const.DATA_PROGRESS: progress,
        const.DATA_STATUS: status,
        const.DATA_UNLOCK_TIME: unlock_time,
        const.DATA_DEADLINE: deadline,
        const.DATA_QUEST_SEASON_ID: season_id,
        const.DATA_QUEST_LINKED_CHAPTER_ID: linked_chapter_id,
        const.DATA_CREATED_AT: "2000-01-01T00:00:00+00:00",
        const.DATA_COMPLETED_AT: completed_at,
        const.DATA_PAUSE_INFO: None,
    }


@pytest.fixture
def mock_storage_data() -> dict[str, Any]:
    """Return a seeded hierarchy.

    season-1 (active): chapter-1 (active, 50%), chapter-2 (unlocks 2099)
    season-2 (starts 2099): chapter-3 (locked through its season)
    quests 1-3 in season-1 at 20/60/100; quest-4 hangs off chapter-2
    """
    return {
        const.DATA_META: {const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION_CURRENT},
        const.DATA_SEASONS: {
            SEASON_ACTIVE_ID: create_mock_season_data(
                SEASON_ACTIVE_ID,
                "Spring",
                chapters=[
                    create_mock_chapter_data(
                        CHAPTER_ACTIVE_ID,
                        "Foundations",
                        progress=50,
                        linked_quests=[QUEST_SECOND_ID],
                    ),
                    create_mock_chapter_data(
                        CHAPTER_LOCKED_ID,
                        "Mastery",
                        order=1,
                        status=const.STATUS_LOCKED,
                        unlock_time=FUTURE_DATE,
                    ),
                ],
            ),
            SEASON_LOCKED_ID: create_mock_season_data(
                SEASON_LOCKED_ID,
                "Far Future",
                start_date=FUTURE_DATE,
                status=const.STATUS_LOCKED,
                chapters=[create_mock_chapter_data(CHAPTER_CASCADE_ID, "Prologue")],
            ),
        },
        const.DATA_SEASON_HISTORY: {},
        const.DATA_QUESTS: {
            QUEST_ACTIVE_ID: create_mock_quest_data(
                QUEST_ACTIVE_ID,
                "Read the book",
                progress=20,
                season_id=SEASON_ACTIVE_ID,
                linked_chapter_id=CHAPTER_ACTIVE_ID,
            ),
            QUEST_SECOND_ID: create_mock_quest_data(
                QUEST_SECOND_ID,
                "Write the essay",
                progress=60,
                season_id=SEASON_ACTIVE_ID,
            ),
            QUEST_COMPLETED_ID: create_mock_quest_data(
                QUEST_COMPLETED_ID,
                "Run the race",
                progress=100,
                status=const.STATUS_COMPLETED,
                season_id=SEASON_ACTIVE_ID,
                completed_at="2000-06-01T00:00:00+00:00",
            ),
            QUEST_LOCKED_ID: create_mock_quest_data(
                QUEST_LOCKED_ID,
                "Teach the class",
                linked_chapter_id=CHAPTER_LOCKED_ID,
            ),
        },
        const.DATA_TASKS: {
            TASK_ID: {
                const.DATA_INTERNAL_ID: TASK_ID,
                const.DATA_TASK_NAME: "Outline chapters",
                const.DATA_STATUS: const.TASK_STATUS_TODO,
                const.DATA_TASK_LINK_TYPE: const.TASK_LINK_QUEST,
                const.DATA_TASK_LINKED_QUEST_ID: QUEST_ACTIVE_ID,
                const.DATA_TASK_LINKED_CHAPTER_ID: None,
                const.DATA_TASK_LINKED_SEASON_ID: None,
                const.DATA_DEADLINE: None,
                const.DATA_TASK_CHECKLIST: [
                    {const.DATA_CHECKLIST_TEXT: "Draft", const.DATA_CHECKLIST_COMPLETED: True},
                    {const.DATA_CHECKLIST_TEXT: "Review", const.DATA_CHECKLIST_COMPLETED: False},
                ],
                const.DATA_CREATED_AT: "2000-01-01T00:00:00+00:00",
                const.DATA_COMPLETED_AT: None,
            },
        },
    }


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,  # pylint: disable=redefined-outer-name
    mock_storage_data: dict[str, Any],  # pylint: disable=redefined-outer-name
) -> MockConfigEntry:
    """Set up the Questline integration for testing with mocked storage."""
    mock_config_entry.add_to_hass(hass)

    # Mock the Store's async_load to return our test data
    with patch(
        "homeassistant.helpers.storage.Store.async_load",
        return_value=mock_storage_data,
    ):
        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

    return mock_config_entry


@pytest.fixture
def coordinator(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,  # pylint: disable=redefined-outer-name
) -> QuestlineDataCoordinator:
    """Return the coordinator of the loaded entry."""
    return hass.data[const.DOMAIN][init_integration.entry_id][const.COORDINATOR]
