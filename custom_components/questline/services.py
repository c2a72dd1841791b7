# File: services.py
"""Defines custom services for the Questline integration.

Services are the form boundary: every create/edit a frontend or automation
commits goes through here, then through HierarchyManager or ReviewManager.
Argument shape is checked by voluptuous schemas; business rules (ranges,
dates, locks, completion) raise HomeAssistantError from the managers.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.helpers import config_validation as cv

from . import const
from .coordinator import QuestlineDataCoordinator

# --- Shared field validators ---
_KIND = vol.In(const.LIFECYCLE_KINDS)
_OPTIONAL_DATE = vol.Any(None, cv.string)

# --- Service Schemas ---
CREATE_SEASON_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_NAME): cv.string,
        vol.Optional(const.FIELD_DESCRIPTION): cv.string,
        vol.Optional(const.FIELD_CATEGORY): cv.string,
        vol.Optional(const.FIELD_START_DATE): _OPTIONAL_DATE,
        vol.Optional(const.FIELD_END_DATE): _OPTIONAL_DATE,
    }
)

CREATE_CHAPTER_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_SEASON_ID): cv.string,
        vol.Required(const.FIELD_TITLE): cv.string,
        vol.Optional(const.FIELD_DESCRIPTION): cv.string,
        vol.Optional(const.FIELD_UNLOCK_TIME): _OPTIONAL_DATE,
        vol.Optional(const.FIELD_DEADLINE): _OPTIONAL_DATE,
        vol.Optional(const.FIELD_PROGRESS): vol.Coerce(float),
    }
)

CREATE_QUEST_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_TITLE): cv.string,
        vol.Optional(const.FIELD_DESCRIPTION): cv.string,
        vol.Optional(const.FIELD_SEASON_ID): cv.string,
        vol.Optional(const.FIELD_CHAPTER_ID): cv.string,
        vol.Optional(const.FIELD_UNLOCK_TIME): _OPTIONAL_DATE,
        vol.Optional(const.FIELD_DEADLINE): _OPTIONAL_DATE,
        vol.Optional(const.FIELD_PROGRESS): vol.Coerce(float),
    }
)

CREATE_TASK_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_NAME): cv.string,
        vol.Optional(const.FIELD_LINK_TYPE): cv.string,
        vol.Optional(const.FIELD_QUEST_ID): cv.string,
        vol.Optional(const.FIELD_CHAPTER_ID): cv.string,
        vol.Optional(const.FIELD_SEASON_ID): cv.string,
        vol.Optional(const.FIELD_DEADLINE): _OPTIONAL_DATE,
        vol.Optional(const.FIELD_CHECKLIST): vol.All(cv.ensure_list, [cv.string]),
    }
)

SET_STATUS_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_KIND): _KIND,
        vol.Required(const.FIELD_ENTITY_ID): cv.string,
        vol.Required(const.FIELD_STATUS): cv.string,
        vol.Optional(const.FIELD_REASON, default=const.SENTINEL_EMPTY): cv.string,
    }
)

SET_PROGRESS_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_KIND): _KIND,
        vol.Required(const.FIELD_ENTITY_ID): cv.string,
        vol.Required(const.FIELD_PROGRESS): vol.Coerce(float),
    }
)

SET_DATES_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_KIND): _KIND,
        vol.Required(const.FIELD_ENTITY_ID): cv.string,
        vol.Optional(const.FIELD_UNLOCK_TIME): _OPTIONAL_DATE,
        vol.Optional(const.FIELD_DEADLINE): _OPTIONAL_DATE,
    }
)

PAUSE_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_KIND): _KIND,
        vol.Required(const.FIELD_ENTITY_ID): cv.string,
        vol.Optional(const.FIELD_REASON, default=const.SENTINEL_EMPTY): cv.string,
    }
)

ENTITY_REF_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_KIND): _KIND,
        vol.Required(const.FIELD_ENTITY_ID): cv.string,
    }
)

SUBMIT_REVIEW_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_KIND): _KIND,
        vol.Required(const.FIELD_ENTITY_ID): cv.string,
        vol.Required(const.FIELD_REVIEW): cv.string,
        vol.Optional(const.FIELD_SATISFACTION): vol.Coerce(int),
    }
)

ARCHIVE_SEASON_SCHEMA = vol.Schema({vol.Required(const.FIELD_SEASON_ID): cv.string})

COMPLETE_TASK_SCHEMA = vol.Schema({vol.Required(const.FIELD_TASK_ID): cv.string})


# --- Field mapping (service field → storage key) ---
_CREATE_FIELD_MAP: dict[str, dict[str, str]] = {
    const.SERVICE_CREATE_SEASON: {
        const.FIELD_NAME: const.DATA_SEASON_NAME,
        const.FIELD_DESCRIPTION: const.DATA_DESCRIPTION,
        const.FIELD_CATEGORY: const.DATA_SEASON_CATEGORY,
        const.FIELD_START_DATE: const.DATA_SEASON_START_DATE,
        const.FIELD_END_DATE: const.DATA_SEASON_END_DATE,
    },
    const.SERVICE_CREATE_CHAPTER: {
        const.FIELD_TITLE: const.DATA_CHAPTER_TITLE,
        const.FIELD_DESCRIPTION: const.DATA_DESCRIPTION,
        const.FIELD_UNLOCK_TIME: const.DATA_UNLOCK_TIME,
        const.FIELD_DEADLINE: const.DATA_DEADLINE,
        const.FIELD_PROGRESS: const.DATA_PROGRESS,
    },
    const.SERVICE_CREATE_QUEST: {
        const.FIELD_TITLE: const.DATA_QUEST_TITLE,
        const.FIELD_DESCRIPTION: const.DATA_DESCRIPTION,
        const.FIELD_SEASON_ID: const.DATA_QUEST_SEASON_ID,
        const.FIELD_CHAPTER_ID: const.DATA_QUEST_LINKED_CHAPTER_ID,
        const.FIELD_UNLOCK_TIME: const.DATA_UNLOCK_TIME,
        const.FIELD_DEADLINE: const.DATA_DEADLINE,
        const.FIELD_PROGRESS: const.DATA_PROGRESS,
    },
    const.SERVICE_CREATE_TASK: {
        const.FIELD_NAME: const.DATA_TASK_NAME,
        const.FIELD_LINK_TYPE: const.DATA_TASK_LINK_TYPE,
        const.FIELD_QUEST_ID: const.DATA_TASK_LINKED_QUEST_ID,
        const.FIELD_CHAPTER_ID: const.DATA_TASK_LINKED_CHAPTER_ID,
        const.FIELD_SEASON_ID: const.DATA_TASK_LINKED_SEASON_ID,
        const.FIELD_DEADLINE: const.DATA_DEADLINE,
        const.FIELD_CHECKLIST: const.DATA_TASK_CHECKLIST,
    },
}


def map_service_fields(service: str, data: dict[str, Any]) -> dict[str, Any]:
    """Translate service call fields into DATA_* keys for the builders."""
    field_map = _CREATE_FIELD_MAP[service]
    return {field_map[key]: value for key, value in data.items() if key in field_map}


def _get_coordinator(hass: HomeAssistant, service: str) -> QuestlineDataCoordinator | None:
    """Return the coordinator of the first loaded entry, or None."""
    entries = hass.data.get(const.DOMAIN, {})
    if not entries:
        const.LOGGER.warning("WARNING: %s: %s", service, const.MSG_NO_ENTRY_FOUND)
        return None
    entry_data = next(iter(entries.values()))
    return entry_data[const.COORDINATOR]


def async_setup_services(hass: HomeAssistant) -> None:
    """Register Questline services."""

    def _create_handler(service: str):
        async def handle_create(call: ServiceCall) -> ServiceResponse:
            """Handle creating a season, chapter, quest or task."""
            coordinator = _get_coordinator(hass, service)
            if coordinator is None:
                return None
            manager = coordinator.hierarchy_manager
            user_input = map_service_fields(service, dict(call.data))

            if service == const.SERVICE_CREATE_SEASON:
                internal_id = await manager.create_season(user_input)
            elif service == const.SERVICE_CREATE_CHAPTER:
                internal_id = await manager.create_chapter(
                    call.data[const.FIELD_SEASON_ID], user_input
                )
            elif service == const.SERVICE_CREATE_QUEST:
                internal_id = await manager.create_quest(user_input)
            else:
                internal_id = await manager.create_task(user_input)

            const.LOGGER.info("INFO: %s created '%s'", service, internal_id)
            if call.return_response:
                return {const.ATTR_INTERNAL_ID: internal_id}
            return None

        return handle_create

    async def handle_set_status(call: ServiceCall) -> None:
        """Handle committing a status from a form."""
        coordinator = _get_coordinator(hass, const.SERVICE_SET_STATUS)
        if coordinator is None:
            return
        await coordinator.hierarchy_manager.set_status(
            call.data[const.FIELD_KIND],
            call.data[const.FIELD_ENTITY_ID],
            call.data[const.FIELD_STATUS],
            call.data[const.FIELD_REASON],
        )

    async def handle_set_progress(call: ServiceCall) -> None:
        """Handle setting chapter/quest progress."""
        coordinator = _get_coordinator(hass, const.SERVICE_SET_PROGRESS)
        if coordinator is None:
            return
        await coordinator.hierarchy_manager.set_progress(
            call.data[const.FIELD_KIND],
            call.data[const.FIELD_ENTITY_ID],
            call.data[const.FIELD_PROGRESS],
        )

    async def handle_set_dates(call: ServiceCall) -> None:
        """Handle editing unlock/deadline dates."""
        coordinator = _get_coordinator(hass, const.SERVICE_SET_DATES)
        if coordinator is None:
            return
        kind = call.data[const.FIELD_KIND]
        unlock_field, deadline_field = const.LIFECYCLE_DATE_FIELDS[kind]
        dates: dict[str, Any] = {}
        if const.FIELD_UNLOCK_TIME in call.data:
            dates[unlock_field] = call.data[const.FIELD_UNLOCK_TIME]
        if const.FIELD_DEADLINE in call.data:
            dates[deadline_field] = call.data[const.FIELD_DEADLINE]
        await coordinator.hierarchy_manager.set_dates(
            kind, call.data[const.FIELD_ENTITY_ID], dates
        )

    async def handle_pause(call: ServiceCall) -> None:
        """Handle pausing an entity."""
        coordinator = _get_coordinator(hass, const.SERVICE_PAUSE)
        if coordinator is None:
            return
        await coordinator.hierarchy_manager.pause(
            call.data[const.FIELD_KIND],
            call.data[const.FIELD_ENTITY_ID],
            call.data[const.FIELD_REASON],
        )

    async def handle_resume(call: ServiceCall) -> None:
        """Handle resuming a paused entity."""
        coordinator = _get_coordinator(hass, const.SERVICE_RESUME)
        if coordinator is None:
            return
        await coordinator.hierarchy_manager.resume(
            call.data[const.FIELD_KIND], call.data[const.FIELD_ENTITY_ID]
        )

    async def handle_submit_review(call: ServiceCall) -> None:
        """Handle a submitted completion review."""
        coordinator = _get_coordinator(hass, const.SERVICE_SUBMIT_REVIEW)
        if coordinator is None:
            return
        await coordinator.review_manager.submit_review(
            call.data[const.FIELD_KIND],
            call.data[const.FIELD_ENTITY_ID],
            call.data[const.FIELD_REVIEW],
            call.data.get(const.FIELD_SATISFACTION),
        )

    async def handle_dismiss_review(call: ServiceCall) -> None:
        """Handle a dismissed review prompt."""
        coordinator = _get_coordinator(hass, const.SERVICE_DISMISS_REVIEW)
        if coordinator is None:
            return
        await coordinator.review_manager.dismiss_review(
            call.data[const.FIELD_KIND], call.data[const.FIELD_ENTITY_ID]
        )

    async def handle_archive_season(call: ServiceCall) -> None:
        """Handle archiving a season."""
        coordinator = _get_coordinator(hass, const.SERVICE_ARCHIVE_SEASON)
        if coordinator is None:
            return
        await coordinator.hierarchy_manager.archive_season(
            call.data[const.FIELD_SEASON_ID]
        )

    async def handle_complete_task(call: ServiceCall) -> None:
        """Handle completing a task."""
        coordinator = _get_coordinator(hass, const.SERVICE_COMPLETE_TASK)
        if coordinator is None:
            return
        await coordinator.hierarchy_manager.complete_task(
            call.data[const.FIELD_TASK_ID]
        )

    # --- Register Services ---
    for service, schema in (
        (const.SERVICE_CREATE_SEASON, CREATE_SEASON_SCHEMA),
        (const.SERVICE_CREATE_CHAPTER, CREATE_CHAPTER_SCHEMA),
        (const.SERVICE_CREATE_QUEST, CREATE_QUEST_SCHEMA),
        (const.SERVICE_CREATE_TASK, CREATE_TASK_SCHEMA),
    ):
        hass.services.async_register(
            const.DOMAIN,
            service,
            _create_handler(service),
            schema=schema,
            supports_response=SupportsResponse.OPTIONAL,
        )

    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SET_STATUS,
        handle_set_status,
        schema=SET_STATUS_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SET_PROGRESS,
        handle_set_progress,
        schema=SET_PROGRESS_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SET_DATES,
        handle_set_dates,
        schema=SET_DATES_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_PAUSE,
        handle_pause,
        schema=PAUSE_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_RESUME,
        handle_resume,
        schema=ENTITY_REF_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SUBMIT_REVIEW,
        handle_submit_review,
        schema=SUBMIT_REVIEW_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_DISMISS_REVIEW,
        handle_dismiss_review,
        schema=ENTITY_REF_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_ARCHIVE_SEASON,
        handle_archive_season,
        schema=ARCHIVE_SEASON_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_COMPLETE_TASK,
        handle_complete_task,
        schema=COMPLETE_TASK_SCHEMA,
    )

    const.LOGGER.info("INFO: Questline services have been registered successfully")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister Questline services when unloading the integration."""
    for service in const.ALL_SERVICES:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: Questline services have been unregistered")
