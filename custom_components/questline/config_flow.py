# File: config_flow.py
"""Config flow for the Questline integration.

Single instance: one confirmation step creates the entry with default
options. All hierarchy data lives in storage, not in the entry.
"""

from __future__ import annotations

from typing import Any

from homeassistant import config_entries
from homeassistant.core import callback

from . import const
from .options_flow import QuestlineOptionsFlowHandler


class QuestlineConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Questline."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Confirm setup; abort if an entry already exists."""
        if any(self._async_current_entries()):
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        if user_input is not None:
            const.LOGGER.info("INFO: Creating Questline config entry")
            return self.async_create_entry(
                title=const.QUESTLINE_TITLE,
                data={},  # Empty - integration loads from storage
                options={
                    const.CONF_UPDATE_INTERVAL: const.DEFAULT_UPDATE_INTERVAL,
                    const.CONF_DUE_SOON_DAYS: const.DEFAULT_DUE_SOON_DAYS,
                },
            )

        return self.async_show_form(step_id="user")

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> QuestlineOptionsFlowHandler:
        """Return the Options Flow."""
        return QuestlineOptionsFlowHandler()
