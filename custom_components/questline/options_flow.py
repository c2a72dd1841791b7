# File: options_flow.py
"""Options Flow for the Questline integration.

General settings only: the refresh interval and the due-soon horizon used
for yellow deadline urgency. Saving reloads the entry (see __init__).
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant import config_entries

from . import const


def build_general_options_schema(options: dict[str, Any]) -> vol.Schema:
    """Build the general options form with current values as defaults."""
    return vol.Schema(
        {
            vol.Required(
                const.CONF_UPDATE_INTERVAL,
                default=options.get(
                    const.CONF_UPDATE_INTERVAL, const.DEFAULT_UPDATE_INTERVAL
                ),
            ): vol.All(vol.Coerce(int), vol.Range(min=1)),
            vol.Required(
                const.CONF_DUE_SOON_DAYS,
                default=options.get(
                    const.CONF_DUE_SOON_DAYS, const.DEFAULT_DUE_SOON_DAYS
                ),
            ): vol.All(vol.Coerce(int), vol.Range(min=1)),
        }
    )


class QuestlineOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for general settings."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Show and save the general options."""
        if user_input is not None:
            const.LOGGER.debug(
                "DEBUG: General Options Updated: Update Interval=%s, Due Soon Days=%s",
                user_input.get(const.CONF_UPDATE_INTERVAL),
                user_input.get(const.CONF_DUE_SOON_DAYS),
            )
            return self.async_create_entry(title="", data=user_input)

        return self.async_show_form(
            step_id="init",
            data_schema=build_general_options_schema(dict(self.config_entry.options)),
        )
