"""Shared plumbing for the hierarchy and review managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .. import const
from ..helpers.entity_helpers import get_event_signal

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant

    from ..coordinator import QuestlineDataCoordinator


class BaseManager(ABC):
    """A manager bound to one config entry.

    Signals are scoped to the entry, so two Questline entries (e.g. in
    tests) never hear each other. Writes go through the coordinator, which
    persists and notifies on its own; signals only announce what happened.
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: QuestlineDataCoordinator
    ) -> None:
        """Bind the manager to its coordinator's entry."""
        self.hass = hass
        self.coordinator = coordinator
        self.entry_id = coordinator.config_entry.entry_id

    def emit(self, suffix: str, **payload: Any) -> None:
        """Send a SIGNAL_SUFFIX_* signal with a keyword payload.

        Example:
            self.emit(
                const.SIGNAL_SUFFIX_SEASON_ARCHIVED,
                season_id=season_id,
                chapter_ids=chapter_ids,
            )
        """
        const.LOGGER.debug(
            "DEBUG: %s emits '%s' (%s)",
            self.__class__.__name__,
            suffix,
            ", ".join(payload),
        )
        # Dispatcher passes positional args only; listeners get one dict
        async_dispatcher_send(
            self.hass, get_event_signal(self.entry_id, suffix), payload
        )

    def listen(self, suffix: str, callback: Callable[[dict[str, Any]], Any]) -> None:
        """Subscribe to a signal of this entry until the entry unloads."""
        self.coordinator.config_entry.async_on_unload(
            async_dispatcher_connect(
                self.hass, get_event_signal(self.entry_id, suffix), callback
            )
        )
        const.LOGGER.debug(
            "DEBUG: %s listens to '%s'", self.__class__.__name__, suffix
        )

    @abstractmethod
    async def async_setup(self) -> None:
        """Subscribe and prime state; called once from the first refresh."""
