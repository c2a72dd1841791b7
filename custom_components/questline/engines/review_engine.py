"""Review Engine - Completion watcher for one-time review prompts.

Decides when a lifecycle entity has just transitioned into the completed
state and should get exactly one review prompt.

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
Unlike the other engines, CompletionWatcher carries session state (the seen
set and the initialized flag). One instance exists per entity kind per
loaded config entry; it is never module-level state. ReviewManager owns the
instances and performs the side effects.

Observation algorithm:
    1. Collect every entity that counts as completed right now.
    2. First observation: remember them all and prompt for nothing.
    3. Otherwise pick the first completed entity that is neither seen
       nor already reviewed.
    4. Mark every completed entity as seen.
    5. Return the candidate only when no prompt is currently open.

A candidate dropped in step 5 (or a prompt that is dismissed) is not
re-prompted later, because its id is already in the seen set.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .. import const
from .status_engine import StatusEngine


@dataclass(frozen=True)
class ReviewCandidate:
    """An entity that needs a review prompt.

    Attributes:
        kind: const.KIND_SEASON / KIND_CHAPTER / KIND_QUEST
        internal_id: Entity id
        name: Display name (season name or chapter/quest title)
        entity: The record as observed
    """

    kind: str
    internal_id: str
    name: str
    entity: Mapping[str, Any]


@dataclass
class CompletionWatcher:
    """Session state for completion-review detection of one entity kind."""

    kind: str
    seen: set[str] = field(default_factory=set)
    initialized: bool = False

    def observe(
        self,
        entities: Iterable[Mapping[str, Any]],
        *,
        prompt_open: bool = False,
        now: datetime | None = None,
    ) -> ReviewCandidate | None:
        """Observe the current collection and return at most one candidate.

        Args:
            entities: Current records of this watcher's kind
            prompt_open: True if a review prompt is already showing
            now: Evaluation instant for derived completion

        Returns:
            ReviewCandidate to prompt for, or None
        """
        completed_now = [
            entity
            for entity in entities
            if entity.get(const.DATA_INTERNAL_ID)
            and StatusEngine.is_completed(self.kind, entity, now)
        ]

        if not self.initialized:
            self.seen = {entity[const.DATA_INTERNAL_ID] for entity in completed_now}
            self.initialized = True
            return None

        candidate = next(
            (
                entity
                for entity in completed_now
                if entity[const.DATA_INTERNAL_ID] not in self.seen
                and not entity.get(const.DATA_REVIEW)
            ),
            None,
        )

        self.seen.update(entity[const.DATA_INTERNAL_ID] for entity in completed_now)

        if candidate is None or prompt_open:
            return None

        name_field = const.NAME_FIELDS.get(self.kind, const.DATA_QUEST_TITLE)
        return ReviewCandidate(
            kind=self.kind,
            internal_id=candidate[const.DATA_INTERNAL_ID],
            name=str(candidate.get(name_field) or candidate[const.DATA_INTERNAL_ID]),
            entity=candidate,
        )

    def reset(self) -> None:
        """Discard session state; the next observation is a cold start."""
        self.seen = set()
        self.initialized = False
