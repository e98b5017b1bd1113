"""
Thread component - Audit timeline of one edition lineage.

Given the most recent edition of a lineage, reloads every edition sharing
its guide and version, oldest first, and flattens them into:

1. NewDraftEvent for the first edition
2. AssignedToEvent for the first edition
3. per edition: StateChangeEvent when its state differs from the edition
   before it, then a CommentEvent per comment in stored order
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from service_manual.domain.entities import Edition

from .models import (
    AssignedToEvent,
    CommentEvent,
    NewDraftEvent,
    StateChangeEvent,
    ThreadEvent,
)


class LineageRepoPort(Protocol):
    def list_lineage(self, guide_id: UUID, version: int) -> list[Edition]:
        """Editions of one lineage with their comments, oldest first."""
        ...


class EditionThread:
    def __init__(self, most_recent_edition: Edition, repo: LineageRepoPort) -> None:
        self._most_recent_edition = most_recent_edition
        self._repo = repo

    def events(self) -> list[ThreadEvent]:
        editions = self._all_editions_in_thread()
        if not editions:
            return []

        first = editions[0]
        events: list[ThreadEvent] = [NewDraftEvent(first), AssignedToEvent(first)]

        previous_state = first.state
        for edition in editions:
            if edition.state != previous_state:
                events.append(StateChangeEvent(edition))
            previous_state = edition.state

            for comment in edition.comments:
                events.append(CommentEvent(comment))

        return events

    def _all_editions_in_thread(self) -> list[Edition]:
        edition = self._most_recent_edition
        if edition.guide_id is None:
            return [edition]
        return self._repo.list_lineage(edition.guide_id, edition.version)
