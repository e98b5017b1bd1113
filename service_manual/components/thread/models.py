"""
Thread component - Timeline events.

Events are derived from editions and comments on every request and never
stored.
"""

from __future__ import annotations

from dataclasses import dataclass

from service_manual.domain.entities import Comment, Edition

# Labels for state changes, keyed by the state moved into.
STATE_CHANGE_LABELS: dict[str, str] = {
    "review_requested": "Review requested",
}


class UnhandledStateLabel(NotImplementedError):
    """A state change was observed for a state with no label."""

    def __init__(self, state: str) -> None:
        self.state = state
        super().__init__(f"No thread label for state '{state}'")


@dataclass(frozen=True)
class NewDraftEvent:
    edition: Edition


@dataclass(frozen=True)
class AssignedToEvent:
    edition: Edition


@dataclass(frozen=True)
class StateChangeEvent:
    edition: Edition

    @property
    def action(self) -> str:
        try:
            return STATE_CHANGE_LABELS[self.edition.state]
        except KeyError:
            raise UnhandledStateLabel(self.edition.state) from None


@dataclass(frozen=True)
class CommentEvent:
    comment: Comment


ThreadEvent = NewDraftEvent | AssignedToEvent | StateChangeEvent | CommentEvent
