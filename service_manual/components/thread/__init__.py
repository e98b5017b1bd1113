"""
Thread component - Flattened history of an edition lineage.
"""

from .component import EditionThread, LineageRepoPort
from .models import (
    STATE_CHANGE_LABELS,
    AssignedToEvent,
    CommentEvent,
    NewDraftEvent,
    StateChangeEvent,
    ThreadEvent,
    UnhandledStateLabel,
)

__all__ = [
    "EditionThread",
    "LineageRepoPort",
    "STATE_CHANGE_LABELS",
    "AssignedToEvent",
    "CommentEvent",
    "NewDraftEvent",
    "StateChangeEvent",
    "ThreadEvent",
    "UnhandledStateLabel",
]
