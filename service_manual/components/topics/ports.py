"""
Topics component - Port interfaces.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Protocol
from uuid import UUID

from service_manual.domain.entities import Topic


class PublishingApiError(Exception):
    """
    Failure reported by (or while reaching) the publishing API.

    ``message`` is human-readable and is shown to users verbatim.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class PublishingApiPort(Protocol):
    """External publishing API. Every call raises PublishingApiError on failure."""

    def put_content(self, content_id: str, payload: dict[str, Any]) -> None:
        ...

    def patch_links(self, content_id: str, payload: dict[str, Any]) -> None:
        ...

    def publish(self, content_id: str, update_type: str) -> None:
        ...


class TopicStorePort(Protocol):
    """Topic persistence with an explicit transaction boundary."""

    def transaction(self) -> AbstractContextManager[Any]:
        """Commit on normal exit, roll back if the block raises."""
        ...

    def get_by_id(self, topic_id: UUID) -> Topic | None:
        ...

    def get_by_path(self, path: str) -> Topic | None:
        ...

    def save(self, topic: Topic) -> Topic:
        """Marks the topic persisted once the enclosing transaction commits."""
        ...
