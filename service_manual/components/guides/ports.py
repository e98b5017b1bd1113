"""
Guides component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from service_manual.domain.entities import Guide, Topic, TopicSection


class GuideRepoPort(Protocol):
    """Repository interface for guides."""

    def get_by_id(self, guide_id: UUID) -> Guide | None:
        ...

    def get_by_slug(self, slug: str) -> Guide | None:
        ...

    def list_all(self) -> list[Guide]:
        ...

    def save(self, guide: Guide) -> Guide:
        """Insert or update a guide. ``content_id`` is only written on insert."""
        ...

    def delete(self, guide_id: UUID) -> None:
        """Delete a guide with its editions and their comments."""
        ...


class TopicSectionRepoPort(Protocol):
    """Read access to topic sections and their topics."""

    def get_section(self, section_id: UUID) -> TopicSection | None:
        ...

    def get_topic(self, topic_id: UUID) -> Topic | None:
        ...
