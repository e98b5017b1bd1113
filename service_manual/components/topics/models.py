"""
Topics component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from service_manual.domain.entities import Guide, TopicSection


@dataclass(frozen=True)
class TopicValidationError:
    """Topic validation error."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class PublishResponse:
    """
    Outcome of a topic save or publish.

    ``error`` holds the publishing API's message; a local validation failure
    has no ``error`` and lists the problems in ``errors``.
    """

    success: bool
    error: str | None = None
    errors: list[TopicValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class SectionWithGuides:
    """A topic section and the guides filed under it, in display order."""

    section: TopicSection
    guides: list[Guide]
