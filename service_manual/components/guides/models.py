"""
Guides component - Data models.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from service_manual.domain.entities import Edition, Guide, GuideKind

# --- Validation Errors ---


@dataclass(frozen=True)
class GuideValidationError:
    """Guide validation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class CreateGuideInput:
    """Input for creating a guide together with its first draft edition."""

    author_id: UUID
    slug: str
    title: str
    body: str = ""
    description: str = ""
    change_note: str | None = None
    update_type: str = "major"
    content_owner_id: UUID | None = None
    topic_section_id: UUID | None = None
    kind: GuideKind = "guide"


@dataclass(frozen=True)
class UpdateGuideInput:
    """Input for changing a guide's slug or topic section."""

    guide_id: UUID
    slug: str | None = None
    topic_section_id: UUID | None = None


@dataclass(frozen=True)
class ListGuidesInput:
    """Filters for listing guides. Every filter is optional."""

    query: str | None = None
    state: str | None = None
    author_id: UUID | None = None
    content_owner_id: UUID | None = None
    kind: str | None = None
    live_only: bool = False
    hide_unpublished: bool = False


# --- Output Models ---


@dataclass(frozen=True)
class GuideOperationOutput:
    """Output from a guide operation."""

    guide: Guide | None
    edition: Edition | None
    errors: list[GuideValidationError]
    success: bool
