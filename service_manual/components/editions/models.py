"""
Editions component - Data models.

Inputs are frozen; outputs carry the resulting edition plus any errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from service_manual.domain.entities import Comment, Edition, User

# --- Validation Errors ---


@dataclass(frozen=True)
class EditionValidationError:
    """Edition validation error. ``field`` is None for base-level errors."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class SaveDraftInput:
    """Input for saving changes to a guide as a new draft edition."""

    user: User
    guide_id: UUID
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AmendEditionInput:
    """Input for changing an existing edition in place."""

    user: User
    edition_id: UUID
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RequestReviewInput:
    user: User
    guide_id: UUID


@dataclass(frozen=True)
class ApproveInput:
    user: User
    guide_id: UUID


@dataclass(frozen=True)
class PublishInput:
    user: User
    guide_id: UUID


@dataclass(frozen=True)
class UnpublishInput:
    user: User
    guide_id: UUID


@dataclass(frozen=True)
class AddCommentInput:
    user: User
    edition_id: UUID
    comment: str


# --- Output Models ---


@dataclass(frozen=True)
class EditionOperationOutput:
    """Output from an edition workflow action."""

    edition: Edition | None
    errors: list[EditionValidationError]
    success: bool


@dataclass(frozen=True)
class CommentOutput:
    comment: Comment | None
    errors: list[EditionValidationError]
    success: bool
