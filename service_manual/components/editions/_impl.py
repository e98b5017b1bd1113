"""
EditionStateMachine - Edition states, validation and action predicates.

States:
- draft → review_requested → approved → published
- published → unpublished

Published editions are frozen: only administrative fields may change.
Moving into ``published`` runs the link checker over the body.

Functional Core - pure business logic.
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from service_manual.domain.entities import (
    EDITION_ADMIN_FIELDS,
    EDITION_STATES,
    Edition,
    User,
)

from .models import EditionValidationError
from .ports import LinkCheckerPort, MarkdownRendererPort

DEFAULT_TRANSITIONS: dict[str, list[str]] = {
    "draft": ["review_requested"],
    "review_requested": ["approved"],
    "approved": ["published"],
    "published": ["unpublished"],
    "unpublished": [],
}

UPDATE_TYPES = ("major", "minor")

# --- Action Predicates ---


def can_request_review(edition: Edition) -> bool:
    return edition.is_persisted and edition.state == "draft"


def can_be_approved(edition: Edition, user: User, allow_self_approval: bool = False) -> bool:
    """
    An edition under review can be approved by anyone but its author.

    ``allow_self_approval`` lifts the author restriction.
    """
    if not edition.is_persisted or edition.state != "review_requested":
        return False
    return allow_self_approval or user.id != edition.author_id


def can_be_published(edition: Edition, latest_edition: Edition | None) -> bool:
    """Only the guide's latest edition can be published, once approved."""
    if latest_edition is None or latest_edition.id != edition.id:
        return False
    return edition.state == "approved"


# --- Copies ---


def draft_copy(edition: Edition, now: datetime) -> Edition:
    """
    Build a new, unsaved draft from an edition.

    Every field is kept except the change note, which is cleared.
    """
    data = edition.model_dump(exclude={"id", "comments", "created_at", "updated_at"})
    data.update(id=uuid4(), state="draft", change_note=None, created_at=now, updated_at=now)
    return Edition(**data)


# --- Validation ---


def changed_fields(edition: Edition, stored: Edition) -> set[str]:
    """Names of non-administrative fields that differ from the stored row."""
    current = edition.model_dump(exclude=set(EDITION_ADMIN_FIELDS))
    previous = stored.model_dump(exclude=set(EDITION_ADMIN_FIELDS))
    return {name for name, value in current.items() if previous.get(name) != value}


def validate_edition_fields(edition: Edition) -> list[EditionValidationError]:
    errors: list[EditionValidationError] = []

    if edition.state not in EDITION_STATES:
        errors.append(
            EditionValidationError(
                code="invalid_state",
                message=f"State '{edition.state}' is not a valid edition state",
                field="state",
            )
        )

    if edition.author_id is None:
        errors.append(
            EditionValidationError(
                code="author_required",
                message="Author can't be blank",
                field="author",
            )
        )

    if not edition.title or not edition.title.strip():
        errors.append(
            EditionValidationError(
                code="title_required",
                message="Title can't be blank",
                field="title",
            )
        )

    if edition.update_type not in UPDATE_TYPES:
        errors.append(
            EditionValidationError(
                code="update_type_invalid",
                message="Update type must be 'major' or 'minor'",
                field="update_type",
            )
        )
    elif edition.update_type == "major" and not (edition.change_note or "").strip():
        errors.append(
            EditionValidationError(
                code="change_note_required",
                message="Change note can't be blank",
                field="change_note",
            )
        )

    return errors


class EditionStateMachine:
    """
    Edition state machine.

    Validates editions on save and answers which workflow actions are open.
    """

    def __init__(
        self,
        transitions: dict[str, list[str]] | None = None,
        allow_self_approval: bool = False,
        link_checker: LinkCheckerPort | None = None,
        renderer: MarkdownRendererPort | None = None,
    ) -> None:
        """
        Initialize state machine.

        Args:
            transitions: Allowed successor states per state
            allow_self_approval: Lets authors approve their own editions
            link_checker: Consulted when an edition is being published
            renderer: Markdown renderer for change notes
        """
        self._transitions = transitions or DEFAULT_TRANSITIONS
        self._allow_self_approval = allow_self_approval
        self._link_checker = link_checker
        self._renderer = renderer

    @property
    def allow_self_approval(self) -> bool:
        return self._allow_self_approval

    def can_transition(self, from_state: str, to_state: str) -> bool:
        return to_state in self._transitions.get(from_state, [])

    def can_request_review(self, edition: Edition) -> bool:
        return can_request_review(edition)

    def can_be_approved(self, edition: Edition, user: User) -> bool:
        return can_be_approved(edition, user, self._allow_self_approval)

    def can_be_published(self, edition: Edition, latest_edition: Edition | None) -> bool:
        return can_be_published(edition, latest_edition)

    def draft_copy(self, edition: Edition, now: datetime) -> Edition:
        return draft_copy(edition, now)

    def change_note_html(self, edition: Edition) -> str:
        """Change note rendered as HTML. Never stored."""
        if self._renderer is None:
            raise RuntimeError("No markdown renderer configured")
        return self._renderer.render(edition.change_note or "")

    def validate(
        self,
        edition: Edition,
        stored: Edition | None = None,
    ) -> list[EditionValidationError]:
        """
        Validate an edition about to be saved.

        Args:
            edition: Edition with pending changes
            stored: The row as currently persisted, if any

        Returns:
            List of validation errors (empty if valid)
        """
        errors = validate_edition_fields(edition)

        if stored is not None and stored.state == "published" and changed_fields(edition, stored):
            errors.append(
                EditionValidationError(
                    code="immutable_after_publish",
                    message="Published editions can't be edited",
                )
            )

        being_published = edition.state == "published" and (
            stored is None or stored.state != "published"
        )
        if being_published:
            errors.extend(self._check_links(edition))

        return errors

    def _check_links(self, edition: Edition) -> list[EditionValidationError]:
        if self._link_checker is None:
            return []
        return [
            EditionValidationError(
                code="broken_link",
                message=f"Body contains a broken link: {url}",
                field="body",
            )
            for url in self._link_checker.find_broken_links(edition.body)
        ]
