"""
Editions component - Editorial workflow actions.

Each action appends a new edition to the guide's history; earlier editions
are left untouched. Actions check the state machine's predicates first and
report a closed action as an ``illegal_transition`` error.

Shell Layer - handles I/O and error conversion.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from uuid import UUID, uuid4

from service_manual.components.guides._impl import GuideEditions, validate_latest_edition_owner
from service_manual.components.guides.ports import GuideRepoPort
from service_manual.domain.entities import Comment, Edition, Guide
from service_manual.ports.clock import ClockPort

from ._impl import EditionStateMachine
from .models import (
    AddCommentInput,
    AmendEditionInput,
    ApproveInput,
    CommentOutput,
    EditionOperationOutput,
    EditionValidationError,
    PublishInput,
    RequestReviewInput,
    SaveDraftInput,
    UnpublishInput,
)
from .ports import EditionRepoPort

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(
    {"title", "description", "body", "change_note", "update_type", "content_owner_id", "phase"}
)

WorkflowInput = (
    SaveDraftInput
    | AmendEditionInput
    | RequestReviewInput
    | ApproveInput
    | PublishInput
    | UnpublishInput
)


def _failure(code: str, message: str, field: str | None = None) -> EditionOperationOutput:
    return EditionOperationOutput(
        edition=None,
        errors=[EditionValidationError(code=code, message=message, field=field)],
        success=False,
    )


class EditionWorkflow:
    """Runs draft, review, approval and publication actions on guides."""

    def __init__(
        self,
        edition_repo: EditionRepoPort,
        guide_repo: GuideRepoPort,
        state_machine: EditionStateMachine,
        clock: ClockPort,
    ) -> None:
        self._edition_repo = edition_repo
        self._guide_repo = guide_repo
        self._state_machine = state_machine
        self._clock = clock

    def run(self, input_data: WorkflowInput) -> EditionOperationOutput:
        """Main dispatcher - routes to appropriate handler based on input type."""
        if isinstance(input_data, SaveDraftInput):
            return self.run_save_draft(input_data)
        elif isinstance(input_data, AmendEditionInput):
            return self.run_amend(input_data)
        elif isinstance(input_data, RequestReviewInput):
            return self.run_request_review(input_data)
        elif isinstance(input_data, ApproveInput):
            return self.run_approve(input_data)
        elif isinstance(input_data, PublishInput):
            return self.run_publish(input_data)
        elif isinstance(input_data, UnpublishInput):
            return self.run_unpublish(input_data)
        else:
            raise TypeError(f"Unknown input type: {type(input_data)}")

    # --- Actions ---

    def run_save_draft(self, input_data: SaveDraftInput) -> EditionOperationOutput:
        """
        Save changes as a new draft edition.

        Editing a published or unpublished guide opens a new lineage.
        """
        guide = self._guide_repo.get_by_id(input_data.guide_id)
        if guide is None:
            return _failure("guide_not_found", "Guide not found", "guide_id")

        editions = self._editions(guide)
        latest = editions.latest_edition
        changes = {k: v for k, v in input_data.changes.items() if k in EDITABLE_FIELDS}

        if latest is None:
            now = self._clock.now()
            draft = Edition(guide_id=guide.id, created_at=now, updated_at=now)
        elif latest.state in ("published", "unpublished"):
            draft = self._state_machine.draft_copy(latest, self._clock.now())
            draft.version = max(e.version for e in editions.chronological()) + 1
        else:
            draft = self._next_edition(latest, state="draft")

        for key, value in changes.items():
            setattr(draft, key, value)
        draft.author_id = input_data.user.id

        return self._save(guide, draft)

    def run_amend(self, input_data: AmendEditionInput) -> EditionOperationOutput:
        """Change an edition in place. Published editions refuse this."""
        stored = self._edition_repo.get_by_id(input_data.edition_id)
        if stored is None:
            return _failure("edition_not_found", "Edition not found", "edition_id")
        guide = self._guide_repo.get_by_id(stored.guide_id) if stored.guide_id else None
        if guide is None:
            return _failure("guide_not_found", "Guide not found", "guide_id")

        changes = {k: v for k, v in input_data.changes.items() if k in EDITABLE_FIELDS}
        amended = stored.model_copy(update={**changes, "updated_at": self._clock.now()})
        return self._save(guide, amended, stored=stored)

    def run_request_review(self, input_data: RequestReviewInput) -> EditionOperationOutput:
        return self._advance(
            input_data.guide_id,
            "review_requested",
            lambda latest, editions: self._state_machine.can_request_review(latest),
            "A review can only be requested for a saved draft",
        )

    def run_approve(self, input_data: ApproveInput) -> EditionOperationOutput:
        user = input_data.user
        return self._advance(
            input_data.guide_id,
            "approved",
            lambda latest, editions: self._state_machine.can_be_approved(latest, user),
            "This edition can't be approved by you",
        )

    def run_publish(self, input_data: PublishInput) -> EditionOperationOutput:
        return self._advance(
            input_data.guide_id,
            "published",
            lambda latest, editions: self._state_machine.can_be_published(
                latest, editions.latest_edition
            ),
            "Only the approved latest edition can be published",
        )

    def run_unpublish(self, input_data: UnpublishInput) -> EditionOperationOutput:
        return self._advance(
            input_data.guide_id,
            "unpublished",
            lambda latest, editions: self._state_machine.can_transition(
                latest.state, "unpublished"
            ),
            "Only a published guide can be unpublished",
        )

    def add_comment(self, input_data: AddCommentInput) -> CommentOutput:
        edition = self._edition_repo.get_by_id(input_data.edition_id)
        if edition is None:
            return CommentOutput(
                comment=None,
                errors=[
                    EditionValidationError(
                        code="edition_not_found", message="Edition not found", field="edition_id"
                    )
                ],
                success=False,
            )
        if not input_data.comment.strip():
            return CommentOutput(
                comment=None,
                errors=[
                    EditionValidationError(
                        code="comment_required", message="Comment can't be blank", field="comment"
                    )
                ],
                success=False,
            )

        comment = Comment(
            edition_id=edition.id,
            user_id=input_data.user.id,
            comment=input_data.comment,
            created_at=self._clock.now(),
        )
        saved = self._edition_repo.add_comment(comment)
        logger.info("Comment added to edition %s by %s", edition.id, input_data.user.id)
        return CommentOutput(comment=saved, errors=[], success=True)

    # --- Helpers ---

    def _editions(self, guide: Guide) -> GuideEditions:
        return GuideEditions(self._edition_repo.list_for_guide(guide.id))

    def _next_edition(self, base: Edition, **updates: Any) -> Edition:
        now = self._clock.now()
        data = base.model_dump(exclude={"id", "comments", "created_at", "updated_at"})
        data.update(id=uuid4(), created_at=now, updated_at=now, **updates)
        return Edition(**data)

    def _advance(
        self,
        guide_id: UUID,
        to_state: str,
        allowed: Callable[[Edition, GuideEditions], bool],
        refusal: str,
    ) -> EditionOperationOutput:
        guide = self._guide_repo.get_by_id(guide_id)
        if guide is None:
            return _failure("guide_not_found", "Guide not found", "guide_id")

        editions = self._editions(guide)
        latest = editions.latest_edition
        if latest is None or not allowed(latest, editions):
            return _failure("illegal_transition", refusal, "state")

        return self._save(guide, self._next_edition(latest, state=to_state))

    def _save(
        self,
        guide: Guide,
        edition: Edition,
        stored: Edition | None = None,
    ) -> EditionOperationOutput:
        errors = self._state_machine.validate(edition, stored)
        errors.extend(
            EditionValidationError(code=e.code, message=e.message, field=e.field)
            for e in validate_latest_edition_owner(guide, edition)
        )
        if errors:
            for error in errors:
                if error.code == "broken_link":
                    logger.warning("Guide %s: %s", guide.id, error.message)
            return EditionOperationOutput(edition=edition, errors=errors, success=False)

        saved = self._edition_repo.save(edition)
        logger.info(
            "Guide %s edition %s saved as %s (version %s)",
            guide.id,
            saved.id,
            saved.state,
            saved.version,
        )
        return EditionOperationOutput(edition=saved, errors=[], success=True)
