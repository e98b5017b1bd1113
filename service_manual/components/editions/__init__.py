"""
Editions component - Edition state machine and editorial workflow.
"""

from ._impl import (
    DEFAULT_TRANSITIONS,
    EditionStateMachine,
    can_be_approved,
    can_be_published,
    can_request_review,
    draft_copy,
    validate_edition_fields,
)
from .component import EditionWorkflow
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
from .ports import EditionRepoPort, LinkCheckerPort, MarkdownRendererPort

__all__ = [
    # State machine
    "DEFAULT_TRANSITIONS",
    "EditionStateMachine",
    "can_be_approved",
    "can_be_published",
    "can_request_review",
    "draft_copy",
    "validate_edition_fields",
    # Workflow
    "EditionWorkflow",
    # Input models
    "AddCommentInput",
    "AmendEditionInput",
    "ApproveInput",
    "PublishInput",
    "RequestReviewInput",
    "SaveDraftInput",
    "UnpublishInput",
    # Output models
    "CommentOutput",
    "EditionOperationOutput",
    "EditionValidationError",
    # Ports
    "EditionRepoPort",
    "LinkCheckerPort",
    "MarkdownRendererPort",
]
