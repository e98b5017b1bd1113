from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel

# --- Shared Enums/Types ---
UpdateType = Literal["major", "minor"]
GuideKind = Literal["guide", "guide_community"]


# --- Errors ---
class FieldErrorModel(BaseModel):
    code: str
    message: str
    field: str | None = None


# --- Editions ---
class CommentResponse(BaseModel):
    id: UUID
    edition_id: UUID
    user_id: UUID
    comment: str
    created_at: datetime


class EditionResponse(BaseModel):
    id: UUID
    guide_id: UUID | None
    version: int
    state: str
    phase: str
    title: str
    description: str
    body: str
    change_note: str | None = None
    change_note_html: str | None = None
    update_type: str
    author_id: UUID | None = None
    content_owner_id: UUID | None = None
    created_at: datetime
    updated_at: datetime
    comments: list[CommentResponse] = []


class EditionChangesRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    body: str | None = None
    change_note: str | None = None
    update_type: UpdateType | None = None
    content_owner_id: UUID | None = None
    phase: str | None = None


class CommentCreateRequest(BaseModel):
    comment: str


class ThreadEventResponse(BaseModel):
    type: Literal["new_draft", "assigned_to", "state_change", "comment"]
    edition_id: UUID | None = None
    action: str | None = None
    user_id: UUID | None = None
    comment: str | None = None
    created_at: datetime


# --- Guides ---
class GuideCreateRequest(BaseModel):
    slug: str
    title: str
    body: str = ""
    description: str = ""
    change_note: str | None = None
    update_type: UpdateType = "major"
    content_owner_id: UUID | None = None
    topic_section_id: UUID | None = None
    kind: GuideKind = "guide"


class GuideUpdateRequest(BaseModel):
    slug: str | None = None
    topic_section_id: UUID | None = None


class GuideResponse(BaseModel):
    id: UUID
    slug: str
    kind: str
    content_id: str | None
    topic_section_id: UUID | None = None
    created_at: datetime
    updated_at: datetime
    latest_edition: EditionResponse | None = None
    live_edition: EditionResponse | None = None
    has_been_published: bool = False


class GuideDetailResponse(GuideResponse):
    latest_edition_per_lineage: list[EditionResponse] = []


# --- Topics ---
class TopicPublishResponse(BaseModel):
    success: bool
    topic_id: UUID | None = None
    error: str | None = None
    errors: list[FieldErrorModel] = []

