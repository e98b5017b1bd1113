from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, PrivateAttr

# --- Enums / Literals ---
EditionState = Literal["draft", "review_requested", "approved", "published", "unpublished"]
UpdateType = Literal["major", "minor"]
GuideKind = Literal["guide", "guide_community"]

EDITION_STATES: tuple[str, ...] = (
    "draft",
    "review_requested",
    "approved",
    "published",
    "unpublished",
)


def utcnow() -> datetime:
    return datetime.now(UTC)


class PersistedModel(BaseModel):
    """Base for rows that know whether they have been written to the store."""

    _persisted: bool = PrivateAttr(default=False)

    @property
    def is_persisted(self) -> bool:
        return self._persisted

    def mark_persisted(self) -> None:
        self._persisted = True


# --- Users ---

class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    uid: str = Field(default_factory=lambda: uuid4().hex)
    name: str
    email: str
    permissions: list[str] = Field(default_factory=lambda: ["signin"])
    created_at: datetime = Field(default_factory=utcnow)


# --- Editions ---

class Comment(PersistedModel):
    id: UUID = Field(default_factory=uuid4)
    edition_id: UUID
    user_id: UUID
    comment: str
    created_at: datetime = Field(default_factory=utcnow)


class Edition(PersistedModel):
    id: UUID = Field(default_factory=uuid4)
    guide_id: UUID | None = None
    version: int = 1
    # Unknown values are reported by EditionStateMachine.validate.
    state: str = "draft"
    phase: str = "beta"
    title: str = ""
    description: str = ""
    body: str = ""
    change_note: str | None = None
    update_type: str = "major"
    author_id: UUID | None = None
    content_owner_id: UUID | None = None

    comments: list[Comment] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_draft(self) -> bool:
        return self.state == "draft"

    @property
    def is_published(self) -> bool:
        return self.state == "published"

    @property
    def is_unpublished(self) -> bool:
        return self.state == "unpublished"


# Fields an edition may still change once published.
EDITION_ADMIN_FIELDS: frozenset[str] = frozenset({"state", "updated_at", "comments"})


# --- Guides ---

class Guide(PersistedModel):
    id: UUID = Field(default_factory=uuid4)
    slug: str
    kind: GuideKind = "guide"
    # Assigned once by GuideService.create, never reassigned.
    content_id: str | None = None
    topic_section_id: UUID | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# --- Topics ---

class Topic(PersistedModel):
    id: UUID = Field(default_factory=uuid4)
    path: str
    title: str = ""
    description: str = ""
    content_id: str = Field(default_factory=lambda: str(uuid4()))
    update_type: str = "major"
    include_on_homepage: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TopicSection(PersistedModel):
    id: UUID = Field(default_factory=uuid4)
    topic_id: UUID | None = None
    title: str = ""
    description: str = ""
    position: int = 0


# --- Publishing ---

class ContentForPublication(BaseModel):
    content_id: str
    content_payload: dict[str, Any]
    links_payload: dict[str, Any]
