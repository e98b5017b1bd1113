from dataclasses import asdict
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from service_manual.adapters.publishing_api import PublishingApiClient
from service_manual.adapters.sqlite.repos import SQLiteGuideRepo, SQLiteTopicRepo
from service_manual.api.deps import (
    get_current_user,
    get_guide_repo,
    get_publishing_api,
    get_rules,
    get_topic_repo,
)
from service_manual.api.schemas import FieldErrorModel, TopicPublishResponse, UpdateType
from service_manual.components.topics import (
    PublishResponse,
    SectionWithGuides,
    TopicPublisher,
    present_topic,
)
from service_manual.domain.entities import Topic, TopicSection, User
from service_manual.rules.models import Rules

router = APIRouter()


class TopicRequest(BaseModel):
    path: str | None = None
    title: str | None = None
    description: str | None = None
    update_type: UpdateType | None = None
    include_on_homepage: bool | None = None


class SectionRequest(BaseModel):
    title: str
    description: str = ""
    position: int = 0


class TopicResponse(BaseModel):
    id: UUID
    path: str
    title: str
    description: str
    content_id: str
    update_type: str
    include_on_homepage: bool
    sections: list[dict[str, Any]] = []


def _topic_response(topic: Topic, sections: list[TopicSection]) -> TopicResponse:
    return TopicResponse(
        **topic.model_dump(exclude={"created_at", "updated_at"}),
        sections=[s.model_dump(mode="json") for s in sections],
    )


def _publish_response(response: PublishResponse, topic: Topic) -> TopicPublishResponse:
    """Map a coordinator outcome; failures become HTTP errors."""
    if response.errors:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=[FieldErrorModel(**asdict(e)).model_dump() for e in response.errors],
        )
    if not response.success:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=response.error)
    return TopicPublishResponse(success=True, topic_id=topic.id)


def _sections_with_guides(
    topic: Topic, topics: SQLiteTopicRepo, guides: SQLiteGuideRepo
) -> list[SectionWithGuides]:
    return [
        SectionWithGuides(section=section, guides=guides.list_by_section(section.id))
        for section in topics.list_sections(topic.id)
    ]


def _get_topic_or_404(topic_id: UUID, topics: SQLiteTopicRepo) -> Topic:
    topic = topics.get_by_id(topic_id)
    if topic is None:
        raise HTTPException(status_code=404, detail="Topic not found")
    return topic


@router.get("/{topic_id}", response_model=TopicResponse)
def get_topic(
    topic_id: UUID,
    current_user: User = Depends(get_current_user),
    topics: SQLiteTopicRepo = Depends(get_topic_repo),
) -> TopicResponse:
    topic = _get_topic_or_404(topic_id, topics)
    return _topic_response(topic, topics.list_sections(topic.id))


@router.post("/{topic_id}/sections", response_model=TopicResponse)
def add_section(
    topic_id: UUID,
    req: SectionRequest,
    current_user: User = Depends(get_current_user),
    topics: SQLiteTopicRepo = Depends(get_topic_repo),
) -> TopicResponse:
    topic = _get_topic_or_404(topic_id, topics)
    topics.save_section(TopicSection(topic_id=topic.id, **req.model_dump()))
    return _topic_response(topic, topics.list_sections(topic.id))


@router.post("", response_model=TopicPublishResponse, status_code=status.HTTP_201_CREATED)
def create_topic(
    req: TopicRequest,
    current_user: User = Depends(get_current_user),
    rules: Rules = Depends(get_rules),
    topics: SQLiteTopicRepo = Depends(get_topic_repo),
    guides: SQLiteGuideRepo = Depends(get_guide_repo),
    publishing_api: PublishingApiClient = Depends(get_publishing_api),
) -> TopicPublishResponse:
    """Create a topic and send it to the publishing API as a draft."""
    topic = Topic(**req.model_dump(exclude_none=True, exclude={"path"}), path=req.path or "")
    return _save_draft(topic, rules, topics, guides, publishing_api)


@router.post("/{topic_id}/draft", response_model=TopicPublishResponse)
def save_topic_draft(
    topic_id: UUID,
    req: TopicRequest,
    current_user: User = Depends(get_current_user),
    rules: Rules = Depends(get_rules),
    topics: SQLiteTopicRepo = Depends(get_topic_repo),
    guides: SQLiteGuideRepo = Depends(get_guide_repo),
    publishing_api: PublishingApiClient = Depends(get_publishing_api),
) -> TopicPublishResponse:
    """Apply changes to a topic and send it to the publishing API as a draft."""
    stored = _get_topic_or_404(topic_id, topics)
    topic = stored.model_copy(update=req.model_dump(exclude_none=True))
    return _save_draft(topic, rules, topics, guides, publishing_api)


@router.post("/{topic_id}/publish", response_model=TopicPublishResponse)
def publish_topic(
    topic_id: UUID,
    current_user: User = Depends(get_current_user),
    rules: Rules = Depends(get_rules),
    topics: SQLiteTopicRepo = Depends(get_topic_repo),
    publishing_api: PublishingApiClient = Depends(get_publishing_api),
) -> TopicPublishResponse:
    topic = _get_topic_or_404(topic_id, topics)
    publisher = TopicPublisher(
        topic=topic,
        publishing_api=publishing_api,
        store=topics,
        path_prefix=rules.guides.slug_prefix,
    )
    return _publish_response(publisher.publish(), topic)


def _save_draft(
    topic: Topic,
    rules: Rules,
    topics: SQLiteTopicRepo,
    guides: SQLiteGuideRepo,
    publishing_api: PublishingApiClient,
) -> TopicPublishResponse:
    content = present_topic(
        topic,
        _sections_with_guides(topic, topics, guides),
        publishing_app=rules.publishing_api.publishing_app,
        rendering_app=rules.publishing_api.rendering_app,
    )
    publisher = TopicPublisher(
        topic=topic,
        publishing_api=publishing_api,
        store=topics,
        path_prefix=rules.guides.slug_prefix,
    )
    return _publish_response(publisher.save_draft(content), topic)
