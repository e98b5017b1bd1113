"""
Topic validation and publishing payloads.

Functional Core - pure business logic.
"""

from __future__ import annotations

import re

from service_manual.domain.entities import ContentForPublication, Topic

from .models import SectionWithGuides, TopicValidationError

DEFAULT_PATH_PREFIX = "/service-manual"


def validate_topic(topic: Topic, prefix: str = DEFAULT_PATH_PREFIX) -> list[TopicValidationError]:
    """Validate topic fields. Returns list of validation errors (empty if valid)."""
    errors: list[TopicValidationError] = []

    if not re.fullmatch(re.escape(prefix) + r"/[a-z0-9-]+", topic.path or ""):
        errors.append(
            TopicValidationError(
                code="path_format",
                message=f"Path must be present and look like '{prefix}/[topic]'",
                field="path",
            )
        )

    if not topic.title or not topic.title.strip():
        errors.append(
            TopicValidationError(code="title_required", message="Title can't be blank", field="title")
        )

    if not topic.description or not topic.description.strip():
        errors.append(
            TopicValidationError(
                code="description_required",
                message="Description can't be blank",
                field="description",
            )
        )

    if topic.update_type not in ("major", "minor"):
        errors.append(
            TopicValidationError(
                code="update_type_invalid",
                message="Update type must be 'major' or 'minor'",
                field="update_type",
            )
        )

    return errors


def validate_path_available(topic: Topic, holder: Topic | None) -> list[TopicValidationError]:
    """``holder`` is whichever topic currently has ``topic.path``, if any."""
    if holder is None or holder.id == topic.id:
        return []
    return [
        TopicValidationError(
            code="path_taken",
            message="Path has already been taken",
            field="path",
        )
    ]


def present_topic(
    topic: Topic,
    sections: list[SectionWithGuides],
    publishing_app: str = "service-manual-publisher",
    rendering_app: str = "service-manual-frontend",
) -> ContentForPublication:
    """Build the content and links payloads the publishing API expects for a topic."""
    ordered = sorted(sections, key=lambda s: s.section.position)

    groups = [
        {
            "name": s.section.title,
            "description": s.section.description,
            "content_ids": [g.content_id for g in s.guides if g.content_id],
        }
        for s in ordered
    ]
    linked_items = [content_id for group in groups for content_id in group["content_ids"]]

    content_payload = {
        "base_path": topic.path,
        "title": topic.title,
        "description": topic.description,
        "document_type": "service_manual_topic",
        "schema_name": "service_manual_topic",
        "publishing_app": publishing_app,
        "rendering_app": rendering_app,
        "locale": "en",
        "phase": "beta",
        "update_type": topic.update_type,
        "routes": [{"type": "exact", "path": topic.path}],
        "details": {"groups": groups},
    }
    links_payload = {"links": {"linked_items": linked_items}}

    return ContentForPublication(
        content_id=topic.content_id,
        content_payload=content_payload,
        links_payload=links_payload,
    )
