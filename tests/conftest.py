"""
Shared fixtures: in-memory fakes of the ports, a stepping clock and users.
"""

import copy
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any
from uuid import UUID

import pytest

from service_manual.components.editions import EditionStateMachine, EditionWorkflow
from service_manual.components.guides import GuideService
from service_manual.components.topics import PublishingApiError
from service_manual.domain.entities import (
    Comment,
    Edition,
    Guide,
    Topic,
    TopicSection,
    User,
)

PROJECT_ROOT = Path(__file__).resolve().parents[1]


class StepClock:
    """Advances one minute on every call, so saves never share a timestamp."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2025, 1, 1, 9, 0, tzinfo=UTC)

    def now(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


class MockGuideRepo:
    def __init__(self):
        self.guides: dict[UUID, Guide] = {}

    def get_by_id(self, guide_id: UUID) -> Guide | None:
        guide = self.guides.get(guide_id)
        return guide.model_copy() if guide else None

    def get_by_slug(self, slug: str) -> Guide | None:
        for guide in self.guides.values():
            if guide.slug == slug:
                return guide.model_copy()
        return None

    def list_all(self) -> list[Guide]:
        return [g.model_copy() for g in self.guides.values()]

    def save(self, guide: Guide) -> Guide:
        existing = self.guides.get(guide.id)
        stored = guide.model_copy()
        if existing is not None:
            stored.content_id = existing.content_id
        stored.mark_persisted()
        guide.mark_persisted()
        self.guides[guide.id] = stored
        return guide

    def delete(self, guide_id: UUID) -> None:
        self.guides.pop(guide_id, None)


class MockEditionRepo:
    """Keeps editions in insertion order, like the SQLite rowid."""

    def __init__(self):
        self.editions: dict[UUID, Edition] = {}

    def get_by_id(self, edition_id: UUID) -> Edition | None:
        edition = self.editions.get(edition_id)
        return edition.model_copy(deep=True) if edition else None

    def list_for_guide(self, guide_id: UUID) -> list[Edition]:
        return [e.model_copy(deep=True) for e in self.editions.values() if e.guide_id == guide_id]

    def list_lineage(self, guide_id: UUID, version: int) -> list[Edition]:
        editions = [e for e in self.list_for_guide(guide_id) if e.version == version]
        return sorted(editions, key=lambda e: e.created_at)

    def save(self, edition: Edition) -> Edition:
        stored = edition.model_copy(deep=True)
        if edition.id in self.editions:
            stored.comments = list(self.editions[edition.id].comments)
        stored.mark_persisted()
        edition.mark_persisted()
        self.editions[edition.id] = stored
        return edition

    def add_comment(self, comment: Comment) -> Comment:
        comment.mark_persisted()
        self.editions[comment.edition_id].comments.append(comment)
        return comment


class MockSectionRepo:
    def __init__(self):
        self.sections: dict[UUID, TopicSection] = {}
        self.topics: dict[UUID, Topic] = {}

    def add(self, topic: Topic, section: TopicSection) -> TopicSection:
        section.topic_id = topic.id
        self.topics[topic.id] = topic
        self.sections[section.id] = section
        return section

    def get_section(self, section_id: UUID) -> TopicSection | None:
        return self.sections.get(section_id)

    def get_topic(self, topic_id: UUID) -> Topic | None:
        return self.topics.get(topic_id)


class FakeLinkChecker:
    def __init__(self, broken: list[str] | None = None):
        self.broken = broken or []
        self.checked: list[str] = []

    def find_broken_links(self, body: str) -> list[str]:
        self.checked.append(body)
        return [url for url in self.broken if url in body]


class InMemoryTopicStore:
    """
    Topic store whose transaction restores a snapshot when the block raises.

    Like the SQLite repo, topics saved in a transaction are only flagged as
    persisted once it commits.
    """

    def __init__(self):
        self.topics: dict[UUID, Topic] = {}
        self.committed = 0
        self.rolled_back = 0
        self._pending: list[Topic] | None = None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        snapshot = copy.deepcopy(self.topics)
        self._pending = []
        try:
            yield
        except BaseException:
            self.topics = snapshot
            self.rolled_back += 1
            raise
        finally:
            pending, self._pending = self._pending, None
        for topic in pending:
            topic.mark_persisted()
        self.committed += 1

    def get_by_id(self, topic_id: UUID) -> Topic | None:
        topic = self.topics.get(topic_id)
        return topic.model_copy() if topic else None

    def get_by_path(self, path: str) -> Topic | None:
        for topic in self.topics.values():
            if topic.path == path:
                return topic.model_copy()
        return None

    def save(self, topic: Topic) -> Topic:
        self.topics[topic.id] = topic.model_copy()
        if self._pending is not None:
            self._pending.append(topic)
        else:
            topic.mark_persisted()
        return topic


class RecordingPublishingApi:
    """Records calls; raises PublishingApiError on the named call."""

    def __init__(self, fail_on: str | None = None, message: str = "Base path is already in use"):
        self.fail_on = fail_on
        self.message = message
        self.calls: list[tuple[str, Any]] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name == self.fail_on:
            raise PublishingApiError(self.message, status_code=422)

    def put_content(self, content_id: str, payload: dict[str, Any]) -> None:
        self._record("put_content", content_id, payload)

    def patch_links(self, content_id: str, payload: dict[str, Any]) -> None:
        self._record("patch_links", content_id, payload)

    def publish(self, content_id: str, update_type: str) -> None:
        self._record("publish", content_id, update_type)

    @property
    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


# --- Fixtures ---


@pytest.fixture
def rules_path() -> Path:
    return PROJECT_ROOT / "rules.yaml"


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def author():
    return User(name="Alice Author", email="alice@example.com")


@pytest.fixture
def reviewer():
    return User(name="Rob Reviewer", email="rob@example.com")


@pytest.fixture
def content_owner():
    return User(name="Olive Owner", email="olive@example.com")


@pytest.fixture
def guide_repo():
    return MockGuideRepo()


@pytest.fixture
def edition_repo():
    return MockEditionRepo()


@pytest.fixture
def section_repo():
    return MockSectionRepo()


@pytest.fixture
def link_checker():
    return FakeLinkChecker()


@pytest.fixture
def state_machine(link_checker):
    return EditionStateMachine(link_checker=link_checker)


@pytest.fixture
def guide_service(guide_repo, edition_repo, section_repo, state_machine, clock):
    return GuideService(
        guide_repo=guide_repo,
        edition_repo=edition_repo,
        section_repo=section_repo,
        state_machine=state_machine,
        clock=clock,
    )


@pytest.fixture
def workflow(edition_repo, guide_repo, state_machine, clock):
    return EditionWorkflow(
        edition_repo=edition_repo,
        guide_repo=guide_repo,
        state_machine=state_machine,
        clock=clock,
    )
