"""
Topic publishing against SQLite: the local row only survives when the
publishing API accepts the content.
"""

import json

import httpx
import pytest

from service_manual.adapters.publishing_api import PublishingApiClient
from service_manual.adapters.sqlite.migrator import SQLiteMigrator
from service_manual.adapters.sqlite.repos import SQLiteTopicRepo
from service_manual.components.topics import TopicPublisher, present_topic
from service_manual.domain.entities import Topic


@pytest.fixture
def topics(tmp_path):
    path = str(tmp_path / "topics.db")
    SQLiteMigrator(path).run_migrations()
    return SQLiteTopicRepo(path)


def api(status_code: int, body: dict) -> tuple[PublishingApiClient, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status_code, json=body)

    client = PublishingApiClient(
        "http://publishing-api.test", transport=httpx.MockTransport(handler)
    )
    return client, seen


def make_topic() -> Topic:
    return Topic(
        path="/service-manual/agile-delivery",
        title="Agile delivery",
        description="How to work in an agile way",
    )


def test_save_draft_commits_when_api_accepts(topics):
    client, seen = api(200, {})
    topic = make_topic()

    response = TopicPublisher(topic, client, topics).save_draft(present_topic(topic, []))

    assert response.success
    assert topics.get_by_id(topic.id).title == "Agile delivery"
    assert [(r.method, r.url.path) for r in seen] == [
        ("PUT", f"/v2/content/{topic.content_id}"),
        ("PATCH", f"/v2/links/{topic.content_id}"),
    ]


def test_save_draft_rolls_back_when_api_rejects(topics):
    client, _ = api(422, {"error": {"code": 422, "message": "Base path is already in use"}})
    topic = make_topic()

    response = TopicPublisher(topic, client, topics).save_draft(present_topic(topic, []))

    assert not response.success
    assert response.error == "Base path is already in use"
    assert topics.get_by_id(topic.id) is None


def test_failed_update_keeps_previous_row(topics):
    topic = topics.save(make_topic())
    client, _ = api(500, {"error": {"message": "Publishing API is down"}})
    changed = topic.model_copy(update={"title": "Renamed"})

    response = TopicPublisher(changed, client, topics).save_draft(present_topic(changed, []))

    assert response.error == "Publishing API is down"
    assert topics.get_by_id(topic.id).title == "Agile delivery"


def test_publish_sends_update_type(topics):
    client, seen = api(200, {})
    topic = make_topic()

    response = TopicPublisher(topic, client, topics).publish()

    assert response.success
    assert json.loads(seen[0].content) == {"update_type": "major"}
    assert topics.get_by_id(topic.id) is not None


def test_duplicate_path_is_reported_not_raised(topics):
    first = topics.save(make_topic())
    client, seen = api(200, {})
    duplicate = make_topic()

    response = TopicPublisher(duplicate, client, topics).save_draft(present_topic(duplicate, []))

    assert [e.code for e in response.errors] == ["path_taken"]
    assert seen == []
    assert topics.get_by_path(first.path).id == first.id
    assert topics.get_by_id(duplicate.id) is None


def test_rejected_topic_is_not_marked_persisted(topics):
    client, _ = api(422, {"error": {"message": "Base path is already in use"}})
    topic = make_topic()

    TopicPublisher(topic, client, topics).save_draft(present_topic(topic, []))

    assert not topic.is_persisted
