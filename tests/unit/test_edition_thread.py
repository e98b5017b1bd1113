"""
Unit tests for EditionThread.
"""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from service_manual.components.thread import (
    AssignedToEvent,
    CommentEvent,
    EditionThread,
    NewDraftEvent,
    StateChangeEvent,
    UnhandledStateLabel,
)
from service_manual.domain.entities import Comment, Edition
from tests.conftest import MockEditionRepo

T0 = datetime(2025, 2, 1, 10, 0, tzinfo=UTC)


@pytest.fixture
def repo():
    return MockEditionRepo()


def add(repo, guide_id, state, minutes, version=1, comments=()):
    edition = Edition(
        guide_id=guide_id,
        version=version,
        state=state,
        title="Guide",
        created_at=T0 + timedelta(minutes=minutes),
    )
    repo.save(edition)
    for text in comments:
        repo.add_comment(Comment(edition_id=edition.id, user_id=uuid4(), comment=text))
    return repo.get_by_id(edition.id)


def kinds(events):
    return [type(e).__name__ for e in events]


class TestEvents:
    def test_single_draft(self, repo):
        guide_id = uuid4()
        draft = add(repo, guide_id, "draft", 0)

        events = EditionThread(draft, repo).events()

        assert kinds(events) == ["NewDraftEvent", "AssignedToEvent"]
        assert events[0].edition.id == draft.id

    def test_state_changes_and_comments_in_order(self, repo):
        guide_id = uuid4()
        add(repo, guide_id, "draft", 0, comments=["First thoughts"])
        add(repo, guide_id, "draft", 1, comments=["Fixed typo"])
        latest = add(repo, guide_id, "review_requested", 2, comments=["Please check"])

        events = EditionThread(latest, repo).events()

        assert kinds(events) == [
            "NewDraftEvent",
            "AssignedToEvent",
            "CommentEvent",
            "CommentEvent",
            "StateChangeEvent",
            "CommentEvent",
        ]
        assert [e.comment.comment for e in events if isinstance(e, CommentEvent)] == [
            "First thoughts",
            "Fixed typo",
            "Please check",
        ]
        state_change = next(e for e in events if isinstance(e, StateChangeEvent))
        assert state_change.action == "Review requested"

    def test_consecutive_states_are_compared_pairwise(self, repo):
        guide_id = uuid4()
        add(repo, guide_id, "draft", 0)
        add(repo, guide_id, "review_requested", 1)
        add(repo, guide_id, "review_requested", 2)
        latest = add(repo, guide_id, "approved", 3)

        events = EditionThread(latest, repo).events()

        changes = [e.edition.state for e in events if isinstance(e, StateChangeEvent)]
        assert changes == ["review_requested", "approved"]

    def test_other_lineages_are_excluded(self, repo):
        guide_id = uuid4()
        add(repo, guide_id, "published", 0, version=1, comments=["Old"])
        add(repo, guide_id, "draft", 5, version=2)
        latest = add(repo, guide_id, "draft", 6, version=2, comments=["New"])
        add(repo, uuid4(), "draft", 7, version=2, comments=["Other guide"])

        events = EditionThread(latest, repo).events()

        assert [e.comment.comment for e in events if isinstance(e, CommentEvent)] == ["New"]
        assert isinstance(events[0], NewDraftEvent)
        assert isinstance(events[1], AssignedToEvent)
        assert events[0].edition.version == 2

    def test_edition_without_guide_is_its_own_thread(self, repo):
        loose = Edition(title="Loose", state="draft")

        events = EditionThread(loose, repo).events()

        assert kinds(events) == ["NewDraftEvent", "AssignedToEvent"]


class TestStateChangeLabel:
    def test_only_review_requested_has_a_label(self):
        assert StateChangeEvent(Edition(state="review_requested")).action == "Review requested"

    @pytest.mark.parametrize("state", ["approved", "published", "unpublished", "draft"])
    def test_unlabelled_state_raises(self, state):
        event = StateChangeEvent(Edition(state=state))

        with pytest.raises(UnhandledStateLabel) as excinfo:
            event.action

        assert excinfo.value.state == state
        assert isinstance(excinfo.value, NotImplementedError)

    def test_events_are_built_without_reading_labels(self, repo):
        guide_id = uuid4()
        add(repo, guide_id, "review_requested", 0)
        latest = add(repo, guide_id, "approved", 1)

        events = EditionThread(latest, repo).events()

        assert kinds(events)[-1] == "StateChangeEvent"
