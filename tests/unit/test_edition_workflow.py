"""
Unit tests for EditionWorkflow.

Drives a guide through draft, review, approval, publication and
unpublication against in-memory repositories.
"""

from uuid import uuid4

import pytest

from service_manual.components.editions import (
    AddCommentInput,
    AmendEditionInput,
    ApproveInput,
    EditionStateMachine,
    EditionWorkflow,
    PublishInput,
    RequestReviewInput,
    SaveDraftInput,
    UnpublishInput,
)
from service_manual.components.guides import CreateGuideInput, GuideEditions


@pytest.fixture
def guide(guide_service, author, content_owner):
    result = guide_service.create(
        CreateGuideInput(
            author_id=author.id,
            slug="/service-manual/agile/what-is-agile",
            title="What is agile",
            body="Agile is a way of working.",
            change_note="Guide first published",
            content_owner_id=content_owner.id,
        )
    )
    assert result.success, result.errors
    return result.guide


def history(edition_repo, guide) -> GuideEditions:
    return GuideEditions(edition_repo.list_for_guide(guide.id))


def publish(workflow, guide, author, reviewer):
    assert workflow.run(RequestReviewInput(user=author, guide_id=guide.id)).success
    assert workflow.run(ApproveInput(user=reviewer, guide_id=guide.id)).success
    result = workflow.run(PublishInput(user=reviewer, guide_id=guide.id))
    assert result.success, result.errors
    return result.edition


class TestHappyPath:
    def test_full_publication_appends_one_edition_per_step(
        self, workflow, edition_repo, guide, author, reviewer
    ):
        publish(workflow, guide, author, reviewer)

        editions = history(edition_repo, guide)
        assert [e.state for e in editions.chronological()] == [
            "draft",
            "review_requested",
            "approved",
            "published",
        ]
        assert {e.version for e in editions.chronological()} == {1}
        assert editions.live_edition == editions.latest_edition

    def test_earlier_editions_are_untouched(self, workflow, edition_repo, guide, author):
        first = history(edition_repo, guide).latest_edition

        workflow.run(RequestReviewInput(user=author, guide_id=guide.id))

        assert edition_repo.get_by_id(first.id).state == "draft"

    def test_unpublish(self, workflow, edition_repo, guide, author, reviewer):
        publish(workflow, guide, author, reviewer)

        result = workflow.run(UnpublishInput(user=reviewer, guide_id=guide.id))

        assert result.success
        assert result.edition.state == "unpublished"
        assert history(edition_repo, guide).live_edition is None


class TestClosedActions:
    def test_cannot_approve_own_edition(self, workflow, guide, author):
        workflow.run(RequestReviewInput(user=author, guide_id=guide.id))

        result = workflow.run(ApproveInput(user=author, guide_id=guide.id))

        assert not result.success
        assert result.errors[0].code == "illegal_transition"

    def test_self_approval_when_enabled(self, edition_repo, guide_repo, clock, guide, author):
        workflow = EditionWorkflow(
            edition_repo=edition_repo,
            guide_repo=guide_repo,
            state_machine=EditionStateMachine(allow_self_approval=True),
            clock=clock,
        )
        workflow.run(RequestReviewInput(user=author, guide_id=guide.id))

        assert workflow.run(ApproveInput(user=author, guide_id=guide.id)).success

    def test_cannot_publish_without_approval(self, workflow, guide, reviewer):
        result = workflow.run(PublishInput(user=reviewer, guide_id=guide.id))

        assert not result.success
        assert result.errors[0].code == "illegal_transition"
        assert result.errors[0].field == "state"

    def test_cannot_request_review_twice(self, workflow, guide, author):
        assert workflow.run(RequestReviewInput(user=author, guide_id=guide.id)).success
        assert not workflow.run(RequestReviewInput(user=author, guide_id=guide.id)).success

    def test_cannot_unpublish_a_draft(self, workflow, guide, author):
        result = workflow.run(UnpublishInput(user=author, guide_id=guide.id))
        assert result.errors[0].code == "illegal_transition"

    def test_unknown_guide(self, workflow, author):
        result = workflow.run(RequestReviewInput(user=author, guide_id=uuid4()))
        assert result.errors[0].code == "guide_not_found"

    def test_unknown_input_type(self, workflow):
        with pytest.raises(TypeError):
            workflow.run("publish")


class TestBrokenLinksBlockPublication:
    def test_publish_fails_and_nothing_is_saved(
        self, workflow, edition_repo, link_checker, guide, author, reviewer
    ):
        workflow.run(
            SaveDraftInput(
                user=author,
                guide_id=guide.id,
                changes={
                    "body": "Read [this](http://broken.example).",
                    "change_note": "Added link",
                },
            )
        )
        workflow.run(RequestReviewInput(user=author, guide_id=guide.id))
        workflow.run(ApproveInput(user=reviewer, guide_id=guide.id))
        link_checker.broken = ["http://broken.example"]
        before = len(edition_repo.editions)

        result = workflow.run(PublishInput(user=reviewer, guide_id=guide.id))

        assert not result.success
        assert [e.code for e in result.errors] == ["broken_link"]
        assert len(edition_repo.editions) == before
        assert history(edition_repo, guide).latest_edition.state == "approved"


class TestSaveDraft:
    def test_editing_a_draft_stays_in_the_same_lineage(
        self, workflow, edition_repo, guide, author
    ):
        result = workflow.run(
            SaveDraftInput(user=author, guide_id=guide.id, changes={"title": "Agile explained"})
        )

        assert result.success
        assert result.edition.version == 1
        assert result.edition.title == "Agile explained"
        assert history(edition_repo, guide).latest_edition.title == "Agile explained"

    def test_editing_a_published_guide_starts_a_new_version(
        self, workflow, edition_repo, clock, guide, author, reviewer
    ):
        published = publish(workflow, guide, author, reviewer)

        result = workflow.run(
            SaveDraftInput(
                user=author,
                guide_id=guide.id,
                changes={"body": "Updated", "change_note": "Clarified wording"},
            )
        )

        assert result.success, result.errors
        assert result.edition.version == 2
        assert result.edition.state == "draft"
        assert result.edition.created_at == clock.current
        editions = history(edition_repo, guide)
        assert editions.latest_edition.id == result.edition.id
        assert editions.live_edition.id == published.id

    def test_new_version_needs_its_own_change_note(
        self, workflow, guide, author, reviewer
    ):
        publish(workflow, guide, author, reviewer)

        result = workflow.run(SaveDraftInput(user=author, guide_id=guide.id, changes={"body": "x"}))

        assert not result.success
        assert [e.code for e in result.errors] == ["change_note_required"]

    def test_unknown_fields_are_ignored(self, workflow, guide, author):
        result = workflow.run(
            SaveDraftInput(user=author, guide_id=guide.id, changes={"state": "published"})
        )

        assert result.success
        assert result.edition.state == "draft"

    def test_content_owner_cannot_be_removed(self, workflow, guide, author):
        result = workflow.run(
            SaveDraftInput(user=author, guide_id=guide.id, changes={"content_owner_id": None})
        )

        assert [e.code for e in result.errors] == ["content_owner_required"]


class TestAmend:
    def test_draft_can_be_amended_in_place(self, workflow, edition_repo, guide, author):
        draft = history(edition_repo, guide).latest_edition

        result = workflow.run(
            AmendEditionInput(user=author, edition_id=draft.id, changes={"title": "Typo fixed"})
        )

        assert result.success
        assert edition_repo.get_by_id(draft.id).title == "Typo fixed"

    def test_published_edition_refuses_changes(
        self, workflow, edition_repo, guide, author, reviewer
    ):
        published = publish(workflow, guide, author, reviewer)

        result = workflow.run(
            AmendEditionInput(user=author, edition_id=published.id, changes={"body": "Sneaky"})
        )

        assert [e.code for e in result.errors] == ["immutable_after_publish"]
        assert edition_repo.get_by_id(published.id).body == "Agile is a way of working."


class TestComments:
    def test_add_comment(self, workflow, edition_repo, guide, reviewer):
        draft = history(edition_repo, guide).latest_edition

        result = workflow.add_comment(
            AddCommentInput(user=reviewer, edition_id=draft.id, comment="Looks good")
        )

        assert result.success
        assert [c.comment for c in edition_repo.get_by_id(draft.id).comments] == ["Looks good"]

    def test_blank_comment(self, workflow, edition_repo, guide, reviewer):
        draft = history(edition_repo, guide).latest_edition

        result = workflow.add_comment(AddCommentInput(user=reviewer, edition_id=draft.id, comment=" "))

        assert result.errors[0].code == "comment_required"

    def test_unknown_edition(self, workflow, reviewer):
        result = workflow.add_comment(AddCommentInput(user=reviewer, edition_id=uuid4(), comment="Hi"))
        assert result.errors[0].code == "edition_not_found"
