"""
Guides component - Guide lifecycle and listings.

Creates guides with their first draft, changes slug and topic section
under the published-guide restrictions, destroys guides, and lists them
through the pure filters in ``_impl``.

Shell Layer - handles I/O and error conversion.
"""

from __future__ import annotations

import logging
from uuid import UUID, uuid4

from service_manual.components.editions._impl import EditionStateMachine
from service_manual.components.editions.ports import EditionRepoPort
from service_manual.domain.entities import Edition, Guide, Topic, TopicSection
from service_manual.ports.clock import ClockPort

from . import _impl
from ._impl import (
    DEFAULT_SLUG_PREFIX,
    GuideEditions,
    GuideEntry,
    validate_guide,
    validate_slug_available,
)
from .models import (
    CreateGuideInput,
    GuideOperationOutput,
    GuideValidationError,
    ListGuidesInput,
    UpdateGuideInput,
)
from .ports import GuideRepoPort, TopicSectionRepoPort

logger = logging.getLogger(__name__)


class GuideService:
    """
    Guide service.

    Owns guide rows; editions are appended through EditionWorkflow.
    """

    def __init__(
        self,
        guide_repo: GuideRepoPort,
        edition_repo: EditionRepoPort,
        section_repo: TopicSectionRepoPort,
        state_machine: EditionStateMachine,
        clock: ClockPort,
        slug_prefix: str = DEFAULT_SLUG_PREFIX,
    ) -> None:
        self._guide_repo = guide_repo
        self._edition_repo = edition_repo
        self._section_repo = section_repo
        self._state_machine = state_machine
        self._clock = clock
        self._slug_prefix = slug_prefix

    def get(self, guide_id: UUID) -> Guide | None:
        return self._guide_repo.get_by_id(guide_id)

    def editions(self, guide: Guide) -> GuideEditions:
        """Resolver over the guide's editions, as currently stored."""
        return GuideEditions(
            self._edition_repo.list_for_guide(guide.id),
            topic_section=self._section(guide.topic_section_id),
        )

    def topic(self, guide: Guide) -> Topic | None:
        section = self._section(guide.topic_section_id)
        if section is None or section.topic_id is None:
            return None
        return self._section_repo.get_topic(section.topic_id)

    def create(self, inp: CreateGuideInput) -> GuideOperationOutput:
        """Create a guide and its first draft edition."""
        now = self._clock.now()
        guide = Guide(
            slug=inp.slug,
            kind=inp.kind,
            content_id=str(uuid4()),
            topic_section_id=inp.topic_section_id,
            created_at=now,
            updated_at=now,
        )
        edition = Edition(
            guide_id=guide.id,
            version=1,
            state="draft",
            title=inp.title,
            description=inp.description,
            body=inp.body,
            change_note=inp.change_note,
            update_type=inp.update_type,
            author_id=inp.author_id,
            content_owner_id=inp.content_owner_id,
            created_at=now,
            updated_at=now,
        )

        errors = validate_guide(
            guide,
            GuideEditions([edition]),
            topic_section=self._section(guide.topic_section_id),
            slug_prefix=self._slug_prefix,
        )
        errors.extend(validate_slug_available(guide, self._guide_repo.get_by_slug(guide.slug)))
        errors.extend(
            GuideValidationError(code=e.code, message=e.message, field=e.field)
            for e in self._state_machine.validate(edition)
        )
        if errors:
            return GuideOperationOutput(guide=guide, edition=edition, errors=errors, success=False)

        saved = self._guide_repo.save(guide)
        saved_edition = self._edition_repo.save(edition)
        logger.info("Guide %s created at %s", saved.id, saved.slug)
        return GuideOperationOutput(guide=saved, edition=saved_edition, errors=[], success=True)

    def update(self, inp: UpdateGuideInput) -> GuideOperationOutput:
        """Change a guide's slug and/or topic section."""
        stored = self._guide_repo.get_by_id(inp.guide_id)
        if stored is None:
            return GuideOperationOutput(
                guide=None,
                edition=None,
                errors=[GuideValidationError(code="not_found", message="Guide not found")],
                success=False,
            )

        updates: dict[str, object] = {"updated_at": self._clock.now()}
        if inp.slug is not None:
            updates["slug"] = inp.slug
        if inp.topic_section_id is not None:
            updates["topic_section_id"] = inp.topic_section_id
        guide = stored.model_copy(update=updates)

        editions = self.editions(stored)
        errors = validate_guide(
            guide,
            editions,
            stored=stored,
            topic_section=self._section(guide.topic_section_id),
            previous_topic_section=self._section(stored.topic_section_id),
            slug_prefix=self._slug_prefix,
        )
        errors.extend(validate_slug_available(guide, self._guide_repo.get_by_slug(guide.slug)))
        if errors:
            return GuideOperationOutput(
                guide=guide, edition=editions.latest_edition, errors=errors, success=False
            )

        saved = self._guide_repo.save(guide)
        return GuideOperationOutput(
            guide=saved, edition=editions.latest_edition, errors=[], success=True
        )

    def destroy(self, guide_id: UUID) -> bool:
        """
        Delete a guide with its editions.

        Returns True if deleted, False if not found.
        """
        if self._guide_repo.get_by_id(guide_id) is None:
            return False
        self._guide_repo.delete(guide_id)
        logger.info("Guide %s destroyed", guide_id)
        return True

    def list(self, inp: ListGuidesInput | None = None) -> list[GuideEntry]:
        """List guides with their resolved editions, narrowed by the given filters."""
        inp = inp or ListGuidesInput()
        entries = [GuideEntry(guide, self.editions(guide)) for guide in self._guide_repo.list_all()]

        if inp.kind is not None:
            entries = _impl.by_type(entries, inp.kind)
        if inp.query:
            entries = _impl.search(entries, inp.query)
        if inp.state:
            entries = _impl.in_state(entries, inp.state)
        if inp.author_id is not None:
            entries = _impl.by_author(entries, inp.author_id)
        if inp.content_owner_id is not None:
            entries = _impl.owned_by(entries, inp.content_owner_id)
        if inp.live_only:
            entries = _impl.live(entries)
        if inp.hide_unpublished:
            entries = _impl.not_unpublished(entries)
        return entries

    def _section(self, section_id: UUID | None) -> TopicSection | None:
        if section_id is None:
            return None
        return self._section_repo.get_section(section_id)
