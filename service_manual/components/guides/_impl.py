"""
Guide edition resolution, validation and listing filters.

A guide is the history of its editions. Editions sharing a ``version``
form a lineage; "latest" and "live" are always computed from the full
edition set, never stored.

Ordering is by ``created_at``; editions created at the same instant keep
the order they were given in (the store returns them in row order).

Functional Core - pure business logic.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from service_manual.domain.entities import Edition, Guide, TopicSection

from .models import GuideValidationError

DEFAULT_SLUG_PREFIX = "/service-manual"

_SLUG_CHARACTERS = re.compile(r"[A-Za-z0-9/-]*")


class GuideEditions:
    """
    Latest/live edition resolver over one guide's editions.

    Args:
        editions: Every edition of the guide, in store order
        topic_section: The guide's topic section, if any
    """

    def __init__(
        self,
        editions: Iterable[Edition],
        topic_section: TopicSection | None = None,
    ) -> None:
        self._editions = list(editions)
        self._topic_section = topic_section

    def __len__(self) -> int:
        return len(self._editions)

    def chronological(self) -> list[Edition]:
        """Oldest first. ``sorted`` is stable, so ties stay in store order."""
        return sorted(self._editions, key=lambda e: e.created_at)

    def lineage(self, version: int) -> list[Edition]:
        return [e for e in self.chronological() if e.version == version]

    def latest_edition_per_lineage(self) -> list[Edition]:
        """
        One edition per lineage: its most recent.

        Lineages are ordered by that edition, most recently touched first.
        """
        ordered = self.chronological()
        latest: dict[int, int] = {}
        for index, edition in enumerate(ordered):
            latest[edition.version] = index
        return [ordered[index] for index in sorted(latest.values(), reverse=True)]

    @property
    def latest_edition(self) -> Edition | None:
        """Most recent edition of the current lineage."""
        ordered = self.chronological()
        if not ordered:
            return None
        current = self.lineage(ordered[-1].version)
        return current[-1]

    @property
    def live_edition(self) -> Edition | None:
        """
        The edition visible to the public.

        The most recent published or unpublished edition decides: if it was
        an unpublish, nothing is live.
        """
        for edition in reversed(self.chronological()):
            if edition.state == "published":
                return edition
            if edition.state == "unpublished":
                return None
        return None

    @property
    def has_been_published(self) -> bool:
        return any(e.state == "published" for e in self._editions)

    @property
    def included_in_a_topic(self) -> bool:
        return self._topic_section is not None and self._topic_section.topic_id is not None

    def editions_since_last_published(self) -> list[Edition]:
        ordered = self.chronological()
        published = [i for i, e in enumerate(ordered) if e.state == "published"]
        if not published:
            return []
        return ordered[published[-1] + 1 :]

    def previously_published_edition(self, edition: Edition) -> Edition | None:
        """Latest published edition created before ``edition``."""
        previous: Edition | None = None
        for candidate in self.chronological():
            if candidate.id == edition.id:
                break
            if candidate.created_at > edition.created_at:
                break
            if candidate.state == "published":
                previous = candidate
        return previous

    def notification_subscribers(self, edition: Edition) -> list[UUID]:
        """Authors of ``edition`` and of the latest edition, once each."""
        subscribers: list[UUID] = []
        latest = self.latest_edition
        for author_id in (edition.author_id, latest.author_id if latest else None):
            if author_id is not None and author_id not in subscribers:
                subscribers.append(author_id)
        return subscribers


# --- Validation Functions ---


def validate_slug(slug: str, prefix: str = DEFAULT_SLUG_PREFIX) -> list[GuideValidationError]:
    errors: list[GuideValidationError] = []

    if not _SLUG_CHARACTERS.fullmatch(slug or ""):
        errors.append(
            GuideValidationError(
                code="slug_invalid_characters",
                message="Slug can only contain letters, numbers and dashes",
                field="slug",
            )
        )

    pattern = re.escape(prefix) + r"/[A-Za-z0-9-]+/[A-Za-z0-9-]+"
    if not re.fullmatch(pattern, slug or ""):
        errors.append(
            GuideValidationError(
                code="slug_format",
                message=f"Slug must be present and start with '{prefix}/[topic]'",
                field="slug",
            )
        )

    return errors


def validate_latest_edition_owner(
    guide: Guide, latest_edition: Edition | None
) -> list[GuideValidationError]:
    """Plain guides need a content owner on their latest edition."""
    if guide.kind != "guide" or latest_edition is None:
        return []
    if latest_edition.content_owner_id is not None:
        return []
    return [
        GuideValidationError(
            code="content_owner_required",
            message="Latest edition must have a content owner",
            field="latest_edition",
        )
    ]


def validate_guide(
    guide: Guide,
    editions: GuideEditions,
    stored: Guide | None = None,
    topic_section: TopicSection | None = None,
    previous_topic_section: TopicSection | None = None,
    slug_prefix: str = DEFAULT_SLUG_PREFIX,
) -> list[GuideValidationError]:
    """
    Validate a guide about to be saved.

    Args:
        guide: Guide with pending changes
        editions: The guide's editions
        stored: The guide as currently persisted, if any
        topic_section: Section the guide is being filed under
        previous_topic_section: Section it is currently filed under
        slug_prefix: Required slug prefix

    Returns:
        List of validation errors (empty if valid)
    """
    errors = validate_slug(guide.slug, slug_prefix)
    errors.extend(validate_latest_edition_owner(guide, editions.latest_edition))

    if stored is None or not editions.has_been_published:
        return errors

    if stored.slug != guide.slug:
        errors.append(
            GuideValidationError(
                code="slug_immutable",
                message="Slug can't be changed as this guide has been published",
                field="slug",
            )
        )

    if stored.topic_section_id != guide.topic_section_id:
        old_topic = previous_topic_section.topic_id if previous_topic_section else None
        new_topic = topic_section.topic_id if topic_section else None
        if old_topic != new_topic:
            errors.append(
                GuideValidationError(
                    code="topic_section_immutable",
                    message=(
                        "Topic section can't be changed to a different topic "
                        "as this guide has been published"
                    ),
                    field="topic_section",
                )
            )

    return errors


def validate_slug_available(guide: Guide, holder: Guide | None) -> list[GuideValidationError]:
    """``holder`` is whichever guide currently has ``guide.slug``, if any."""
    if holder is None or holder.id == guide.id:
        return []
    return [
        GuideValidationError(
            code="slug_taken",
            message="Slug has already been taken",
            field="slug",
        )
    ]


# --- Listing Filters ---


@dataclass(frozen=True)
class GuideEntry:
    """A guide with its resolved editions, as used by listings."""

    guide: Guide
    editions: GuideEditions

    @property
    def latest_edition(self) -> Edition | None:
        return self.editions.latest_edition


def search(entries: Iterable[GuideEntry], query: str) -> list[GuideEntry]:
    """Case-insensitive match on the latest edition's title or on the slug."""
    needle = query.strip().lower()
    results = []
    for entry in entries:
        latest = entry.latest_edition
        title = latest.title.lower() if latest else ""
        if needle in title or needle in entry.guide.slug.lower():
            results.append(entry)
    return results


def in_state(entries: Iterable[GuideEntry], state: str) -> list[GuideEntry]:
    return [e for e in entries if e.latest_edition is not None and e.latest_edition.state == state]


def by_author(entries: Iterable[GuideEntry], author_id: UUID) -> list[GuideEntry]:
    return [
        e for e in entries if e.latest_edition is not None and e.latest_edition.author_id == author_id
    ]


def owned_by(entries: Iterable[GuideEntry], content_owner_id: UUID) -> list[GuideEntry]:
    return [
        e
        for e in entries
        if e.latest_edition is not None and e.latest_edition.content_owner_id == content_owner_id
    ]


def by_type(entries: Iterable[GuideEntry], kind: str | None) -> list[GuideEntry]:
    """Filter on guide kind. No kind means plain guides."""
    wanted = kind or "guide"
    return [e for e in entries if e.guide.kind == wanted]


def live(entries: Iterable[GuideEntry]) -> list[GuideEntry]:
    return [e for e in entries if e.editions.live_edition is not None]


def not_unpublished(entries: Iterable[GuideEntry]) -> list[GuideEntry]:
    return [
        e for e in entries if e.latest_edition is None or e.latest_edition.state != "unpublished"
    ]
