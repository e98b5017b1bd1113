"""
Editions component - Port interfaces.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from service_manual.domain.entities import Comment, Edition


class EditionRepoPort(Protocol):
    """Repository interface for editions and their comments."""

    def get_by_id(self, edition_id: UUID) -> Edition | None:
        """Get an edition, with its comments."""
        ...

    def list_for_guide(self, guide_id: UUID) -> list[Edition]:
        """All editions of a guide, in creation order."""
        ...

    def save(self, edition: Edition) -> Edition:
        """Insert or update an edition."""
        ...

    def add_comment(self, comment: Comment) -> Comment:
        """Attach a comment to an edition."""
        ...


class LinkCheckerPort(Protocol):
    """Finds links in a body that do not resolve."""

    def find_broken_links(self, body: str) -> Sequence[str]:
        ...


class MarkdownRendererPort(Protocol):
    """Renders markdown to sanitized HTML, autolinking bare URLs."""

    def render(self, text: str) -> str:
        ...
