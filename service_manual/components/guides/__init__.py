"""
Guides component - Latest/live edition resolution, guide validation and listings.
"""

from ._impl import (
    GuideEditions,
    GuideEntry,
    by_author,
    by_type,
    in_state,
    live,
    not_unpublished,
    owned_by,
    search,
    validate_guide,
    validate_latest_edition_owner,
    validate_slug,
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
from .component import GuideService  # noqa: I001

__all__ = [
    # Resolver
    "GuideEditions",
    "GuideEntry",
    # Validation
    "validate_guide",
    "validate_latest_edition_owner",
    "validate_slug",
    "validate_slug_available",
    # Filters
    "by_author",
    "by_type",
    "in_state",
    "live",
    "not_unpublished",
    "owned_by",
    "search",
    # Service
    "GuideService",
    # Models
    "CreateGuideInput",
    "GuideOperationOutput",
    "GuideValidationError",
    "ListGuidesInput",
    "UpdateGuideInput",
    # Ports
    "GuideRepoPort",
    "TopicSectionRepoPort",
]
