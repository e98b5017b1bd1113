"""
Topics component - Topic validation, payloads and the publish coordinator.
"""

from ._impl import present_topic, validate_path_available, validate_topic
from .component import TopicPublisher
from .models import PublishResponse, SectionWithGuides, TopicValidationError
from .ports import PublishingApiError, PublishingApiPort, TopicStorePort

__all__ = [
    "TopicPublisher",
    "present_topic",
    "validate_topic",
    "validate_path_available",
    "PublishResponse",
    "SectionWithGuides",
    "TopicValidationError",
    "PublishingApiError",
    "PublishingApiPort",
    "TopicStorePort",
]
