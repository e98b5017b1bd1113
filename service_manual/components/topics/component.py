"""
Topics component - Topic publish coordinator.

Saves a topic locally and pushes it to the publishing API as one unit:

- save_draft: save row → put_content → patch_links
- publish:    save row → publish

The external calls run inside the local transaction. A publishing API
failure rolls the row back and is returned as a failed PublishResponse;
a topic that fails validation is never sent.

Shell Layer - handles I/O and error conversion.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from service_manual.domain.entities import ContentForPublication, Topic

from ._impl import DEFAULT_PATH_PREFIX, validate_path_available, validate_topic
from .models import PublishResponse
from .ports import PublishingApiError, PublishingApiPort, TopicStorePort

logger = logging.getLogger(__name__)


class TopicPublisher:
    def __init__(
        self,
        topic: Topic,
        publishing_api: PublishingApiPort,
        store: TopicStorePort,
        path_prefix: str = DEFAULT_PATH_PREFIX,
    ) -> None:
        self.topic = topic
        self.publishing_api = publishing_api
        self._store = store
        self._path_prefix = path_prefix

    def save_draft(self, content_for_publication: ContentForPublication) -> PublishResponse:
        def push() -> None:
            self.publishing_api.put_content(
                content_for_publication.content_id,
                content_for_publication.content_payload,
            )
            self.publishing_api.patch_links(
                content_for_publication.content_id,
                content_for_publication.links_payload,
            )

        return self._save_catching_api_errors(push)

    def publish(self) -> PublishResponse:
        def push() -> None:
            self.publishing_api.publish(self.topic.content_id, self.topic.update_type)

        return self._save_catching_api_errors(push)

    def _save_catching_api_errors(self, push: Callable[[], None]) -> PublishResponse:
        try:
            with self._store.transaction():
                errors = validate_topic(self.topic, self._path_prefix)
                if not errors:
                    holder = self._store.get_by_path(self.topic.path)
                    errors = validate_path_available(self.topic, holder)
                if errors:
                    return PublishResponse(success=False, errors=errors)

                self._store.save(self.topic)
                push()
        except PublishingApiError as e:
            logger.warning(
                "Publishing API rejected topic %s (%s): %s",
                self.topic.content_id,
                e.status_code,
                e.message,
            )
            return PublishResponse(success=False, error=e.message)

        logger.info("Topic %s sent to the publishing API", self.topic.content_id)
        return PublishResponse(success=True)
