"""
Publishing API client.

Synchronous httpx client for the three calls the publisher makes:

- PUT   /v2/content/{content_id}          save a draft
- PATCH /v2/links/{content_id}            replace the links of a draft
- POST  /v2/content/{content_id}/publish  publish the current draft

Any non-2xx response or transport failure is raised as PublishingApiError,
carrying the API's own ``error.message`` when the body has one.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx

from service_manual.components.topics.ports import PublishingApiError
from service_manual.rules.models import PublishingApiRules

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])

    return f"Publishing API returned {response.status_code}"


class PublishingApiClient:
    def __init__(
        self,
        base_url: str,
        bearer_token: str | None = None,
        timeout: float = 10.0,
        authenticated_user: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if bearer_token:
            headers["Authorization"] = f"Bearer {bearer_token}"
        if authenticated_user:
            headers["X-Govuk-Authenticated-User"] = authenticated_user

        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_rules(
        cls,
        rules: PublishingApiRules,
        authenticated_user: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> PublishingApiClient:
        """Client configured from the rules file; the token is read from the environment."""
        return cls(
            base_url=rules.base_url,
            bearer_token=os.environ.get(rules.bearer_token_env),
            timeout=rules.timeout_seconds,
            authenticated_user=authenticated_user,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def put_content(self, content_id: str, payload: dict[str, Any]) -> None:
        self._request("PUT", f"/v2/content/{content_id}", payload)

    def patch_links(self, content_id: str, payload: dict[str, Any]) -> None:
        self._request("PATCH", f"/v2/links/{content_id}", payload)

    def publish(self, content_id: str, update_type: str) -> None:
        self._request("POST", f"/v2/content/{content_id}/publish", {"update_type": update_type})

    def _request(self, method: str, path: str, payload: dict[str, Any]) -> httpx.Response:
        try:
            response = self._client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            logger.error("Publishing API %s %s failed: %s", method, path, e)
            raise PublishingApiError(f"Could not reach the publishing API: {e}") from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "Publishing API %s %s returned %s: %s",
                method,
                path,
                response.status_code,
                message,
            )
            raise PublishingApiError(message, status_code=response.status_code)

        logger.debug("Publishing API %s %s -> %s", method, path, response.status_code)
        return response
