"""
Link checker for edition bodies.

Pulls absolute URLs out of a markdown body (inline links and bare URLs) and
asks each one for its headers. A URL is broken when it answers with a status
of 400 or above or cannot be reached at all. Relative links are not checked.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

import httpx

from service_manual.rules.models import LinkCheckingRules

logger = logging.getLogger(__name__)

_URL_RE = re.compile(r"""(?P<url>[a-zA-Z][a-zA-Z0-9+.-]*://[^\s<>()"'\]]+)""")
_TRAILING_PUNCTUATION = ".,;:!?"


def extract_urls(body: str, protocols: Iterable[str] = ("http", "https")) -> list[str]:
    """Absolute URLs in ``body`` using one of ``protocols``, first occurrence order."""
    allowed = {p.lower() for p in protocols}
    seen: list[str] = []
    for match in _URL_RE.finditer(body or ""):
        url = match.group("url").rstrip(_TRAILING_PUNCTUATION)
        scheme = url.split("://", 1)[0].lower()
        if scheme in allowed and url not in seen:
            seen.append(url)
    return seen


class HttpLinkChecker:
    def __init__(
        self,
        timeout: float = 5.0,
        protocols: Iterable[str] = ("http", "https"),
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._protocols = tuple(protocols)
        self._client = httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_rules(
        cls, rules: LinkCheckingRules, transport: httpx.BaseTransport | None = None
    ) -> HttpLinkChecker:
        return cls(
            timeout=rules.timeout_seconds,
            protocols=rules.allowed_protocols,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def find_broken_links(self, body: str) -> list[str]:
        broken = [url for url in extract_urls(body, self._protocols) if not self._resolves(url)]
        if broken:
            logger.info("Found %d broken link(s)", len(broken))
        return broken

    def _resolves(self, url: str) -> bool:
        try:
            response = self._client.head(url)
            # Some servers refuse HEAD outright.
            if response.status_code == 405:
                response = self._client.get(url)
        except httpx.HTTPError as e:
            logger.debug("Link %s unreachable: %s", url, e)
            return False

        logger.debug("Link %s -> %s", url, response.status_code)
        return response.status_code < 400


class NullLinkChecker:
    """Reports every link as fine. Used when link checking is switched off."""

    def find_broken_links(self, body: str) -> list[str]:
        return []
