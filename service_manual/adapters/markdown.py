"""
Markdown rendering for change notes.

Raw HTML in the source is escaped, and bare URLs become links.
"""

from __future__ import annotations

import mistune


class MistuneMarkdownRenderer:
    def __init__(self) -> None:
        self._markdown = mistune.create_markdown(escape=True, plugins=["url"])

    def render(self, text: str) -> str:
        if not text:
            return ""
        html = self._markdown(text)
        return str(html)
