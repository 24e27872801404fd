"""Embed resolver: turns widget placeholder links back into live iframes.

Candidates of a page are sent as one concurrent batch per round. Failed
candidates (transport errors, bodies that are not JSON, documents without an
``html`` field) are resubmitted as the next batch until the retry budget is
spent; successes are never retried. Whatever still fails keeps its original
element, and the page carries on.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from bs4 import BeautifulSoup, Tag

from sitegraft.config import EmbedConfig
from sitegraft.core.errors import EmbedError
from sitegraft.core.interfaces import EmbedClientPort

logger = logging.getLogger(__name__)


@dataclass
class EmbedStats:
    """Counters for one page's embed resolution."""

    candidates: int = 0
    resolved: int = 0
    failed: int = 0
    requests: int = 0
    rounds: int = 0


def find_candidates(soup: BeautifulSoup, marker: str, template_marker: str) -> list[Tag]:
    """Anchors whose text names a widget and is not a template."""
    candidates = []
    for anchor in soup.find_all("a"):
        text = anchor.get_text().lower()
        if marker in text and template_marker not in text:
            candidates.append(anchor)
    return candidates


def add_frame_params(fragment_html: str, params: dict[str, str]) -> str:
    """Append query parameters to the first iframe's src in a fragment."""
    fragment = BeautifulSoup(fragment_html, "html.parser")
    frame = fragment.find("iframe")
    if frame is None or not frame.get("src"):
        return fragment_html

    parts = urlsplit(frame["src"])
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend(params.items())
    frame["src"] = urlunsplit(parts._replace(query=urlencode(query)))
    return str(fragment)


class EmbedResolver:
    """Resolves widget placeholders through an EmbedClientPort."""

    def __init__(self, client: EmbedClientPort, config: EmbedConfig) -> None:
        self._client = client
        self._config = config

    def _frame_params(self) -> dict[str, str]:
        params = {"editable": "true"}
        if self._config.theme:
            params["theme-id"] = self._config.theme
        return params

    async def resolve(self, soup: BeautifulSoup, page: str = "") -> EmbedStats:
        """Resolve all widget placeholders in ``soup`` in place."""
        stats = EmbedStats()
        pending = find_candidates(soup, self._config.marker, self._config.template_marker)
        stats.candidates = len(pending)

        for round_no in range(self._config.max_retries + 1):
            if not pending:
                break
            if round_no:
                logger.info(
                    "Retrying %d embed(s) in %s (round %d/%d)",
                    len(pending),
                    page,
                    round_no,
                    self._config.max_retries,
                )
                if self._config.retry_delay:
                    await asyncio.sleep(self._config.retry_delay)

            stats.rounds += 1
            stats.requests += len(pending)
            outcomes = await asyncio.gather(*(self._resolve_one(el) for el in pending))
            pending = [el for el, ok in zip(pending, outcomes) if not ok]

        stats.failed = len(pending)
        stats.resolved = stats.candidates - stats.failed
        if pending:
            logger.warning(
                "Left %d embed(s) unresolved in %s after %d round(s)",
                len(pending),
                page,
                stats.rounds,
            )
        return stats

    async def _resolve_one(self, element: Tag) -> bool:
        target = element.get_text().strip()
        try:
            body = await self._client.fetch(target, self._config.height)
        except EmbedError as e:
            logger.debug("Embed request failed for %s: %s", target, e)
            return False

        try:
            document = json.loads(body)
        except (TypeError, ValueError):
            logger.debug("Embed response for %s is not JSON", target)
            return False

        html = document.get("html") if isinstance(document, dict) else None
        if not isinstance(html, str) or not html.strip():
            logger.debug("Embed response for %s has no html field", target)
            return False

        fragment = BeautifulSoup(add_frame_params(html, self._frame_params()), "html.parser")
        element.replace_with(*list(fragment.contents))
        return True
