"""Category list extraction from an ``<h2>``-sectioned page."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from bs4 import BeautifulSoup, Tag

from sitegraft.core.models import CategoryLink

logger = logging.getLogger(__name__)


def extract_categories(
    markup: str,
    resolve: Callable[[str], Path | None],
    output_root: Path,
) -> list[CategoryLink]:
    """Flatten ``<h2>`` categories and the links listed beneath each.

    Links are resolved through ``resolve``; resolved targets are reported
    relative to ``output_root``, anything else keeps its original href.
    """
    soup = BeautifulSoup(markup, "html.parser")
    links: list[CategoryLink] = []

    for heading in soup.find_all("h2"):
        category = heading.get_text(strip=True)
        for sibling in heading.find_next_siblings():
            if sibling.name == "h2":
                break
            if not isinstance(sibling, Tag):
                continue
            anchors = [sibling] if sibling.name == "a" else sibling.find_all("a")
            for anchor in anchors:
                href = anchor.get("href")
                if not href:
                    continue
                target = resolve(href)
                link = target.relative_to(output_root).as_posix() if target is not None else href
                links.append(
                    CategoryLink(category=category, title=anchor.get_text(strip=True), link=link)
                )

    logger.debug("Extracted %d category links", len(links))
    return links
