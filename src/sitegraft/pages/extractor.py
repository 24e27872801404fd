"""Identifier extractor: reads link markers and title from one page."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from sitegraft.core.identifiers import identifier_from_name, normalize_identifier, short_name
from sitegraft.core.models import PageScan

logger = logging.getLogger(__name__)

PARSER = "html.parser"


def scan_page(markup: str, marker_class: str = "link-to-page", id_attribute: str = "id") -> PageScan:
    """Scan a page for internal link markers.

    Markers are visited in document order. A marker's position is recorded
    against the short name of its anchor's href and, when the marker carries
    one, against its identifier. If the same target appears twice, its first
    position wins.
    """
    soup = BeautifulSoup(markup, PARSER)
    return scan_soup(soup, marker_class, id_attribute)


def scan_soup(soup: BeautifulSoup, marker_class: str, id_attribute: str) -> PageScan:
    positions: dict[str, int] = {}
    identifiers: dict[str, str] = {}
    identifier_positions: dict[str, int] = {}

    markers = soup.find_all(class_=marker_class)
    for position, marker in enumerate(markers):
        anchor = marker if marker.name == "a" else marker.find("a")
        href = anchor.get("href") if anchor is not None else None
        if not href:
            logger.debug("Link marker at position %d has no anchor href", position)
            continue

        name = short_name(href)
        positions.setdefault(name, position)

        raw_id = marker.get(id_attribute)
        if raw_id:
            identifier = normalize_identifier(raw_id)
            identifiers.setdefault(name, identifier)
            identifier_positions.setdefault(identifier, position)
        href_id = identifier_from_name(href)
        if href_id:
            identifier_positions.setdefault(href_id, position)

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag is not None else None

    return PageScan(
        title=title or None,
        positions=positions,
        identifiers=identifiers,
        identifier_positions=identifier_positions,
        has_links=bool(markers),
    )
