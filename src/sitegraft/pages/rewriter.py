"""Link rewriter: maps export references onto the emitted site layout."""

from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, unquote, urlsplit

from bs4 import BeautifulSoup, Tag

from sitegraft.config import ExportConfig
from sitegraft.core.context import BuildContext
from sitegraft.core.identifiers import (
    format_block_fragment,
    identifier_from_href,
    is_external,
    short_name,
)

logger = logging.getLogger(__name__)


@dataclass
class RewriteStats:
    """Counters for one page's rewrite."""

    rewritten: int = 0
    dangling: int = 0
    missing_href: int = 0


def relative_href(target: Path, from_file: Path) -> str:
    """POSIX path of ``target`` relative to the directory of ``from_file``."""
    return Path(os.path.relpath(target, start=from_file.parent)).as_posix()


def link_directory(path: str, source_dir: Path) -> Path:
    """Export directory a relative href path points into."""
    return Path(os.path.normpath(source_dir / posixpath.dirname(unquote(path))))


class LinkRewriter:
    """Rewrites anchors and images of a page against a frozen BuildContext.

    Resolution order for an anchor (first match wins):
        1. identifier reference present in the identifier map
        2. short-name reference present in the name map of the directory the
           href points into
        3. reference into the page's own resource directory
    Anchors without an href are reported and left alone.
    """

    def __init__(self, context: BuildContext, config: ExportConfig) -> None:
        self._context = context
        self._config = config

    def rewrite(self, soup: BeautifulSoup, source_path: Path, output_path: Path) -> RewriteStats:
        """Rewrite all anchors and images of ``soup`` in place."""
        stats = RewriteStats()
        source_name = source_path.stem
        dest_name = output_path.stem

        for anchor in soup.find_all("a"):
            href = anchor.get("href")
            if href is None:
                stats.missing_href += 1
                logger.warning("Anchor without href in %s", source_path)
                continue
            if self._rewrite_anchor(anchor, href, source_path, output_path, stats):
                stats.rewritten += 1

        for img in soup.find_all("img"):
            src = img.get("src")
            if src and not is_external(src):
                replaced = _replace_name(src, source_name, dest_name)
                if replaced != src:
                    img["src"] = replaced

        return stats

    def _rewrite_anchor(
        self,
        anchor: Tag,
        href: str,
        source_path: Path,
        output_path: Path,
        stats: RewriteStats,
    ) -> bool:
        parts = urlsplit(href)

        identifier = identifier_from_href(href, self._config.export_hosts)
        if identifier is not None:
            target = self._context.lookup_identifier(identifier)
            if target is not None:
                new_href = relative_href(target, output_path)
                if parts.fragment:
                    new_href = f"{new_href}#{format_block_fragment(parts.fragment)}"
                anchor["href"] = new_href
                return True
            stats.dangling += 1
            logger.warning("Unresolved page identifier %s in %s (%s)", identifier, source_path, href)

        if is_external(href):
            return False

        if parts.path:
            directory = link_directory(parts.path, source_path.parent)
            target = self._context.lookup_name(directory, short_name(parts.path))
            if target is not None:
                new_href = relative_href(target, output_path)
                if parts.fragment:
                    new_href = f"{new_href}#{parts.fragment}"
                anchor["href"] = new_href
                return True

        replaced = _replace_name(href, source_path.stem, output_path.stem)
        if replaced != href:
            anchor["href"] = replaced
            return True
        return False

    def resolve_href(self, href: str, source_dir: Path) -> Path | None:
        """Absolute output path an href found in ``source_dir`` points at."""
        identifier = identifier_from_href(href, self._config.export_hosts)
        if identifier is not None:
            target = self._context.lookup_identifier(identifier)
            if target is not None:
                return target
        if is_external(href):
            return None
        path = urlsplit(href).path
        if not path:
            return None
        return self._context.lookup_name(link_directory(path, source_dir), short_name(path))


def _replace_name(value: str, source_name: str, dest_name: str) -> str:
    """Replace raw and percent-encoded occurrences of a page's own name."""
    if source_name == dest_name:
        return value
    for form in dict.fromkeys((source_name, quote(source_name))):
        if form in value:
            value = value.replace(form, dest_name)
    return value
