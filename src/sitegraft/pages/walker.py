"""Tree walker: mirrors the export directory into an ordered page tree.

The walker is the single writer of the BuildContext during the scan pass.
Every call receives its input and output directories explicitly and returns
its nodes and resources to the caller; nothing is accumulated in outer scope.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from sitegraft.config import ExportConfig
from sitegraft.core.context import BuildContext
from sitegraft.core.errors import ExportReadError
from sitegraft.core.identifiers import (
    PAGE_EXTENSION,
    destination_name,
    display_name,
    identifier_from_name,
    short_name,
)
from sitegraft.core.models import PageNode, PageScan, ResourceCopy, ResourceKind
from sitegraft.pages.extractor import scan_page

logger = logging.getLogger(__name__)

WalkResult = tuple[list[PageNode], list[ResourceCopy]]


def read_markup(path: Path) -> str:
    """Read an exported page, wrapping I/O failures."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ExportReadError(f"Cannot read page {path}: {e}") from e


def list_directory(path: Path) -> list[Path]:
    """Directory entries in sorted (discovery) order."""
    try:
        return sorted(path.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise ExportReadError(f"Cannot list directory {path}: {e}") from e


def sibling_sort_key(node: PageNode) -> tuple[bool, int, int]:
    """Ordered nodes first by order; undefined orders follow in discovery order."""
    return (node.order is None, node.order or 0, node.discovery_index)


def _is_page(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() == PAGE_EXTENSION


class TreeWalker:
    """Builds the page tree and populates the build context."""

    def __init__(self, context: BuildContext, config: ExportConfig) -> None:
        self._context = context
        self._config = config

    async def walk(self, input_dir: Path, output_root: Path) -> WalkResult:
        """Walk the export root.

        Every page in the input root is a root page. Returns the root nodes
        and all resources to copy.
        """
        exclude: set[Path] = set()
        if self._config.categories_file:
            exclude.add((input_dir / self._config.categories_file).resolve())
        return await self._walk_directory(
            input_dir.resolve(),
            output_root.resolve(),
            output_root.resolve(),
            parent_scan=None,
            exclude=exclude,
        )

    async def _walk_directory(
        self,
        source_dir: Path,
        output_dir: Path,
        output_root: Path,
        parent_scan: PageScan | None,
        exclude: set[Path] | None = None,
    ) -> WalkResult:
        entries = await asyncio.to_thread(list_directory, source_dir)
        pages = [e for e in entries if _is_page(e) and e.resolve() not in (exclude or set())]
        page_stems = {p.stem for p in pages}

        resources: list[ResourceCopy] = []
        for entry in entries:
            if entry in pages or (exclude and entry.resolve() in exclude):
                continue
            if entry.is_dir():
                if entry.name in page_stems:
                    continue  # companion directory, owned by its page
                resources.append(
                    ResourceCopy(
                        kind=ResourceKind.DIRECTORY,
                        source=entry,
                        destination=output_dir / entry.name,
                    )
                )
            elif not _is_page(entry):
                resources.append(
                    ResourceCopy(
                        kind=ResourceKind.FILE,
                        source=entry,
                        destination=output_dir / entry.name,
                    )
                )

        destinations = self._destinations(pages)
        for page, dest in zip(pages, destinations):
            self._register(page, output_dir / f"{dest}{PAGE_EXTENSION}", parent_scan)

        results = await asyncio.gather(
            *(
                self._walk_page(page, dest, output_dir, output_root, parent_scan, index)
                for index, (page, dest) in enumerate(zip(pages, destinations))
            )
        )

        nodes: list[PageNode] = []
        for node, page_resources in results:
            nodes.append(node)
            resources.extend(page_resources)

        nodes.sort(key=sibling_sort_key)
        return nodes, resources

    def _destinations(self, pages: list[Path]) -> list[str]:
        """Output names for sibling pages, unique within their directory.

        Pages whose stripped names collide keep their identifier suffix; the
        first page in listing order gets the plain name.
        """
        taken: set[str] = set()
        destinations = []
        for page in pages:
            dest = destination_name(page.stem, strip_suffix=self._config.strip_id_suffix)
            if dest in taken:
                unique = destination_name(page.stem, strip_suffix=False)
                if unique in taken:
                    unique = f"{unique}-{len(destinations)}"
                logger.warning(
                    "Output name %s of %s is already taken; using %s", dest, page, unique
                )
                dest = unique
            taken.add(dest)
            destinations.append(dest)
        return destinations

    async def _walk_page(
        self,
        page_path: Path,
        dest: str,
        output_dir: Path,
        output_root: Path,
        parent_scan: PageScan | None,
        discovery_index: int,
    ) -> tuple[PageNode, list[ResourceCopy]]:
        markup = await asyncio.to_thread(read_markup, page_path)
        scan = scan_page(
            markup,
            marker_class=self._config.link_marker_class,
            id_attribute=self._config.identifier_attribute,
        )

        name = short_name(page_path.name)
        own_id = identifier_from_name(page_path.name)
        output_path = output_dir / f"{dest}{PAGE_EXTENSION}"

        order = None
        if parent_scan is not None:
            if own_id is not None:
                order = parent_scan.identifier_positions.get(own_id)
            if order is None:
                order = parent_scan.positions.get(name)
        if parent_scan is not None and order is None:
            logger.debug("Page %s is not linked from its parent; order undefined", page_path)

        children: list[PageNode] = []
        resources: list[ResourceCopy] = []
        companion = page_path.with_suffix("")
        if companion.is_dir():
            if scan.has_links:
                children, resources = await self._walk_directory(
                    companion, output_dir / dest, output_root, parent_scan=scan
                )
            else:
                resources.append(
                    ResourceCopy(
                        kind=ResourceKind.DIRECTORY,
                        source=companion,
                        destination=output_dir / dest,
                    )
                )
        elif scan.has_links:
            logger.warning("Page %s has link markers but no directory %s", page_path, companion)

        node = PageNode(
            title=scan.title or display_name(page_path.name),
            source_path=page_path,
            output_path=output_path,
            relative_path=output_path.relative_to(output_root).as_posix(),
            short_name=name,
            order=order,
            discovery_index=discovery_index,
            has_links=scan.has_links,
            children=children,
        )
        return node, resources

    def _register(self, page_path: Path, output_path: Path, parent_scan: PageScan | None) -> None:
        """Record a page in the build context; called in listing order."""
        name = short_name(page_path.name)
        own_id = identifier_from_name(page_path.name)
        if own_id:
            self._context.register_identifier(own_id, output_path)
        if parent_scan is not None and own_id not in parent_scan.identifier_positions:
            # marker matched by name only
            linked_id = parent_scan.identifiers.get(name)
            if linked_id:
                self._context.register_identifier(linked_id, output_path)
        self._context.register_name(page_path.parent, name, output_path)
