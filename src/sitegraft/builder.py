"""Site builder: scan pass, context freeze, emit pass."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from bs4 import BeautifulSoup

from sitegraft.container import Container
from sitegraft.core.context import BuildContext
from sitegraft.core.models import (
    BuildResult,
    CategoryLink,
    NavEntry,
    PageNode,
    PageReport,
    ResourceCopy,
    ResourceKind,
)
from sitegraft.pages.categories import extract_categories
from sitegraft.pages.embeds import EmbedResolver
from sitegraft.pages.extractor import PARSER
from sitegraft.pages.rewriter import LinkRewriter
from sitegraft.pages.sanitize import (
    AssetBundle,
    collect_assets,
    inject_assets,
    remove_table_id_columns,
)
from sitegraft.pages.walker import TreeWalker, read_markup

logger = logging.getLogger(__name__)


def navigation(roots: list[PageNode]) -> list[NavEntry]:
    """Navigation entries for the children of the root page(s)."""
    return [NavEntry.from_node(child) for root in roots for child in root.children]


class SiteBuilder:
    """Builds a documentation site from an export directory.

    A run:
        1. recreates the output root
        2. walks the export, building the page tree and the link maps
        3. freezes the maps
        4. rewrites, resolves embeds and writes every page concurrently
        5. copies resources and writes the navigation description
    """

    def __init__(self, container: Container) -> None:
        self._container = container
        self._config = container.config

    async def build(self, input_dir: Path, output_dir: Path) -> BuildResult:
        """Run the full pipeline for one export."""
        input_dir = input_dir.resolve()
        output_root = self._config.output_root(output_dir).resolve()
        writer = self._container.writer

        logger.info("Building site from %s into %s", input_dir, output_root)
        writer.reset(output_root)

        context = BuildContext()
        roots, resources = await TreeWalker(context, self._config.export).walk(
            input_dir, output_root
        )
        context.freeze()
        logger.info(
            "Scanned %d page(s), %d identifier(s)",
            sum(1 for r in roots for _ in r.iter_tree()),
            len(context),
        )

        rewriter = LinkRewriter(context, self._config.export)
        assets = collect_assets(self._config.assets)
        reports = await self._emit_pages(roots, rewriter, assets)

        for resource in resources:
            await self._copy_resource(resource)

        nav_path = output_root / self._config.nav_file
        await asyncio.to_thread(
            writer.write_json,
            nav_path,
            [e.model_dump(by_alias=True, exclude_none=True) for e in navigation(roots)],
        )

        categories = await self._write_categories(input_dir, output_root, rewriter)

        result = BuildResult(
            output_root=output_root,
            nav_path=nav_path,
            pages=reports,
            resources_copied=len(resources),
            categories=categories,
        )
        logger.info(
            "Wrote %d page(s), %d resource(s); %d dangling link(s), %d unresolved embed(s)",
            result.page_count,
            result.resources_copied,
            result.links_dangling,
            result.embeds_failed,
        )
        return result

    async def _emit_pages(
        self,
        roots: list[PageNode],
        rewriter: LinkRewriter,
        assets: AssetBundle,
    ) -> list[PageReport]:
        nodes = [node for root in roots for node in root.iter_tree()]
        semaphore = asyncio.Semaphore(self._config.max_concurrent_pages)
        resolver = EmbedResolver(self._container.embed_client, self._config.embed)

        async def emit(node: PageNode) -> PageReport:
            async with semaphore:
                return await self._emit_page(node, rewriter, resolver, assets)

        if not self._config.embed.enabled:
            return list(await asyncio.gather(*(emit(n) for n in nodes)))

        await self._container.embed_client.connect()
        try:
            return list(await asyncio.gather(*(emit(n) for n in nodes)))
        finally:
            await self._container.embed_client.disconnect()

    async def _emit_page(
        self,
        node: PageNode,
        rewriter: LinkRewriter,
        resolver: EmbedResolver,
        assets: AssetBundle,
    ) -> PageReport:
        markup = await asyncio.to_thread(read_markup, node.source_path)
        soup = BeautifulSoup(markup, PARSER)

        if self._config.export.table_id_column:
            remove_table_id_columns(soup, self._config.export.table_id_column)

        links = rewriter.rewrite(soup, node.source_path, node.output_path)
        report = PageReport(
            page=node.relative_path,
            links_rewritten=links.rewritten,
            links_dangling=links.dangling,
        )

        if self._config.embed.enabled:
            embeds = await resolver.resolve(soup, node.relative_path)
            report.embeds_resolved = embeds.resolved
            report.embeds_failed = embeds.failed
            report.embed_requests = embeds.requests

        inject_assets(soup, assets)
        await asyncio.to_thread(self._container.writer.write_text, node.output_path, str(soup))
        logger.debug(
            "Emitted %s (%d link(s) rewritten, %d embed(s) resolved)",
            node.relative_path,
            report.links_rewritten,
            report.embeds_resolved,
        )
        return report

    async def _copy_resource(self, resource: ResourceCopy) -> None:
        writer = self._container.writer
        copy = writer.copy_tree if resource.kind == ResourceKind.DIRECTORY else writer.copy_file
        await asyncio.to_thread(copy, resource.source, resource.destination)

    async def _write_categories(
        self,
        input_dir: Path,
        output_root: Path,
        rewriter: LinkRewriter,
    ) -> list[CategoryLink]:
        if not self._config.export.categories_file:
            return []

        source = input_dir / self._config.export.categories_file
        markup = await asyncio.to_thread(read_markup, source)
        categories = extract_categories(
            markup, lambda href: rewriter.resolve_href(href, source.parent), output_root
        )
        await asyncio.to_thread(
            self._container.writer.write_json,
            output_root / self._config.categories_output,
            [c.model_dump() for c in categories],
        )
        return categories


async def run_build(container: Container, input_dir: Path, output_dir: Path) -> BuildResult:
    """One-shot build."""
    return await SiteBuilder(container).build(input_dir, output_dir)
