"""Page clean-up applied before emission."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from bs4 import BeautifulSoup

from sitegraft.config import AssetConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetBundle:
    """Asset URLs injected into every page."""

    stylesheets: list[str] = field(default_factory=list)
    scripts: list[str] = field(default_factory=list)
    post_body_scripts: list[str] = field(default_factory=list)


def _asset_urls(base_path: str, directory: str | None, suffix: str) -> list[str]:
    if not directory:
        return []
    path = Path(directory).expanduser()
    if not path.is_dir():
        logger.warning("Asset directory %s does not exist; skipping", path)
        return []
    base = base_path.rstrip("/")
    names = sorted(p.name for p in path.iterdir() if p.is_file() and p.suffix == suffix)
    return [f"{base}/{name}" if base else name for name in names]


def collect_assets(config: AssetConfig) -> AssetBundle:
    """List stylesheet and script files to inject, in sorted name order."""
    return AssetBundle(
        stylesheets=_asset_urls(config.base_path, config.css_dir, ".css"),
        scripts=_asset_urls(config.base_path, config.script_dir, ".js"),
        post_body_scripts=_asset_urls(config.base_path, config.post_body_script_dir, ".js"),
    )


def remove_table_id_columns(soup: BeautifulSoup, header: str) -> int:
    """Drop the column headed ``header`` from every table.

    Returns:
        Number of tables changed.
    """
    changed = 0
    for table in soup.find_all("table"):
        header_row = next((tr for tr in table.find_all("tr") if tr.find("th")), None)
        if header_row is None:
            continue
        header_cells = header_row.find_all(["th", "td"], recursive=False)
        index = next(
            (i for i, th in enumerate(header_cells) if th.get_text(strip=True) == header),
            None,
        )
        if index is None:
            continue
        for row in table.find_all("tr"):
            cells = row.find_all(["th", "td"], recursive=False)
            if len(cells) > index:
                cells[index].decompose()
        changed += 1
    return changed


def inject_assets(soup: BeautifulSoup, assets: AssetBundle) -> None:
    """Link stylesheets and scripts into <head>, post-body scripts into <body>."""
    if not (assets.stylesheets or assets.scripts or assets.post_body_scripts):
        return

    head = soup.find("head")
    if head is None:
        head = soup.new_tag("head")
        html = soup.find("html")
        if html is not None:
            html.insert(0, head)
        else:
            soup.insert(0, head)

    for href in assets.stylesheets:
        head.append(soup.new_tag("link", rel="stylesheet", href=href))
    for src in assets.scripts:
        head.append(soup.new_tag("script", src=src))

    body = soup.find("body") or soup
    for src in assets.post_body_scripts:
        body.append(soup.new_tag("script", src=src))
