"""Shared test fixtures for sitegraft."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

import pytest

from sitegraft.config import EmbedConfig, SitegraftConfig

GUIDE_ID = "1f2e3d4c5b6a79881726354453627180"
API_ID = "aa11bb22cc33dd44ee55ff6677889900"
INSTALL_ID = "0123456789abcdef0123456789abcdef"


def hyphenate(identifier: str) -> str:
    """Render a 32-char identifier in 8-4-4-4-12 form."""
    h = identifier
    return f"{h[0:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:32]}"


def make_page(title: str, links: list[tuple[str, str | None]] | None = None, body: str = "") -> str:
    """Build an exported page.

    Args:
        title: Content of the <title> element.
        links: (file name, identifier) pairs rendered as link markers in order.
        body: Extra markup appended to the body.
    """
    markers = []
    for file_name, identifier in links or []:
        id_attr = f' id="{hyphenate(identifier)}"' if identifier else ""
        text = file_name.rsplit(".", 1)[0]
        markers.append(
            f'<figure class="link-to-page"{id_attr}>'
            f'<a href="{quote(file_name)}">{text}</a></figure>'
        )
    return (
        "<html><head><title>{title}</title></head><body>"
        "{markers}{body}</body></html>"
    ).format(title=title, markers="".join(markers), body=body)


def write_export(root: Path, files: dict[str, str]) -> Path:
    """Write ``{relative path: content}`` under ``root``."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture()
def test_config() -> SitegraftConfig:
    """Config with fast embed retries."""
    return SitegraftConfig(embed=EmbedConfig(retry_delay=0))


@pytest.fixture()
def simple_export(tmp_path: Path) -> Path:
    """Root page linking Guide (0) and API (1), both leaves."""
    return write_export(
        tmp_path / "export",
        {
            "root.html": make_page("Root", [("Guide.html", None), ("API.html", None)]),
            "root/Guide.html": make_page("Guide"),
            "root/API.html": make_page("API"),
        },
    )
