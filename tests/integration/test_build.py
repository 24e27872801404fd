"""Integration tests: full build from an export tree to an emitted site."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from bs4 import BeautifulSoup
from conftest import API_ID, GUIDE_ID, INSTALL_ID, hyphenate, make_page, write_export

from sitegraft.adapters.site_writer import FileSiteWriter
from sitegraft.builder import navigation, run_build
from sitegraft.config import EmbedConfig, ExportConfig, SitegraftConfig
from sitegraft.container import Container
from sitegraft.core.errors import ExportReadError

GONE_ID = "ffffffffffffffffffffffffffffffff"
BLOCK_ID = "abcdefabcdefabcdefabcdefabcdef12"
PEN_URL = "https://codepen.io/team/pen/abc"
PEN_HTML = '<iframe src="https://codepen.io/team/embed/abc?height=500"></iframe>'

ID_TABLE = (
    "<table><tr><th>Name</th><th>__id</th></tr>"
    "<tr><td>alpha</td><td>42</td></tr></table>"
)


@pytest.fixture()
def export(tmp_path: Path) -> Path:
    """A two-level export.

    Home links Guide (0) then API (1); listing order is the reverse.
    Guide links Install and carries an image and a pen; Install refers to
    its sibling's parent page by name, API refers forward to Install by
    identifier.
    """
    guide = f"Guide {GUIDE_ID}"
    return write_export(
        tmp_path / "export",
        {
            "Home.html": make_page(
                "Home", [(f"{guide}.html", GUIDE_ID), (f"API {API_ID}.html", API_ID)]
            ),
            f"Home/{guide}.html": make_page(
                "Guide",
                [(f"Install {INSTALL_ID}.html", INSTALL_ID)],
                body=(
                    f'<img src="Guide%20{GUIDE_ID}/diagram.png">'
                    f'<a href="{PEN_URL}">{PEN_URL}</a>'
                ),
            ),
            f"Home/{guide}/diagram.png": "png",
            f"Home/{guide}/Install {INSTALL_ID}.html": make_page(
                "Install",
                body=(
                    f'<a href="../API%20{API_ID}.html">API</a>'
                    f'<a href="https://www.notion.so/Gone-{GONE_ID}">gone</a>'
                ),
            ),
            f"Home/API {API_ID}.html": make_page(
                "API",
                body=(
                    f'<a href="https://www.notion.so/Install-{INSTALL_ID}#{BLOCK_ID}">install</a>'
                    + ID_TABLE
                ),
            ),
            "categories.html": (
                "<html><body><h2>Basics</h2><ul>"
                f'<li><a href="Home/{guide}/Install%20{INSTALL_ID}.html">Install</a></li>'
                '<li><a href="https://example.com/faq">FAQ</a></li>'
                "</ul></body></html>"
            ),
        },
    )


@pytest.fixture()
def config() -> SitegraftConfig:
    return SitegraftConfig(
        export=ExportConfig(categories_file="categories.html"),
        embed=EmbedConfig(retry_delay=0),
    )


@pytest.fixture()
def embed_client() -> AsyncMock:
    client = AsyncMock()
    client.fetch.return_value = json.dumps({"html": PEN_HTML})
    return client


def read_soup(path: Path) -> BeautifulSoup:
    return BeautifulSoup(path.read_text(encoding="utf-8"), "html.parser")


class TestBuild:
    """End-to-end site builds."""

    @pytest.mark.asyncio
    async def test_layout_and_navigation(
        self, export: Path, tmp_path: Path, config: SitegraftConfig, embed_client: AsyncMock
    ) -> None:
        out = tmp_path / "site"
        container = Container.create_for_testing(config=config, embed_client=embed_client)

        result = await run_build(container, export, out)

        assert result.page_count == 4
        assert (out / "home.html").is_file()
        assert (out / "home" / "guide.html").is_file()
        assert (out / "home" / "api.html").is_file()
        assert (out / "home" / "guide" / "install.html").is_file()
        assert (out / "home" / "guide" / "diagram.png").read_text() == "png"

        nav = json.loads((out / "page-links.json").read_text())
        assert nav == [
            {
                "title": "Guide",
                "path": "home/guide.html",
                "order": 0,
                "subPages": [
                    {"title": "Install", "path": "home/guide/install.html", "order": 0},
                ],
            },
            {"title": "API", "path": "home/api.html", "order": 1},
        ]

    @pytest.mark.asyncio
    async def test_links_rewritten(
        self, export: Path, tmp_path: Path, config: SitegraftConfig, embed_client: AsyncMock
    ) -> None:
        out = tmp_path / "site"
        container = Container.create_for_testing(config=config, embed_client=embed_client)

        result = await run_build(container, export, out)

        home = read_soup(out / "home.html")
        assert [a["href"] for a in home.find_all("a")] == ["home/guide.html", "home/api.html"]

        api = read_soup(out / "home" / "api.html")
        assert api.find("a")["href"] == f"guide/install.html#{hyphenate(BLOCK_ID)}"

        install = read_soup(out / "home" / "guide" / "install.html")
        hrefs = [a["href"] for a in install.find_all("a")]
        assert hrefs == ["../api.html", f"https://www.notion.so/Gone-{GONE_ID}"]
        assert result.links_dangling == 1

        guide = read_soup(out / "home" / "guide.html")
        assert guide.find("img")["src"] == "guide/diagram.png"

    @pytest.mark.asyncio
    async def test_embeds_resolved(
        self, export: Path, tmp_path: Path, config: SitegraftConfig, embed_client: AsyncMock
    ) -> None:
        out = tmp_path / "site"
        container = Container.create_for_testing(config=config, embed_client=embed_client)

        result = await run_build(container, export, out)

        embed_client.connect.assert_awaited_once()
        embed_client.disconnect.assert_awaited_once()
        embed_client.fetch.assert_awaited_once_with(PEN_URL, 500)
        assert result.embeds_failed == 0

        guide = read_soup(out / "home" / "guide.html")
        iframe = guide.find("iframe")
        assert iframe is not None
        assert "editable=true" in iframe["src"]
        assert not any(PEN_URL == a.get("href") for a in guide.find_all("a"))

    @pytest.mark.asyncio
    async def test_failed_embeds_left_in_place(
        self, export: Path, tmp_path: Path, config: SitegraftConfig
    ) -> None:
        out = tmp_path / "site"
        client = AsyncMock()
        client.fetch.return_value = "Not Found"
        container = Container.create_for_testing(config=config, embed_client=client)

        result = await run_build(container, export, out)

        assert client.fetch.await_count == 6
        assert result.embeds_failed == 1
        guide = read_soup(out / "home" / "guide.html")
        assert guide.find("a", href=PEN_URL) is not None

    @pytest.mark.asyncio
    async def test_embeds_disabled_skips_client(self, export: Path, tmp_path: Path) -> None:
        config = SitegraftConfig(embed=EmbedConfig(enabled=False))
        client = AsyncMock()
        container = Container.create_for_testing(config=config, embed_client=client)

        await run_build(container, export, tmp_path / "site")

        client.connect.assert_not_awaited()
        client.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_id_column_removed(
        self, export: Path, tmp_path: Path, config: SitegraftConfig, embed_client: AsyncMock
    ) -> None:
        out = tmp_path / "site"
        container = Container.create_for_testing(config=config, embed_client=embed_client)

        await run_build(container, export, out)

        api = read_soup(out / "home" / "api.html")
        cells = [c.get_text() for c in api.find_all(["th", "td"])]
        assert cells == ["Name", "alpha"]

    @pytest.mark.asyncio
    async def test_categories_written(
        self, export: Path, tmp_path: Path, config: SitegraftConfig, embed_client: AsyncMock
    ) -> None:
        out = tmp_path / "site"
        container = Container.create_for_testing(config=config, embed_client=embed_client)

        result = await run_build(container, export, out)

        categories = json.loads((out / "categories.json").read_text())
        assert categories == [
            {"category": "Basics", "title": "Install", "link": "home/guide/install.html"},
            {"category": "Basics", "title": "FAQ", "link": "https://example.com/faq"},
        ]
        assert len(result.categories) == 2
        assert not (out / "categories.html").exists()

    @pytest.mark.asyncio
    async def test_version_subdirectory(
        self, simple_export: Path, tmp_path: Path, test_config: SitegraftConfig
    ) -> None:
        out = tmp_path / "site"
        config = test_config.model_copy(update={"version": "v2"})
        container = Container.create_for_testing(config=config, embed_client=AsyncMock())

        result = await run_build(container, simple_export, out)

        assert result.output_root == (out / "v2").resolve()
        assert (out / "v2" / "page-links.json").is_file()
        assert (out / "v2" / "root" / "guide.html").is_file()

    @pytest.mark.asyncio
    async def test_rebuild_is_idempotent(
        self, export: Path, tmp_path: Path, config: SitegraftConfig, embed_client: AsyncMock
    ) -> None:
        out = tmp_path / "site"
        container = Container.create_for_testing(config=config, embed_client=embed_client)

        await run_build(container, export, out)
        (out / "stale.html").write_text("stale")
        first = (out / "page-links.json").read_bytes()
        first_api = (out / "home" / "api.html").read_bytes()

        await run_build(container, export, out)

        assert (out / "page-links.json").read_bytes() == first
        assert (out / "home" / "api.html").read_bytes() == first_api
        assert not (out / "stale.html").exists()

    @pytest.mark.asyncio
    async def test_unreadable_page_propagates(
        self, simple_export: Path, tmp_path: Path, test_config: SitegraftConfig
    ) -> None:
        (simple_export / "root" / "API.html").write_bytes(b"\xff\xfe\x00bad")
        container = Container.create_for_testing(config=test_config, embed_client=AsyncMock())

        with pytest.raises(ExportReadError, match="Cannot read page"):
            await run_build(container, simple_export, tmp_path / "site")


class TestNavigation:
    """Tests for navigation()."""

    @pytest.mark.asyncio
    async def test_leaf_roots_give_empty_navigation(self, tmp_path: Path) -> None:
        export = write_export(tmp_path / "export", {"Solo.html": make_page("Solo")})
        container = Container.create_for_testing(
            config=SitegraftConfig(embed=EmbedConfig(enabled=False))
        )

        result = await run_build(container, export, tmp_path / "site")

        assert result.page_count == 1
        assert json.loads(result.nav_path.read_text()) == []
        assert navigation([]) == []


class RecordingWriter(FileSiteWriter):
    """Filesystem writer that notes which thread each write runs on."""

    def __init__(self) -> None:
        super().__init__()
        self.threads: set[int] = set()

    def write_text(self, path: Path, content: str) -> None:
        self.threads.add(threading.get_ident())
        super().write_text(path, content)

    def copy_tree(self, source: Path, destination: Path) -> None:
        self.threads.add(threading.get_ident())
        super().copy_tree(source, destination)


class TestSameNamedPages:
    """Builds where page titles repeat across or within folders."""

    @pytest.mark.asyncio
    async def test_name_links_stay_in_their_folder(self, tmp_path: Path) -> None:
        export = write_export(
            tmp_path / "export",
            {
                "root.html": make_page("Root", [("A.html", None), ("B.html", None)]),
                "root/A.html": make_page("A", [("Overview.html", None), ("Notes.html", None)]),
                "root/B.html": make_page("B", [("Overview.html", None), ("Notes.html", None)]),
                "root/A/Overview.html": make_page("Overview"),
                "root/B/Overview.html": make_page("Overview"),
                "root/A/Notes.html": make_page("Notes", body='<a href="Overview.html">o</a>'),
                "root/B/Notes.html": make_page("Notes", body='<a href="Overview.html">o</a>'),
            },
        )
        container = Container.create_for_testing(
            config=SitegraftConfig(embed=EmbedConfig(enabled=False))
        )
        out = tmp_path / "site"

        for _ in range(3):
            await run_build(container, export, out)
            for folder in ("a", "b"):
                notes = read_soup(out / "root" / folder / "notes.html")
                assert notes.find("a", string="o")["href"] == "overview.html"

    @pytest.mark.asyncio
    async def test_same_titled_siblings_both_emitted(self, tmp_path: Path) -> None:
        first = "11111111111111111111111111111111"
        second = "22222222222222222222222222222222"
        export = write_export(
            tmp_path / "export",
            {
                "root.html": make_page(
                    "Root", [(f"Notes {first}.html", first), (f"Notes {second}.html", second)]
                ),
                f"root/Notes {first}.html": make_page("Notes", body="<p>one</p>"),
                f"root/Notes {second}.html": make_page(
                    "Notes", body=f'<p>two</p><a href="Notes%20{first}.html">one</a>'
                ),
            },
        )
        container = Container.create_for_testing(
            config=SitegraftConfig(embed=EmbedConfig(enabled=False))
        )
        out = tmp_path / "site"

        result = await run_build(container, export, out)

        files = sorted(p.name for p in (out / "root").iterdir())
        assert files == ["notes-22222222222222222222222222222222.html", "notes.html"]
        assert result.page_count == 3
        assert "one" in (out / "root" / "notes.html").read_text()
        two = read_soup(out / "root" / f"notes-{second}.html")
        assert two.find("a", string="one")["href"] == "notes.html"


class TestEmitThreads:
    """Page writes and resource copies run off the event loop thread."""

    @pytest.mark.asyncio
    async def test_writes_run_in_worker_threads(self, export: Path, tmp_path: Path) -> None:
        writer = RecordingWriter()
        container = Container.create_for_testing(
            config=SitegraftConfig(embed=EmbedConfig(enabled=False)), writer=writer
        )

        await run_build(container, export, tmp_path / "site")

        assert writer.threads
        assert threading.get_ident() not in writer.threads
