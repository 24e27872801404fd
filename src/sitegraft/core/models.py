"""Domain models for sitegraft."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class PageScan(BaseModel):
    """Metadata extracted from a single page's markup."""

    title: str | None = Field(default=None, description="Text of the <title> element")
    positions: dict[str, int] = Field(
        default_factory=dict,
        description="Normalized short name -> 0-based position among the page's link markers",
    )
    identifiers: dict[str, str] = Field(
        default_factory=dict,
        description="Normalized short name -> normalized identifier of the linked page",
    )
    identifier_positions: dict[str, int] = Field(
        default_factory=dict,
        description="Normalized identifier -> position, for markers carrying an identifier",
    )
    has_links: bool = Field(default=False, description="Whether any link marker was found")


class PageNode(BaseModel):
    """A page in the mirrored export tree."""

    title: str = Field(description="Page title shown in navigation")
    source_path: Path = Field(description="Absolute path of the exported page")
    output_path: Path = Field(description="Absolute path of the emitted page")
    relative_path: str = Field(description="POSIX path relative to the output root")
    short_name: str = Field(description="Normalized short name used for lookups")
    order: int | None = Field(default=None, description="Position among the parent's link markers")
    discovery_index: int = Field(default=0, description="Position in sorted directory listing")
    has_links: bool = Field(default=False, description="Whether the page carries link markers")
    children: list[PageNode] = Field(default_factory=list, description="Child pages in sibling order")

    def iter_tree(self):
        """Yield this node and all descendants, depth-first."""
        yield self
        for child in self.children:
            yield from child.iter_tree()


class NavEntry(BaseModel):
    """Serialized navigation entry written to the navigation description file."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    path: str
    order: int | None = None
    sub_pages: list[NavEntry] | None = Field(default=None, alias="subPages")

    @classmethod
    def from_node(cls, node: PageNode) -> NavEntry:
        """Build a navigation entry (recursively) from a page node."""
        return cls(
            title=node.title,
            path=node.relative_path,
            order=node.order,
            sub_pages=[cls.from_node(c) for c in node.children] if node.children else None,
        )


class CategoryLink(BaseModel):
    """One link listed under a category heading."""

    category: str
    title: str
    link: str


class ResourceKind(str, Enum):
    """Kinds of non-page resources copied into the output tree."""

    FILE = "file"
    DIRECTORY = "directory"


class ResourceCopy(BaseModel):
    """A resource to copy from the export into the output tree."""

    kind: ResourceKind
    source: Path
    destination: Path


class PageReport(BaseModel):
    """Outcome of emitting a single page."""

    page: str = Field(description="Page path relative to the output root")
    links_rewritten: int = Field(default=0)
    links_dangling: int = Field(default=0)
    embeds_resolved: int = Field(default=0)
    embeds_failed: int = Field(default=0)
    embed_requests: int = Field(default=0)


class BuildResult(BaseModel):
    """Outcome of a full build run."""

    output_root: Path
    nav_path: Path
    pages: list[PageReport] = Field(default_factory=list)
    resources_copied: int = Field(default=0)
    categories: list[CategoryLink] = Field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def embeds_failed(self) -> int:
        return sum(p.embeds_failed for p in self.pages)

    @property
    def links_dangling(self) -> int:
        return sum(p.links_dangling for p in self.pages)
