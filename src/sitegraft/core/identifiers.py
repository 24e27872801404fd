"""Identifier grammar for exported page names and links.

The export tool appends a near-unique identifier to every page name, for
example ``Getting Started 1f2e3d4c5b6a79881726354453627180.html``. The same
identifier shows up hyphenated (``1f2e3d4c-5b6a-7988-1726-354453627180``) in
element attributes and in links to the tool's own web domain.

Grammar for a page name::

    name   := title DELIM token | title
    DELIM  := one or more whitespace or "-" characters
    token  := 32 hex digits | 8-4-4-4-12 hyphenated hex digits
    title  := non-empty text ending in a non-delimiter character

Only the final token is ever removed, so multi-word titles stay intact and a
name that is nothing but an identifier is kept as its own title.
"""

from __future__ import annotations

import posixpath
import re
from urllib.parse import unquote, urlsplit

PAGE_EXTENSION = ".html"

_TOKEN = r"(?:[0-9a-fA-F]{32}|[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12})"
_TOKEN_PATTERN = re.compile(rf"^{_TOKEN}$")
_SUFFIX_PATTERN = re.compile(rf"^(?P<title>.*[^\s-])[\s-]+(?P<token>{_TOKEN})$", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")
_ALNUM = re.compile(r"^[0-9A-Za-z]+$")


def is_identifier(value: str) -> bool:
    """Return True if ``value`` is a bare identifier token."""
    return bool(_TOKEN_PATTERN.match(value))


def normalize_identifier(value: str) -> str:
    """Remove all hyphens; case is preserved."""
    return value.replace("-", "")


def split_identifier_suffix(name: str) -> tuple[str, str | None]:
    """Split ``name`` into its title and trailing identifier token.

    Returns:
        ``(title, token)`` where token is None if the name has no suffix.
    """
    match = _SUFFIX_PATTERN.match(name)
    if match is None:
        return name, None
    return match.group("title"), match.group("token")


def _stem(href_or_filename: str) -> str:
    base = posixpath.basename(unquote(href_or_filename).replace("\\", "/"))
    if base.lower().endswith(PAGE_EXTENSION):
        base = base[: -len(PAGE_EXTENSION)]
    return base


def display_name(href_or_filename: str) -> str:
    """Human-facing name: basename without extension or identifier suffix."""
    title, _ = split_identifier_suffix(_stem(href_or_filename).strip())
    return title


def short_name(href_or_filename: str) -> str:
    """Normalized short name used as a lookup key (lower-cased display name)."""
    return display_name(href_or_filename).lower()


def destination_name(stem: str, strip_suffix: bool = True) -> str:
    """Output file/directory name for an exported page stem."""
    name = split_identifier_suffix(stem.strip())[0] if strip_suffix else stem.strip()
    return _WHITESPACE.sub("-", name.lower())


def identifier_from_name(href_or_filename: str) -> str | None:
    """Normalized identifier carried by a page name, if any."""
    stem = _stem(href_or_filename).strip()
    if is_identifier(stem):
        return normalize_identifier(stem)
    _, token = split_identifier_suffix(stem)
    return normalize_identifier(token) if token else None


def identifier_from_href(href: str, export_hosts: list[str]) -> str | None:
    """Extract the normalized identifier an href points at.

    Recognized shapes are absolute links to one of the export tool's hosts
    whose last path segment ends in an identifier, and relative page links
    (``.html``) whose file name carries an identifier suffix.
    """
    parts = urlsplit(href)
    if parts.scheme in ("http", "https"):
        host = (parts.hostname or "").lower()
        if host not in {h.lower() for h in export_hosts}:
            return None
        segment = parts.path.rstrip("/").rsplit("/", 1)[-1]
        return identifier_from_name(segment) if segment else None
    if parts.scheme or not parts.path.lower().endswith(PAGE_EXTENSION):
        return None
    return identifier_from_name(parts.path)


def format_block_fragment(fragment: str) -> str:
    """Reformat a block-id fragment into 8-4-4-4-12 hyphen grouping.

    Fragments that are not at least 32 alphanumeric characters (ignoring
    hyphens) are returned unchanged.
    """
    h = normalize_identifier(fragment)
    if len(h) < 32 or not _ALNUM.match(h):
        return fragment
    return f"{h[0:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:32]}"


def is_external(href: str) -> bool:
    """Return True for absolute links with a scheme or network location."""
    parts = urlsplit(href)
    return bool(parts.scheme or parts.netloc)
