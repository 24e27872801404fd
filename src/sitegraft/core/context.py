"""Per-run build context holding the identifier and sibling-name maps.

Sibling names are scoped to the export directory holding the page, so two
folders may each contain a page with the same title.

Phase discipline:
    SCANNING  the tree walker is the only writer; lookups are refused.
    FROZEN    maps are read-only; the link rewriter resolves against them.

Lookups before ``freeze()`` raise, so no page can ever be rewritten against a
partially built map.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from enum import Enum
from pathlib import Path

from sitegraft.core.errors import ContextFrozenError

logger = logging.getLogger(__name__)


class BuildPhase(str, Enum):
    """Lifecycle phase of a BuildContext."""

    SCANNING = "scanning"
    FROZEN = "frozen"


class BuildContext:
    """Identifier map and sibling-name map for one build run."""

    def __init__(self) -> None:
        self._identifiers: dict[str, Path] = {}
        self._names: dict[tuple[Path, str], Path] = {}
        self._phase = BuildPhase.SCANNING

    @property
    def phase(self) -> BuildPhase:
        return self._phase

    def register_identifier(self, identifier: str, output_path: Path) -> None:
        """Map a normalized identifier to a page's absolute output path."""
        self._register(self._identifiers, identifier, output_path, "identifier")

    def register_name(self, directory: Path, short_name: str, output_path: Path) -> None:
        """Map a short name within an export directory to a page's output path."""
        self._register(self._names, (directory, short_name), output_path, "name")

    def _register(self, table: dict, key: Hashable, path: Path, label: str) -> None:
        if self._phase is not BuildPhase.SCANNING:
            raise ContextFrozenError(f"Cannot register {label} {key!r}: context is frozen")
        existing = table.get(key)
        if existing is None:
            table[key] = path
        elif existing != path:
            logger.debug("Ignoring duplicate %s %r -> %s (kept %s)", label, key, path, existing)

    def freeze(self) -> None:
        """End the scan phase; maps become read-only."""
        self._phase = BuildPhase.FROZEN
        logger.debug(
            "Build context frozen with %d identifiers and %d names",
            len(self._identifiers),
            len(self._names),
        )

    def lookup_identifier(self, identifier: str) -> Path | None:
        self._require_frozen()
        return self._identifiers.get(identifier)

    def lookup_name(self, directory: Path, short_name: str) -> Path | None:
        self._require_frozen()
        return self._names.get((directory, short_name))

    def _require_frozen(self) -> None:
        if self._phase is not BuildPhase.FROZEN:
            raise ContextFrozenError("Context must be frozen before resolving links")

    def __len__(self) -> int:
        return len(self._identifiers)
