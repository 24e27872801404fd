"""Port interfaces for sitegraft (hexagonal architecture)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


class EmbedClientPort(ABC):
    """Port for the outbound oEmbed lookups used to restore widgets."""

    @abstractmethod
    async def connect(self) -> None:
        """Open any underlying connection resources."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Release connection resources."""

    @abstractmethod
    async def fetch(self, target_url: str, height: int) -> str:
        """Request the oEmbed document for a widget URL.

        Args:
            target_url: The widget URL taken from the placeholder text.
            height: Rendered height requested from the endpoint.

        Returns:
            The raw response body.

        Raises:
            EmbedError: On transport failures (connection, timeout).
        """


class SiteWriterPort(ABC):
    """Port for emitting the output tree."""

    @abstractmethod
    def reset(self, root: Path) -> None:
        """Delete ``root`` if present and recreate it empty."""

    @abstractmethod
    def write_text(self, path: Path, content: str) -> None:
        """Write a text file, creating parent directories.

        Raises:
            EmitError: If the file cannot be written.
        """

    @abstractmethod
    def write_json(self, path: Path, data: Any) -> None:
        """Write ``data`` as deterministic, indented JSON."""

    @abstractmethod
    def copy_file(self, source: Path, destination: Path) -> None:
        """Copy a single resource file."""

    @abstractmethod
    def copy_tree(self, source: Path, destination: Path) -> None:
        """Copy a resource directory recursively."""
