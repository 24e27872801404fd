"""Filesystem writer for the emitted site."""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any

from sitegraft.core.errors import EmitError
from sitegraft.core.interfaces import SiteWriterPort


class FileSiteWriter(SiteWriterPort):
    """Writes pages, JSON files and resources to the local filesystem.

    Every failure is wrapped in EmitError; nothing is retried and partial
    output is left as is.
    """

    def reset(self, root: Path) -> None:
        try:
            if root.exists():
                shutil.rmtree(root)
            root.mkdir(parents=True)
        except OSError as e:
            raise EmitError(f"Cannot reset output directory {root}: {e}") from e

    def write_text(self, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise EmitError(f"Cannot write {path}: {e}") from e

    def write_json(self, path: Path, data: Any) -> None:
        self.write_text(path, json.dumps(data, indent=4, ensure_ascii=False) + "\n")

    def copy_file(self, source: Path, destination: Path) -> None:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, destination)
        except OSError as e:
            raise EmitError(f"Cannot copy {source} to {destination}: {e}") from e

    def copy_tree(self, source: Path, destination: Path) -> None:
        try:
            shutil.copytree(source, destination, dirs_exist_ok=True)
        except (OSError, shutil.Error) as e:
            raise EmitError(f"Cannot copy {source} to {destination}: {e}") from e
