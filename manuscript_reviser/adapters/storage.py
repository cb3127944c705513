"""
Local file store

Whole-file access to a manuscript folder. Paths are relative to the store
root using ``/`` separators; every OS failure surfaces as StorageError.
"""
from __future__ import annotations
from pathlib import Path, PurePosixPath
from typing import List
import logging

from manuscript_reviser.errors import StorageError

logger = logging.getLogger(__name__)


class LocalFileStore:
    """Storage collaborator backed by a directory on disk."""

    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def resolve(self, path: str) -> Path:
        """Absolute path for a store-relative path; refuses to leave the root."""
        full = (self.root / PurePosixPath(path or ".")).resolve()
        if full != self.root and self.root not in full.parents:
            raise StorageError(f"Path escapes store root: {path}")
        return full

    @staticmethod
    def parent(path: str) -> str:
        parent = str(PurePosixPath(path).parent)
        return "" if parent == "." else parent

    @staticmethod
    def join(folder: str, name: str) -> str:
        return f"{folder}/{name}" if folder else name

    def list_names(self, folder: str = "") -> List[str]:
        """File names directly inside ``folder``; a missing folder is empty."""
        directory = self.resolve(folder)
        if not directory.exists():
            return []
        try:
            return sorted(p.name for p in directory.iterdir() if p.is_file())
        except OSError as e:
            raise StorageError(f"Cannot list {folder or '.'}: {e}") from e

    def exists(self, path: str) -> bool:
        return self.resolve(path).is_file()

    def create(self, path: str) -> bool:
        """Create an empty file if absent. Returns True when newly created."""
        full = self.resolve(path)
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
            if full.exists():
                return False
            full.touch()
        except OSError as e:
            raise StorageError(f"Cannot create {path}: {e}") from e
        logger.debug(f"Created {path}")
        return True

    def read(self, path: str) -> str:
        try:
            return self.resolve(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def write(self, path: str, text: str) -> None:
        full = self.resolve(path)
        try:
            full.parent.mkdir(parents=True, exist_ok=True)
            full.write_text(text, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e
        logger.debug(f"Wrote {len(text)} chars to {path}")
