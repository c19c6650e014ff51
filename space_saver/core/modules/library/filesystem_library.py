"""
Directory-backed Library collaborator.

Treats every video file under a root directory as a library item. Hidden
files, macOS resource forks, replacement backups and sample clips
play the part of "virtual" items and are left out unless asked for.
"""

import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from space_saver.utils.logging import get_logger
from ..models import VideoItem
from ..processing.file_manager import BACKUP_SUFFIX
from .collaborators import LibraryQuery

logger = get_logger("filesystem_library")


def is_hidden(file_path: Path) -> bool:
    return file_path.name.startswith('.')


def is_sample(file_path: Path) -> bool:
    """Check if file is a sample clip."""
    stem = file_path.stem.lower()
    return any([
        stem.endswith("_sample"),
        stem.endswith(".sample"),
        stem == "sample",
    ])


def is_virtual(file_path: Path) -> bool:
    return (is_hidden(file_path)
            or file_path.name.endswith(BACKUP_SUFFIX)
            or is_sample(file_path))


class FilesystemLibrary:
    """Library over a directory tree, sorted by path for stable paging."""

    def __init__(self, root: Path, on_refresh: Optional[Callable[[Path], None]] = None):
        self.root = Path(root)
        self.on_refresh = on_refresh
        self._snapshots: Dict[LibraryQuery, List[VideoItem]] = {}
        self._lock = threading.Lock()

    def discover(self, query: LibraryQuery) -> List[VideoItem]:
        """Walk the tree once for ``query``."""
        if not self.root.is_dir():
            raise ValueError(f"Library root not found: {self.root}")
        if query.media_type != "video":
            return []

        extensions = {ext.strip().lower().lstrip('.') for ext in query.extensions if ext.strip()}
        walker = self.root.rglob if query.recursive else self.root.glob
        # Case-insensitive suffix match
        found = sorted(f for f in walker("*")
                       if f.suffix.lower().lstrip('.') in extensions and f.is_file())
        if not query.include_virtual:
            found = [f for f in found if not is_virtual(f)]

        logger.discovery(f"Found {len(found)} video files under {self.root}")
        return [
            VideoItem(item_id=str(f.relative_to(self.root)), path=f,
                      container=f.suffix.lstrip('.').lower() or None)
            for f in found
        ]

    def _snapshot(self, query: LibraryQuery) -> List[VideoItem]:
        with self._lock:
            if query not in self._snapshots:
                self._snapshots[query] = self.discover(query)
            return self._snapshots[query]

    def count(self, query: LibraryQuery) -> int:
        # A fresh count starts a fresh snapshot that the following pages read from
        with self._lock:
            self._snapshots.pop(query, None)
        return len(self._snapshot(query))

    def list_page(self, query: LibraryQuery, offset: int, limit: int) -> Sequence[VideoItem]:
        items = self._snapshot(query)
        return items[offset:offset + limit]

    def refresh_metadata(self, item: VideoItem) -> None:
        if self.on_refresh and item.path:
            self.on_refresh(item.path)
        logger.debug(f"Refreshed metadata for {item.name}")


def split_extensions(extensions: str) -> Tuple[str, ...]:
    """Parse a comma-separated extension list such as ``"mkv,mp4"``."""
    return tuple(ext.strip().lower().lstrip('.') for ext in extensions.split(",") if ext.strip())
