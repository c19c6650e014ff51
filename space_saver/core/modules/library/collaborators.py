"""
Contracts for the collaborators the conversion pipeline drives.

The pipeline never imports a concrete library, prober or encoder locator;
anything satisfying these protocols can be plugged in.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Sequence, Tuple

from ..models import StreamProbe, VideoItem
from ..system.cancellation import CancellationToken

DEFAULT_EXTENSIONS = ("mkv", "mp4", "mov", "avi", "m4v", "ts", "wmv")


@dataclass(frozen=True)
class LibraryQuery:
    """Restricts a library scan to real (non-virtual) video files, recursively."""
    media_type: str = "video"
    recursive: bool = True
    include_virtual: bool = False
    extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS


class Library(Protocol):
    def count(self, query: LibraryQuery) -> int: ...

    def list_page(self, query: LibraryQuery, offset: int, limit: int) -> Sequence[VideoItem]: ...

    def refresh_metadata(self, item: VideoItem) -> None: ...


class Prober(Protocol):
    def probe(self, path: Path, container: Optional[str] = None,
              cancel: Optional[CancellationToken] = None) -> StreamProbe: ...


class EncoderLocator(Protocol):
    @property
    def encoder_path(self) -> Optional[str]: ...
