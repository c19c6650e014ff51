"""
Data model shared by the conversion pipeline and its collaborators.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class VideoItem:
    """A library entry. Owned by the Library; the pipeline only reads it."""
    item_id: str
    path: Optional[Path]
    container: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.name if self.path else self.item_id


@dataclass(frozen=True)
class StreamProbe:
    """Primary video stream metadata of one file."""
    codec: Optional[str] = None
    height: Optional[int] = None
    has_video: bool = True

    @classmethod
    def no_video(cls) -> "StreamProbe":
        return cls(codec=None, height=None, has_video=False)


class ConversionOutcome(Enum):
    CONVERTED = "converted"
    SKIPPED_INELIGIBLE = "skipped_ineligible"
    SKIPPED_MISSING = "skipped_missing"
    FAILED = "failed"


@dataclass
class ItemOutcome:
    """Result for one item, for reporting only."""
    item: VideoItem
    outcome: ConversionOutcome
    reason: str = ""
    output_path: Optional[Path] = None


@dataclass
class BatchSummary:
    """Running totals for a batch.

    ``processed`` counts eligible items that reached the convert stage;
    skips are tallied separately. ``progress`` is a percentage in [0, 100].
    """
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped_ineligible: int = 0
    skipped_missing: int = 0
    total_eligible: int = 0
    progress: float = 0.0
    outcomes: List[ItemOutcome] = field(default_factory=list)

    def record(self, outcome: ItemOutcome):
        self.outcomes.append(outcome)
        if outcome.outcome is ConversionOutcome.SKIPPED_MISSING:
            self.skipped_missing += 1
        elif outcome.outcome is ConversionOutcome.SKIPPED_INELIGIBLE:
            self.skipped_ineligible += 1
        else:
            self.processed += 1
            if outcome.outcome is ConversionOutcome.CONVERTED:
                self.succeeded += 1
            else:
                self.failed += 1
            if self.total_eligible:
                # Never move backwards, even if totals were mis-reported
                self.progress = max(self.progress, min(100.0, self.processed / self.total_eligible * 100))

    def mark_complete(self):
        self.progress = 100.0
