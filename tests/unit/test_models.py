"""Unit tests for BatchSummary bookkeeping."""

import unittest
from pathlib import Path

from space_saver.core.modules.models import (
    BatchSummary, ConversionOutcome, ItemOutcome, VideoItem,
)


def _outcome(kind):
    return ItemOutcome(item=VideoItem("x", Path("/lib/x.mkv")), outcome=kind)


class TestBatchSummary(unittest.TestCase):

    def test_skips_do_not_count_as_processed(self):
        summary = BatchSummary(total_eligible=2)
        summary.record(_outcome(ConversionOutcome.SKIPPED_MISSING))
        summary.record(_outcome(ConversionOutcome.SKIPPED_INELIGIBLE))
        self.assertEqual(summary.processed, 0)
        self.assertEqual(summary.skipped_missing, 1)
        self.assertEqual(summary.skipped_ineligible, 1)
        self.assertEqual(summary.progress, 0.0)

    def test_progress_tracks_processed(self):
        summary = BatchSummary(total_eligible=4)
        summary.record(_outcome(ConversionOutcome.CONVERTED))
        summary.record(_outcome(ConversionOutcome.FAILED))
        self.assertEqual(summary.processed, 2)
        self.assertEqual(summary.succeeded, 1)
        self.assertEqual(summary.failed, 1)
        self.assertEqual(summary.progress, 50.0)
        self.assertEqual(len(summary.outcomes), 2)

    def test_progress_never_exceeds_100(self):
        summary = BatchSummary(total_eligible=1)
        summary.record(_outcome(ConversionOutcome.CONVERTED))
        summary.record(_outcome(ConversionOutcome.CONVERTED))
        self.assertEqual(summary.progress, 100.0)

    def test_mark_complete(self):
        summary = BatchSummary()
        summary.mark_complete()
        self.assertEqual(summary.progress, 100.0)

    def test_item_name(self):
        self.assertEqual(VideoItem("id-1", Path("/lib/movie.mkv")).name, "movie.mkv")
        self.assertEqual(VideoItem("id-1", None).name, "id-1")


if __name__ == '__main__':
    unittest.main()
