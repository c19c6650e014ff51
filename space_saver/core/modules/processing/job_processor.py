"""
Job processing module for space_saver.

This module runs a conversion batch end to end:
- Paged library scan with probe and eligibility screening
- Per-item encode, optional verification and in-place replacement
- Sequential or bounded-parallel execution
- Outcome aggregation and progress reporting
"""

import concurrent.futures
import threading
from pathlib import Path
from typing import Callable, List, Optional

from space_saver.utils.logging import get_logger, format_size
from ..analysis.eligibility import eligibility_reason
from ..conversion_config import ConversionConfig
from ..exceptions import ConversionCancelled, ReplacementError
from ..library.collaborators import Library, LibraryQuery, Prober
from ..models import BatchSummary, ConversionOutcome, ItemOutcome, VideoItem
from ..system.cancellation import CancellationToken
from ..system.system_utils import file_exists, remove_file
from .file_manager import SafeReplacer
from .transcoding_engine import EncodeInvoker, new_output_path

logger = get_logger("job_processor")

ProgressSink = Callable[[float], None]


class ConversionPipeline:
    """
    Scan -> probe -> filter -> encode -> replace, one batch per ``run`` call.

    Per-item failures are counted and logged; only cancellation unwinds a run.
    """

    def __init__(self, library: Library, prober: Prober, invoker: EncodeInvoker,
                 replacer: Optional[SafeReplacer] = None,
                 query: Optional[LibraryQuery] = None):
        self.library = library
        self.prober = prober
        self.invoker = invoker
        self.replacer = replacer or SafeReplacer()
        self.query = query or LibraryQuery()
        self._lock = threading.Lock()

    def run(self, config: ConversionConfig, progress_sink: Optional[ProgressSink] = None,
            cancel: Optional[CancellationToken] = None) -> BatchSummary:
        cancel = cancel or CancellationToken()
        summary = BatchSummary()

        if not config.enable_scheduled_task:
            logger.info("Video conversion task is disabled in configuration")
            return summary

        logger.info("Starting video conversion task")
        try:
            eligible = self.scan(config, summary, cancel)
            summary.total_eligible = len(eligible)
            logger.info(f"Found {len(eligible)} videos eligible for conversion")

            if not eligible:
                summary.mark_complete()
                self._report(progress_sink, summary)
                return summary

            if config.max_concurrent_conversions > 1 and len(eligible) > 1:
                self._convert_parallel(eligible, config, summary, progress_sink, cancel)
            else:
                self._convert_sequential(eligible, config, summary, progress_sink, cancel)
        except ConversionCancelled as e:
            if e.summary is None:
                e.summary = summary
            logger.warn(f"Video conversion task cancelled after {summary.processed} of "
                        f"{summary.total_eligible} items")
            raise

        logger.result(f"Video conversion task completed. Processed: {summary.processed}, "
                      f"Success: {summary.succeeded}, Failed: {summary.failed}")
        return summary

    # Scan

    def scan(self, config: ConversionConfig, summary: BatchSummary,
             cancel: CancellationToken) -> List[VideoItem]:
        """Page through the library and return eligible items in library order.

        The total is read once; items appearing mid-scan are picked up next run.
        """
        eligible: List[VideoItem] = []
        total = self.library.count(self.query)
        logger.discovery(f"Scanning {total} library items")

        for offset in range(0, total, config.page_size):
            cancel.raise_if_cancelled(summary)
            page = self.library.list_page(self.query, offset, config.page_size)
            for item in page:
                cancel.raise_if_cancelled(summary)
                skipped = self._screen(item, config, cancel)
                if skipped is None:
                    eligible.append(item)
                else:
                    summary.record(skipped)
        return eligible

    def _screen(self, item: VideoItem, config: ConversionConfig,
                cancel: CancellationToken) -> Optional[ItemOutcome]:
        """None if the item should be converted, else the skip outcome."""
        if not item.path or not file_exists(item.path):
            logger.skip(f"{item.name}: file missing")
            return ItemOutcome(item, ConversionOutcome.SKIPPED_MISSING, "file missing")

        try:
            probe = self.prober.probe(item.path, item.container, cancel)
        except ConversionCancelled:
            raise
        except Exception as e:
            logger.warn(f"Failed to get media info for: {item.path}: {e}")
            return ItemOutcome(item, ConversionOutcome.SKIPPED_INELIGIBLE, f"probe failed: {e}")

        reason = eligibility_reason(probe, config)
        if reason:
            logger.skip(f"{item.name}: {reason}")
            return ItemOutcome(item, ConversionOutcome.SKIPPED_INELIGIBLE, reason)
        return None

    # Convert

    def _convert_sequential(self, eligible, config, summary, progress_sink, cancel):
        for item in eligible:
            cancel.raise_if_cancelled(summary)
            outcome = self.process_item(item, config, cancel)
            self._finish(outcome, summary, progress_sink)

    def _convert_parallel(self, eligible, config, summary, progress_sink, cancel):
        workers = min(config.max_concurrent_conversions, len(eligible))
        logger.info(f"Converting with up to {workers} concurrent encodes")

        def run_one(item):
            if cancel.is_cancelled():
                return None
            return self.process_item(item, config, cancel)

        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(run_one, item) for item in eligible]
            for future in concurrent.futures.as_completed(futures):
                try:
                    outcome = future.result()
                except ConversionCancelled:
                    continue
                if outcome is not None:
                    self._finish(outcome, summary, progress_sink)
        cancel.raise_if_cancelled(summary)

    def process_item(self, item: VideoItem, config: ConversionConfig,
                     cancel: CancellationToken) -> ItemOutcome:
        """Convert one eligible item; every error except cancellation becomes FAILED."""
        try:
            logger.info(f"Processing: {item.path}")
            outcome = self._convert_item(item, config, cancel)
        except ConversionCancelled:
            raise
        except Exception as e:
            logger.error(f"Error converting video: {item.path}: {e}")
            return ItemOutcome(item, ConversionOutcome.FAILED, str(e))

        if outcome.outcome is ConversionOutcome.CONVERTED:
            logger.info(f"Successfully converted: {item.path}")
        else:
            logger.warn(f"Failed to convert: {item.path} ({outcome.reason})")
        return outcome

    def _convert_item(self, item: VideoItem, config: ConversionConfig,
                      cancel: CancellationToken) -> ItemOutcome:
        output = new_output_path(config.scratch_dir)
        keep_output = False
        try:
            outcome = self._encode_and_place(item, output, config, cancel)
            keep_output = outcome.outcome is ConversionOutcome.CONVERTED and not config.replace_original
            return outcome
        except ReplacementError:
            # Rollback failed; leave every remaining copy where it is
            keep_output = True
            raise
        finally:
            if not keep_output and output.exists():
                remove_file(output, "not kept")

    def _encode_and_place(self, item: VideoItem, output: Path, config: ConversionConfig,
                          cancel: CancellationToken) -> ItemOutcome:
        # Libraries may hand out plain string paths
        source = Path(item.path)
        result = self.invoker.encode(source, output, config, cancel)
        if not result.ok:
            return ItemOutcome(item, ConversionOutcome.FAILED,
                               f"encoder exited with {result.exit_code}")

        self._log_savings(source, output)

        if config.verify_output:
            problem = self._verify_output(output, cancel)
            if problem:
                return ItemOutcome(item, ConversionOutcome.FAILED, problem)

        if not config.replace_original:
            logger.info(f"Converted file saved to: {output}")
            return ItemOutcome(item, ConversionOutcome.CONVERTED, output_path=output)

        replaced = self.replacer.replace(source, output)
        if not replaced.ok:
            return ItemOutcome(item, ConversionOutcome.FAILED, replaced.error)

        try:
            self.library.refresh_metadata(item)
        except Exception as e:
            logger.warn(f"Converted {source} but library refresh failed: {e}")
        return ItemOutcome(item, ConversionOutcome.CONVERTED, output_path=source)

    def _verify_output(self, output: Path, cancel: CancellationToken) -> str:
        """Probe the converted file before it may replace anything."""
        try:
            probe = self.prober.probe(output, output.suffix.lstrip('.'), cancel)
        except ConversionCancelled:
            raise
        except Exception as e:
            logger.error(f"Converted output failed verification: {output}: {e}")
            return f"output verification failed: {e}"
        if not probe.has_video:
            logger.error(f"Converted output has no video stream: {output}")
            return "output has no video stream"
        return ""

    @staticmethod
    def _log_savings(original: Path, converted: Path):
        try:
            original_size = original.stat().st_size
            new_size = converted.stat().st_size
        except OSError as e:
            logger.debug(f"Could not stat files for size report: {e}")
            return
        savings = (original_size - new_size) * 100.0 / original_size if original_size else 0.0
        logger.info(f"Conversion complete. Original: {format_size(original_size)}, "
                    f"New: {format_size(new_size)}, Savings: {savings:.1f}%")

    # Reporting

    def _finish(self, outcome: ItemOutcome, summary: BatchSummary,
                progress_sink: Optional[ProgressSink]):
        with self._lock:
            summary.record(outcome)
            self._report(progress_sink, summary)

    @staticmethod
    def _report(progress_sink: Optional[ProgressSink], summary: BatchSummary):
        if progress_sink is not None:
            progress_sink(summary.progress)
