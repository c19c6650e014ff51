"""
Command-line host for space_saver.

Builds the configuration once, wires the concrete collaborators (directory
library, ffprobe prober, ffmpeg locator) and runs a single conversion batch
with a tqdm progress bar and Ctrl+C cancellation.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from ..config import build_conversion_config, get_config
from ..utils.logging import (
    create_progress_bar, get_logger, print_section_header, set_debug_mode, set_quiet_mode,
)
from .modules.analysis.media_utils import FfprobeProber
from .modules.conversion_config import ConversionConfig, EncodePreset
from .modules.exceptions import ConversionCancelled
from .modules.library.collaborators import DEFAULT_EXTENSIONS, LibraryQuery
from .modules.library.filesystem_library import FilesystemLibrary, split_extensions
from .modules.models import BatchSummary, ConversionOutcome
from .modules.processing.file_manager import SafeReplacer, scavenge_scratch_dir
from .modules.processing.job_processor import ConversionPipeline
from .modules.processing.transcoding_engine import EncodeInvoker, FfmpegLocator
from .modules.system.cancellation import CancellationToken, InterruptHandler

logger = get_logger("main")

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="space-saver",
        description="Re-encode a video library to HEVC to save space.",
    )
    parser.add_argument("library_root", type=Path, help="Directory to scan for videos")
    parser.add_argument("--min-resolution", choices=["720", "1080", "4k"],
                        help="Smallest source height worth converting (default: 720)")
    parser.add_argument("--exclude-codec", action="append", dest="excluded_codecs",
                        metavar="CODEC", help="Codec to leave alone; repeatable (default: hevc, av1)")
    parser.add_argument("--preset", choices=[p.value for p in EncodePreset],
                        help="x265 speed preset (default: medium)")
    parser.add_argument("--crf", type=int, help="Quality factor 0-51, lower is better (default: 23)")
    parser.add_argument("--replace-original", action="store_true", default=None,
                        help="Swap converted files in place of the originals")
    parser.add_argument("--max-concurrent", type=int, dest="max_concurrent_conversions",
                        help="Number of encodes to run at once (default: 1)")
    parser.add_argument("--scratch-dir", type=Path, help="Staging directory for converted output")
    parser.add_argument("--ffmpeg", dest="ffmpeg_path", help="Path to the ffmpeg executable")
    parser.add_argument("--ffprobe", dest="ffprobe_path", help="Path to the ffprobe executable")
    parser.add_argument("--verify-output", action="store_true", default=None,
                        help="Probe converted files before they replace anything")
    parser.add_argument("--extensions", default=",".join(DEFAULT_EXTENSIONS),
                        help="Comma-separated file extensions to scan")
    parser.add_argument("--clean-scratch", action="store_true",
                        help="Remove stale outputs from the scratch directory before starting")
    parser.add_argument("--scheduled", action="store_true",
                        help="Started by a scheduler (cron, systemd timer); honours enable_scheduled_task")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument("--quiet", action="store_true", help="Only warnings and errors")
    return parser


def resolve_settings(args: argparse.Namespace) -> dict:
    """Environment/.env settings with command-line overrides applied."""
    settings = get_config()
    for key in ("min_resolution", "preset", "crf", "replace_original",
                "max_concurrent_conversions", "scratch_dir", "ffmpeg_path",
                "ffprobe_path", "verify_output"):
        value = getattr(args, key)
        if value is not None:
            settings[key] = value
    if args.excluded_codecs:
        settings["excluded_codecs"] = args.excluded_codecs
    # enable_scheduled_task only gates runs started by a scheduler
    if not args.scheduled:
        settings["enable_scheduled_task"] = True
    return settings


def log_summary(summary: BatchSummary):
    print_section_header("SPACE SAVER SUMMARY")
    logger.result(f"Converted: {summary.succeeded}")
    logger.result(f"Failed: {summary.failed}")
    logger.result(f"Skipped (ineligible): {summary.skipped_ineligible}")
    logger.result(f"Skipped (missing): {summary.skipped_missing}")
    for outcome in summary.outcomes:
        if outcome.outcome is ConversionOutcome.FAILED:
            logger.result(f"  FAILED {outcome.item.name}: {outcome.reason}")


def run_batch(config: ConversionConfig, library, prober, locator,
              query: Optional[LibraryQuery] = None,
              cancel: Optional[CancellationToken] = None) -> BatchSummary:
    """Run one batch with a progress bar; ConversionCancelled propagates."""
    pipeline = ConversionPipeline(library, prober, EncodeInvoker(locator), SafeReplacer(), query)
    with create_progress_bar(total=100, desc="Converting", unit="%") as bar:
        def progress_sink(percent: float):
            bar.update(percent - bar.n)
        return pipeline.run(config, progress_sink, cancel)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    set_debug_mode(args.debug)
    set_quiet_mode(args.quiet)

    try:
        settings = resolve_settings(args)
        if settings.get("debug"):
            set_debug_mode(True)
        config = build_conversion_config(settings)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_USAGE

    if not args.library_root.is_dir():
        logger.error(f"Library root not found: {args.library_root}")
        return EXIT_USAGE

    if args.clean_scratch:
        removed = scavenge_scratch_dir(config.scratch_dir)
        logger.cleanup(f"Removed {removed} stale file(s) from {config.scratch_dir}")

    prober = FfprobeProber(settings["ffprobe_path"])
    library = FilesystemLibrary(args.library_root, on_refresh=prober.invalidate)
    locator = FfmpegLocator(settings["ffmpeg_path"])
    query = LibraryQuery(extensions=split_extensions(args.extensions))

    logger.info(f"Library: {args.library_root}")
    if config.replace_original:
        logger.info("Mode: replace originals in place")
    else:
        logger.info(f"Mode: keep originals, converted files go to {config.scratch_dir}")

    token = CancellationToken()
    try:
        with InterruptHandler(token):
            summary = run_batch(config, library, prober, locator, query, token)
    except ConversionCancelled as e:
        if e.summary is not None:
            log_summary(e.summary)
        logger.warn("Cancelled")
        return EXIT_CANCELLED

    log_summary(summary)
    return EXIT_FAILURES if summary.failed else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
