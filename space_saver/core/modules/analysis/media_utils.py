"""
Media utilities for space_saver.

This module provides the ffprobe-backed Prober collaborator:
- Primary video stream codec and height extraction
- A small result cache keyed on path, size and mtime
- Cancellation of a running ffprobe through the batch's CancellationToken
"""

import json
import subprocess
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

from space_saver.utils.logging import get_logger
from ..exceptions import ProbeError
from ..models import StreamProbe
from ..system.cancellation import CancellationToken
from ..system.system_utils import run_command

logger = get_logger("media_utils")

PROBE_TIMEOUT = 30


def build_probe_cmd(ffprobe_path: str, file: Path) -> list[str]:
    return [
        ffprobe_path, "-v", "error",
        "-select_streams", "v:0",
        "-show_entries", "stream=codec_type,codec_name,height",
        "-of", "json",
        str(file),
    ]


def parse_probe_output(output: str) -> StreamProbe:
    """Turn ffprobe JSON into a StreamProbe. Raises ValueError on malformed output."""
    data = json.loads(output or "{}")
    if not isinstance(data, dict):
        raise ValueError("ffprobe output is not a JSON object")
    streams = [s for s in data.get("streams", []) if s.get("codec_type", "video") == "video"]
    if not streams:
        return StreamProbe.no_video()

    stream = streams[0]
    codec = (stream.get("codec_name") or "").strip().lower() or None
    if codec == "unknown":
        codec = None
    height = stream.get("height")
    try:
        height = int(height) if height is not None else None
    except (TypeError, ValueError):
        height = None
    return StreamProbe(codec=codec, height=height)


class FfprobeProber:
    """Prober collaborator backed by the ffprobe executable."""

    def __init__(self, ffprobe_path: str = "ffprobe", timeout: float = PROBE_TIMEOUT,
                 poll_interval: float = 0.2):
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._cache: Dict[str, Tuple[Tuple[int, float], StreamProbe]] = {}
        self._lock = threading.Lock()

    def probe(self, path: Path, container: Optional[str] = None,
              cancel: Optional[CancellationToken] = None) -> StreamProbe:
        """
        Probe the primary video stream of ``path``.

        ``container`` is the library's declared container type; ffprobe sniffs
        the format itself, so it is only used in diagnostics.

        Raises:
            ProbeError: ffprobe failed, timed out, or produced unreadable output
            ConversionCancelled: ``cancel`` tripped while ffprobe was running
        """
        path = Path(path)
        try:
            stat = path.stat()
        except OSError as e:
            raise ProbeError(f"Cannot stat {path}: {e}", path=path) from e
        signature = (stat.st_size, stat.st_mtime)

        with self._lock:
            cached = self._cache.get(str(path))
        if cached and cached[0] == signature:
            return cached[1]

        cmd = build_probe_cmd(self.ffprobe_path, path)
        try:
            result = run_command(cmd, timeout=self.timeout, cancel=cancel,
                                 poll_interval=self.poll_interval)
        except (OSError, subprocess.SubprocessError) as e:
            raise ProbeError(f"ffprobe could not run on {path.name}: {e}", path=path) from e

        if result.returncode != 0:
            raise ProbeError(
                f"ffprobe exited with {result.returncode} for {path.name}"
                f"{f' (declared {container})' if container else ''}",
                path=path, stderr=result.stderr,
            )
        try:
            probe = parse_probe_output(result.stdout)
        except ValueError as e:
            raise ProbeError(f"Unreadable ffprobe output for {path.name}: {e}", path=path) from e

        logger.debug(f"{path.name}: codec={probe.codec} height={probe.height} video={probe.has_video}")
        with self._lock:
            self._cache[str(path)] = (signature, probe)
        return probe

    def invalidate(self, path: Path):
        with self._lock:
            self._cache.pop(str(path), None)
