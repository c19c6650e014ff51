"""
System utilities for space_saver.

This module provides system-level utilities including:
- Subprocess execution with consistent error handling and optional cancellation
- File existence checks that are stable patch points for tests
- Best-effort file removal
"""

import os
import shlex
import subprocess
import time
from pathlib import Path
from typing import Optional

from space_saver.utils.logging import get_logger
from ..exceptions import ConversionCancelled
from .cancellation import CancellationToken

logger = get_logger("system_utils")


def file_exists(path: "str | os.PathLike[str] | None") -> bool:
    """Existence check that treats an empty path or an OSError as missing."""
    if not path:
        return False
    try:
        return Path(path).is_file()
    except OSError:
        return False


def remove_file(path: Path, reason: str = "") -> bool:
    """
    Delete a file, logging instead of raising on failure.

    Returns:
        True if the file is gone afterwards, False if it could not be removed
    """
    try:
        if path.exists():
            path.unlink()
            logger.cleanup(f"removed {path}{f' ({reason})' if reason else ''}")
        return True
    except OSError as e:
        logger.warn(f"Could not remove {path}: {e}")
        return False


def run_command(cmd: list[str], timeout: Optional[float] = 30, capture_output: bool = True,
                text: bool = True, check: bool = False,
                cancel: Optional[CancellationToken] = None,
                poll_interval: float = 0.2) -> subprocess.CompletedProcess:
    """
    Standardized subprocess command runner with consistent error handling.

    Args:
        cmd: Command as list of strings
        timeout: Timeout in seconds (default: 30)
        capture_output: Whether to capture stdout/stderr (default: True)
        text: Whether to use text mode (default: True)
        check: Whether to raise exception on non-zero exit (default: False)
        cancel: Token polled every ``poll_interval`` seconds; the process is
            killed and ConversionCancelled raised once it trips

    Returns:
        CompletedProcess object
    """
    logger.cmd(" ".join(shlex.quote(c) for c in cmd))
    try:
        if cancel is not None:
            return _run_cancellable(cmd, timeout, capture_output, text, check, cancel, poll_interval)
        return subprocess.run(
            cmd,
            capture_output=capture_output,
            text=text,
            timeout=timeout,
            check=check
        )
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: {' '.join(cmd[:3])}...")
        raise
    except subprocess.CalledProcessError as e:
        logger.debug(f"Command failed: {' '.join(cmd[:3])}... (exit code: {e.returncode})")
        raise


def _run_cancellable(cmd, timeout, capture_output, text, check, cancel: CancellationToken,
                     poll_interval: float) -> subprocess.CompletedProcess:
    pipe = subprocess.PIPE if capture_output else None
    deadline = None if timeout is None else time.monotonic() + timeout
    with subprocess.Popen(cmd, stdin=subprocess.DEVNULL, stdout=pipe, stderr=pipe,
                          text=text) as process:
        while True:
            try:
                stdout, stderr = process.communicate(timeout=poll_interval)
                break
            except subprocess.TimeoutExpired:
                if cancel.is_cancelled():
                    process.kill()
                    process.communicate()
                    raise ConversionCancelled()
                if deadline is not None and time.monotonic() >= deadline:
                    process.kill()
                    process.communicate()
                    raise subprocess.TimeoutExpired(cmd, timeout)

    result = subprocess.CompletedProcess(cmd, process.returncode, stdout, stderr)
    if check:
        result.check_returncode()
    return result
