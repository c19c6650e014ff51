"""
File Processing Workflows Module

Owns the on-disk side of a conversion:
- The in-place replacement transaction (backup, promote, commit)
- Scratch directory housekeeping

Replacement protocol. At every observable point the original content exists
at either ``original`` or ``original.backup``:

    1. backup   original -> original.backup     failure: nothing changed
    2. promote  converted -> original           failure: restore backup
    3. commit   delete original.backup          failure: backup stays, logged
"""

import re
import shutil
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

from space_saver.utils.logging import get_logger
from ..exceptions import ReplacementError

logger = get_logger("file_manager")

BACKUP_SUFFIX = ".backup"
_SCRATCH_NAME = re.compile(r"^[0-9a-f]{32}\.mkv$")


@dataclass
class ReplaceResult:
    """Result of a replacement transaction."""
    ok: bool
    backup_path: Path
    error: str = ""


def backup_path_for(original: Path) -> Path:
    return original.with_name(original.name + BACKUP_SUFFIX)


class SafeReplacer:
    """Swaps a converted file into the original's location with rollback.

    Transactions on the same original path are serialized; different paths
    proceed in parallel.
    """

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, path: Path) -> threading.Lock:
        key = str(path.resolve())
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def replace(self, original_path: Path, new_path: Path) -> ReplaceResult:
        """
        Replace ``original_path`` with ``new_path``.

        Returns:
            ReplaceResult; ``ok`` is False when the original was left in place

        Raises:
            ReplacementError: promotion failed and the backup could not be restored
        """
        original = Path(original_path)
        new = Path(new_path)
        with self._lock_for(original):
            return self._replace(original, new)

    def _replace(self, original: Path, new: Path) -> ReplaceResult:
        backup = backup_path_for(original)

        if not new.is_file():
            return self._abort(backup, f"Converted file missing: {new}")
        if backup.exists():
            return self._abort(backup, f"Stale backup already present: {backup}")

        # 1. backup
        try:
            original.rename(backup)
        except OSError as e:
            return self._abort(backup, f"Could not back up {original}: {e}")

        # 2. promote (shutil.move copes with scratch dirs on another filesystem)
        try:
            shutil.move(str(new), str(original))
        except OSError as e:
            logger.error(f"Failed to replace original file, restoring backup: {e}")
            self._rollback(original, backup)
            return ReplaceResult(ok=False, backup_path=backup, error=f"Could not promote {new}: {e}")

        # 3. commit
        try:
            backup.unlink()
        except OSError as e:
            logger.warn(f"Replaced {original.name} but could not delete backup {backup}: {e}")

        logger.replace(f"Original file replaced: {original}")
        return ReplaceResult(ok=True, backup_path=backup)

    @staticmethod
    def _abort(backup: Path, message: str) -> ReplaceResult:
        logger.error(message)
        return ReplaceResult(ok=False, backup_path=backup, error=message)

    @staticmethod
    def _rollback(original: Path, backup: Path):
        try:
            if original.exists():
                original.unlink()
            backup.rename(original)
        except OSError as e:
            message = (f"Could not restore {original} from {backup}: {e}. "
                       f"Original content is still at {backup}")
            logger.error(message)
            raise ReplacementError(message, path=original, backup_path=backup) from e
        logger.replace(f"Restored original from backup: {original}")


def scavenge_scratch_dir(scratch_dir: Path, min_age_seconds: float = 0) -> int:
    """
    Remove stale converted outputs left in the scratch directory by earlier runs.

    Only files named like our own outputs (``<32 hex>.mkv``) are touched.

    Returns:
        Number of files removed
    """
    scratch_dir = Path(scratch_dir)
    if not scratch_dir.is_dir():
        return 0

    now = time.time()
    removed = 0
    for stale_file in scratch_dir.iterdir():
        if not stale_file.is_file() or not _SCRATCH_NAME.match(stale_file.name):
            continue
        try:
            if now - stale_file.stat().st_mtime < min_age_seconds:
                continue
            stale_file.unlink()
            removed += 1
            logger.cleanup(f"Removed stale: {stale_file.name}")
        except OSError as e:
            logger.warn(f"Could not remove {stale_file}: {e}")
    return removed
