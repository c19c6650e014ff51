"""
Custom exceptions for space_saver.

Per-item problems are reported as outcomes, not exceptions. The types here
cover the few cases that must travel further than a single item.
"""


class SpaceSaverError(Exception):
    """Base exception for space_saver errors"""
    def __init__(self, message, path=None):
        self.message = message
        self.path = path
        super().__init__(self.message)


class ProbeError(SpaceSaverError):
    """Stream metadata could not be extracted from a file."""
    def __init__(self, message, path=None, stderr=None):
        super().__init__(message, path)
        self.stderr = stderr


class ReplacementError(SpaceSaverError):
    """A replacement could not be rolled back; content may be inconsistent on disk."""
    def __init__(self, message, path=None, backup_path=None):
        super().__init__(message, path)
        self.backup_path = backup_path


class ConversionCancelled(SpaceSaverError):
    """Raised when the cancellation token is observed; carries the partial summary."""
    def __init__(self, message="Conversion batch cancelled", summary=None):
        super().__init__(message)
        self.summary = summary
