"""
Centralized logging utilities for space_saver

Provides consistent logging patterns with configurable debug levels:
- [INFO] for general information
- [WARN] for warnings
- [ERROR] for errors
- [RESULT] for final results
- [DEBUG] for debug information
- [DISCOVERY] for library scanning
- [ENCODER] / [CMD] for encoder setup and command lines
- [REPLACE] for in-place replacement transactions
- [SKIP] for items left alone
- [CLEANUP] for cleanup operations

Usage:
    from space_saver.utils.logging import get_logger, set_debug_mode

    set_debug_mode(True)  # Enable debug messages

    logger = get_logger("job_processor")
    logger.info("This is an info message")
    logger.debug("This is a debug message")  # Only shows if debug enabled
    logger.replace("Original file replaced")
"""

import os
from enum import Enum
from typing import Optional

from tqdm import tqdm

# Global logging configuration
_DEBUG_ENABLED = os.getenv('DEBUG', '').lower() in ('1', 'true', 'yes')
_QUIET_MODE = False
_LOG_LEVEL = "INFO"


class LogLevel(Enum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3


_LEVELS = {
    "DEBUG": LogLevel.DEBUG,
    "INFO": LogLevel.INFO,
    "WARN": LogLevel.WARN,
    "ERROR": LogLevel.ERROR,
}


def set_debug_mode(enabled: bool):
    """Enable or disable debug mode globally"""
    global _DEBUG_ENABLED
    _DEBUG_ENABLED = enabled


def set_quiet_mode(enabled: bool):
    """Enable or disable quiet mode (suppress INFO and DEBUG messages)"""
    global _QUIET_MODE
    _QUIET_MODE = enabled


def set_log_level(level: str):
    """Set the global log level: DEBUG, INFO, WARN, ERROR"""
    global _LOG_LEVEL
    level = level.upper()
    if level not in _LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    _LOG_LEVEL = level


def _emit(line: str):
    # tqdm.write keeps active progress bars intact
    tqdm.write(line)


class Logger:
    """Centralized logger with consistent formatting and configurable output"""

    def __init__(self, module_name: str = ""):
        self.module_name = module_name
        self.prefix = f"[{module_name}] " if module_name else ""

    def _should_log(self, level: LogLevel) -> bool:
        if _QUIET_MODE and level in (LogLevel.DEBUG, LogLevel.INFO):
            return False
        current_level = _LEVELS.get(_LOG_LEVEL, LogLevel.INFO)
        return level.value >= current_level.value

    def _log(self, tag: str, message: str, level: LogLevel):
        if self._should_log(level):
            _emit(f"[{tag}] {self.prefix}{message}")

    def debug(self, message: str):
        """Log debug message (only if debug mode enabled)"""
        if _DEBUG_ENABLED:
            self._log("DEBUG", message, LogLevel.DEBUG)

    def info(self, message: str):
        self._log("INFO", message, LogLevel.INFO)

    def warn(self, message: str):
        self._log("WARN", message, LogLevel.WARN)

    def error(self, message: str):
        self._log("ERROR", message, LogLevel.ERROR)

    def result(self, message: str):
        self._log("RESULT", message, LogLevel.INFO)

    # Domain-specific logging methods
    def discovery(self, message: str):
        """Log library scanning message"""
        self._log("DISCOVERY", message, LogLevel.INFO)

    def encoder(self, message: str):
        """Log encoder setup message"""
        self._log("ENCODER", message, LogLevel.INFO)

    def cmd(self, message: str):
        """Log command execution message"""
        if _DEBUG_ENABLED:
            self._log("CMD", message, LogLevel.DEBUG)

    def replace(self, message: str):
        """Log replacement transaction message"""
        self._log("REPLACE", message, LogLevel.INFO)

    def skip(self, message: str):
        """Log skipped item (debug only, skips are routine)"""
        if _DEBUG_ENABLED:
            self._log("SKIP", message, LogLevel.DEBUG)

    def cleanup(self, message: str):
        """Log cleanup operation"""
        self._log("CLEANUP", message, LogLevel.INFO)


def get_logger(module_name: str = "") -> Logger:
    """Get a logger instance for a module"""
    return Logger(module_name)


def create_progress_bar(total: Optional[float] = None, desc: str = "", unit: str = "it",
                        position: Optional[int] = None, leave: bool = True) -> tqdm:
    """Create a progress bar with consistent styling"""
    return tqdm(total=total, desc=desc, unit=unit, position=position, leave=leave,
                disable=_QUIET_MODE)


def print_section_header(title: str, width: int = 90):
    """Print a section header with consistent formatting"""
    if _QUIET_MODE:
        return
    _emit("=" * width)
    _emit(title)
    _emit("=" * width)


def format_duration(seconds: float) -> str:
    """Format duration in seconds to a human-readable string"""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{seconds/60:.1f}m"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


def format_size(bytes_size: int) -> str:
    """Format file size in bytes to human-readable string"""
    size = float(bytes_size)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.1f}{unit}"
        size /= 1024.0
    return f"{size:.1f}PB"
