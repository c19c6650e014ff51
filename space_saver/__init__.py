"""
Space Saver - batch re-encoding of a video library to HEVC to reclaim disk space.
"""

__version__ = "1.0.0"

from .config import get_config, load_env_file, build_conversion_config

__all__ = [
    "get_config",
    "load_env_file",
    "build_conversion_config",
]
