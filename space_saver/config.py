"""Configuration management for space-saver."""

import os
from pathlib import Path
from typing import Optional, Dict, Any

from .core.modules.conversion_config import (
    ConversionConfig, DEFAULT_EXCLUDED_CODECS, DEFAULT_PAGE_SIZE,
)

ENV_PREFIX = "SPACE_SAVER_"

_TRUE_VALUES = ('true', '1', 'yes', 'on')
_FALSE_VALUES = ('false', '0', 'no', 'off', '')


def load_env_file(env_path: Optional[Path] = None) -> Dict[str, str]:
    """Load KEY=VALUE pairs from a .env file."""
    if env_path is None:
        # Look for .env in current directory, then in package directory
        candidates = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for candidate in candidates:
            if candidate.exists():
                env_path = candidate
                break

    env_vars = {}

    if env_path and env_path.exists():
        with open(env_path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#') and '=' in line:
                    key, value = line.split('=', 1)
                    env_vars[key.strip().lower()] = value.strip().strip('"').strip("'")

    return env_vars


def _setting(env_vars: Dict[str, str], key: str, default: str) -> str:
    """.env value, then SPACE_SAVER_<KEY> environment variable, then default."""
    if key in env_vars:
        return env_vars[key]
    return os.getenv(ENV_PREFIX + key.upper(), default)


def parse_bool(value, name: str = "value") -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


def get_config(env_path: Optional[Path] = None) -> Dict[str, Any]:
    """Get configuration from the .env file and SPACE_SAVER_* environment variables."""
    env_vars = load_env_file(env_path)

    config = {
        'min_resolution': _setting(env_vars, 'min_resolution', '720'),
        'excluded_codecs': _setting(env_vars, 'excluded_codecs', ",".join(DEFAULT_EXCLUDED_CODECS)),
        'preset': _setting(env_vars, 'preset', 'medium'),
        'crf': int(_setting(env_vars, 'crf', '23')),
        'replace_original': parse_bool(_setting(env_vars, 'replace_original', 'false'), 'replace_original'),
        'enable_scheduled_task': parse_bool(_setting(env_vars, 'enable_scheduled_task', 'true'),
                                            'enable_scheduled_task'),
        'max_concurrent_conversions': int(_setting(env_vars, 'max_concurrent_conversions', '1')),
        'scratch_dir': _setting(env_vars, 'scratch_dir', ''),
        'verify_output': parse_bool(_setting(env_vars, 'verify_output', 'false'), 'verify_output'),
        'page_size': int(_setting(env_vars, 'page_size', str(DEFAULT_PAGE_SIZE))),
        'ffmpeg_path': _setting(env_vars, 'ffmpeg_path', '') or None,
        'ffprobe_path': _setting(env_vars, 'ffprobe_path', 'ffprobe'),
        'debug': parse_bool(_setting(env_vars, 'debug', os.getenv('DEBUG', 'false')), 'debug'),
    }

    return config


def build_conversion_config(settings: Dict[str, Any]) -> ConversionConfig:
    """Turn a settings dict (see get_config) into a validated ConversionConfig."""
    kwargs = {
        'min_resolution': settings['min_resolution'],
        'excluded_codecs': settings['excluded_codecs'],
        'preset': settings['preset'],
        'crf': int(settings['crf']),
        'replace_original': parse_bool(settings['replace_original'], 'replace_original'),
        'enable_scheduled_task': parse_bool(settings['enable_scheduled_task'], 'enable_scheduled_task'),
        'max_concurrent_conversions': int(settings['max_concurrent_conversions']),
        'verify_output': parse_bool(settings.get('verify_output', False), 'verify_output'),
        'page_size': int(settings.get('page_size', DEFAULT_PAGE_SIZE)),
    }
    if settings.get('scratch_dir'):
        kwargs['scratch_dir'] = Path(settings['scratch_dir'])
    return ConversionConfig(**kwargs)
