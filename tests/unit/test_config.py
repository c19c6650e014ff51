"""
Unit tests for configuration loading.

Tests .env parsing, environment overrides and conversion into ConversionConfig.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from space_saver.config import build_conversion_config, get_config, load_env_file, parse_bool
from space_saver.core.modules.conversion_config import EncodePreset, MinimumResolution


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.env_file = self.temp_dir / ".env"
        self.no_env = self.temp_dir / "absent.env"

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        settings = get_config(self.no_env)
        self.assertEqual(settings['min_resolution'], '720')
        self.assertEqual(settings['excluded_codecs'], 'hevc,av1')
        self.assertEqual(settings['crf'], 23)
        self.assertFalse(settings['replace_original'])
        self.assertTrue(settings['enable_scheduled_task'])
        self.assertEqual(settings['max_concurrent_conversions'], 1)
        self.assertIsNone(settings['ffmpeg_path'])
        self.assertEqual(settings['ffprobe_path'], 'ffprobe')
        self.assertFalse(settings['debug'])

    def test_load_env_file(self):
        self.env_file.write_text(
            "# comment\n"
            "PRESET=slow\n"
            "FFMPEG_PATH=\"/opt/ffmpeg/bin/ffmpeg\"\n"
            "not a setting\n"
        )
        env_vars = load_env_file(self.env_file)
        self.assertEqual(env_vars, {'preset': 'slow', 'ffmpeg_path': '/opt/ffmpeg/bin/ffmpeg'})

    @patch.dict(os.environ, {'SPACE_SAVER_PRESET': 'fast', 'SPACE_SAVER_CRF': '28'}, clear=True)
    def test_env_file_wins_over_environment(self):
        self.env_file.write_text("PRESET=slow\n")
        settings = get_config(self.env_file)
        self.assertEqual(settings['preset'], 'slow')
        self.assertEqual(settings['crf'], 28)

    @patch.dict(os.environ, {'SPACE_SAVER_REPLACE_ORIGINAL': 'maybe'}, clear=True)
    def test_invalid_boolean(self):
        with self.assertRaises(ValueError):
            get_config(self.no_env)

    def test_parse_bool(self):
        self.assertTrue(parse_bool("Yes"))
        self.assertFalse(parse_bool("off"))
        self.assertTrue(parse_bool(True))

    @patch.dict(os.environ, {
        'SPACE_SAVER_MIN_RESOLUTION': '1080p',
        'SPACE_SAVER_EXCLUDED_CODECS': 'HEVC, vp9',
        'SPACE_SAVER_MAX_CONCURRENT_CONVERSIONS': '3',
        'SPACE_SAVER_SCRATCH_DIR': '/var/tmp/ss',
    }, clear=True)
    def test_build_conversion_config(self):
        config = build_conversion_config(get_config(self.no_env))
        self.assertIs(config.min_resolution, MinimumResolution.P1080)
        self.assertEqual(config.excluded_codecs, ('hevc', 'vp9'))
        self.assertIs(config.preset, EncodePreset.MEDIUM)
        self.assertEqual(config.max_concurrent_conversions, 3)
        self.assertEqual(config.scratch_dir, Path('/var/tmp/ss'))

    @patch.dict(os.environ, {'SPACE_SAVER_PRESET': 'placebo'}, clear=True)
    def test_invalid_preset_rejected(self):
        with self.assertRaises(ValueError):
            build_conversion_config(get_config(self.no_env))


if __name__ == '__main__':
    unittest.main()
