"""Unit tests for ConversionConfig and its enums."""

import dataclasses
import unittest
from pathlib import Path

from space_saver.core.modules.conversion_config import (
    ConversionConfig, EncodePreset, MinimumResolution, clamp_crf, normalize_codecs,
)


class TestCrfClamping(unittest.TestCase):

    def test_clamp_bounds(self):
        self.assertEqual(clamp_crf(70), 51)
        self.assertEqual(clamp_crf(-5), 0)
        self.assertEqual(clamp_crf(23), 23)
        self.assertEqual(clamp_crf(0), 0)
        self.assertEqual(clamp_crf(51), 51)

    def test_stored_value_kept_but_effective_value_clamped(self):
        config = ConversionConfig(crf=70)
        self.assertEqual(config.crf, 70)
        self.assertEqual(config.effective_crf, 51)
        self.assertEqual(ConversionConfig(crf=-5).effective_crf, 0)


class TestEnums(unittest.TestCase):

    def test_min_resolution_parse(self):
        self.assertIs(MinimumResolution.parse("720"), MinimumResolution.P720)
        self.assertIs(MinimumResolution.parse("1080p"), MinimumResolution.P1080)
        self.assertIs(MinimumResolution.parse("4K"), MinimumResolution.P4K)
        self.assertIs(MinimumResolution.parse("2160"), MinimumResolution.P4K)
        with self.assertRaises(ValueError):
            MinimumResolution.parse("480")

    def test_preset_parse_and_order(self):
        self.assertIs(EncodePreset.parse("SLOW"), EncodePreset.SLOW)
        self.assertLess(EncodePreset.ULTRAFAST.rank, EncodePreset.MEDIUM.rank)
        self.assertLess(EncodePreset.MEDIUM.rank, EncodePreset.VERYSLOW.rank)
        with self.assertRaises(ValueError):
            EncodePreset.parse("placebo")


class TestConversionConfig(unittest.TestCase):

    def test_defaults(self):
        config = ConversionConfig()
        self.assertIs(config.min_resolution, MinimumResolution.P720)
        self.assertEqual(config.excluded_codecs, ("hevc", "av1"))
        self.assertIs(config.preset, EncodePreset.MEDIUM)
        self.assertEqual(config.crf, 23)
        self.assertFalse(config.replace_original)
        self.assertTrue(config.enable_scheduled_task)
        self.assertEqual(config.max_concurrent_conversions, 1)
        self.assertEqual(config.page_size, 100)
        self.assertEqual(config.scratch_dir.name, "space-saver")

    def test_loose_input_is_normalised(self):
        config = ConversionConfig(min_resolution="1080", preset="slow",
                                  excluded_codecs=" HEVC, av1,hevc ", scratch_dir="/tmp/x")
        self.assertIs(config.min_resolution, MinimumResolution.P1080)
        self.assertIs(config.preset, EncodePreset.SLOW)
        self.assertEqual(config.excluded_codecs, ("hevc", "av1"))
        self.assertEqual(config.scratch_dir, Path("/tmp/x"))

    def test_immutable(self):
        config = ConversionConfig()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            config.crf = 10

    def test_invalid_limits(self):
        with self.assertRaises(ValueError):
            ConversionConfig(max_concurrent_conversions=0)
        with self.assertRaises(ValueError):
            ConversionConfig(page_size=0)

    def test_normalize_codecs_list(self):
        self.assertEqual(normalize_codecs(["VP9", "", "vp9", "Av1"]), ("vp9", "av1"))


if __name__ == '__main__':
    unittest.main()
