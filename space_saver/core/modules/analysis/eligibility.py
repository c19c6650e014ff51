"""
Eligibility policy: decide whether a probed video is worth converting.

Pure functions only. Safe to call from any thread, any number of times.
"""

from ..conversion_config import ConversionConfig, MinimumResolution
from ..models import StreamProbe

_THRESHOLDS = {
    MinimumResolution.P720: 720,
    MinimumResolution.P1080: 1080,
    MinimumResolution.P4K: 2160,
}
_DEFAULT_THRESHOLD = 720


def resolution_threshold(min_resolution) -> int:
    """Pixel height required by a resolution tier; unknown tiers fall back to 720."""
    return _THRESHOLDS.get(min_resolution, _DEFAULT_THRESHOLD)


def is_codec_excluded(codec, excluded_codecs) -> bool:
    if not codec:
        return False
    codec = codec.lower()
    return any(codec == excluded.lower() for excluded in excluded_codecs)


def eligibility_reason(probe: StreamProbe, config: ConversionConfig) -> str:
    """Explain the decision; an empty string means the item is eligible."""
    if probe is None or not probe.has_video:
        return "no video stream"
    if is_codec_excluded(probe.codec, config.excluded_codecs):
        return f"already {probe.codec.lower()}"
    threshold = resolution_threshold(config.min_resolution)
    height = probe.height or 0
    if height < threshold:
        return f"height {height}p below {threshold}p"
    return ""


def is_eligible(probe: StreamProbe, config: ConversionConfig) -> bool:
    """True if the probed stream should be re-encoded under ``config``."""
    return eligibility_reason(probe, config) == ""
