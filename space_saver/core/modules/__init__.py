"""Building blocks of the conversion pipeline."""

from .analysis.eligibility import is_eligible
from .conversion_config import ConversionConfig, EncodePreset, MinimumResolution
from .models import BatchSummary, ConversionOutcome, ItemOutcome, StreamProbe, VideoItem
from .processing.file_manager import SafeReplacer
from .processing.job_processor import ConversionPipeline
from .processing.transcoding_engine import EncodeInvoker, EncodeResult

__all__ = [
    "is_eligible",
    "ConversionConfig",
    "EncodePreset",
    "MinimumResolution",
    "BatchSummary",
    "ConversionOutcome",
    "ItemOutcome",
    "StreamProbe",
    "VideoItem",
    "SafeReplacer",
    "ConversionPipeline",
    "EncodeInvoker",
    "EncodeResult",
]
