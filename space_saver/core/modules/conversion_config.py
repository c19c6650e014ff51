"""
ConversionConfig: the immutable per-run configuration.

The host builds one instance at startup (see space_saver.config) and passes it
into every entry point. Nothing in the core reads ambient configuration.
"""

import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Tuple

CRF_MIN = 0
CRF_MAX = 51
DEFAULT_PAGE_SIZE = 100
DEFAULT_EXCLUDED_CODECS = ("hevc", "av1")
TARGET_ENCODER = "libx265"


class MinimumResolution(Enum):
    """Minimum source resolution tier worth converting."""
    P720 = "720"
    P1080 = "1080"
    P4K = "4k"

    @classmethod
    def parse(cls, value) -> "MinimumResolution":
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().rstrip("p")
        aliases = {"720": cls.P720, "1080": cls.P1080, "4k": cls.P4K, "2160": cls.P4K}
        if text not in aliases:
            raise ValueError(f"Unknown minimum resolution: {value!r} (expected 720, 1080 or 4k)")
        return aliases[text]


class EncodePreset(Enum):
    """x265 speed presets, fastest/lowest compression first."""
    ULTRAFAST = "ultrafast"
    SUPERFAST = "superfast"
    VERYFAST = "veryfast"
    FASTER = "faster"
    FAST = "fast"
    MEDIUM = "medium"
    SLOW = "slow"
    SLOWER = "slower"
    VERYSLOW = "veryslow"

    @classmethod
    def parse(cls, value) -> "EncodePreset":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown preset: {value!r} (expected one of {names})") from None

    @property
    def rank(self) -> int:
        """Position in the speed/compression ordering (0 = fastest)."""
        return list(EncodePreset).index(self)


def clamp_crf(crf: int) -> int:
    """Clamp a quality factor into the encoder's accepted range."""
    return max(CRF_MIN, min(CRF_MAX, int(crf)))


def _default_scratch_dir() -> Path:
    return Path(tempfile.gettempdir()) / "space-saver"


@dataclass(frozen=True)
class ConversionConfig:
    """Fully-populated configuration for one conversion run."""
    min_resolution: MinimumResolution = MinimumResolution.P720
    excluded_codecs: Tuple[str, ...] = DEFAULT_EXCLUDED_CODECS
    preset: EncodePreset = EncodePreset.MEDIUM
    crf: int = 23
    replace_original: bool = False
    enable_scheduled_task: bool = True
    max_concurrent_conversions: int = 1
    scratch_dir: Path = field(default_factory=_default_scratch_dir)
    verify_output: bool = False
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        # Normalise loosely-typed input so the frozen instance is always well-formed
        object.__setattr__(self, "min_resolution", MinimumResolution.parse(self.min_resolution))
        object.__setattr__(self, "preset", EncodePreset.parse(self.preset))
        object.__setattr__(self, "excluded_codecs", normalize_codecs(self.excluded_codecs))
        object.__setattr__(self, "scratch_dir", Path(self.scratch_dir))
        if self.max_concurrent_conversions < 1:
            raise ValueError("max_concurrent_conversions must be at least 1")
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")

    @property
    def effective_crf(self) -> int:
        """The CRF actually handed to the encoder."""
        return clamp_crf(self.crf)


def normalize_codecs(codecs: Iterable[str]) -> Tuple[str, ...]:
    """Lowercase, strip and de-duplicate codec identifiers, keeping order."""
    if isinstance(codecs, str):
        codecs = codecs.split(",")
    seen = []
    for codec in codecs:
        name = str(codec).strip().lower()
        if name and name not in seen:
            seen.append(name)
    return tuple(seen)
