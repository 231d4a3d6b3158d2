"""Feature extraction configuration.

Defaults:
- Mel filter bank: 40 filters, 500 Hz - 8 kHz
- Cepstrum: type-II DCT, orthonormal scaling, all 40 coefficients kept
- Framing: 512-sample Hann window, 256-sample hop, mean over frames
"""

from dataclasses import dataclass
from typing import Optional

from song_classifier.audio.spectrum import validate_window
from song_classifier.errors import InvalidRange

AGGREGATES = frozenset({"mean"})


@dataclass(frozen=True)
class FeatureConfig:
    """MFCC extraction parameters shared by every stage of the pipeline."""

    # Mel filter bank
    n_filters: int = 40
    fmin: float = 500.0
    fmax: Optional[float] = 8000.0  # None = Nyquist of the buffer

    # Cepstrum; None keeps all n_filters coefficients
    n_coefficients: Optional[int] = None

    # Framing; frame_length=None analyzes the whole buffer as one window
    frame_length: Optional[int] = 512
    hop_length: int = 256
    window: Optional[str] = "hann"
    aggregate: str = "mean"

    def __post_init__(self) -> None:
        if self.n_filters < 1:
            raise InvalidRange(f"n_filters must be >= 1, got {self.n_filters}")
        if self.fmin < 0:
            raise InvalidRange(f"fmin must be >= 0, got {self.fmin}")
        if self.fmax is not None and self.fmin >= self.fmax:
            raise InvalidRange(
                f"fmin ({self.fmin}) must be less than fmax ({self.fmax})"
            )
        if self.n_coefficients is not None and not 1 <= self.n_coefficients <= self.n_filters:
            raise InvalidRange(
                f"n_coefficients must be in [1, {self.n_filters}], got {self.n_coefficients}"
            )
        if self.frame_length is not None:
            if self.frame_length < 1:
                raise InvalidRange(f"frame_length must be >= 1, got {self.frame_length}")
            if not 1 <= self.hop_length <= self.frame_length:
                raise InvalidRange(
                    f"hop_length must be in [1, frame_length], got {self.hop_length}"
                )
        validate_window(self.window)
        if self.aggregate not in AGGREGATES:
            raise InvalidRange(
                f"Unknown aggregate {self.aggregate!r}, valid options: {sorted(AGGREGATES)}"
            )

    @property
    def coefficients(self) -> int:
        """Length of the feature vector."""
        return self.n_coefficients if self.n_coefficients is not None else self.n_filters

    def resolve_fmax(self, sample_rate: float) -> float:
        """Upper filter edge in Hz for a given sample rate."""
        return float(self.fmax) if self.fmax is not None else sample_rate / 2


DEFAULT_CONFIG = FeatureConfig()
"""Framed extraction: 40 filters, 500-8000 Hz, Hann 512/256, mean over frames."""

SOURCE_CONFIG = FeatureConfig(frame_length=None, window=None)
"""Whole buffer as a single un-windowed analysis window."""
