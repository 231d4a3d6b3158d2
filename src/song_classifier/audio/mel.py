"""Mel filter bank: triangular, area-normalized filters over spectral bins.

Filters are spaced uniformly on the HTK mel scale. Each filter's weights are
divided by their sum, so every filter integrates to 1; without this the
wider high-frequency filters would collect proportionally more energy.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional, Tuple

import numpy as np

from song_classifier.errors import DimensionMismatch, InvalidRange


def hz_to_mel(hz):
    return 2595 * np.log10(1 + np.asarray(hz, dtype=np.float64) / 700)


def mel_to_hz(mel):
    return 700 * (10 ** (np.asarray(mel, dtype=np.float64) / 2595) - 1)


class MelFilterBank:
    """Immutable bank of F triangular filters over an L-bin magnitude spectrum.

    Interface:
      bank = MelFilterBank(40, 16_000, 500.0, 8000.0, spectrum_length=257)
      energies = bank.apply(spectrum)   # (257,) -> (40,), or (T, 257) -> (T, 40)

    Filters are stored as their nonzero slices, so memory grows with L rather
    than F * L. Safe to share between threads: all arrays are read-only after
    construction.
    """

    def __init__(
        self,
        n_filters: int,
        sample_rate: float,
        fmin: float,
        fmax: float,
        spectrum_length: int,
        n_fft: Optional[int] = None,
    ):
        """
        Args:
            n_filters: Number of filters F (>= 1).
            sample_rate: Sample rate in Hz (> 0).
            fmin: Left edge of the first filter in Hz (>= 0).
            fmax: Right edge of the last filter in Hz (<= Nyquist).
            spectrum_length: Number of spectral bins L (>= 1).
            n_fft: Transform size the spectrum came from. Defaults to
                   2 * (L - 1); pass it explicitly for odd window lengths.
        """
        if n_filters < 1:
            raise InvalidRange(f"n_filters must be >= 1, got {n_filters}")
        if sample_rate <= 0:
            raise InvalidRange(f"sample_rate must be positive, got {sample_rate}")
        if spectrum_length < 1:
            raise InvalidRange(f"spectrum_length must be >= 1, got {spectrum_length}")
        nyquist = sample_rate / 2
        if fmin < 0:
            raise InvalidRange(f"fmin must be >= 0, got {fmin}")
        if fmin >= fmax:
            raise InvalidRange(f"fmin ({fmin}) must be less than fmax ({fmax})")
        if fmax > nyquist:
            raise InvalidRange(f"fmax ({fmax}) exceeds the Nyquist frequency ({nyquist})")
        if n_fft is None:
            n_fft = 2 * (spectrum_length - 1)
        if n_fft // 2 + 1 != spectrum_length:
            raise DimensionMismatch(
                f"n_fft={n_fft} yields {n_fft // 2 + 1} bins, not spectrum_length={spectrum_length}"
            )

        self.n_filters = int(n_filters)
        self.sample_rate = float(sample_rate)
        self.fmin = float(fmin)
        self.fmax = float(fmax)
        self.spectrum_length = int(spectrum_length)
        self.n_fft = int(n_fft)

        mel_points = np.linspace(hz_to_mel(fmin), hz_to_mel(fmax), n_filters + 2)
        hz_points = mel_to_hz(mel_points)
        bin_points = np.rint(hz_points * self.n_fft / self.sample_rate).astype(int)
        bin_points = np.clip(bin_points, 0, spectrum_length - 1)

        # Each filter is nonzero only on bins [left, right]; store just that slice
        filters = []
        for i in range(n_filters):
            left, center, right = bin_points[i], bin_points[i + 1], bin_points[i + 2]
            bins = np.arange(left, right + 1)
            w = np.zeros(bins.size)
            if center > left:
                w[: center - left] = (bins[: center - left] - left) / (center - left)
            if right > center:
                w[center - left + 1 :] = (right - bins[center - left + 1 :]) / (right - center)
            w[center - left] = 1.0
            w /= w.sum()
            w.setflags(write=False)
            filters.append((int(left), w))

        hz_points.setflags(write=False)
        self._filters = tuple(filters)
        self._hz_points = hz_points
        self._supports = tuple(
            (int(bin_points[i]), int(bin_points[i + 1]), int(bin_points[i + 2]))
            for i in range(n_filters)
        )

    @property
    def filters(self) -> Tuple[Tuple[int, np.ndarray], ...]:
        """(start_bin, weights) per filter; weights are read-only and sum to 1."""
        return self._filters

    @property
    def weights(self) -> np.ndarray:
        """Dense (F, L) weight matrix, built on each call. Use for inspection only."""
        dense = np.zeros((self.n_filters, self.spectrum_length))
        for i, (start, w) in enumerate(self._filters):
            dense[i, start : start + w.size] = w
        dense.setflags(write=False)
        return dense

    @property
    def nbytes(self) -> int:
        """Memory held by the filter weights."""
        return sum(w.nbytes for _, w in self._filters)

    @property
    def supports(self) -> Tuple[Tuple[int, int, int], ...]:
        """(left, peak, right) bin indices per filter."""
        return self._supports

    @property
    def center_frequencies(self) -> np.ndarray:
        """Peak frequency of each filter in Hz (before bin rounding)."""
        return self._hz_points[1:-1]

    def nearest_filter(self, freq_hz: float) -> int:
        """Index of the filter whose center frequency is closest to freq_hz."""
        return int(np.argmin(np.abs(self.center_frequencies - freq_hz)))

    def apply(self, spectrum: np.ndarray) -> np.ndarray:
        """Weighted sum of magnitudes under each filter.

        Args:
            spectrum: (L,) or (n_frames, L) magnitude spectrum.

        Returns:
            (F,) or (n_frames, F) filter energies.
        """
        spectrum = np.asarray(spectrum, dtype=np.float64)
        if spectrum.ndim not in (1, 2) or spectrum.shape[-1] != self.spectrum_length:
            raise DimensionMismatch(
                f"Expected spectrum with {self.spectrum_length} bins, got shape {spectrum.shape}"
            )
        energies = np.empty(spectrum.shape[:-1] + (self.n_filters,))
        for i, (start, w) in enumerate(self._filters):
            energies[..., i] = spectrum[..., start : start + w.size] @ w
        return energies

    def __repr__(self) -> str:
        return (
            f"MelFilterBank(n_filters={self.n_filters}, sample_rate={self.sample_rate:g}, "
            f"fmin={self.fmin:g}, fmax={self.fmax:g}, spectrum_length={self.spectrum_length})"
        )


@lru_cache(maxsize=16)
def get_filter_bank(
    n_filters: int,
    sample_rate: float,
    fmin: float,
    fmax: float,
    spectrum_length: int,
    n_fft: Optional[int] = None,
) -> MelFilterBank:
    """Shared filter bank for one (parameters, sample rate, window size) key.

    Returned banks are read-only and may be used from several threads.
    Meant for fixed frame sizes; whole-buffer analysis builds banks directly
    so that every distinct file length does not stay cached.
    """
    return MelFilterBank(n_filters, sample_rate, fmin, fmax, spectrum_length, n_fft=n_fft)
