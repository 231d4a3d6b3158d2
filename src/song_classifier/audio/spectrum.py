"""Spectral analysis: framing and magnitude spectra of real signals."""

from typing import Optional

import numpy as np
from scipy.fft import rfft
from scipy.signal import get_window

from song_classifier.errors import InvalidInputLength, InvalidRange

# Window names that mean "no taper"
_RECTANGULAR = (None, "boxcar", "rectangular", "none")


def _window(name: Optional[str], length: int) -> Optional[np.ndarray]:
    if name in _RECTANGULAR:
        return None
    # Periodic (fftbins=True) window, as used for spectral analysis
    try:
        return get_window(name, length, fftbins=True)
    except ValueError as exc:
        raise InvalidRange(f"Unknown window {name!r}: {exc}") from exc


def validate_window(name: Optional[str]) -> None:
    """Raise InvalidRange unless name is a scipy.signal window or a no-taper alias."""
    _window(name, 8)


def _as_signal(samples: np.ndarray) -> np.ndarray:
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim != 1:
        raise InvalidInputLength(f"Expected a 1-D sample array, got shape {x.shape}")
    if x.size == 0:
        raise InvalidInputLength("Cannot analyze an empty sample array")
    return x


def magnitude_spectrum(samples: np.ndarray, window: Optional[str] = None) -> np.ndarray:
    """Magnitude spectrum of one analysis window.

    Any positive length N is accepted (scipy's general real FFT, no padding
    or truncation). Phase is discarded.

    Args:
        samples: (N,) real time-domain samples.
        window: scipy.signal window name applied before the transform
                (e.g. "hann"). None applies no taper, which leaks energy
                into neighbouring bins.

    Returns:
        (N // 2 + 1,) non-negative magnitudes.
    """
    return frame_spectra(_as_signal(samples)[np.newaxis, :], window=window)[0]


def frame_signal(samples: np.ndarray, frame_length: int, hop_length: int) -> np.ndarray:
    """Split a signal into overlapping frames.

    The tail is zero-padded so no sample is dropped; a signal shorter than
    one frame becomes a single zero-padded frame.

    Returns:
        (n_frames, frame_length) with
        n_frames = 1 + ceil(max(0, n - frame_length) / hop_length).
    """
    x = _as_signal(samples)
    if frame_length < 1 or hop_length < 1:
        raise InvalidInputLength(
            f"frame_length and hop_length must be positive, got {frame_length}, {hop_length}"
        )
    n = x.size
    n_frames = 1 + int(np.ceil(max(0, n - frame_length) / hop_length))
    padded_len = (n_frames - 1) * hop_length + frame_length
    if padded_len > n:
        x = np.pad(x, (0, padded_len - n))
    starts = np.arange(n_frames) * hop_length
    indices = starts[:, np.newaxis] + np.arange(frame_length)[np.newaxis, :]
    return x[indices]


def frame_spectra(frames: np.ndarray, window: Optional[str] = None) -> np.ndarray:
    """Magnitude spectra of stacked frames: (n_frames, L) -> (n_frames, L // 2 + 1)."""
    frames = np.asarray(frames, dtype=np.float64)
    if frames.ndim != 2 or frames.shape[0] == 0 or frames.shape[1] == 0:
        raise InvalidInputLength(f"Expected (n_frames, frame_length) frames, got {frames.shape}")
    taper = _window(window, frames.shape[1])
    if taper is not None:
        frames = frames * taper
    return np.abs(rfft(frames, axis=-1))
