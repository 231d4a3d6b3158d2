"""Log compression and cepstral transform of mel energies.

Scaling is orthonormal type-II DCT and must not change: models trained on
these features depend on it.

    c[k] = s[k] * sum_i e[i] * cos(pi / F * (i + 0.5) * k)
    s[0] = sqrt(1 / F),  s[k > 0] = sqrt(2 / F)
"""

from typing import Optional

import numpy as np
from scipy.fft import dct

from song_classifier.errors import InvalidInputLength, InvalidRange


def log_compress(energies: np.ndarray) -> np.ndarray:
    """log(x + 1), elementwise; zero energy maps to 0 instead of -inf."""
    return np.log(np.asarray(energies, dtype=np.float64) + 1.0)


def cepstral_coefficients(
    log_energies: np.ndarray,
    n_coefficients: Optional[int] = None,
) -> np.ndarray:
    """Orthonormal DCT-II along the last axis, truncated to n_coefficients.

    Args:
        log_energies: (F,) or (n_frames, F) log mel energies.
        n_coefficients: Keep the first K coefficients (1 <= K <= F).
                        None keeps all F.

    Returns:
        (K,) or (n_frames, K) cepstral coefficients.
    """
    x = np.asarray(log_energies, dtype=np.float64)
    if x.ndim == 0 or x.shape[-1] == 0:
        raise InvalidInputLength(f"Cannot transform empty energies, got shape {x.shape}")
    n_filters = x.shape[-1]
    if n_coefficients is None:
        n_coefficients = n_filters
    if not 1 <= n_coefficients <= n_filters:
        raise InvalidRange(
            f"n_coefficients must be in [1, {n_filters}], got {n_coefficients}"
        )
    return dct(x, type=2, norm="ortho", axis=-1)[..., :n_coefficients]
