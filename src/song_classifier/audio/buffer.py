"""Decoded audio held in memory for one uploaded file."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from song_classifier.errors import InvalidInputLength, InvalidRange


@dataclass(frozen=True, eq=False)
class AudioBuffer:
    """Immutable multi-channel audio.

    Invariants:
        samples.ndim == 2, shape (channels, n_samples), float32, read-only
        sample_rate > 0
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise InvalidRange(f"sample_rate must be positive, got {self.sample_rate}")
        if self.samples.ndim != 2 or self.samples.shape[0] < 1:
            raise InvalidInputLength(
                f"samples must have shape (channels, n_samples), got {self.samples.shape}"
            )

    @classmethod
    def from_array(
        cls,
        data: np.ndarray,
        sample_rate: int,
        channels_last: bool = True,
    ) -> AudioBuffer:
        """Build a buffer from 1-D mono or 2-D multi-channel data.

        Args:
            data: (n_samples,) mono, or 2-D with channels on the last axis
                  (soundfile/scipy layout) unless channels_last is False.
            sample_rate: Sample rate in Hz.
            channels_last: Layout of 2-D input.
        """
        arr = np.asarray(data)
        if arr.dtype.kind == "i":
            # PCM integers -> [-1, 1]
            arr = arr.astype(np.float32) / float(np.iinfo(arr.dtype).max + 1)
        arr = arr.astype(np.float32, copy=True)
        if arr.ndim == 1:
            arr = arr[np.newaxis, :]
        elif arr.ndim == 2:
            if channels_last:
                arr = np.ascontiguousarray(arr.T)
        else:
            raise InvalidInputLength(f"Expected 1-D or 2-D audio, got {arr.ndim}-D")
        arr.setflags(write=False)
        return cls(samples=arr, sample_rate=int(sample_rate))

    @property
    def channels(self) -> int:
        return int(self.samples.shape[0])

    @property
    def n_samples(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration_sec(self) -> float:
        return self.n_samples / self.sample_rate

    def channel(self, index: int = 0) -> np.ndarray:
        """Samples of one channel (read-only view)."""
        if not 0 <= index < self.channels:
            raise InvalidRange(f"channel {index} out of range for {self.channels} channel(s)")
        return self.samples[index]
