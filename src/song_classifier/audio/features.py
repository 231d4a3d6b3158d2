"""MFCC feature extraction: framing, magnitude spectrum, mel energies, cepstrum.

Framing policy:
- frame_length set: frames of frame_length samples every hop_length samples,
  tail zero-padded, features averaged over frames.
- frame_length None: the whole channel is one analysis window.
Only channel 0 of the buffer is analyzed.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from song_classifier.audio.buffer import AudioBuffer
from song_classifier.audio.cepstrum import cepstral_coefficients, log_compress
from song_classifier.audio.config import DEFAULT_CONFIG, FeatureConfig
from song_classifier.audio.mel import MelFilterBank, get_filter_bank
from song_classifier.audio.spectrum import frame_signal, frame_spectra
from song_classifier.errors import EmptyBuffer, InvalidSamples

logger = logging.getLogger(__name__)


class MfccExtractor:
    """Extract one MFCC feature vector per audio buffer.

    Interface:
      extractor = MfccExtractor(FeatureConfig(n_filters=40))
      features = extractor.extract(buffer)          # (K,)
      per_frame = extractor.extract_frames(buffer)  # (n_frames, K)

    Stateless apart from the shared filter bank cache; one extractor can
    serve many buffers, from several threads.
    """

    def __init__(self, config: Optional[FeatureConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def filter_bank(self, sample_rate: int, spectrum_length: int, n_fft: int) -> MelFilterBank:
        """Filter bank for this config at the given rate and window size.

        Framed analysis shares cached banks; in whole-buffer mode the window
        size is the file length, so the bank is built fresh and not cached.
        """
        args = (
            self.config.n_filters,
            float(sample_rate),
            self.config.fmin,
            self.config.resolve_fmax(sample_rate),
            spectrum_length,
            n_fft,
        )
        if self.config.frame_length is None:
            return MelFilterBank(*args)
        return get_filter_bank(*args)

    def _frames(self, buffer: AudioBuffer) -> np.ndarray:
        channel = buffer.channel(0)
        if channel.size == 0:
            raise EmptyBuffer("Audio buffer has no samples in channel 0")
        if not np.all(np.isfinite(channel)):
            raise InvalidSamples("Audio buffer contains NaN or infinite samples")
        if self.config.frame_length is None:
            return np.asarray(channel, dtype=np.float64)[np.newaxis, :]
        return frame_signal(channel, self.config.frame_length, self.config.hop_length)

    def spectra(self, buffer: AudioBuffer) -> np.ndarray:
        """(n_frames, n_fft // 2 + 1) magnitude spectra of channel 0."""
        return frame_spectra(self._frames(buffer), window=self.config.window)

    def log_mel_energies(self, buffer: AudioBuffer) -> np.ndarray:
        """(n_frames, F) log-compressed mel energies; all values >= 0."""
        frames = self._frames(buffer)
        n_fft = frames.shape[1]
        spectra = frame_spectra(frames, window=self.config.window)
        bank = self.filter_bank(buffer.sample_rate, spectra.shape[1], n_fft)
        logger.debug(
            "Extracting %d frame(s) of %d samples at %d Hz",
            frames.shape[0],
            n_fft,
            buffer.sample_rate,
        )
        return log_compress(bank.apply(spectra))

    def extract_frames(self, buffer: AudioBuffer) -> np.ndarray:
        """(n_frames, K) cepstral coefficients, one row per frame."""
        return cepstral_coefficients(
            self.log_mel_energies(buffer),
            self.config.n_coefficients,
        )

    def extract(self, buffer: AudioBuffer) -> np.ndarray:
        """(K,) feature vector: per-frame cepstra averaged over frames."""
        return self.extract_frames(buffer).mean(axis=0)


def extract(buffer: AudioBuffer, config: Optional[FeatureConfig] = None) -> np.ndarray:
    """Feature vector for one buffer with the given (or default) config."""
    return MfccExtractor(config).extract(buffer)
