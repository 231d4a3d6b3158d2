"""Unit tests for audio decoding and AudioBuffer."""

from __future__ import annotations

import io
import tempfile
import unittest
from pathlib import Path

import numpy as np
import scipy.io.wavfile as wavfile

from song_classifier.audio import AudioBuffer, decode_audio, load_audio_file
from song_classifier.errors import DecodeError, InvalidRange


def wav_bytes(audio: np.ndarray, sample_rate: int = 16_000) -> bytes:
    out = io.BytesIO()
    wavfile.write(out, sample_rate, audio)
    return out.getvalue()


class TestAudioBuffer(unittest.TestCase):
    def test_mono(self) -> None:
        buffer = AudioBuffer.from_array(np.zeros(16_000, dtype=np.float32), 16_000)
        self.assertEqual(buffer.channels, 1)
        self.assertEqual(buffer.n_samples, 16_000)
        self.assertAlmostEqual(buffer.duration_sec, 1.0)

    def test_int16_scaled(self) -> None:
        buffer = AudioBuffer.from_array(np.array([-32768, 0, 16384], dtype=np.int16), 8000)
        np.testing.assert_allclose(buffer.channel(0), [-1.0, 0.0, 0.5])

    def test_channels_first_layout(self) -> None:
        data = np.zeros((2, 100), dtype=np.float32)
        buffer = AudioBuffer.from_array(data, 8000, channels_last=False)
        self.assertEqual(buffer.channels, 2)
        self.assertEqual(buffer.n_samples, 100)

    def test_immutable(self) -> None:
        buffer = AudioBuffer.from_array(np.zeros(10, dtype=np.float32), 8000)
        with self.assertRaises(ValueError):
            buffer.channel(0)[0] = 1.0

    def test_invalid(self) -> None:
        with self.assertRaises(InvalidRange):
            AudioBuffer.from_array(np.zeros(10), 0)
        with self.assertRaises(InvalidRange):
            AudioBuffer.from_array(np.zeros(10), 8000).channel(1)


class TestDecodeAudio(unittest.TestCase):
    """Tests for decode_audio and load_audio_file."""

    def test_decode_mono_wav(self) -> None:
        t = np.arange(16_000) / 16_000
        audio = (0.5 * np.sin(2 * np.pi * 440 * t) * 32767).astype(np.int16)
        buffer = decode_audio(wav_bytes(audio), name="tone.wav")
        self.assertEqual(buffer.sample_rate, 16_000)
        self.assertEqual(buffer.channels, 1)
        self.assertEqual(buffer.n_samples, 16_000)
        self.assertEqual(buffer.samples.dtype, np.float32)
        np.testing.assert_allclose(buffer.channel(0), audio / 32768.0, atol=1e-4)

    def test_decode_stereo_wav(self) -> None:
        audio = np.zeros((800, 2), dtype=np.int16)
        audio[:, 1] = 1000
        buffer = decode_audio(wav_bytes(audio, 8000))
        self.assertEqual(buffer.channels, 2)
        self.assertEqual(buffer.sample_rate, 8000)
        self.assertTrue(np.all(buffer.channel(0) == 0))
        self.assertTrue(np.all(buffer.channel(1) > 0))

    def test_garbage_bytes(self) -> None:
        with self.assertRaises(DecodeError):
            decode_audio(b"definitely not audio" * 10, name="junk.mp3")

    def test_empty_bytes(self) -> None:
        with self.assertRaises(DecodeError):
            decode_audio(b"")

    def test_name_is_keyword_only(self) -> None:
        with self.assertRaises(TypeError):
            decode_audio(wav_bytes(np.zeros(400, dtype=np.int16)), "clip.wav")

    def test_load_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "clip.wav"
            path.write_bytes(wav_bytes(np.zeros(400, dtype=np.int16)))
            buffer = load_audio_file(path)
            self.assertEqual(buffer.n_samples, 400)

    def test_load_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_audio_file("/nonexistent/clip.wav")

    def test_load_unsupported_extension(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "notes.txt"
            path.write_text("hello")
            with self.assertRaises(DecodeError):
                load_audio_file(path)


if __name__ == "__main__":
    unittest.main(verbosity=2)
