"""Tests for the command-line interface."""

from __future__ import annotations

import contextlib
import io
import tempfile
import unittest
from pathlib import Path

import numpy as np
import scipy.io.wavfile as wavfile

from song_classifier.cli import build_parser, config_from_args, main


def _write_tone(path: Path, freq_hz: float = 440.0, sample_rate: int = 16_000) -> None:
    t = np.arange(sample_rate // 4) / sample_rate
    wavfile.write(str(path), sample_rate, (0.5 * np.sin(2 * np.pi * freq_hz * t)).astype(np.float32))


class TestCli(unittest.TestCase):
    """Tests for song_classifier.cli."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, argv):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = main(argv)
        return code, out.getvalue()

    def test_features_only(self) -> None:
        path = self.tmp / "tone.wav"
        _write_tone(path)
        code, out = self._run([str(path)])
        self.assertEqual(code, 0)
        self.assertIn("tone.wav: 40 coefficients", out)

    def test_failed_file_sets_exit_status(self) -> None:
        good = self.tmp / "tone.wav"
        _write_tone(good)
        bad = self.tmp / "broken.mp3"
        bad.write_bytes(b"not audio" * 20)
        code, out = self._run([str(good), str(bad)])
        self.assertEqual(code, 1)
        self.assertIn("tone.wav: 40 coefficients", out)
        self.assertIn("broken.mp3: error:", out)

    def test_too_many_files(self) -> None:
        paths = []
        for i in range(6):
            path = self.tmp / f"{i}.wav"
            _write_tone(path)
            paths.append(str(path))
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(paths)
        self.assertEqual(ctx.exception.code, 2)

    def test_config_flags(self) -> None:
        args = build_parser().parse_args(
            ["x.wav", "--filters", "20", "--coefficients", "13", "--whole-buffer", "--window", "none", "--fmax", "0"]
        )
        config = config_from_args(args)
        self.assertEqual(config.n_filters, 20)
        self.assertEqual(config.coefficients, 13)
        self.assertIsNone(config.frame_length)
        self.assertIsNone(config.window)
        self.assertIsNone(config.fmax)

    def test_invalid_range_flag(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                main(["x.wav", "--fmin", "9000", "--fmax", "8000"])

    def test_unknown_window_flag(self) -> None:
        path = self.tmp / "tone.wav"
        _write_tone(path)
        err = io.StringIO()
        with contextlib.redirect_stderr(err):
            with self.assertRaises(SystemExit) as ctx:
                main([str(path), "--window", "bogus"])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("bogus", err.getvalue())

    def test_top_must_be_positive(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(["x.wav", "--top", "0"])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":
    unittest.main(verbosity=2)
