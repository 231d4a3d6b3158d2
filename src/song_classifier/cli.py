"""CLI for classifying audio files (up to five per run)."""

import argparse
import logging
import sys
from typing import List, Optional

from song_classifier.audio import FeatureConfig, MfccExtractor
from song_classifier.errors import ModelUnavailable, SongClassifierError
from song_classifier.models import ClassifierModel
from song_classifier.pipeline import MAX_FILES, ClassificationSession
from song_classifier.postprocess import format_result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract MFCC features from audio files and classify them",
    )
    parser.add_argument(
        "files",
        nargs="+",
        help=f"Audio files (mp3, ogg, wav, flac; up to {MAX_FILES})",
    )
    parser.add_argument(
        "--model",
        "-m",
        default=None,
        help="TorchScript model; without it only features are printed",
    )
    parser.add_argument(
        "--labels",
        default=None,
        help="Comma-separated class labels, in model output order",
    )
    parser.add_argument(
        "--softmax",
        action="store_true",
        help="Model outputs logits; normalize them to probabilities",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=None,
        help="Show only the N most probable classes per file (default: all)",
    )
    parser.add_argument("--filters", type=int, default=40, help="Mel filter count (default: 40)")
    parser.add_argument("--fmin", type=float, default=500.0, help="Lowest mel edge in Hz (default: 500)")
    parser.add_argument(
        "--fmax",
        type=float,
        default=8000.0,
        help="Highest mel edge in Hz (default: 8000; 0 = Nyquist)",
    )
    parser.add_argument(
        "--coefficients",
        type=int,
        default=None,
        help="Keep the first K cepstral coefficients (default: all)",
    )
    parser.add_argument(
        "--frame-length",
        type=int,
        default=512,
        help="Analysis window in samples (default: 512)",
    )
    parser.add_argument(
        "--whole-buffer",
        action="store_true",
        help="Analyze each file as a single window instead of framing it",
    )
    parser.add_argument("--hop-length", type=int, default=256, help="Frame hop in samples (default: 256)")
    parser.add_argument(
        "--window",
        default="hann",
        help="Window applied before the FFT (default: hann; 'none' disables)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> FeatureConfig:
    return FeatureConfig(
        n_filters=args.filters,
        fmin=args.fmin,
        fmax=args.fmax if args.fmax > 0 else None,
        n_coefficients=args.coefficients,
        frame_length=None if args.whole_buffer else args.frame_length,
        hop_length=args.hop_length,
        window=None if args.window.lower() == "none" else args.window,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if len(args.files) > MAX_FILES:
        parser.error(f"at most {MAX_FILES} files, got {len(args.files)}")
    if args.top is not None and args.top < 1:
        parser.error(f"--top must be >= 1, got {args.top}")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = config_from_args(args)
    except SongClassifierError as exc:
        parser.error(str(exc))

    labels = [s.strip() for s in args.labels.split(",")] if args.labels else None
    model = None
    if args.model:
        model = ClassifierModel(labels=labels, apply_softmax=args.softmax)
        print(f"Loading model from {args.model}...")
        model.load_async(args.model)

    session = ClassificationSession(extractor=MfccExtractor(config), model=model)
    for path in args.files:
        session.add_path(path)

    if model is not None and session.has_features:
        try:
            model.wait()
        except ModelUnavailable as exc:
            print(f"Error loading model: {exc}", file=sys.stderr)
            return 1
        session.classify()

    for result in session.results:
        print(format_result(result, labels, top=args.top))
    return 0 if all(r.ok for r in session.results) else 1


if __name__ == "__main__":
    sys.exit(main())
