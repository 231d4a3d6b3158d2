"""Song classifier - audio decoding, MFCC features, model inference, display."""

from song_classifier.audio import FeatureConfig, MfccExtractor, extract
from song_classifier.postprocess import format_predictions

__all__ = ["FeatureConfig", "MfccExtractor", "extract", "format_predictions"]
