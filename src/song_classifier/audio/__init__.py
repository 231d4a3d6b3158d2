"""Audio decoding and MFCC feature extraction modules."""

from song_classifier.audio.buffer import AudioBuffer
from song_classifier.audio.config import DEFAULT_CONFIG, SOURCE_CONFIG, FeatureConfig
from song_classifier.audio.decode import decode_audio, load_audio_file
from song_classifier.audio.features import MfccExtractor, extract
from song_classifier.audio.mel import MelFilterBank, get_filter_bank

__all__ = [
    "AudioBuffer",
    "DEFAULT_CONFIG",
    "SOURCE_CONFIG",
    "FeatureConfig",
    "MelFilterBank",
    "MfccExtractor",
    "decode_audio",
    "extract",
    "get_filter_bank",
    "load_audio_file",
]
