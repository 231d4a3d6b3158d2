"""Error kinds raised by the feature pipeline and its collaborators.

Pipeline errors (``FeatureError`` and subclasses) are input or programming
errors: they abort the current file and are never retried. ``DecodeError``
and ``ModelUnavailable`` come from collaborators and are recoverable by
picking another file or waiting for the model. ``InferenceError`` wraps
whatever the model itself raised for one file.
"""


class SongClassifierError(Exception):
    """Base class for all song_classifier errors."""


class FeatureError(SongClassifierError, ValueError):
    """Invalid input or parameters inside the feature pipeline."""


class InvalidInputLength(FeatureError):
    """Sample array is empty, not 1-D, or otherwise has an unusable length."""


class InvalidRange(FeatureError):
    """A numeric parameter lies outside its allowed range."""


class DimensionMismatch(FeatureError):
    """Array shape does not match the shape a component was built for."""


class EmptyBuffer(FeatureError):
    """The audio channel to analyze has zero samples."""


class InvalidSamples(FeatureError):
    """The audio channel contains NaN or infinite samples."""


class DecodeError(SongClassifierError):
    """Raw bytes could not be decoded into audio."""


class ModelUnavailable(SongClassifierError):
    """The classification model is not loaded (yet, or failed to load)."""


class TooManyFiles(SongClassifierError, ValueError):
    """More files were submitted than a session accepts."""


class InferenceError(SongClassifierError):
    """The model's forward call failed for one feature vector."""
