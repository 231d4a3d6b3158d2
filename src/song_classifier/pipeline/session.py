"""Upload session: decode -> features -> model -> display, one file at a time.

Glue that wires the decoder, the MFCC extractor and the classifier by
explicit calls: features are computed as soon as a file is added, and
predictions when classify() is called. Each file is independent; an
error on one file is recorded on its result and never reaches the others.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np

from song_classifier.audio.buffer import AudioBuffer
from song_classifier.audio.decode import decode_audio
from song_classifier.audio.features import MfccExtractor
from song_classifier.errors import (
    DecodeError,
    FeatureError,
    InferenceError,
    ModelUnavailable,
    SongClassifierError,
    TooManyFiles,
)
from song_classifier.models.classifier import ClassifierModel

logger = logging.getLogger(__name__)

MAX_FILES = 5

Decoder = Callable[..., AudioBuffer]


@dataclass
class FileResult:
    """Outcome for one uploaded file. Either features/prediction or error."""

    name: str
    features: Optional[np.ndarray] = None
    prediction: Optional[np.ndarray] = None
    error: Optional[SongClassifierError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ClassificationSession:
    """Processes up to max_files uploads and classifies them on request.

    Interface:
      session = ClassificationSession(model=ClassifierModel(forward, num_classes=4))
      session.add_file("song.ogg", data)   # decode + extract now
      session.classify()                   # one prediction per file
      for r in session.results: ...
    """

    def __init__(
        self,
        extractor: Optional[MfccExtractor] = None,
        model: Optional[ClassifierModel] = None,
        max_files: int = MAX_FILES,
        decoder: Decoder = decode_audio,
    ):
        if max_files < 1:
            raise ValueError("max_files must be >= 1")
        self.extractor = extractor or MfccExtractor()
        self.model = model
        self.max_files = max_files
        self.decoder = decoder
        self._results: List[FileResult] = []

    @property
    def results(self) -> List[FileResult]:
        return list(self._results)

    @property
    def has_features(self) -> bool:
        """True once at least one file produced a feature vector."""
        return any(r.features is not None for r in self._results)

    def _reserve(self, name: str) -> FileResult:
        if len(self._results) >= self.max_files:
            raise TooManyFiles(
                f"At most {self.max_files} files per session; rejected {name!r}"
            )
        result = FileResult(name=name)
        self._results.append(result)
        return result

    def add_file(self, name: str, data: bytes) -> FileResult:
        """Decode one upload and extract its feature vector.

        Raises:
            TooManyFiles: The session already holds max_files files.
        """
        result = self._reserve(name)
        try:
            buffer = self.decoder(data, name=name)
            result.features = self.extractor.extract(buffer)
        except (DecodeError, FeatureError) as exc:
            result.error = exc
            logger.warning("Skipping %s: %s", name, exc)
        else:
            logger.info("Extracted %d features from %s", result.features.size, name)
        return result

    def add_path(self, path: str | Path) -> FileResult:
        """Read a file from disk and add it; unreadable files become errors."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            result = self._reserve(path.name)
            result.error = DecodeError(f"Cannot read {path}: {exc}")
            logger.warning("Skipping %s: %s", path, exc)
            return result
        return self.add_file(path.name, data)

    def classify(self) -> List[FileResult]:
        """Run the model on every file that has features.

        Files without features keep their error. If no model is attached
        or it is not loaded, each pending file records ModelUnavailable; a
        model that raises records InferenceError on that file only.
        """
        for result in self._results:
            if result.features is None or result.prediction is not None:
                continue
            try:
                if self.model is None:
                    raise ModelUnavailable("No model attached to the session")
                result.prediction = self.model.predict(result.features)
                result.error = None
            except (ModelUnavailable, InferenceError, FeatureError) as exc:
                result.error = exc
                logger.warning("Could not classify %s: %s", result.name, exc)
        return self.results

    def clear(self) -> None:
        """Drop all files (e.g. new upload)."""
        self._results.clear()
