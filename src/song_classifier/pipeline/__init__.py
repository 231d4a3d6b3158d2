"""Upload-to-prediction session pipeline."""

from song_classifier.pipeline.session import MAX_FILES, ClassificationSession, FileResult

__all__ = ["MAX_FILES", "ClassificationSession", "FileResult"]
