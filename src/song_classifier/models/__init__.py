"""Classification model adapters (TorchScript, etc.)."""

from song_classifier.models.classifier import ClassifierModel, load_torchscript_model

__all__ = ["ClassifierModel", "load_torchscript_model"]
