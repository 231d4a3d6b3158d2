"""Classification model adapter: feature vector -> class probabilities.

The model is a callable (model_forward) so any backend can be plugged in;
load_torchscript_model() provides one for TorchScript artifacts. The
model may be loaded in the background at startup; predict() raises
ModelUnavailable until loading has finished.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import numpy as np

from song_classifier.errors import DimensionMismatch, InferenceError, ModelUnavailable

logger = logging.getLogger(__name__)

# Model forward: (batch, n_features) float32 -> (batch, n_classes)
ModelForward = Callable[[np.ndarray], np.ndarray]


def load_torchscript_model(
    path: str | Path,
    device: Optional[str] = None,
) -> ModelForward:
    """Load a TorchScript classifier and return a numpy forward callable.

    Args:
        path: Path to a model saved with torch.jit.save.
        device: Optional device string ('cuda', 'cpu', etc.). If None,
                uses CUDA if available else CPU.

    Returns:
        model_forward(features: np.ndarray) -> np.ndarray
        features shape (batch, n_features), output shape (batch, n_classes).
    """
    import torch

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Model not found: {path}")

    if device is None:
        device = "cuda" if torch.cuda.is_available() else "cpu"

    model = torch.jit.load(str(path), map_location=torch.device(device))
    model.eval()

    def forward(features: np.ndarray) -> np.ndarray:
        with torch.no_grad():
            x = torch.from_numpy(features.astype(np.float32)).to(device)
            out = model(x)
            return out.cpu().numpy()

    return forward


def softmax(logits: np.ndarray) -> np.ndarray:
    """Numerically stable softmax over the last axis."""
    shifted = logits - np.max(logits, axis=-1, keepdims=True)
    exp = np.exp(shifted)
    return exp / np.sum(exp, axis=-1, keepdims=True)


class ClassifierModel:
    """Holds the loaded model and turns one feature vector into a prediction.

    Interface:
      model = ClassifierModel(num_classes=10)
      model.load_async("model.pt")     # returns immediately
      model.wait(timeout=30)           # optional
      probs = model.predict(features)  # (10,) or ModelUnavailable
    """

    def __init__(
        self,
        model_forward: Optional[ModelForward] = None,
        num_classes: Optional[int] = None,
        labels: Optional[Sequence[str]] = None,
        apply_softmax: bool = False,
    ):
        """
        Args:
            model_forward: Ready forward callable; None until load() runs.
            num_classes: Expected output length. Taken from labels if None.
            labels: Optional class names; labels[i] names output index i.
            apply_softmax: Treat model output as logits and normalize it.
        """
        if labels is not None and num_classes is not None and len(labels) != num_classes:
            raise ValueError(
                f"Got {len(labels)} labels for num_classes={num_classes}"
            )
        self.labels: Optional[List[str]] = list(labels) if labels is not None else None
        self.num_classes = num_classes if num_classes is not None else (
            len(self.labels) if self.labels is not None else None
        )
        self.apply_softmax = apply_softmax
        self._forward = model_forward
        self._load_error: Optional[BaseException] = None
        self._loaded = threading.Event()
        if model_forward is not None:
            self._loaded.set()
        self._lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self._forward is not None

    def load(self, path: str | Path, device: Optional[str] = None) -> None:
        """Load a TorchScript model synchronously."""
        try:
            forward = load_torchscript_model(path, device=device)
        except Exception as exc:
            with self._lock:
                self._load_error = exc
            self._loaded.set()
            logger.error("Error loading model %s: %s", path, exc)
            raise
        with self._lock:
            self._forward = forward
            self._load_error = None
        self._loaded.set()
        logger.info("Loaded model from %s", path)

    def load_async(self, path: str | Path, device: Optional[str] = None) -> threading.Thread:
        """Start loading the model on a daemon thread and return the thread."""
        self._loaded.clear()

        def _run() -> None:
            try:
                self.load(path, device=device)
            except Exception:
                # Recorded in _load_error; surfaced by wait() and predict()
                pass

        thread = threading.Thread(target=_run, name="model-loader", daemon=True)
        thread.start()
        return thread

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until loading finishes.

        Raises:
            ModelUnavailable: Loading failed or did not finish in time.
        """
        if not self._loaded.wait(timeout):
            raise ModelUnavailable(f"Model did not finish loading within {timeout}s")
        self._check_ready()

    def _check_ready(self) -> ModelForward:
        with self._lock:
            forward = self._forward
            error = self._load_error
        if forward is None:
            if error is not None:
                raise ModelUnavailable(f"Model failed to load: {error}") from error
            raise ModelUnavailable("Model has not finished loading")
        return forward

    def predict(self, features: np.ndarray) -> np.ndarray:
        """Class probabilities for one feature vector.

        Args:
            features: (n_features,) feature vector.

        Returns:
            (num_classes,) probabilities.

        Raises:
            ModelUnavailable: No model loaded.
            InferenceError: The model raised, e.g. on an input size it was
                not trained for.
            DimensionMismatch: Features not 1-D, or output length differs
                from num_classes.
        """
        forward = self._check_ready()
        x = np.asarray(features, dtype=np.float32)
        if x.ndim != 1 or x.size == 0:
            raise DimensionMismatch(f"Expected a 1-D feature vector, got shape {x.shape}")
        try:
            out = np.asarray(forward(x[np.newaxis, :]), dtype=np.float64)
        except Exception as exc:
            raise InferenceError(f"Model forward failed on {x.size} features: {exc}") from exc
        # Drop batch axis from (1, C)
        if out.ndim == 2 and out.shape[0] == 1:
            out = out[0]
        if out.ndim != 1:
            raise DimensionMismatch(f"Model returned shape {out.shape}, expected (1, n_classes)")
        if self.num_classes is not None and out.size != self.num_classes:
            raise DimensionMismatch(
                f"Model returned {out.size} classes, expected {self.num_classes}"
            )
        if self.apply_softmax:
            out = softmax(out)
        return out
