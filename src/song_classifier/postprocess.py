"""Rendering of predictions for display."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import numpy as np

if TYPE_CHECKING:
    from song_classifier.pipeline.session import FileResult


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def to_percentages(prediction: np.ndarray) -> List[int]:
    """Probabilities -> whole percentages (0.125 -> 13, not banker's rounding)."""
    return [_round_half_up(float(p) * 100) for p in np.asarray(prediction).ravel()]


def label_for(index: int, labels: Optional[Sequence[str]] = None) -> str:
    """Display name for a class index; falls back to the index itself."""
    if labels is not None and 0 <= index < len(labels):
        return labels[index]
    return str(index)


def format_predictions(
    prediction: np.ndarray,
    labels: Optional[Sequence[str]] = None,
) -> str:
    """One line listing every class, e.g. '0: 12% 1: 88%'."""
    return " ".join(
        f"{label_for(i, labels)}: {pct}%" for i, pct in enumerate(to_percentages(prediction))
    )


def top_k(
    prediction: np.ndarray,
    k: int = 3,
    labels: Optional[Sequence[str]] = None,
) -> List[Tuple[str, float]]:
    """The k most probable classes, highest first; ties keep index order."""
    probs = np.asarray(prediction, dtype=np.float64).ravel()
    order = np.argsort(-probs, kind="stable")[: max(k, 0)]
    return [(label_for(int(i), labels), float(probs[i])) for i in order]


def format_features(features: np.ndarray, head: int = 5) -> str:
    """Short summary of a feature vector for the CLI."""
    values = np.asarray(features).ravel()
    shown = ", ".join(f"{v:.3f}" for v in values[:head])
    more = ", ..." if values.size > head else ""
    return f"{values.size} coefficients [{shown}{more}]"


def format_result(
    result: FileResult,
    labels: Optional[Sequence[str]] = None,
    top: Optional[int] = None,
) -> str:
    """One display line per uploaded file.

    With top set, only the top most probable classes are listed, best first.
    """
    if result.error is not None:
        return f"{result.name}: error: {result.error}"
    if result.prediction is not None and top is not None:
        ranked = " ".join(
            f"{name}: {_round_half_up(p * 100)}%"
            for name, p in top_k(result.prediction, top, labels)
        )
        return f"{result.name}: Top {top}: {ranked}"
    if result.prediction is not None:
        return f"{result.name}: Predictions: {format_predictions(result.prediction, labels)}"
    if result.features is not None:
        return f"{result.name}: {format_features(result.features)}"
    return f"{result.name}: pending"
