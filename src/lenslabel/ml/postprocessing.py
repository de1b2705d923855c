"""Interpretation of the quantized model output."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

MAX_SCORE: int = 255


def as_unsigned_scores(raw: ArrayLike) -> NDArray[np.uint8]:
    """Flatten a model output and read each byte as an unsigned 0-255 score.

    Signed storage is masked with ``& 0xFF`` so that e.g. ``-26`` becomes ``230``.

    Raises:
        TypeError: If the output does not hold integer values.
    """
    scores = np.asarray(raw).reshape(-1)
    if scores.dtype == np.uint8:
        return scores
    if not np.issubdtype(scores.dtype, np.integer):
        raise TypeError(f"Expected integer scores, got {scores.dtype}")
    return (scores.astype(np.int64) & 0xFF).astype(np.uint8)


def best_index(scores: NDArray[np.uint8]) -> int:
    """Return the index of the highest score; the first one wins on ties.

    Raises:
        ValueError: If ``scores`` is empty.
    """
    if scores.size == 0:
        raise ValueError("Model returned no scores")
    # np.argmax returns the first occurrence of the maximum.
    return int(np.argmax(scores))


def confidence_percent(score: int) -> int:
    """Scale a 0-255 score to a whole percentage, rounding down."""
    return math.floor(int(score) / float(MAX_SCORE) * 100)
