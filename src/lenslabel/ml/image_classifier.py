"""Single-label image classifier over a quantized ONNX model.

The classifier loads its model and label table once, at construction. A
failed load leaves it in the ``FAILED`` state, where every call reports
"Model not loaded" instead of retrying. ``classify`` never raises; per-frame
failures are returned as ``"Error: <message>"``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from lenslabel.ml.model_loader import (
    LoadedModel,
    ModelLoadError,
    check_label_count,
    load_labels,
    load_model,
)
from lenslabel.ml.postprocessing import as_unsigned_scores, best_index, confidence_percent
from lenslabel.ml.preprocessing import build_input_tensor

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

    from lenslabel.config import Settings

logger = logging.getLogger(__name__)

NOT_LOADED_TEXT = "Model not loaded"
UNCERTAIN_TEXT = "Uncertain"


class ClassifierState(StrEnum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


class PredictionStatus(StrEnum):
    OK = "ok"
    UNCERTAIN = "uncertain"
    UNLOADED = "unloaded"
    ERROR = "error"


@dataclass(frozen=True)
class Prediction:
    """Outcome of classifying one frame."""

    status: PredictionStatus
    label: str | None = None
    confidence: int | None = None
    message: str | None = None

    @property
    def text(self) -> str:
        """Display-ready string for this prediction."""
        if self.status is PredictionStatus.OK:
            return f"{self.label} ({self.confidence}%)"
        if self.status is PredictionStatus.UNCERTAIN:
            return UNCERTAIN_TEXT
        if self.status is PredictionStatus.UNLOADED:
            return NOT_LOADED_TEXT
        return f"Error: {self.message}"

    def __str__(self) -> str:
        return self.text


class ImageClassifier:
    """Classifies RGB frames into one label with an integer confidence."""

    def __init__(self, settings: Settings) -> None:
        self._input_size = settings.input_size
        self._threshold = settings.confidence_threshold
        self._model: LoadedModel | None = None
        self._labels: list[str] = []
        self._state = ClassifierState.UNINITIALIZED

        try:
            model = load_model(settings)
            labels = load_labels(settings.labels_path)
            check_label_count(model, labels)
        except ModelLoadError:
            logger.exception("Classifier unavailable")
            self._state = ClassifierState.FAILED
            return

        self._model = model
        self._labels = labels
        self._state = ClassifierState.READY
        logger.info("Classifier ready with %d labels", len(labels))

    # -- Public API ---------------------------------------------------------

    @property
    def state(self) -> ClassifierState:
        """Load state; ``FAILED`` is permanent."""
        return self._state

    @property
    def labels(self) -> tuple[str, ...]:
        """The label table, index-aligned with the model output."""
        return tuple(self._labels)

    def classify(self, frame: NDArray[np.uint8]) -> str:
        """Classify a frame and return a display string.

        Returns ``"<label> (<confidence>%)"``, ``"Uncertain"``,
        ``"Model not loaded"`` or ``"Error: <message>"``.
        """
        return self.predict(frame).text

    def predict(self, frame: NDArray[np.uint8]) -> Prediction:
        """Classify a frame and return the structured result."""
        if self._model is None or not self._labels:
            return Prediction(status=PredictionStatus.UNLOADED)

        try:
            return self._run(self._model, frame)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Classification failed: %s", exc)
            return Prediction(status=PredictionStatus.ERROR, message=str(exc))

    # -- Internal -----------------------------------------------------------

    def _run(self, model: LoadedModel, frame: NDArray[np.uint8]) -> Prediction:
        tensor = build_input_tensor(frame, self._input_size, model.input_dtype)
        outputs = model.session.run(None, {model.input_name: tensor})
        scores = as_unsigned_scores(outputs[0])
        if scores.size != len(self._labels):
            raise ValueError(f"Model returned {scores.size} scores for {len(self._labels)} labels")

        index = best_index(scores)
        confidence = confidence_percent(scores[index])
        if confidence > self._threshold:
            return Prediction(
                status=PredictionStatus.OK,
                label=self._labels[index],
                confidence=confidence,
            )

        logger.debug("Low confidence %d%% for %s", confidence, self._labels[index])
        return Prediction(status=PredictionStatus.UNCERTAIN, confidence=confidence)
