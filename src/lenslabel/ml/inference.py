"""Frame analysis worker.

Architecture:
    capture thread -> pending slot (latest frame only) -> ThreadPoolExecutor(1) -> classifier

Exactly one classification runs at a time. A frame offered while another is
still waiting replaces it, so the backlog never grows past one frame.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

    from lenslabel.display import PredictionChannel
    from lenslabel.ml.image_classifier import ImageClassifier

logger = logging.getLogger(__name__)


class AnalysisWorker:
    """Runs the classifier on a single background thread, keeping only the latest frame."""

    def __init__(self, classifier: ImageClassifier, channel: PredictionChannel) -> None:
        self._classifier = classifier
        self._channel = channel
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="frame-analysis",
        )
        self._lock = threading.Lock()
        self._pending: NDArray[np.uint8] | None = None
        self._scheduled = False
        self._closed = False
        self._active_count: int = 0
        self._dropped_count: int = 0
        self._completed_count: int = 0

    def offer(self, frame: NDArray[np.uint8]) -> None:
        """Queue a frame for classification, replacing any frame still waiting.

        The worker keeps a reference to ``frame``; pass a copy if the caller
        reuses the buffer.
        """
        with self._lock:
            if self._closed:
                logger.debug("Worker closed; dropping frame")
                return
            if self._pending is not None:
                self._dropped_count += 1
            self._pending = frame
            if self._scheduled:
                return
            # shutdown() cannot close the executor while the lock is held.
            self._executor.submit(self._drain)
            self._scheduled = True

    @property
    def active_count(self) -> int:
        """1 while a classification is running, else 0."""
        with self._lock:
            return self._active_count

    @property
    def dropped_count(self) -> int:
        """Frames superseded by a newer frame before classification started."""
        with self._lock:
            return self._dropped_count

    @property
    def completed_count(self) -> int:
        """Frames classified (or failed) since the worker started."""
        with self._lock:
            return self._completed_count

    def shutdown(self) -> None:
        """Stop accepting frames, then finish the running and pending frame.

        A frame accepted by ``offer`` before shutdown is still classified.
        """
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True)

    # -- Internal -----------------------------------------------------------

    def _drain(self) -> None:
        while True:
            with self._lock:
                frame = self._pending
                self._pending = None
                if frame is None:
                    self._scheduled = False
                    return
                self._active_count += 1
            try:
                prediction = self._classifier.predict(frame)
                self._channel.publish(prediction)
            except Exception:
                logger.exception("Frame analysis failed")
            finally:
                with self._lock:
                    self._active_count -= 1
                    self._completed_count += 1
