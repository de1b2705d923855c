"""Prediction delivery from the analysis worker to the display.

Predictions flow one way: the worker publishes into a ``PredictionChannel``
and displays either subscribe to it or poll ``latest``. Subscribers never
write back into the channel.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from lenslabel.ml.image_classifier import Prediction

logger = logging.getLogger(__name__)

INITIAL_TEXT = "Point camera at objects"


class PredictionChannel:
    """Holds the most recent prediction and fans it out to subscribers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latest: Prediction | None = None
        self._subscribers: list[Callable[[Prediction], None]] = []

    @property
    def latest(self) -> Prediction | None:
        """Most recently published prediction, or None before the first one."""
        with self._lock:
            return self._latest

    def subscribe(self, callback: Callable[[Prediction], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, prediction: Prediction) -> None:
        """Store the prediction and deliver it to every subscriber.

        A failing subscriber is logged and skipped.
        """
        with self._lock:
            self._latest = prediction
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(prediction)
            except Exception:
                logger.exception("Prediction subscriber %r failed", callback)


class ConsoleDisplay:
    """Display sink that logs the prediction text whenever it changes."""

    def __init__(self, initial_text: str = INITIAL_TEXT) -> None:
        self._text = initial_text

    @property
    def text(self) -> str:
        """Text currently shown."""
        return self._text

    def show(self, text: str) -> None:
        if text == self._text:
            return
        self._text = text
        logger.info("Prediction: %s", text)

    def __call__(self, prediction: Prediction) -> None:
        self.show(prediction.text)
