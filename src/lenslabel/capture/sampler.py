"""Frame sampling: forward one frame out of every N to the classifier.

Inference is much slower than capture, so only frames whose sequence marker
is a multiple of the interval are classified. With evenly spaced counters
that is exactly one in N. With irregular markers (e.g. camera timestamps)
it is only an approximation of that rate.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL: int = 30


class FrameSampler:
    """Decides per frame marker whether the frame is classified."""

    def __init__(self, interval: int = DEFAULT_INTERVAL) -> None:
        if interval < 1:
            raise ValueError(f"Sample interval must be >= 1, got {interval}")
        self._interval = interval
        self._sampled: int = 0
        self._dropped: int = 0

    @property
    def interval(self) -> int:
        """Sample one frame out of this many."""
        return self._interval

    @property
    def sampled_count(self) -> int:
        """Frames forwarded to the classifier so far."""
        return self._sampled

    @property
    def dropped_count(self) -> int:
        """Frames discarded by the sampling rule so far."""
        return self._dropped

    def should_sample(self, marker: int) -> bool:
        """Return True if the frame with this marker should be classified."""
        if marker % self._interval == 0:
            self._sampled += 1
            return True
        self._dropped += 1
        return False
