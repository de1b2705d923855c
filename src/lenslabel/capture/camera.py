"""Camera capture source: yields RGB frames with a sequence marker.

Setup problems are returned as a ``CameraSetupResult`` rather than raised so
the caller decides how to log and react. Each yielded ``CapturedFrame`` must
be released after the sampling decision; use it as a context manager.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

import cv2

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from types import TracebackType

    import numpy as np
    from numpy.typing import NDArray

    from lenslabel.capture.gate import AuthorizationGate

logger = logging.getLogger(__name__)

MarkerSource = Literal["counter", "timestamp_ms"]


class CameraSetupErrorKind(StrEnum):
    NOT_AUTHORIZED = "not_authorized"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class CameraSetupResult:
    """Outcome of opening the camera."""

    error: CameraSetupErrorKind | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        """True if the camera opened without error."""
        return self.error is None


class CapturedFrame:
    """An RGB frame on loan from the capture source until released."""

    def __init__(
        self,
        image: NDArray[np.uint8],
        marker: int,
        on_release: Callable[[], None] | None = None,
    ) -> None:
        self._image: NDArray[np.uint8] | None = image
        self.marker = marker
        self._on_release = on_release

    @property
    def image(self) -> NDArray[np.uint8]:
        """The RGB pixels; unavailable once released."""
        if self._image is None:
            raise RuntimeError(f"Frame {self.marker} was already released")
        return self._image

    @property
    def released(self) -> bool:
        """True once the frame has been handed back."""
        return self._image is None

    def release(self) -> None:
        """Give the frame buffer back to the capture source. Idempotent."""
        if self._image is None:
            return
        self._image = None
        if self._on_release is not None:
            self._on_release()

    def __enter__(self) -> CapturedFrame:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


class CameraSource:
    """Webcam source backed by OpenCV."""

    def __init__(self, index: int = 0, marker_source: MarkerSource = "counter") -> None:
        self._index = index
        self._marker_source = marker_source
        self._cap: cv2.VideoCapture | None = None
        self._outstanding: int = 0

    @property
    def camera_index(self) -> int:
        """Index of the capture device."""
        return self._index

    @property
    def outstanding_frames(self) -> int:
        """Frames handed out and not yet released."""
        return self._outstanding

    def open(self, gate: AuthorizationGate) -> CameraSetupResult:
        """Open the camera if access has been granted."""
        if not gate.is_authorized:
            return CameraSetupResult(
                error=CameraSetupErrorKind.NOT_AUTHORIZED,
                message="Camera access has not been granted",
            )

        self.close()
        try:
            # On Windows, DirectShow keeps index order stable.
            if sys.platform == "win32":
                cap = cv2.VideoCapture(self._index, cv2.CAP_DSHOW)
            else:
                cap = cv2.VideoCapture(self._index)
        except cv2.error as exc:
            return CameraSetupResult(error=CameraSetupErrorKind.UNAVAILABLE, message=str(exc))

        if not cap.isOpened():
            cap.release()
            return CameraSetupResult(
                error=CameraSetupErrorKind.UNAVAILABLE,
                message=f"Camera {self._index} could not be opened",
            )

        self._cap = cap
        logger.info("Opened camera %d", self._index)
        return CameraSetupResult()

    def close(self) -> None:
        """Release the underlying capture device."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Closed camera %d", self._index)

    def is_opened(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def frames(self) -> Iterator[CapturedFrame]:
        """Yield frames until the source ends or is closed."""
        counter = 0
        while self._cap is not None and self._cap.isOpened():
            ok, frame_bgr = self._cap.read()
            if not ok or frame_bgr is None:
                logger.info("Camera %d stopped delivering frames", self._index)
                return
            marker = counter if self._marker_source == "counter" else self._timestamp_ms()
            counter += 1
            image = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
            self._outstanding += 1
            yield CapturedFrame(image, marker, on_release=self._on_frame_released)

    # -- Internal -----------------------------------------------------------

    def _timestamp_ms(self) -> int:
        if self._cap is None:
            raise RuntimeError(f"Camera {self._index} is not open")
        return int(self._cap.get(cv2.CAP_PROP_POS_MSEC))

    def _on_frame_released(self) -> None:
        self._outstanding -= 1
