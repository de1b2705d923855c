"""Frame preprocessing: resize a captured RGB frame and build the model input.

The model consumes raw 8-bit RGB values, so no normalization is applied.
Frames are stretched to the model's square input; aspect ratio is not kept.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import cv2
import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


def resize_frame(frame: NDArray[np.uint8], size: int) -> NDArray[np.uint8]:
    """Resample an HxWx3 RGB frame to ``size`` x ``size`` with bilinear filtering.

    Raises:
        ValueError: If the frame is not a non-empty HxWx3 uint8 array.
    """
    if not isinstance(frame, np.ndarray):
        raise ValueError(f"Expected a numpy array, got {type(frame).__name__}")
    if frame.ndim != 3 or frame.shape[2] != 3:
        raise ValueError(f"Expected an HxWx3 RGB frame, got shape {frame.shape}")
    if frame.shape[0] == 0 or frame.shape[1] == 0:
        raise ValueError(f"Frame has no pixels: shape {frame.shape}")
    if frame.dtype != np.uint8:
        raise ValueError(f"Expected uint8 pixels, got {frame.dtype}")

    if frame.shape[0] == size and frame.shape[1] == size:
        return frame
    return cv2.resize(frame, (size, size), interpolation=cv2.INTER_LINEAR)


def build_input_tensor(
    frame: NDArray[np.uint8],
    size: int,
    dtype: type[np.integer] = np.uint8,
) -> NDArray[np.integer]:
    """Convert an RGB frame into a ``[1, size, size, 3]`` byte tensor.

    Element ``[0, y, x, c]`` is the raw channel value of resized pixel
    ``(x, y)`` with red, green, blue as channels 0, 1, 2. For ``int8``
    models the same bytes are reinterpreted, not rescaled.
    """
    resized = resize_frame(frame, size)
    tensor = np.ascontiguousarray(resized[np.newaxis, ...])
    if dtype is np.uint8:
        return tensor
    return tensor.view(dtype)
