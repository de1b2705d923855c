"""Model loader: memory-map the bundled ONNX model and read the label table.

The model is loaded exactly once per classifier. Any problem with the model
file, the label file, or the agreement between them is reported as a
``ModelLoadError`` so the caller can treat the classifier as unusable.
"""

from __future__ import annotations

import logging
import mmap
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from onnxruntime import InferenceSession, SessionOptions
from onnxruntime.capi.onnxruntime_pybind11_state import ExecutionMode

if TYPE_CHECKING:
    from pathlib import Path

    from lenslabel.config import Settings

logger = logging.getLogger(__name__)

# ONNX element types accepted for the quantized input/output tensors.
BYTE_TENSOR_TYPES: dict[str, type[np.integer]] = {
    "tensor(uint8)": np.uint8,
    "tensor(int8)": np.int8,
}


class ModelLoadError(RuntimeError):
    """Raised when the model or label asset cannot be loaded or do not match."""


@dataclass(frozen=True)
class LoadedModel:
    """An inference session plus the tensor metadata the classifier needs."""

    session: InferenceSession
    input_name: str
    input_dtype: type[np.integer]
    output_width: int


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------


def load_labels(path: Path) -> list[str]:
    """Read one label per line from a UTF-8 text file.

    Raises:
        ModelLoadError: If the file is missing, unreadable, or holds no labels.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ModelLoadError(f"Cannot read labels from {path}: {exc}") from exc

    labels = text.splitlines()
    if not labels:
        raise ModelLoadError(f"Label file {path} is empty")

    logger.info("Loaded %d labels from %s", len(labels), path)
    return labels


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


def load_model(settings: Settings) -> LoadedModel:
    """Memory-map the model file and create an ONNX Runtime session for it.

    The mapping is only used to read the file in one pass; ONNX Runtime takes
    a copy of the bytes, so the map is closed once the session exists.

    Raises:
        ModelLoadError: If the file cannot be mapped, the session cannot be
            created, or the model's tensors do not have the expected shapes.
    """
    path = settings.model_path
    try:
        with path.open("rb") as fh, mmap.mmap(fh.fileno(), 0, access=mmap.ACCESS_READ) as mapped:
            model_bytes = mapped[:]
    except (OSError, ValueError) as exc:
        raise ModelLoadError(f"Cannot map model file {path}: {exc}") from exc

    try:
        session = InferenceSession(
            model_bytes,
            sess_options=_build_session_options(settings),
            providers=_build_providers(settings),
        )
    except Exception as exc:
        raise ModelLoadError(f"Cannot create inference session for {path}: {exc}") from exc

    loaded = _inspect_session(session, settings.input_size)
    logger.info(
        "Loaded model %s (input=%s %s, output width=%s)",
        path,
        loaded.input_name,
        loaded.input_dtype.__name__,
        loaded.output_width,
    )
    return loaded


def check_label_count(model: LoadedModel, labels: list[str]) -> None:
    """Ensure the label table is index-aligned with the model output.

    Raises:
        ModelLoadError: If the model output width differs from the label count.
    """
    if model.output_width != len(labels):
        raise ModelLoadError(f"Model outputs {model.output_width} scores but label table has {len(labels)} entries")


# -- Internal ---------------------------------------------------------------


def _inspect_session(session: InferenceSession, input_size: int) -> LoadedModel:
    inputs = session.get_inputs()
    outputs = session.get_outputs()
    if len(inputs) != 1 or len(outputs) != 1:
        raise ModelLoadError(f"Expected one input and one output tensor, got {len(inputs)} and {len(outputs)}")

    model_input = inputs[0]
    model_output = outputs[0]

    input_dtype = BYTE_TENSOR_TYPES.get(model_input.type)
    if input_dtype is None:
        raise ModelLoadError(f"Expected an 8-bit input tensor, got {model_input.type}")
    if model_output.type not in BYTE_TENSOR_TYPES:
        raise ModelLoadError(f"Expected an 8-bit output tensor, got {model_output.type}")

    expected_input = [1, input_size, input_size, 3]
    if not _shape_matches(model_input.shape, expected_input):
        raise ModelLoadError(f"Expected input shape {expected_input}, got {model_input.shape}")

    output_shape = list(model_output.shape)
    if len(output_shape) != 2 or not _shape_matches(output_shape[:1], [1]):
        raise ModelLoadError(f"Expected output shape [1, L], got {model_output.shape}")
    width = output_shape[1]
    if not isinstance(width, int):
        width = _measure_output_width(session, model_input.name, input_dtype, input_size)
        logger.info("Model output width is symbolic; measured %d scores", width)

    return LoadedModel(
        session=session,
        input_name=model_input.name,
        input_dtype=input_dtype,
        output_width=width,
    )


def _measure_output_width(
    session: InferenceSession,
    input_name: str,
    input_dtype: type[np.integer],
    input_size: int,
) -> int:
    """Run one blank frame through the session to learn the output width."""
    blank = np.zeros((1, input_size, input_size, 3), dtype=input_dtype)
    try:
        outputs = session.run(None, {input_name: blank})
    except Exception as exc:
        raise ModelLoadError(f"Cannot run model to determine its output width: {exc}") from exc
    return int(np.asarray(outputs[0]).size)


def _shape_matches(actual: list[int | str | None], expected: list[int]) -> bool:
    """Compare shapes, treating symbolic (non-int) dimensions as wildcards."""
    if len(actual) != len(expected):
        return False
    return all(not isinstance(dim, int) or dim == want for dim, want in zip(actual, expected, strict=True))


def _build_providers(settings: Settings) -> list[str]:
    if settings.device == "cuda":
        return ["CUDAExecutionProvider", "CPUExecutionProvider"]
    return ["CPUExecutionProvider"]


def _build_session_options(settings: Settings) -> SessionOptions:
    opts = SessionOptions()
    opts.intra_op_num_threads = settings.intra_op_threads
    opts.inter_op_num_threads = settings.inter_op_threads
    opts.execution_mode = ExecutionMode.ORT_SEQUENTIAL
    opts.enable_mem_pattern = True
    opts.enable_mem_reuse = True
    return opts
