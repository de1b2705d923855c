"""Test helpers: settings and a fake ONNX Runtime session."""

from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import numpy as np

from lenslabel.config import Settings

if TYPE_CHECKING:
    from pathlib import Path

LABELS = ["cat", "dog", "bird"]


def make_settings(tmp_path: Path, **overrides: object) -> Settings:
    defaults: dict[str, object] = {
        "model_path": tmp_path / "model.onnx",
        "labels_path": tmp_path / "labels.txt",
        "device": "cpu",
        "intra_op_threads": 0,
        "inter_op_threads": 1,
    }
    defaults.update(overrides)
    return Settings(**defaults)  # type: ignore[arg-type]


def make_session(
    scores: list[int] | None = None,
    *,
    input_type: str = "tensor(uint8)",
    output_type: str = "tensor(uint8)",
    input_shape: list[int | str] | None = None,
    output_shape: list[int | str] | None = None,
    dtype: type[np.integer] = np.uint8,
) -> MagicMock:
    """Build a mock InferenceSession that returns ``scores`` for every run."""
    scores = [10, 230, 5] if scores is None else scores
    session = MagicMock()
    session.get_inputs.return_value = [
        SimpleNamespace(name="input", type=input_type, shape=input_shape or [1, 224, 224, 3]),
    ]
    session.get_outputs.return_value = [
        SimpleNamespace(name="output", type=output_type, shape=output_shape or [1, len(scores)]),
    ]
    session.run.return_value = [np.array([scores], dtype=dtype)]
    return session
