"""Shared fixtures: settings backed by asset files, and a sample frame."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pytest

from helpers import LABELS, make_settings

if TYPE_CHECKING:
    from pathlib import Path

    from lenslabel.config import Settings


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a model and label file that exist on disk."""
    (tmp_path / "model.onnx").write_bytes(b"fake onnx model bytes")
    (tmp_path / "labels.txt").write_text("\n".join(LABELS) + "\n", encoding="utf-8")
    return make_settings(tmp_path)


@pytest.fixture()
def rgb_frame() -> np.ndarray:
    rng = np.random.default_rng(seed=7)
    return rng.integers(0, 256, size=(480, 640, 3), dtype=np.uint8)
