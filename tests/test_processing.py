"""Tests for frame preprocessing and score postprocessing."""

from __future__ import annotations

import numpy as np
import pytest

from lenslabel.ml.postprocessing import as_unsigned_scores, best_index, confidence_percent
from lenslabel.ml.preprocessing import build_input_tensor, resize_frame


class TestResizeFrame:
    def test_any_aspect_ratio_becomes_square(self) -> None:
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        assert resize_frame(frame, 224).shape == (224, 224, 3)

    def test_small_frame_is_upscaled(self) -> None:
        frame = np.zeros((10, 20, 3), dtype=np.uint8)
        assert resize_frame(frame, 224).shape == (224, 224, 3)

    def test_uniform_colour_is_preserved(self) -> None:
        frame = np.empty((300, 500, 3), dtype=np.uint8)
        frame[..., 0] = 12
        frame[..., 1] = 34
        frame[..., 2] = 250
        resized = resize_frame(frame, 224)
        assert (resized[..., 0] == 12).all()
        assert (resized[..., 1] == 34).all()
        assert (resized[..., 2] == 250).all()

    @pytest.mark.parametrize(
        "frame",
        [
            np.zeros((224, 224), dtype=np.uint8),
            np.zeros((224, 224, 4), dtype=np.uint8),
            np.zeros((0, 224, 3), dtype=np.uint8),
            np.zeros((224, 224, 3), dtype=np.float32),
        ],
    )
    def test_malformed_frames_rejected(self, frame: np.ndarray) -> None:
        with pytest.raises(ValueError):
            resize_frame(frame, 224)

    def test_non_array_rejected(self) -> None:
        with pytest.raises(ValueError, match="numpy array"):
            resize_frame([[1, 2, 3]], 224)  # type: ignore[arg-type]


class TestBuildInputTensor:
    def test_shape_and_raw_values(self) -> None:
        frame = np.zeros((224, 224, 3), dtype=np.uint8)
        frame[5, 7] = (255, 128, 1)
        tensor = build_input_tensor(frame, 224)
        assert tensor.shape == (1, 224, 224, 3)
        assert tensor.dtype == np.uint8
        # [0, y, x, c] with red, green, blue in that order, no normalization.
        assert tuple(tensor[0, 5, 7]) == (255, 128, 1)

    def test_int8_view_keeps_bytes(self) -> None:
        frame = np.full((224, 224, 3), 255, dtype=np.uint8)
        tensor = build_input_tensor(frame, 224, np.int8)
        assert tensor.dtype == np.int8
        assert (tensor == -1).all()


class TestScores:
    def test_unsigned_passthrough(self) -> None:
        raw = np.array([[0, 128, 255]], dtype=np.uint8)
        assert as_unsigned_scores(raw).tolist() == [0, 128, 255]

    def test_signed_bytes_masked(self) -> None:
        raw = np.array([[-1, -128, 127]], dtype=np.int8)
        assert as_unsigned_scores(raw).tolist() == [255, 128, 127]

    def test_wide_integers_masked(self) -> None:
        assert as_unsigned_scores(np.array([-26, 256, 511])).tolist() == [230, 0, 255]

    def test_float_scores_rejected(self) -> None:
        with pytest.raises(TypeError):
            as_unsigned_scores(np.array([0.5, 0.2]))

    def test_best_index_first_maximum_wins(self) -> None:
        assert best_index(np.array([3, 9, 9, 1], dtype=np.uint8)) == 1

    def test_best_index_single_score(self) -> None:
        assert best_index(np.array([0], dtype=np.uint8)) == 0

    def test_best_index_empty_raises(self) -> None:
        with pytest.raises(ValueError, match="no scores"):
            best_index(np.array([], dtype=np.uint8))

    def test_best_index_matches_first_occurrence_everywhere(self) -> None:
        rng = np.random.default_rng(seed=3)
        for _ in range(200):
            scores = rng.integers(0, 4, size=16).astype(np.uint8)
            expected = next(i for i, s in enumerate(scores) if s == scores.max())
            assert best_index(scores) == expected

    @pytest.mark.parametrize(
        ("score", "percent"),
        [(0, 0), (51, 20), (52, 20), (53, 20), (54, 21), (230, 90), (255, 100)],
    )
    def test_confidence_percent(self, score: int, percent: int) -> None:
        assert confidence_percent(score) == percent

    def test_confidence_always_in_range(self) -> None:
        values = [confidence_percent(s) for s in range(256)]
        assert all(isinstance(v, int) and 0 <= v <= 100 for v in values)
        assert values == sorted(values)
