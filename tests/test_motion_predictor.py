"""Tests for short-horizon motion prediction."""

import pytest

from vertiflip.cropping.types import Rectangle
from vertiflip.tracking.motion_predictor import TrackedPositions, predict_position


class TestPredictPosition:
    def test_linear_extrapolation(self):
        predicted = predict_position([Rectangle(0, 0, 10, 10), Rectangle(5, 0, 10, 10)], 1920, 1080)
        assert predicted == Rectangle(10, 0, 10, 10)

    def test_quadratic_extrapolation(self):
        history = [Rectangle(0, 0, 10, 10), Rectangle(10, 5, 10, 10), Rectangle(30, 10, 12, 14)]
        predicted = predict_position(history, 1920, 1080)
        assert predicted.x == pytest.approx(30 + 20 + 5)
        assert predicted.y == pytest.approx(15)
        assert (predicted.width, predicted.height) == (12, 14)

    def test_clamped_to_max(self):
        predicted = predict_position([Rectangle(0, 0, 10, 10), Rectangle(100, 90, 10, 10)], 150, 120)
        assert (predicted.x, predicted.y) == (150, 120)

    def test_clamped_to_zero(self):
        predicted = predict_position([Rectangle(50, 50, 10, 10), Rectangle(10, 10, 10, 10)], 1920, 1080)
        assert (predicted.x, predicted.y) == (0, 0)

    @pytest.mark.parametrize("count", [0, 1, 4])
    def test_wrong_history_length(self, count):
        with pytest.raises(ValueError):
            predict_position([Rectangle(0, 0, 1, 1)] * count, 100, 100)


class TestTrackedPositions:
    def test_keeps_three_most_recent(self):
        positions = TrackedPositions()
        for x in range(4):
            positions.push(Rectangle(x, 0, 1, 1))
        assert len(positions) == 3
        assert [rect.x for rect in positions.as_list()] == [1, 2, 3]

    def test_needs_two_positions_to_predict(self):
        positions = TrackedPositions()
        positions.push(Rectangle(0, 0, 1, 1))
        assert not positions.can_predict()
        assert positions.predict(100, 100) is None
        positions.push(Rectangle(2, 0, 1, 1))
        assert positions.predict(100, 100).x == 4

    def test_clear(self):
        positions = TrackedPositions()
        positions.push(Rectangle(0, 0, 1, 1))
        positions.clear()
        assert len(positions) == 0
