"""
Short-horizon position prediction for a tracked object that dropped out.
"""

import logging
from collections import deque
from typing import Deque, List, Optional, Sequence

from vertiflip.cropping.geometry import clamp
from vertiflip.cropping.types import Rectangle

logger = logging.getLogger("vertiflip.tracking.motion_predictor")


def predict_position(
    history: Sequence[Rectangle], max_x: float, max_y: float
) -> Rectangle:
    """
    Extrapolate the next box from the two or three most recent ones.

    Two positions use a constant velocity (``last + (last - prev)``); three
    use finite-difference velocity and acceleration
    (``last + v2 + 0.5 * a`` with ``v1 = p2 - p1``, ``v2 = p3 - p2``,
    ``a = v2 - v1``). The box keeps the last known size and its top-left
    corner is clamped to ``[0, max_x]`` x ``[0, max_y]``.

    Args:
        history: Positions, oldest first
        max_x: Largest allowed x of the top-left corner
        max_y: Largest allowed y of the top-left corner

    Returns:
        Predicted box
    """
    if len(history) == 2:
        previous, last = history
        dx = last.x - previous.x
        dy = last.y - previous.y
    elif len(history) == 3:
        first, previous, last = history
        velocity_x, velocity_y = last.x - previous.x, last.y - previous.y
        accel_x = velocity_x - (previous.x - first.x)
        accel_y = velocity_y - (previous.y - first.y)
        dx = velocity_x + 0.5 * accel_x
        dy = velocity_y + 0.5 * accel_y
    else:
        raise ValueError(f"Prediction needs 2 or 3 positions, got {len(history)}")

    predicted = Rectangle(
        clamp(last.x + dx, 0.0, max_x),
        clamp(last.y + dy, 0.0, max_y),
        last.width,
        last.height,
    )
    logger.debug(f"Predicted ({predicted.x:.1f}, {predicted.y:.1f}) from {len(history)} positions")
    return predicted


class TrackedPositions:
    """The up to three most recent boxes of one tracked object, oldest first."""

    CAPACITY = 3

    def __init__(self):
        self._positions: Deque[Rectangle] = deque(maxlen=self.CAPACITY)

    def push(self, box: Rectangle):
        """Record the newest position, evicting the oldest once full."""
        self._positions.append(box)

    def clear(self):
        self._positions.clear()

    def can_predict(self) -> bool:
        return len(self._positions) >= 2

    def predict(self, max_x: float, max_y: float) -> Optional[Rectangle]:
        if not self.can_predict():
            return None
        return predict_position(list(self._positions), max_x, max_y)

    def as_list(self) -> List[Rectangle]:
        return list(self._positions)

    def __len__(self):
        return len(self._positions)
