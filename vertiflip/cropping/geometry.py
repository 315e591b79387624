"""
Geometry helpers shared by the crop layout rules.
"""

from typing import Iterable, Sequence

from vertiflip.cropping.types import Rectangle


def bounding_region(boxes: Iterable[Rectangle]) -> Rectangle:
    """
    Smallest axis-aligned rectangle containing every box.

    An empty input yields a zero-sized rectangle at the origin.
    """
    boxes = list(boxes)
    if not boxes:
        return Rectangle(0.0, 0.0, 0.0, 0.0)

    min_x = min(box.x for box in boxes)
    min_y = min(box.y for box in boxes)
    max_x = max(box.right for box in boxes)
    max_y = max(box.bottom for box in boxes)
    return Rectangle(min_x, min_y, max_x - min_x, max_y - min_y)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def clamp_start(start: float, length: float, limit: float) -> float:
    """
    Keep a span of ``length`` starting at ``start`` inside ``[0, limit]``.

    A negative start snaps to 0. Otherwise a span running past ``limit`` is
    pulled back to end at it, which gives a negative start when the span is
    longer than the limit.
    """
    if start < 0:
        return 0.0
    if start + length > limit:
        return limit - length
    return start


def largest_by_area(boxes: Sequence[Rectangle]) -> Rectangle:
    return max(boxes, key=lambda box: box.area)


def split_by_center(boxes: Sequence[Rectangle], split_x: float):
    """Partition boxes into those centred left of ``split_x`` and the rest."""
    left = [box for box in boxes if box.center_x < split_x]
    right = [box for box in boxes if box.center_x >= split_x]
    return left, right
