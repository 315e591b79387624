"""
Tolerance-based comparison of crop decisions and object counts.

Rectangles are compared field by field against a share of the frame width
(see ``Rectangle.is_within_percentage``); the same absolute tolerance is
used whether or not one of the values is zero.
"""

from vertiflip.cropping.types import CropDecision, ObjectCountBucket, Rectangle


def rectangles_within_percentage(
    a: Rectangle, b: Rectangle, frame_width: float, threshold_percent: float
) -> bool:
    return a.is_within_percentage(b, frame_width, threshold_percent)


def decisions_are_similar(
    first: CropDecision,
    second: CropDecision,
    frame_width: float,
    threshold_percent: float
) -> bool:
    """
    Whether two decisions have the same shape and all their regions are
    within ``threshold_percent`` of the frame width. Different shapes are
    never similar.
    """
    if first.kind is not second.kind or len(first.regions) != len(second.regions):
        return False
    return all(
        rectangles_within_percentage(a, b, frame_width, threshold_percent)
        for a, b in zip(first.regions, second.regions)
    )


def counts_are_class_equivalent(first_count: int, second_count: int) -> bool:
    """Whether two object counts fall in the same layout bucket."""
    return ObjectCountBucket.for_count(first_count) is ObjectCountBucket.for_count(second_count)
