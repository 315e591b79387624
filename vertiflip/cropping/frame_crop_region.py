import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from vertiflip.cropping.geometry import (
    bounding_region,
    clamp,
    clamp_start,
    largest_by_area,
    split_by_center,
)
from vertiflip.cropping.types import CropDecision, Rectangle

logger = logging.getLogger("vertiflip.cropping.frame_crop_region")

# Width:height of every single-region crop (3:4)
SINGLE_CROP_ASPECT = 3.0 / 4.0
# Height of each side-by-side half relative to its width (8:9)
HALF_CROP_HEIGHT_RATIO = 8.0 / 9.0

# Three-object layout, both regions are 80% of the frame height
TRIO_CROP_HEIGHT_FRACTION = 0.8
TRIO_PAIR_ASPECT = 1.5  # 9:6
TRIO_SINGLE_ASPECT = 0.9  # 9:10
TRIO_PAIR_TOP_FRACTION = 0.10
TRIO_SINGLE_TOP_FRACTION = 0.15

# Dominant-object layout: minimum distance between the two region starts,
# as a fraction of the region width
DOMINANT_MIN_SEPARATION = 0.5


@dataclass
class LayoutSettings:
    """Empirically tuned thresholds of the multi-object layout rules."""
    # Max/min area ratio under which three objects count as similar in size
    similar_area_ratio: float = 2.5
    # Ratio of the two centre gaps under which three objects count as evenly spaced
    even_spacing_ratio: float = 2.0
    # An object this many times larger than every other one is dominant
    dominant_area_ratio: float = 2.5


class FrameCropRegionComputer:
    """
    Maps the detected objects of one frame onto a crop decision.

    The layout rule is chosen purely by the number of objects (0, 1, 2, 3,
    4-5, 6+). Every rule falls back to the same single 3:4 region of full
    frame height, so a decision is produced for any well-formed input.
    """

    def __init__(self, settings: Optional[LayoutSettings] = None):
        """
        Initialize the crop region computer.

        Args:
            settings: Layout thresholds, defaults to ``LayoutSettings()``
        """
        self.settings = settings or LayoutSettings()

    def compute_crop(
        self,
        object_boxes: Sequence[Rectangle],
        frame_width: float,
        frame_height: float,
        allow_stacked: bool = False,
        is_graphic: bool = False
    ) -> CropDecision:
        """
        Compute the crop decision for one frame.

        Args:
            object_boxes: Boxes of the objects to keep in view, in pixels
            frame_width: Width of the source frame
            frame_height: Height of the source frame
            allow_stacked: Whether two vertically stacked regions may be returned
            is_graphic: Whether the frame is graphic/slide content (only used
                when no objects were detected)

        Returns:
            The crop decision for the frame
        """
        boxes = list(object_boxes)
        count = len(boxes)

        if count == 0:
            decision = self._no_objects_crop(frame_width, frame_height, is_graphic)
        elif count == 1:
            decision = self.single_crop_centered(boxes[0].center_x, frame_width, frame_height)
        elif count == 2:
            decision = self._two_objects_crop(boxes, frame_width, frame_height, allow_stacked)
        elif count == 3:
            decision = self._three_objects_crop(boxes, frame_width, frame_height, allow_stacked)
        elif count <= 5:
            decision = self._group_crop(boxes, frame_width, frame_height, allow_stacked)
        else:
            decision = self._crowd_crop(boxes, frame_width, frame_height, allow_stacked)

        logger.debug(f"{count} objects in {frame_width}x{frame_height} frame "
                     f"(stacked={allow_stacked}, graphic={is_graphic}) -> {decision}")
        return decision

    def single_crop_centered(
        self, center_x: float, frame_width: float, frame_height: float
    ) -> CropDecision:
        """Full-height 3:4 region centred on ``center_x`` and kept inside the frame."""
        width = frame_height * SINGLE_CROP_ASPECT
        x = clamp_start(center_x - width / 2.0, width, frame_width)
        return CropDecision.single(Rectangle(x, 0.0, width, frame_height))

    def _no_objects_crop(
        self, frame_width: float, frame_height: float, is_graphic: bool
    ) -> CropDecision:
        if is_graphic:
            return CropDecision.resize(Rectangle(0.0, 0.0, frame_width, frame_height))
        return self.single_crop_centered(frame_width / 2.0, frame_width, frame_height)

    def _largest_object_crop(
        self, boxes: Sequence[Rectangle], frame_width: float, frame_height: float
    ) -> CropDecision:
        largest = largest_by_area(boxes)
        return self.single_crop_centered(largest.center_x, frame_width, frame_height)

    def _two_objects_crop(
        self,
        boxes: List[Rectangle],
        frame_width: float,
        frame_height: float,
        allow_stacked: bool
    ) -> CropDecision:
        region = bounding_region(boxes)
        if region.width <= frame_height * SINGLE_CROP_ASPECT:
            return self.single_crop_centered(region.center_x, frame_width, frame_height)
        if not allow_stacked:
            return self._largest_object_crop(boxes, frame_width, frame_height)

        crop_width, crop_height, default_y = self._half_crop_dims(frame_width, frame_height)
        left, right = sorted(boxes, key=lambda box: box.center_x)

        left_y = self._vertical_offset([left], default_y, frame_height, crop_height)
        right_y = self._vertical_offset([right], default_y, frame_height, crop_height)

        left_band = Rectangle(0.0, default_y, crop_width, crop_height)
        right_band = Rectangle(crop_width, default_y, crop_width, crop_height)

        def straddles(box: Rectangle) -> bool:
            return box.horizontal_overlap(left_band) > 0 and box.horizontal_overlap(right_band) > 0

        left_x, right_x = 0.0, crop_width
        if straddles(left) or straddles(right):
            left_x = self._shift_to_contain(left_x, crop_width, left, keep_left_edge=True)
            right_x = self._shift_to_contain(right_x, crop_width, right, keep_left_edge=False)
            logger.debug(f"Object straddles both halves, halves moved to x={left_x:.1f} / {right_x:.1f}")

        return CropDecision.stacked(
            Rectangle(left_x, left_y, crop_width, crop_height),
            Rectangle(right_x, right_y, crop_width, crop_height),
        )

    def _three_objects_crop(
        self,
        boxes: List[Rectangle],
        frame_width: float,
        frame_height: float,
        allow_stacked: bool
    ) -> CropDecision:
        areas = [box.area for box in boxes]
        min_area = min(areas)
        similar_size = min_area > 0 and max(areas) / min_area <= self.settings.similar_area_ratio

        ordered = sorted(boxes, key=lambda box: box.center_x)
        first_gap = ordered[1].center_x - ordered[0].center_x
        second_gap = ordered[2].center_x - ordered[1].center_x
        narrow_gap = min(first_gap, second_gap)
        evenly_spaced = (narrow_gap > 0
                         and max(first_gap, second_gap) / narrow_gap <= self.settings.even_spacing_ratio)

        if similar_size and evenly_spaced and allow_stacked:
            return self._trio_crop(ordered, frame_width, frame_height)
        return self._group_crop(boxes, frame_width, frame_height, allow_stacked)

    def _trio_crop(
        self, ordered: List[Rectangle], frame_width: float, frame_height: float
    ) -> CropDecision:
        """Pair region over the two left-most objects, narrower region over the right-most."""
        height = frame_height * TRIO_CROP_HEIGHT_FRACTION

        pair_width = height * TRIO_PAIR_ASPECT
        pair_region = bounding_region(ordered[:2])
        pair_x = clamp_start(pair_region.center_x - pair_width / 2.0, pair_width, frame_width)

        single_width = height * TRIO_SINGLE_ASPECT
        single_x = clamp_start(ordered[2].center_x - single_width / 2.0, single_width, frame_width)

        return CropDecision.stacked(
            Rectangle(pair_x, frame_height * TRIO_PAIR_TOP_FRACTION, pair_width, height),
            Rectangle(single_x, frame_height * TRIO_SINGLE_TOP_FRACTION, single_width, height),
        )

    def _group_crop(
        self,
        boxes: List[Rectangle],
        frame_width: float,
        frame_height: float,
        allow_stacked: bool
    ) -> CropDecision:
        region = bounding_region(boxes)
        if region.width <= frame_height * SINGLE_CROP_ASPECT:
            return self.single_crop_centered(region.center_x, frame_width, frame_height)
        if not allow_stacked:
            return self._largest_object_crop(boxes, frame_width, frame_height)

        crop_width, crop_height, default_y = self._half_crop_dims(frame_width, frame_height)
        left_boxes, right_boxes = split_by_center(boxes, frame_width / 2.0)
        left_y = self._vertical_offset(left_boxes, default_y, frame_height, crop_height)
        right_y = self._vertical_offset(right_boxes, default_y, frame_height, crop_height)

        left_band = Rectangle(0.0, left_y, crop_width, crop_height)
        right_band = Rectangle(crop_width, right_y, crop_width, crop_height)
        if all(left_band.contains_horizontally(box) or right_band.contains_horizontally(box)
               for box in boxes):
            return CropDecision.stacked(left_band, right_band)

        left_x = self._fit_group(left_boxes, crop_width, keep_left_edge=True) if left_boxes else 0.0
        right_x = self._fit_group(right_boxes, crop_width, keep_left_edge=False) if right_boxes else crop_width

        left_crop, right_crop = self._ensure_containment(
            boxes,
            replace(left_band, x=left_x),
            replace(right_band, x=right_x),
            crop_width,
        )
        return CropDecision.stacked(left_crop, right_crop)

    def _crowd_crop(
        self,
        boxes: List[Rectangle],
        frame_width: float,
        frame_height: float,
        allow_stacked: bool
    ) -> CropDecision:
        region = bounding_region(boxes)
        if region.width <= frame_height * SINGLE_CROP_ASPECT:
            return self.single_crop_centered(region.center_x, frame_width, frame_height)

        dominant_index = self._find_dominant(boxes)
        if dominant_index is None:
            logger.debug("No dominant object among the crowd, using the default crop")
            return self._no_objects_crop(frame_width, frame_height, is_graphic=False)

        dominant = boxes[dominant_index]
        if not allow_stacked:
            return self.single_crop_centered(dominant.center_x, frame_width, frame_height)

        crop_width, crop_height, crop_y = self._half_crop_dims(frame_width, frame_height)
        first_x = clamp_start(dominant.center_x - crop_width / 2.0, crop_width, frame_width)

        rest = bounding_region(box for i, box in enumerate(boxes) if i != dominant_index)
        second_x = clamp_start(rest.center_x - crop_width / 2.0, crop_width, frame_width)
        if abs(first_x - second_x) < crop_width * DOMINANT_MIN_SEPARATION:
            second_x = frame_width - crop_width if first_x < frame_width / 2.0 else 0.0

        return CropDecision.stacked(
            Rectangle(first_x, crop_y, crop_width, crop_height),
            Rectangle(second_x, crop_y, crop_width, crop_height),
        )

    def _find_dominant(self, boxes: Sequence[Rectangle]) -> Optional[int]:
        """Index of the first box at least ``dominant_area_ratio`` times every other box."""
        ratio = self.settings.dominant_area_ratio
        for i, box in enumerate(boxes):
            if box.area <= 0:
                continue
            if all(i == j or box.area >= other.area * ratio for j, other in enumerate(boxes)):
                return i
        return None

    @staticmethod
    def _half_crop_dims(frame_width: float, frame_height: float) -> Tuple[float, float, float]:
        """Width, height and default top of each half of a side-by-side stacked crop."""
        crop_width = frame_width * 0.5
        crop_height = crop_width * HALF_CROP_HEIGHT_RATIO
        default_y = (frame_height - crop_height) / 2.0
        return crop_width, crop_height, default_y

    @staticmethod
    def _vertical_offset(
        boxes: Sequence[Rectangle],
        default_y: float,
        frame_height: float,
        crop_height: float
    ) -> float:
        """Snap a half to the top or bottom edge when its objects leave the default band."""
        if not boxes:
            return default_y
        group_top = min(box.y for box in boxes)
        group_bottom = max(box.bottom for box in boxes)
        if group_top < default_y:
            return 0.0
        if group_bottom > default_y + crop_height:
            return frame_height - crop_height
        return default_y

    @staticmethod
    def _shift_to_contain(
        start: float, width: float, box: Rectangle, keep_left_edge: bool
    ) -> float:
        """
        Move a half so it covers ``box``, within the half's movement range
        ``[0, width]``. When the box is wider than the half, the edge named by
        ``keep_left_edge`` is the one that stays covered.
        """
        if keep_left_edge:
            if box.right > start + width:
                start = box.right - width
            if box.x < start:
                start = box.x
        else:
            if box.x < start:
                start = box.x
            if box.right > start + width:
                start = box.right - width
        return clamp(start, 0.0, width)

    @staticmethod
    def _fit_group(boxes: Sequence[Rectangle], width: float, keep_left_edge: bool) -> float:
        group = bounding_region(boxes)
        if group.width > width:
            start = (group.x + group.right - width) / 2.0
        elif keep_left_edge:
            start = group.x
        else:
            start = group.right - width
        return clamp(start, 0.0, width)

    @staticmethod
    def _ensure_containment(
        boxes: Sequence[Rectangle],
        left_crop: Rectangle,
        right_crop: Rectangle,
        width: float
    ) -> Tuple[Rectangle, Rectangle]:
        """Nudge the nearer half onto any box that neither half covers."""
        for box in boxes:
            if left_crop.contains_horizontally(box) or right_crop.contains_horizontally(box):
                continue
            to_left = abs(box.center_x - left_crop.center_x)
            to_right = abs(box.center_x - right_crop.center_x)
            if to_left <= to_right:
                left_crop = replace(left_crop, x=clamp(box.x, 0.0, width))
            else:
                right_crop = replace(right_crop, x=clamp(box.right - width, 0.0, width))
            logger.debug(f"Object at x={box.x:.1f} uncovered, halves now at "
                         f"{left_crop.x:.1f} / {right_crop.x:.1f}")
        return left_crop, right_crop


_default_computer = FrameCropRegionComputer()


def compute_crop(
    object_boxes: Sequence[Rectangle],
    frame_width: float,
    frame_height: float,
    allow_stacked: bool = False,
    is_graphic: bool = False
) -> CropDecision:
    """Compute a crop decision with the default layout settings."""
    return _default_computer.compute_crop(
        object_boxes, frame_width, frame_height, allow_stacked, is_graphic)
