from dataclasses import dataclass
from enum import Enum
from typing import Tuple


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned region in frame pixel units."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "Rectangle":
        return cls(x1, y1, x2 - x1, y2 - y1)

    @classmethod
    def from_center(cls, cx: float, cy: float, width: float, height: float) -> "Rectangle":
        return cls(cx - width / 2.0, cy - height / 2.0, width, height)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2.0

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2.0

    @property
    def area(self) -> float:
        return self.width * self.height

    def contains_horizontally(self, other: "Rectangle") -> bool:
        """Whether ``other`` lies within this rectangle's x-range."""
        return other.x >= self.x and other.right <= self.right

    def contains(self, other: "Rectangle") -> bool:
        return (self.contains_horizontally(other)
                and other.y >= self.y and other.bottom <= self.bottom)

    def horizontal_overlap(self, other: "Rectangle") -> float:
        """Length of the shared x-range, zero when disjoint."""
        return max(0.0, min(self.right, other.right) - max(self.x, other.x))

    def is_within_percentage(
        self,
        other: "Rectangle",
        frame_width: float,
        threshold_percent: float
    ) -> bool:
        """
        Check whether every field differs by at most a share of the frame width.

        Each of x, y, width and height is compared against the same absolute
        tolerance ``threshold_percent / 100 * frame_width``. A difference that
        lands exactly on the tolerance is still considered similar.

        Args:
            other: Rectangle to compare against
            frame_width: Width of the source frame in pixels
            threshold_percent: Allowed difference in percent (e.g. 10.0)

        Returns:
            True if all four fields are within tolerance
        """
        tolerance = (threshold_percent / 100.0 + _PERCENT_EPSILON) * frame_width
        return all(
            a == b or abs(a - b) <= tolerance
            for a, b in ((self.x, other.x), (self.y, other.y),
                         (self.width, other.width), (self.height, other.height))
        )


# Absorbs float rounding when a difference sits exactly on the threshold
_PERCENT_EPSILON = 1e-7


class CropKind(Enum):
    """Shapes a crop decision can take."""
    SINGLE = 0
    STACKED = 1
    RESIZE = 2


@dataclass(frozen=True)
class CropDecision:
    """
    Region(s) of a source frame to extract for the vertical output.

    Only build instances through ``single``, ``stacked`` and ``resize`` so
    the number of regions always matches the kind.
    """
    kind: CropKind
    regions: Tuple[Rectangle, ...]

    @classmethod
    def single(cls, region: Rectangle) -> "CropDecision":
        return cls(CropKind.SINGLE, (region,))

    @classmethod
    def stacked(cls, top: Rectangle, bottom: Rectangle) -> "CropDecision":
        return cls(CropKind.STACKED, (top, bottom))

    @classmethod
    def resize(cls, region: Rectangle) -> "CropDecision":
        return cls(CropKind.RESIZE, (region,))

    @property
    def is_single(self) -> bool:
        return self.kind is CropKind.SINGLE

    @property
    def is_stacked(self) -> bool:
        return self.kind is CropKind.STACKED

    @property
    def is_resize(self) -> bool:
        return self.kind is CropKind.RESIZE

    def prefers_over(self, committed: "CropDecision") -> bool:
        """
        Whether this decision should replace ``committed`` when a pending
        change is abandoned. Single-region framing wins over stacked or
        full-frame layouts.
        """
        return self.is_single and not committed.is_single

    def __str__(self):
        regions = ", ".join(
            f"({r.x:.1f}, {r.y:.1f}, {r.width:.1f}x{r.height:.1f})" for r in self.regions
        )
        return f"{self.kind.name}[{regions}]"


class ObjectCountBucket(Enum):
    """Classes of detected-object counts that share a layout rule."""
    NONE = 0
    ONE = 1
    TWO = 2
    THREE = 3
    FOUR_TO_FIVE = 4
    SIX_OR_MORE = 6

    @classmethod
    def for_count(cls, count: int) -> "ObjectCountBucket":
        if count <= 0:
            return cls.NONE
        if count == 1:
            return cls.ONE
        if count == 2:
            return cls.TWO
        if count == 3:
            return cls.THREE
        if count <= 5:
            return cls.FOUR_TO_FIVE
        return cls.SIX_OR_MORE
