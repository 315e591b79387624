import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from vertiflip.cropping.types import Rectangle

logger = logging.getLogger("vertiflip.detection.objects")


@dataclass(frozen=True)
class DetectedObject:
    """
    One detection handed over by the detector for a frame.

    Attributes:
        box: Bounding box in frame pixels
        confidence: Detection confidence, if the detector reports one
        label: Class name, if the detector reports one
    """
    box: Rectangle
    confidence: Optional[float] = None
    label: Optional[str] = None

    @classmethod
    def from_detection_dict(
        cls,
        detection: Dict[str, Any],
        frame_width: int,
        frame_height: int
    ) -> "DetectedObject":
        """
        Build a detection from the normalised dict format produced by the
        face and YOLO detectors.

        Args:
            detection: Dict with ``x``, ``y``, ``width``, ``height`` in 0..1
                (top-left origin) and optional ``confidence`` and ``class``
            frame_width: Width of the frame the detection belongs to
            frame_height: Height of the frame the detection belongs to

        Returns:
            DetectedObject in pixel coordinates
        """
        box = Rectangle(
            detection.get("x", 0.0) * frame_width,
            detection.get("y", 0.0) * frame_height,
            detection.get("width", 0.0) * frame_width,
            detection.get("height", 0.0) * frame_height,
        )
        confidence = detection.get("confidence")
        return cls(
            box=box,
            confidence=float(confidence) if confidence is not None else None,
            label=detection.get("class"),
        )


def filter_detections(
    objects: Iterable[DetectedObject],
    label: str,
    min_confidence: float,
    min_area_fraction: float,
    frame_width: float,
    frame_height: float
) -> List[DetectedObject]:
    """
    Keep the detections of the tracked class that are confident and large enough.

    Detections without a confidence or label are dropped. The area test is
    skipped for a zero-area frame.

    Args:
        objects: Raw detections for one frame
        label: Class name to keep (compared case-insensitively)
        min_confidence: Minimum confidence, inclusive
        min_area_fraction: Minimum box area as a fraction of the frame area
        frame_width: Width of the frame
        frame_height: Height of the frame

    Returns:
        The detections that passed, in their original order
    """
    wanted = label.lower()
    frame_area = frame_width * frame_height
    kept = []
    for obj in objects:
        if obj.label is None or obj.label.lower() != wanted:
            continue
        if obj.confidence is None or obj.confidence < min_confidence:
            continue
        if frame_area > 0 and obj.box.area / frame_area < min_area_fraction:
            continue
        kept.append(obj)

    logger.debug(f"Kept {len(kept)} '{label}' detections "
                 f"(confidence >= {min_confidence}, area >= {min_area_fraction:.4f})")
    return kept
