"""
Configuration for reframing a stream.
"""

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict

from vertiflip.cropping.frame_crop_region import LayoutSettings

logger = logging.getLogger("vertiflip.core.config")

BALL_LABEL = "ball"


class SmoothingMode(Enum):
    """Temporal smoothing policies."""
    NONE = "none"
    PREVIOUS = "previous"
    HISTORY = "history"
    BALL = "ball"


@dataclass
class ReframeConfig:
    """
    Settings of one reframing run.

    Attributes:
        object_label: Detector class the crop follows (e.g. "head", "face", "ball")
        object_confidence_threshold: Minimum detection confidence
        object_area_threshold: Minimum box area as a fraction of the frame area
        allow_stacked_layout: Whether two stacked regions may be produced
        keep_graphic: Consult the graphic classifier on frames without objects
        smoothing_mode: Temporal smoothing policy
        smoothing_percentage_threshold: Similarity tolerance in percent of frame width
        smoothing_duration_seconds: How long a change must persist before it is adopted
        cut_similarity_threshold: Frame similarity below which a cut may be reported
        cut_previous_similarity_threshold: Previous similarity above which a
            sub-threshold score is accepted as a cut
        cut_hard_threshold: Frame similarity below which a cut is always reported
        layout: Thresholds of the multi-object layout rules
        annotate_frames: Draw detections and crop regions onto frames
        show_progress: Show a progress bar when processing a whole stream
    """
    object_label: str = "head"
    object_confidence_threshold: float = 0.3
    object_area_threshold: float = 0.0
    allow_stacked_layout: bool = False
    keep_graphic: bool = False
    smoothing_mode: SmoothingMode = SmoothingMode.HISTORY
    smoothing_percentage_threshold: float = 10.0
    smoothing_duration_seconds: float = 1.5
    cut_similarity_threshold: float = 0.3
    cut_previous_similarity_threshold: float = 0.8
    cut_hard_threshold: float = 0.08
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    annotate_frames: bool = False
    show_progress: bool = True

    def __post_init__(self):
        if isinstance(self.smoothing_mode, str):
            self.smoothing_mode = self._parse_mode(self.smoothing_mode)
        if isinstance(self.layout, dict):
            self.layout = LayoutSettings(**self.layout)

        for name in ("object_confidence_threshold", "object_area_threshold",
                     "smoothing_percentage_threshold", "cut_similarity_threshold",
                     "cut_previous_similarity_threshold", "cut_hard_threshold"):
            if getattr(self, name) < 0:
                self._fail(f"{name} must be non-negative, got {getattr(self, name)}")

        if not self.object_label:
            self._fail("object_label must not be empty")

    @staticmethod
    def _fail(message: str):
        logger.error(message)
        raise ValueError(message)

    @classmethod
    def _parse_mode(cls, value: str) -> SmoothingMode:
        try:
            return SmoothingMode(value.lower())
        except ValueError:
            names = ", ".join(mode.value for mode in SmoothingMode)
            cls._fail(f"Unknown smoothing mode: {value}. Expected one of: {names}")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "ReframeConfig":
        """
        Build a config from plain values, e.g. a parsed YAML or JSON document.

        Raises:
            ValueError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            cls._fail(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**values)

    def smoothing_duration_frames(self, fps: float) -> int:
        """Smoothing duration converted to a frame count at ``fps``."""
        if fps <= 0:
            self._fail(f"Frame rate must be positive, got {fps}")
        if self.smoothing_duration_seconds <= 0:
            return 0
        return int(round(self.smoothing_duration_seconds * fps))

    def effective_smoothing_mode(self, fps: float) -> SmoothingMode:
        """
        Policy actually used at ``fps``: ball streams always use ball
        tracking, and a zero-frame duration disables smoothing.
        """
        if self.smoothing_duration_frames(fps) == 0:
            return SmoothingMode.NONE
        if self.object_label.lower() == BALL_LABEL:
            return SmoothingMode.BALL
        return self.smoothing_mode
