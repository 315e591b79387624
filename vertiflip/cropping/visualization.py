"""
Visualization utilities for vertiflip.

This module draws detections and crop decisions onto frames for debugging
the layout and smoothing behaviour.
"""

import logging
from typing import Optional, Sequence

import cv2
import numpy as np

from vertiflip.cropping.types import CropDecision, Rectangle
from vertiflip.detection.objects import DetectedObject

# Create module-level logger
logger = logging.getLogger("vertiflip.cropping.visualization")


class VisualizationUtils:
    """
    Utilities for creating debug visualizations.

    Crop regions are drawn in green (stacked bottom region in yellow, full
    frame resize in magenta) and detections in blue with their label and
    confidence.
    """

    REGION_COLORS = {
        "single": (0, 255, 0),
        "stacked_top": (0, 255, 0),
        "stacked_bottom": (0, 255, 255),
        "resize": (255, 0, 255),
    }
    OBJECT_COLOR = (255, 0, 0)
    FONT = cv2.FONT_HERSHEY_SIMPLEX

    @staticmethod
    def create_debug_frame(
        frame: np.ndarray,
        decision: CropDecision,
        objects: Optional[Sequence[DetectedObject]] = None
    ) -> np.ndarray:
        """
        Create a debug visualization frame showing crop regions and detections.

        Args:
            frame: Original video frame
            decision: Crop decision to draw
            objects: Detections the decision was computed from

        Returns:
            Annotated copy of the frame
        """
        debug_frame = frame.copy()

        if decision.is_stacked:
            names = ("stacked_top", "stacked_bottom")
        elif decision.is_resize:
            names = ("resize",)
        else:
            names = ("single",)

        for name, region in zip(names, decision.regions):
            color = VisualizationUtils.REGION_COLORS[name]
            VisualizationUtils._draw_rectangle(debug_frame, region, color, 3)

            x, y = int(round(region.x)), int(round(region.y))
            aspect_ratio = region.width / region.height if region.height > 0 else 0.0
            cv2.putText(debug_frame, f"{decision.kind.name} AR: {aspect_ratio:.2f}", (x + 10, y + 30),
                        VisualizationUtils.FONT, 0.8, color, 2, cv2.LINE_AA)
            cv2.putText(debug_frame, f"{int(region.width)}x{int(region.height)}", (x + 10, y + 60),
                        VisualizationUtils.FONT, 0.8, color, 2, cv2.LINE_AA)

        for obj in objects or ():
            VisualizationUtils._draw_rectangle(debug_frame, obj.box, VisualizationUtils.OBJECT_COLOR, 2)

            label_text = obj.label or "object"
            if obj.confidence is not None:
                label_text += f": {obj.confidence:.2f}"
            cv2.putText(debug_frame, label_text,
                        (int(obj.box.x), max(0, int(obj.box.y) - 10)),
                        VisualizationUtils.FONT, 0.6, VisualizationUtils.OBJECT_COLOR, 1, cv2.LINE_AA)

        logger.debug(f"Annotated frame with {decision} and {len(objects or ())} objects")
        return debug_frame

    @staticmethod
    def _draw_rectangle(image: np.ndarray, rect: Rectangle, color, thickness: int):
        top_left = (int(round(rect.x)), int(round(rect.y)))
        bottom_right = (int(round(rect.right)), int(round(rect.bottom)))
        cv2.rectangle(image, top_left, bottom_right, color, thickness)
