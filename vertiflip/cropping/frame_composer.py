"""
Frame composition for vertiflip reframing.

This module provides the FrameComposer class, which turns a crop decision
into a 9:16 output frame. It is a reference renderer: callers with their own
pixel pipeline only need the decisions.
"""

import logging
from typing import Tuple

import cv2
import numpy as np

from vertiflip.cropping.geometry import clamp
from vertiflip.cropping.types import CropDecision, Rectangle

# Create module-level logger
logger = logging.getLogger("vertiflip.cropping.frame_composer")

OUTPUT_ASPECT = 9.0 / 16.0
# Share of the output height left above a single crop
SINGLE_TOP_OFFSET_FRACTION = 1.0 / 16.0

PADDING_METHODS = ("blur", "solid_color")


class FrameComposer:
    """
    Renders crop decisions into fixed-size vertical frames.

    - Single: the region scaled to the output width on a black canvas,
      offset from the top by 1/16 of the output height
    - Stacked: both regions scaled to the output width and stacked, top first
    - Resize: the whole frame fitted to the output width over a blurred
      (or solid colour) copy of itself
    """

    def __init__(
        self,
        output_width: int = 720,
        padding_method: str = "blur",
        background_color: Tuple[int, int, int] = (0, 0, 0),
        blur_cv_size: int = 101,
        background_contrast: float = 0.6
    ):
        """
        Initialize the frame composer.

        Args:
            output_width: Width of the output frames, height follows from 9:16
            padding_method: Background of resized frames ("blur" or "solid_color")
            background_color: BGR colour for solid colour padding
            blur_cv_size: Size of the background blur kernel
            background_contrast: Brightness factor applied to the blurred background
        """
        if output_width <= 0:
            error_msg = f"Invalid output width: {output_width}. Must be positive."
            logger.error(error_msg)
            raise ValueError(error_msg)
        if padding_method not in PADDING_METHODS:
            error_msg = f"Invalid padding method: {padding_method}. Expected one of: {', '.join(PADDING_METHODS)}"
            logger.error(error_msg)
            raise ValueError(error_msg)

        self.output_width = int(output_width)
        self.output_height = int(round(output_width / OUTPUT_ASPECT))
        self.padding_method = padding_method
        self.background_color = background_color
        # Kernel size must be odd
        self.blur_cv_size = blur_cv_size + (0 if blur_cv_size % 2 == 1 else 1)
        self.background_contrast = background_contrast

    def compose(self, frame: np.ndarray, decision: CropDecision) -> np.ndarray:
        """
        Render one frame with its decision.

        Args:
            frame: HxWx3 BGR source frame
            decision: Crop decision for the frame

        Returns:
            output_height x output_width x 3 uint8 frame
        """
        if frame.dtype != np.uint8:
            frame = cv2.convertScaleAbs(frame)

        if decision.is_resize:
            return self._compose_resize(frame)

        canvas = np.zeros((self.output_height, self.output_width, 3), dtype=np.uint8)
        if decision.is_single:
            top = int(round(self.output_height * SINGLE_TOP_OFFSET_FRACTION))
            self._paste(canvas, self._scaled_crop(frame, decision.regions[0]), top)
        else:
            top = 0
            for region in decision.regions:
                part = self._scaled_crop(frame, region)
                self._paste(canvas, part, top)
                top += part.shape[0]
        return canvas

    def _compose_resize(self, frame: np.ndarray) -> np.ndarray:
        frame_height, frame_width = frame.shape[:2]
        fitted_height = max(1, int(round(self.output_width * frame_height / frame_width)))
        fitted_height = min(fitted_height, self.output_height)
        fitted = cv2.resize(frame, (self.output_width, fitted_height), interpolation=cv2.INTER_AREA)

        if self.padding_method == "solid_color":
            canvas = np.full((self.output_height, self.output_width, 3), self.background_color, dtype=np.uint8)
        else:
            canvas = self._blurred_background(frame)

        top = (self.output_height - fitted_height) // 2
        canvas[top:top + fitted_height] = fitted
        logger.debug(f"Resize: fitted {frame_width}x{frame_height} into {self.output_width}x{fitted_height} "
                     f"at y={top}")
        return canvas

    def _blurred_background(self, frame: np.ndarray) -> np.ndarray:
        """Scale the frame to cover the output, then blur and darken it."""
        frame_height, frame_width = frame.shape[:2]
        scale = max(self.output_width / frame_width, self.output_height / frame_height)
        cover_width = max(self.output_width, int(round(frame_width * scale)))
        cover_height = max(self.output_height, int(round(frame_height * scale)))
        cover = cv2.resize(frame, (cover_width, cover_height))

        x = (cover_width - self.output_width) // 2
        y = (cover_height - self.output_height) // 2
        background = cover[y:y + self.output_height, x:x + self.output_width]

        # Blur at half resolution, which is much faster for large kernels
        small = cv2.resize(background, (max(1, self.output_width // 2), max(1, self.output_height // 2)))
        small = cv2.GaussianBlur(small, (self.blur_cv_size, self.blur_cv_size), 0)
        background = cv2.resize(small, (self.output_width, self.output_height))
        return cv2.convertScaleAbs(background, alpha=self.background_contrast, beta=0)

    def _scaled_crop(self, frame: np.ndarray, region: Rectangle) -> np.ndarray:
        """Cut ``region`` out of the frame and scale it to the output width."""
        frame_height, frame_width = frame.shape[:2]
        x1 = int(round(clamp(region.x, 0, frame_width - 1)))
        y1 = int(round(clamp(region.y, 0, frame_height - 1)))
        x2 = int(round(clamp(region.right, x1 + 1, frame_width)))
        y2 = int(round(clamp(region.bottom, y1 + 1, frame_height)))
        crop = frame[y1:y2, x1:x2]

        crop_height, crop_width = crop.shape[:2]
        scaled_height = max(1, int(round(self.output_width * crop_height / crop_width)))
        return cv2.resize(crop, (self.output_width, scaled_height))

    def _paste(self, canvas: np.ndarray, part: np.ndarray, top: int):
        """Copy ``part`` into the canvas at ``top``, truncating at the bottom edge."""
        if top >= canvas.shape[0]:
            return
        rows = min(part.shape[0], canvas.shape[0] - top)
        canvas[top:top + rows] = part[:rows]
