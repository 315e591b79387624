"""
Scene-cut detection between consecutive frames.

Frames are compared with a hybrid score: structural similarity (SSIM) of the
luma channel multiplied by the histogram correlation of the two chroma
channels. The score is 1.0 for identical frames and falls towards 0.0 as the
frames diverge. A hysteresis on the previous score keeps gradual motion from
being reported as a run of cuts.
"""

import logging
from typing import Optional

import cv2
import numpy as np
from skimage.metrics import structural_similarity

logger = logging.getLogger("vertiflip.detection.cut_detector")


class ImageComparisonError(ValueError):
    """Raised when two frames cannot be compared."""


class CutDetector:
    """
    Stateful frame-to-frame cut detector, one instance per stream.

    A comparison is a cut when:
    - the score is below ``hard_cut_threshold``, or
    - it is the first comparison and the score is below ``similarity_threshold``, or
    - the score is below ``similarity_threshold`` and the previous score was
      above ``previous_similarity_threshold``.
    """

    # Frames wider than this are downscaled before comparing
    MAX_COMPARE_WIDTH = 640
    HISTOGRAM_BINS = 32
    # Side of the Gaussian window skimage derives from SSIM_SIGMA
    SSIM_MIN_SIDE = 11
    SSIM_SIGMA = 1.5

    def __init__(
        self,
        similarity_threshold: float = 0.3,
        previous_similarity_threshold: float = 0.8,
        hard_cut_threshold: float = 0.08,
    ):
        """
        Initialize the cut detector.

        Args:
            similarity_threshold: Scores below this may be a cut
            previous_similarity_threshold: A sub-threshold score only counts as a
                cut when the previous score was above this value
            hard_cut_threshold: Scores below this are always a cut
        """
        self.similarity_threshold = similarity_threshold
        self.previous_similarity_threshold = previous_similarity_threshold
        self.hard_cut_threshold = hard_cut_threshold
        self.previous_score: Optional[float] = None

    def is_cut(self, previous_frame: np.ndarray, current_frame: np.ndarray) -> bool:
        """
        Compare two frames and decide whether there is a cut between them.

        Raises:
            ImageComparisonError: If the frames are empty, have an unsupported
                layout, differ in shape, or are smaller than the SSIM window
        """
        score = self.similarity(previous_frame, current_frame)
        return self.evaluate_score(score)

    def evaluate_score(self, score: float) -> bool:
        """Apply the cut rule to a similarity score and remember it."""
        if score < self.hard_cut_threshold:
            cut = True
        elif self.previous_score is None:
            cut = score < self.similarity_threshold
        else:
            cut = (score < self.similarity_threshold
                   and self.previous_score > self.previous_similarity_threshold)

        logger.debug(f"Similarity {score:.3f} (previous {self.previous_score}) -> cut={cut}")
        self.previous_score = score
        return cut

    def similarity(self, first: np.ndarray, second: np.ndarray) -> float:
        """
        Hybrid similarity of two frames in [0, 1].

        Args:
            first: BGR, BGRA or grayscale frame
            second: Frame with the same shape as ``first``

        Returns:
            Similarity score, 1.0 for identical frames
        """
        first = np.asarray(first)
        second = np.asarray(second)
        if first.shape != second.shape:
            raise ImageComparisonError(
                f"Cannot compare frames of different shapes: {first.shape} vs {second.shape}")

        first = self._prepare(first)
        second = self._prepare(second)

        if first.ndim == 2:
            return self._structural_similarity(first, second)

        first_ycrcb = cv2.cvtColor(first, cv2.COLOR_BGR2YCrCb)
        second_ycrcb = cv2.cvtColor(second, cv2.COLOR_BGR2YCrCb)

        structural = self._structural_similarity(first_ycrcb[:, :, 0], second_ycrcb[:, :, 0])
        chroma = np.mean([
            self._histogram_similarity(np.ascontiguousarray(first_ycrcb[:, :, channel]),
                                       np.ascontiguousarray(second_ycrcb[:, :, channel]))
            for channel in (1, 2)
        ])
        return float(structural * chroma)

    def _prepare(self, frame: np.ndarray) -> np.ndarray:
        """Normalise a frame to uint8 BGR or grayscale at comparison size."""
        if frame.size == 0:
            raise ImageComparisonError("Cannot compare an empty frame")

        if frame.ndim == 3 and frame.shape[2] == 1:
            frame = np.ascontiguousarray(frame[:, :, 0])
        if frame.ndim not in (2, 3) or (frame.ndim == 3 and frame.shape[2] not in (3, 4)):
            raise ImageComparisonError(f"Unsupported frame layout: {frame.shape}")

        if frame.dtype != np.uint8:
            if np.issubdtype(frame.dtype, np.floating):
                # Scale float values to 0-255 range
                frame = (frame * 255).clip(0, 255).astype(np.uint8)
            else:
                frame = frame.clip(0, 255).astype(np.uint8)

        if frame.ndim == 3 and frame.shape[2] == 4:
            frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)

        height, width = frame.shape[:2]
        if width > self.MAX_COMPARE_WIDTH:
            scale = self.MAX_COMPARE_WIDTH / width
            new_size = (self.MAX_COMPARE_WIDTH, max(1, int(height * scale)))
            frame = cv2.resize(frame, new_size, interpolation=cv2.INTER_AREA)
        return frame

    def _structural_similarity(self, first: np.ndarray, second: np.ndarray) -> float:
        """Mean SSIM over a Gaussian window, clipped to [0, 1]."""
        if min(first.shape[:2]) < self.SSIM_MIN_SIDE:
            raise ImageComparisonError(
                f"Frames must be at least {self.SSIM_MIN_SIDE}px on each side, got {first.shape[:2]}")
        score = structural_similarity(
            first, second,
            gaussian_weights=True,
            sigma=self.SSIM_SIGMA,
            use_sample_covariance=False,
            data_range=255,
        )
        return float(np.clip(score, 0.0, 1.0))

    def _histogram_similarity(self, first: np.ndarray, second: np.ndarray) -> float:
        """Correlation of two single-channel histograms, clipped to [0, 1]."""
        bins = [self.HISTOGRAM_BINS]
        first_hist = cv2.calcHist([first], [0], None, bins, [0, 256])
        second_hist = cv2.calcHist([second], [0], None, bins, [0, 256])
        correlation = cv2.compareHist(first_hist, second_hist, cv2.HISTCMP_CORREL)
        return float(np.clip(correlation, 0.0, 1.0))
