"""
Per-stream orchestration of the crop decision layer.
"""

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from tqdm import tqdm

from vertiflip.core.config import ReframeConfig
from vertiflip.cropping.frame_crop_region import FrameCropRegionComputer
from vertiflip.cropping.types import CropDecision
from vertiflip.cropping.visualization import VisualizationUtils
from vertiflip.detection.objects import DetectedObject, filter_detections
from vertiflip.smoothing.smoothers import RenderedFrame, create_smoother

logger = logging.getLogger("vertiflip.core.processor")

Detection = Union[DetectedObject, Mapping[str, Any]]
Renderer = Callable[[np.ndarray, CropDecision], Any]
GraphicClassifier = Callable[[np.ndarray], bool]


class ReframeProcessor:
    """
    Turns a stream of frames and their detections into crop decisions.

    One processor handles exactly one stream. For every frame it:
    1. Filters the detections down to the tracked class
    2. Asks the graphic classifier about frames without objects (optional)
    3. Computes a candidate crop with the layout engine
    4. Lets the smoother decide which crop is rendered, possibly for
       several withheld frames at once

    Rendered frames are handed to ``renderer`` in arrival order.

    Attributes:
        config: Reframing settings
        fps: Frame rate of the stream
        stats: Counters of received, rendered, cut and stacked frames
    """

    def __init__(
        self,
        config: Optional[ReframeConfig] = None,
        fps: float = 30.0,
        renderer: Optional[Renderer] = None,
        graphic_classifier: Optional[GraphicClassifier] = None,
    ):
        """
        Initialize the processor.

        Args:
            config: Reframing settings, defaults when omitted
            fps: Frame rate of the stream
            renderer: Called with (frame, decision) for every rendered frame
            graphic_classifier: Called with a frame without objects, returns
                True when it shows a graphic or slide rather than footage
        """
        self.config = config or ReframeConfig()
        self.fps = fps
        self.renderer = renderer
        self.graphic_classifier = graphic_classifier

        self.crop_computer = FrameCropRegionComputer(self.config.layout)
        self.smoother = create_smoother(self.config, fps, self.crop_computer)

        self.stats: Dict[str, int] = {
            "frames_received": 0,
            "frames_rendered": 0,
            "cuts": 0,
            "stacked_decisions": 0,
        }
        self._start_time: Optional[float] = None
        self._finished = False

        logger.info(f"Initializing ReframeProcessor for '{self.config.object_label}' "
                    f"at {fps} fps, stacked layout: {self.config.allow_stacked_layout}")

    def process_frame(
        self,
        frame: np.ndarray,
        detections: Sequence[Detection] = ()
    ) -> List[RenderedFrame]:
        """
        Process one frame.

        Args:
            frame: HxWx3 BGR frame
            detections: DetectedObject instances or normalised detector dicts

        Returns:
            Frames whose crop is now final, oldest first

        Raises:
            RuntimeError: If the stream was already finished
            ImageComparisonError: If the frame cannot be compared to the previous one
        """
        if self._finished:
            raise RuntimeError("Cannot process frames after finish()")
        if self._start_time is None:
            self._start_time = time.time()

        self.stats["frames_received"] += 1
        frame_height, frame_width = frame.shape[:2]

        objects = filter_detections(
            self._to_objects(detections, frame_width, frame_height),
            self.config.object_label,
            self.config.object_confidence_threshold,
            self.config.object_area_threshold,
            frame_width,
            frame_height,
        )

        is_graphic = False
        if not objects and self.config.keep_graphic and self.graphic_classifier is not None:
            is_graphic = bool(self.graphic_classifier(frame))
            logger.debug(f"Frame {self.stats['frames_received']} graphic: {is_graphic}")

        candidate = self.crop_computer.compute_crop(
            [obj.box for obj in objects],
            frame_width,
            frame_height,
            allow_stacked=self.config.allow_stacked_layout,
            is_graphic=is_graphic,
        )

        if self.config.annotate_frames:
            frame = VisualizationUtils.create_debug_frame(frame, candidate, objects)

        rendered = self.smoother.decide(frame, candidate, objects)
        self._emit(rendered)
        return rendered

    def finish(self) -> List[RenderedFrame]:
        """
        End the stream, rendering every frame the smoother still withholds.

        Returns:
            The released frames, oldest first
        """
        if self._finished:
            return []
        self._finished = True

        rendered = self.smoother.finish()
        self._emit(rendered)
        self.stats["cuts"] = self.smoother.cuts
        self._log_summary()
        return rendered

    def process_stream(
        self,
        frames: Iterable[Tuple[np.ndarray, Sequence[Detection]]],
        total: Optional[int] = None
    ) -> int:
        """
        Process a whole stream and finish it.

        Args:
            frames: Iterable of (frame, detections) pairs
            total: Number of frames, if known, for the progress bar

        Returns:
            Number of frames rendered
        """
        for frame, detections in tqdm(frames, total=total, desc="Reframing",
                                      disable=not self.config.show_progress):
            self.process_frame(frame, detections)
        self.finish()
        return self.stats["frames_rendered"]

    def _emit(self, rendered: List[RenderedFrame]):
        for item in rendered:
            self.stats["frames_rendered"] += 1
            if item.decision.is_stacked:
                self.stats["stacked_decisions"] += 1
            if self.renderer is not None:
                self.renderer(item.frame, item.decision)

    @staticmethod
    def _to_objects(
        detections: Sequence[Detection],
        frame_width: int,
        frame_height: int
    ) -> List[DetectedObject]:
        return [
            det if isinstance(det, DetectedObject)
            else DetectedObject.from_detection_dict(det, frame_width, frame_height)
            for det in detections
        ]

    def _log_summary(self):
        if self.stats["frames_received"] == 0:
            logger.warning("Stream finished without any frames")
            return

        elapsed = time.time() - self._start_time
        logger.info("===== Reframing Summary =====")
        logger.info(f"Smoothing: {self.smoother.mode.value}")
        logger.info(f"Frames received: {self.stats['frames_received']}")
        logger.info(f"Frames rendered: {self.stats['frames_rendered']}")
        logger.info(f"Scene cuts: {self.stats['cuts']}")
        logger.info(f"Stacked decisions: {self.stats['stacked_decisions']}")
        if elapsed > 0:
            logger.info(f"Frames per second: {self.stats['frames_received'] / elapsed:.2f}")
        logger.info("=============================")
