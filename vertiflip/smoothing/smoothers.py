"""
Temporal smoothing of per-frame crop decisions.

A smoother receives the crop the engine proposes for each frame and decides
which crop is actually rendered. It may withhold frames while a change is
pending, so every call returns the frames that are ready, in arrival order,
each paired with its final decision. ``finish`` releases whatever is still
withheld at the end of the stream.

The set of policies is fixed (see ``SmoothingMode``) and chosen once per
stream through ``create_smoother``.
"""

import logging
from typing import Any, List, NamedTuple, Optional, Sequence

from vertiflip.core.config import ReframeConfig, SmoothingMode
from vertiflip.cropping.frame_crop_region import FrameCropRegionComputer
from vertiflip.cropping.similarity import counts_are_class_equivalent, decisions_are_similar
from vertiflip.cropping.types import CropDecision
from vertiflip.detection.cut_detector import CutDetector
from vertiflip.detection.objects import DetectedObject
from vertiflip.smoothing.history import HistoryBuffer
from vertiflip.tracking.motion_predictor import TrackedPositions

logger = logging.getLogger("vertiflip.smoothing.smoothers")


class RenderedFrame(NamedTuple):
    """A frame together with the crop decision it must be rendered with."""
    frame: Any
    decision: CropDecision


class Smoother:
    """Common interface of the smoothing policies."""

    mode: SmoothingMode
    # Number of scene cuts seen so far
    cuts: int = 0

    def decide(
        self,
        frame: Any,
        candidate: CropDecision,
        objects: Sequence[DetectedObject]
    ) -> List[RenderedFrame]:
        """
        Consume one frame and its candidate decision.

        Args:
            frame: HxW(xC) image array of the current frame
            candidate: Decision proposed by the crop engine for this frame
            objects: Filtered detections the candidate was computed from

        Returns:
            Frames ready for rendering, oldest first (possibly empty)
        """
        raise NotImplementedError

    def finish(self) -> List[RenderedFrame]:
        """Release frames still withheld at the end of the stream."""
        return []


class PassThroughSmoother(Smoother):
    """Renders every candidate as is."""

    mode = SmoothingMode.NONE

    def decide(self, frame, candidate, objects):
        return [RenderedFrame(frame, candidate)]


class PreviousCropSmoother(Smoother):
    """Keeps the previous decision for as long as candidates stay similar to it."""

    mode = SmoothingMode.PREVIOUS

    def __init__(self, percentage_threshold: float):
        self.percentage_threshold = percentage_threshold
        self.previous_decision: Optional[CropDecision] = None

    def decide(self, frame, candidate, objects):
        previous = self.previous_decision
        if previous is not None and decisions_are_similar(
                candidate, previous, frame.shape[1], self.percentage_threshold):
            logger.debug("Candidate similar to previous crop, keeping previous")
            decision = previous
        else:
            logger.debug("Switching to candidate crop")
            decision = candidate

        self.previous_decision = decision
        return [RenderedFrame(frame, decision)]


class HistorySmoother(Smoother):
    """
    Adopts a new crop only after it persisted for ``duration_frames`` frames.

    States:
    - unseeded: no previous decision, the first candidate is adopted at once
    - stable: the previous decision is rendered while candidates agree with it
    - buffering: frames are withheld behind a change hypothesis (the decision
      at the front of the history buffer) until it is confirmed, rejected, or
      a cut resets the stream
    """

    mode = SmoothingMode.HISTORY

    def __init__(
        self,
        percentage_threshold: float,
        duration_frames: int,
        cut_detector: CutDetector
    ):
        """
        Initialize the history smoother.

        Args:
            percentage_threshold: Similarity tolerance in percent of frame width
            duration_frames: Frames a change must persist before it is adopted
            cut_detector: Per-stream cut detector
        """
        self.percentage_threshold = percentage_threshold
        self.duration_frames = duration_frames
        self.cut_detector = cut_detector

        self.previous_decision: Optional[CropDecision] = None
        self.previous_object_count = 0
        self.last_frame: Any = None
        self.history = HistoryBuffer()

    def decide(self, frame, candidate, objects):
        object_count = len(objects)

        if self.previous_decision is None:
            logger.debug(f"First frame, adopting {candidate}")
            self._commit(candidate, object_count)
            self.last_frame = frame
            return [RenderedFrame(frame, candidate)]

        previous = self.previous_decision
        frame_width = frame.shape[1]
        same_class = counts_are_class_equivalent(object_count, self.previous_object_count)
        similar = decisions_are_similar(candidate, previous, frame_width, self.percentage_threshold)
        cut = self.cut_detector.is_cut(self.last_frame, frame)
        self.last_frame = frame

        logger.debug(f"candidate={candidate} previous={previous} history={len(self.history)} "
                     f"count={object_count}/{self.previous_object_count} "
                     f"same_class={same_class} similar={similar} cut={cut}")

        rendered = []
        if cut:
            self.cuts += 1
            rendered.extend(self._flush(previous))
            self._commit(candidate, object_count)
            rendered.append(RenderedFrame(frame, candidate))
        elif same_class and similar:
            rendered.extend(self._flush(previous))
            rendered.append(RenderedFrame(frame, previous))
        elif self.history.is_empty():
            self.history.push(candidate, frame, object_count)
        else:
            rendered.extend(self._follow_change(frame, candidate, object_count, frame_width))
        return rendered

    def _follow_change(
        self,
        frame: Any,
        candidate: CropDecision,
        object_count: int,
        frame_width: int
    ) -> List[RenderedFrame]:
        """Confirm, extend or reject the change hypothesis at the buffer front."""
        hypothesis = self.history.peek_front()
        change_similar = decisions_are_similar(
            candidate, hypothesis.decision, frame_width, self.percentage_threshold)
        change_same_class = counts_are_class_equivalent(object_count, hypothesis.object_count)

        if change_similar and change_same_class:
            if len(self.history) >= self.duration_frames:
                logger.debug(f"Change confirmed after {len(self.history)} frames: {hypothesis.decision}")
                rendered = self._flush(hypothesis.decision)
                self._commit(hypothesis.decision, hypothesis.object_count)
                rendered.append(RenderedFrame(frame, hypothesis.decision))
                return rendered
            self.history.push(hypothesis.decision, frame, hypothesis.object_count)
            return []

        if hypothesis.decision.prefers_over(self.previous_decision):
            kept, kept_count = hypothesis.decision, hypothesis.object_count
        else:
            kept, kept_count = self.previous_decision, self.previous_object_count
        logger.debug(f"Change rejected, flushing {len(self.history)} frames with {kept}")
        rendered = self._flush(kept)
        self._commit(kept, kept_count)
        self.history.push(candidate, frame, object_count)
        return rendered

    def finish(self):
        if self.history.is_empty():
            return []
        logger.debug(f"Flushing {len(self.history)} withheld frames at end of stream")
        return self._flush(self.previous_decision)

    def _commit(self, decision: CropDecision, object_count: int):
        self.previous_decision = decision
        self.previous_object_count = object_count

    def _flush(self, decision: CropDecision) -> List[RenderedFrame]:
        return [RenderedFrame(record.frame, decision) for record in self.history.drain()]


class BallTrackingSmoother(Smoother):
    """
    Follows a single tracked object and bridges short detection gaps by
    extrapolating its recent motion.
    """

    mode = SmoothingMode.BALL

    def __init__(self, cut_detector: CutDetector, crop_computer: FrameCropRegionComputer):
        self.cut_detector = cut_detector
        self.crop_computer = crop_computer

        self.previous_decision: Optional[CropDecision] = None
        self.last_frame: Any = None
        self.positions = TrackedPositions()

    def decide(self, frame, candidate, objects):
        frame_height, frame_width = frame.shape[:2]

        # The first frame starts a shot but is not counted as a cut
        first_frame = self.last_frame is None
        cut = first_frame or self.cut_detector.is_cut(self.last_frame, frame)
        self.last_frame = frame

        if cut:
            if not first_frame:
                self.cuts += 1
                logger.debug("Cut detected, using latest crop")
            self.positions.clear()
            decision = candidate
        elif len(objects) == 1:
            self.positions.push(objects[0].box)
            decision = candidate
        elif objects:
            best = max(objects, key=lambda obj: obj.confidence or 0.0)
            logger.debug(f"{len(objects)} tracked objects, following the most confident "
                         f"({best.confidence})")
            decision = self._crop_for(best.box, frame_width, frame_height)
            self.positions.push(best.box)
        elif self.positions.can_predict():
            predicted = self.positions.predict(frame_width, frame_height)
            logger.debug(f"No detection, predicted position ({predicted.x:.1f}, {predicted.y:.1f})")
            decision = self._crop_for(predicted, frame_width, frame_height)
            self.positions.push(predicted)
        else:
            self.positions.clear()
            decision = self.previous_decision if self.previous_decision is not None else candidate

        self.previous_decision = decision
        return [RenderedFrame(frame, decision)]

    def _crop_for(self, box, frame_width, frame_height) -> CropDecision:
        return self.crop_computer.compute_crop(
            [box], frame_width, frame_height, allow_stacked=False, is_graphic=False)


def create_smoother(
    config: ReframeConfig,
    fps: float,
    crop_computer: Optional[FrameCropRegionComputer] = None
) -> Smoother:
    """
    Build the smoother for one stream.

    Args:
        config: Reframing settings
        fps: Frame rate of the stream, used to convert the smoothing duration
        crop_computer: Engine used by ball tracking to re-crop single objects

    Returns:
        A fresh smoother owning its own cut detector and history
    """
    mode = config.effective_smoothing_mode(fps)
    logger.info(f"Using {mode.value} smoothing")

    if mode is SmoothingMode.NONE:
        return PassThroughSmoother()
    if mode is SmoothingMode.PREVIOUS:
        return PreviousCropSmoother(config.smoothing_percentage_threshold)

    cut_detector = CutDetector(
        similarity_threshold=config.cut_similarity_threshold,
        previous_similarity_threshold=config.cut_previous_similarity_threshold,
        hard_cut_threshold=config.cut_hard_threshold,
    )
    if mode is SmoothingMode.HISTORY:
        return HistorySmoother(
            config.smoothing_percentage_threshold,
            config.smoothing_duration_frames(fps),
            cut_detector,
        )
    return BallTrackingSmoother(cut_detector, crop_computer or FrameCropRegionComputer(config.layout))
