"""Tests for the per-stream processor."""

import numpy as np
import pytest

from vertiflip.core.config import ReframeConfig
from vertiflip.core.processor import ReframeProcessor
from vertiflip.cropping.types import CropDecision, Rectangle
from vertiflip.detection.objects import DetectedObject


def centered_face(frame_width=1920, frame_height=1080, size=100, confidence=0.9):
    """Normalised detector dict for a face in the middle of the frame."""
    return {
        "x": (frame_width - size) / 2 / frame_width,
        "y": (frame_height - size) / 2 / frame_height,
        "width": size / frame_width,
        "height": size / frame_height,
        "confidence": confidence,
        "class": "head",
    }


@pytest.fixture
def hd_frame():
    return np.zeros((1080, 1920, 3), dtype=np.uint8)


@pytest.fixture
def no_smoothing():
    return ReframeConfig(smoothing_duration_seconds=0, show_progress=False)


class TestEndToEnd:
    def test_centered_face_without_buffering(self, hd_frame, no_smoothing):
        processor = ReframeProcessor(no_smoothing, fps=30)
        for _ in range(5):
            rendered = processor.process_frame(hd_frame, [centered_face()])
            assert len(rendered) == 1
            region = rendered[0].decision.regions[0]
            assert rendered[0].decision.is_single
            assert region.x == pytest.approx(555)
            assert region.y == 0
            assert region.width == pytest.approx(810)
            assert region.height == 1080
        assert processor.finish() == []

    def test_renderer_receives_every_frame(self, noise_frame):
        calls = []
        config = ReframeConfig(smoothing_duration_seconds=0.1, show_progress=False)
        processor = ReframeProcessor(config, fps=30, renderer=lambda f, d: calls.append((f, d)))
        frame = noise_frame()
        detections = [DetectedObject(Rectangle(20 + 10 * i, 80, 10, 10), 0.9, "head") for i in range(3)]
        for obj in detections:
            processor.process_frame(frame, [obj])
        processor.process_frame(frame, [])
        processor.finish()

        assert len(calls) == 4
        assert processor.stats["frames_received"] == 4
        assert processor.stats["frames_rendered"] == 4

    def test_process_stream(self, noise_frame, no_smoothing):
        frame = noise_frame()
        count = ReframeProcessor(no_smoothing, fps=30).process_stream(
            ((frame, []) for _ in range(7)), total=7)
        assert count == 7


class TestFiltering:
    def test_low_confidence_detection_ignored(self, hd_frame, no_smoothing):
        processor = ReframeProcessor(no_smoothing, fps=30)
        face = centered_face(confidence=0.1)
        face["x"] = 0.0
        rendered = processor.process_frame(hd_frame, [face])
        assert rendered[0].decision.regions[0].center_x == pytest.approx(960)

    def test_other_labels_ignored(self, hd_frame, no_smoothing):
        processor = ReframeProcessor(no_smoothing, fps=30)
        face = dict(centered_face(), x=0.0, **{"class": "ball"})
        rendered = processor.process_frame(hd_frame, [face])
        assert rendered[0].decision.regions[0].center_x == pytest.approx(960)


class TestGraphicGate:
    def test_graphic_frame_without_objects(self, hd_frame):
        config = ReframeConfig(smoothing_duration_seconds=0, keep_graphic=True)
        processor = ReframeProcessor(config, fps=30, graphic_classifier=lambda frame: True)
        rendered = processor.process_frame(hd_frame, [])
        assert rendered[0].decision == CropDecision.resize(Rectangle(0, 0, 1920, 1080))

    def test_classifier_not_consulted_with_objects(self, hd_frame):
        calls = []

        def classifier(frame):
            calls.append(frame)
            return True

        config = ReframeConfig(smoothing_duration_seconds=0, keep_graphic=True)
        processor = ReframeProcessor(config, fps=30, graphic_classifier=classifier)
        rendered = processor.process_frame(hd_frame, [centered_face()])
        assert rendered[0].decision.is_single
        assert calls == []

    def test_classifier_ignored_unless_enabled(self, hd_frame, no_smoothing):
        processor = ReframeProcessor(no_smoothing, fps=30, graphic_classifier=lambda frame: True)
        assert processor.process_frame(hd_frame, [])[0].decision.is_single


class TestLifecycle:
    def test_history_smoothing_flushes_on_finish(self, noise_frame):
        config = ReframeConfig(smoothing_duration_seconds=1.0, show_progress=False)
        processor = ReframeProcessor(config, fps=30)
        frame = noise_frame()
        processor.process_frame(frame, [])
        left = DetectedObject(Rectangle(0, 80, 10, 10), 0.9, "head")
        assert processor.process_frame(frame, [left]) == []
        assert len(processor.finish()) == 1
        assert processor.stats["frames_rendered"] == 2

    def test_finish_twice(self, noise_frame, no_smoothing):
        processor = ReframeProcessor(no_smoothing, fps=30)
        processor.process_frame(noise_frame(), [])
        processor.finish()
        assert processor.finish() == []

    def test_frames_after_finish_rejected(self, noise_frame, no_smoothing):
        processor = ReframeProcessor(no_smoothing, fps=30)
        processor.finish()
        with pytest.raises(RuntimeError):
            processor.process_frame(noise_frame(), [])

    def test_stacked_decisions_counted(self, hd_frame):
        config = ReframeConfig(smoothing_duration_seconds=0, allow_stacked_layout=True)
        processor = ReframeProcessor(config, fps=30)
        faces = [DetectedObject(Rectangle(200, 400, 100, 100), 0.9, "head"),
                 DetectedObject(Rectangle(1600, 400, 100, 100), 0.9, "head")]
        processor.process_frame(hd_frame, faces)
        processor.finish()
        assert processor.stats["stacked_decisions"] == 1

    def test_annotated_frames_are_rendered(self, hd_frame):
        config = ReframeConfig(smoothing_duration_seconds=0, annotate_frames=True)
        processor = ReframeProcessor(config, fps=30)
        rendered = processor.process_frame(hd_frame, [centered_face()])
        assert rendered[0].frame is not hd_frame
        assert rendered[0].frame.any()
        assert not hd_frame.any()
