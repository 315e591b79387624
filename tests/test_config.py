"""Tests for vertiflip.core.config."""

import pytest

from vertiflip.core.config import ReframeConfig, SmoothingMode
from vertiflip.cropping.frame_crop_region import LayoutSettings


class TestDefaults:
    def test_defaults(self):
        config = ReframeConfig()
        assert config.object_label == "head"
        assert config.smoothing_mode is SmoothingMode.HISTORY
        assert config.smoothing_percentage_threshold == 10.0
        assert config.cut_similarity_threshold == 0.3
        assert config.cut_previous_similarity_threshold == 0.8
        assert config.layout == LayoutSettings()
        assert not config.allow_stacked_layout

    def test_layout_instances_not_shared(self):
        assert ReframeConfig().layout is not ReframeConfig().layout


class TestFromDict:
    def test_values_and_mode_by_name(self):
        config = ReframeConfig.from_dict({
            "object_label": "face",
            "smoothing_mode": "Previous",
            "layout": {"dominant_area_ratio": 3.0},
        })
        assert config.object_label == "face"
        assert config.smoothing_mode is SmoothingMode.PREVIOUS
        assert config.layout.dominant_area_ratio == 3.0
        assert config.layout.similar_area_ratio == 2.5

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            ReframeConfig.from_dict({"smoothing_windw": 3})

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="Unknown smoothing mode"):
            ReframeConfig.from_dict({"smoothing_mode": "kalman"})


class TestValidation:
    @pytest.mark.parametrize("field", [
        "object_confidence_threshold",
        "smoothing_percentage_threshold",
        "cut_similarity_threshold",
        "cut_hard_threshold",
    ])
    def test_negative_thresholds_rejected(self, field):
        with pytest.raises(ValueError, match=field):
            ReframeConfig(**{field: -0.1})

    def test_empty_label_rejected(self):
        with pytest.raises(ValueError):
            ReframeConfig(object_label="")


class TestSmoothingDuration:
    def test_rounds_to_frames(self):
        assert ReframeConfig(smoothing_duration_seconds=1.5).smoothing_duration_frames(29.97) == 45
        assert ReframeConfig(smoothing_duration_seconds=0.5).smoothing_duration_frames(25) == 12

    def test_non_positive_seconds(self):
        assert ReframeConfig(smoothing_duration_seconds=0).smoothing_duration_frames(30) == 0
        assert ReframeConfig(smoothing_duration_seconds=-1).smoothing_duration_frames(30) == 0

    def test_invalid_fps(self):
        with pytest.raises(ValueError):
            ReframeConfig().smoothing_duration_frames(0)

    def test_effective_mode(self):
        assert ReframeConfig(smoothing_duration_seconds=0).effective_smoothing_mode(30) is SmoothingMode.NONE
        assert ReframeConfig(object_label="Ball").effective_smoothing_mode(30) is SmoothingMode.BALL
        assert ReframeConfig(smoothing_mode="none").effective_smoothing_mode(30) is SmoothingMode.NONE
