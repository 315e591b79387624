"""Shared fixtures for the vertiflip test suite."""

import numpy as np
import pytest

from vertiflip.cropping.types import CropDecision, Rectangle
from vertiflip.detection.objects import DetectedObject


FRAME_WIDTH = 1920
FRAME_HEIGHT = 1080


@pytest.fixture
def frame_size():
    """Full HD landscape frame as (width, height)."""
    return FRAME_WIDTH, FRAME_HEIGHT


@pytest.fixture
def noise_frame():
    """Factory for reproducible random BGR frames."""
    def make(width=320, height=180, seed=0):
        rng = np.random.default_rng(seed)
        return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
    return make


@pytest.fixture
def solid_frame():
    """Factory for single-colour BGR frames."""
    def make(width=320, height=180, color=(0, 0, 0)):
        return np.full((height, width, 3), color, dtype=np.uint8)
    return make


@pytest.fixture
def box():
    """Factory for square boxes given their centre."""
    def make(cx, cy, size=100.0):
        return Rectangle.from_center(cx, cy, size, size)
    return make


@pytest.fixture
def head():
    """Factory for confident 'head' detections given a box."""
    def make(rect, confidence=0.9, label="head"):
        return DetectedObject(rect, confidence, label)
    return make


@pytest.fixture
def single_at():
    """Factory for full-height 3:4 single decisions in a 320x180 frame."""
    def make(x):
        return CropDecision.single(Rectangle(x, 0.0, 135.0, 180.0))
    return make
