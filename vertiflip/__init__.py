"""
vertiflip: crop decisions for reframing landscape video into vertical video.

Given the detected objects of each frame, vertiflip decides which region(s)
of the frame to extract and keeps that decision stable over time.
"""

from vertiflip.core.config import ReframeConfig, SmoothingMode
from vertiflip.core.processor import ReframeProcessor
from vertiflip.cropping.types import CropDecision, CropKind, Rectangle
from vertiflip.detection.objects import DetectedObject
from vertiflip.smoothing.smoothers import RenderedFrame

__version__ = "0.1.0"

__all__ = [
    "ReframeConfig",
    "SmoothingMode",
    "ReframeProcessor",
    "CropDecision",
    "CropKind",
    "Rectangle",
    "DetectedObject",
    "RenderedFrame",
]
