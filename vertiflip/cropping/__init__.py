"""
Crop layout module.

This module maps detected objects onto crop decisions and renders
decisions into vertical frames.
"""

from vertiflip.cropping.types import CropDecision, CropKind, ObjectCountBucket, Rectangle
from vertiflip.cropping.frame_crop_region import FrameCropRegionComputer, LayoutSettings
from vertiflip.cropping.similarity import counts_are_class_equivalent, decisions_are_similar
from vertiflip.cropping.frame_composer import FrameComposer
from vertiflip.cropping.visualization import VisualizationUtils

__all__ = [
    "CropDecision",
    "CropKind",
    "ObjectCountBucket",
    "Rectangle",
    "FrameCropRegionComputer",
    "LayoutSettings",
    "counts_are_class_equivalent",
    "decisions_are_similar",
    "FrameComposer",
    "VisualizationUtils",
]
