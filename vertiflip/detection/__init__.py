"""
Detection inputs and scene-cut detection.
"""

from vertiflip.detection.objects import DetectedObject, filter_detections
from vertiflip.detection.cut_detector import CutDetector, ImageComparisonError

__all__ = [
    'DetectedObject',
    'filter_detections',
    'CutDetector',
    'ImageComparisonError',
]
