"""
Temporal smoothing package for vertiflip.

This package keeps crop decisions stable across frames, resetting on
scene cuts.
"""

from vertiflip.smoothing.history import FrameRecord, HistoryBuffer
from vertiflip.smoothing.smoothers import (
    BallTrackingSmoother,
    HistorySmoother,
    PassThroughSmoother,
    PreviousCropSmoother,
    RenderedFrame,
    Smoother,
    create_smoother
)

__all__ = [
    'FrameRecord',
    'HistoryBuffer',
    'BallTrackingSmoother',
    'HistorySmoother',
    'PassThroughSmoother',
    'PreviousCropSmoother',
    'RenderedFrame',
    'Smoother',
    'create_smoother'
]
