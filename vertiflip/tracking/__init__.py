from vertiflip.tracking.motion_predictor import TrackedPositions, predict_position

__all__ = ['TrackedPositions', 'predict_position']
