"""Hand landmark types. The MediaPipe wrapper lives in detection.hand_detector."""
from .landmarks import HandLandmarks, Landmark, LandmarkIndex, NUM_HAND_LANDMARKS

__all__ = ["HandLandmarks", "Landmark", "LandmarkIndex", "NUM_HAND_LANDMARKS"]
