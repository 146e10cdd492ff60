"""Gesture recognition module."""
from .gesture_state import GestureState, GestureType
from .landmark_classifier import LandmarkClassifier, LandmarkClassifierConfig, InvalidLandmarkSet

__all__ = [
    "GestureState",
    "GestureType",
    "LandmarkClassifier",
    "LandmarkClassifierConfig",
    "InvalidLandmarkSet",
]
