"""
Hand Landmark Types
====================

Plain data containers for tracked hand landmarks. Kept free of any
MediaPipe import so the gesture logic can run on recorded or synthetic
landmark data.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Tuple, NamedTuple
from enum import IntEnum


# Number of points produced per hand by the landmark model
NUM_HAND_LANDMARKS = 21


class LandmarkIndex(IntEnum):
    """Hand landmark indices following MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


class Landmark(NamedTuple):
    """A single landmark point with normalized coordinates."""
    x: float  # 0.0 to 1.0, normalized by image width
    y: float  # 0.0 to 1.0, normalized by image height
    z: float = 0.0  # Depth relative to wrist (unused by the classifier)

    def to_pixel(self, width: int, height: int) -> Tuple[int, int]:
        """Convert normalized coordinates to pixel coordinates."""
        return (int(self.x * width), int(self.y * height))


@dataclass
class HandLandmarks:
    """One detected hand: ordered landmarks plus detector metadata."""
    landmarks: List[Landmark]
    handedness: str = "Right"  # "Left" or "Right"
    confidence: float = 1.0
    image_width: int = 640
    image_height: int = 480

    def __len__(self) -> int:
        return len(self.landmarks)

    def get(self, index: LandmarkIndex) -> Landmark:
        """Get landmark by index."""
        return self.landmarks[index]

    def get_pixel(self, index: LandmarkIndex) -> Tuple[int, int]:
        """Get landmark as pixel coordinates."""
        return self.get(index).to_pixel(self.image_width, self.image_height)

    def to_numpy(self) -> np.ndarray:
        """Convert landmarks to numpy array of shape (N, 3)."""
        return np.array([[lm.x, lm.y, lm.z] for lm in self.landmarks], dtype=np.float64)

    @classmethod
    def from_points(cls, points, **kwargs) -> "HandLandmarks":
        """Build from any iterable of (x, y) or (x, y, z) points."""
        landmarks = [Landmark(*(float(v) for v in p)) for p in points]
        return cls(landmarks=landmarks, **kwargs)
