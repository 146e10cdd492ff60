"""
Landmark Gesture Classifier
============================

Rule-based reduction of per-frame hand landmarks into a GestureState.
Recognizes a closed fist (contract), hands moving apart or an open
thumb-index spread (expand), and derives a rotation angle from the
horizontal wrist position.
"""

import math
import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional, Sequence

# Import local types
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
from detection.landmarks import HandLandmarks, LandmarkIndex, NUM_HAND_LANDMARKS
from recognition.gesture_state import GestureState

logger = logging.getLogger(__name__)


class InvalidLandmarkSet(ValueError):
    """Raised when a hand does not carry the full anatomical landmark set."""


# (tip, pip) pairs for the four non-thumb fingers
FINGER_JOINTS = (
    (LandmarkIndex.INDEX_TIP, LandmarkIndex.INDEX_PIP),
    (LandmarkIndex.MIDDLE_TIP, LandmarkIndex.MIDDLE_PIP),
    (LandmarkIndex.RING_TIP, LandmarkIndex.RING_PIP),
    (LandmarkIndex.PINKY_TIP, LandmarkIndex.PINKY_PIP),
)


@dataclass
class LandmarkClassifierConfig:
    """Landmark classifier thresholds and gains."""
    # Folded fingers (out of 4) needed to call a fist
    fist_min_folded: int = 3
    # Strength reported for a fist
    contract_strength: float = 1.0
    # Wrist-to-wrist distance above which two hands expand
    two_hand_threshold: float = 0.5
    two_hand_gain: float = 2.0
    # Thumb-to-index distance above which one hand expands
    pinch_threshold: float = 0.25
    pinch_gain: float = 3.0
    # Enable detailed logging
    debug: bool = False

    @classmethod
    def from_dict(cls, config: dict) -> "LandmarkClassifierConfig":
        """Create config from dictionary."""
        return cls(
            fist_min_folded=config.get("fist_min_folded", 3),
            contract_strength=config.get("contract_strength", 1.0),
            two_hand_threshold=config.get("two_hand_threshold", 0.5),
            two_hand_gain=config.get("two_hand_gain", 2.0),
            pinch_threshold=config.get("pinch_threshold", 0.25),
            pinch_gain=config.get("pinch_gain", 3.0),
            debug=config.get("debug", False),
        )


def _planar_distance(points: np.ndarray, idx1: int, idx2: int) -> float:
    return float(np.hypot(points[idx1, 0] - points[idx2, 0], points[idx1, 1] - points[idx2, 1]))


def as_landmark_array(hand) -> np.ndarray:
    """
    Normalize one hand into an (N, 2) array of x, y coordinates.

    Accepts HandLandmarks, a sequence of Landmark / (x, y[, z]) tuples, or an
    array with at least two columns.

    Raises:
        InvalidLandmarkSet: if the data is not 2-D or has too few points
    """
    if isinstance(hand, HandLandmarks):
        hand = hand.landmarks
    try:
        points = np.asarray(hand, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidLandmarkSet(f"Landmarks are not numeric coordinates: {e}") from e

    if points.ndim != 2 or points.shape[1] < 2:
        raise InvalidLandmarkSet(f"Expected (N, 2+) landmark coordinates, got shape {points.shape}")
    if points.shape[0] < NUM_HAND_LANDMARKS:
        raise InvalidLandmarkSet(
            f"Expected {NUM_HAND_LANDMARKS} landmarks per hand, got {points.shape[0]}"
        )
    return points[:, :2]


class LandmarkClassifier:
    """
    Stateless per-frame gesture classifier.

    Rules are evaluated in strict priority order:
    1. No hands -> idle, no rotation
    2. Rotation from the first hand's wrist x (always, when a hand exists)
    3. Fist on either hand -> contract
    4. Two hands far apart / one hand with thumb and index spread -> expand
    5. Otherwise idle

    Example:
        >>> classifier = LandmarkClassifier()
        >>> state = classifier.classify(hands)
        >>> if state.is_contracting:
        ...     print("Fist!")
    """

    def __init__(self, config: Optional[LandmarkClassifierConfig] = None):
        self.config = config or LandmarkClassifierConfig()

    def classify(self, hands: Optional[Sequence]) -> GestureState:
        """
        Classify the current frame.

        Args:
            hands: None or a sequence of zero to two hands

        Returns:
            GestureState for this frame

        Raises:
            InvalidLandmarkSet: if a hand has fewer than 21 landmarks
        """
        if hands is None or len(hands) == 0:
            return GestureState.idle()

        if len(hands) > 2:
            logger.debug("Ignoring %d extra hands", len(hands) - 2)
        arrays = [as_landmark_array(hand) for hand in list(hands)[:2]]
        primary = arrays[0]

        rotation = self.rotation_angle(primary)

        # Fist check runs before any expand check
        if any(self._is_fist_array(points) for points in arrays):
            state = GestureState.contract(self.config.contract_strength, rotation)
        elif len(arrays) == 2:
            state = self._classify_two_hands(arrays[0], arrays[1], rotation)
        else:
            state = self._classify_pinch(primary, rotation)

        if self.config.debug:
            logger.debug(f"Classified {len(arrays)} hand(s): {state}")

        return state

    @staticmethod
    def rotation_angle(points: np.ndarray) -> float:
        """Map normalized wrist x in [0, 1] linearly onto [-pi, pi]."""
        return (float(points[LandmarkIndex.WRIST, 0]) - 0.5) * 2 * math.pi

    def is_fist(self, hand) -> bool:
        """
        Check whether a hand is closed.

        A finger is folded when its tip is closer to the wrist than its
        PIP joint.
        """
        return self._is_fist_array(as_landmark_array(hand))

    def folded_fingers(self, hand) -> int:
        """Count folded non-thumb fingers."""
        return self._count_folded(as_landmark_array(hand))

    def _is_fist_array(self, points: np.ndarray) -> bool:
        return self._count_folded(points) >= self.config.fist_min_folded

    @staticmethod
    def _count_folded(points: np.ndarray) -> int:
        folded = 0
        for tip_idx, pip_idx in FINGER_JOINTS:
            tip_dist = _planar_distance(points, tip_idx, LandmarkIndex.WRIST)
            pip_dist = _planar_distance(points, pip_idx, LandmarkIndex.WRIST)
            if tip_dist < pip_dist:
                folded += 1
        return folded

    def _classify_two_hands(
        self,
        first: np.ndarray,
        second: np.ndarray,
        rotation: float
    ) -> GestureState:
        """Expand when the two wrists are far apart."""
        dist = float(np.hypot(
            first[LandmarkIndex.WRIST, 0] - second[LandmarkIndex.WRIST, 0],
            first[LandmarkIndex.WRIST, 1] - second[LandmarkIndex.WRIST, 1],
        ))
        if dist > self.config.two_hand_threshold:
            strength = (dist - self.config.two_hand_threshold) * self.config.two_hand_gain
            return GestureState.expand(strength, rotation)
        return GestureState.idle(rotation)

    def _classify_pinch(self, points: np.ndarray, rotation: float) -> GestureState:
        """Expand when thumb and index tips are spread apart."""
        dist = _planar_distance(points, LandmarkIndex.THUMB_TIP, LandmarkIndex.INDEX_TIP)
        if dist > self.config.pinch_threshold:
            strength = (dist - self.config.pinch_threshold) * self.config.pinch_gain
            return GestureState.expand(strength, rotation)
        return GestureState.idle(rotation)
