"""
Tests for Landmark Gesture Classifier
======================================
"""

import math
import pytest
import numpy as np
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from detection.landmarks import HandLandmarks, Landmark, LandmarkIndex
from recognition.gesture_state import GestureState, GestureType
from recognition.landmark_classifier import (
    LandmarkClassifier,
    LandmarkClassifierConfig,
    InvalidLandmarkSet,
)


FINGERS = ("index", "middle", "ring", "pinky")


def create_mock_hand(
    wrist=(0.5, 0.6),
    folded=(),
    thumb_tip=None,
    index_tip=None,
) -> HandLandmarks:
    """
    Create a 21-point hand pointing up from ``wrist``.

    Args:
        wrist: normalized wrist position
        folded: names of non-thumb fingers whose tip curls back below the PIP
        thumb_tip: absolute thumb tip position (default: close to the palm)
        index_tip: absolute index tip position (overrides folding)
    """
    wx, wy = wrist
    landmarks = [Landmark(wx, wy, 0.0)]

    # Thumb (indices 1-4)
    for dx, dy in [(-0.03, -0.03), (-0.06, -0.06), (-0.08, -0.10), (-0.10, -0.15)]:
        landmarks.append(Landmark(wx + dx, wy + dy, 0.0))

    # MCP, PIP, DIP, TIP for each finger
    for finger, x_off in zip(FINGERS, (-0.05, 0.0, 0.05, 0.1)):
        tip_dy = 0.10 if finger in folded else 0.28
        for dy in (0.08, 0.14, 0.20, tip_dy):
            landmarks.append(Landmark(wx + x_off, wy - dy, 0.0))

    if thumb_tip is not None:
        landmarks[LandmarkIndex.THUMB_TIP] = Landmark(thumb_tip[0], thumb_tip[1], 0.0)
    if index_tip is not None:
        landmarks[LandmarkIndex.INDEX_TIP] = Landmark(index_tip[0], index_tip[1], 0.0)

    return HandLandmarks(landmarks=landmarks, handedness="Right", confidence=0.95)


def create_fist(wrist=(0.5, 0.6)) -> HandLandmarks:
    return create_mock_hand(wrist=wrist, folded=FINGERS)


class TestNoHands:
    """Frames without hands."""

    @pytest.fixture
    def classifier(self):
        return LandmarkClassifier()

    def test_empty_list_is_idle(self, classifier):
        state = classifier.classify([])
        assert state.gesture_type == GestureType.IDLE
        assert state.strength == 0.0
        assert state.rotation_angle is None

    def test_none_is_idle(self, classifier):
        state = classifier.classify(None)
        assert state == GestureState.idle()


class TestRotation:
    """Rotation from the first hand's wrist position."""

    @pytest.fixture
    def classifier(self):
        return LandmarkClassifier()

    @pytest.mark.parametrize("wrist_x,expected", [
        (0.5, 0.0),
        (1.0, math.pi),
        (0.0, -math.pi),
        (0.75, math.pi / 2),
    ])
    def test_wrist_x_maps_to_angle(self, classifier, wrist_x, expected):
        state = classifier.classify([create_mock_hand(wrist=(wrist_x, 0.6))])
        assert state.rotation_angle == pytest.approx(expected)

    def test_rotation_present_for_contract(self, classifier):
        state = classifier.classify([create_fist(wrist=(1.0, 0.6))])
        assert state.is_contracting
        assert state.rotation_angle == pytest.approx(math.pi)

    def test_rotation_uses_first_hand(self, classifier):
        hands = [create_mock_hand(wrist=(0.3, 0.6)), create_mock_hand(wrist=(0.6, 0.6))]
        state = classifier.classify(hands)
        assert state.rotation_angle == pytest.approx((0.3 - 0.5) * 2 * math.pi)


class TestFist:
    """Fist detection and contract priority."""

    @pytest.fixture
    def classifier(self):
        return LandmarkClassifier()

    def test_all_fingers_folded_contracts(self, classifier):
        state = classifier.classify([create_fist()])
        assert state.gesture_type == GestureType.CONTRACT
        assert state.strength == 1.0

    def test_three_folded_is_fist(self, classifier):
        hand = create_mock_hand(folded=("middle", "ring", "pinky"))
        assert classifier.folded_fingers(hand) == 3
        assert classifier.is_fist(hand)

    def test_two_folded_is_not_fist(self, classifier):
        hand = create_mock_hand(folded=("ring", "pinky"))
        assert classifier.folded_fingers(hand) == 2
        assert not classifier.is_fist(hand)
        assert classifier.classify([hand]).is_idle

    def test_open_hand_is_not_fist(self, classifier):
        assert classifier.folded_fingers(create_mock_hand()) == 0

    def test_second_hand_fist_contracts(self, classifier):
        hands = [create_mock_hand(wrist=(0.4, 0.6)), create_fist(wrist=(0.6, 0.6))]
        state = classifier.classify(hands)
        assert state.is_contracting
        assert state.strength == 1.0

    def test_two_fists_do_not_escalate(self, classifier):
        hands = [create_fist(wrist=(0.4, 0.6)), create_fist(wrist=(0.6, 0.6))]
        state = classifier.classify(hands)
        assert state.gesture_type == GestureType.CONTRACT
        assert state.strength == 1.0

    def test_fist_beats_two_hand_expand(self, classifier):
        # Wrists far apart would expand, but the fist is checked first
        hands = [create_fist(wrist=(0.1, 0.6)), create_mock_hand(wrist=(0.9, 0.6))]
        assert classifier.classify(hands).is_contracting

    def test_fist_beats_pinch_expand(self, classifier):
        hand = create_mock_hand(folded=("middle", "ring", "pinky"), thumb_tip=(0.0, 0.6))
        assert classifier.classify([hand]).is_contracting

    def test_custom_contract_strength(self):
        classifier = LandmarkClassifier(LandmarkClassifierConfig(contract_strength=0.5))
        assert classifier.classify([create_fist()]).strength == 0.5


class TestExpand:
    """Two-hand spread and one-hand thumb/index spread."""

    @pytest.fixture
    def classifier(self):
        return LandmarkClassifier()

    def test_two_hands_far_apart(self, classifier):
        hands = [create_mock_hand(wrist=(0.2, 0.6)), create_mock_hand(wrist=(0.8, 0.6))]
        state = classifier.classify(hands)
        assert state.gesture_type == GestureType.EXPAND
        assert state.strength == pytest.approx(0.2)

    def test_two_hands_diagonal_distance(self, classifier):
        # 3-4-5 triangle: distance 0.75
        hands = [create_mock_hand(wrist=(0.2, 0.3)), create_mock_hand(wrist=(0.65, 0.9))]
        state = classifier.classify(hands)
        assert state.strength == pytest.approx((0.75 - 0.5) * 2)

    def test_two_hands_close_is_idle(self, classifier):
        hands = [create_mock_hand(wrist=(0.4, 0.6)), create_mock_hand(wrist=(0.6, 0.6))]
        state = classifier.classify(hands)
        assert state.is_idle
        assert state.strength == 0.0

    def test_two_hands_ignore_pinch(self, classifier):
        # Wide thumb spread on hand 0 does not count when two hands are present
        wide = create_mock_hand(wrist=(0.4, 0.6), thumb_tip=(0.0, 0.6))
        hands = [wide, create_mock_hand(wrist=(0.6, 0.6))]
        assert classifier.classify(hands).is_idle

    def test_one_hand_pinch_open(self, classifier):
        hand = create_mock_hand(index_tip=(0.45, 0.32), thumb_tip=(0.10, 0.32))
        state = classifier.classify([hand])
        assert state.gesture_type == GestureType.EXPAND
        assert state.strength == pytest.approx(0.3)

    def test_one_hand_relaxed_is_idle(self, classifier):
        state = classifier.classify([create_mock_hand()])
        assert state.is_idle
        assert state.rotation_angle == pytest.approx(0.0)

    def test_pinch_strength_is_unclamped(self, classifier):
        hand = create_mock_hand(index_tip=(1.0, 0.0), thumb_tip=(0.0, 1.0))
        state = classifier.classify([hand])
        assert state.strength == pytest.approx((math.sqrt(2) - 0.25) * 3)
        assert state.strength > 1.0

    def test_strength_starts_at_zero_on_threshold(self, classifier):
        hand = create_mock_hand(index_tip=(0.5, 0.3), thumb_tip=(0.5, 0.55))
        state = classifier.classify([hand])
        assert state.strength == pytest.approx(0.0, abs=1e-9)

    def test_custom_thresholds(self):
        config = LandmarkClassifierConfig.from_dict({"pinch_threshold": 0.1, "pinch_gain": 1.0})
        classifier = LandmarkClassifier(config)
        hand = create_mock_hand(index_tip=(0.45, 0.32), thumb_tip=(0.25, 0.32))
        assert classifier.classify([hand]).strength == pytest.approx(0.1)


class TestInputFormats:
    """Accepted landmark containers and malformed input."""

    @pytest.fixture
    def classifier(self):
        return LandmarkClassifier()

    def test_numpy_array_hand(self, classifier):
        points = create_fist().to_numpy()
        assert classifier.classify([points]).is_contracting

    def test_tuple_list_hand(self, classifier):
        points = [(lm.x, lm.y) for lm in create_fist().landmarks]
        assert classifier.classify([points]).is_contracting

    def test_depth_column_ignored(self, classifier):
        hand = create_mock_hand(index_tip=(0.45, 0.32), thumb_tip=(0.10, 0.32))
        points = hand.to_numpy()
        points[LandmarkIndex.THUMB_TIP, 2] = 5.0
        points[LandmarkIndex.INDEX_TIP, 2] = -5.0
        assert classifier.classify([points]).strength == pytest.approx(0.3)

    def test_too_few_landmarks(self, classifier):
        points = create_mock_hand().to_numpy()[:10]
        with pytest.raises(InvalidLandmarkSet):
            classifier.classify([points])

    def test_malformed_second_hand(self, classifier):
        with pytest.raises(InvalidLandmarkSet):
            classifier.classify([create_mock_hand(), [(0.5, 0.5)] * 5])

    def test_one_dimensional_input(self, classifier):
        with pytest.raises(InvalidLandmarkSet):
            classifier.classify([np.zeros(21)])

    def test_non_numeric_input(self, classifier):
        with pytest.raises(InvalidLandmarkSet):
            classifier.classify([["a", "b"]] * 21)

    def test_invalid_landmarks_is_value_error(self):
        assert issubclass(InvalidLandmarkSet, ValueError)

    def test_extra_hands_ignored(self, classifier):
        hands = [
            create_mock_hand(wrist=(0.2, 0.6)),
            create_mock_hand(wrist=(0.8, 0.6)),
            create_fist(wrist=(0.5, 0.6)),
        ]
        state = classifier.classify(hands)
        assert state.is_expanding

    def test_stateless(self, classifier):
        classifier.classify([create_fist()])
        assert classifier.classify([]) == GestureState.idle()
