"""
Gesture State
==============

The compact, discrete output of the landmark classifier and the only
external force input to the particle simulation.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class GestureType(Enum):
    """Recognized gesture variants."""
    IDLE = "idle"
    EXPAND = "expand"
    CONTRACT = "contract"


# Status line shown by the preview for each variant
STATUS_TEXT = {
    GestureType.IDLE: "Waiting for Hand...",
    GestureType.EXPAND: "Expanding",
    GestureType.CONTRACT: "Contracting",
}


@dataclass(frozen=True)
class GestureState:
    """
    Per-frame gesture snapshot.

    ``strength`` scales the gesture force and is deliberately left
    unbounded above; an IDLE state always has zero strength.
    ``rotation_angle`` (radians) is independent of the variant and is
    ``None`` when no hand was seen.

    Example:
        >>> state = GestureState.expand(0.4, rotation_angle=0.0)
        >>> state.is_expanding
        True
    """
    gesture_type: GestureType = GestureType.IDLE
    strength: float = 0.0
    rotation_angle: Optional[float] = None

    def __post_init__(self):
        if not isinstance(self.gesture_type, GestureType):
            raise ValueError(f"gesture_type must be a GestureType, got {self.gesture_type!r}")
        if self.strength < 0:
            raise ValueError(f"strength must be non-negative, got {self.strength}")
        if self.gesture_type is GestureType.IDLE and self.strength != 0:
            raise ValueError("an idle gesture carries no strength")

    @staticmethod
    def idle(rotation_angle: Optional[float] = None) -> "GestureState":
        """Create a no-gesture state."""
        return GestureState(GestureType.IDLE, 0.0, rotation_angle)

    @staticmethod
    def expand(strength: float, rotation_angle: Optional[float] = None) -> "GestureState":
        """Create an outward-push state."""
        return GestureState(GestureType.EXPAND, float(strength), rotation_angle)

    @staticmethod
    def contract(strength: float, rotation_angle: Optional[float] = None) -> "GestureState":
        """Create a pull-to-center state."""
        return GestureState(GestureType.CONTRACT, float(strength), rotation_angle)

    @property
    def is_idle(self) -> bool:
        return self.gesture_type is GestureType.IDLE

    @property
    def is_expanding(self) -> bool:
        return self.gesture_type is GestureType.EXPAND

    @property
    def is_contracting(self) -> bool:
        return self.gesture_type is GestureType.CONTRACT

    @property
    def has_rotation(self) -> bool:
        return self.rotation_angle is not None

    @property
    def status_text(self) -> str:
        return STATUS_TEXT[self.gesture_type]

    def clamped(self, ceiling: float = 1.0) -> "GestureState":
        """Return a copy with strength capped at ``ceiling``."""
        if self.strength <= ceiling:
            return self
        return replace(self, strength=float(ceiling))

    def to_dict(self) -> dict:
        return {
            "type": self.gesture_type.value,
            "strength": self.strength,
            "rotation_angle": self.rotation_angle,
        }

    def __repr__(self):
        rotation = "none" if self.rotation_angle is None else f"{self.rotation_angle:.2f}"
        return f"GestureState({self.gesture_type.value}, strength={self.strength:.2f}, rotation={rotation})"
