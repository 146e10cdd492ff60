"""
Simulation Parameters
======================

Live-tunable knobs for the particle engine. The engine reads them at the
start of every step, so edits apply on the next frame.
"""

from dataclasses import dataclass
from typing import Tuple, Union

Color = Tuple[float, float, float]
ColorLike = Union[str, Tuple[float, float, float], list]


def hex_to_rgb(value: str) -> Color:
    """Parse '#rrggbb' (or 'rrggbb') into RGB floats in [0, 1]."""
    text = value.strip().lstrip("#")
    if len(text) != 6:
        raise ValueError(f"Expected a #rrggbb colour, got {value!r}")
    try:
        channels = [int(text[i:i + 2], 16) for i in (0, 2, 4)]
    except ValueError:
        raise ValueError(f"Invalid hex colour: {value!r}") from None
    return tuple(c / 255.0 for c in channels)


def to_color(value: ColorLike) -> Color:
    """Accept a hex string or an RGB triple."""
    if isinstance(value, str):
        return hex_to_rgb(value)
    r, g, b = value
    return (float(r), float(g), float(b))


@dataclass
class SimulationParams:
    """Particle engine parameters."""
    color_low: Color = hex_to_rgb("#ff0055")   # Deep crimson, at rest
    color_high: Color = hex_to_rgb("#ff00ff")  # Neon pink, fast
    spring_strength: float = 0.05
    damping: float = 0.92        # velocity multiplier per step
    noise_strength: float = 0.2  # full width of the per-axis jitter
    pulse_speed: float = 1.0     # heartbeat rate factor

    def set_color_low(self, value: ColorLike) -> None:
        self.color_low = to_color(value)

    def set_color_high(self, value: ColorLike) -> None:
        self.color_high = to_color(value)

    @classmethod
    def from_dict(cls, config: dict) -> "SimulationParams":
        """Create params from dictionary (YAML parsed)."""
        defaults = cls()
        return cls(
            color_low=to_color(config.get("color_low", defaults.color_low)),
            color_high=to_color(config.get("color_high", defaults.color_high)),
            spring_strength=config.get("spring_strength", 0.05),
            damping=config.get("damping", 0.92),
            noise_strength=config.get("noise_strength", 0.2),
            pulse_speed=config.get("pulse_speed", 1.0),
        )
