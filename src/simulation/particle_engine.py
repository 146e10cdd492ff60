"""
Particle Simulation Engine
===========================

Column-oriented particle system for the heart formation. Each particle
lives at the same row of four contiguous buffers (position, home,
velocity, colour); the active prefix is advanced once per frame under
spring, gesture and noise forces.
"""

import math
import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional

# Import local types
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
from recognition.gesture_state import GestureState, GestureType
from simulation.heart_volume import HeartVolumeGenerator
from simulation.params import SimulationParams
from utils.logger import log_timing

logger = logging.getLogger(__name__)

# Added to |p| before normalizing the radial expand direction
RADIAL_EPSILON = 1e-3
EXPAND_FORCE = 50.0
CONTRACT_FORCE = 5.0
# Exponential smoothing factor applied to the group rotation every step
ROTATION_SMOOTHING = 0.1
IDLE_SPIN_RATE = 0.1
# Speed at which the colour reaches color_high is 1 / COLOR_SPEED_GAIN
COLOR_SPEED_GAIN = 0.5


def pulse_scale(time: float) -> float:
    """
    Heartbeat scale factor.

    Two sines at the same frequency with a phase offset give an irregular,
    non-sinusoidal beat around 1.0.
    """
    phase = time * 3.0
    return 1.0 + math.sin(phase) * 0.05 * (1.0 + math.sin(phase + math.pi) * 0.5)


@dataclass
class EngineConfig:
    """Particle engine configuration."""
    max_count: int = 5000
    initial_count: int = 3000
    # Assert positions/velocities stay finite after every step
    check_finite: bool = False
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, config: dict) -> "EngineConfig":
        """Create config from dictionary."""
        return cls(
            max_count=config.get("max_particles", 5000),
            initial_count=config.get("particle_count", 3000),
            check_finite=config.get("check_finite", False),
            seed=config.get("seed"),
        )


class ParticleEngine:
    """
    Heart particle simulation.

    Only ``active_count`` particles are simulated and exposed; rows past it
    keep whatever they held when the count shrank, so growing the count
    again resumes them where they stopped.

    Example:
        >>> engine = ParticleEngine(max_count=5000, active_count=3000)
        >>> engine.step(1 / 60, GestureState.expand(0.5))
        >>> renderer.draw(engine.positions, engine.colors, engine.rotation)
    """

    def __init__(
        self,
        max_count: int = 5000,
        active_count: Optional[int] = None,
        params: Optional[SimulationParams] = None,
        generator: Optional[HeartVolumeGenerator] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.config = config or EngineConfig(max_count=max_count)
        self.params = params or SimulationParams()
        # Separate child streams so noise never replays the sampling draws
        sample_seed, noise_seed = np.random.SeedSequence(self.config.seed).spawn(2)
        self.generator = generator or HeartVolumeGenerator(seed=sample_seed)
        self._rng = np.random.default_rng(noise_seed)

        self._time = 0.0
        self._rotation = 0.0
        self._last_gesture = GestureState.idle()

        self.initialize(max_count, active_count)

    @classmethod
    def from_config(
        cls,
        config: EngineConfig,
        params: Optional[SimulationParams] = None
    ) -> "ParticleEngine":
        return cls(
            max_count=config.max_count,
            active_count=config.initial_count,
            params=params,
            config=config,
        )

    @log_timing
    def initialize(self, max_count: int, active_count: Optional[int] = None) -> None:
        """
        Allocate the particle buffers and place every particle at home.

        Args:
            max_count: buffer capacity
            active_count: initial active prefix (defaults to max_count)
        """
        max_count = int(max_count)
        if max_count <= 0:
            raise ValueError(f"max_count must be positive, got {max_count}")

        self._max_count = max_count
        self._home = np.zeros((max_count, 3), dtype=np.float32)
        self._positions = np.zeros((max_count, 3), dtype=np.float32)
        self._velocities = np.zeros((max_count, 3), dtype=np.float32)
        self._colors = np.zeros((max_count, 3), dtype=np.float32)
        self._place_at_home()

        self._active_count = max_count
        if active_count is not None:
            self.set_active_count(active_count)

        logger.info(f"Particle engine initialized: {self._active_count}/{max_count} particles")

    def _place_at_home(self) -> None:
        self._home[:] = self.generator.sample(self._max_count)
        self._positions[:] = self._home
        self._velocities[:] = 0.0
        self._colors[:] = np.asarray(self.params.color_low, dtype=np.float32)

    def set_active_count(self, count: int) -> int:
        """Clamp and apply the active particle count. Buffers are untouched."""
        self._active_count = max(0, min(int(count), self._max_count))
        logger.debug(f"Active particles: {self._active_count}")
        return self._active_count

    @log_timing
    def reset(self) -> None:
        """Regenerate the whole formation and drop all momentum."""
        self._place_at_home()
        self._last_gesture = GestureState.idle()
        logger.info(f"Particle engine reset ({self._active_count}/{self._max_count} active)")

    def step(self, dt: float, gesture: Optional[GestureState] = None) -> None:
        """
        Advance the simulation by ``dt`` seconds.

        Args:
            dt: elapsed frame time in seconds
            gesture: latest classifier output (None means idle)
        """
        if gesture is None:
            gesture = GestureState.idle()
        self._last_gesture = gesture
        p = self.params

        self._time += dt * p.pulse_speed
        pulse = pulse_scale(self._time)

        n = self._active_count
        positions = self._positions[:n]
        velocities = self._velocities[:n]

        # Spring toward the pulsing home position
        forces = (self._home[:n] * pulse - positions) * p.spring_strength

        if gesture.gesture_type is GestureType.EXPAND:
            length = np.linalg.norm(positions, axis=1, keepdims=True) + RADIAL_EPSILON
            forces += positions / length * (EXPAND_FORCE * gesture.strength * dt)
        elif gesture.gesture_type is GestureType.CONTRACT:
            forces -= positions * (CONTRACT_FORCE * gesture.strength * dt)

        if p.noise_strength:
            forces += (self._rng.random((n, 3), dtype=np.float32) - 0.5) * p.noise_strength

        # Damping before position update (semi-implicit Euler)
        velocities += forces
        velocities *= p.damping
        positions += velocities

        self._update_colors(n)
        self._update_rotation(dt, gesture)

        if self.config.check_finite:
            self._check_finite()

    def _update_colors(self, n: int) -> None:
        low = np.asarray(self.params.color_low, dtype=np.float32)
        high = np.asarray(self.params.color_high, dtype=np.float32)
        speed = np.linalg.norm(self._velocities[:n], axis=1)
        t = np.minimum(speed * COLOR_SPEED_GAIN, 1.0)[:, None]
        self._colors[:n] = low + (high - low) * t

    def _update_rotation(self, dt: float, gesture: GestureState) -> None:
        if gesture.rotation_angle is not None:
            self._rotation += (gesture.rotation_angle - self._rotation) * ROTATION_SMOOTHING
        else:
            self._rotation += dt * IDLE_SPIN_RATE

    def _check_finite(self) -> None:
        n = self._active_count
        if not (np.isfinite(self._positions[:n]).all() and np.isfinite(self._velocities[:n]).all()):
            logger.error(f"Non-finite particle state at t={self._time:.3f}")
            raise FloatingPointError("particle positions or velocities became non-finite")

    @staticmethod
    def _read_only(array: np.ndarray) -> np.ndarray:
        view = array.view()
        view.flags.writeable = False
        return view

    @property
    def positions(self) -> np.ndarray:
        """Read-only (active_count, 3) view of current positions."""
        return self._read_only(self._positions[:self._active_count])

    @property
    def colors(self) -> np.ndarray:
        """Read-only (active_count, 3) view of RGB colours in [0, 1]."""
        return self._read_only(self._colors[:self._active_count])

    @property
    def home_positions(self) -> np.ndarray:
        return self._read_only(self._home[:self._active_count])

    @property
    def velocities(self) -> np.ndarray:
        return self._read_only(self._velocities[:self._active_count])

    def flat_positions(self) -> np.ndarray:
        """Positions as a flat array of 3 floats per active particle."""
        return self.positions.reshape(-1)

    def flat_colors(self) -> np.ndarray:
        return self.colors.reshape(-1)

    def kinetic_energy(self) -> float:
        """Half the summed squared speed over the active particles."""
        v = self._velocities[:self._active_count].astype(np.float64)
        return 0.5 * float(np.sum(v * v))

    @property
    def active_count(self) -> int:
        return self._active_count

    @property
    def max_count(self) -> int:
        return self._max_count

    @property
    def time(self) -> float:
        return self._time

    @property
    def rotation(self) -> float:
        """Smoothed group rotation around the vertical axis (radians)."""
        return self._rotation

    @property
    def pulse(self) -> float:
        return pulse_scale(self._time)

    @property
    def last_gesture(self) -> GestureState:
        return self._last_gesture
