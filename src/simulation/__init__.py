"""Particle simulation module."""
from .heart_volume import HeartVolumeGenerator, heart_curve
from .params import SimulationParams
from .particle_engine import ParticleEngine, EngineConfig, pulse_scale

__all__ = [
    "HeartVolumeGenerator",
    "heart_curve",
    "SimulationParams",
    "ParticleEngine",
    "EngineConfig",
    "pulse_scale",
]
