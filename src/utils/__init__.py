"""Utility modules for configuration, logging and performance."""
from .config import Config
from .logger import setup_logging, GestureLogger
from .performance import PerformanceMonitor, Timer

__all__ = ["Config", "setup_logging", "GestureLogger", "PerformanceMonitor", "Timer"]
