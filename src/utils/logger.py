"""
Logging setup and gesture event logging.
"""

import os
import logging
import logging.handlers
import time
from collections import deque
from functools import wraps


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class GestureLogger:
    """
    Logs gesture transitions.

    The classifier runs every camera frame, so only changes of gesture type
    are logged and kept in history.
    """

    def __init__(self, max_history: int = 200):
        self.logger = logging.getLogger("gesture_events")
        self._history = deque(maxlen=max_history)
        self._current = None

    def update(self, gesture) -> bool:
        """Record ``gesture`` if its type differs from the last one seen."""
        if self._current is not None and gesture.gesture_type is self._current.gesture_type:
            return False

        self._current = gesture
        entry = {"timestamp": time.time(), **gesture.to_dict()}
        self._history.append(entry)
        self.logger.info(
            "Gesture: %-9s | Strength: %.2f | Rotation: %s",
            gesture.gesture_type.value,
            gesture.strength,
            "n/a" if gesture.rotation_angle is None else f"{gesture.rotation_angle:+.2f}rad",
        )
        return True

    def log_event(self, name, detail=""):
        """Log a user-triggered event (reset, count change, ...)."""
        self.logger.info("Event: %-12s | %s", name, detail)

    def get_history(self, last_n=None):
        if last_n:
            return list(self._history)[-last_n:]
        return list(self._history)

    @property
    def total_transitions(self):
        return len(self._history)


def log_timing(func):
    """Decorator to log function execution time."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper
