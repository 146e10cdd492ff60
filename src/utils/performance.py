"""
Performance Monitoring Module
==============================

Frame-rate and per-stage timing for the capture → classify → simulate →
render loop.
"""

import time
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Callable
from collections import deque
from contextlib import contextmanager
import threading

logger = logging.getLogger(__name__)

# Stages reported by the driver loop, in pipeline order
PIPELINE_STAGES = ("capture", "detection", "classification", "simulation", "render")


class Timer:
    """
    High-precision timer for measuring code execution time.

    Can be used as a context manager or decorator.

    Example:
        >>> with Timer("step") as t:
        ...     engine.step(dt, gesture)
        >>> print(f"Took {t.elapsed_ms:.2f}ms")
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None
        self._elapsed: float = 0.0

    def start(self) -> "Timer":
        self._start_time = time.perf_counter()
        self._end_time = None
        return self

    def stop(self) -> float:
        """Stop the timer and return elapsed time in seconds."""
        self._end_time = time.perf_counter()
        if self._start_time is not None:
            self._elapsed = self._end_time - self._start_time
        return self._elapsed

    @property
    def elapsed(self) -> float:
        """Elapsed seconds; keeps counting while the timer runs."""
        if self._start_time is None:
            return 0.0
        if self._end_time is None:
            return time.perf_counter() - self._start_time
        return self._elapsed

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    @staticmethod
    def decorate(name: str = ""):
        """Decorator factory for timing functions."""
        def decorator(func: Callable):
            def wrapper(*args, **kwargs):
                with Timer(name or func.__name__) as t:
                    result = func(*args, **kwargs)
                logger.debug(f"{t.name}: {t.elapsed_ms:.2f}ms")
                return result
            return wrapper
        return decorator


@dataclass
class PerformanceMetrics:
    """Snapshot of loop performance."""
    fps: float = 0.0
    frame_time_ms: float = 0.0
    total_frames: int = 0
    dropped_frames: int = 0
    stage_times_ms: Optional[Dict[str, float]] = None


class PerformanceMonitor:
    """
    Rolling FPS and per-stage latency for the render loop.

    Example:
        >>> monitor = PerformanceMonitor()
        >>> monitor.start()
        >>> while running:
        ...     monitor.frame_start()
        ...     with monitor.measure("simulation"):
        ...         engine.step(dt, gesture)
        ...     monitor.frame_complete()
    """

    def __init__(self, window_size: int = 30, target_fps: float = 30.0):
        self.window_size = window_size
        self.target_fps = target_fps
        self._frame_times: deque = deque(maxlen=window_size)
        self._stage_times: Dict[str, deque] = {}
        self._frame_start: Optional[float] = None
        self._total_frames: int = 0
        self._dropped_frames: int = 0
        self._lock = threading.Lock()

    def start(self) -> None:
        self._total_frames = 0
        self._dropped_frames = 0
        self._frame_times.clear()
        self._stage_times.clear()
        logger.info("Performance monitor started")

    def stop(self) -> None:
        logger.info(f"Performance monitor stopped. "
                    f"Total frames: {self._total_frames}, "
                    f"Dropped: {self._dropped_frames}")

    def frame_start(self) -> None:
        self._frame_start = time.perf_counter()

    def frame_complete(self) -> None:
        """Close the current frame and count it as dropped if it ran long."""
        if self._frame_start is None:
            return

        frame_time = time.perf_counter() - self._frame_start

        with self._lock:
            self._frame_times.append(frame_time)
            self._total_frames += 1
            if frame_time > (1.0 / self.target_fps):
                self._dropped_frames += 1

        self._frame_start = None

    def record(self, stage: str, seconds: float) -> None:
        """Record an externally measured stage duration."""
        with self._lock:
            if stage not in self._stage_times:
                self._stage_times[stage] = deque(maxlen=self.window_size)
            self._stage_times[stage].append(seconds)

    @contextmanager
    def measure(self, stage: str):
        """Context manager timing one pipeline stage."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(stage, time.perf_counter() - start)

    @property
    def fps(self) -> float:
        with self._lock:
            if not self._frame_times:
                return 0.0
            avg_frame_time = sum(self._frame_times) / len(self._frame_times)
            return 1.0 / avg_frame_time if avg_frame_time > 0 else 0.0

    @property
    def frame_time_ms(self) -> float:
        with self._lock:
            if not self._frame_times:
                return 0.0
            return (sum(self._frame_times) / len(self._frame_times)) * 1000

    def stage_time_ms(self, stage: str) -> float:
        """Average time for a stage in milliseconds (0 if never measured)."""
        with self._lock:
            times = self._stage_times.get(stage)
            if not times:
                return 0.0
            return (sum(times) / len(times)) * 1000

    @property
    def total_frames(self) -> int:
        return self._total_frames

    @property
    def dropped_frames(self) -> int:
        return self._dropped_frames

    @property
    def is_meeting_target(self) -> bool:
        return self.fps >= self.target_fps

    def get_metrics(self) -> PerformanceMetrics:
        return PerformanceMetrics(
            fps=self.fps,
            frame_time_ms=self.frame_time_ms,
            total_frames=self._total_frames,
            dropped_frames=self._dropped_frames,
            stage_times_ms={stage: self.stage_time_ms(stage) for stage in PIPELINE_STAGES},
        )

    def get_report(self) -> str:
        """Formatted performance report."""
        metrics = self.get_metrics()
        status = "OK" if self.is_meeting_target else "SLOW"

        lines = [
            f"Performance Report [{status}]",
            "=" * 40,
            f"FPS: {metrics.fps:.1f} (target: >={self.target_fps})",
            f"Frame time: {metrics.frame_time_ms:.1f}ms",
            "",
            "Per-Stage Breakdown:",
        ]
        for stage, ms in metrics.stage_times_ms.items():
            lines.append(f"  {stage.capitalize()}: {ms:.2f}ms")
        lines += [
            "",
            "Frame Stats:",
            f"  Total: {metrics.total_frames}",
            f"  Dropped: {metrics.dropped_frames} "
            f"({100 * metrics.dropped_frames / max(1, metrics.total_frames):.1f}%)",
        ]
        return "\n".join(lines) + "\n"
