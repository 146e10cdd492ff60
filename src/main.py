"""
Gesture Heart - Main Application
=================================

Entry point for the gesture-controlled particle heart.
Orchestrates camera, hand detection, gesture classification, particle
simulation and the preview window.
"""

import cv2
import logging
import argparse
import signal
import sys
import time
from pathlib import Path
from typing import Optional, List
from dataclasses import dataclass

# Import local modules
from capture.camera import Camera, CameraConfig
from detection.landmarks import HandLandmarks
from recognition.gesture_state import GestureState
from recognition.landmark_classifier import LandmarkClassifier, LandmarkClassifierConfig, InvalidLandmarkSet
from simulation.particle_engine import ParticleEngine, EngineConfig
from simulation.params import SimulationParams
from utils.config import Config
from utils.logger import setup_logging, GestureLogger
from utils.performance import PerformanceMonitor
from utils.visualization import Visualizer, VisualizerConfig

logger = logging.getLogger(__name__)

WINDOW_NAME = "Gesture Heart"

# Base colours cycled with the k key, starting after the default color_low
BASE_COLOR_PRESETS = ("#ff0055", "#ff3300", "#aa00ff", "#0088ff", "#00ff88")


@dataclass
class AppConfig:
    """Application configuration container."""
    camera: CameraConfig
    mediapipe: dict
    recognition: LandmarkClassifierConfig
    engine: EngineConfig
    params: SimulationParams
    visualization: VisualizerConfig
    clamp_strength: bool = False
    max_strength: float = 1.0
    count_step: int = 100
    max_dt: float = 0.1
    target_fps: float = 30.0


def create_app_config(config: Config) -> AppConfig:
    """Build component configs from the loaded YAML sections."""
    recognition = config.get_section("recognition")
    simulation = config.get_section("simulation")
    return AppConfig(
        camera=CameraConfig.from_dict(config.get_section("camera")),
        mediapipe=config.get_section("mediapipe"),
        recognition=LandmarkClassifierConfig.from_dict(recognition),
        engine=EngineConfig.from_dict(simulation),
        params=SimulationParams.from_dict(simulation),
        visualization=VisualizerConfig.from_dict(config.get_section("visualization")),
        clamp_strength=recognition.get("clamp_strength", False),
        max_strength=recognition.get("max_strength", 1.0),
        count_step=simulation.get("count_step", 100),
        max_dt=simulation.get("max_dt", 0.1),
        target_fps=config.get("performance.target_fps", 30),
    )


class HeartApplication:
    """
    Main application class.

    Modes:
    - live: camera + hand tracking drive the heart
    - demo: no camera; expand/contract toggled from the keyboard
    """

    def __init__(self, config: AppConfig):
        self.config = config

        self.classifier = LandmarkClassifier(config.recognition)
        self.engine = ParticleEngine.from_config(config.engine, config.params)
        self.visualizer = Visualizer(config.visualization)
        self.performance = PerformanceMonitor(target_fps=config.target_fps)
        self.gesture_logger = GestureLogger()

        self.camera: Optional[Camera] = None
        self.detector = None

        self._running = False
        self._mode = "live"
        self._gesture = GestureState.idle()
        self._demo_gesture = GestureState.idle()
        self._hands: List[HandLandmarks] = []
        self._last_frame_number = -1
        self._last_tick: Optional[float] = None
        self._color_index = 0

    def start(self, mode: str) -> None:
        """Start capture and detection; fall back to demo mode on failure."""
        self._mode = mode
        if mode == "live" and not self._start_tracking():
            logger.warning("Hand tracking unavailable, continuing in demo mode")
            self._stop_tracking()
            self._mode = "demo"

        self.performance.start()
        self._running = True
        logger.info(f"Gesture Heart started in {self._mode} mode")

    def _start_tracking(self) -> bool:
        # MediaPipe is only needed in live mode
        from detection.hand_detector import HandDetector, HandDetectorConfig

        self.camera = Camera(self.config.camera)
        if not self.camera.start():
            return False
        self.detector = HandDetector(HandDetectorConfig.from_dict(self.config.mediapipe))
        return self.detector.start()

    def _stop_tracking(self) -> None:
        if self.camera:
            self.camera.stop()
            self.camera = None
        if self.detector:
            self.detector.stop()
            self.detector = None

    def stop(self) -> None:
        logger.info("Stopping Gesture Heart...")
        self._running = False
        self._stop_tracking()
        self.performance.stop()
        cv2.destroyAllWindows()

    def run(self, mode: str = "live") -> None:
        self.start(mode)

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        try:
            while self._running:
                self.tick()
        finally:
            self.stop()
            self._print_final_report()

    def _frame_dt(self) -> float:
        now = time.perf_counter()
        dt = 0.0 if self._last_tick is None else now - self._last_tick
        self._last_tick = now
        return min(dt, self.config.max_dt)

    def tick(self) -> None:
        """One frame of the driver loop."""
        self.performance.frame_start()
        dt = self._frame_dt()

        frame = None
        if self.camera is not None:
            with self.performance.measure("capture"):
                frame = self.camera.read()
            # Classify only when the camera produced a new frame
            if frame is not None and frame.frame_number != self._last_frame_number:
                self._last_frame_number = frame.frame_number
                with self.performance.measure("detection"):
                    self._hands = self.detector.detect(frame.rgb, frame.timestamp_ms)
                with self.performance.measure("classification"):
                    self._gesture = self.classify(self._hands)
        else:
            self._gesture = self._demo_gesture

        self.gesture_logger.update(self._gesture)

        with self.performance.measure("simulation"):
            self.engine.step(dt, self._gesture)

        with self.performance.measure("render"):
            canvas = self.visualizer.render_particles(
                self.engine.positions, self.engine.colors, self.engine.rotation)
            if frame is not None:
                self.visualizer.draw_camera_inset(canvas, frame.image, self._hands)
            self.visualizer.draw_status(
                canvas, self._gesture,
                fps=self.performance.fps,
                count=self.engine.active_count,
                mode=self._mode,
            )
            cv2.imshow(WINDOW_NAME, canvas)

        self.performance.frame_complete()
        self.handle_key(cv2.waitKey(1) & 0xFF)

    def classify(self, hands: List[HandLandmarks]) -> GestureState:
        """Classify hands, treating malformed landmark sets as no gesture."""
        try:
            gesture = self.classifier.classify(hands)
        except InvalidLandmarkSet as e:
            logger.debug(f"Discarding landmark set: {e}")
            return GestureState.idle()
        if self.config.clamp_strength:
            gesture = gesture.clamped(self.config.max_strength)
        return gesture

    def reset(self) -> None:
        self.engine.reset()
        self._gesture = GestureState.idle()
        self._demo_gesture = GestureState.idle()
        self.gesture_logger.log_event("reset", f"{self.engine.active_count} particles")

    def change_particle_count(self, delta: int) -> int:
        count = self.engine.set_active_count(self.engine.active_count + delta)
        self.gesture_logger.log_event("count", str(count))
        return count

    def cycle_base_color(self) -> tuple:
        """Switch the slow-particle colour to the next preset."""
        self._color_index = (self._color_index + 1) % len(BASE_COLOR_PRESETS)
        value = BASE_COLOR_PRESETS[self._color_index]
        self.engine.params.set_color_low(value)
        self.gesture_logger.log_event("color", value)
        return self.engine.params.color_low

    def handle_key(self, key: int) -> None:
        """Keyboard controls."""
        if key in (ord('q'), 27):
            self._running = False
        elif key == ord('r'):
            self.reset()
        elif key in (ord('+'), ord('=')):
            self.change_particle_count(self.config.count_step)
        elif key in (ord('-'), ord('_')):
            self.change_particle_count(-self.config.count_step)
        elif key == ord('p'):
            print(self.performance.get_report())
        elif key == ord('k'):
            self.cycle_base_color()
        elif self._mode == "demo" and key == ord('e'):
            self._demo_gesture = (GestureState.idle() if self._demo_gesture.is_expanding
                                  else GestureState.expand(1.0))
        elif self._mode == "demo" and key == ord('c'):
            self._demo_gesture = (GestureState.idle() if self._demo_gesture.is_contracting
                                  else GestureState.contract(1.0))

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def gesture(self) -> GestureState:
        return self._gesture

    def _signal_handler(self, signum, frame) -> None:
        logger.info(f"Received signal {signum}, shutting down...")
        self._running = False

    def _print_final_report(self) -> None:
        print("\n" + "=" * 50)
        print("FINAL PERFORMANCE REPORT")
        print("=" * 50)
        print(self.performance.get_report())


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Gesture-controlled particle heart",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  live  - Webcam hand tracking drives the heart (default)
  demo  - No camera; toggle gestures from the keyboard

Keyboard Controls:
  q/ESC - Quit
  r     - Reset the formation
  +/-   - More / fewer particles
  p     - Print performance report
  k     - Cycle the base particle colour
  e/c   - Toggle expand / contract (demo mode)
        """
    )
    parser.add_argument("--mode", "-m", choices=["live", "demo"], default="live",
                        help="Operating mode")
    parser.add_argument("--config", "-c", default="config/config.yaml",
                        help="Path to configuration file")
    parser.add_argument("--particles", "-n", type=int, default=None,
                        help="Initial particle count")
    parser.add_argument("--debug", "-d", action="store_true",
                        help="Enable debug logging")
    args = parser.parse_args()

    config_path = Path(args.config)
    if not config_path.is_absolute():
        config_path = Path(__file__).parent.parent / config_path
    config = Config().load(str(config_path))

    log_cfg = config.get_section("logging")
    setup_logging(
        level="DEBUG" if args.debug else log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("log_file"),
    )

    app_config = create_app_config(config)
    if args.particles is not None:
        app_config.engine.initial_count = args.particles

    app = HeartApplication(app_config)
    app.run(mode=args.mode)
    return 0


if __name__ == "__main__":
    sys.exit(main())
