"""
Visualization Module
=====================

OpenCV preview for the particle heart: perspective projection of the
particle buffers with additive blending and a blurred glow, plus status
and camera overlays.
"""

import math
import cv2
import numpy as np
from typing import Optional, Tuple, List
from dataclasses import dataclass

# Import local types
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))
from detection.landmarks import HandLandmarks

# Same bone list as HandDetector.HAND_CONNECTIONS, kept here so the
# preview does not import MediaPipe
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (5, 9), (9, 10), (10, 11), (11, 12),
    (9, 13), (13, 14), (14, 15), (15, 16),
    (13, 17), (17, 18), (18, 19), (19, 20),
    (0, 17),
]
FINGERTIPS = (4, 8, 12, 16, 20)


@dataclass
class VisualizerConfig:
    """Preview window settings."""
    width: int = 960
    height: int = 720
    # Perspective camera looking down -z from camera_distance
    fov_degrees: float = 60.0
    camera_distance: float = 40.0
    near_plane: float = 0.1
    point_size: int = 2
    intensity: float = 0.8
    # Glow: blurred copy added on top of the sharp points
    glow_strength: float = 1.5
    glow_radius: float = 4.0
    background: Tuple[int, int, int] = (16, 5, 5)  # BGR
    text_color: Tuple[int, int, int] = (255, 255, 255)
    show_camera: bool = True
    camera_inset_width: int = 240
    font_scale: float = 0.6

    @classmethod
    def from_dict(cls, config: dict) -> "VisualizerConfig":
        """Create config from dictionary."""
        return cls(
            width=config.get("width", 960),
            height=config.get("height", 720),
            fov_degrees=config.get("fov_degrees", 60.0),
            camera_distance=config.get("camera_distance", 40.0),
            point_size=config.get("point_size", 2),
            intensity=config.get("intensity", 0.8),
            glow_strength=config.get("glow_strength", 1.5),
            glow_radius=config.get("glow_radius", 4.0),
            background=tuple(config.get("background", [16, 5, 5])),
            show_camera=config.get("show_camera", True),
            camera_inset_width=config.get("camera_inset_width", 240),
            font_scale=config.get("font_scale", 0.6),
        )


class Visualizer:
    """
    Draws the particle formation into a BGR image.

    The renderer only reads the engine's buffers.

    Example:
        >>> viz = Visualizer(VisualizerConfig())
        >>> canvas = viz.render_particles(engine.positions, engine.colors, engine.rotation)
        >>> viz.draw_status(canvas, engine.last_gesture, fps=30.0, count=engine.active_count)
    """

    def __init__(self, config: Optional[VisualizerConfig] = None):
        self.config = config or VisualizerConfig()
        half_fov = math.radians(self.config.fov_degrees) / 2
        self._focal = (self.config.height / 2) / math.tan(half_fov)

    def project(self, positions: np.ndarray, rotation: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Rotate points about the vertical axis and project to pixels.

        Returns:
            (pixels, visible): integer (N, 2) pixel coordinates and a mask of
            points in front of the camera and inside the image
        """
        cfg = self.config
        cos_r, sin_r = math.cos(rotation), math.sin(rotation)
        x = positions[:, 0] * cos_r + positions[:, 2] * sin_r
        z = -positions[:, 0] * sin_r + positions[:, 2] * cos_r
        y = positions[:, 1]

        depth = cfg.camera_distance - z
        safe_depth = np.where(depth > cfg.near_plane, depth, 1.0)
        sx = cfg.width / 2 + self._focal * x / safe_depth
        sy = cfg.height / 2 - self._focal * y / safe_depth
        pixels = np.stack([sx, sy], axis=-1).astype(np.int32)

        visible = (
            (depth > cfg.near_plane)
            & (pixels[:, 0] >= 0) & (pixels[:, 0] < cfg.width)
            & (pixels[:, 1] >= 0) & (pixels[:, 1] < cfg.height)
        )
        return pixels, visible

    def render_particles(self, positions: np.ndarray, colors: np.ndarray, rotation: float) -> np.ndarray:
        """Render particles with additive blending and glow into a new BGR image."""
        cfg = self.config
        accum = np.zeros((cfg.height, cfg.width, 3), dtype=np.float32)

        if len(positions):
            pixels, visible = self.project(positions, rotation)
            pixels = pixels[visible]
            bgr = colors[visible][:, ::-1] * cfg.intensity
            np.add.at(accum, (pixels[:, 1], pixels[:, 0]), bgr)

        if cfg.point_size > 1:
            kernel = np.ones((cfg.point_size, cfg.point_size), dtype=np.uint8)
            accum = cv2.dilate(accum, kernel)

        if cfg.glow_strength > 0:
            glow = cv2.GaussianBlur(accum, (0, 0), sigmaX=cfg.glow_radius)
            accum = accum + glow * cfg.glow_strength

        background = np.array(cfg.background, dtype=np.float32) / 255.0
        image = np.clip(accum + background, 0.0, 1.0)
        return np.round(image * 255).astype(np.uint8)

    def draw_status(self, image: np.ndarray, gesture, fps: float = 0.0, count: int = 0,
                    mode: str = "") -> np.ndarray:
        """Draw gesture status, particle count and FPS."""
        cfg = self.config
        lines = [gesture.status_text]
        if not gesture.is_idle:
            lines[0] += f" ({gesture.strength:.2f})"
        lines.append(f"Particles: {count}")
        lines.append(f"FPS: {fps:.1f}")
        if mode:
            lines.append(f"Mode: {mode.upper()}")

        y = 30
        for line in lines:
            cv2.putText(image, line, (15, y), cv2.FONT_HERSHEY_SIMPLEX,
                        cfg.font_scale, cfg.text_color, 1, cv2.LINE_AA)
            y += int(28 * cfg.font_scale / 0.6)
        return image

    def draw_hands(self, image: np.ndarray, hands: List[HandLandmarks]) -> np.ndarray:
        """Draw hand skeletons onto a camera image."""
        height, width = image.shape[:2]
        for hand in hands:
            points = [lm.to_pixel(width, height) for lm in hand.landmarks]
            for start, end in HAND_CONNECTIONS:
                cv2.line(image, points[start], points[end], (255, 255, 255), 2)
            for i, point in enumerate(points):
                color = (0, 0, 255) if i in FINGERTIPS else (0, 255, 0)
                cv2.circle(image, point, 4, color, -1)
        return image

    def draw_camera_inset(self, canvas: np.ndarray, frame: np.ndarray,
                          hands: Optional[List[HandLandmarks]] = None) -> np.ndarray:
        """Paste a scaled camera view with hand skeletons in the top-right corner."""
        cfg = self.config
        if not cfg.show_camera or frame is None:
            return canvas

        inset_w = min(cfg.camera_inset_width, canvas.shape[1])
        inset_h = int(frame.shape[0] * inset_w / frame.shape[1])
        inset_h = min(inset_h, canvas.shape[0])
        inset = cv2.resize(frame, (inset_w, inset_h))
        if hands:
            self.draw_hands(inset, hands)

        x0 = canvas.shape[1] - inset_w
        canvas[:inset_h, x0:] = inset
        cv2.rectangle(canvas, (x0, 0), (canvas.shape[1] - 1, inset_h - 1), (80, 80, 80), 1)
        return canvas
