"""
Webcam Capture
===============

Feeds mirrored BGR frames to the heart driver. In threaded mode a daemon
thread keeps overwriting a single frame slot, and the render loop picks up
whatever is newest without waiting on the device.
"""

import cv2
import time
import threading
import logging
from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np

logger = logging.getLogger(__name__)

# Pause after a failed grab before the capture thread retries
RETRY_DELAY_S = 0.005


@dataclass
class CameraConfig:
    """Webcam settings (``camera`` section of config.yaml)."""
    device_id: int = 0
    width: int = 640
    height: int = 480
    fps: int = 30
    buffer_size: int = 1
    threaded: bool = True
    # Mirror view: moving a hand right rotates the heart right
    flip_horizontal: bool = True
    warmup_frames: int = 5

    @classmethod
    def from_dict(cls, config: dict) -> "CameraConfig":
        defaults = cls()
        return cls(**{
            name: config.get(name, getattr(defaults, name))
            for name in cls.__dataclass_fields__
        })


@dataclass
class Frame:
    """One captured image and when it arrived."""
    image: np.ndarray  # BGR
    timestamp: float   # wall clock seconds
    frame_number: int  # 1-based, restarts on every start()

    @property
    def rgb(self) -> np.ndarray:
        """Copy of the image in the channel order MediaPipe expects."""
        return cv2.cvtColor(self.image, cv2.COLOR_BGR2RGB)

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp * 1000)


class Camera:
    """
    OpenCV webcam with a latest-frame slot.

    Example:
        >>> with Camera(CameraConfig(device_id=0)) as camera:
        ...     frame = camera.read()
        ...     if frame is not None and frame.frame_number != last_seen:
        ...         hands = detector.detect(frame.rgb, frame.timestamp_ms)
    """

    def __init__(self, config: Optional[CameraConfig] = None):
        self.config = config or CameraConfig()
        self._device: Optional[cv2.VideoCapture] = None
        self._grabbed = 0
        self._running = False

        self._worker: Optional[threading.Thread] = None
        self._slot_lock = threading.Lock()
        self._slot: Optional[Frame] = None

    def _open_device(self) -> Optional[cv2.VideoCapture]:
        cfg = self.config
        device = cv2.VideoCapture(cfg.device_id)
        if not device.isOpened():
            return None
        for prop, value in (
            (cv2.CAP_PROP_FRAME_WIDTH, cfg.width),
            (cv2.CAP_PROP_FRAME_HEIGHT, cfg.height),
            (cv2.CAP_PROP_FPS, cfg.fps),
            (cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size),
        ):
            device.set(prop, value)
        # Let auto exposure settle before frames are used
        for _ in range(cfg.warmup_frames):
            device.read()
        return device

    def start(self) -> bool:
        """Open the device and begin capturing; False if it cannot be opened."""
        cfg = self.config
        logger.info("Opening webcam %d at %dx%d, %d fps", cfg.device_id, cfg.width, cfg.height, cfg.fps)

        self._device = self._open_device()
        if self._device is None:
            logger.error("Webcam %d could not be opened", cfg.device_id)
            return False

        self._grabbed = 0
        self._running = True
        if cfg.threaded:
            self._worker = threading.Thread(target=self._run_worker, name="webcam", daemon=True)
            self._worker.start()
            logger.debug("Capture thread running")
        return True

    def stop(self) -> None:
        """Stop the capture thread, release the device and drop the held frame."""
        self._running = False
        if self._worker is not None:
            self._worker.join(timeout=1.0)
            self._worker = None
        if self._device is not None:
            self._device.release()
            self._device = None
        with self._slot_lock:
            self._slot = None
        logger.info("Webcam released after %d frames", self._grabbed)

    def read(self) -> Optional[Frame]:
        """
        Newest frame, or None before the first frame or when stopped.

        In threaded mode the same Frame is handed out until the thread
        replaces it; compare ``frame_number`` to spot new frames.
        """
        if not self._running:
            return None
        if not self.config.threaded:
            return self._grab()
        with self._slot_lock:
            return self._slot

    def _grab(self) -> Optional[Frame]:
        if self._device is None:
            return None
        ok, image = self._device.read()
        if not ok or image is None:
            logger.warning("Webcam returned no image")
            return None
        if self.config.flip_horizontal:
            image = cv2.flip(image, 1)
        self._grabbed += 1
        return Frame(image=image, timestamp=time.time(), frame_number=self._grabbed)

    def _run_worker(self) -> None:
        while self._running:
            frame = self._grab()
            if frame is None:
                time.sleep(RETRY_DELAY_S)
                continue
            with self._slot_lock:
                self._slot = frame

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.config.width, self.config.height)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
