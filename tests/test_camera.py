"""
Tests for Camera Module
========================
"""

import time
import pytest
import numpy as np
import sys
from pathlib import Path
from unittest.mock import patch, MagicMock

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

cv2 = pytest.importorskip("cv2")

from capture.camera import Camera, CameraConfig, Frame


class TestCameraConfig:
    """Test suite for CameraConfig."""

    def test_default_values(self):
        config = CameraConfig()

        assert config.device_id == 0
        assert config.width == 640
        assert config.height == 480
        assert config.fps == 30
        assert config.flip_horizontal
        assert config.threaded

    def test_from_dict_partial(self):
        config = CameraConfig.from_dict({"device_id": 2, "threaded": False})

        assert config.device_id == 2
        assert not config.threaded
        assert config.width == 640  # Default


class TestFrame:
    """Test suite for Frame class."""

    def test_rgb_conversion(self):
        image = np.zeros((1, 1, 3), dtype=np.uint8)
        image[0, 0] = [255, 0, 0]  # Blue in BGR

        rgb = Frame(image=image, timestamp=0, frame_number=0).rgb

        assert rgb[0, 0, 0] == 0
        assert rgb[0, 0, 2] == 255

    def test_timestamp_ms(self):
        frame = Frame(image=np.zeros((1, 1, 3), dtype=np.uint8), timestamp=12.3456, frame_number=1)
        assert frame.timestamp_ms == 12345


class TestCamera:
    """Test suite for Camera class."""

    @pytest.fixture
    def mock_cap(self):
        """Mock OpenCV VideoCapture delivering a frame with one marked column."""
        image = np.zeros((480, 640, 3), dtype=np.uint8)
        image[:, 0] = 255
        with patch("capture.camera.cv2.VideoCapture") as video_capture:
            cap = MagicMock()
            cap.isOpened.return_value = True
            cap.read.side_effect = lambda: (True, image.copy())
            video_capture.return_value = cap
            yield cap

    def test_not_running_returns_none(self):
        camera = Camera(CameraConfig())
        assert not camera.is_running
        assert camera.read() is None

    def test_open_failure(self, mock_cap):
        mock_cap.isOpened.return_value = False
        camera = Camera(CameraConfig(warmup_frames=0, threaded=False))
        assert camera.start() is False
        assert not camera.is_running

    def test_synchronous_read(self, mock_cap):
        camera = Camera(CameraConfig(warmup_frames=0, threaded=False))
        assert camera.start()

        first = camera.read()
        second = camera.read()
        camera.stop()

        assert first.frame_number == 1
        assert second.frame_number == 2
        assert first.image.shape == (480, 640, 3)

    def test_mirrors_image(self, mock_cap):
        camera = Camera(CameraConfig(warmup_frames=0, threaded=False, flip_horizontal=True))
        camera.start()
        frame = camera.read()
        camera.stop()

        assert frame.image[0, -1, 0] == 255
        assert frame.image[0, 0, 0] == 0

    def test_failed_read(self, mock_cap):
        mock_cap.read.side_effect = lambda: (False, None)
        camera = Camera(CameraConfig(warmup_frames=0, threaded=False))
        camera.start()
        assert camera.read() is None
        camera.stop()

    def test_threaded_latest_frame(self, mock_cap):
        camera = Camera(CameraConfig(warmup_frames=0, threaded=True))
        camera.start()
        try:
            deadline = time.time() + 2.0
            frame = None
            while frame is None and time.time() < deadline:
                frame = camera.read()
                time.sleep(0.005)
        finally:
            camera.stop()

        assert frame is not None
        assert frame.frame_number >= 1

    def test_restart_does_not_return_previous_frame(self, mock_cap):
        camera = Camera(CameraConfig(warmup_frames=0, threaded=True))
        camera.start()
        try:
            deadline = time.time() + 2.0
            while camera.read() is None and time.time() < deadline:
                time.sleep(0.005)
            assert camera.read() is not None
        finally:
            camera.stop()

        # Device delivers nothing after the restart
        mock_cap.read.side_effect = lambda: (False, None)
        camera.start()
        try:
            time.sleep(0.02)
            assert camera.read() is None
        finally:
            camera.stop()

    def test_context_manager(self, mock_cap):
        with Camera(CameraConfig(warmup_frames=0, threaded=False)) as camera:
            assert camera.is_running

        assert not camera.is_running
        mock_cap.release.assert_called_once()

    def test_resolution_property(self):
        assert Camera(CameraConfig(width=800, height=600)).resolution == (800, 600)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
