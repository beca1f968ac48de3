"""
==============================================================================
Frame Source Tests
==============================================================================

Tests for still-image decoding, data URLs and the camera device.

==============================================================================
"""

import base64

import numpy as np
import pytest

from inventory_scanner.core.exceptions import DeviceUnavailable, InputUnreadable
from inventory_scanner.detection.frames import (
    CameraDevice,
    decode_data_url,
    decode_image,
    encode_png,
    resize_longest,
)
from inventory_scanner.detection.models import SourceConfig


class TestDecodeImage:
    """Tests for uploaded image decoding."""

    def test_png(self, blank_png):
        frame = decode_image(blank_png)
        assert (frame.width, frame.height) == (160, 120)

    @pytest.mark.parametrize("data", [b"", b"not an image", b"\x89PNG\r\n\x1a\n"])
    def test_garbage(self, data):
        """Test undecodable bytes raise InputUnreadable."""
        with pytest.raises(InputUnreadable) as exc_info:
            decode_image(data)
        assert exc_info.value.message == "Could not load image"

    def test_encode_png_round_trip(self, blank_frame):
        """Test a frame survives PNG encoding unchanged."""
        frame = decode_image(encode_png(blank_frame))
        assert np.array_equal(frame.data, blank_frame.data)


class TestDecodeDataUrl:
    """Tests for captured snapshot decoding."""

    def test_data_url(self, blank_png):
        url = "data:image/png;base64," + base64.b64encode(blank_png).decode()
        assert decode_data_url(url).width == 160

    def test_bare_base64(self, blank_png):
        assert decode_data_url(base64.b64encode(blank_png).decode()).height == 120

    def test_not_base64_encoded(self):
        """Test a data URL without ;base64 is rejected."""
        with pytest.raises(InputUnreadable):
            decode_data_url("data:image/png,rawbytes")

    def test_invalid_base64(self):
        with pytest.raises(InputUnreadable):
            decode_data_url("data:image/png;base64,***")


class TestResizeLongest:
    """Tests for single-shot input resizing."""

    def test_downscale(self):
        image = np.zeros((1000, 2000, 3), np.uint8)
        assert resize_longest(image, 800).shape[:2] == (400, 800)

    def test_upscale(self):
        image = np.zeros((100, 50), np.uint8)
        assert resize_longest(image, 800).shape[:2] == (800, 400)

    def test_none_is_noop(self):
        image = np.zeros((10, 10), np.uint8)
        assert resize_longest(image, None) is image


class TestCameraDevice:
    """Tests for the live capture device."""

    def test_missing_device(self, tmp_path):
        """Test an unavailable source raises DeviceUnavailable."""
        device = CameraDevice(SourceConfig(target=str(tmp_path / "missing.avi")))

        with pytest.raises(DeviceUnavailable):
            device.open()
        assert device.is_open is False

    def test_release_unopened(self):
        """Test releasing a device that was never opened is a no-op."""
        device = CameraDevice(SourceConfig())
        device.release()
        device.release()
        assert device.read() is None
