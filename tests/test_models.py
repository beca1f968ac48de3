"""
==============================================================================
Detection Model Tests
==============================================================================

Tests for DetectionResult, FrameBuffer and reader/source configuration.

==============================================================================
"""

import numpy as np
import pytest
from pydantic import ValidationError

from inventory_scanner.core.exceptions import InputUnreadable
from inventory_scanner.detection.models import (
    DetectionResult,
    FrameBuffer,
    LinearReaderConfig,
    SourceConfig,
    Symbology,
)


class TestDetectionResult:
    """Tests for the result type."""

    def test_found(self):
        """Test a successful result carries barcode and format only."""
        result = DetectionResult.found("ITEM-42", Symbology.QR_CODE)

        assert result.model_dump() == {
            "success": True,
            "barcode": "ITEM-42",
            "format": "QR_CODE",
            "error": None,
        }

    def test_failed(self):
        """Test a failed result carries only the error."""
        result = DetectionResult.failed("No barcode detected in image")

        assert result.success is False
        assert result.barcode is None
        assert result.format is None

    @pytest.mark.parametrize("fields", [
        {"success": True, "barcode": "X"},
        {"success": True, "barcode": "X", "format": "QR_CODE", "error": "boom"},
        {"success": False},
        {"success": False, "error": "boom", "barcode": "X"},
    ])
    def test_inconsistent_fields_rejected(self, fields):
        """Test invalid field combinations are rejected."""
        with pytest.raises(ValidationError):
            DetectionResult(**fields)

    def test_immutable(self):
        """Test results cannot be modified."""
        result = DetectionResult.found("ITEM-42", "QR_CODE")
        with pytest.raises(ValidationError):
            result.barcode = "OTHER"


class TestFrameBuffer:
    """Tests for FrameBuffer.from_array."""

    def test_bgr(self):
        frame = FrameBuffer.from_array(np.zeros((10, 20, 3), np.uint8))
        assert (frame.width, frame.height) == (20, 10)

    def test_grayscale_converted(self):
        """Test grayscale arrays become 3-channel."""
        frame = FrameBuffer.from_array(np.zeros((10, 20), np.uint8))
        assert frame.data.shape == (10, 20, 3)

    def test_bgra_converted(self):
        """Test the alpha channel is dropped."""
        frame = FrameBuffer.from_array(np.zeros((10, 20, 4), np.uint8))
        assert frame.data.shape == (10, 20, 3)

    @pytest.mark.parametrize("array", [
        np.zeros((0, 0, 3), np.uint8),
        np.zeros((10, 20, 3), np.float32),
        np.zeros((10, 20, 2), np.uint8),
        np.zeros((2, 10, 20, 3), np.uint8),
    ])
    def test_unreadable(self, array):
        """Test non-image arrays are rejected."""
        with pytest.raises(InputUnreadable):
            FrameBuffer.from_array(array)

    def test_not_an_array(self):
        with pytest.raises(InputUnreadable):
            FrameBuffer.from_array("pixels")


class TestLinearReaderConfig:
    """Tests for linear reader options."""

    def test_defaults(self):
        config = LinearReaderConfig(readers=[Symbology.EAN_13])
        assert config.locate is True
        assert config.num_workers == 0
        assert config.patch_size == "medium"

    def test_rejects_qr(self):
        """Test QR is refused as a linear reader."""
        with pytest.raises(ValidationError):
            LinearReaderConfig(readers=[Symbology.QR_CODE])

    def test_rejects_unknown_patch_size(self):
        with pytest.raises(ValidationError):
            LinearReaderConfig(readers=[Symbology.EAN_13], patch_size="huge")

    def test_requires_readers(self):
        with pytest.raises(ValidationError):
            LinearReaderConfig(readers=[])


class TestSourceConfig:
    """Tests for source descriptors."""

    def test_facing_mode_validated(self):
        """Test only environment/user facing modes are accepted."""
        with pytest.raises(ValidationError):
            SourceConfig(facing_mode="sideways")

    def test_from_settings(self):
        """Test the default source uses configured camera values."""
        source = SourceConfig.from_settings()
        assert source.width == 640
        assert source.height == 480
