"""
==============================================================================
Detection Models Module
==============================================================================

Value types passed between frame sources, decoders and the orchestrator.

- Symbology: supported code formats (result "format" values)
- DetectionResult: terminal, consumer-facing detection outcome
- FrameBuffer: one rectangular BGR pixel buffer
- EncodedImage: an encoded (PNG/JPEG/...) image not yet decoded
- SourceConfig: where frames come from and the requested device constraints
- LinearReaderConfig: options understood by the linear barcode reader
- LinearCode: payload the linear reader hands to its callbacks

==============================================================================
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Union

import cv2
import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

from inventory_scanner.config import PATCH_SIZES, get_settings
from inventory_scanner.core.exceptions import InputUnreadable


class Symbology(str, enum.Enum):
    """Code formats the decoders can report."""

    QR_CODE = "QR_CODE"
    CODE_128 = "CODE_128"
    EAN_13 = "EAN_13"
    EAN_8 = "EAN_8"
    CODE_39 = "CODE_39"
    CODE_39_VIN = "CODE_39_VIN"
    CODABAR = "CODABAR"
    UPC_A = "UPC_A"
    UPC_E = "UPC_E"
    I2OF5 = "I2OF5"

    def __str__(self) -> str:
        """Return the enum value as string."""
        return self.value


class SourceKind(str, enum.Enum):
    """Frame origins."""

    CAMERA = "camera"
    UPLOAD = "upload"
    CAPTURE = "capture"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# RESULTS
# =============================================================================

class DetectionResult(BaseModel):
    """
    Outcome of one detection attempt.

    Exactly one of (barcode + format) or error is populated, depending on
    success. Instances are immutable.

    Example:
        >>> DetectionResult.found("ITEM-42", "QR_CODE").success
        True
        >>> DetectionResult.failed("No barcode detected in image").error
        'No barcode detected in image'
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    barcode: Optional[str] = None
    format: Optional[str] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_payload(self) -> "DetectionResult":
        """Enforce the success/error field combination."""
        if self.success:
            if not self.barcode or not self.format:
                raise ValueError("successful result needs barcode and format")
            if self.error is not None:
                raise ValueError("successful result cannot carry an error")
        else:
            if not self.error:
                raise ValueError("failed result needs an error message")
            if self.barcode is not None or self.format is not None:
                raise ValueError("failed result cannot carry a barcode")
        return self

    @classmethod
    def found(cls, barcode: str, format: Union[str, Symbology]) -> "DetectionResult":
        """Build a successful result."""
        return cls(success=True, barcode=barcode, format=str(format))

    @classmethod
    def failed(cls, error: str) -> "DetectionResult":
        """Build a failed result."""
        return cls(success=False, error=error)


class LinearCode(NamedTuple):
    """A decoded linear barcode."""

    code: str
    format: Symbology


# =============================================================================
# FRAMES
# =============================================================================

@dataclass(frozen=True)
class FrameBuffer:
    """
    Rectangular pixel buffer shared by both decoders.

    Attributes:
        width: Frame width in pixels
        height: Frame height in pixels
        data: H x W x 3 uint8 array in BGR channel order
    """

    width: int
    height: int
    data: np.ndarray

    @classmethod
    def from_array(cls, array: np.ndarray) -> "FrameBuffer":
        """
        Wrap a pixel array, normalizing it to 3-channel BGR uint8.

        Accepts grayscale (H x W), BGR (H x W x 3) and BGRA (H x W x 4).

        Raises:
            InputUnreadable: If the array is not an image
        """
        if not isinstance(array, np.ndarray) or array.size == 0:
            raise InputUnreadable("Could not read image data")

        if array.dtype != np.uint8:
            raise InputUnreadable("Could not read image data")

        if array.ndim == 2:
            array = cv2.cvtColor(array, cv2.COLOR_GRAY2BGR)
        elif array.ndim == 3 and array.shape[2] == 4:
            array = cv2.cvtColor(array, cv2.COLOR_BGRA2BGR)
        elif array.ndim != 3 or array.shape[2] != 3:
            raise InputUnreadable("Could not read image data")

        height, width = array.shape[:2]
        return cls(width=width, height=height, data=array)


@dataclass(frozen=True)
class EncodedImage:
    """An encoded image (PNG, JPEG, ...) that still has to be decoded."""

    data: bytes
    filename: Optional[str] = None


# =============================================================================
# CONFIGURATION
# =============================================================================

class SourceConfig(BaseModel):
    """
    Source descriptor handed to DetectionOrchestrator.initialize().

    Attributes:
        kind: camera, upload or capture
        target: Capture device index or stream URL (camera only)
        width: Requested frame width
        height: Requested frame height
        facing_mode: environment (back) or user (front)
    """

    model_config = ConfigDict(frozen=True)

    kind: SourceKind = SourceKind.CAMERA
    target: Union[int, str] = 0
    width: int = Field(default=640, ge=64, le=4096)
    height: int = Field(default=480, ge=64, le=4096)
    facing_mode: str = Field(default="environment", pattern="^(environment|user)$")

    @classmethod
    def from_settings(cls, kind: SourceKind = SourceKind.CAMERA) -> "SourceConfig":
        """Default source built from application settings."""
        settings = get_settings()
        return cls(
            kind=kind,
            target=settings.camera_index,
            width=settings.camera_width,
            height=settings.camera_height,
            facing_mode=settings.camera_facing,
        )


class LinearReaderConfig(BaseModel):
    """
    Options understood by LinearBarcodeReader.

    Attributes:
        readers: Ordered symbologies to accept; earlier entries win
        locate: Search the whole frame (False: central band only)
        half_sample: Try a half-resolution pass first
        patch_size: Locator patch size
        num_workers: Decode threads (0 = decode inline)
        frequency: Maximum decoded frames per second while streaming
        input_size: Resize the longest image side to this for single decodes
        source: Live source used by init()
    """

    model_config = ConfigDict(frozen=True)

    readers: List[Symbology] = Field(..., min_length=1)
    locate: bool = True
    half_sample: bool = True
    patch_size: str = "medium"
    num_workers: int = Field(default=0, ge=0, le=16)
    frequency: Optional[float] = Field(default=None, gt=0)
    input_size: Optional[int] = Field(default=None, ge=1)
    source: Optional[SourceConfig] = None

    @model_validator(mode="after")
    def check_options(self) -> "LinearReaderConfig":
        if Symbology.QR_CODE in self.readers:
            raise ValueError("QR_CODE is not a linear symbology")
        if self.patch_size not in PATCH_SIZES:
            raise ValueError(f"Unsupported patch size: {self.patch_size}")
        return self
