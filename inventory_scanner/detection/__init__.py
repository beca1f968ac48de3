"""
==============================================================================
Detection Package - Barcode / QR Detection Core
==============================================================================

Barcode detection with OpenCV (QR) and pyzbar (linear symbologies).

Classes:
--------
- DetectionOrchestrator: session lifecycle and fallback decode pipeline
- MatrixCodeDecoder: QR decoder adapter
- LinearBarcodeReader: callback-based linear barcode reader
- CameraDevice: live capture device
- DetectionResult, FrameBuffer, EncodedImage, SourceConfig: value types

==============================================================================
"""

from .decoders import LinearBarcodeReader, MatrixCodeDecoder
from .frames import CameraDevice, decode_data_url, decode_image
from .models import (
    DetectionResult,
    EncodedImage,
    FrameBuffer,
    LinearCode,
    LinearReaderConfig,
    SourceConfig,
    SourceKind,
    Symbology,
)
from .orchestrator import DetectionOrchestrator
from .policy import DETECTION_POLICY, DecoderKind, DetectionMode
from .state import ScannerState

__all__ = [
    "CameraDevice",
    "DETECTION_POLICY",
    "DecoderKind",
    "DetectionMode",
    "DetectionOrchestrator",
    "DetectionResult",
    "EncodedImage",
    "FrameBuffer",
    "LinearBarcodeReader",
    "LinearCode",
    "LinearReaderConfig",
    "MatrixCodeDecoder",
    "ScannerState",
    "SourceConfig",
    "SourceKind",
    "Symbology",
    "decode_data_url",
    "decode_image",
]
