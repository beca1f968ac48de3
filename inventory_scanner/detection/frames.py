"""
==============================================================================
Frame Source Module
==============================================================================

Produces FrameBuffers from the three input modalities:

- Live device:     CameraDevice (cv2.VideoCapture)
- Uploaded file:   decode_image(bytes)
- Captured frame:  decode_data_url("data:image/jpeg;base64,...") or
                   FrameBuffer.from_array(ndarray)

No decoding of codes happens here.

==============================================================================
"""

from __future__ import annotations

import base64
import binascii
import logging
import threading
from typing import Optional

import cv2
import numpy as np

from inventory_scanner.core.exceptions import DeviceUnavailable, InputUnreadable
from inventory_scanner.detection.models import FrameBuffer, SourceConfig


# Module logger
logger = logging.getLogger(__name__)


# =============================================================================
# STILL IMAGES / SNAPSHOTS
# =============================================================================

def decode_image(data: bytes) -> FrameBuffer:
    """
    Decode an encoded image file into a FrameBuffer.

    Args:
        data: Raw file bytes (PNG, JPEG, BMP, ...)

    Raises:
        InputUnreadable: If the bytes are not a decodable image
    """
    if not data:
        raise InputUnreadable("Could not load image")

    buffer = np.frombuffer(data, np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)

    if image is None:
        raise InputUnreadable("Could not load image")

    return FrameBuffer.from_array(image)


def decode_data_url(data_url: str) -> FrameBuffer:
    """
    Decode a captured snapshot sent as a data URL or bare base64 string.

    Raises:
        InputUnreadable: If the payload is not base64 image data
    """
    payload = data_url.strip()
    if payload.startswith("data:"):
        header, _, payload = payload.partition(",")
        if ";base64" not in header:
            raise InputUnreadable("Could not load image")

    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        raise InputUnreadable("Could not load image")

    return decode_image(raw)


def encode_png(frame: FrameBuffer) -> bytes:
    """
    Encode a FrameBuffer as PNG bytes.

    Raises:
        InputUnreadable: If OpenCV cannot encode the buffer
    """
    ok, encoded = cv2.imencode(".png", frame.data)
    if not ok:
        raise InputUnreadable("Could not read image data")
    return encoded.tobytes()


def resize_longest(image: np.ndarray, size: Optional[int]) -> np.ndarray:
    """Scale image so its longest side equals size (no-op when size is None)."""
    if not size:
        return image

    height, width = image.shape[:2]
    longest = max(height, width)
    if longest == size:
        return image

    scale = size / float(longest)
    interpolation = cv2.INTER_AREA if scale < 1 else cv2.INTER_LINEAR
    return cv2.resize(
        image,
        (max(1, round(width * scale)), max(1, round(height * scale))),
        interpolation=interpolation,
    )


# =============================================================================
# LIVE DEVICE
# =============================================================================

class CameraDevice:
    """
    Exclusive handle on one capture device.

    open() and release() are idempotent; read() is safe from the capture
    thread while release() runs on another thread.

    Example:
        >>> device = CameraDevice(SourceConfig(target=0))
        >>> device.open()
        >>> frame = device.read()
        >>> device.release()
    """

    def __init__(self, source: SourceConfig) -> None:
        self._source = source
        self._cap: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    def open(self) -> None:
        """
        Acquire the device and apply the requested resolution.

        Raises:
            DeviceUnavailable: If the device cannot be opened
        """
        with self._lock:
            if self._cap is not None:
                return

            cap = cv2.VideoCapture(self._source.target)
            if not cap.isOpened():
                cap.release()
                raise DeviceUnavailable(
                    f"Cannot open camera {self._source.target}"
                )

            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._source.width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._source.height)
            self._cap = cap

        # cv2 has no facing selection; the device index decides
        logger.info(
            f"📷 Camera {self._source.target} opened "
            f"({self._source.width}x{self._source.height}, "
            f"facing={self._source.facing_mode})"
        )

    def read(self) -> Optional[FrameBuffer]:
        """Grab one frame, or None if the device is closed or the read failed."""
        with self._lock:
            if self._cap is None:
                return None
            ok, image = self._cap.read()

        if not ok or image is None:
            return None
        return FrameBuffer.from_array(image)

    def release(self) -> None:
        """Release the device if it is held."""
        with self._lock:
            if self._cap is None:
                return
            self._cap.release()
            self._cap = None

        logger.info(f"📷 Camera {self._source.target} released")
