"""
==============================================================================
Decoder Adapters Module
==============================================================================

Adapters over the two external decoding backends.

MatrixCodeDecoder:
    OpenCV QRCodeDetector. Synchronous, no side effects:
    FrameBuffer -> payload or None.

LinearBarcodeReader:
    ZBar (pyzbar) behind a callback-based reader API:

        init(config, callback)          acquire the live device
        start() / stop()                continuous frame pipeline
        on_detected(handler)            register a detection handler
        off_detected(handler=None)      unregister one or all handlers
        decode_single(config, image, callback)
                                        decode one encoded image
        release()                       tear everything down

    Callbacks may fire on background threads. The reader owns the device,
    the capture thread and the optional decode worker pool.

ZBar Symbol Mapping:
-------------------
    CODE_128 → CODE128     EAN_13 → EAN13     EAN_8 → EAN8
    CODE_39  → CODE39      CODE_39_VIN → CODE39 (17-char VIN payloads)
    CODABAR  → CODABAR     UPC_A  → UPCA      UPC_E → UPCE
    I2OF5    → I25

==============================================================================
"""

from __future__ import annotations

import logging
import re
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Deque, Iterable, List, Optional, Sequence

import cv2
import numpy as np

from inventory_scanner.core.exceptions import DeviceUnavailable, InputUnreadable
from inventory_scanner.detection.frames import CameraDevice, resize_longest
from inventory_scanner.detection.models import (
    FrameBuffer,
    LinearCode,
    LinearReaderConfig,
    SourceConfig,
    Symbology,
)


# Module logger
logger = logging.getLogger(__name__)


DetectedHandler = Callable[[LinearCode], None]
InitCallback = Callable[[Optional[BaseException]], None]
DecodeCallback = Callable[[Optional[LinearCode], Optional[BaseException]], None]

ZBAR_TYPES = {
    "CODE128": Symbology.CODE_128,
    "EAN13": Symbology.EAN_13,
    "EAN8": Symbology.EAN_8,
    "CODE39": Symbology.CODE_39,
    "CODABAR": Symbology.CODABAR,
    "UPCA": Symbology.UPC_A,
    "UPCE": Symbology.UPC_E,
    "I25": Symbology.I2OF5,
}

ZBAR_SYMBOLS = {
    Symbology.CODE_128: "CODE128",
    Symbology.EAN_13: "EAN13",
    Symbology.EAN_8: "EAN8",
    Symbology.CODE_39: "CODE39",
    Symbology.CODE_39_VIN: "CODE39",
    Symbology.CODABAR: "CODABAR",
    Symbology.UPC_A: "UPCA",
    Symbology.UPC_E: "UPCE",
    Symbology.I2OF5: "I25",
}

# ISO 3779: 17 characters, no I, O or Q
VIN_PATTERN = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")

MIN_HALF_SAMPLE_SIDE = 240
MAX_FAILED_READS = 30
READ_RETRY_DELAY = 0.05
JOIN_TIMEOUT = 2.0


# =============================================================================
# MATRIX CODES
# =============================================================================

class MatrixCodeDecoder:
    """
    QR decoder backed by cv2.QRCodeDetector.

    Example:
        >>> decoder = MatrixCodeDecoder()
        >>> decoder.decode(frame)
        'ITEM-42'
    """

    def __init__(self) -> None:
        self._detector = cv2.QRCodeDetector()

    def decode(self, frame: FrameBuffer) -> Optional[str]:
        """Return the embedded payload, or None if no QR code was decoded."""
        data, _, _ = self._detector.detectAndDecode(frame.data)
        return data or None


# =============================================================================
# LINEAR CODES
# =============================================================================

def classify(zbar_type: str, code: str, readers: Sequence[Symbology]) -> Optional[Symbology]:
    """
    Map a ZBar symbol type to the enabled symbology it should report as.

    Returns:
        The symbology, or None when no enabled reader accepts the code
    """
    fmt = ZBAR_TYPES.get(zbar_type)
    if fmt is None:
        return None

    if fmt == Symbology.CODE_39:
        if Symbology.CODE_39_VIN in readers and VIN_PATTERN.match(code):
            return Symbology.CODE_39_VIN
        return Symbology.CODE_39 if Symbology.CODE_39 in readers else None

    return fmt if fmt in readers else None


def pick_code(decoded: Iterable, readers: Sequence[Symbology]) -> Optional[LinearCode]:
    """
    Choose the result whose symbology comes earliest in readers.

    Args:
        decoded: ZBar results (objects with .type and .data)
        readers: Ordered enabled symbologies
    """
    best: Optional[LinearCode] = None
    best_rank = len(readers)

    for symbol in decoded:
        data = symbol.data
        code = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else str(data)
        if not code:
            continue

        fmt = classify(symbol.type, code, readers)
        if fmt is None:
            continue

        rank = readers.index(fmt)
        if rank < best_rank:
            best, best_rank = LinearCode(code, fmt), rank

    return best


class LinearBarcodeReader:
    """
    Multi-symbology linear barcode reader with a callback API.

    ZBar is imported when the reader is constructed; a missing zbar shared
    library surfaces as ImportError here rather than at package import.

    Example:
        >>> reader = LinearBarcodeReader()
        >>> reader.init(config, lambda err: print("ready", err))
        >>> reader.on_detected(lambda code: print(code))
        >>> reader.start()
        >>> ...
        >>> reader.release()
    """

    def __init__(
        self,
        device_factory: Callable[[SourceConfig], CameraDevice] = CameraDevice
    ) -> None:
        from pyzbar.pyzbar import ZBarSymbol
        from pyzbar.pyzbar import decode as zbar_decode

        self._zbar_decode = zbar_decode
        self._ZBarSymbol = ZBarSymbol
        self._device_factory = device_factory

        self._lock = threading.Lock()
        self._device: Optional[CameraDevice] = None
        self._config: Optional[LinearReaderConfig] = None
        self._handlers: List[DetectedHandler] = []
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._pool: Optional[ThreadPoolExecutor] = None
        self._generation = 0

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def init(self, config: LinearReaderConfig, callback: InitCallback) -> None:
        """
        Acquire the live device for config.source on a background thread.

        callback(error) fires exactly once; error is None on success.
        """
        if config.source is None:
            callback(DeviceUnavailable("No live source configured"))
            return

        with self._lock:
            self._generation += 1
            generation = self._generation

        def _open() -> None:
            try:
                device = self._device_factory(config.source)
                device.open()
            except Exception as exc:
                callback(exc)
                return

            with self._lock:
                released = self._generation != generation
                if not released:
                    self._device = device
                    self._config = config

            if released:
                device.release()
                callback(DeviceUnavailable("Reader released during initialization"))
                return

            logger.info(
                f"Linear reader ready: {len(config.readers)} readers, "
                f"workers={config.num_workers}, frequency={config.frequency}, "
                f"patch_size={config.patch_size}"
            )
            callback(None)

        threading.Thread(target=_open, name="linear-reader-init", daemon=True).start()

    def start(self) -> None:
        """
        Start the continuous frame pipeline. No-op while already running.

        Raises:
            DeviceUnavailable: If init() has not acquired a device
        """
        with self._lock:
            if self._device is None or self._config is None:
                raise DeviceUnavailable("Linear reader not initialized")

            running = self._thread is not None and self._thread.is_alive()
            if running and not self._stop_event.is_set():
                return

            config = self._config
            if config.num_workers and self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=config.num_workers,
                    thread_name_prefix="linear-decode",
                )

            # each run owns its stop event so a lingering run exits on its own
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._device, config, self._pool, self._stop_event),
                name="linear-reader",
                daemon=True,
            )
            self._thread.start()

    def stop(self) -> None:
        """Signal the frame pipeline to stop. Safe from any thread."""
        self._stop_event.set()

    def release(self) -> None:
        """Stop the pipeline, release the device and worker pool. Idempotent."""
        with self._lock:
            self._generation += 1
            thread = self._thread
        self.stop()

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=JOIN_TIMEOUT)

        with self._lock:
            device, self._device = self._device, None
            pool, self._pool = self._pool, None
            self._config = None
            self._thread = None
            self._handlers.clear()

        if device is not None:
            device.release()
        if pool is not None:
            pool.shutdown(wait=False, cancel_futures=True)

    # =========================================================================
    # HANDLERS
    # =========================================================================

    def on_detected(self, handler: DetectedHandler) -> None:
        """Register a detection handler."""
        with self._lock:
            self._handlers.append(handler)

    def off_detected(self, handler: Optional[DetectedHandler] = None) -> None:
        """Unregister handler, or every handler when None."""
        with self._lock:
            if handler is None:
                self._handlers.clear()
            elif handler in self._handlers:
                self._handlers.remove(handler)

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    # =========================================================================
    # SINGLE IMAGE
    # =========================================================================

    def decode_single(
        self,
        config: LinearReaderConfig,
        image: bytes,
        callback: DecodeCallback
    ) -> None:
        """
        Decode one encoded image.

        callback(code, error) fires exactly once: inline when
        config.num_workers is 0, otherwise on the worker pool.
        """
        def _work() -> None:
            try:
                decoded = cv2.imdecode(np.frombuffer(image, np.uint8), cv2.IMREAD_COLOR)
                if decoded is None:
                    raise InputUnreadable("Could not load image")
                code = self._scan(resize_longest(decoded, config.input_size), config)
            except Exception as exc:
                callback(None, exc)
                return
            callback(code, None)

        if config.num_workers == 0:
            _work()
            return

        with self._lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=config.num_workers,
                    thread_name_prefix="linear-decode",
                )
            pool = self._pool
        pool.submit(_work)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _run(
        self,
        device: CameraDevice,
        config: LinearReaderConfig,
        pool: Optional[ThreadPoolExecutor],
        stop_event: threading.Event
    ) -> None:
        """Capture loop: read, decode, emit in capture order."""
        interval = 1.0 / config.frequency if config.frequency else 0.0
        pending: Deque[Future] = deque()
        failed_reads = 0

        logger.info("▶️ Linear reader streaming")

        try:
            while not stop_event.is_set():
                started = time.monotonic()
                frame = device.read()

                if frame is None:
                    failed_reads += 1
                    if failed_reads >= MAX_FAILED_READS:
                        logger.error("Camera stopped delivering frames, halting reader")
                        break
                    stop_event.wait(READ_RETRY_DELAY)
                    continue

                failed_reads = 0

                if pool is None:
                    self._emit(self._safe_scan(frame.data, config), stop_event)
                else:
                    pending.append(pool.submit(self._scan, frame.data, config))
                    while pending and (pending[0].done() or len(pending) >= config.num_workers):
                        self._emit(self._collect(pending.popleft()), stop_event)

                stop_event.wait(max(0.0, interval - (time.monotonic() - started)))
        finally:
            for future in pending:
                future.cancel()
            logger.info("⏹️ Linear reader stopped")

    def _safe_scan(self, image: np.ndarray, config: LinearReaderConfig) -> Optional[LinearCode]:
        try:
            return self._scan(image, config)
        except Exception as e:
            logger.error(f"Decode error: {e}")
            return None

    @staticmethod
    def _collect(future: Future) -> Optional[LinearCode]:
        try:
            return future.result()
        except Exception as e:
            logger.error(f"Decode error: {e}")
            return None

    def _emit(self, code: Optional[LinearCode], stop_event: threading.Event) -> None:
        if code is None or stop_event.is_set():
            return

        with self._lock:
            handlers = list(self._handlers)

        for handler in handlers:
            try:
                handler(code)
            except Exception:
                logger.exception("Detection handler failed")

    def _scan(self, image: np.ndarray, config: LinearReaderConfig) -> Optional[LinearCode]:
        """
        Decode one image with the configured readers.

        With half_sample, a half-resolution pass runs first and the full
        image is only decoded when it finds nothing. Without locate, only
        the central horizontal band is searched.
        """
        gray = image if image.ndim == 2 else cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

        if not config.locate:
            height = gray.shape[0]
            band = max(1, height // 4)
            gray = gray[height // 2 - band:height // 2 + band]

        passes = [gray]
        height, width = gray.shape[:2]
        if config.half_sample and min(height, width) >= MIN_HALF_SAMPLE_SIDE:
            passes.insert(0, cv2.resize(gray, (width // 2, height // 2), interpolation=cv2.INTER_AREA))

        symbols = self._symbols_for(config.readers)
        for candidate in passes:
            code = pick_code(self._zbar_decode(candidate, symbols=symbols), config.readers)
            if code is not None:
                return code
        return None

    def _symbols_for(self, readers: Sequence[Symbology]) -> list:
        symbols = []
        for symbology in readers:
            symbol = getattr(self._ZBarSymbol, ZBAR_SYMBOLS[symbology])
            if symbol not in symbols:
                symbols.append(symbol)
        return symbols
