"""
==============================================================================
Detection Orchestrator Module
==============================================================================

One scanning session: owns the camera lifecycle, runs the fallback decode
pipeline, and turns the decoders' synchronous, threaded and callback-based
APIs into one contract that never raises across its public boundary.

Public API:
----------
    await initialize(source)          -> bool
    start_streaming(on_detected)      -> None
    stop_streaming()                  -> None
    await detect_once(frame)          -> DetectionResult
    await detect_from_file(data)      -> DetectionResult
    await detect_from_snapshot(snap)  -> DetectionResult
    cleanup()                         -> None

Threading:
---------
Public methods run on the event loop thread. Reader callbacks arrive on
background threads and are marshalled back with call_soon_threadsafe, so
state only changes on the loop thread.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable, Optional, Tuple, Union

import numpy as np

from inventory_scanner.config import Settings, get_settings
from inventory_scanner.core.exceptions import DecodeFailure, DetectionError
from inventory_scanner.detection.decoders import LinearBarcodeReader, MatrixCodeDecoder
from inventory_scanner.detection.frames import decode_data_url, decode_image, encode_png
from inventory_scanner.detection.models import (
    DetectionResult,
    EncodedImage,
    FrameBuffer,
    LinearCode,
    LinearReaderConfig,
    SourceConfig,
    SourceKind,
    Symbology,
)
from inventory_scanner.detection.policy import (
    DETECTION_POLICY,
    DecoderKind,
    DetectionMode,
    DecodeStep,
    symbologies_for,
)
from inventory_scanner.detection.state import ScannerState, SessionState


# Module logger
logger = logging.getLogger(__name__)


CAMERA_NOT_INITIALIZED = "Camera not initialized"
NO_BARCODE_DETECTED = "No barcode detected in image"
FAILED_TO_PROCESS = "Failed to process image"
DECODER_TIMED_OUT = "Barcode decoder timed out"

DetectionCallback = Callable[[DetectionResult], None]


def _callback_future(loop: asyncio.AbstractEventLoop) -> Tuple[asyncio.Future, Callable[..., None]]:
    """
    Future plus a settle function a backend may call from any thread.

    Only the first invocation counts; later ones are ignored.
    """
    future = loop.create_future()
    settled = threading.Event()

    def _resolve(args: Tuple[Any, ...]) -> None:
        if not future.done():
            future.set_result(args)

    def settle(*args: Any) -> None:
        if settled.is_set():
            return
        settled.set()
        loop.call_soon_threadsafe(_resolve, args)

    return future, settle


class _Subscription:
    """Marks the currently registered streaming listener."""

    __slots__ = ("on_detected", "handler")

    def __init__(self, on_detected: DetectionCallback) -> None:
        self.on_detected = on_detected
        self.handler: Optional[Callable[[LinearCode], None]] = None


class DetectionOrchestrator:
    """
    Session-scoped detection orchestrator.

    Each instance owns its own state; two sessions never share a device
    handle or a listener.

    Example:
        >>> orchestrator = DetectionOrchestrator()
        >>> if await orchestrator.initialize(SourceConfig.from_settings()):
        ...     orchestrator.start_streaming(print)
        >>> result = await orchestrator.detect_once(frame)
        >>> orchestrator.cleanup()
    """

    def __init__(
        self,
        matrix_decoder: Optional[MatrixCodeDecoder] = None,
        linear_reader: Optional[LinearBarcodeReader] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._matrix = matrix_decoder
        self._reader = linear_reader
        self._state = SessionState()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._init_future: Optional[asyncio.Future] = None
        self._device_acquired = False
        self._subscription: Optional[_Subscription] = None

    @property
    def state(self) -> ScannerState:
        return self._state.value

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def initialize(self, source: Optional[SourceConfig] = None) -> bool:
        """
        Acquire the frame source. Idempotent; never raises.

        Args:
            source: Source descriptor (defaults to the configured camera)

        Returns:
            True when the session is READY (or already READY/STREAMING)
        """
        if self._state.value.is_ready:
            return True

        if self._state.value == ScannerState.INITIALIZING and self._init_future is not None:
            return await asyncio.shield(self._init_future)

        source = source or SourceConfig.from_settings()
        self._loop = asyncio.get_running_loop()

        if source.kind != SourceKind.CAMERA:
            self._state.transition(ScannerState.READY)
            logger.info(f"🚀 Detection session ready ({source.kind} source)")
            return True

        self._state.transition(ScannerState.INITIALIZING)
        attempt = self._loop.create_future()
        self._init_future = attempt

        ok = await self._acquire_camera(source)

        if self._init_future is not attempt:
            # cleanup() ran while the device was being acquired; a newer
            # attempt may own the reader and the session state now
            if ok and self._init_future is None:
                self._release_reader()
            logger.info("🧹 Camera initialization superseded by cleanup")
            return False

        self._init_future = None
        if ok:
            self._device_acquired = True
            self._state.transition(ScannerState.READY)
            logger.info("✅ Camera detection session ready")
        else:
            self._release_reader()
            self._state.transition(ScannerState.UNINITIALIZED)

        attempt.set_result(ok)
        return ok

    async def _acquire_camera(self, source: SourceConfig) -> bool:
        try:
            reader = self._linear_reader()
        except Exception as e:
            logger.error(f"❌ Linear decoder unavailable: {e}")
            return False

        future, settle = _callback_future(self._loop)
        try:
            reader.init(self._streaming_config(source), settle)
            (error,) = await asyncio.wait_for(
                future, timeout=self._settings.device_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.error(f"❌ Camera {source.target} did not respond")
            return False
        except Exception as e:
            logger.error(f"❌ Camera initialization error: {e}")
            return False

        if error is not None:
            logger.error(f"❌ Camera initialization error: {error}")
            return False
        return True

    def start_streaming(self, on_detected: DetectionCallback) -> None:
        """
        Begin continuous detection, delivering every decode to on_detected.

        A second call while streaming replaces the previous listener.
        Outside READY/STREAMING, on_detected receives one failed result.
        """
        if not self._state.value.is_ready or not self._device_acquired:
            on_detected(DetectionResult.failed(CAMERA_NOT_INITIALIZED))
            return

        if self._subscription is not None:
            self._reader.off_detected(self._subscription.handler)
            logger.info("🔁 Replacing streaming listener")

        subscription = _Subscription(on_detected)
        loop = self._loop

        def handler(code: LinearCode) -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(self._deliver, subscription, code)

        subscription.handler = handler
        self._subscription = subscription
        self._reader.on_detected(handler)

        if self._state.value == ScannerState.READY:
            try:
                self._reader.start()
            except Exception as e:
                logger.error(f"❌ Could not start streaming: {e}")
                self._reader.off_detected(handler)
                self._subscription = None
                message = e.message if isinstance(e, DetectionError) else CAMERA_NOT_INITIALIZED
                on_detected(DetectionResult.failed(message))
                return
            self._state.transition(ScannerState.STREAMING)
            logger.info("▶️ Streaming detection started")

    def _deliver(self, subscription: _Subscription, code: LinearCode) -> None:
        if subscription is not self._subscription:
            return

        logger.info(f"📱 Barcode detected: {code.code} ({code.format})")
        try:
            subscription.on_detected(DetectionResult.found(code.code, code.format))
        except Exception:
            logger.exception("Detection callback failed")

    def stop_streaming(self) -> None:
        """Stop continuous detection. No-op unless streaming."""
        if self._state.value != ScannerState.STREAMING:
            return

        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            self._reader.off_detected(subscription.handler)
        self._reader.stop()
        self._state.transition(ScannerState.READY)
        logger.info("⏹️ Streaming detection stopped")

    def cleanup(self) -> None:
        """Stop streaming, release the device, return to UNINITIALIZED."""
        self.stop_streaming()

        attempt, self._init_future = self._init_future, None
        if attempt is not None and not attempt.done():
            attempt.set_result(False)

        if self._device_acquired or self._state.value == ScannerState.INITIALIZING:
            self._release_reader()
            self._device_acquired = False

        if self._state.value != ScannerState.UNINITIALIZED:
            self._state.reset()
            logger.info("🧹 Detection session cleaned up")

    def _release_reader(self) -> None:
        if self._reader is None:
            return
        try:
            self._reader.release()
        except Exception as e:
            logger.error(f"Reader release error: {e}")

    # =========================================================================
    # ONE-SHOT DETECTION
    # =========================================================================

    async def detect_once(self, frame: Union[FrameBuffer, EncodedImage]) -> DetectionResult:
        """
        Run the single-shot fallback pipeline on one frame. Never raises.

        Matrix decoder first; the linear decoder only runs when it finds
        nothing.
        """
        if isinstance(frame, EncodedImage):
            try:
                frame = decode_image(frame.data)
            except DetectionError as e:
                return DetectionResult.failed(e.message)

        for step in DETECTION_POLICY[DetectionMode.SINGLE_SHOT]:
            try:
                result = await self._run_step(step, frame)
            except DetectionError as e:
                logger.warning(f"{step.decoder.value} decoder: {e.message}")
                return DetectionResult.failed(e.message)
            except Exception as e:
                logger.error(f"Error detecting barcode from image: {e}")
                return DetectionResult.failed(FAILED_TO_PROCESS)

            if result is not None:
                logger.info(f"✅ Barcode detected: {result.barcode} ({result.format})")
                return result

        logger.debug("❌ No barcode detected in image")
        return DetectionResult.failed(NO_BARCODE_DETECTED)

    async def detect_from_file(self, data: bytes, filename: Optional[str] = None) -> DetectionResult:
        """Upload modality: decode an image file, then detect_once."""
        logger.debug(f"📁 Detecting barcode from image file: {filename or '<upload>'}")
        return await self.detect_once(EncodedImage(data=data, filename=filename))

    async def detect_from_snapshot(self, snapshot: Union[np.ndarray, str]) -> DetectionResult:
        """Captured-frame modality: pixel array or data URL, then detect_once."""
        logger.debug("📷 Detecting barcode from captured frame")
        try:
            if isinstance(snapshot, str):
                frame = decode_data_url(snapshot)
            else:
                frame = FrameBuffer.from_array(snapshot)
        except DetectionError as e:
            return DetectionResult.failed(e.message)
        return await self.detect_once(frame)

    async def _run_step(self, step: DecodeStep, frame: FrameBuffer) -> Optional[DetectionResult]:
        """
        Run one decode step.

        decode_timeout_seconds bounds the wait for the linear callback. Single
        decodes run inline (num_workers=0), so the callback has usually fired
        before the wait begins; the bound matters for readers that answer
        from another thread.
        """
        if step.decoder == DecoderKind.MATRIX:
            payload = self._matrix_decoder().decode(frame)
            if payload:
                return DetectionResult.found(payload, Symbology.QR_CODE)
            return None

        image = encode_png(frame)
        reader = self._linear_reader()
        loop = asyncio.get_running_loop()
        future, settle = _callback_future(loop)

        reader.decode_single(self._single_config(step), image, settle)
        try:
            code, error = await asyncio.wait_for(
                future, timeout=self._settings.decode_timeout_seconds
            )
        except asyncio.TimeoutError:
            raise DecodeFailure(DECODER_TIMED_OUT)

        if error is not None:
            if isinstance(error, DetectionError):
                raise error
            logger.error(f"Linear decoder error: {error}")
            raise DecodeFailure(FAILED_TO_PROCESS)

        if code is None:
            return None
        return DetectionResult.found(code.code, code.format)

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def _streaming_config(self, source: SourceConfig) -> LinearReaderConfig:
        settings = self._settings
        return LinearReaderConfig(
            readers=list(symbologies_for(DetectionMode.STREAMING, DecoderKind.LINEAR)),
            locate=True,
            half_sample=settings.locator_half_sample,
            patch_size=settings.locator_patch_size,
            num_workers=settings.scanner_workers,
            frequency=settings.scan_frequency,
            source=source,
        )

    def _single_config(self, step: DecodeStep) -> LinearReaderConfig:
        return LinearReaderConfig(
            readers=list(step.symbologies),
            locate=True,
            half_sample=self._settings.locator_half_sample,
            patch_size=self._settings.locator_patch_size,
            num_workers=0,
            input_size=self._settings.single_input_size,
        )

    def _matrix_decoder(self) -> MatrixCodeDecoder:
        if self._matrix is None:
            self._matrix = MatrixCodeDecoder()
        return self._matrix

    def _linear_reader(self) -> LinearBarcodeReader:
        if self._reader is None:
            self._reader = LinearBarcodeReader()
        return self._reader

    def __repr__(self) -> str:
        return f"DetectionOrchestrator(state={self.state.value!r})"
