"""
==============================================================================
Scanner WebSocket Module
==============================================================================

Live barcode scanning via WebSocket connection.

Each connection owns one DetectionOrchestrator. Streaming detections
arrive on the event loop through the orchestrator's callback and are
queued to a single sender task, so every outgoing message keeps the
order it was produced in.

Protocol:
---------
Client → server:
    {"type": "start", "device"?: int, "width"?: int, "height"?: int, "record"?: bool}
    {"type": "frame", "frame": "<base64 or data URL>"}
    {"type": "stop"}
    {"type": "close"}

Server → client:
    {"type": "started"} / {"type": "stopped"}
    {"type": "detection", "result": DetectionResult, "item"?: ScannedItem}
    {"type": "result", "result": DetectionResult, "item"?: ScannedItem}
    {"type": "error", "code": "...", "message": "..."}

==============================================================================
"""

import asyncio
import contextlib
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from inventory_scanner.config import get_settings
from inventory_scanner.core.dependencies import get_inventory_service, get_orchestrator
from inventory_scanner.core.exceptions import AppException
from inventory_scanner.db.models import ScanSource
from inventory_scanner.detection import (
    DetectionOrchestrator,
    DetectionResult,
    SourceConfig,
    SourceKind,
)
from inventory_scanner.services import InventoryService


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter()

SEND_FLUSH_TIMEOUT = 1.0


class ScannerWebSocketHandler:
    """
    Handler for live scanning WebSocket connections.

    Manages the lifecycle of a scanning session:
    - Camera initialization and streaming
    - One-shot frame detection
    - Optional recording of detections as scanned items
    - Cleanup on close or disconnect
    """

    def __init__(
        self,
        websocket: WebSocket,
        orchestrator: DetectionOrchestrator,
        service: InventoryService,
    ):
        self._websocket = websocket
        self._orchestrator = orchestrator
        self._service = service
        self._outbox: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue()
        self._record = False

    # =========================================================================
    # OUTGOING MESSAGES
    # =========================================================================

    def send(self, message: Dict[str, Any]) -> None:
        """Queue a message for the sender task."""
        self._outbox.put_nowait(message)

    def send_error(self, message: str, code: str = "ERROR") -> None:
        self.send({"type": "error", "code": code, "message": message})

    async def _sender(self) -> None:
        while True:
            message = await self._outbox.get()
            try:
                await self._websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"Sender stopped: {e}")
                return
            finally:
                self._outbox.task_done()

    def _result_message(
        self,
        kind: str,
        result: DetectionResult,
        source: ScanSource,
    ) -> Dict[str, Any]:
        message: Dict[str, Any] = {"type": kind, "result": result.model_dump()}
        if self._record and result.success:
            try:
                item = self._service.record_scan(result.barcode, source=source, format=result.format)
                message["item"] = item.to_dict()
            except AppException as e:
                logger.warning(f"Could not record {result.barcode}: {e.message}")
        return message

    def _on_detected(self, result: DetectionResult) -> None:
        self.send(self._result_message("detection", result, ScanSource.CAMERA))

    # =========================================================================
    # INCOMING MESSAGES
    # =========================================================================

    async def handle_start(self, data: dict) -> None:
        """Initialize the camera and begin streaming detection."""
        settings = get_settings()
        try:
            source = SourceConfig(
                kind=SourceKind.CAMERA,
                target=data.get("device", settings.camera_index),
                width=data.get("width", settings.camera_width),
                height=data.get("height", settings.camera_height),
                facing_mode=settings.camera_facing,
            )
        except ValueError as e:
            self.send_error(f"Invalid start message: {e}", "INVALID_MESSAGE")
            return

        self._record = bool(data.get("record", False))

        if not await self._orchestrator.initialize(source):
            self.send_error("Could not access camera", "DEVICE_UNAVAILABLE")
            return

        self.send({"type": "started"})
        self._orchestrator.start_streaming(self._on_detected)

    async def handle_frame(self, data: dict) -> None:
        """Run one-shot detection on a client-supplied frame."""
        frame = data.get("frame")
        if not isinstance(frame, str) or not frame:
            self.send_error("Frame data is required", "INVALID_MESSAGE")
            return

        result = await self._orchestrator.detect_from_snapshot(frame)
        self.send(self._result_message("result", result, ScanSource.CAPTURE))

    def handle_stop(self) -> None:
        self._orchestrator.stop_streaming()
        self.send({"type": "stopped"})

    # =========================================================================
    # MAIN LOOP
    # =========================================================================

    async def run(self) -> None:
        """Main handler loop."""
        await self._websocket.accept()
        logger.info("📱 Scanner WebSocket connected")

        sender = asyncio.create_task(self._sender())
        connected = True
        try:
            while True:
                try:
                    data = await self._websocket.receive_json()
                except ValueError:
                    self.send_error("Message must be JSON", "INVALID_MESSAGE")
                    continue

                msg_type = data.get("type") if isinstance(data, dict) else None

                if msg_type == "start":
                    await self.handle_start(data)
                elif msg_type == "frame":
                    await self.handle_frame(data)
                elif msg_type == "stop":
                    self.handle_stop()
                elif msg_type == "close":
                    logger.info("🛑 Client requested close")
                    break
                else:
                    self.send_error(f"Unknown message type: {msg_type}", "UNKNOWN_MESSAGE")

        except WebSocketDisconnect:
            connected = False
            logger.info("📱 Client disconnected")
        except Exception as e:
            logger.exception(f"WebSocket error: {e}")
            self.send_error(str(e))
        finally:
            self._orchestrator.cleanup()
            await self._stop_sender(sender, flush=connected)
            if connected:
                await self._close()
            logger.info("✅ Scanner WebSocket closed")

    async def _stop_sender(self, sender: "asyncio.Task[None]", flush: bool) -> None:
        if flush and not sender.done():
            try:
                await asyncio.wait_for(self._outbox.join(), timeout=SEND_FLUSH_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("⚠️ Dropped unsent WebSocket messages")
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender

    async def _close(self) -> None:
        try:
            await self._websocket.close()
        except RuntimeError as e:
            logger.debug(f"WebSocket already closed: {e}")


@router.websocket("/ws/scan")
async def websocket_scan(
    websocket: WebSocket,
    orchestrator: DetectionOrchestrator = Depends(get_orchestrator),
    service: InventoryService = Depends(get_inventory_service),
):
    """Live barcode scanning via WebSocket."""
    handler = ScannerWebSocketHandler(websocket, orchestrator, service)
    await handler.run()
