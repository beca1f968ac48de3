"""
==============================================================================
Scan Endpoints
==============================================================================

Record barcodes typed in, decoded from an uploaded image, or decoded from
a camera snapshot.

Image-based endpoints run the single-shot detection pipeline (QR first,
then linear symbologies) and record the first barcode found.

==============================================================================
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from inventory_scanner.config import get_settings
from inventory_scanner.core import exceptions
from inventory_scanner.core.dependencies import get_inventory_service, get_orchestrator
from inventory_scanner.db.models import ScanSource
from inventory_scanner.detection import DetectionOrchestrator, DetectionResult
from inventory_scanner.schemas import (
    CameraScanRequest,
    ScannedItemResponse,
    ScanRequest,
    ScanResponse,
)
from inventory_scanner.services import InventoryService


router = APIRouter(tags=["Scan"])


class ScanController:
    """Controller for scan operations."""

    def __init__(self, service: InventoryService, orchestrator: Optional[DetectionOrchestrator] = None):
        self._service = service
        self._orchestrator = orchestrator

    def _record(
        self,
        barcode: str,
        source: ScanSource,
        detection: Optional[DetectionResult] = None,
    ) -> ScanResponse:
        item = self._service.record_scan(
            barcode,
            source=source,
            format=detection.format if detection else None,
        )
        return ScanResponse(
            data=ScannedItemResponse(**item.to_dict()),
            detection=detection,
        )

    def _require_success(self, result: DetectionResult) -> DetectionResult:
        if not result.success:
            raise exceptions.no_barcode_detected(result.error)
        return result

    def scan_barcode(self, request: ScanRequest) -> ScanResponse:
        """Record a manually entered barcode."""
        return self._record(request.barcode, ScanSource.MANUAL)

    async def scan_image(self, image: Optional[UploadFile]) -> ScanResponse:
        """Detect a barcode in an uploaded image file and record it."""
        if image is None:
            raise exceptions.invalid_image("No image provided")

        data = await image.read()
        limit = get_settings().max_upload_bytes
        if len(data) > limit:
            raise exceptions.image_too_large(len(data), limit)

        result = self._require_success(
            await self._orchestrator.detect_from_file(data, image.filename)
        )
        return self._record(result.barcode, ScanSource.UPLOAD, result)

    async def scan_camera(self, request: CameraScanRequest) -> ScanResponse:
        """Detect a barcode in a camera snapshot and record it."""
        result = self._require_success(
            await self._orchestrator.detect_from_snapshot(request.image_data)
        )
        return self._record(result.barcode, ScanSource.CAPTURE, result)


@router.post("/scan", response_model=ScanResponse)
async def scan_barcode(
    request: ScanRequest,
    service: InventoryService = Depends(get_inventory_service),
):
    """Record a barcode typed in by the user."""
    controller = ScanController(service)
    return controller.scan_barcode(request)


@router.post("/scan-image", response_model=ScanResponse)
async def scan_image(
    image: Optional[UploadFile] = File(None),
    service: InventoryService = Depends(get_inventory_service),
    orchestrator: DetectionOrchestrator = Depends(get_orchestrator),
):
    """
    Detect and record a barcode from an uploaded image.

    Returns 422 when no barcode could be detected.
    """
    controller = ScanController(service, orchestrator)
    return await controller.scan_image(image)


@router.post("/scan-camera", response_model=ScanResponse)
async def scan_camera(
    request: CameraScanRequest,
    service: InventoryService = Depends(get_inventory_service),
    orchestrator: DetectionOrchestrator = Depends(get_orchestrator),
):
    """Detect and record a barcode from a camera snapshot (data URL)."""
    controller = ScanController(service, orchestrator)
    return await controller.scan_camera(request)
