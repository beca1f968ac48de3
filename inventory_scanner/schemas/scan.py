"""
==============================================================================
Scan Schemas Module
==============================================================================

Request and response schemas for scanning and scanned-item operations.

==============================================================================
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from inventory_scanner.detection import DetectionResult


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class ScanRequest(BaseModel):
    """Manually entered barcode."""
    barcode: str = Field(default="", max_length=255)

    @field_validator("barcode")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()


class CameraScanRequest(BaseModel):
    """Camera snapshot as a data URL (or bare base64)."""
    model_config = ConfigDict(populate_by_name=True)

    image_data: str = Field(..., alias="imageData", min_length=1)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ScannedItemResponse(BaseModel):
    """Serialized scanned item."""
    id: int
    barcode: str
    name: str
    price: float
    format: Optional[str] = None
    source: str
    timestamp: Optional[str] = None


class ScanResponse(BaseModel):
    """Recorded scan, with the detection that produced it when image-based."""
    success: bool = Field(default=True)
    data: ScannedItemResponse
    detection: Optional[DetectionResult] = None


class ScannedItemListResponse(BaseModel):
    """All recorded scans, newest first."""
    success: bool = Field(default=True)
    data: List[ScannedItemResponse]
    total: int = Field(ge=0)


class ClearItemsResponse(BaseModel):
    """Result of clearing the scan history."""
    success: bool = Field(default=True)
    message: str
    deleted: int = Field(ge=0)
