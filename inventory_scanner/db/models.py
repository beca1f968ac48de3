"""
==============================================================================
SQLAlchemy ORM Models Module
==============================================================================

ORM models for recorded scans.

Database Schema:
---------------

    ┌─────────────────────────────────────────────────────────────────┐
    │                        scanned_items                             │
    ├─────────────────────────────────────────────────────────────────┤
    │ id (INTEGER, PK, AUTO INCREMENT)                                │
    │ barcode (VARCHAR, NOT NULL, INDEXED)                            │
    │ name (VARCHAR, NOT NULL)                                        │
    │ price (FLOAT, DEFAULT 0.0)                                      │
    │ format (VARCHAR, NULLABLE)                                      │
    │ source (ENUM: manual, upload, capture, camera)                  │
    │ timestamp (DATETIME, DEFAULT now)                               │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, Enum, Float, Integer, String

from inventory_scanner.db.database import Base


# =============================================================================
# ENUMS
# =============================================================================

class ScanSource(str, enum.Enum):
    """
    Where a recorded barcode came from.

    - MANUAL: typed in by the user
    - UPLOAD: decoded from an uploaded image file
    - CAPTURE: decoded from a camera snapshot (data URL)
    - CAMERA: pushed from a live scanning session
    """

    MANUAL = "manual"
    UPLOAD = "upload"
    CAPTURE = "capture"
    CAMERA = "camera"

    def __str__(self) -> str:
        return self.value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# MODELS
# =============================================================================

class ScannedItem(Base):
    """
    A single recorded scan.

    Attributes:
        id: Auto-incrementing primary key
        barcode: Decoded (or typed) barcode payload
        name: Product name resolved from the catalog
        price: Product price resolved from the catalog
        format: Symbology reported by the decoder, if any
        source: ScanSource the barcode came from
        timestamp: When the scan was recorded (UTC)
    """

    __tablename__ = "scanned_items"

    id: int = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Auto-incrementing item ID"
    )

    barcode: str = Column(
        String(255),
        nullable=False,
        index=True,
        doc="Barcode payload"
    )

    name: str = Column(
        String(255),
        nullable=False,
        doc="Product name"
    )

    price: float = Column(
        Float,
        default=0.0,
        nullable=False,
        doc="Product price"
    )

    format: Optional[str] = Column(
        String(32),
        nullable=True,
        doc="Barcode symbology"
    )

    source: ScanSource = Column(
        Enum(ScanSource, values_callable=lambda e: [m.value for m in e]),
        default=ScanSource.MANUAL,
        nullable=False,
        doc="Scan source"
    )

    timestamp: datetime = Column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
        index=True,
        doc="Scan time"
    )

    # =========================================================================
    # METHODS
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API responses."""
        return {
            "id": self.id,
            "barcode": self.barcode,
            "name": self.name,
            "price": self.price,
            "format": self.format,
            "source": str(self.source) if self.source else None,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self) -> str:
        return (
            f"<ScannedItem(id={self.id}, barcode={self.barcode!r}, "
            f"source={self.source})>"
        )
