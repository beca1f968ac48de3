"""
Application Exception Handling

Two families of errors live here:

- DetectionError and its subclasses, raised inside the detection package and
  collapsed into a failed DetectionResult at the orchestrator boundary.
- AppException, the single HTTP-facing exception with FastAPI integration.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# ============================================
# DETECTION ERRORS
# ============================================

class DetectionError(Exception):
    """
    Base class for detection failures.

    The message is the human-readable cause handed to consumers as
    DetectionResult.error.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class DeviceUnavailable(DetectionError):
    """Camera permission denied, no device, or backend init failure."""


class DecodeFailure(DetectionError):
    """No decoder found a code, or a decoder backend failed."""


class InputUnreadable(DetectionError):
    """An image file or snapshot could not be turned into pixels."""


class InvalidState(DetectionError):
    """Operation attempted outside its precondition state."""


# ============================================
# HTTP ERRORS
# ============================================

class AppException(Exception):
    """
    Unified application exception for API error scenarios.

    Usage:
        raise AppException("Barcode is required", "INVALID_BARCODE", 400)

    Error Codes:
        Scanning:
            - INVALID_BARCODE (400)
            - INVALID_IMAGE (400)
            - IMAGE_TOO_LARGE (413)
            - NO_BARCODE_DETECTED (422)

        General:
            - VALIDATION_ERROR (422)
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "INVALID_BARCODE")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": self.message,
            "code": self.code,
            "timestamp": self.timestamp,
        }

        if self.details:
            error_dict["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Convert AppException to the JSON error envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def invalid_barcode() -> AppException:
    """Create empty/invalid barcode exception."""
    return AppException("Barcode is required", "INVALID_BARCODE", 400)


def invalid_image(reason: str) -> AppException:
    """Create unusable image payload exception."""
    return AppException(reason, "INVALID_IMAGE", 400)


def image_too_large(size: int, limit: int) -> AppException:
    """Create upload size exception."""
    return AppException(
        f"Image is too large ({size} bytes, limit {limit})",
        "IMAGE_TOO_LARGE",
        413,
        {"size": size, "limit": limit}
    )


def no_barcode_detected(message: str) -> AppException:
    """Create failed detection exception carrying the detection error."""
    return AppException(message, "NO_BARCODE_DETECTED", 422)


def internal_error(message: str = "Internal server error") -> AppException:
    """Create internal server error exception."""
    return AppException(message, "INTERNAL_ERROR", 500)
