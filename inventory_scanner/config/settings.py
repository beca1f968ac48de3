"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management for the inventory scanner using Pydantic Settings.

A single cached Settings instance is shared by the API, the WebSocket
handlers and every detection session created by them.

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Setting Groups:
--------------
- Application / server
- Database and product catalog
- Camera source (device index, resolution, facing preference)
- Linear reader (locator, workers, scan frequency, single-shot size)
- Timeouts for device acquisition and single-shot decoding

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


PATCH_SIZES = ("x-small", "small", "medium", "large", "x-large")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        database_url: SQLAlchemy database connection string
        products_file: Path to product catalog JSON
        cors_origins: Allowed CORS origins (JSON array string)
        camera_index: Video capture device index
        camera_width: Requested capture width in pixels
        camera_height: Requested capture height in pixels
        camera_facing: Facing preference ("environment" or "user")
        locator_patch_size: Locator patch size for the linear reader
        locator_half_sample: Try a half-resolution pass before full resolution
        scanner_workers: Decode worker threads for live streaming
        scan_frequency: Maximum decoded frames per second while streaming
        single_input_size: Longest image side for single-shot decoding
        device_timeout_seconds: Upper bound on camera acquisition
        decode_timeout_seconds: Wait limit for a single-shot linear decode callback
        max_upload_bytes: Largest accepted image upload

    Example:
        >>> settings = Settings()
        >>> settings.camera_width, settings.camera_height
        (640, 480)
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Inventory Scanner API",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Server bind address"
    )

    port: int = Field(
        default=5000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # DATABASE / CATALOG SETTINGS
    # =========================================================================
    database_url: str = Field(
        default="sqlite:///./storage/db/inventory.db",
        description="SQLAlchemy database connection string"
    )

    products_file: str = Field(
        default="data/products.json",
        description="Path to product catalog JSON"
    )

    # =========================================================================
    # CORS SETTINGS
    # =========================================================================
    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # CAMERA SOURCE SETTINGS
    # =========================================================================
    camera_index: int = Field(
        default=0,
        ge=0,
        description="Video capture device index"
    )

    camera_width: int = Field(
        default=640,
        ge=64,
        le=4096,
        description="Requested capture width"
    )

    camera_height: int = Field(
        default=480,
        ge=64,
        le=4096,
        description="Requested capture height"
    )

    camera_facing: str = Field(
        default="environment",
        description="Facing preference: environment (back) or user (front)"
    )

    # =========================================================================
    # LINEAR READER SETTINGS
    # =========================================================================
    locator_patch_size: str = Field(
        default="medium",
        description="Locator patch size: x-small, small, medium, large, x-large"
    )

    locator_half_sample: bool = Field(
        default=True,
        description="Decode a half-resolution copy before the full frame"
    )

    scanner_workers: int = Field(
        default=2,
        ge=0,
        le=16,
        description="Decode worker threads while streaming (0 = inline)"
    )

    scan_frequency: float = Field(
        default=10.0,
        gt=0,
        le=60,
        description="Maximum decoded frames per second while streaming"
    )

    single_input_size: int = Field(
        default=800,
        ge=100,
        le=4096,
        description="Longest image side for single-shot decoding"
    )

    # =========================================================================
    # TIMEOUTS / LIMITS
    # =========================================================================
    device_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound on camera acquisition"
    )

    decode_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Wait limit for a single-shot linear decode callback"
    )

    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Largest accepted image upload in bytes"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """Normalize the environment name, falling back to development."""
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("camera_facing")
    @classmethod
    def validate_camera_facing(cls, value: str) -> str:
        """
        Validate the facing preference.

        Raises:
            ValueError: If the value is neither environment nor user
        """
        normalized = value.lower().strip()
        if normalized not in {"environment", "user"}:
            raise ValueError(
                f"Unsupported camera facing: {value}. "
                "Supported: environment, user"
            )
        return normalized

    @field_validator("locator_patch_size")
    @classmethod
    def validate_patch_size(cls, value: str) -> str:
        """
        Validate locator patch size.

        Raises:
            ValueError: If patch size is not recognized
        """
        normalized = value.lower().strip()
        if normalized not in PATCH_SIZES:
            raise ValueError(
                f"Unsupported patch size: {value}. "
                f"Supported: {', '.join(PATCH_SIZES)}"
            )
        return normalized

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def products_path(self) -> Path:
        """Products file as a Path."""
        return Path(self.products_file)

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================
    def get_database_path(self) -> Optional[Path]:
        """
        Extract database file path for SQLite databases.

        Returns:
            Path to database file, or None for non-SQLite or in-memory databases
        """
        if self.database_url.startswith("sqlite:///"):
            db_path = self.database_url.replace("sqlite:///", "")
            if db_path.startswith("./"):
                db_path = db_path[2:]
            return Path(db_path) if db_path else None
        return None

    def ensure_directories(self) -> None:
        """Create the SQLite database directory if needed."""
        db_path = self.get_database_path()
        if db_path:
            db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("Required directories created/verified")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"debug={self.debug}, "
            f"camera_index={self.camera_index})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance (singleton pattern).

    Returns:
        Global Settings instance
    """
    settings = Settings()
    settings.ensure_directories()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
