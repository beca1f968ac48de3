"""
==============================================================================
Database Initialization Module
==============================================================================

Table creation and verification at application startup.

Usage:
------
    from inventory_scanner.db import init_db
    init_db()

==============================================================================
"""

from __future__ import annotations

import logging
from typing import Optional

from inventory_scanner.db.database import DatabaseManager
from inventory_scanner.db.models import ScannedItem


# Module logger
logger = logging.getLogger(__name__)


class DatabaseInitializer:
    """
    Database initialization manager.

    Example:
        >>> initializer = DatabaseInitializer()
        >>> initializer.initialize()
    """

    def __init__(self, db_manager: Optional[DatabaseManager] = None) -> None:
        self._db_manager = db_manager or DatabaseManager()

    def create_tables(self) -> None:
        logger.info("Creating database tables...")
        self._db_manager.create_tables()
        logger.info("✅ Database tables created successfully")

    def verify_tables(self) -> bool:
        """
        Verify that the scanned items table is queryable.

        Returns:
            True if the table exists, False otherwise
        """
        try:
            with self._db_manager.session_scope() as session:
                session.query(ScannedItem).first()
            logger.debug("Database tables verified successfully")
            return True
        except Exception as e:
            logger.error(f"Table verification failed: {e}")
            return False

    def initialize(self) -> bool:
        """
        Create tables, then verify the connection and the schema.

        Returns:
            True when the database is ready for scans
        """
        logger.info("=" * 60)
        logger.info("Initializing database...")
        logger.info("=" * 60)

        self.create_tables()

        if not self._db_manager.verify_connection():
            logger.warning("⚠️ Database connection check failed")
            return False
        logger.info("✅ Database connection verified")

        if not self.verify_tables():
            logger.warning("⚠️ Scanned items table is not queryable")
            return False
        return True


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def init_db() -> bool:
    """Initialize the database at application startup."""
    return DatabaseInitializer().initialize()
