"""
==============================================================================
Database Package
==============================================================================

SQLAlchemy database infrastructure and ORM models.

Architecture:
------------
├── database.py   - DatabaseManager class, session factory
├── models.py     - ScannedItem ORM model
└── init_db.py    - DatabaseInitializer for setup

==============================================================================
"""

from .database import Base, DatabaseManager, get_database_manager, get_db
from .models import ScannedItem, ScanSource
from .init_db import DatabaseInitializer, init_db

__all__ = [
    # Database management
    "Base",
    "DatabaseManager",
    "get_database_manager",
    "get_db",
    # Models
    "ScannedItem",
    "ScanSource",
    # Initialization
    "DatabaseInitializer",
    "init_db",
]
