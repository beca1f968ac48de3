"""
==============================================================================
Catalog and Inventory Service Tests
==============================================================================

Tests for product lookup, scanned-item recording and database startup.

==============================================================================
"""

import json
from contextlib import contextmanager

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from inventory_scanner.catalog import ProductCatalog
from inventory_scanner.core.exceptions import AppException
from inventory_scanner.db import Base, DatabaseInitializer
from inventory_scanner.db.models import ScanSource
from inventory_scanner.services import UNKNOWN_ITEM_NAME, InventoryService


class TestProductCatalog:
    """Tests for catalog loading and lookup."""

    def test_loads_all_categories(self, catalog: ProductCatalog):
        assert len(catalog.products) == 5
        assert catalog.find_by_barcode("ITEM-42").category == "drinks"

    def test_exact_match(self, catalog: ProductCatalog):
        assert catalog.find_by_scanned_barcode("96385074").name == "Salted Crackers"

    def test_wildcard_prefers_longest(self, tmp_path):
        """Test the longest embedded barcode wins a wildcard match."""
        path = tmp_path / "products.json"
        path.write_text(json.dumps({
            "misc": [
                {"barcode": "1234", "name": "Short", "price": 1},
                {"barcode": "123456", "name": "Long", "price": 2},
            ]
        }))

        catalog = ProductCatalog(path)

        assert catalog.find_by_scanned_barcode("00123456789").name == "Long"

    def test_no_match(self, catalog: ProductCatalog):
        assert catalog.find_by_scanned_barcode("NOPE") is None

    def test_skips_invalid_entries(self, tmp_path):
        """Test malformed categories and items are ignored."""
        path = tmp_path / "products.json"
        path.write_text(json.dumps({
            "broken": "not a list",
            "misc": [{"name": "No barcode"}, {"barcode": "1", "name": "Ok"}],
        }))

        catalog = ProductCatalog(path)

        assert [p.barcode for p in catalog.products] == ["1"]
        assert catalog.products[0].price == 0.0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ProductCatalog(tmp_path / "missing.json")


class TestInventoryService:
    """Tests for InventoryService."""

    def test_record_known(self, db: Session, catalog: ProductCatalog):
        service = InventoryService(db, catalog)

        item = service.record_scan("ITEM-42", source=ScanSource.UPLOAD, format="QR_CODE")

        assert item.id is not None
        assert item.name == "Cold Brew Coffee"
        assert item.price == 3.5
        assert item.source == ScanSource.UPLOAD
        assert item.to_dict()["format"] == "QR_CODE"

    def test_record_unknown(self, db: Session, catalog: ProductCatalog):
        item = InventoryService(db, catalog).record_scan("UNLISTED")

        assert item.name == UNKNOWN_ITEM_NAME
        assert item.price == 0.0
        assert item.source == ScanSource.MANUAL

    def test_record_empty(self, db: Session, catalog: ProductCatalog):
        with pytest.raises(AppException) as exc_info:
            InventoryService(db, catalog).record_scan("  ")
        assert exc_info.value.code == "INVALID_BARCODE"

    def test_list_and_clear(self, db: Session, catalog: ProductCatalog):
        service = InventoryService(db, catalog)
        service.record_scan("A")
        service.record_scan("B")

        assert [i.barcode for i in service.list_items()] == ["B", "A"]
        assert service.clear_items() == 2
        assert service.list_items() == []


class InMemoryDatabase:
    """DatabaseManager stand-in over a private in-memory engine."""

    def __init__(self, with_tables: bool = True) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        self.with_tables = with_tables

    def create_tables(self) -> None:
        if self.with_tables:
            Base.metadata.create_all(bind=self.engine)

    def verify_connection(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    @contextmanager
    def session_scope(self):
        session = Session(bind=self.engine)
        try:
            yield session
        finally:
            session.close()


class TestDatabaseInitializer:
    """Tests for startup table creation and verification."""

    def test_initialize(self):
        """Test initialize creates a queryable scanned items table."""
        initializer = DatabaseInitializer(InMemoryDatabase())

        assert initializer.initialize() is True
        assert initializer.verify_tables() is True

    def test_missing_tables(self):
        """Test initialize reports a schema that could not be created."""
        initializer = DatabaseInitializer(InMemoryDatabase(with_tables=False))

        assert initializer.verify_tables() is False
        assert initializer.initialize() is False
