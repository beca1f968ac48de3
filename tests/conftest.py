"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides test database, client, image and fake decoder fixtures.

The fake decoders stand in for OpenCV's QR detector and the ZBar-backed
linear reader so orchestrator behaviour can be tested without a camera.

==============================================================================
"""

import os
import threading
from pathlib import Path
from typing import Callable, Generator, List, Optional

import cv2
import numpy as np
import pytest

PRODUCTS_FILE = Path(__file__).resolve().parent.parent / "data" / "products.json"

# Must be set before settings are first loaded
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PRODUCTS_FILE", str(PRODUCTS_FILE))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from inventory_scanner.catalog import ProductCatalog, init_catalog
from inventory_scanner.config import Settings
from inventory_scanner.core.dependencies import get_orchestrator
from inventory_scanner.db.database import Base, get_db
from inventory_scanner.detection import (
    DetectionOrchestrator,
    FrameBuffer,
    LinearCode,
    LinearReaderConfig,
)
from inventory_scanner.main import app


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

# In-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def catalog() -> ProductCatalog:
    """Global catalog loaded from data/products.json."""
    return init_catalog(PRODUCTS_FILE)


@pytest.fixture(scope="function")
def client(db: Session, catalog: ProductCatalog) -> Generator[TestClient, None, None]:
    """Create test client with database override."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def fake_client(client: TestClient, orchestrator: DetectionOrchestrator) -> TestClient:
    """Test client whose detection sessions use the fake decoders."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    return client


# ============================================================================
# FAKE DECODERS
# ============================================================================

class FakeMatrixDecoder:
    """QR decoder returning a fixed payload (or raising)."""

    def __init__(self) -> None:
        self.payload: Optional[str] = None
        self.error: Optional[Exception] = None
        self.frames: List[FrameBuffer] = []

    def decode(self, frame: FrameBuffer) -> Optional[str]:
        self.frames.append(frame)
        if self.error is not None:
            raise self.error
        return self.payload


class FakeLinearReader:
    """
    In-memory LinearBarcodeReader.

    init() settles after init_delay seconds on a timer thread (or inline
    when the delay is 0); emit() pushes codes to registered handlers from
    a background thread, like the real capture loop.
    """

    def __init__(self) -> None:
        self.init_error: Optional[Exception] = None
        self.init_delay = 0.0
        self.hang_init = False
        self.start_error: Optional[Exception] = None

        self.single_code: Optional[LinearCode] = None
        self.single_error: Optional[Exception] = None
        self.hang_decode = False

        self.init_calls = 0
        self.start_calls = 0
        self.stop_calls = 0
        self.release_calls = 0
        self.single_configs: List[LinearReaderConfig] = []
        self.handlers: List[Callable[[LinearCode], None]] = []

    def init(self, config: LinearReaderConfig, callback) -> None:
        self.init_calls += 1
        if self.hang_init:
            return
        if self.init_delay:
            threading.Timer(self.init_delay, callback, args=(self.init_error,)).start()
        else:
            callback(self.init_error)

    def start(self) -> None:
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error

    def stop(self) -> None:
        self.stop_calls += 1

    def release(self) -> None:
        self.release_calls += 1
        self.handlers.clear()

    def on_detected(self, handler) -> None:
        self.handlers.append(handler)

    def off_detected(self, handler=None) -> None:
        if handler is None:
            self.handlers.clear()
        elif handler in self.handlers:
            self.handlers.remove(handler)

    @property
    def handler_count(self) -> int:
        return len(self.handlers)

    def decode_single(self, config: LinearReaderConfig, image: bytes, callback) -> None:
        self.single_configs.append(config)
        if self.hang_decode:
            return
        callback(self.single_code, self.single_error)

    def emit(self, *codes: LinearCode) -> None:
        """Deliver codes to every handler from one background thread."""
        def _push() -> None:
            for code in codes:
                for handler in list(self.handlers):
                    handler(code)

        thread = threading.Thread(target=_push)
        thread.start()
        thread.join()


@pytest.fixture
def matrix_decoder() -> FakeMatrixDecoder:
    return FakeMatrixDecoder()


@pytest.fixture
def linear_reader() -> FakeLinearReader:
    return FakeLinearReader()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with short timeouts."""
    return Settings(
        _env_file=None,
        device_timeout_seconds=0.5,
        decode_timeout_seconds=0.5,
    )


@pytest.fixture
def orchestrator(
    matrix_decoder: FakeMatrixDecoder,
    linear_reader: FakeLinearReader,
    test_settings: Settings,
) -> DetectionOrchestrator:
    return DetectionOrchestrator(
        matrix_decoder=matrix_decoder,
        linear_reader=linear_reader,
        settings=test_settings,
    )


# ============================================================================
# IMAGE FIXTURES
# ============================================================================

@pytest.fixture
def blank_frame() -> FrameBuffer:
    """White 160x120 frame with nothing on it."""
    return FrameBuffer.from_array(np.full((120, 160, 3), 255, np.uint8))


@pytest.fixture
def blank_png(blank_frame: FrameBuffer) -> bytes:
    ok, encoded = cv2.imencode(".png", blank_frame.data)
    assert ok
    return encoded.tobytes()
