from __future__ import annotations

import os
from decimal import Decimal

os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from stockflow.core.config import settings  # noqa: E402
from stockflow.core.security import create_access_token  # noqa: E402
from stockflow.db import session as db_session  # noqa: E402
from stockflow.db.base_class import Base  # noqa: E402
from stockflow.db.session import SessionLocal  # noqa: E402
from stockflow.models import inventory_models  # noqa: E402,F401
from stockflow.models.inventory_schemas import (  # noqa: E402
    CategoryCreate,
    ProductCreate,
    StockMovementRequest,
)
from stockflow.services.inventory import build_inventory_service  # noqa: E402

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")

CHANNEL_ID = 1
ACTOR_ID = 7


test_engine = create_engine(
    TEST_DATABASE_URL,
    future=True,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Ensure application code uses the test engine
settings.DATABASE_URL = TEST_DATABASE_URL  # type: ignore[attr-defined]
settings.ENV = "test"  # type: ignore[attr-defined]
settings.AUDIT_LOG_FILE = None  # type: ignore[attr-defined]
db_session.engine = test_engine  # type: ignore[assignment]
SessionLocal.configure(bind=test_engine)


@pytest.fixture(autouse=True)
def _reset_database_state():
    """Ensure each test sees a fresh database schema."""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield


@pytest.fixture
def db_session():
    """Provide a database session for tests."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def service(db_session):
    """InventoryService for the default test channel."""
    return build_inventory_service(db_session, CHANNEL_ID, ACTOR_ID)


@pytest.fixture
def make_product(service):
    """Create a product with inventory and optionally seed stock through an IN movement."""
    counter = {"n": 0}
    category = {}

    def _make(quantity: int = 0, threshold: int = 0, name: str | None = None):
        counter["n"] += 1
        if "obj" not in category:
            category["obj"] = service.create_category(CategoryCreate(name="General"))
        product = service.create_product(
            ProductCreate(
                sku=f"SKU-{counter['n']:03d}",
                name=name or f"Product {counter['n']}",
                category_id=category["obj"].id,
                cost_price=Decimal("10.00"),
                selling_price=Decimal("15.00"),
                low_stock_threshold=threshold,
            )
        )
        if quantity:
            service.apply_movement(
                StockMovementRequest(
                    product_id=product.id,
                    change_type="IN",
                    quantity=quantity,
                    reason="Opening stock",
                )
            )
        return product

    return _make


@pytest.fixture
def client():
    """Provide a FastAPI TestClient bound to the application."""
    from stockflow.api.main import app

    return TestClient(app)


def _auth_headers(channel_id: int = CHANNEL_ID, actor_id: int = ACTOR_ID) -> dict[str, str]:
    token = create_access_token(str(actor_id), channel_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    return _auth_headers()


@pytest.fixture
def headers_for():
    """Factory for bearer headers of another channel or actor."""
    return _auth_headers
