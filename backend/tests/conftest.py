"""
Pytest Configuration and Fixtures

Shared fixtures for all tests: an in-memory record store, the engine and
services built on it, one actor per role, and FastAPI test clients whose
record store dependency points at the same in-memory store.
"""

import os
import sys
import tempfile
from pathlib import Path

# Make `import marketplace` work without installing the package
BACKEND = Path(__file__).resolve().parents[1]
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))

# Must be set before marketplace.config.settings is imported
os.environ.setdefault("RECORD_STORE", "memory")
os.environ.setdefault("LOGS_PATH", tempfile.mkdtemp(prefix="marketplace-test-logs-"))
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("SUPPLIER_REGISTRATION_KEY", "REG-test")

import pytest
from fastapi.testclient import TestClient

from marketplace.domain.models import (
    ActorContext, InventoryItemInput, ProductInput, WithdrawalInput
)
from marketplace.domain.enums import EntityKind, Role, WorkflowAction
from marketplace.engine.engine import WorkflowEngine
from marketplace.repositories.record_store import InMemoryRecordStore
from marketplace.services.promotion_service import PromotionService
from marketplace.services.queue_service import ApprovalQueueService
from marketplace.services.settings_service import SettingsService
from marketplace.services.supplier_service import SupplierService
from marketplace.utils.jwt import create_access_token


# =============================================================================
# Actors
# =============================================================================

@pytest.fixture
def supplier() -> ActorContext:
    return ActorContext(user_id="supplier-1", role=Role.SUPPLIER, email="s1@example.com", display_name="Supplier One")


@pytest.fixture
def other_supplier() -> ActorContext:
    return ActorContext(user_id="supplier-2", role=Role.SUPPLIER, email="s2@example.com", display_name="Supplier Two")


@pytest.fixture
def manager() -> ActorContext:
    return ActorContext(user_id="manager-1", role=Role.MANAGER, email="m1@example.com", display_name="Manager One")


@pytest.fixture
def other_manager() -> ActorContext:
    return ActorContext(user_id="manager-2", role=Role.MANAGER)


@pytest.fixture
def admin() -> ActorContext:
    return ActorContext(user_id="admin-1", role=Role.ADMINISTRATOR, email="a1@example.com")


@pytest.fixture
def dropshipper() -> ActorContext:
    return ActorContext(user_id="dropshipper-1", role=Role.DROPSHIPPER)


# =============================================================================
# Store, Engine & Services
# =============================================================================

@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def settings_service(store) -> SettingsService:
    return SettingsService(store)


@pytest.fixture
def engine(store, settings_service) -> WorkflowEngine:
    return WorkflowEngine(store, settings_service=settings_service)


@pytest.fixture
def supplier_service(engine) -> SupplierService:
    return SupplierService(engine)


@pytest.fixture
def promotion_service(engine) -> PromotionService:
    return PromotionService(engine)


@pytest.fixture
def queue_service(store) -> ApprovalQueueService:
    return ApprovalQueueService(store)


# =============================================================================
# Record Factories
# =============================================================================

def product_input(**overrides) -> ProductInput:
    fields = dict(
        name="Linen Apron", description="Stonewashed linen", price=50.0, stock=10,
        weight=0.3, pkg_length=30, pkg_width=20, pkg_height=2,
        category_name="Textiles", brand_name="GreenHome",
    )
    fields.update(overrides)
    return ProductInput(**fields)


def inventory_input(**overrides) -> InventoryItemInput:
    fields = dict(
        name="Cast Iron Skillet", description="26 cm", price=45.0, sku="CI-26",
        stock_quantity=12, weight=3.1, pkg_length=48, pkg_width=28, pkg_height=8,
        category_name="Kitchen", brand_name="ForgeWorks",
    )
    fields.update(overrides)
    return InventoryItemInput(**fields)


@pytest.fixture
def pending_product(supplier_service, supplier):
    return supplier_service.create_product(product_input(), supplier, submit=True)


@pytest.fixture
def published_product(engine, supplier_service, supplier, manager):
    product = supplier_service.create_product(product_input(), supplier, submit=True)
    return engine.apply_transition(EntityKind.PRODUCT, product.id, WorkflowAction.APPROVE.value, manager)


@pytest.fixture
def ready_item(supplier_service, supplier):
    return supplier_service.create_inventory_item(inventory_input(), supplier, ready=True)


@pytest.fixture
def pending_withdrawal(supplier_service, supplier):
    return supplier_service.create_withdrawal(
        WithdrawalInput(amount=250.0, bank_details="IBAN DE00 1234"), supplier
    )


# =============================================================================
# HTTP
# =============================================================================

def auth_headers(actor: ActorContext) -> dict:
    token = create_access_token(actor.user_id, actor.role, email=actor.email, name=actor.display_name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def app(store):
    from marketplace.main import app as fastapi_app
    from marketplace.api.deps import get_record_store_dep

    fastapi_app.dependency_overrides[get_record_store_dep] = lambda: store
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def http(app) -> TestClient:
    """Test client rooted at the application"""
    return TestClient(app)


@pytest.fixture
def api_http(app) -> TestClient:
    """Test client rooted at /api/v1, usable as MarketplaceClient transport"""
    return TestClient(app, base_url="http://testserver/api/v1")
