"""Price appeals: filing against published products and approval side effects"""
import pytest

from marketplace.domain.enums import EntityKind
from marketplace.domain.errors import (
    ConflictError, ForbiddenError, InvalidStateError, MissingReasonError, ValidationError
)
from marketplace.domain.models import PriceAppealInput
from marketplace.repositories.record_repo import RecordRepository

APPEAL = EntityKind.PRICE_APPEAL


@pytest.fixture
def appeal(supplier_service, published_product, supplier):
    return supplier_service.create_price_appeal(
        published_product.id, PriceAppealInput(new_price=42.0, reason=" Supplier cost dropped "), supplier
    )


def test_file_appeal(appeal, published_product, supplier):
    assert appeal.status == "pending"
    assert appeal.owner_id == supplier.user_id
    assert appeal.product_id == published_product.id
    assert appeal.old_price == published_product.price
    assert appeal.new_price == 42.0
    assert appeal.reason == "Supplier cost dropped"


def test_appeal_requires_published_product(supplier_service, pending_product, supplier):
    with pytest.raises(InvalidStateError):
        supplier_service.create_price_appeal(pending_product.id, PriceAppealInput(new_price=40.0), supplier)


def test_appeal_requires_ownership(supplier_service, published_product, other_supplier):
    with pytest.raises(ForbiddenError):
        supplier_service.create_price_appeal(published_product.id, PriceAppealInput(new_price=40.0), other_supplier)


def test_appeal_with_same_price_rejected(supplier_service, published_product, supplier):
    with pytest.raises(ValidationError):
        supplier_service.create_price_appeal(
            published_product.id, PriceAppealInput(new_price=published_product.price), supplier
        )


def test_one_pending_appeal_per_product(supplier_service, appeal, published_product, supplier):
    with pytest.raises(ConflictError):
        supplier_service.create_price_appeal(published_product.id, PriceAppealInput(new_price=39.0), supplier)


def test_new_appeal_after_rejection(engine, supplier_service, appeal, published_product, supplier, manager):
    engine.apply_transition(APPEAL, appeal.id, "reject", manager, reason="Price below floor")
    second = supplier_service.create_price_appeal(published_product.id, PriceAppealInput(new_price=48.0), supplier)
    assert second.status == "pending"


def test_approval_updates_product_price(engine, store, appeal, published_product, manager):
    approved = engine.apply_transition(APPEAL, appeal.id, "approve", manager)
    assert approved.status == "approved"

    product = RecordRepository(store).get(EntityKind.PRODUCT, published_product.id)
    assert product.price == 42.0
    assert product.status == "published"

    update = engine.history(EntityKind.PRODUCT, published_product.id)[-1]
    assert update.event_type == "update"
    assert update.details["changed_fields"]["price"] == {"old": 50.0, "new": 42.0}
    assert update.details["changed_fields"]["price_appeal_id"] == appeal.id
    assert engine.verify_history(EntityKind.PRODUCT, published_product.id)


def test_rejection_keeps_price(engine, store, appeal, published_product, manager):
    with pytest.raises(MissingReasonError):
        engine.apply_transition(APPEAL, appeal.id, "reject", manager)

    rejected = engine.apply_transition(APPEAL, appeal.id, "reject", manager, reason="Not justified")
    assert rejected.status_reason == "Not justified"
    assert RecordRepository(store).get(EntityKind.PRODUCT, published_product.id).price == 50.0


def test_approval_fails_when_price_moved(engine, store, appeal, published_product, manager):
    current = store.get("products", published_product.id)
    store.compare_and_set("products", published_product.id, {"version": current["version"]}, {"price": 55.0})

    with pytest.raises(InvalidStateError) as exc_info:
        engine.apply_transition(APPEAL, appeal.id, "approve", manager)
    # Retrying cannot help: the appeal has to be rejected or refiled
    assert not exc_info.value.retryable
    assert exc_info.value.details["current_price"] == 55.0

    stored = RecordRepository(store).get(APPEAL, appeal.id)
    assert stored.status == "pending"
    assert RecordRepository(store).get(EntityKind.PRODUCT, published_product.id).price == 55.0


def test_price_increase_commits_with_approval(engine, store, supplier_service, published_product, supplier, admin):
    appeal = supplier_service.create_price_appeal(published_product.id, PriceAppealInput(new_price=65.0), supplier)
    assert appeal.old_price == 50.0

    engine.apply_transition(APPEAL, appeal.id, "approve", admin)

    repo = RecordRepository(store)
    assert repo.get(APPEAL, appeal.id).status == "approved"
    assert repo.get(EntityKind.PRODUCT, published_product.id).price == 65.0
