"""Inventory promotion: item and product change together or not at all"""
import pytest

from marketplace.domain.enums import EntityKind
from marketplace.domain.errors import ConflictError, ForbiddenError, IllegalTransitionError
from marketplace.repositories.record_repo import RecordRepository

from .conftest import inventory_input, product_input


def test_promote_creates_pending_product(promotion_service, engine, store, ready_item, supplier):
    product_id = promotion_service.promote(ready_item.id, supplier)

    repo = RecordRepository(store)
    item = repo.get(EntityKind.INVENTORY_ITEM, ready_item.id)
    product = repo.get(EntityKind.PRODUCT, product_id)

    assert item.status == "promoted"
    assert item.promoted_product_id == product_id
    assert product.status == "pending"
    assert product.owner_id == supplier.user_id
    assert product.name == ready_item.name
    assert product.price == ready_item.price
    assert product.stock == ready_item.stock_quantity
    assert product.commission_rate == engine.settings_service.get_default_commission_rate()


def test_promoted_product_enters_review_queue(promotion_service, queue_service, ready_item, supplier, manager):
    product_id = promotion_service.promote(ready_item.id, supplier)
    assert [p.id for p in queue_service.list_awaiting(EntityKind.PRODUCT, manager)] == [product_id]


def test_promotion_audit_links_both_records(promotion_service, engine, ready_item, supplier):
    product_id = promotion_service.promote(ready_item.id, supplier, correlation_id="corr-promo")

    item_event = engine.history(EntityKind.INVENTORY_ITEM, ready_item.id)[-1]
    assert (item_event.from_state, item_event.action, item_event.to_state) == ("ready", "promote", "promoted")
    assert item_event.details["product_id"] == product_id

    product_events = engine.history(EntityKind.PRODUCT, product_id)
    assert [e.event_type for e in product_events] == ["create"]
    assert product_events[0].details["source_inventory_item_id"] == ready_item.id
    assert item_event.correlation_id == "corr-promo"
    assert product_events[0].correlation_id == "corr-promo"

    traced = engine.audit_repo.get_events_by_correlation_id("corr-promo")
    assert {e.record_id for e in traced} == {ready_item.id, product_id}

    assert engine.verify_history(EntityKind.INVENTORY_ITEM, ready_item.id)
    assert engine.verify_history(EntityKind.PRODUCT, product_id)


def test_draft_item_cannot_be_promoted(promotion_service, supplier_service, supplier):
    draft = supplier_service.create_inventory_item(inventory_input(), supplier)
    with pytest.raises(IllegalTransitionError):
        promotion_service.promote(draft.id, supplier)


def test_mark_ready_then_promote(promotion_service, engine, supplier_service, supplier):
    draft = supplier_service.create_inventory_item(inventory_input(), supplier)
    engine.apply_transition(EntityKind.INVENTORY_ITEM, draft.id, "mark_ready", supplier)
    assert promotion_service.promote(draft.id, supplier).startswith("PRD-")


def test_only_owner_promotes(promotion_service, ready_item, other_supplier, manager):
    with pytest.raises(ForbiddenError):
        promotion_service.promote(ready_item.id, other_supplier)
    with pytest.raises(ForbiddenError):
        promotion_service.promote(ready_item.id, manager)


def test_second_promotion_is_illegal(promotion_service, ready_item, supplier, store):
    promotion_service.promote(ready_item.id, supplier)
    with pytest.raises(IllegalTransitionError):
        promotion_service.promote(ready_item.id, supplier)
    assert len(RecordRepository(store).list_for_owner(EntityKind.PRODUCT, supplier.user_id)) == 1


def test_failed_product_insert_leaves_item_ready(
    monkeypatch, promotion_service, engine, supplier_service, store, ready_item, supplier
):
    existing = supplier_service.create_product(product_input(), supplier)
    monkeypatch.setattr("marketplace.engine.engine.generate_product_id", lambda: existing.id)

    with pytest.raises(ConflictError):
        promotion_service.promote(ready_item.id, supplier)

    repo = RecordRepository(store)
    item = repo.get(EntityKind.INVENTORY_ITEM, ready_item.id)
    assert item.status == "ready"
    assert item.promoted_product_id is None
    assert item.version == ready_item.version
    assert [p.id for p in repo.list_for_owner(EntityKind.PRODUCT, supplier.user_id)] == [existing.id]
    assert [e.event_type for e in engine.history(EntityKind.INVENTORY_ITEM, ready_item.id)] == ["create"]
