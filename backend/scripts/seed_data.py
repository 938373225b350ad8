"""
Seed Data Script - Creates a demo supplier catalogue
Run: python -m scripts.seed_data

Everything goes through the services, so seeded records carry the same
audit trail as records created through the API. Prints tokens for the demo
supplier, manager and administrator.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from marketplace.config.settings import settings
from marketplace.domain.models import (
    ActorContext, InventoryItemInput, PriceAppealInput, ProductInput, WithdrawalInput
)
from marketplace.domain.enums import EntityKind, Role, WorkflowAction
from marketplace.engine.engine import WorkflowEngine
from marketplace.repositories.store_factory import get_record_store
from marketplace.services.supplier_service import SupplierService
from marketplace.utils.jwt import create_access_token

SUPPLIER = ActorContext(user_id="supplier-demo", role=Role.SUPPLIER, email="supplier@example.com",
                        display_name="Demo Supplier")
MANAGER = ActorContext(user_id="manager-demo", role=Role.MANAGER, email="manager@example.com",
                       display_name="Demo Manager")
ADMIN = ActorContext(user_id="admin-demo", role=Role.ADMINISTRATOR, email="admin@example.com",
                     display_name="Demo Administrator")


def create_sample_catalogue(engine: WorkflowEngine):
    """Products in every review state, inventory, a withdrawal and an appeal"""
    supplier_service = SupplierService(engine)

    if supplier_service.list_own(EntityKind.PRODUCT, SUPPLIER):
        print("Store already has demo data. Skipping seed.")
        return

    draft = supplier_service.create_product(
        ProductInput(name="Bamboo Cutting Board", description="Set of three", price=24.90,
                     stock=40, weight=1.2, pkg_length=40, pkg_width=28, pkg_height=5,
                     category_name="Kitchen", brand_name="GreenHome"),
        SUPPLIER
    )
    print(f"Created draft product: {draft.id}")

    pending = supplier_service.create_product(
        ProductInput(name="Ceramic Pour-Over Set", price=38.00, stock=15, weight=0.9,
                     category_name="Kitchen", brand_name="Drip&Co"),
        SUPPLIER,
        submit=True
    )
    print(f"Created pending product: {pending.id}")

    published = supplier_service.create_product(
        ProductInput(name="Linen Apron", price=50.00, stock=60, weight=0.3,
                     category_name="Textiles", brand_name="GreenHome"),
        SUPPLIER,
        submit=True
    )
    engine.apply_transition(EntityKind.PRODUCT, published.id, WorkflowAction.APPROVE.value, MANAGER)
    print(f"Created published product: {published.id}")

    appeal = supplier_service.create_price_appeal(
        published.id,
        PriceAppealInput(new_price=65.00, reason="Fabric supplier raised prices"),
        SUPPLIER
    )
    print(f"Created price appeal: {appeal.id}")

    item = supplier_service.create_inventory_item(
        InventoryItemInput(name="Cast Iron Skillet", price=45.00, sku="CI-SKL-26",
                           stock_quantity=12, weight=3.1, pkg_length=48, pkg_width=28, pkg_height=8,
                           category_name="Kitchen", brand_name="ForgeWorks"),
        SUPPLIER,
        ready=True
    )
    print(f"Created ready inventory item: {item.id}")

    withdrawal = supplier_service.create_withdrawal(
        WithdrawalInput(amount=250.00, bank_details="IBAN DE00 0000 0000 0000 0000 00"),
        SUPPLIER
    )
    print(f"Created withdrawal request: {withdrawal.id}")

    print("\n[OK] Seed data created successfully!")


def main():
    print("=== Seeding record store ===")
    print(f"Backend: {settings.record_store}")
    print("-" * 40)

    if not settings.uses_memory_store:
        from marketplace.repositories.mongo_client import create_indexes
        create_indexes()

    engine = WorkflowEngine(get_record_store())
    create_sample_catalogue(engine)

    print("-" * 40)
    for actor in (SUPPLIER, MANAGER, ADMIN):
        print(f"{actor.role.value} token: {create_access_token(actor.user_id, actor.role, actor.email, actor.display_name)}")
    print("Done!")


if __name__ == "__main__":
    main()
