"""Supplier Service - Owner operations on products, inventory, withdrawals and appeals"""
from typing import List, Optional, Type

from ..domain.models import (
    ActorContext, InventoryItem, InventoryItemInput, PriceAppeal, PriceAppealInput,
    Product, ProductInput, WithdrawalInput, WithdrawalRequest, WorkflowRecord
)
from ..domain.enums import (
    EntityKind, InventoryStatus, PriceAppealStatus, ProductStatus, Role, WithdrawalStatus
)
from ..domain.errors import ConflictError, InvalidStateError, ValidationError
from ..engine.engine import WorkflowEngine
from ..repositories.record_repo import RecordRepository
from ..utils.idgen import (
    generate_inventory_item_id, generate_price_appeal_id, generate_product_id,
    generate_withdrawal_request_id
)
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

SUPPLIER = (Role.SUPPLIER,)


def _build(model: Type[WorkflowRecord], **fields) -> WorkflowRecord:
    """Construct a record, reporting model validation failures as domain errors"""
    try:
        return model(**fields)
    except ValueError as e:
        raise ValidationError(f"Invalid {model.kind.value}: {e}", details={"entity_kind": model.kind.value})


class SupplierService:
    """Service for a supplier's own records"""

    def __init__(self, engine: WorkflowEngine):
        self.engine = engine
        self.record_repo: RecordRepository = engine.record_repo
        self.permission_guard = engine.permission_guard

    # =========================================================================
    # Creation
    # =========================================================================

    def create_product(
        self,
        data: ProductInput,
        actor: ActorContext,
        submit: bool = False,
        correlation_id: Optional[str] = None
    ) -> Product:
        """Create a product as a draft, or directly pending review"""
        now = utc_now()
        product = _build(
            Product,
            id=generate_product_id(),
            owner_id=actor.user_id,
            status=ProductStatus.PENDING if submit else ProductStatus.DRAFT,
            created_at=now,
            updated_at=now,
            **data.model_dump()
        )
        return self.engine.create_record(product, actor, correlation_id=correlation_id)

    def create_inventory_item(
        self,
        data: InventoryItemInput,
        actor: ActorContext,
        ready: bool = False,
        correlation_id: Optional[str] = None
    ) -> InventoryItem:
        """Create a private inventory item as a draft, or ready for promotion"""
        now = utc_now()
        item = _build(
            InventoryItem,
            id=generate_inventory_item_id(),
            owner_id=actor.user_id,
            status=InventoryStatus.READY if ready else InventoryStatus.DRAFT,
            created_at=now,
            updated_at=now,
            **data.model_dump()
        )
        return self.engine.create_record(item, actor, correlation_id=correlation_id)

    def create_withdrawal(
        self,
        data: WithdrawalInput,
        actor: ActorContext,
        correlation_id: Optional[str] = None
    ) -> WithdrawalRequest:
        now = utc_now()
        request = _build(
            WithdrawalRequest,
            id=generate_withdrawal_request_id(),
            owner_id=actor.user_id,
            status=WithdrawalStatus.PENDING,
            amount=data.amount,
            bank_details=data.bank_details.strip(),
            created_at=now,
            updated_at=now
        )
        return self.engine.create_record(request, actor, correlation_id=correlation_id)

    def create_price_appeal(
        self,
        product_id: str,
        data: PriceAppealInput,
        actor: ActorContext,
        correlation_id: Optional[str] = None
    ) -> PriceAppeal:
        """
        Appeal a price change on one of the actor's published products

        The product is compare-and-set in the same unit as the appeal insert,
        so two concurrent appeals on one product cannot both be filed.

        Raises:
            ForbiddenError: Product belongs to someone else
            InvalidStateError: Product is not published
            ConflictError: A pending appeal already exists for the product
            ValidationError: New price equals the current price
        """
        product = self.record_repo.get_or_raise(EntityKind.PRODUCT, product_id)
        self.permission_guard.require_owner(actor, product, "appeal the price of")
        if product.status != ProductStatus.PUBLISHED.value:
            raise InvalidStateError(
                f"Only published products can have their price appealed (status '{product.status}')",
                details={"product_id": product_id, "status": product.status}
            )

        pending = self.record_repo.find(
            EntityKind.PRICE_APPEAL,
            {"product_id": product_id, "status": PriceAppealStatus.PENDING.value}
        )
        if pending:
            raise ConflictError(
                f"Product {product_id} already has a pending price appeal",
                details={"product_id": product_id, "price_appeal_id": pending[0].id}
            )

        now = utc_now()
        appeal = _build(
            PriceAppeal,
            id=generate_price_appeal_id(),
            owner_id=actor.user_id,
            status=PriceAppealStatus.PENDING,
            product_id=product_id,
            old_price=product.price,
            new_price=data.new_price,
            reason=data.reason.strip() if data.reason else None,
            created_at=now,
            updated_at=now
        )
        return self.engine.create_record(
            appeal, actor, guard_records=[product], correlation_id=correlation_id
        )

    # =========================================================================
    # Edits & Deletion
    # =========================================================================

    def update_product(
        self,
        product_id: str,
        data: ProductInput,
        actor: ActorContext,
        correlation_id: Optional[str] = None
    ) -> Product:
        return self.engine.update_fields(
            EntityKind.PRODUCT, product_id, actor, data.model_dump(), correlation_id=correlation_id
        )

    def update_inventory_item(
        self,
        item_id: str,
        data: InventoryItemInput,
        actor: ActorContext,
        correlation_id: Optional[str] = None
    ) -> InventoryItem:
        return self.engine.update_fields(
            EntityKind.INVENTORY_ITEM, item_id, actor, data.model_dump(), correlation_id=correlation_id
        )

    def delete_product(self, product_id: str, actor: ActorContext, correlation_id: Optional[str] = None) -> None:
        self.engine.delete_record(EntityKind.PRODUCT, product_id, actor, correlation_id=correlation_id)

    def delete_inventory_item(self, item_id: str, actor: ActorContext, correlation_id: Optional[str] = None) -> None:
        self.engine.delete_record(EntityKind.INVENTORY_ITEM, item_id, actor, correlation_id=correlation_id)

    # =========================================================================
    # Listing
    # =========================================================================

    def list_own(
        self,
        entity_kind: EntityKind,
        actor: ActorContext,
        status: Optional[str] = None
    ) -> List[WorkflowRecord]:
        """The actor's records of one kind, oldest first"""
        self.permission_guard.require_role(actor, SUPPLIER, "list supplier records")
        return self.record_repo.list_for_owner(EntityKind(entity_kind), actor.user_id, status=status)
