"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Any, ClassVar, Dict, FrozenSet, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from .enums import (
    AuditEventType, EntityKind, InventoryStatus, PriceAppealStatus, ProductStatus,
    Role, STAFF_ROLES, WithdrawalStatus
)


# ============================================================================
# Identity
# ============================================================================

class ActorContext(BaseModel):
    """Current actor context from JWT token"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="Actor ID (token subject)")
    role: Role = Field(..., description="Actor role")
    email: Optional[EmailStr] = Field(None, description="User email")
    display_name: Optional[str] = Field(None, description="User display name")

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


# ============================================================================
# Workflow Records
# ============================================================================

class WorkflowRecord(BaseModel):
    """
    Common shape of every workflow-governed record.

    `status_reason` is populated only while the record sits in one of its
    rejection states, and is cleared on every other path.
    """
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    kind: ClassVar[EntityKind]
    reason_states: ClassVar[FrozenSet[str]] = frozenset()

    id: str = Field(..., description="Unique immutable record ID")
    owner_id: str = Field(..., description="Supplier who created the record")
    status: str
    status_reason: Optional[str] = Field(None, description="Populated only on rejection")
    version: int = Field(default=1, description="Incremented on every committed change")
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="after")
    def _check_reason(self):
        has_reason = bool(self.status_reason and self.status_reason.strip())
        if self.status in self.reason_states and not has_reason:
            raise ValueError(f"status '{self.status}' requires a non-empty status_reason")
        if self.status not in self.reason_states and self.status_reason is not None:
            raise ValueError(f"status '{self.status}' must not carry a status_reason")
        return self


class Product(WorkflowRecord):
    """Marketplace product"""
    kind: ClassVar[EntityKind] = EntityKind.PRODUCT
    reason_states: ClassVar[FrozenSet[str]] = frozenset({ProductStatus.REJECTED.value})

    status: ProductStatus = ProductStatus.DRAFT
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    price: float = Field(..., gt=0)
    stock: int = Field(default=0, ge=0)
    weight: float = Field(default=0, ge=0)
    pkg_length: float = Field(default=0, ge=0)
    pkg_width: float = Field(default=0, ge=0)
    pkg_height: float = Field(default=0, ge=0)
    is_variable: bool = False
    category_name: Optional[str] = None
    brand_name: Optional[str] = None
    commission_rate: Optional[float] = Field(None, ge=0)


class InventoryItem(WorkflowRecord):
    """Private supplier inventory item, invisible outside the owner's view until promoted"""
    kind: ClassVar[EntityKind] = EntityKind.INVENTORY_ITEM

    status: InventoryStatus = InventoryStatus.DRAFT
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    price: float = Field(..., gt=0)
    sku: str = ""
    stock_quantity: int = Field(default=0, ge=0)
    weight: float = Field(default=0, ge=0)
    pkg_length: float = Field(default=0, ge=0)
    pkg_width: float = Field(default=0, ge=0)
    pkg_height: float = Field(default=0, ge=0)
    category_name: Optional[str] = None
    brand_name: Optional[str] = None
    promoted_product_id: Optional[str] = Field(None, description="Product created by promotion")

    @model_validator(mode="after")
    def _check_promotion_link(self):
        if self.status == InventoryStatus.PROMOTED.value and not self.promoted_product_id:
            raise ValueError("promoted item must reference the product it produced")
        return self


class WithdrawalRequest(WorkflowRecord):
    """Supplier payout request"""
    kind: ClassVar[EntityKind] = EntityKind.WITHDRAWAL_REQUEST
    reason_states: ClassVar[FrozenSet[str]] = frozenset({WithdrawalStatus.REJECTED.value})

    status: WithdrawalStatus = WithdrawalStatus.PENDING
    amount: float = Field(..., gt=0)
    bank_details: str = Field(..., min_length=1)


class PriceAppeal(WorkflowRecord):
    """Request to change the price of a published product"""
    kind: ClassVar[EntityKind] = EntityKind.PRICE_APPEAL
    reason_states: ClassVar[FrozenSet[str]] = frozenset({PriceAppealStatus.REJECTED.value})

    status: PriceAppealStatus = PriceAppealStatus.PENDING
    product_id: str
    old_price: float = Field(..., gt=0)
    new_price: float = Field(..., gt=0)
    reason: Optional[str] = Field(None, description="Supplier's justification")

    @model_validator(mode="after")
    def _check_prices(self):
        if self.new_price == self.old_price:
            raise ValueError("new_price must differ from old_price")
        return self


RECORD_MODELS = {
    EntityKind.PRODUCT: Product,
    EntityKind.INVENTORY_ITEM: InventoryItem,
    EntityKind.WITHDRAWAL_REQUEST: WithdrawalRequest,
    EntityKind.PRICE_APPEAL: PriceAppeal,
}


# ============================================================================
# Owner Inputs
# ============================================================================

class ProductInput(BaseModel):
    """Editable product fields"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=5000)
    price: float = Field(..., gt=0)
    stock: int = Field(default=0, ge=0)
    weight: float = Field(default=0, ge=0)
    pkg_length: float = Field(default=0, ge=0)
    pkg_width: float = Field(default=0, ge=0)
    pkg_height: float = Field(default=0, ge=0)
    is_variable: bool = False
    category_name: Optional[str] = None
    brand_name: Optional[str] = None


class InventoryItemInput(BaseModel):
    """Editable inventory item fields"""
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=5000)
    price: float = Field(..., gt=0)
    sku: str = Field(default="", max_length=100)
    stock_quantity: int = Field(default=0, ge=0)
    weight: float = Field(default=0, ge=0)
    pkg_length: float = Field(default=0, ge=0)
    pkg_width: float = Field(default=0, ge=0)
    pkg_height: float = Field(default=0, ge=0)
    category_name: Optional[str] = None
    brand_name: Optional[str] = None


class WithdrawalInput(BaseModel):
    """Withdrawal request payload"""
    amount: float = Field(..., gt=0)
    bank_details: str = Field(..., min_length=1, max_length=1000)


class PriceAppealInput(BaseModel):
    """Price change request payload"""
    new_price: float = Field(..., gt=0)
    reason: Optional[str] = Field(None, max_length=2000)


# ============================================================================
# Audit
# ============================================================================

class AuditEvent(BaseModel):
    """Append-only record of a committed change"""
    model_config = ConfigDict(use_enum_values=True)

    audit_event_id: str
    entity_kind: EntityKind
    record_id: str
    event_type: AuditEventType
    action: Optional[str] = None
    from_state: Optional[str] = None
    to_state: Optional[str] = None
    actor_id: str
    actor_role: Role
    reason: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    # Version of the record once this event committed; orders a record's trail
    record_version: int = 0
    correlation_id: Optional[str] = None
