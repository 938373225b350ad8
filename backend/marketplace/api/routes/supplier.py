"""Supplier API Routes - Own products, inventory, withdrawals and price appeals"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from ..deps import (
    get_active_user_dep, get_correlation_id_dep, get_promotion_service_dep,
    get_supplier_service_dep
)
from .records import serialize_record
from ...domain.models import (
    ActorContext, InventoryItemInput, PriceAppealInput, ProductInput, WithdrawalInput
)
from ...domain.enums import EntityKind
from ...services.promotion_service import PromotionService
from ...services.supplier_service import SupplierService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================

class CreateProductRequest(ProductInput):
    """Product fields; `submit` sends it straight to review"""
    submit: bool = False


class CreateInventoryItemRequest(InventoryItemInput):
    """Inventory fields; `ready` makes it promotable immediately"""
    ready: bool = False


class PromoteResponse(BaseModel):
    """Response after promoting an inventory item"""
    inventory_item_id: str
    product_id: str


def _listing(records):
    return {"items": [serialize_record(r) for r in records]}


# ============================================================================
# Products
# ============================================================================

@router.post("/products", status_code=status.HTTP_201_CREATED)
def create_product(
    request: CreateProductRequest,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    data = ProductInput.model_validate(request.model_dump(exclude={"submit"}))
    product = service.create_product(data, actor, submit=request.submit, correlation_id=correlation_id)
    return serialize_record(product)


@router.get("/products")
def list_products(
    status_filter: Optional[str] = Query(None, alias="status"),
    actor: ActorContext = Depends(get_active_user_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    return _listing(service.list_own(EntityKind.PRODUCT, actor, status=status_filter))


@router.put("/products/{product_id}")
def update_product(
    product_id: str,
    request: ProductInput,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    """Edit a draft or rejected product"""
    return serialize_record(service.update_product(product_id, request, actor, correlation_id=correlation_id))


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    """Delete a draft product"""
    service.delete_product(product_id, actor, correlation_id=correlation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/products/{product_id}/price-appeals", status_code=status.HTTP_201_CREATED)
def create_price_appeal(
    product_id: str,
    request: PriceAppealInput,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    """Request a new price for a published product"""
    appeal = service.create_price_appeal(product_id, request, actor, correlation_id=correlation_id)
    return serialize_record(appeal)


@router.get("/price-appeals")
def list_price_appeals(
    status_filter: Optional[str] = Query(None, alias="status"),
    actor: ActorContext = Depends(get_active_user_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    return _listing(service.list_own(EntityKind.PRICE_APPEAL, actor, status=status_filter))


# ============================================================================
# Inventory
# ============================================================================

@router.post("/inventory", status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    request: CreateInventoryItemRequest,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    data = InventoryItemInput.model_validate(request.model_dump(exclude={"ready"}))
    item = service.create_inventory_item(data, actor, ready=request.ready, correlation_id=correlation_id)
    return serialize_record(item)


@router.get("/inventory")
def list_inventory(
    status_filter: Optional[str] = Query(None, alias="status"),
    actor: ActorContext = Depends(get_active_user_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    return _listing(service.list_own(EntityKind.INVENTORY_ITEM, actor, status=status_filter))


@router.put("/inventory/{item_id}")
def update_inventory_item(
    item_id: str,
    request: InventoryItemInput,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    """Edit a draft or ready item; promoted items are immutable"""
    return serialize_record(service.update_inventory_item(item_id, request, actor, correlation_id=correlation_id))


@router.delete("/inventory/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_item(
    item_id: str,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    service.delete_inventory_item(item_id, actor, correlation_id=correlation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/inventory/{item_id}/promote", response_model=PromoteResponse)
def promote_inventory_item(
    item_id: str,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: PromotionService = Depends(get_promotion_service_dep)
):
    """
    Promote a ready item to the marketplace

    Creates a pending product and marks the item promoted in one commit.
    """
    product_id = service.promote(item_id, actor, correlation_id=correlation_id)
    return PromoteResponse(inventory_item_id=item_id, product_id=product_id)


# ============================================================================
# Withdrawals
# ============================================================================

@router.post("/withdrawals", status_code=status.HTTP_201_CREATED)
def create_withdrawal(
    request: WithdrawalInput,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    return serialize_record(service.create_withdrawal(request, actor, correlation_id=correlation_id))


@router.get("/withdrawals")
def list_withdrawals(
    status_filter: Optional[str] = Query(None, alias="status"),
    actor: ActorContext = Depends(get_active_user_dep),
    service: SupplierService = Depends(get_supplier_service_dep)
):
    return _listing(service.list_own(EntityKind.WITHDRAWAL_REQUEST, actor, status=status_filter))
