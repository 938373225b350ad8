"""Record API Routes - Queues, transitions and history"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..deps import (
    get_active_user_dep, get_correlation_id_dep, get_engine_dep, get_queue_service_dep
)
from ...domain.models import ActorContext, WorkflowRecord
from ...domain.enums import EntityKind, InventoryStatus, STAFF_ROLES
from ...domain.errors import ForbiddenError, RecordNotFoundError
from ...engine.engine import WorkflowEngine
from ...services.queue_service import ApprovalQueueService
from ...utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================

class TransitionRequest(BaseModel):
    """Request to apply an action to a record"""
    action: str = Field(..., min_length=1, max_length=50)
    reason: Optional[str] = Field(None, max_length=2000)


class QueueResponse(BaseModel):
    """Records awaiting the caller's action"""
    entity_kind: EntityKind
    items: List[Dict[str, Any]]


class HistoryResponse(BaseModel):
    """Audit trail of one record"""
    record_id: str
    events: List[Dict[str, Any]]
    verified: bool


def serialize_record(record: WorkflowRecord) -> Dict[str, Any]:
    return record.model_dump(mode="json")


def _not_found(kind: EntityKind, record_id: str) -> RecordNotFoundError:
    return RecordNotFoundError(
        f"{kind.value} {record_id} not found",
        details={"entity_kind": kind.value, "record_id": record_id}
    )


def require_visible(engine: WorkflowEngine, actor: ActorContext, record: WorkflowRecord) -> None:
    """
    Raises:
        RecordNotFoundError: Unpromoted inventory read by anyone but its supplier
        ForbiddenError: Any other record the actor may not view
    """
    if engine.permission_guard.can_view(actor, record):
        return
    if record.kind == EntityKind.INVENTORY_ITEM and record.status != InventoryStatus.PROMOTED.value:
        raise _not_found(record.kind, record.id)
    raise ForbiddenError(f"You cannot view this {record.kind.value}", details={"record_id": record.id})


# ============================================================================
# Routes
# ============================================================================

@router.get("/queues/{kind}", response_model=QueueResponse)
def list_queue(
    kind: EntityKind,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: ApprovalQueueService = Depends(get_queue_service_dep)
):
    """
    List records awaiting the caller's action

    Oldest first. Always read fresh from the store.
    """
    records = service.list_awaiting(kind, actor)
    return QueueResponse(entity_kind=kind, items=[serialize_record(r) for r in records])


@router.get("/records/{kind}/{record_id}")
def get_record(
    kind: EntityKind,
    record_id: str,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    engine: WorkflowEngine = Depends(get_engine_dep)
):
    """Get one record (owner, or staff for non-private records)"""
    record = engine.record_repo.get_or_raise(kind, record_id)
    require_visible(engine, actor, record)
    return serialize_record(record)


@router.post("/records/{kind}/{record_id}/transitions")
def apply_transition(
    kind: EntityKind,
    record_id: str,
    request: TransitionRequest,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    engine: WorkflowEngine = Depends(get_engine_dep)
):
    """
    Apply an action (approve, reject, promote, submit, mark_ready)

    Returns the updated record. A 409 CONFLICT means another request changed
    the record first: re-read it and decide again.
    """
    record = engine.apply_transition(
        kind,
        record_id,
        request.action,
        actor,
        reason=request.reason,
        correlation_id=correlation_id
    )
    return serialize_record(record)


@router.get("/records/{kind}/{record_id}/history", response_model=HistoryResponse)
def get_history(
    kind: EntityKind,
    record_id: str,
    actor: ActorContext = Depends(get_active_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    engine: WorkflowEngine = Depends(get_engine_dep)
):
    """Audit trail of a record, checked against the transition table"""
    engine.permission_guard.require_role(actor, STAFF_ROLES, "read record history")
    record = engine.record_repo.get(kind, record_id)
    if record is not None:
        require_visible(engine, actor, record)
    elif kind == EntityKind.INVENTORY_ITEM:
        # Only unpromoted items can be deleted, so a gone item was never public
        raise _not_found(kind, record_id)

    events = engine.history(kind, record_id)
    if not events:
        raise _not_found(kind, record_id)
    return HistoryResponse(
        record_id=record_id,
        events=[event.model_dump(mode="json") for event in events],
        verified=engine.verify_history(kind, record_id)
    )
