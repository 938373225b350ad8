"""
Workflow Engine - The Brain of the System

This module contains the WorkflowEngine class, the single path through which
workflow-governed records change status.

=============================================================================
MODULE STRUCTURE
=============================================================================

1. TRANSITIONS
   - apply_transition: Validate and commit one (state, action) edge
   - _check_reason: Reason presence per edge
   - _build_promoted_product: Marketplace product produced by promotion
   - _stage_price_change: Product price update carried by appeal approval

2. OWNER OPERATIONS
   - create_record: Persist a new record in one of its initial states
   - update_fields: Edit non-status fields of an editable record
   - delete_record: Remove an owner's draft

3. HISTORY
   - history: Audit events for one record
   - verify_history: Replay the events against the transition table

=============================================================================
CONSISTENCY
=============================================================================

Every write is staged into a UnitOfWork together with its audit events and
committed in one call. Record updates are compare-and-set on the status and
version read at the start of the operation, so of two concurrent actions on
the same record exactly one commits and the other raises ConflictError.

=============================================================================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from ..domain.models import (
    ActorContext, AuditEvent, InventoryItem, PriceAppeal, Product, RECORD_MODELS,
    WorkflowRecord
)
from ..domain.enums import (
    AuditEventType, EntityKind, InventoryStatus, ProductStatus, Role, WorkflowAction
)
from ..domain.errors import (
    ForbiddenError, IllegalTransitionError, InvalidStateError, MissingReasonError,
    ValidationError
)
from ..repositories.audit_repo import AuditRepository
from ..repositories.record_repo import RecordRepository, from_document
from ..repositories.record_store import RecordStore, UnitOfWork
from .audit_writer import AuditWriter
from .permission_guard import PermissionGuard
from .transition_table import INITIAL_STATES, TransitionRule, TransitionTable, get_transition_table
from ..utils.idgen import generate_product_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

# States in which the owner may still edit a record's fields
EDITABLE_STATES = {
    EntityKind.PRODUCT: frozenset({ProductStatus.DRAFT.value, ProductStatus.REJECTED.value}),
    EntityKind.INVENTORY_ITEM: frozenset({InventoryStatus.DRAFT.value, InventoryStatus.READY.value}),
}

# States from which the owner may delete a record
DELETABLE_STATES = {
    EntityKind.PRODUCT: frozenset({ProductStatus.DRAFT.value}),
    EntityKind.INVENTORY_ITEM: frozenset({InventoryStatus.DRAFT.value}),
}

# Fields the workflow manages; owner edits may never touch them
PROTECTED_FIELDS = frozenset({
    "id", "owner_id", "status", "status_reason", "version", "created_at", "updated_at",
    "commission_rate", "promoted_product_id",
})


class WorkflowEngine:
    """
    The Workflow Engine - Central orchestrator for record lifecycles

    Responsibilities:
    - Validate transitions against the TransitionTable
    - Enforce permissions via PermissionGuard
    - Commit state changes, cross-record side effects and audit events atomically
    - Create, edit and delete records on behalf of their owners
    """

    def __init__(
        self,
        store: RecordStore,
        table: Optional[TransitionTable] = None,
        settings_service=None
    ):
        self.store = store
        self.record_repo = RecordRepository(store)
        self.audit_repo = AuditRepository(store)
        self.audit_writer = AuditWriter(self.audit_repo)
        self.permission_guard = PermissionGuard()
        self.table = table or get_transition_table()
        if settings_service is None:
            from ..services.settings_service import SettingsService
            settings_service = SettingsService(store)
        self.settings_service = settings_service

    # =========================================================================
    # Transitions
    # =========================================================================

    def apply_transition(
        self,
        entity_kind: EntityKind,
        record_id: str,
        action: str,
        actor: ActorContext,
        reason: Optional[str] = None,
        correlation_id: Optional[str] = None
    ) -> WorkflowRecord:
        """
        Apply one named action to a record

        Checks run in a fixed order and nothing is written until all pass:
        record exists, action is legal in the current state, actor may take
        the edge, reason is present where required.

        Raises:
            RecordNotFoundError: Record does not exist
            IllegalTransitionError: Action not listed for the current state
            ForbiddenError: Role or ownership does not allow the edge
            MissingReasonError: Reason-required edge without a reason
            InvalidStateError: A related record no longer matches (price appeals)
            ConflictError: The record changed after it was read
        """
        kind = EntityKind(entity_kind)
        record = self.record_repo.get_or_raise(kind, record_id)
        rule = self.table.resolve(kind, record.status, self._parse_action(kind, record, action))
        self.permission_guard.require_transition(actor, record, rule)
        status_reason = self._check_reason(rule, reason)

        now = utc_now()
        changes: Dict[str, Any] = {
            "status": rule.to_state,
            "status_reason": status_reason,
            "updated_at": now,
        }
        details: Dict[str, Any] = {}
        new_product: Optional[Product] = None

        if kind == EntityKind.PRODUCT and rule.action == WorkflowAction.APPROVE:
            if record.commission_rate is None:
                changes["commission_rate"] = self.settings_service.get_default_commission_rate()
        elif kind == EntityKind.INVENTORY_ITEM and rule.action == WorkflowAction.PROMOTE:
            new_product = self._build_promoted_product(record, now)
            changes["promoted_product_id"] = new_product.id
            details["product_id"] = new_product.id

        unit = UnitOfWork()
        self.record_repo.stage_update(unit, record, changes)
        self.audit_writer.stage_transition(
            unit, record, actor,
            action=rule.action.value,
            from_state=record.status,
            to_state=rule.to_state,
            reason=status_reason,
            details=details,
            timestamp=now,
            correlation_id=correlation_id
        )

        if new_product is not None:
            self.record_repo.stage_insert(unit, new_product)
            self.audit_writer.stage_create(
                unit, new_product, actor,
                details={"source_inventory_item_id": record.id},
                correlation_id=correlation_id
            )
        elif kind == EntityKind.PRICE_APPEAL and rule.action == WorkflowAction.APPROVE:
            self._stage_price_change(unit, record, actor, now, correlation_id)

        results = self.store.commit(unit)
        updated = from_document(kind, results[0])

        logger.info(
            f"{kind.value} {record_id}: {record.status} --{rule.action.value}--> {rule.to_state}",
            extra={
                "record_id": record_id,
                "entity_kind": kind.value,
                "action": rule.action.value,
                "from_state": record.status,
                "to_state": rule.to_state,
                "actor_id": actor.user_id,
            }
        )
        return updated

    def _parse_action(self, kind: EntityKind, record: WorkflowRecord, action: str) -> WorkflowAction:
        try:
            return WorkflowAction(action)
        except ValueError:
            raise IllegalTransitionError(
                f"Unknown action '{action}'",
                details={
                    "entity_kind": kind.value,
                    "current_state": record.status,
                    "action": str(action),
                    "legal_actions": [r.action.value for r in self.table.legal_actions(kind, record.status)]
                }
            )

    def _check_reason(self, rule: TransitionRule, reason: Optional[str]) -> Optional[str]:
        """Return the reason to store; only reason-required edges keep one"""
        if not rule.requires_reason:
            return None
        if reason is None or not reason.strip():
            raise MissingReasonError(
                f"A reason is required to {rule.action.value} a {rule.entity_kind.value}",
                details={"action": rule.action.value, "entity_kind": rule.entity_kind.value}
            )
        return reason.strip()

    def _build_promoted_product(self, item: InventoryItem, now: datetime) -> Product:
        """New pending product carrying the item's catalogue fields"""
        return Product(
            id=generate_product_id(),
            owner_id=item.owner_id,
            status=ProductStatus.PENDING,
            name=item.name,
            description=item.description,
            price=item.price,
            stock=item.stock_quantity,
            weight=item.weight,
            pkg_length=item.pkg_length,
            pkg_width=item.pkg_width,
            pkg_height=item.pkg_height,
            category_name=item.category_name,
            brand_name=item.brand_name,
            commission_rate=self.settings_service.get_default_commission_rate(),
            created_at=now,
            updated_at=now
        )

    def _stage_price_change(
        self,
        unit: UnitOfWork,
        appeal: PriceAppeal,
        actor: ActorContext,
        now: datetime,
        correlation_id: Optional[str]
    ) -> None:
        """Stage the product price update that an approved appeal carries"""
        product = self.record_repo.get_or_raise(EntityKind.PRODUCT, appeal.product_id)
        if product.status != ProductStatus.PUBLISHED.value:
            raise InvalidStateError(
                f"Product {product.id} is no longer published",
                details={"product_id": product.id, "status": product.status, "price_appeal_id": appeal.id}
            )
        if product.price != appeal.old_price:
            raise InvalidStateError(
                f"Product {product.id} price changed since the appeal was filed",
                details={
                    "product_id": product.id,
                    "current_price": product.price,
                    "old_price": appeal.old_price,
                    "price_appeal_id": appeal.id,
                }
            )

        self.record_repo.stage_update(unit, product, {"price": appeal.new_price, "updated_at": now})
        self.audit_writer.stage_update(
            unit, product, actor,
            changed_fields={"price": {"old": product.price, "new": appeal.new_price}, "price_appeal_id": appeal.id},
            timestamp=now,
            correlation_id=correlation_id
        )

    # =========================================================================
    # Owner Operations
    # =========================================================================

    def create_record(
        self,
        record: WorkflowRecord,
        actor: ActorContext,
        guard_records: Optional[List[WorkflowRecord]] = None,
        correlation_id: Optional[str] = None
    ) -> WorkflowRecord:
        """
        Persist a new record in one of its kind's initial states

        `guard_records` are existing records the new one depends on; each is
        compare-and-set on its status and version in the same unit, so the
        create fails with ConflictError if any of them changed meanwhile.
        """
        if actor.role != Role.SUPPLIER or actor.user_id != record.owner_id:
            raise ForbiddenError(
                f"Only the owning supplier may create a {record.kind.value}",
                details={"entity_kind": record.kind.value}
            )
        if record.status not in INITIAL_STATES[record.kind]:
            raise ValidationError(
                f"A {record.kind.value} cannot be created in state '{record.status}'",
                details={
                    "entity_kind": record.kind.value,
                    "status": record.status,
                    "initial_states": sorted(INITIAL_STATES[record.kind]),
                }
            )

        unit = UnitOfWork()
        self.record_repo.stage_insert(unit, record)
        self.audit_writer.stage_create(unit, record, actor, correlation_id=correlation_id)
        for guarded in guard_records or []:
            self.record_repo.stage_update(unit, guarded, {"updated_at": record.created_at})

        created = from_document(record.kind, self.store.commit(unit)[0])
        logger.info(
            f"Created {record.kind.value} {record.id} in state '{record.status}'",
            extra={
                "record_id": record.id,
                "entity_kind": record.kind.value,
                "status": record.status,
                "actor_id": actor.user_id,
            }
        )
        return created

    def update_fields(
        self,
        entity_kind: EntityKind,
        record_id: str,
        actor: ActorContext,
        changes: Dict[str, Any],
        correlation_id: Optional[str] = None
    ) -> WorkflowRecord:
        """
        Edit non-status fields of the actor's own record

        Raises:
            ForbiddenError: Actor is not the owner
            ValidationError: Change touches a workflow-managed field or fails validation
            InvalidStateError: Record is not editable in its current state
        """
        kind = EntityKind(entity_kind)
        record = self.record_repo.get_or_raise(kind, record_id)
        self.permission_guard.require_owner(actor, record, "edit")

        protected = sorted(PROTECTED_FIELDS.intersection(changes))
        if protected:
            raise ValidationError(
                f"Fields {protected} are managed by the workflow",
                details={"fields": protected}
            )
        if record.status not in EDITABLE_STATES.get(kind, frozenset()):
            raise InvalidStateError(
                f"{kind.value} {record_id} cannot be edited in state '{record.status}'",
                details={"record_id": record_id, "status": record.status}
            )

        changed = {
            key: value for key, value in changes.items()
            if getattr(record, key, None) != value
        }
        if not changed:
            return record

        now = utc_now()
        try:
            RECORD_MODELS[kind].model_validate({**record.model_dump(), **changed, "updated_at": now})
        except ValueError as e:
            raise ValidationError(f"Invalid {kind.value} fields: {e}", details={"fields": sorted(changed)})

        unit = UnitOfWork()
        self.record_repo.stage_update(unit, record, {**changed, "updated_at": now})
        self.audit_writer.stage_update(
            unit, record, actor,
            changed_fields={key: {"old": getattr(record, key), "new": value} for key, value in changed.items()},
            timestamp=now,
            correlation_id=correlation_id
        )
        updated = from_document(kind, self.store.commit(unit)[0])

        logger.info(
            f"Updated {kind.value} {record_id} fields {sorted(changed)}",
            extra={"record_id": record_id, "entity_kind": kind.value, "actor_id": actor.user_id}
        )
        return updated

    def delete_record(
        self,
        entity_kind: EntityKind,
        record_id: str,
        actor: ActorContext,
        correlation_id: Optional[str] = None
    ) -> None:
        """Delete the actor's own draft; guarded by the version read here"""
        kind = EntityKind(entity_kind)
        record = self.record_repo.get_or_raise(kind, record_id)
        self.permission_guard.require_owner(actor, record, "delete")
        if record.status not in DELETABLE_STATES.get(kind, frozenset()):
            raise InvalidStateError(
                f"{kind.value} {record_id} cannot be deleted in state '{record.status}'",
                details={"record_id": record_id, "status": record.status}
            )

        unit = UnitOfWork()
        self.record_repo.stage_delete(unit, record)
        self.audit_writer.stage_delete(unit, record, actor, correlation_id=correlation_id)
        self.store.commit(unit)

        logger.info(
            f"Deleted {kind.value} {record_id}",
            extra={"record_id": record_id, "entity_kind": kind.value, "actor_id": actor.user_id}
        )

    # =========================================================================
    # History
    # =========================================================================

    def history(self, entity_kind: EntityKind, record_id: str) -> List[AuditEvent]:
        """Audit events for one record, oldest first"""
        return self.audit_repo.get_events_for_record(EntityKind(entity_kind), record_id)

    def verify_history(self, entity_kind: EntityKind, record_id: str) -> bool:
        """
        Replay a record's audit trail

        True when the trail starts with a create in an initial state and
        every status change afterwards is a table-legal edge leaving the
        state the previous event ended in.
        """
        kind = EntityKind(entity_kind)
        events = self.history(kind, record_id)
        if not events or events[0].event_type != AuditEventType.CREATE.value:
            return False
        if events[0].to_state not in INITIAL_STATES[kind]:
            return False

        state = events[0].to_state
        for event in events[1:]:
            if event.event_type == AuditEventType.TRANSITION.value:
                if event.from_state != state:
                    return False
                if not self.table.is_legal_edge(kind, event.from_state, event.action, event.to_state):
                    return False
                state = event.to_state
            elif event.event_type == AuditEventType.UPDATE.value:
                if event.to_state != state:
                    return False
            elif event.event_type == AuditEventType.DELETE.value:
                if event.from_state != state:
                    return False
            else:
                return False
        return True

