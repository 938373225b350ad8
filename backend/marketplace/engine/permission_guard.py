"""Permission Guard - Authorization enforcement for all actions"""
from typing import Iterable

from ..domain.models import ActorContext, WorkflowRecord
from ..domain.enums import EntityKind, InventoryStatus, Role
from ..domain.errors import ForbiddenError
from .transition_table import TransitionRule
from ..utils.logger import get_logger

logger = get_logger(__name__)


class PermissionGuard:
    """
    Permission enforcement for workflow records

    Rules:
    - A transition requires the actor's role to be listed on the edge
    - Owner-scoped edges (submit, mark_ready, promote) additionally require
      the actor to own the record
    - Owners see their own records; managers and administrators see every
      record except private inventory that was never promoted
    - Dropshippers never see supplier-side records
    """

    def is_owner(self, actor: ActorContext, record: WorkflowRecord) -> bool:
        return actor.user_id == record.owner_id

    def can_transition(self, actor: ActorContext, record: WorkflowRecord, rule: TransitionRule) -> bool:
        """Check if actor may take the edge on this record"""
        if actor.role not in rule.allowed_roles:
            return False
        if rule.owner_only and not self.is_owner(actor, record):
            return False
        return True

    def require_transition(self, actor: ActorContext, record: WorkflowRecord, rule: TransitionRule) -> None:
        """
        Raises:
            ForbiddenError: If the role or ownership does not allow the edge
        """
        if self.can_transition(actor, record, rule):
            return

        logger.warning(
            f"Transition '{rule.action.value}' denied for {actor.role.value} {actor.user_id}",
            extra={
                "record_id": record.id,
                "entity_kind": record.kind.value,
                "action": rule.action.value,
                "actor_id": actor.user_id,
            }
        )
        if actor.role not in rule.allowed_roles:
            raise ForbiddenError(
                f"Role '{actor.role.value}' may not {rule.action.value} a {record.kind.value}",
                details={
                    "action": rule.action.value,
                    "role": actor.role.value,
                    "allowed_roles": sorted(role.value for role in rule.allowed_roles),
                }
            )
        raise ForbiddenError(
            f"Only the owner may {rule.action.value} this {record.kind.value}",
            details={"action": rule.action.value, "record_id": record.id}
        )

    def can_view(self, actor: ActorContext, record: WorkflowRecord) -> bool:
        """Check if actor can view record"""
        if self.is_owner(actor, record):
            return True
        if not actor.is_staff:
            return False
        # Inventory stays private to its supplier until it is promoted
        if record.kind == EntityKind.INVENTORY_ITEM:
            return record.status == InventoryStatus.PROMOTED.value
        return True

    def require_owner(self, actor: ActorContext, record: WorkflowRecord, operation: str) -> None:
        """
        Raises:
            ForbiddenError: If actor does not own the record
        """
        if not self.is_owner(actor, record):
            raise ForbiddenError(
                f"Only the owner may {operation} this {record.kind.value}",
                details={"record_id": record.id, "operation": operation}
            )

    def require_role(self, actor: ActorContext, roles: Iterable[Role], operation: str) -> None:
        """
        Raises:
            ForbiddenError: If actor's role is not in `roles`
        """
        allowed = frozenset(Role(role) for role in roles)
        if actor.role not in allowed:
            raise ForbiddenError(
                f"Role '{actor.role.value}' may not {operation}",
                details={"operation": operation, "allowed_roles": sorted(role.value for role in allowed)}
            )
