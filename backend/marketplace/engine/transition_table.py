"""Transition Table - Legal (state, action) -> state edges per entity kind"""
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict

from ..domain.enums import (
    EntityKind, InventoryStatus, PriceAppealStatus, ProductStatus, REVIEW_ACTIONS,
    Role, STAFF_ROLES, WithdrawalStatus, WorkflowAction
)
from ..domain.errors import IllegalTransitionError
from ..utils.logger import get_logger

logger = get_logger(__name__)

SUPPLIER_ONLY = frozenset({Role.SUPPLIER})


class TransitionRule(BaseModel):
    """One legal edge of a record lifecycle"""
    model_config = ConfigDict(frozen=True)

    entity_kind: EntityKind
    from_state: str
    action: WorkflowAction
    to_state: str
    allowed_roles: FrozenSet[Role]
    requires_reason: bool = False
    owner_only: bool = False


def _rule(kind, from_state, action, to_state, roles, requires_reason=False, owner_only=False) -> TransitionRule:
    return TransitionRule(
        entity_kind=kind,
        from_state=from_state.value,
        action=action,
        to_state=to_state.value,
        allowed_roles=roles,
        requires_reason=requires_reason,
        owner_only=owner_only,
    )


TRANSITION_RULES: Tuple[TransitionRule, ...] = (
    # Review edges
    _rule(EntityKind.PRODUCT, ProductStatus.PENDING, WorkflowAction.APPROVE,
          ProductStatus.PUBLISHED, STAFF_ROLES),
    _rule(EntityKind.PRODUCT, ProductStatus.PENDING, WorkflowAction.REJECT,
          ProductStatus.REJECTED, STAFF_ROLES, requires_reason=True),
    _rule(EntityKind.INVENTORY_ITEM, InventoryStatus.READY, WorkflowAction.PROMOTE,
          InventoryStatus.PROMOTED, SUPPLIER_ONLY, owner_only=True),
    _rule(EntityKind.WITHDRAWAL_REQUEST, WithdrawalStatus.PENDING, WorkflowAction.APPROVE,
          WithdrawalStatus.PROCESSED, STAFF_ROLES),
    _rule(EntityKind.WITHDRAWAL_REQUEST, WithdrawalStatus.PENDING, WorkflowAction.REJECT,
          WithdrawalStatus.REJECTED, STAFF_ROLES, requires_reason=True),
    _rule(EntityKind.PRICE_APPEAL, PriceAppealStatus.PENDING, WorkflowAction.APPROVE,
          PriceAppealStatus.APPROVED, STAFF_ROLES),
    _rule(EntityKind.PRICE_APPEAL, PriceAppealStatus.PENDING, WorkflowAction.REJECT,
          PriceAppealStatus.REJECTED, STAFF_ROLES, requires_reason=True),
    # Owner edges
    _rule(EntityKind.PRODUCT, ProductStatus.DRAFT, WorkflowAction.SUBMIT,
          ProductStatus.PENDING, SUPPLIER_ONLY, owner_only=True),
    _rule(EntityKind.PRODUCT, ProductStatus.REJECTED, WorkflowAction.SUBMIT,
          ProductStatus.PENDING, SUPPLIER_ONLY, owner_only=True),
    _rule(EntityKind.INVENTORY_ITEM, InventoryStatus.DRAFT, WorkflowAction.MARK_READY,
          InventoryStatus.READY, SUPPLIER_ONLY, owner_only=True),
)


# States a record may be created in by its owner
INITIAL_STATES: Dict[EntityKind, FrozenSet[str]] = {
    EntityKind.PRODUCT: frozenset({ProductStatus.DRAFT.value, ProductStatus.PENDING.value}),
    EntityKind.INVENTORY_ITEM: frozenset({InventoryStatus.DRAFT.value, InventoryStatus.READY.value}),
    EntityKind.WITHDRAWAL_REQUEST: frozenset({WithdrawalStatus.PENDING.value}),
    EntityKind.PRICE_APPEAL: frozenset({PriceAppealStatus.PENDING.value}),
}


class TransitionTable:
    """
    Immutable lookup over the transition rules.

    Pure and side-effect free; one instance is safe to share between any
    number of concurrent callers.
    """

    def __init__(self, rules: Iterable[TransitionRule] = TRANSITION_RULES):
        index: Dict[Tuple[EntityKind, str], Tuple[TransitionRule, ...]] = {}
        for rule in rules:
            key = (rule.entity_kind, rule.from_state)
            index[key] = index.get(key, ()) + (rule,)
        self._index = index

    def legal_actions(self, entity_kind: EntityKind, current_state: str) -> List[TransitionRule]:
        """All edges leaving `current_state` for the given kind"""
        return list(self._index.get((EntityKind(entity_kind), str(current_state)), ()))

    def find(
        self,
        entity_kind: EntityKind,
        current_state: str,
        action: WorkflowAction
    ) -> Optional[TransitionRule]:
        for rule in self.legal_actions(entity_kind, current_state):
            if rule.action == action:
                return rule
        return None

    def resolve(
        self,
        entity_kind: EntityKind,
        current_state: str,
        action: WorkflowAction
    ) -> TransitionRule:
        """
        Resolve the edge for an action taken in the current state

        Raises:
            IllegalTransitionError: If the action is not listed for that state
        """
        rule = self.find(entity_kind, current_state, action)
        if rule is None:
            raise IllegalTransitionError(
                f"Action '{WorkflowAction(action).value}' is not allowed for "
                f"{EntityKind(entity_kind).value} in state '{current_state}'",
                details={
                    "entity_kind": EntityKind(entity_kind).value,
                    "current_state": str(current_state),
                    "action": WorkflowAction(action).value,
                    "legal_actions": [r.action.value for r in self.legal_actions(entity_kind, current_state)]
                }
            )
        return rule

    def is_legal_edge(
        self,
        entity_kind: EntityKind,
        from_state: str,
        action: str,
        to_state: str
    ) -> bool:
        """Check a recorded (from, action, to) triple against the table"""
        try:
            rule = self.find(entity_kind, from_state, WorkflowAction(action))
        except ValueError:
            return False
        return rule is not None and rule.to_state == to_state

    def target_states(self, entity_kind: EntityKind, action: WorkflowAction) -> List[str]:
        """States `action` can lead to for this kind, sorted"""
        return sorted({
            rule.to_state
            for (kind, _), rules in self._index.items()
            if kind == EntityKind(entity_kind)
            for rule in rules
            if rule.action == WorkflowAction(action)
        })

    def awaiting_states(self, entity_kind: EntityKind, role: Role) -> List[str]:
        """
        States in which records of this kind wait for a review action that
        `role` may take. Sorted for stable queries.
        """
        states = {
            rule.from_state
            for (kind, _), rules in self._index.items()
            if kind == EntityKind(entity_kind)
            for rule in rules
            if rule.action in REVIEW_ACTIONS and Role(role) in rule.allowed_roles
        }
        return sorted(states)

    def owner_scoped_queue(self, entity_kind: EntityKind, role: Role) -> bool:
        """True when the role's review edges on this kind are limited to its own records"""
        rules = [
            rule
            for rules in self._index.values()
            for rule in rules
            if rule.entity_kind == EntityKind(entity_kind)
            and rule.action in REVIEW_ACTIONS
            and Role(role) in rule.allowed_roles
        ]
        return bool(rules) and all(rule.owner_only for rule in rules)


_default_table: Optional[TransitionTable] = None


def get_transition_table() -> TransitionTable:
    """Get the shared transition table"""
    global _default_table
    if _default_table is None:
        _default_table = TransitionTable()
        logger.info(f"Loaded transition table with {len(TRANSITION_RULES)} rules")
    return _default_table
