"""Transition table: legal edges, roles, queue states"""
import pytest

from marketplace.domain.enums import EntityKind, Role, STAFF_ROLES, WorkflowAction
from marketplace.domain.errors import IllegalTransitionError
from marketplace.engine.transition_table import TransitionTable, get_transition_table


@pytest.fixture
def table() -> TransitionTable:
    return get_transition_table()


@pytest.mark.parametrize("kind, from_state, action, to_state, requires_reason", [
    (EntityKind.PRODUCT, "pending", WorkflowAction.APPROVE, "published", False),
    (EntityKind.PRODUCT, "pending", WorkflowAction.REJECT, "rejected", True),
    (EntityKind.INVENTORY_ITEM, "ready", WorkflowAction.PROMOTE, "promoted", False),
    (EntityKind.WITHDRAWAL_REQUEST, "wd-pending", WorkflowAction.APPROVE, "wd-processed", False),
    (EntityKind.WITHDRAWAL_REQUEST, "wd-pending", WorkflowAction.REJECT, "wd-rejected", True),
    (EntityKind.PRICE_APPEAL, "pending", WorkflowAction.APPROVE, "approved", False),
    (EntityKind.PRICE_APPEAL, "pending", WorkflowAction.REJECT, "rejected", True),
])
def test_review_edges(table, kind, from_state, action, to_state, requires_reason):
    rule = table.resolve(kind, from_state, action)
    assert rule.to_state == to_state
    assert rule.requires_reason is requires_reason


def test_staff_review_and_supplier_promotes(table):
    assert table.resolve(EntityKind.PRODUCT, "pending", WorkflowAction.APPROVE).allowed_roles == STAFF_ROLES
    promote = table.resolve(EntityKind.INVENTORY_ITEM, "ready", WorkflowAction.PROMOTE)
    assert promote.allowed_roles == frozenset({Role.SUPPLIER})
    assert promote.owner_only


def test_owner_edges(table):
    assert table.resolve(EntityKind.PRODUCT, "draft", WorkflowAction.SUBMIT).to_state == "pending"
    assert table.resolve(EntityKind.PRODUCT, "rejected", WorkflowAction.SUBMIT).to_state == "pending"
    assert table.resolve(EntityKind.INVENTORY_ITEM, "draft", WorkflowAction.MARK_READY).to_state == "ready"


@pytest.mark.parametrize("kind, state", [
    (EntityKind.PRODUCT, "published"),
    (EntityKind.PRODUCT, "private_inventory"),
    (EntityKind.INVENTORY_ITEM, "promoted"),
    (EntityKind.WITHDRAWAL_REQUEST, "wd-processed"),
    (EntityKind.WITHDRAWAL_REQUEST, "wd-rejected"),
    (EntityKind.PRICE_APPEAL, "approved"),
    (EntityKind.PRICE_APPEAL, "rejected"),
])
def test_terminal_states_have_no_edges(table, kind, state):
    assert table.legal_actions(kind, state) == []


def test_illegal_action_lists_legal_ones(table):
    with pytest.raises(IllegalTransitionError) as exc_info:
        table.resolve(EntityKind.PRODUCT, "published", WorkflowAction.APPROVE)
    assert exc_info.value.details["legal_actions"] == []

    with pytest.raises(IllegalTransitionError) as exc_info:
        table.resolve(EntityKind.PRODUCT, "pending", WorkflowAction.PROMOTE)
    assert sorted(exc_info.value.details["legal_actions"]) == ["approve", "reject"]


def test_is_legal_edge(table):
    assert table.is_legal_edge(EntityKind.PRICE_APPEAL, "pending", "approve", "approved")
    assert not table.is_legal_edge(EntityKind.PRICE_APPEAL, "pending", "approve", "rejected")
    assert not table.is_legal_edge(EntityKind.PRICE_APPEAL, "approved", "reject", "rejected")
    assert not table.is_legal_edge(EntityKind.PRICE_APPEAL, "pending", "escalate", "approved")


def test_awaiting_states(table):
    assert table.awaiting_states(EntityKind.PRODUCT, Role.MANAGER) == ["pending"]
    assert table.awaiting_states(EntityKind.WITHDRAWAL_REQUEST, Role.ADMINISTRATOR) == ["wd-pending"]
    assert table.awaiting_states(EntityKind.INVENTORY_ITEM, Role.SUPPLIER) == ["ready"]
    # Submit is an owner edge, not a review edge
    assert table.awaiting_states(EntityKind.PRODUCT, Role.SUPPLIER) == []
    assert table.awaiting_states(EntityKind.PRODUCT, Role.DROPSHIPPER) == []


def test_owner_scoped_queue(table):
    assert table.owner_scoped_queue(EntityKind.INVENTORY_ITEM, Role.SUPPLIER)
    assert not table.owner_scoped_queue(EntityKind.PRODUCT, Role.MANAGER)
    assert not table.owner_scoped_queue(EntityKind.PRODUCT, Role.SUPPLIER)


def test_target_states(table):
    assert table.target_states(EntityKind.PRODUCT, WorkflowAction.APPROVE) == ["published"]
    assert table.target_states(EntityKind.PRODUCT, WorkflowAction.SUBMIT) == ["pending"]
    assert table.target_states(EntityKind.WITHDRAWAL_REQUEST, WorkflowAction.REJECT) == ["wd-rejected"]
    assert table.target_states(EntityKind.WITHDRAWAL_REQUEST, WorkflowAction.PROMOTE) == []
