"""Workflow Engine - Transition table, permission checks and atomic commits"""
from .transition_table import TransitionRule, TransitionTable, get_transition_table
from .permission_guard import PermissionGuard
from .audit_writer import AuditWriter
from .engine import WorkflowEngine

__all__ = [
    "TransitionRule",
    "TransitionTable",
    "get_transition_table",
    "PermissionGuard",
    "AuditWriter",
    "WorkflowEngine",
]
