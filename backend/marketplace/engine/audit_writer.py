"""Audit Writer - Append-only audit events"""
from datetime import datetime
from typing import Any, Dict, Optional

from ..domain.models import ActorContext, AuditEvent, WorkflowRecord
from ..domain.enums import AuditEventType
from ..repositories.audit_repo import AuditRepository
from ..repositories.record_store import UnitOfWork
from ..utils.idgen import generate_audit_event_id
from ..utils.logger import get_correlation_id
from ..utils.time import utc_now


class AuditWriter:
    """
    Stage audit events (append-only)

    Events are never written on their own: each one is added to the unit of
    work that carries the change it describes, so the trail and the records
    commit together.
    """

    def __init__(self, repo: AuditRepository):
        self.repo = repo

    def stage_event(
        self,
        unit: UnitOfWork,
        record: WorkflowRecord,
        event_type: AuditEventType,
        actor: ActorContext,
        action: Optional[str] = None,
        from_state: Optional[str] = None,
        to_state: Optional[str] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
        correlation_id: Optional[str] = None
    ) -> AuditEvent:
        """Build an event and add it to `unit`"""
        event = AuditEvent(
            audit_event_id=generate_audit_event_id(),
            entity_kind=record.kind,
            record_id=record.id,
            event_type=event_type,
            action=action,
            from_state=from_state,
            to_state=to_state,
            actor_id=actor.user_id,
            actor_role=actor.role,
            reason=reason,
            details=details or {},
            timestamp=timestamp or utc_now(),
            record_version=record.version if event_type == AuditEventType.CREATE else record.version + 1,
            correlation_id=correlation_id or get_correlation_id()
        )
        self.repo.add_to_unit(unit, event)
        return event

    def stage_create(
        self,
        unit: UnitOfWork,
        record: WorkflowRecord,
        actor: ActorContext,
        details: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None
    ) -> AuditEvent:
        """Record creation; the initial state is the first `to_state`"""
        return self.stage_event(
            unit, record, AuditEventType.CREATE, actor,
            to_state=record.status,
            details=details,
            timestamp=record.created_at,
            correlation_id=correlation_id
        )

    def stage_transition(
        self,
        unit: UnitOfWork,
        record: WorkflowRecord,
        actor: ActorContext,
        action: str,
        from_state: str,
        to_state: str,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None,
        correlation_id: Optional[str] = None
    ) -> AuditEvent:
        return self.stage_event(
            unit, record, AuditEventType.TRANSITION, actor,
            action=action,
            from_state=from_state,
            to_state=to_state,
            reason=reason,
            details=details,
            timestamp=timestamp,
            correlation_id=correlation_id
        )

    def stage_update(
        self,
        unit: UnitOfWork,
        record: WorkflowRecord,
        actor: ActorContext,
        changed_fields: Dict[str, Any],
        timestamp: Optional[datetime] = None,
        correlation_id: Optional[str] = None
    ) -> AuditEvent:
        """Field edits; `status` is unchanged so the state stays in `to_state`"""
        return self.stage_event(
            unit, record, AuditEventType.UPDATE, actor,
            to_state=record.status,
            details={"changed_fields": changed_fields},
            timestamp=timestamp,
            correlation_id=correlation_id
        )

    def stage_delete(
        self,
        unit: UnitOfWork,
        record: WorkflowRecord,
        actor: ActorContext,
        timestamp: Optional[datetime] = None,
        correlation_id: Optional[str] = None
    ) -> AuditEvent:
        return self.stage_event(
            unit, record, AuditEventType.DELETE, actor,
            from_state=record.status,
            timestamp=timestamp,
            correlation_id=correlation_id
        )
