"""Audit Repository - Data access for audit events"""
from typing import List

from .record_store import RecordStore, UnitOfWork
from ..domain.enums import EntityKind
from ..domain.models import AuditEvent

AUDIT_COLLECTION = "audit_events"

# Compare-and-set makes record_version strictly increasing per record, unlike timestamps
RECORD_TRAIL_SORT = ("record_version", "timestamp", "audit_event_id")


class AuditRepository:
    """Repository for audit event operations (append-only)"""

    def __init__(self, store: RecordStore):
        self.store = store

    def add_to_unit(self, unit: UnitOfWork, event: AuditEvent) -> None:
        """Stage an event in the same unit as the change it describes"""
        unit.insert(AUDIT_COLLECTION, event.audit_event_id, event.model_dump())

    def get_events_for_record(self, entity_kind: EntityKind, record_id: str) -> List[AuditEvent]:
        """Get audit events for one record, oldest first"""
        query = {"entity_kind": EntityKind(entity_kind).value, "record_id": record_id}
        docs = self.store.find(AUDIT_COLLECTION, query, sort=RECORD_TRAIL_SORT)
        return [AuditEvent.model_validate(doc) for doc in docs]

    def get_events_by_correlation_id(self, correlation_id: str) -> List[AuditEvent]:
        """Get audit events by correlation ID"""
        docs = self.store.find(AUDIT_COLLECTION, {"correlation_id": correlation_id}, sort=("timestamp",))
        return [AuditEvent.model_validate(doc) for doc in docs]
