"""Record Repository - Typed access to workflow-governed records"""
from typing import Any, Dict, List, Optional, Sequence

from .record_store import RecordStore, UnitOfWork
from ..domain.enums import EntityKind
from ..domain.errors import RecordNotFoundError
from ..domain.models import RECORD_MODELS, WorkflowRecord

COLLECTION_BY_KIND = {
    EntityKind.PRODUCT: "products",
    EntityKind.INVENTORY_ITEM: "inventory_items",
    EntityKind.WITHDRAWAL_REQUEST: "withdrawal_requests",
    EntityKind.PRICE_APPEAL: "price_appeals",
}


def collection_for(kind: EntityKind) -> str:
    return COLLECTION_BY_KIND[EntityKind(kind)]


def to_document(record: WorkflowRecord) -> Dict[str, Any]:
    """Serialize a record for the store (datetimes kept native for sorting)"""
    return record.model_dump()


def from_document(kind: EntityKind, doc: Dict[str, Any]) -> WorkflowRecord:
    return RECORD_MODELS[EntityKind(kind)].model_validate(doc)


class RecordRepository:
    """Repository for workflow records of every kind"""

    def __init__(self, store: RecordStore):
        self.store = store

    def get(self, kind: EntityKind, record_id: str) -> Optional[WorkflowRecord]:
        """Get record by ID"""
        doc = self.store.get(collection_for(kind), record_id)
        if doc is None:
            return None
        return from_document(kind, doc)

    def get_or_raise(self, kind: EntityKind, record_id: str) -> WorkflowRecord:
        """Get record by ID or raise error"""
        record = self.get(kind, record_id)
        if record is None:
            raise RecordNotFoundError(
                f"{EntityKind(kind).value} {record_id} not found",
                details={"entity_kind": EntityKind(kind).value, "record_id": record_id}
            )
        return record

    def list_by_status(
        self,
        kind: EntityKind,
        statuses: Sequence[str],
        owner_id: Optional[str] = None
    ) -> List[WorkflowRecord]:
        """List records in any of `statuses`, oldest first"""
        query: Dict[str, Any] = {"status": {"$in": list(statuses)}}
        if owner_id is not None:
            query["owner_id"] = owner_id
        docs = self.store.find(collection_for(kind), query)
        return [from_document(kind, doc) for doc in docs]

    def list_for_owner(
        self,
        kind: EntityKind,
        owner_id: str,
        status: Optional[str] = None
    ) -> List[WorkflowRecord]:
        """List an owner's records, oldest first"""
        query: Dict[str, Any] = {"owner_id": owner_id}
        if status:
            query["status"] = status
        docs = self.store.find(collection_for(kind), query)
        return [from_document(kind, doc) for doc in docs]

    def find(self, kind: EntityKind, query: Dict[str, Any]) -> List[WorkflowRecord]:
        return [from_document(kind, doc) for doc in self.store.find(collection_for(kind), query)]

    # Staging helpers: callers commit the unit together with its audit events

    def stage_insert(self, unit: UnitOfWork, record: WorkflowRecord) -> None:
        unit.insert(collection_for(record.kind), record.id, to_document(record))

    def stage_update(self, unit: UnitOfWork, record: WorkflowRecord, changes: Dict[str, Any]) -> None:
        """Stage a change guarded by the status and version the caller read"""
        unit.compare_and_set(
            collection_for(record.kind),
            record.id,
            expected={"status": record.status, "version": record.version},
            changes=changes
        )

    def stage_delete(self, unit: UnitOfWork, record: WorkflowRecord) -> None:
        """Stage a deletion guarded by the status and version the caller read"""
        unit.delete(
            collection_for(record.kind),
            record.id,
            expected={"status": record.status, "version": record.version}
        )
