"""MongoDB Record Store - Transactions and conditional updates"""
from typing import Any, Dict, List, Optional, Sequence
from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, DuplicateKeyError, OperationFailure

from .mongo_client import get_database
from .record_store import DEFAULT_SORT, Delete, Insert, RecordStore, UnitOfWork
from ..config.settings import settings
from ..domain.errors import ConflictError, RecordNotFoundError, StoreUnavailableError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _strip(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is not None:
        doc.pop("_id", None)
    return doc


class MongoRecordStore(RecordStore):
    """
    RecordStore backed by MongoDB.

    Single-document expectations go into the `find_one_and_update` filter, so
    the server evaluates compare-and-set atomically. Units with more than one
    mutation run inside a multi-document transaction.
    """

    def __init__(self, database: Optional[Database] = None):
        self._database = database

    @property
    def _db(self) -> Database:
        # Connect on first use so an unreachable server surfaces as STORE_UNAVAILABLE
        if self._database is None:
            try:
                self._database = get_database()
            except ConnectionFailure as e:
                raise self._unavailable(e)
        return self._database

    def _unavailable(self, exc: Exception) -> StoreUnavailableError:
        logger.error(f"MongoDB unavailable: {exc}")
        return StoreUnavailableError("Record store is unavailable. Please retry.", details={"reason": str(exc)})

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            return _strip(self._db[collection].find_one({"_id": record_id}))
        except ConnectionFailure as e:
            raise self._unavailable(e)

    def find(
        self,
        collection: str,
        query: Dict[str, Any],
        sort: Sequence[str] = DEFAULT_SORT
    ) -> List[Dict[str, Any]]:
        try:
            cursor = self._db[collection].find(query).sort([(key, ASCENDING) for key in sort])
            return [_strip(doc) for doc in cursor]
        except ConnectionFailure as e:
            raise self._unavailable(e)

    def _apply(self, unit: UnitOfWork, session=None) -> List[Optional[Dict[str, Any]]]:
        results = []
        for mutation in unit.mutations:
            col = self._db[mutation.collection]
            if isinstance(mutation, Insert):
                doc = dict(mutation.document)
                doc["_id"] = mutation.record_id
                try:
                    col.insert_one(doc, session=session)
                except DuplicateKeyError:
                    raise ConflictError(
                        f"Record {mutation.record_id} already exists",
                        details={"record_id": mutation.record_id}
                    )
                results.append(dict(mutation.document))
                continue

            condition = {"_id": mutation.record_id, **mutation.expected}
            if isinstance(mutation, Delete):
                if col.delete_one(condition, session=session).deleted_count == 1:
                    results.append(None)
                    continue
            else:
                after = col.find_one_and_update(
                    condition,
                    {"$set": mutation.changes, "$inc": {"version": 1}},
                    session=session,
                    return_document=ReturnDocument.AFTER
                )
                if after is not None:
                    results.append(_strip(after))
                    continue

            current = col.find_one({"_id": mutation.record_id}, session=session)
            if current is None:
                raise RecordNotFoundError(
                    f"Record {mutation.record_id} not found",
                    details={"record_id": mutation.record_id}
                )
            raise ConflictError(
                f"Record {mutation.record_id} was modified concurrently. Refresh and try again.",
                details={
                    "record_id": mutation.record_id,
                    "expected": mutation.expected,
                    "actual": {key: current.get(key) for key in mutation.expected},
                }
            )
        return results

    def commit(self, unit: UnitOfWork) -> List[Optional[Dict[str, Any]]]:
        try:
            if len(unit) == 1:
                return self._apply(unit)
            with self._db.client.start_session() as session:
                return session.with_transaction(lambda s: self._apply(unit, session=s))
        except ConnectionFailure as e:
            raise self._unavailable(e)
        except OperationFailure as e:
            if e.has_error_label("TransientTransactionError"):
                raise ConflictError(
                    "Concurrent transaction on the same records. Refresh and try again.",
                    details={"reason": str(e)}
                )
            raise

    def health_check(self) -> Dict[str, Any]:
        try:
            self._db.client.admin.command("ping")
        except (ConnectionFailure, StoreUnavailableError) as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {"status": "unhealthy", "backend": "mongo", "database": settings.mongo_db, "error": str(e)}
        return {"status": "healthy", "backend": "mongo", "database": self._db.name, "connection": "ok"}
