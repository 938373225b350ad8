"""Record Store - Document persistence with atomic compare-and-set units of work"""
import copy
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from ..domain.errors import ConflictError, RecordNotFoundError
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SORT = ("created_at", "id")


@dataclass(frozen=True)
class Insert:
    """Create a new document; fails if the ID is taken"""
    collection: str
    record_id: str
    document: Dict[str, Any]


@dataclass(frozen=True)
class CompareAndSet:
    """Apply `changes` only if every field in `expected` still matches"""
    collection: str
    record_id: str
    expected: Dict[str, Any]
    changes: Dict[str, Any]


@dataclass(frozen=True)
class Delete:
    """Remove a document only if every field in `expected` still matches"""
    collection: str
    record_id: str
    expected: Dict[str, Any]


Mutation = Union[Insert, CompareAndSet, Delete]


@dataclass
class UnitOfWork:
    """A set of mutations that commit together or not at all"""
    mutations: List[Mutation] = field(default_factory=list)

    def insert(self, collection: str, record_id: str, document: Dict[str, Any]) -> "UnitOfWork":
        self.mutations.append(Insert(collection, record_id, dict(document)))
        return self

    def compare_and_set(
        self,
        collection: str,
        record_id: str,
        expected: Dict[str, Any],
        changes: Dict[str, Any]
    ) -> "UnitOfWork":
        if "version" in changes:
            raise ValueError("version is managed by the store")
        self.mutations.append(CompareAndSet(collection, record_id, dict(expected), dict(changes)))
        return self

    def delete(self, collection: str, record_id: str, expected: Dict[str, Any]) -> "UnitOfWork":
        self.mutations.append(Delete(collection, record_id, dict(expected)))
        return self

    def __len__(self) -> int:
        return len(self.mutations)


class RecordStore(ABC):
    """
    Abstract document store.

    `commit` is the only multi-document write path: either every mutation in
    the unit is applied, or none is and the first failed expectation is
    raised. Each applied compare-and-set bumps the document `version` by one.
    """

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load one document or None"""

    @abstractmethod
    def find(
        self,
        collection: str,
        query: Dict[str, Any],
        sort: Sequence[str] = DEFAULT_SORT
    ) -> List[Dict[str, Any]]:
        """Query with equality and `$in` filters, ascending sort"""

    @abstractmethod
    def commit(self, unit: UnitOfWork) -> List[Optional[Dict[str, Any]]]:
        """
        Apply all mutations atomically.

        Returns the resulting document for each mutation in order (the
        inserted or updated document, None for deletions).
        """

    @abstractmethod
    def health_check(self) -> Dict[str, Any]:
        """Report store health"""

    def insert(self, collection: str, record_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a single document"""
        return self.commit(UnitOfWork().insert(collection, record_id, document))[0]

    def compare_and_set(
        self,
        collection: str,
        record_id: str,
        expected: Dict[str, Any],
        changes: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Compare-and-set a single document"""
        return self.commit(UnitOfWork().compare_and_set(collection, record_id, expected, changes))[0]

    def delete(self, collection: str, record_id: str, expected: Dict[str, Any]) -> None:
        """Delete a single document if `expected` still matches"""
        self.commit(UnitOfWork().delete(collection, record_id, expected))


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, condition in query.items():
        value = document.get(key)
        if isinstance(condition, dict) and "$in" in condition:
            if value not in condition["$in"]:
                return False
        elif value != condition:
            return False
    return True


def _conflict(mutation: Union[CompareAndSet, Delete], current: Dict[str, Any]) -> ConflictError:
    return ConflictError(
        f"Record {mutation.record_id} was modified concurrently. Refresh and try again.",
        details={
            "record_id": mutation.record_id,
            "expected": mutation.expected,
            "actual": {key: current.get(key) for key in mutation.expected},
        }
    )


class InMemoryRecordStore(RecordStore):
    """
    Process-local store guarded by a single lock.

    Used for development and tests; every document is deep-copied in and out
    so callers never share mutable state with the store.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.RLock()

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._collection(collection).get(record_id)
            return copy.deepcopy(doc) if doc is not None else None

    def find(
        self,
        collection: str,
        query: Dict[str, Any],
        sort: Sequence[str] = DEFAULT_SORT
    ) -> List[Dict[str, Any]]:
        with self._lock:
            docs = [
                copy.deepcopy(doc)
                for doc in self._collection(collection).values()
                if _matches(doc, query)
            ]
        return sorted(docs, key=lambda d: tuple(d.get(key) for key in sort))

    def commit(self, unit: UnitOfWork) -> List[Optional[Dict[str, Any]]]:
        with self._lock:
            # Check every expectation before touching anything
            for mutation in unit.mutations:
                current = self._collection(mutation.collection).get(mutation.record_id)
                if isinstance(mutation, Insert):
                    if current is not None:
                        raise ConflictError(
                            f"Record {mutation.record_id} already exists",
                            details={"record_id": mutation.record_id}
                        )
                elif current is None:
                    raise RecordNotFoundError(
                        f"Record {mutation.record_id} not found",
                        details={"record_id": mutation.record_id}
                    )
                elif not _matches(current, mutation.expected):
                    raise _conflict(mutation, current)

            results: List[Optional[Dict[str, Any]]] = []
            for mutation in unit.mutations:
                col = self._collection(mutation.collection)
                if isinstance(mutation, Insert):
                    col[mutation.record_id] = copy.deepcopy(mutation.document)
                elif isinstance(mutation, Delete):
                    del col[mutation.record_id]
                    results.append(None)
                    continue
                else:
                    doc = col[mutation.record_id]
                    doc.update(copy.deepcopy(mutation.changes))
                    doc["version"] = doc.get("version", 0) + 1
                results.append(copy.deepcopy(col[mutation.record_id]))
            return results

    def health_check(self) -> Dict[str, Any]:
        with self._lock:
            counts = {name: len(docs) for name, docs in self._collections.items()}
        return {"status": "healthy", "backend": "memory", "collections": counts}
