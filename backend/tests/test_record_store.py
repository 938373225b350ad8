"""In-memory record store: units of work and compare-and-set"""
import pytest

from marketplace.domain.errors import ConflictError, RecordNotFoundError
from marketplace.repositories.record_store import InMemoryRecordStore, UnitOfWork


@pytest.fixture
def seeded() -> InMemoryRecordStore:
    store = InMemoryRecordStore()
    store.insert("things", "a", {"id": "a", "status": "pending", "version": 1, "created_at": 2})
    store.insert("things", "b", {"id": "b", "status": "pending", "version": 1, "created_at": 1})
    return store


def test_compare_and_set_bumps_version(seeded):
    doc = seeded.compare_and_set("things", "a", {"status": "pending", "version": 1}, {"status": "done"})
    assert doc["status"] == "done"
    assert doc["version"] == 2


def test_stale_expectation_conflicts(seeded):
    seeded.compare_and_set("things", "a", {"version": 1}, {"status": "done"})
    with pytest.raises(ConflictError) as exc_info:
        seeded.compare_and_set("things", "a", {"version": 1}, {"status": "other"})
    assert exc_info.value.retryable
    assert exc_info.value.details["actual"] == {"version": 2}
    assert seeded.get("things", "a")["status"] == "done"


def test_missing_record(seeded):
    with pytest.raises(RecordNotFoundError):
        seeded.compare_and_set("things", "zzz", {"version": 1}, {"status": "done"})


def test_version_is_store_managed():
    with pytest.raises(ValueError):
        UnitOfWork().compare_and_set("things", "a", {"version": 1}, {"version": 5})


def test_unit_applies_nothing_when_one_expectation_fails(seeded):
    unit = (
        UnitOfWork()
        .compare_and_set("things", "a", {"status": "pending"}, {"status": "done"})
        .insert("things", "c", {"id": "c", "status": "new", "version": 1, "created_at": 3})
        .compare_and_set("things", "b", {"status": "rejected"}, {"status": "done"})
    )
    with pytest.raises(ConflictError):
        seeded.commit(unit)

    assert seeded.get("things", "a")["status"] == "pending"
    assert seeded.get("things", "c") is None


def test_insert_existing_id_conflicts(seeded):
    with pytest.raises(ConflictError):
        seeded.insert("things", "a", {"id": "a"})


def test_delete_guarded_by_expectation(seeded):
    with pytest.raises(ConflictError):
        seeded.delete("things", "a", {"version": 7})
    seeded.delete("things", "a", {"version": 1})
    assert seeded.get("things", "a") is None


def test_find_filters_and_sorts(seeded):
    seeded.insert("things", "c", {"id": "c", "status": "done", "version": 1, "created_at": 0})
    docs = seeded.find("things", {"status": {"$in": ["pending"]}})
    assert [d["id"] for d in docs] == ["b", "a"]


def test_documents_are_copied(seeded):
    doc = seeded.get("things", "a")
    doc["status"] = "tampered"
    assert seeded.get("things", "a")["status"] == "pending"
