"""Repository modules - Data access layer"""
from .record_store import RecordStore, InMemoryRecordStore, UnitOfWork
from .record_repo import RecordRepository
from .audit_repo import AuditRepository
from .settings_repo import SettingsRepository
from .store_factory import get_record_store, set_record_store

__all__ = [
    "RecordStore",
    "InMemoryRecordStore",
    "UnitOfWork",
    "RecordRepository",
    "AuditRepository",
    "SettingsRepository",
    "get_record_store",
    "set_record_store",
]
