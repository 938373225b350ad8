"""Record Store selection based on configuration"""
from typing import Optional

from .record_store import InMemoryRecordStore, RecordStore
from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global store instance
_store: Optional[RecordStore] = None


def get_record_store() -> RecordStore:
    """Get or create the configured record store"""
    global _store
    if _store is None:
        if settings.uses_memory_store:
            _store = InMemoryRecordStore()
        else:
            from .mongo_store import MongoRecordStore
            _store = MongoRecordStore()
        logger.info(f"Using record store: {type(_store).__name__}")
    return _store


def set_record_store(store: Optional[RecordStore]) -> None:
    """Replace the global store (None resets to configuration)"""
    global _store
    _store = store
