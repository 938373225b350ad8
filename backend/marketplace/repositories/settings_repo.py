"""Settings Repository - Platform-wide configuration document"""
from datetime import datetime
from typing import Any, Dict, Optional

from .record_store import RecordStore
from ..domain.errors import ConflictError

SETTINGS_COLLECTION = "platform_settings"
SETTINGS_DOCUMENT_ID = "global"


class SettingsRepository:
    """Repository for the single platform settings document"""

    def __init__(self, store: RecordStore):
        self.store = store

    def get_document(self) -> Optional[Dict[str, Any]]:
        return self.store.get(SETTINGS_COLLECTION, SETTINGS_DOCUMENT_ID)

    def create_document(self, values: Dict[str, str], now: datetime) -> Dict[str, Any]:
        """Seed the document; a concurrent seed wins and is returned instead"""
        try:
            return self.store.insert(
                SETTINGS_COLLECTION,
                SETTINGS_DOCUMENT_ID,
                {"id": SETTINGS_DOCUMENT_ID, "values": values, "version": 1, "updated_at": now, "updated_by": None}
            )
        except ConflictError:
            return self.get_document()

    def update_values(
        self,
        values: Dict[str, str],
        expected_version: int,
        updated_by: str,
        now: datetime
    ) -> Dict[str, Any]:
        """Replace the values map if nobody else changed it since `expected_version`"""
        return self.store.compare_and_set(
            SETTINGS_COLLECTION,
            SETTINGS_DOCUMENT_ID,
            expected={"version": expected_version},
            changes={"values": values, "updated_at": now, "updated_by": updated_by}
        )
