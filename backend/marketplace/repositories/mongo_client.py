"""MongoDB connection for the record store, plus the index plan it relies on"""
from typing import Dict, List, Optional, Tuple, Union

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import ConnectionFailure

from ..config.settings import settings
from .audit_repo import AUDIT_COLLECTION
from ..utils.logger import get_logger

logger = get_logger(__name__)

RECORD_COLLECTIONS = ("products", "inventory_items", "withdrawal_requests", "price_appeals")

IndexKeys = Union[str, List[Tuple[str, int]]]

# Every record collection is listed by status (queues) and by owner, oldest first
QUEUE_INDEXES: List[IndexKeys] = [
    [("status", ASCENDING), ("created_at", ASCENDING), ("id", ASCENDING)],
    [("owner_id", ASCENDING), ("created_at", ASCENDING)],
]

EXTRA_INDEXES: Dict[str, List[IndexKeys]] = {
    # One open appeal per product is checked on this pair
    "price_appeals": [[("product_id", ASCENDING), ("status", ASCENDING)]],
    AUDIT_COLLECTION: [
        [("entity_kind", ASCENDING), ("record_id", ASCENDING), ("record_version", ASCENDING)],
        [("timestamp", DESCENDING)],
        "correlation_id",
    ],
}

_client: Optional[MongoClient] = None


def _connect() -> MongoClient:
    client = MongoClient(
        settings.mongo_uri,
        serverSelectionTimeoutMS=5000,
        connectTimeoutMS=5000,
        socketTimeoutMS=30000,
        tz_aware=True,
    )
    try:
        client.admin.command("ping")
    except ConnectionFailure as e:
        logger.error(f"Record store unreachable at {settings.mongo_uri}: {e}")
        client.close()
        raise
    logger.info(f"Record store connected, database {settings.mongo_db}")
    return client


def get_database() -> Database:
    """Marketplace database on the shared client, connecting on first use"""
    global _client
    if _client is None:
        _client = _connect()
    return _client[settings.mongo_db]


def close_connection() -> None:
    global _client
    if _client is None:
        return
    _client.close()
    _client = None
    logger.info("Record store connection closed")


def create_indexes(db: Optional[Database] = None) -> None:
    """
    Apply the index plan. Safe to repeat, create_index is a no-op for
    indexes that already exist.
    """
    db = db if db is not None else get_database()

    for name in RECORD_COLLECTIONS:
        for keys in QUEUE_INDEXES:
            db[name].create_index(keys)

    for name, plan in EXTRA_INDEXES.items():
        for keys in plan:
            db[name].create_index(keys)

    logger.info(f"Indexes ensured on {len(RECORD_COLLECTIONS) + 1} collections")
