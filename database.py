"""
Snapshot storage.

Each logical key (users, currentUser, complaints) holds one whole value that
is read and replaced as a unit. MongoDB keeps one document per key; without a
configured database the values live in process memory.
"""
import copy
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pymongo import MongoClient
from pymongo.database import Database

from config import Settings
from logging_config import get_logger

logger = get_logger(__name__)

USERS_KEY = "users"
CURRENT_USER_KEY = "currentUser"
COMPLAINTS_KEY = "complaints"


class SnapshotStore:
    backend = "abstract"

    def read(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def write(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> list:
        raise NotImplementedError


class MemorySnapshotStore(SnapshotStore):
    backend = "memory"

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._lock = threading.Lock()

    def read(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._data:
                return default
            return copy.deepcopy(self._data[key])

    def write(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)
        logger.debug(f"Snapshot written: {key}")

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list:
        with self._lock:
            return sorted(self._data)


class MongoSnapshotStore(SnapshotStore):
    backend = "mongodb"

    def __init__(self, db: Database, collection: str = "snapshot"):
        self.db = db
        self.collection = db[collection]

    def read(self, key: str, default: Any = None) -> Any:
        doc = self.collection.find_one({"_id": key})
        if not doc:
            return default
        return doc.get("value", default)

    def write(self, key: str, value: Any) -> None:
        self.collection.replace_one(
            {"_id": key},
            {"_id": key, "value": value, "updated_at": datetime.now(timezone.utc)},
            upsert=True,
        )
        logger.debug(f"Snapshot written: {key}")

    def remove(self, key: str) -> None:
        self.collection.delete_one({"_id": key})

    def keys(self) -> list:
        return sorted(doc["_id"] for doc in self.collection.find({}, {"_id": 1}))


def create_store(settings: Settings) -> SnapshotStore:
    if settings.mongo_configured:
        client = MongoClient(settings.DATABASE_URL)
        logger.info(f"Using MongoDB snapshot store: {settings.DATABASE_NAME}.{settings.SNAPSHOT_COLLECTION}")
        return MongoSnapshotStore(client[settings.DATABASE_NAME], settings.SNAPSHOT_COLLECTION)
    logger.warning("DATABASE_URL/DATABASE_NAME not set, keeping snapshots in memory")
    return MemorySnapshotStore()


def database_status(store: SnapshotStore, settings: Settings) -> dict:
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if settings.DATABASE_URL else "❌ Not Set",
        "database_name": "✅ Set" if settings.DATABASE_NAME else "❌ Not Set",
        "store": store.backend,
        "connection_status": "Not Connected",
        "snapshots": [],
    }
    try:
        if isinstance(store, MongoSnapshotStore):
            store.db.command("ping")
            response["database"] = "✅ Connected"
            response["connection_status"] = "Connected"
        else:
            response["database"] = "⚠️ In-memory store"
        response["snapshots"] = store.keys()[:10]
    except Exception as e:
        response["database"] = f"⚠️ {str(e)[:80]}"
    return response
