"""Storage layer for topic maps."""

from topicmap.config import Settings, settings
from topicmap.storage.base import PersistentStore, dump_snapshot, parse_snapshot
from topicmap.storage.json_store import JsonFileStore
from topicmap.storage.memory_store import MemoryStore


def create_store(config: Settings | None = None) -> PersistentStore:
    """Build the persistent store selected by settings."""
    config = config or settings
    if config.store_backend == "memory":
        return MemoryStore()
    return JsonFileStore(config.store_path)


__all__ = [
    "PersistentStore",
    "MemoryStore",
    "JsonFileStore",
    "create_store",
    "dump_snapshot",
    "parse_snapshot",
]
