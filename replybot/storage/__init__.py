"""Key-value persistence used by the rule store."""

from replybot.storage.kv import InMemoryStore, JsonFileStore, KeyValueStore

__all__ = [
    "KeyValueStore",
    "JsonFileStore",
    "InMemoryStore",
]
