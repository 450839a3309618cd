"""
Reveri - Personal Memory Journal

Record short memories with an emotion, tags and a date, then browse them
with text search and emotion filters.
"""

__version__ = "0.1.0"

from reveri.memory import MemoryRecord
from reveri.store import MemoryStore
from reveri.storage import JsonFileStorage, SQLiteStorage, open_storage

__all__ = ["MemoryRecord", "MemoryStore", "JsonFileStorage", "SQLiteStorage", "open_storage"]
