"""
Memory store: the authoritative in-memory collection plus queries over it.

Every mutation is applied in memory first and then written through to the
storage adapter as a whole-collection save. Queries never touch storage.
"""
import threading
from collections import Counter
from typing import Any, Callable, Dict, List, Optional, Union
import logging

from reveri.emotions import DEFAULT_EMOTION
from reveri.errors import PersistenceWriteFailed, Rejected, StoreNotReady
from reveri.memory import (
    DateInput,
    MemoryRecord,
    TagsInput,
    coerce_date,
    new_memory_id,
    normalize_tags,
)
from reveri.storage import Storage


logger = logging.getLogger(__name__)

Listener = Callable[[str, MemoryRecord], None]


class MemoryStore:
    """
    Memory journal store with write-through persistence.

    Usage:
        store = MemoryStore(open_storage())
        store.initialize()
        store.add("Beach trip", "Sunset swim", "happy", "summer, family", "2024-07-01")
        store.query(text="beach")
    """

    def __init__(self, storage: Storage):
        """
        Args:
            storage: Persistence adapter holding the serialized collection
        """
        self.storage = storage
        self._memories: List[MemoryRecord] = []
        self._ready = False
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []

    @property
    def is_ready(self) -> bool:
        return self._ready

    def _require_ready(self) -> None:
        if not self._ready:
            raise StoreNotReady("MemoryStore.initialize() must be called first")

    def initialize(self) -> List[MemoryRecord]:
        """
        Load the persisted collection and enter the ready state.

        Calling it again replaces in-memory state with what is persisted.

        Returns:
            Copy of the loaded collection
        """
        with self._lock:
            self._memories = list(self.storage.load())
            self._ready = True
            logger.info(f"Memory store ready with {len(self._memories)} memories")
            return list(self._memories)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener, called as listener(event, record) after
        each mutation with event "added" or "deleted".

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str, record: MemoryRecord) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, record)
            except Exception as e:
                # Non-critical - log but don't fail
                logger.warning(f"Change listener failed on '{event}': {e}")

    def _persist(self, event: str, record: MemoryRecord) -> None:
        """Write the whole collection through, then notify listeners."""
        try:
            self.storage.save(self._memories)
        except PersistenceWriteFailed as e:
            e.record = record
            logger.error(f"Memory {record.id} {event} in memory but not persisted: {e}")
            raise
        finally:
            self._notify(event, record)

    def add(
        self,
        title: str,
        description: str,
        emotion: Optional[str],
        tags: TagsInput = None,
        date: DateInput = None
    ) -> Union[MemoryRecord, Rejected]:
        """
        Add a new memory and persist the collection.

        Args:
            title: Memory title (required, trimmed)
            description: Memory description (required, trimmed)
            emotion: Emotion label; stored as given, None becomes the default label
            tags: Comma-separated string or iterable of tags
            date: Calendar date of the memory (date, datetime or YYYY-MM-DD)

        Returns:
            The created MemoryRecord, or Rejected if title or description is empty

        Raises:
            ValueError if date is missing or not a calendar date
            PersistenceWriteFailed if the save fails (the memory is kept in memory)
        """
        self._require_ready()

        title = (title or "").strip()
        description = (description or "").strip()
        empty = tuple(
            name for name, value in (("title", title), ("description", description))
            if not value
        )
        if empty:
            logger.debug(f"Rejected memory draft: empty {', '.join(empty)}")
            return Rejected(empty_fields=empty)

        if date is None:
            raise ValueError("A memory needs a date")
        memory_date = coerce_date(date)

        with self._lock:
            record = MemoryRecord(
                id=new_memory_id(m.id for m in self._memories),
                title=title,
                description=description,
                emotion=DEFAULT_EMOTION if emotion is None else emotion,
                tags=normalize_tags(tags),
                date=memory_date,
            )
            self._memories.append(record)
            self._persist("added", record)

        logger.info(f"Added memory {record.id}")
        return record

    def delete(self, memory_id: str) -> bool:
        """
        Delete a memory by id and persist the collection.

        Returns:
            True if deleted, False if not found

        Raises:
            PersistenceWriteFailed if the save fails (the memory stays deleted in memory)
        """
        self._require_ready()

        with self._lock:
            for index, memory in enumerate(self._memories):
                if memory.id == memory_id:
                    break
            else:
                logger.warning(f"Memory {memory_id} not found")
                return False

            record = self._memories.pop(index)
            self._persist("deleted", record)

        logger.info(f"Deleted memory {memory_id}")
        return True

    def query(self, text: str = "", emotion: Optional[str] = None) -> List[MemoryRecord]:
        """
        Filter and sort memories.

        Args:
            text: Case-insensitive substring of title or description ("" matches all)
            emotion: Exact emotion label to keep (None or "" keeps all)

        Returns:
            New list sorted by date, most recent first; same-date memories
            keep their insertion order
        """
        self._require_ready()

        needle = (text or "").strip().lower()
        with self._lock:
            snapshot = list(self._memories)

        results = [
            m for m in snapshot
            if (not needle or m.matches_text(needle))
            and (not emotion or m.emotion == emotion)
        ]
        # sorted() is stable, including with reverse=True
        return sorted(results, key=lambda m: m.date, reverse=True)

    def current_emotion(self) -> str:
        """Emotion of the most recently added memory, or the default label."""
        self._require_ready()
        with self._lock:
            if not self._memories:
                return DEFAULT_EMOTION
            return self._memories[-1].emotion

    def get(self, memory_id: str) -> Optional[MemoryRecord]:
        """Get a memory by ID."""
        self._require_ready()
        with self._lock:
            for memory in self._memories:
                if memory.id == memory_id:
                    return memory
        return None

    def find_by_prefix(self, prefix: str) -> List[MemoryRecord]:
        """Memories whose id starts with `prefix`, in insertion order."""
        self._require_ready()
        prefix = prefix.strip()
        if not prefix:
            return []
        with self._lock:
            return [m for m in self._memories if m.id.startswith(prefix)]

    def __len__(self) -> int:
        self._require_ready()
        with self._lock:
            return len(self._memories)

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about the memory collection."""
        self._require_ready()
        with self._lock:
            snapshot = list(self._memories)

        tags = set()
        for memory in snapshot:
            tags.update(memory.tags)

        return {
            "total_memories": len(snapshot),
            "unique_tags": len(tags),
            "emotions": dict(Counter(m.emotion for m in snapshot)),
            "current_emotion": snapshot[-1].emotion if snapshot else DEFAULT_EMOTION,
            "storage": self.storage.describe(),
        }
