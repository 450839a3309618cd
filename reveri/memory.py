"""
Memory record model and collection (de)serialization.

The serialized collection is a JSON array of record dictionaries, with dates
stored as ISO calendar dates (YYYY-MM-DD).
"""
import json
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from reveri.errors import PersistenceLoadCorrupt


TagsInput = Union[str, Iterable[str], None]
DateInput = Union[date, datetime, str]


@dataclass(frozen=True)
class MemoryRecord:
    """A single journal entry. Immutable once created."""
    id: str
    title: str
    description: str
    emotion: str
    tags: Tuple[str, ...]
    date: date

    def to_dict(self) -> Dict[str, Any]:
        """Convert memory to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "emotion": self.emotion,
            "tags": list(self.tags),
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemoryRecord":
        """
        Create memory from dictionary.

        Raises:
            KeyError, TypeError, ValueError if the dictionary is malformed
        """
        for key in ("id", "title", "description", "emotion"):
            if not isinstance(data[key], str):
                raise TypeError(f"'{key}' must be a string")

        tags = data.get("tags", [])
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise TypeError("'tags' must be a list of strings")

        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            emotion=data["emotion"],
            tags=tuple(tags),
            date=coerce_date(data["date"]),
        )

    def matches_text(self, needle: str) -> bool:
        """Case-insensitive substring match on title or description."""
        return needle in self.title.lower() or needle in self.description.lower()


def new_memory_id(existing: Optional[Iterable[str]] = None) -> str:
    """Generate a fresh id that does not collide with `existing`."""
    taken = set(existing or ())
    memory_id = str(uuid.uuid4())
    while memory_id in taken:
        memory_id = str(uuid.uuid4())
    return memory_id


def normalize_tags(tags: TagsInput) -> Tuple[str, ...]:
    """
    Trim tags and drop empty entries.

    Accepts a comma-separated string ("beach, summer") or an iterable of
    tags. Order and duplicates are preserved.
    """
    if tags is None:
        return ()
    if isinstance(tags, str):
        tags = tags.split(",")
    return tuple(t.strip() for t in tags if t and t.strip())


def coerce_date(value: DateInput) -> date:
    """Calendar date from a date, a datetime (time dropped) or an ISO string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise ValueError(f"Not a calendar date: {value!r}")


def encode_collection(records: Iterable[MemoryRecord]) -> str:
    """Serialize a collection to its stored JSON form."""
    return json.dumps([r.to_dict() for r in records], ensure_ascii=False)


def decode_collection(payload: str) -> List[MemoryRecord]:
    """
    Parse a stored payload back into a collection.

    Raises:
        PersistenceLoadCorrupt if the payload is not a valid collection
    """
    try:
        data = json.loads(payload)
    except (ValueError, TypeError, RecursionError) as e:
        raise PersistenceLoadCorrupt(f"Payload is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise PersistenceLoadCorrupt(f"Expected a list, got {type(data).__name__}")

    records = []
    seen = set()
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise PersistenceLoadCorrupt(f"Entry {index} is not an object")
        try:
            record = MemoryRecord.from_dict(item)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceLoadCorrupt(f"Entry {index} is malformed: {e}") from e
        if record.id in seen:
            raise PersistenceLoadCorrupt(f"Duplicate memory id: {record.id}")
        seen.add(record.id)
        records.append(record)

    return records
