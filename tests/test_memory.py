"""
Tests for the memory record model, its helpers and the emotion vocabulary.
"""
import json
import pytest
from datetime import date, datetime

from reveri.emotions import DEFAULT_EMOTION, EMOTIONS, describe, emoji_for
from reveri.errors import PersistenceLoadCorrupt, Rejected
from reveri.memory import (
    MemoryRecord,
    coerce_date,
    decode_collection,
    encode_collection,
    new_memory_id,
    normalize_tags,
)


DEEPLY_NESTED = "[" * 100000 + "]" * 100000
HUGE_INTEGER = "[" + "1" * 5000 + "]"


def make_record(**overrides) -> MemoryRecord:
    fields = {
        "id": "mem-1",
        "title": "Beach trip",
        "description": "Swam until sunset",
        "emotion": "happy",
        "tags": ("summer", "family"),
        "date": date(2024, 7, 1),
    }
    fields.update(overrides)
    return MemoryRecord(**fields)


class TestMemoryRecord:
    """Test cases for MemoryRecord."""

    def test_to_dict(self):
        """Test converting a memory to its stored dictionary form."""
        data = make_record().to_dict()

        assert data == {
            "id": "mem-1",
            "title": "Beach trip",
            "description": "Swam until sunset",
            "emotion": "happy",
            "tags": ["summer", "family"],
            "date": "2024-07-01",
        }

    def test_from_dict(self):
        """Test creating a memory from a stored dictionary."""
        memory = MemoryRecord.from_dict({
            "id": "abc",
            "title": "Graduation",
            "description": "Finally done",
            "emotion": "nostalgic",
            "tags": ["school"],
            "date": "2019-06-15",
        })

        assert memory.id == "abc"
        assert memory.tags == ("school",)
        assert memory.date == date(2019, 6, 15)

    def test_from_dict_without_tags(self):
        """Missing tags read as an empty tuple."""
        data = make_record().to_dict()
        del data["tags"]

        assert MemoryRecord.from_dict(data).tags == ()

    def test_from_dict_rejects_bad_types(self):
        """Non-string fields and non-list tags are malformed."""
        with pytest.raises(TypeError):
            MemoryRecord.from_dict({**make_record().to_dict(), "title": 42})
        with pytest.raises(TypeError):
            MemoryRecord.from_dict({**make_record().to_dict(), "tags": "a,b"})

    def test_is_immutable(self):
        """Memories cannot be changed after creation."""
        memory = make_record()
        with pytest.raises(AttributeError):
            memory.title = "Changed"

    def test_matches_text(self):
        """Text matching looks at title and description only."""
        memory = make_record()

        assert memory.matches_text("beach")
        assert memory.matches_text("sunset")
        assert not memory.matches_text("summer")


class TestHelpers:
    """Test cases for tag, date and id helpers."""

    def test_normalize_comma_separated_tags(self):
        """Comma-separated tags are split, trimmed and empties dropped."""
        assert normalize_tags(" summer, ,family ,, ") == ("summer", "family")

    def test_normalize_tag_list_keeps_order_and_duplicates(self):
        """Lists keep their order and duplicates."""
        assert normalize_tags(["b ", "a", "", "b"]) == ("b", "a", "b")

    def test_normalize_no_tags(self):
        """None and empty strings give no tags."""
        assert normalize_tags(None) == ()
        assert normalize_tags("") == ()

    def test_coerce_date(self):
        """Dates, datetimes and ISO strings all become calendar dates."""
        assert coerce_date(date(2024, 1, 1)) == date(2024, 1, 1)
        assert coerce_date(datetime(2024, 1, 1, 23, 59)) == date(2024, 1, 1)
        assert coerce_date(" 2024-01-01 ") == date(2024, 1, 1)

    def test_coerce_date_rejects_garbage(self):
        """Unparseable values raise ValueError."""
        with pytest.raises(ValueError):
            coerce_date("yesterday")
        with pytest.raises(ValueError):
            coerce_date(20240101)

    def test_new_memory_id_is_unique(self):
        """Generated ids are distinct from each other and from existing ids."""
        existing = {new_memory_id() for _ in range(50)}
        assert len(existing) == 50
        assert new_memory_id(existing) not in existing

    def test_rejected_is_falsy(self):
        """Rejected drafts read as falsy and explain the empty fields."""
        rejected = Rejected(empty_fields=("title",))

        assert not rejected
        assert "title" in rejected.reason


class TestCollectionCodec:
    """Test cases for collection serialization."""

    def test_encode_then_decode_preserves_order(self):
        """A collection survives encoding with order and fields intact."""
        records = [
            make_record(id="a", date=date(2024, 3, 5)),
            make_record(id="b", emotion="unknown-mood", tags=()),
            make_record(id="c", title="Café ☕", tags=("x", "x")),
        ]

        assert decode_collection(encode_collection(records)) == records

    def test_decode_browser_payload(self):
        """Payloads saved by the browser journal load as-is."""
        payload = json.dumps([{
            "id": "0f8fad5b-d9cb-469f-a165-70867728950e",
            "title": "First day",
            "description": "New job",
            "emotion": "surprised",
            "tags": ["work"],
            "date": "2024-02-10",
        }])

        records = decode_collection(payload)

        assert len(records) == 1
        assert records[0].emotion == "surprised"

    @pytest.mark.parametrize("payload", [
        "",
        "not json",
        '[{"id": "a", "title": "t"',
        '{"id": "a"}',
        '"reveri"',
        "[1, 2]",
        '[{"id": "a", "title": "t", "description": "d", "emotion": "happy", "tags": [], "date": "soon"}]',
        '[{"id": "a", "title": "t", "description": "d", "emotion": "happy", "tags": []}]',
        pytest.param(DEEPLY_NESTED, id="deeply-nested"),
        pytest.param(HUGE_INTEGER, id="huge-integer"),
    ])
    def test_decode_corrupt_payload(self, payload):
        """Anything that is not a valid collection is reported as corrupt."""
        with pytest.raises(PersistenceLoadCorrupt):
            decode_collection(payload)

    def test_decode_duplicate_ids(self):
        """Duplicate ids break the collection invariant."""
        payload = encode_collection([make_record(id="same"), make_record(id="same")])

        with pytest.raises(PersistenceLoadCorrupt):
            decode_collection(payload)


class TestEmotions:
    """Test cases for emotion display mapping."""

    def test_known_emotions(self):
        """Known labels map to their glyph and a capitalized label."""
        assert describe("nostalgic") == ("🥹", "Nostalgic")
        assert emoji_for("happy") == "😊"
        assert len(EMOTIONS) == 5

    def test_unknown_emotions_use_default(self):
        """Unknown or missing labels render as the default."""
        assert describe("grumpy") == ("🤖", "Default")
        assert describe(None) == ("🤖", "Default")
        assert emoji_for(DEFAULT_EMOTION) == "🤖"
