"""Tests for the in-memory data store."""

import pytest

from bookdesk.errors import ConflictError, RecordNotFoundError, StoreUnavailableError
from bookdesk.tools.store import (
    AVAILABILITIES,
    DELETE,
    InMemoryStore,
    ListMerge,
    all_of,
    field_in,
    where,
)
from tests.conftest import make_availability


@pytest.fixture
def slots():
    return InMemoryStore({
        AVAILABILITIES: [
            make_availability("a1", staff_ids=["s1"]),
            make_availability("a2", online_booking_status="closed"),
            make_availability("a3", start_date="2025-02-01"),
        ]
    })


class TestQuery:
    def test_query_all(self, slots):
        assert len(slots.query(AVAILABILITIES)) == 3

    def test_where_predicate(self, slots):
        rows = slots.query(AVAILABILITIES, where(online_booking_status="closed"))
        assert [r["id"] for r in rows] == ["a2"]

    def test_field_in_and_all_of(self, slots):
        rows = slots.query(
            AVAILABILITIES,
            all_of(field_in("id", ["a1", "a2"]), where(online_booking_status="open")),
        )
        assert [r["id"] for r in rows] == ["a1"]

    def test_projection(self, slots):
        rows = slots.query(AVAILABILITIES, where(id="a1"), projection=("id", "max_capacity"))
        assert rows == [{"id": "a1", "max_capacity": 10}]

    def test_results_are_copies(self, slots):
        rows = slots.query(AVAILABILITIES, where(id="a1"))
        rows[0]["staff_ids"].append("intruder")
        assert slots.get(AVAILABILITIES, "a1")["staff_ids"] == ["s1"]

    def test_unknown_collection_is_empty(self, slots):
        assert slots.query("nothing") == []


class TestMutate:
    def test_patch_applies_to_every_id(self, slots):
        result = slots.mutate(AVAILABILITIES, ["a1", "a2"], {"max_capacity": 4})
        assert result["count"] == 2
        assert slots.get(AVAILABILITIES, "a1")["max_capacity"] == 4
        assert slots.get(AVAILABILITIES, "a2")["max_capacity"] == 4
        assert slots.get(AVAILABILITIES, "a3")["max_capacity"] == 10

    def test_explicit_null_clears_field(self, slots):
        slots.mutate(AVAILABILITIES, ["a1"], {"headline": None})
        assert slots.get(AVAILABILITIES, "a1")["headline"] is None

    def test_missing_id_changes_nothing(self, slots):
        with pytest.raises(RecordNotFoundError):
            slots.mutate(AVAILABILITIES, ["a1", "ghost"], {"max_capacity": 1})
        assert slots.get(AVAILABILITIES, "a1")["max_capacity"] == 10

    def test_delete(self, slots):
        result = slots.mutate(AVAILABILITIES, ["a1", "a3"], DELETE)
        assert result["deleted"] is True
        assert slots.count(AVAILABILITIES) == 1

    def test_id_cannot_be_patched(self, slots):
        with pytest.raises(ConflictError):
            slots.mutate(AVAILABILITIES, ["a1"], {"id": "other"})

    def test_list_merge_add_skips_existing(self, slots):
        slots.mutate(AVAILABILITIES, ["a1", "a2"], {"staff_ids": ListMerge("add", ("s1", "s2"))})
        assert slots.get(AVAILABILITIES, "a1")["staff_ids"] == ["s1", "s2"]
        assert slots.get(AVAILABILITIES, "a2")["staff_ids"] == ["s1", "s2"]

    def test_list_merge_remove(self, slots):
        slots.mutate(AVAILABILITIES, ["a1"], {"staff_ids": ListMerge("remove", ("s1",))})
        assert slots.get(AVAILABILITIES, "a1")["staff_ids"] == []

    def test_list_merge_unknown_mode(self):
        with pytest.raises(ValueError):
            ListMerge("swap", ("s1",)).apply([])


class TestInsertAndFailures:
    def test_insert_requires_id(self, slots):
        with pytest.raises(ConflictError):
            slots.insert(AVAILABILITIES, {"start_date": "2025-01-01"})

    def test_duplicate_insert_rejected(self, slots):
        with pytest.raises(ConflictError, match="already exists"):
            slots.insert(AVAILABILITIES, make_availability("a1"))

    def test_fail_next_raises_once(self, slots):
        slots.fail_next()
        with pytest.raises(StoreUnavailableError):
            slots.query(AVAILABILITIES)
        assert len(slots.query(AVAILABILITIES)) == 3

    def test_reset_clears_everything(self, slots):
        slots.reset()
        assert slots.count(AVAILABILITIES) == 0

    def test_delete_sentinel_is_singleton(self):
        from bookdesk.tools.store import _Delete
        assert _Delete() is DELETE
