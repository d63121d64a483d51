"""
Data-access interface and in-memory mock store.

The engine only relies on ``query`` and ``mutate`` (plus ``insert`` for the
create path of "persist a record"). In production this would be backed by
the hosted database's REST/RPC client; here an in-memory implementation
keeps tests and the console demo self-contained.

Usage:
    store = InMemoryStore({"availabilities": [{"id": "a1", ...}]})
    rows = store.query("availabilities", where(online_booking_status="open"))
    store.mutate("availabilities", ["a1"], {"max_capacity": 12})
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Protocol, TypedDict, Union

from bookdesk.errors import ConflictError, RecordNotFoundError, StoreUnavailableError

logger = logging.getLogger(__name__)

Record = dict[str, Any]
Predicate = Callable[[Mapping[str, Any]], bool]

AVAILABILITIES = "availabilities"
BOOKINGS = "bookings"
PRICING_SCHEDULES = "pricing_schedules"
PRICING_RATES = "pricing_rates"
CUSTOMER_TYPES = "customer_types"
EXPERIENCES = "experiences"


class _Delete:
    """Sentinel change meaning "delete the matched records"."""

    _instance: Optional["_Delete"] = None

    def __new__(cls) -> "_Delete":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DELETE"


DELETE = _Delete()


@dataclass(frozen=True)
class ListMerge:
    """Patch value that merges ids into (or out of) a list column per record.

    The store applies it row by row, so one patch can add or remove staff
    across many availabilities without the caller reading them first.
    """

    mode: str  # "add" | "remove"
    values: tuple[str, ...]

    def apply(self, current: Optional[Iterable[str]]) -> list[str]:
        existing = list(current or [])
        if self.mode == "add":
            return existing + [v for v in self.values if v not in existing]
        if self.mode == "remove":
            return [v for v in existing if v not in self.values]
        raise ValueError(f"Unknown list merge mode: {self.mode!r}")


Change = Union[Mapping[str, Any], _Delete]


class MutationResult(TypedDict):
    """Outcome of a successful mutate call."""

    collection: str
    ids: list[str]
    deleted: bool
    count: int


class DataStore(Protocol):
    """Request/response data-access capability consumed by the engine."""

    def query(
        self,
        collection: str,
        predicate: Optional[Predicate] = None,
        projection: Optional[Iterable[str]] = None,
    ) -> list[Record]: ...

    def mutate(self, collection: str, ids: Iterable[str], change: Change) -> MutationResult: ...

    def insert(self, collection: str, record: Mapping[str, Any]) -> Record: ...


def where(**equals: Any) -> Predicate:
    """Build a predicate matching records whose fields equal the given values."""

    def _predicate(record: Mapping[str, Any]) -> bool:
        return all(record.get(key) == value for key, value in equals.items())

    return _predicate


def field_in(field_name: str, values: Iterable[Any]) -> Predicate:
    """Build a predicate matching records whose field is one of ``values``."""
    allowed = set(values)

    def _predicate(record: Mapping[str, Any]) -> bool:
        return record.get(field_name) in allowed

    return _predicate


def all_of(*predicates: Predicate) -> Predicate:
    """AND together several predicates."""

    def _predicate(record: Mapping[str, Any]) -> bool:
        return all(p(record) for p in predicates)

    return _predicate


class InMemoryStore:
    """Dictionary-backed store that behaves like a single-statement backend.

    Each ``mutate`` call is all-or-nothing: every id is checked before any
    record is touched. Records are copied on the way in and out so callers
    never hold references into the store.
    """

    def __init__(self, seed: Optional[Mapping[str, Iterable[Mapping[str, Any]]]] = None) -> None:
        self._collections: dict[str, dict[str, Record]] = {}
        self._pending_failure: Optional[Exception] = None
        for collection, records in (seed or {}).items():
            for record in records:
                self.insert(collection, record)

    # ------------------------------------------------------------------ #
    # DataStore protocol
    # ------------------------------------------------------------------ #

    def query(
        self,
        collection: str,
        predicate: Optional[Predicate] = None,
        projection: Optional[Iterable[str]] = None,
    ) -> list[Record]:
        self._raise_pending()
        rows = self._collections.get(collection, {}).values()
        matched = [r for r in rows if predicate is None or predicate(r)]
        if projection is not None:
            fields = list(projection)
            return [{f: copy.deepcopy(r.get(f)) for f in fields} for r in matched]
        return [copy.deepcopy(r) for r in matched]

    def mutate(self, collection: str, ids: Iterable[str], change: Change) -> MutationResult:
        self._raise_pending()
        id_list = list(dict.fromkeys(ids))
        table = self._collections.setdefault(collection, {})
        for record_id in id_list:
            if record_id not in table:
                raise RecordNotFoundError(collection, record_id)

        if change is DELETE:
            for record_id in id_list:
                del table[record_id]
            logger.debug("Deleted %d record(s) from %s", len(id_list), collection)
            return {"collection": collection, "ids": id_list, "deleted": True, "count": len(id_list)}

        if "id" in change:
            raise ConflictError("Record ids cannot be changed through an update.")
        for record_id in id_list:
            record = table[record_id]
            for key, value in change.items():
                if isinstance(value, ListMerge):
                    record[key] = value.apply(record.get(key))
                else:
                    record[key] = copy.deepcopy(value)
        logger.debug("Updated %d record(s) in %s: %s", len(id_list), collection, sorted(change))
        return {"collection": collection, "ids": id_list, "deleted": False, "count": len(id_list)}

    def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        self._raise_pending()
        record_id = record.get("id")
        if not record_id:
            raise ConflictError(f"Cannot insert into {collection} without an id.")
        table = self._collections.setdefault(collection, {})
        if record_id in table:
            raise ConflictError(f"{collection} record '{record_id}' already exists.")
        table[record_id] = copy.deepcopy(dict(record))
        return copy.deepcopy(table[record_id])

    # ------------------------------------------------------------------ #
    # Test helpers
    # ------------------------------------------------------------------ #

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        """Fetch one record by id (copy), or None."""
        record = self._collections.get(collection, {}).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def count(self, collection: str) -> int:
        return len(self._collections.get(collection, {}))

    def fail_next(self, error: Optional[Exception] = None) -> None:
        """Make the next store call raise ``error`` (default: unreachable)."""
        self._pending_failure = error or StoreUnavailableError("Data store unreachable.")

    def reset(self) -> None:
        """Clear all collections. Used by test fixtures for isolation."""
        self._collections.clear()
        self._pending_failure = None

    def _raise_pending(self) -> None:
        if self._pending_failure is not None:
            error, self._pending_failure = self._pending_failure, None
            raise error
