"""
Shared fixtures: an in-memory seating store with failure injection
"""

import copy
import itertools
import threading
from typing import Callable, Dict, List, Optional

import pytest

from seatsync.core.errors import NotFoundError
from seatsync.schemas.event import EventRecord
from seatsync.schemas.guest import GuestRecord
from seatsync.schemas.table import TableRecord
from seatsync.services.batch_writer import ChunkedMutationApplier
from seatsync.services.repositories import SeatingStore, WriteOp
from seatsync.services.seating_service import SeatingService
from seatsync.utils.security import public_rate_limiter


class InMemoryStore(SeatingStore):
    """Dict-backed store; commits are atomic and logged in ``commits``.

    ``failures`` holds callables receiving the operations of a commit; the
    first one returning an exception makes that commit raise it.
    """

    def __init__(self):
        self.data: Dict[str, Dict[str, dict]] = {"events": {}, "guests": {}, "tables": {}}
        self.commits: List[List[WriteOp]] = []
        self.failures: List[Callable[[List[WriteOp]], Optional[Exception]]] = []
        self._lock = threading.Lock()
        self._seq = itertools.count()

    # -------- seeding helpers --------

    def add_event(self, event_id="event-1", name="Summer Wedding", user_id="user-1"):
        self.data["events"][event_id] = {"id": event_id, "name": name, "user_id": user_id}
        return event_id

    def add_table(self, table_id, event_id="event-1", name=None, capacity=10, color="#3B82F6"):
        self.data["tables"][table_id] = {
            "id": table_id,
            "event_id": event_id,
            "user_id": "user-1",
            "name": name or table_id,
            "capacity": capacity,
            "color": color,
            "_seq": next(self._seq),
        }
        return table_id

    def add_guest(self, guest_id, event_id="event-1", first_name=None, last_name=None,
                  name=None, table_id=None, **extra):
        self.data["guests"][guest_id] = {
            "id": guest_id,
            "event_id": event_id,
            "user_id": "user-1",
            "first_name": first_name,
            "last_name": last_name,
            "name": name,
            "table_id": table_id,
            "_seq": next(self._seq),
            **extra,
        }
        return guest_id

    def guest(self, guest_id) -> dict:
        return self.data["guests"][guest_id]

    # -------- SeatingStore --------

    def get_event(self, event_id):
        doc = self.data["events"].get(event_id)
        return EventRecord.model_validate(doc) if doc else None

    def list_guests(self, event_id):
        docs = [g for g in self.data["guests"].values() if g["event_id"] == event_id]
        return [GuestRecord.model_validate(g) for g in sorted(docs, key=lambda g: g["_seq"])]

    def list_tables(self, event_id):
        docs = [t for t in self.data["tables"].values() if t["event_id"] == event_id]
        return [TableRecord.model_validate(t) for t in sorted(docs, key=lambda t: t["_seq"])]

    def commit_batch(self, operations):
        operations = list(operations)
        with self._lock:
            self.commits.append(operations)
        for failure in self.failures:
            error = failure(operations)
            if error is not None:
                raise error

        with self._lock:
            staged = copy.deepcopy(self.data)
            for op in operations:
                collection = staged[op.collection]
                if op.kind == WriteOp.CREATE:
                    collection[op.record_id] = {**op.fields, "id": op.record_id, "_seq": next(self._seq)}
                    continue
                if op.record_id not in collection:
                    raise NotFoundError(f"{op.collection}/{op.record_id} not found")
                if op.kind == WriteOp.UPDATE:
                    collection[op.record_id].update(op.fields)
                else:
                    del collection[op.record_id]
            self.data = staged


@pytest.fixture
def store():
    """Empty in-memory store"""
    return InMemoryStore()


@pytest.fixture
def sleeps():
    """Records backoff delays instead of sleeping"""
    return []


@pytest.fixture
def applier(store, sleeps):
    """Sequential applier with a small chunk size"""
    return ChunkedMutationApplier(
        store,
        chunk_size=5,
        max_concurrency=1,
        max_attempts=3,
        retry_base_delay=1.0,
        retry_max_delay=10.0,
        sleep=sleeps.append,
    )


@pytest.fixture
def service(store, applier):
    return SeatingService(store, applier=applier)


@pytest.fixture
def seated_event(store):
    """Event with three tables and ten unassigned guests"""
    store.add_event()
    store.add_table("t-a", name="Table A", capacity=4)
    store.add_table("t-b", name="Table B", capacity=4)
    store.add_table("t-c", name="Table C", capacity=4)
    for i in range(10):
        store.add_guest(f"g{i}", first_name=f"Guest{i}", last_name="Tester")
    return "event-1"


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    public_rate_limiter.reset()
    yield
    public_rate_limiter.reset()
