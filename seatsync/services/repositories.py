"""
Repository layer abstracting storage (SQLAlchemy vs Firebase Firestore).

The seating engine only needs four things from a backend: read an event,
list an event's guests and tables, and commit an ordered list of writes
atomically. Both backends translate their driver errors into the
``seatsync.core.errors`` taxonomy so retry decisions never depend on which
store is configured.
"""

from __future__ import annotations

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

from google.api_core import exceptions as google_exceptions
from firebase_admin import firestore
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from seatsync.core.config import settings
from seatsync.core.db import SessionLocal
from seatsync.core.errors import (
    NotFoundError,
    PermanentStoreError,
    SeatingError,
    TransientStoreError,
)
from seatsync.models import Event, Guest, Table
from seatsync.schemas.event import EventRecord
from seatsync.schemas.guest import GuestRecord
from seatsync.schemas.table import TableRecord
from seatsync.services.firebase_client import get_firestore_client

logger = logging.getLogger(__name__)

EVENTS = "events"
GUESTS = "guests"
TABLES = "tables"


def use_firestore() -> bool:
    return settings.USE_FIREBASE is True


def new_record_id() -> str:
    return uuid.uuid4().hex


_stamp_lock = threading.Lock()
_last_stamp = datetime.min


def next_created_at() -> datetime:
    """Strictly increasing UTC timestamp, one per created record.

    Records are listed by ``created_at``; creates sharing one commit must
    still sort in the order they were built.
    """
    global _last_stamp
    with _stamp_lock:
        stamp = datetime.utcnow()
        if stamp <= _last_stamp:
            stamp = _last_stamp + timedelta(microseconds=1)
        _last_stamp = stamp
        return stamp


@dataclass(frozen=True)
class WriteOp:
    """A single write inside an atomic batch"""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    kind: str
    collection: str
    record_id: str
    fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, collection: str, record_id: str, fields: Dict[str, Any]) -> "WriteOp":
        return cls(cls.CREATE, collection, record_id, {"created_at": next_created_at(), **fields})

    @classmethod
    def update(cls, collection: str, record_id: str, fields: Dict[str, Any]) -> "WriteOp":
        return cls(cls.UPDATE, collection, record_id, dict(fields))

    @classmethod
    def delete(cls, collection: str, record_id: str) -> "WriteOp":
        return cls(cls.DELETE, collection, record_id)


class SeatingStore(ABC):
    """Storage collaborator consumed by the seating engine"""

    @abstractmethod
    def get_event(self, event_id: str) -> Optional[EventRecord]:
        ...

    @abstractmethod
    def list_guests(self, event_id: str) -> List[GuestRecord]:
        """Guests of an event in insertion order"""

    @abstractmethod
    def list_tables(self, event_id: str) -> List[TableRecord]:
        """Tables of an event in insertion order"""

    @abstractmethod
    def commit_batch(self, operations: Sequence[WriteOp]) -> None:
        """Apply every operation or none of them.

        Raises TransientStoreError, PermanentStoreError or NotFoundError.
        """


# -------- SQLAlchemy backend --------

class SqlSeatingStore(SeatingStore):
    """SQL backend. Each commit opens its own session, so commits may run on
    different threads."""

    MODELS = {EVENTS: Event, GUESTS: Guest, TABLES: Table}

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def get_event(self, event_id: str) -> Optional[EventRecord]:
        with self._session_factory() as db:
            event = db.get(Event, event_id)
            return EventRecord.model_validate(event) if event else None

    def list_guests(self, event_id: str) -> List[GuestRecord]:
        with self._session_factory() as db:
            guests = (
                db.query(Guest)
                .filter(Guest.event_id == event_id)
                .order_by(Guest.created_at, Guest.id)
                .all()
            )
            return [GuestRecord.model_validate(g) for g in guests]

    def list_tables(self, event_id: str) -> List[TableRecord]:
        with self._session_factory() as db:
            tables = (
                db.query(Table)
                .filter(Table.event_id == event_id)
                .order_by(Table.created_at, Table.name)
                .all()
            )
            return [TableRecord.model_validate(t) for t in tables]

    def commit_batch(self, operations: Sequence[WriteOp]) -> None:
        db = self._session_factory()
        try:
            for op in operations:
                self._stage(db, op)
            db.commit()
            logger.debug(f"Committed {len(operations)} operations")
        except SeatingError:
            db.rollback()
            raise
        except OperationalError as exc:
            db.rollback()
            raise TransientStoreError(f"Database busy: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise PermanentStoreError(f"Database rejected batch: {exc}") from exc
        finally:
            db.close()

    def _stage(self, db: Session, op: WriteOp) -> None:
        model = self.MODELS.get(op.collection)
        if model is None:
            raise PermanentStoreError(f"Unknown collection '{op.collection}'")

        if op.kind == WriteOp.CREATE:
            db.add(model(id=op.record_id, **op.fields))
            # Surface constraint violations inside this batch
            db.flush()
            return

        record = db.get(model, op.record_id)
        if record is None:
            raise NotFoundError(f"{op.collection}/{op.record_id} not found")

        if op.kind == WriteOp.UPDATE:
            for name, value in op.fields.items():
                if not hasattr(model, name):
                    raise PermanentStoreError(f"Unknown field '{name}' on {op.collection}")
                setattr(record, name, value)
            record.updated_at = datetime.utcnow()
            db.flush()
        elif op.kind == WriteOp.DELETE:
            db.delete(record)
            db.flush()
        else:
            raise PermanentStoreError(f"Unknown write kind '{op.kind}'")


# -------- Firestore backend --------

# Firestore shape: top-level collections "events", "guests" and "tables";
# guests and tables carry an event_id field.

TRANSIENT_FIRESTORE_ERRORS = (
    google_exceptions.ResourceExhausted,
    google_exceptions.TooManyRequests,
    google_exceptions.DeadlineExceeded,
    google_exceptions.ServiceUnavailable,
    google_exceptions.Aborted,
    google_exceptions.InternalServerError,
)


class FirestoreSeatingStore(SeatingStore):
    def __init__(self, client):
        self._client = client

    def get_event(self, event_id: str) -> Optional[EventRecord]:
        doc = self._client.collection(EVENTS).document(event_id).get()
        if not doc.exists:
            return None
        return EventRecord.model_validate({**doc.to_dict(), "id": doc.id})

    def list_guests(self, event_id: str) -> List[GuestRecord]:
        docs = self._client.collection(GUESTS).where("event_id", "==", event_id).order_by("created_at").get()
        return [GuestRecord.model_validate({**d.to_dict(), "id": d.id}) for d in docs]

    def list_tables(self, event_id: str) -> List[TableRecord]:
        docs = self._client.collection(TABLES).where("event_id", "==", event_id).order_by("created_at").get()
        return [TableRecord.model_validate({**d.to_dict(), "id": d.id}) for d in docs]

    def commit_batch(self, operations: Sequence[WriteOp]) -> None:
        batch = self._client.batch()
        for op in operations:
            ref = self._client.collection(op.collection).document(op.record_id)
            if op.kind == WriteOp.CREATE:
                # created_at comes from the op; a shared server timestamp
                # would tie every create in the batch
                batch.set(ref, {**op.fields, "updated_at": firestore.SERVER_TIMESTAMP})
            elif op.kind == WriteOp.UPDATE:
                batch.update(ref, {**op.fields, "updated_at": firestore.SERVER_TIMESTAMP})
            elif op.kind == WriteOp.DELETE:
                batch.delete(ref)
            else:
                raise PermanentStoreError(f"Unknown write kind '{op.kind}'")

        try:
            batch.commit()
            logger.debug(f"Committed {len(operations)} Firestore writes")
        except TRANSIENT_FIRESTORE_ERRORS as exc:
            raise TransientStoreError(f"Firestore unavailable: {exc.message}") from exc
        except google_exceptions.NotFound as exc:
            raise NotFoundError(f"Firestore document not found: {exc.message}") from exc
        except google_exceptions.GoogleAPICallError as exc:
            raise PermanentStoreError(f"Firestore rejected batch: {exc.message}") from exc


def get_store() -> SeatingStore:
    """Build the configured storage backend"""
    if use_firestore():
        return FirestoreSeatingStore(get_firestore_client())
    return SqlSeatingStore(SessionLocal)
