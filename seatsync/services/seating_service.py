"""
Seating synchronization service.

Facade used by the API routers. It combines the name matcher, the
allocator and the chunked batch writer, and turns every failure into an
``OperationResult`` instead of raising.
"""

import functools
import logging
import threading
from typing import Any, Dict, List, Optional, Sequence

from seatsync.core.config import settings
from seatsync.core.errors import (
    ErrorCode,
    NoTablesError,
    NoUnassignedGuestsError,
    NotFoundError,
    SeatingError,
    ValidationError,
)
from seatsync.models.guest import guest_display_name
from seatsync.schemas.batch import BatchResult, GuestChange, TableChange
from seatsync.schemas.common import OperationResult
from seatsync.schemas.event import EventRecord
from seatsync.schemas.guest import GuestImportRow
from seatsync.services import name_matcher
from seatsync.services.allocator import get_strategy
from seatsync.services.batch_writer import ChunkedMutationApplier
from seatsync.services.repositories import (
    EVENTS,
    GUESTS,
    TABLES,
    SeatingStore,
    WriteOp,
    new_record_id,
)

logger = logging.getLogger(__name__)

TABLE_UPDATE_FIELDS = {"name", "capacity", "color"}

ROMAN_NUMERALS = [
    "I", "II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X",
    "XI", "XII", "XIII", "XIV", "XV", "XVI", "XVII", "XVIII", "XIX", "XX",
]


def table_name_for(index: int, scheme: str, prefix: str = "Table") -> str:
    """Name of the table at zero-based ``index`` under a naming scheme"""
    if scheme == "numbers":
        return str(index + 1)
    if scheme == "letters":
        # A..Z, then AA, AB, ...
        label = ""
        n = index + 1
        while n:
            n, rem = divmod(n - 1, 26)
            label = chr(65 + rem) + label
        return label
    if scheme == "roman":
        return ROMAN_NUMERALS[index] if index < len(ROMAN_NUMERALS) else str(index + 1)
    if scheme == "custom-prefix":
        return f"{prefix.strip() or 'Table'} {index + 1}"
    raise ValidationError(f"Unknown naming scheme '{scheme}'")


def service_call(operation):
    """Translate exceptions raised by ``operation`` into failed results"""

    @functools.wraps(operation)
    def wrapper(self, *args, **kwargs) -> OperationResult:
        try:
            result = operation(self, *args, **kwargs)
            logger.info(f"{operation.__name__}: {result.message}")
            return result
        except SeatingError as e:
            logger.warning(f"{operation.__name__} failed ({e.code.value}): {e.message}")
            return OperationResult.from_error(e)
        except Exception:
            logger.exception(f"{operation.__name__} failed unexpectedly")
            return OperationResult.failure(
                f"Failed to {operation.__name__.replace('_', ' ')}", ErrorCode.INTERNAL
            )

    return wrapper


def batch_outcome(result: BatchResult, message: str, data: Optional[Dict[str, Any]] = None) -> OperationResult:
    """Wrap a batch result, reporting partial and total failure distinctly"""
    payload = dict(data or {})
    payload.setdefault("total_processed", result.total_processed)
    payload["errors"] = [e.model_dump() for e in result.errors]

    if result.success:
        return OperationResult.ok(message, payload)

    if result.total_processed > 0:
        return OperationResult.failure(
            f"Partially completed: {result.total_processed} operations succeeded, "
            f"but {len(result.errors)} chunks failed",
            ErrorCode.PARTIAL_FAILURE,
            payload,
        )

    reasons = {e.reason for e in result.errors}
    code = ErrorCode(reasons.pop()) if len(reasons) == 1 else ErrorCode.PERMANENT_STORE
    return OperationResult.failure("All operations failed", code, payload)


class SeatingService:
    """Seating operations for one storage backend"""

    def __init__(
        self,
        store: SeatingStore,
        applier: Optional[ChunkedMutationApplier] = None,
        strategy: Optional[str] = None,
    ):
        self.store = store
        self.applier = applier or ChunkedMutationApplier(store)
        self.strategy_name = strategy or settings.ASSIGN_STRATEGY
        self._allocate = get_strategy(self.strategy_name)

    # -------- helpers --------

    def _load_event(self, event_id: str, user_id: Optional[str] = None) -> EventRecord:
        if not event_id:
            raise ValidationError("Event ID is required")
        event = self.store.get_event(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        if user_id is not None and event.user_id != user_id:
            raise NotFoundError("Event not found or access denied")
        return event

    @staticmethod
    def _validate_guest_changes(changes: Sequence[GuestChange]) -> None:
        for change in changes:
            if not change.guest_id or not change.guest_id.strip():
                raise ValidationError("Invalid guestId in guestChanges")
            if change.table_id is not None and not change.table_id.strip():
                raise ValidationError("Invalid tableId in guestChanges")

    @staticmethod
    def _validate_table_changes(changes: Sequence[TableChange]) -> None:
        for change in changes:
            if not change.table_id or not change.table_id.strip():
                raise ValidationError("Invalid tableId in tableChanges")
            if not change.updates:
                raise ValidationError(f"Table {change.table_id} has no updates")
            unknown = set(change.updates) - TABLE_UPDATE_FIELDS
            if unknown:
                raise ValidationError(
                    f"Unrecognized table fields for {change.table_id}: {', '.join(sorted(unknown))}"
                )
            if "name" in change.updates:
                name = change.updates["name"]
                if not isinstance(name, str) or not name.strip():
                    raise ValidationError(f"Table {change.table_id} name must be a non-empty string")
            if "capacity" in change.updates:
                capacity = change.updates["capacity"]
                if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
                    raise ValidationError(f"Table {change.table_id} capacity must be an integer >= 1")
            if "color" in change.updates and not isinstance(change.updates["color"], str):
                raise ValidationError(f"Table {change.table_id} color must be a string")

    def _validate_event_membership(
        self,
        event_id: str,
        guest_changes: Sequence[GuestChange],
        table_changes: Sequence[TableChange],
        user_id: Optional[str],
    ) -> None:
        self._load_event(event_id, user_id)
        guest_ids = {g.id for g in self.store.list_guests(event_id)}
        table_ids = {t.id for t in self.store.list_tables(event_id)}

        for change in guest_changes:
            if change.guest_id not in guest_ids:
                raise ValidationError(f"Guest {change.guest_id} does not belong to this event")
            if change.table_id is not None and change.table_id not in table_ids:
                raise ValidationError(f"Table {change.table_id} does not belong to this event")
        for change in table_changes:
            if change.table_id not in table_ids:
                raise ValidationError(f"Table {change.table_id} does not belong to this event")

    # -------- seating engine --------

    @service_call
    def auto_assign(
        self,
        event_id: str,
        user_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> OperationResult:
        """Spread every unassigned guest of an event across its tables"""
        self._load_event(event_id, user_id)

        tables = self.store.list_tables(event_id)
        if not tables:
            raise NoTablesError()

        # A guest pointing at a table outside this event is unassigned
        table_ids = {t.id for t in tables}
        guests = [g for g in self.store.list_guests(event_id) if g.table_id not in table_ids]
        if not guests:
            raise NoUnassignedGuestsError()

        allocation = self._allocate(len(guests), tables)
        for table in allocation.over_capacity_tables:
            logger.warning(f"Table '{table.name}' ({table.id}) allotted more guests than its capacity")

        changes = [
            GuestChange(guest_id=guests[index].id, table_id=table.id)
            for index, table in sorted(allocation.assignments.items())
        ]
        result = self.applier.apply(changes, cancel_event=cancel_event, timeout=timeout)

        logger.info(f"Auto-assign for event {event_id}: {result.total_processed}/{len(changes)} guests assigned")
        return batch_outcome(
            result,
            f"Assigned {result.total_processed} guests to tables.",
            {
                "assigned_count": result.total_processed,
                "strategy": self.strategy_name,
                "allotments": [
                    {
                        "table_id": a.table.id,
                        "table_name": a.table.name,
                        "count": a.count,
                        "capacity": a.table.capacity,
                        "over_capacity": a.over_capacity,
                    }
                    for a in allocation.allotments
                ],
            },
        )

    @service_call
    def bulk_save(
        self,
        guest_changes: Sequence[GuestChange],
        table_changes: Sequence[TableChange] = (),
        event_id: Optional[str] = None,
        user_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
    ) -> OperationResult:
        """Persist assignment and table edits made by a caller"""
        self._validate_guest_changes(guest_changes)
        self._validate_table_changes(table_changes)
        if event_id is not None:
            self._validate_event_membership(event_id, guest_changes, table_changes, user_id)

        if not guest_changes and not table_changes:
            return OperationResult.ok("No changes to process", {"total_processed": 0, "errors": []})

        result = self.applier.apply(guest_changes, table_changes, cancel_event=cancel_event, timeout=timeout)
        return batch_outcome(result, f"Successfully processed {result.total_processed} changes")

    @service_call
    def find_guest(self, query: str, event_id: str, user_id: Optional[str] = None) -> OperationResult:
        if not query or not query.strip():
            raise ValidationError("Name parameter is required")
        self._load_event(event_id, user_id)

        guest = name_matcher.resolve(query, self.store.list_guests(event_id))
        if guest is None:
            raise NotFoundError("Guest not found")

        table = None
        if guest.table_id:
            found = next((t for t in self.store.list_tables(event_id) if t.id == guest.table_id), None)
            if found:
                table = {"id": found.id, "name": found.name, "color": found.color}

        return OperationResult.ok(
            "Guest information found",
            {
                "id": guest.id,
                "name": guest.display_name,
                "first_name": guest.first_name,
                "last_name": guest.last_name,
                "phone_number": guest.phone_number,
                "email": guest.email,
                "table": table,
            },
        )

    @service_call
    def suggest(self, prefix: str, event_id: str, limit: Optional[int] = None) -> OperationResult:
        limit = settings.SUGGEST_LIMIT if limit is None else limit
        # Short prefixes never reach the store
        if len((prefix or "").strip()) < settings.SUGGEST_MIN_PREFIX:
            return OperationResult.ok("Suggestions", {"suggestions": []})

        self._load_event(event_id)
        suggestions = name_matcher.suggest(prefix, self.store.list_guests(event_id), limit)
        return OperationResult.ok("Suggestions", {"suggestions": suggestions})

    # -------- event lifecycle --------

    @service_call
    def create_event(self, user_id: str, name: str) -> OperationResult:
        if not user_id or not name or not name.strip():
            raise ValidationError("Event name and owner are required")

        event_id = new_record_id()
        op = WriteOp.create(EVENTS, event_id, {"name": name.strip(), "user_id": user_id})
        result = self.applier.apply_operations([op])
        return batch_outcome(
            result,
            "Event created successfully",
            {"id": event_id, "name": name.strip(), "user_id": user_id},
        )

    @service_call
    def create_tables(
        self,
        event_id: str,
        count: int,
        capacity: Optional[int] = None,
        color: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> OperationResult:
        """Add ``count`` tables named after the ones that already exist"""
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValidationError("Invalid number of tables.")
        capacity = settings.DEFAULT_TABLE_CAPACITY if capacity is None else capacity
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValidationError("Table capacity must be an integer >= 1")

        event = self._load_event(event_id, user_id)
        start = len(self.store.list_tables(event_id)) + 1

        operations: List[WriteOp] = []
        for number in range(start, start + count):
            operations.append(WriteOp.create(TABLES, new_record_id(), {
                "event_id": event_id,
                "user_id": event.user_id,
                "name": f"Table {number}",
                "capacity": capacity,
                "color": color or settings.DEFAULT_TABLE_COLOR,
            }))

        result = self.applier.apply_operations(operations)
        return batch_outcome(
            result,
            f"Created {result.total_processed} tables",
            {"table_ids": [op.record_id for op in operations]},
        )

    @service_call
    def rename_tables(
        self,
        event_id: str,
        scheme: str,
        prefix: str = "Table",
        user_id: Optional[str] = None,
    ) -> OperationResult:
        self._load_event(event_id, user_id)
        tables = self.store.list_tables(event_id)
        if not tables:
            raise NotFoundError("No tables found for this event")

        changes = [
            TableChange(table_id=t.id, updates={"name": table_name_for(i, scheme, prefix)})
            for i, t in enumerate(tables)
        ]
        result = self.applier.apply([], changes)
        return batch_outcome(
            result,
            f"Successfully renamed {result.total_processed} tables using {scheme} convention",
            {"names": {c.table_id: c.updates["name"] for c in changes}},
        )

    @service_call
    def delete_tables(self, event_id: str, table_ids: Sequence[str], user_id: Optional[str] = None) -> OperationResult:
        """Delete tables and unassign their guests.

        Guest updates are submitted ahead of the deletes. When a guest update
        chunk fails while a delete lands, the guest keeps the id of a deleted
        table; readers treat such dangling ids as unassigned.
        """
        if not table_ids:
            raise ValidationError("No tables selected")
        self._load_event(event_id, user_id)

        existing = {t.id for t in self.store.list_tables(event_id)}
        targets = [tid for tid in dict.fromkeys(table_ids) if tid in existing]
        if not targets:
            raise NotFoundError("Table not found")

        target_set = set(targets)
        operations = [
            WriteOp.update(GUESTS, g.id, {"table_id": None})
            for g in self.store.list_guests(event_id)
            if g.table_id in target_set
        ]
        operations += [WriteOp.delete(TABLES, tid) for tid in targets]

        result = self.applier.apply_operations(operations)
        return batch_outcome(result, f"Deleted {len(targets)} tables", {"deleted_table_ids": targets})

    @service_call
    def reset_event(self, event_id: str, user_id: Optional[str] = None) -> OperationResult:
        """Unassign every guest and delete every table; guests are kept"""
        self._load_event(event_id, user_id)

        operations = [
            WriteOp.update(GUESTS, g.id, {"table_id": None})
            for g in self.store.list_guests(event_id)
            if g.table_id is not None
        ]
        operations += [WriteOp.delete(TABLES, t.id) for t in self.store.list_tables(event_id)]

        result = self.applier.apply_operations(operations)
        return batch_outcome(result, "Event reset successfully")

    @service_call
    def delete_event(self, event_id: str, user_id: Optional[str] = None) -> OperationResult:
        """Delete an event together with its guests and tables.

        The event itself is only deleted once every guest and table delete
        has committed; otherwise it stays so the call can be repeated.
        """
        self._load_event(event_id, user_id)

        operations = [WriteOp.delete(GUESTS, g.id) for g in self.store.list_guests(event_id)]
        operations += [WriteOp.delete(TABLES, t.id) for t in self.store.list_tables(event_id)]

        children = self.applier.apply_operations(operations)
        if not children.success:
            logger.warning(f"Event {event_id} kept: {len(children.errors)} guest/table chunks failed")
            return batch_outcome(children, "Event deleted successfully", {"deleted_event_id": None})

        event = self.applier.apply_operations([WriteOp.delete(EVENTS, event_id)])
        result = BatchResult(
            success=event.success,
            total_processed=children.total_processed + event.total_processed,
            errors=event.errors,
        )
        return batch_outcome(
            result,
            "Event deleted successfully",
            {"deleted_event_id": event_id if event.success else None},
        )

    @service_call
    def import_guests(
        self,
        event_id: str,
        rows: Sequence[GuestImportRow],
        user_id: Optional[str] = None,
    ) -> OperationResult:
        event = self._load_event(event_id, user_id)

        operations: List[WriteOp] = []
        skipped = 0
        for row in rows:
            fields = {
                key: (value.strip() if isinstance(value, str) else value) or None
                for key, value in row.model_dump().items()
            }
            if not guest_display_name(fields["first_name"], fields["last_name"], fields["name"]):
                skipped += 1
                continue
            operations.append(WriteOp.create(GUESTS, new_record_id(), {
                **fields,
                "event_id": event_id,
                "user_id": event.user_id,
                "table_id": None,
            }))

        if not operations:
            raise ValidationError("No valid guests to import")

        result = self.applier.apply_operations(operations)
        return batch_outcome(
            result,
            f"Imported {result.total_processed} guests",
            {"imported_count": result.total_processed, "skipped_count": skipped},
        )

    @service_call
    def delete_guests(
        self,
        event_id: str,
        guest_ids: Optional[Sequence[str]] = None,
        user_id: Optional[str] = None,
    ) -> OperationResult:
        """Delete the listed guests, or every guest when ``guest_ids`` is None.

        Ids that do not belong to the event are ignored.
        """
        self._load_event(event_id, user_id)
        guests = self.store.list_guests(event_id)

        if guest_ids is None:
            targets = [g.id for g in guests]
        else:
            wanted = set(guest_ids)
            targets = [g.id for g in guests if g.id in wanted]
            if not targets:
                raise NotFoundError("No matching guests found")

        if not targets:
            return OperationResult.ok("No guests to delete", {"deleted_count": 0, "errors": []})

        result = self.applier.apply_operations([WriteOp.delete(GUESTS, gid) for gid in targets])
        return batch_outcome(
            result,
            f"Deleted {result.total_processed} guests",
            {"deleted_count": result.total_processed},
        )
