"""
Error taxonomy shared by the seating engine and its storage backends.

Every error carries a stable ``code`` so the service layer can turn it into
an ``OperationResult`` and the HTTP layer into a status code without
string matching.
"""

from enum import Enum


class ErrorCode(str, Enum):
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    NO_TABLES = "no_tables"
    NO_UNASSIGNED_GUESTS = "no_unassigned_guests"
    TRANSIENT_STORE = "transient_store_error"
    PERMANENT_STORE = "permanent_store_error"
    PARTIAL_FAILURE = "partial_failure"
    CANCELLED = "cancelled"
    INTERNAL = "internal_error"


class SeatingError(Exception):
    """Base class for errors raised by the seating engine"""

    code = ErrorCode.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SeatingError):
    """Malformed caller input, rejected before touching the store"""

    code = ErrorCode.VALIDATION


class InvalidInput(ValidationError):
    """Arguments outside an algorithm's domain"""


class NotFoundError(SeatingError):
    code = ErrorCode.NOT_FOUND


class NoTablesError(SeatingError):
    code = ErrorCode.NO_TABLES

    def __init__(self, message: str = "No tables found. Please create tables first."):
        super().__init__(message)


class NoUnassignedGuestsError(SeatingError):
    code = ErrorCode.NO_UNASSIGNED_GUESTS

    def __init__(self, message: str = "No unassigned guests found."):
        super().__init__(message)


class StoreError(SeatingError):
    """A commit or read against the persistent store failed"""


class TransientStoreError(StoreError):
    """Rate limiting, timeouts, contention; safe to retry"""

    code = ErrorCode.TRANSIENT_STORE


class PermanentStoreError(StoreError):
    """The store rejected the data; retrying cannot help"""

    code = ErrorCode.PERMANENT_STORE
