"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .guest import *
from .table import *
from .batch import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "OperationResult",
    "EventCreate",
    "EventRecord",
    "GuestRecord",
    "GuestImportRow",
    "TableRecord",
    "TablesCreate",
    "TablesRename",
    "TablesDelete",
    "GuestsDelete",
    "GuestChange",
    "TableChange",
    "BatchSaveRequest",
    "ChunkError",
    "BatchResult",
]
