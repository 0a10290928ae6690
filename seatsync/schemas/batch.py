"""
Change records and batch results
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

class GuestChange(BaseModel):
    """Move a guest to a table, or unassign it with ``table_id=None``"""
    guest_id: str
    table_id: Optional[str] = None

class TableChange(BaseModel):
    """Field updates for one table"""
    table_id: str
    updates: Dict[str, Any]

class BatchSaveRequest(BaseModel):
    event_id: Optional[str] = None
    guest_changes: List[GuestChange] = Field(default_factory=list)
    table_changes: List[TableChange] = Field(default_factory=list)

class ChunkError(BaseModel):
    """Failure of one chunk.

    ``chunk_index`` only correlates failures with each other; it carries no
    meaning outside a single ``BatchResult``.
    """
    chunk_index: int
    message: str
    reason: str

class BatchResult(BaseModel):
    success: bool
    total_processed: int
    errors: List[ChunkError] = Field(default_factory=list)
