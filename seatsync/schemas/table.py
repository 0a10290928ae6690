"""
Table-related Pydantic schemas
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field

class TableRecord(BaseModel):
    """Table as returned by a storage backend"""
    id: str
    event_id: str
    user_id: str
    name: str
    capacity: int = 10
    color: str = "#3B82F6"

    class Config:
        from_attributes = True

class TablesCreate(BaseModel):
    """Create a number of tables for an event"""
    count: int = Field(..., ge=1, le=200)
    capacity: Optional[int] = Field(None, ge=1)
    color: Optional[str] = None

class TablesRename(BaseModel):
    """Rename every table of an event using a naming scheme"""
    scheme: Literal["numbers", "letters", "roman", "custom-prefix"]
    prefix: str = "Table"

class TablesDelete(BaseModel):
    table_ids: List[str]
