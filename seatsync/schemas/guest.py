"""
Guest-related Pydantic schemas
"""

from typing import List, Optional
from pydantic import BaseModel

from seatsync.models.guest import guest_display_name

class GuestRecord(BaseModel):
    """Guest as returned by a storage backend"""
    id: str
    event_id: str
    user_id: str
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    table_id: Optional[str] = None

    class Config:
        from_attributes = True

    @property
    def display_name(self) -> str:
        return guest_display_name(self.first_name, self.last_name, self.name)

class GuestImportRow(BaseModel):
    """One guest parsed from an import file"""
    name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None

class GuestsDelete(BaseModel):
    """Bulk guest deletion; omit guest_ids to clear the whole event"""
    guest_ids: Optional[List[str]] = None
