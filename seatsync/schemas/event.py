"""
Event-related Pydantic schemas
"""

from pydantic import BaseModel, Field

class EventCreate(BaseModel):
    """Schema for creating an event"""
    name: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)

class EventRecord(BaseModel):
    """Event as returned by a storage backend"""
    id: str
    name: str
    user_id: str

    class Config:
        from_attributes = True
