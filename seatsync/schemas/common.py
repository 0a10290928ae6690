"""
Common Pydantic schemas
"""

from typing import Any, Optional
from pydantic import BaseModel

from seatsync.core.errors import ErrorCode, SeatingError

class StandardResponse(BaseModel):
    """Standard API response"""
    success: bool
    message: str
    data: Optional[Any] = None

class ErrorResponse(BaseModel):
    """Error response schema"""
    success: bool = False
    message: str
    error_code: Optional[str] = None
    details: Optional[Any] = None

class OperationResult(BaseModel):
    """Outcome of a seating service call.

    Service operations never raise to their callers; failures come back as
    ``success=False`` with a stable ``error_code``.
    """
    success: bool
    message: str
    error_code: Optional[str] = None
    data: Optional[Any] = None

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "OperationResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def failure(cls, message: str, error_code: ErrorCode, data: Any = None) -> "OperationResult":
        return cls(success=False, message=message, error_code=error_code.value, data=data)

    @classmethod
    def from_error(cls, error: SeatingError) -> "OperationResult":
        return cls.failure(error.message, error.code)
