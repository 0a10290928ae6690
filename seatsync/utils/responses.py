"""
Standardized response utilities
"""

from typing import Any, Optional
from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from seatsync.core.errors import ErrorCode
from seatsync.schemas.common import ErrorResponse, OperationResult, StandardResponse

# error_code -> HTTP status for failed service results
ERROR_STATUS = {
    ErrorCode.VALIDATION.value: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND.value: status.HTTP_404_NOT_FOUND,
    ErrorCode.NO_TABLES.value: status.HTTP_409_CONFLICT,
    ErrorCode.NO_UNASSIGNED_GUESTS.value: status.HTTP_409_CONFLICT,
    ErrorCode.PARTIAL_FAILURE.value: status.HTTP_207_MULTI_STATUS,
    ErrorCode.TRANSIENT_STORE.value: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.CANCELLED.value: status.HTTP_503_SERVICE_UNAVAILABLE,
}

def _render(body: BaseModel, status_code: int) -> JSONResponse:
    return JSONResponse(content=body.model_dump(), status_code=status_code)

def success_response(message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    """Create standardized success response"""
    return _render(StandardResponse(success=True, message=message, data=data), status_code)

def error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Any = None,
    status_code: int = 400
) -> JSONResponse:
    """Create standardized error response"""
    return _render(ErrorResponse(message=message, error_code=error_code, details=details), status_code)

def status_for(result: OperationResult) -> int:
    if result.success:
        return status.HTTP_200_OK
    return ERROR_STATUS.get(result.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)

def result_response(result: OperationResult) -> JSONResponse:
    """Render a service result; failures carry their data as ``details``"""
    if result.success:
        return success_response(result.message, result.data)
    return error_response(result.message, result.error_code, result.data, status_for(result))

def rate_limit_error():
    """Create rate limit error"""
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Please try again later."
    )
