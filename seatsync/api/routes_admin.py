"""
Admin API routes - requires authentication
"""

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from seatsync.api.deps import get_seating_service
from seatsync.core.config import settings
from seatsync.schemas.batch import BatchSaveRequest
from seatsync.schemas.event import EventCreate
from seatsync.schemas.guest import GuestsDelete
from seatsync.schemas.table import TablesCreate, TablesDelete, TablesRename
from seatsync.services.excel_service import ExcelService
from seatsync.services.seating_service import SeatingService
from seatsync.utils.responses import error_response, result_response
from seatsync.utils.security import verify_admin_token

router = APIRouter(dependencies=[Depends(verify_admin_token)])

@router.post("/events")
async def create_event(
    event_data: EventCreate,
    service: SeatingService = Depends(get_seating_service)
):
    """Create a new event"""
    result = await run_in_threadpool(service.create_event, event_data.user_id, event_data.name)
    return result_response(result)

@router.delete("/events/{event_id}")
async def delete_event(
    event_id: str,
    service: SeatingService = Depends(get_seating_service)
):
    """Delete an event with all of its guests and tables"""
    result = await run_in_threadpool(service.delete_event, event_id)
    return result_response(result)

@router.post("/events/{event_id}/reset")
async def reset_event(
    event_id: str,
    service: SeatingService = Depends(get_seating_service)
):
    """Unassign all guests and delete all tables"""
    result = await run_in_threadpool(service.reset_event, event_id)
    return result_response(result)

@router.post("/events/{event_id}/auto-assign")
async def auto_assign(
    event_id: str,
    service: SeatingService = Depends(get_seating_service)
):
    """Spread unassigned guests evenly across the event's tables"""
    result = await run_in_threadpool(service.auto_assign, event_id)
    return result_response(result)

@router.post("/assignments/batch")
async def save_assignments(
    batch: BatchSaveRequest,
    service: SeatingService = Depends(get_seating_service)
):
    """Save guest assignment and table edits in chunked batches"""
    result = await run_in_threadpool(
        service.bulk_save,
        batch.guest_changes,
        batch.table_changes,
        batch.event_id,
    )
    return result_response(result)

@router.post("/events/{event_id}/tables")
async def create_tables(
    event_id: str,
    tables: TablesCreate,
    service: SeatingService = Depends(get_seating_service)
):
    """Create tables for an event"""
    result = await run_in_threadpool(
        service.create_tables, event_id, tables.count, tables.capacity, tables.color
    )
    return result_response(result)

@router.patch("/events/{event_id}/tables/rename")
async def rename_tables(
    event_id: str,
    rename: TablesRename,
    service: SeatingService = Depends(get_seating_service)
):
    """Rename every table using a naming convention"""
    result = await run_in_threadpool(service.rename_tables, event_id, rename.scheme, rename.prefix)
    return result_response(result)

@router.delete("/events/{event_id}/tables")
async def delete_tables(
    event_id: str,
    tables: TablesDelete,
    service: SeatingService = Depends(get_seating_service)
):
    """Delete tables; their guests become unassigned"""
    result = await run_in_threadpool(service.delete_tables, event_id, tables.table_ids)
    return result_response(result)

@router.post("/events/{event_id}/guests/import")
async def import_guests(
    event_id: str,
    file: UploadFile = File(...),
    service: SeatingService = Depends(get_seating_service)
):
    """Import guests from an Excel or CSV file"""
    if not file.filename or not file.filename.lower().endswith(ExcelService.SUPPORTED_EXTENSIONS):
        return error_response(
            message="Invalid file format. Please upload an Excel (.xlsx, .xls) or CSV file",
            error_code="validation_error",
            status_code=400
        )

    file_content = await file.read()
    if len(file_content) > settings.MAX_UPLOAD_SIZE:
        return error_response(
            message="File too large",
            error_code="validation_error",
            status_code=413
        )

    rows, errors = ExcelService.parse_guest_rows(file_content, file.filename)
    if errors:
        return error_response(
            message="Guest file validation failed",
            error_code="validation_error",
            details=errors,
            status_code=422
        )

    result = await run_in_threadpool(service.import_guests, event_id, rows)
    return result_response(result)

@router.delete("/events/{event_id}/guests")
async def delete_guests(
    event_id: str,
    payload: GuestsDelete,
    service: SeatingService = Depends(get_seating_service)
):
    """Delete selected guests, or all guests of the event"""
    result = await run_in_threadpool(service.delete_guests, event_id, payload.guest_ids)
    return result_response(result)
