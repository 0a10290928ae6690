"""
Public API routes - no authentication required
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from seatsync.api.deps import get_seating_service
from seatsync.services.excel_service import ExcelService
from seatsync.services.seating_service import SeatingService
from seatsync.utils.responses import rate_limit_error, result_response
from seatsync.utils.security import get_client_ip, public_rate_limiter

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/events/{event_id}/find-guest")
async def find_guest(
    event_id: str,
    request: Request,
    name: str = Query(""),
    service: SeatingService = Depends(get_seating_service)
):
    """Look up a guest and their table by name"""
    if not public_rate_limiter.allow(get_client_ip(request)):
        return rate_limit_error()

    result = await run_in_threadpool(service.find_guest, name, event_id)
    return result_response(result)

@router.get("/events/{event_id}/suggest")
async def suggest_guests(
    event_id: str,
    request: Request,
    q: str = Query(""),
    limit: Optional[int] = Query(None, ge=1, le=50),
    service: SeatingService = Depends(get_seating_service)
):
    """Autocomplete guest names"""
    if not public_rate_limiter.allow(get_client_ip(request)):
        return rate_limit_error()

    result = await run_in_threadpool(service.suggest, q, event_id, limit)
    return result_response(result)

@router.get("/template/guest_import_template.xlsx")
async def download_import_template():
    """Download Excel template for guest import"""
    template_bytes = ExcelService.create_template()

    return Response(
        content=template_bytes,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=guest_import_template.xlsx"}
    )
