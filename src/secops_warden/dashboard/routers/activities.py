"""Activities API router: scheduler status and per-activity stop."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from secops_warden.errors import ActivityNotRunningError

router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.get("")
async def list_activities(request: Request) -> JSONResponse:
    scheduler = request.app.state.service.scheduler
    return JSONResponse([status.to_dict() for status in scheduler.statuses()])


@router.post("/{name}/stop")
async def stop_activity(name: str, request: Request) -> JSONResponse:
    """Signal one activity loop to stop; an in-flight execution finishes first."""
    scheduler = request.app.state.service.scheduler
    if not scheduler.stop_activity(name):
        raise ActivityNotRunningError(name)
    return JSONResponse({"status": "stopping", "name": name})
