from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
from weekly_tracker.database import get_db
from weekly_tracker.config import Settings
from weekly_tracker.models.schemas import SaveTimesheetRequest
from weekly_tracker.services.allocation_service import validate_entries
from weekly_tracker.services.timesheet_service import TimesheetService
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/timeentries", tags=["timeentries"])

NOT_FOUND = {"error": "Entry not found"}


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_id(settings: Settings = Depends(get_app_settings)) -> str:
    # No authentication: every request acts as the configured user
    return settings.default_user_id


@router.get("")
def list_time_entries(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id)
):
    """All saved weeks for the user, as {weekKey: entries}."""
    return TimesheetService.get_all(db, user_id)


# Week keys contain slashes ("1/6/2025 - 1/12/2025"), hence the path converter
@router.get("/{week_key:path}")
def get_time_entry(
    week_key: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id)
):
    record = TimesheetService.get_week(db, user_id, week_key)
    if record is None:
        return JSONResponse(status_code=404, content=NOT_FOUND)
    return JSONResponse(content=jsonable_encoder(record))


@router.post("")
def save_time_entry(
    payload: Optional[SaveTimesheetRequest] = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id),
    settings: Settings = Depends(get_app_settings)
):
    if payload is None or not payload.weekKey or payload.entries is None:
        return JSONResponse(
            status_code=400,
            content={"error": "Missing required fields: weekKey and entries"}
        )

    entries = payload.entry_dicts()

    if settings.enforce_allocation_rules:
        message = validate_entries(entries)
        if message:
            logger.warning(f"Rejected timesheet {payload.weekKey}: {message}")
            return JSONResponse(status_code=400, content={"error": message})

    TimesheetService.save(db, user_id, payload.weekKey, entries)
    return {"success": True}


@router.delete("/{week_key:path}")
def delete_time_entry(
    week_key: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_user_id)
):
    if not TimesheetService.delete(db, user_id, week_key):
        return JSONResponse(status_code=404, content=NOT_FOUND)
    return {"success": True}
