"""Onboarding session routes: listing, logging, attendance actions and deletes"""
from fastapi import APIRouter, HTTPException, Depends, Query
from pydantic import BaseModel
from typing import List, Dict, Any, Optional
import logging

from auth import get_current_user, require_admin, require_team
from models import Role
from routes.errors import to_http_exception
from services.attendance import TRANSITIONS, can_perform, display_status, next_status
from services.onboarding_store import OnboardingStore, get_onboarding_store
from services.sheets_exporter import SheetsExporter, get_sheets_exporter
from services.sync import delete_and_renumber, import_records, log_session

router = APIRouter()
logger = logging.getLogger(__name__)


class BulkCreateRequest(BaseModel):
    """Request to insert many onboardings at once"""
    onboardings: List[Dict[str, Any]]


class AttendanceActionRequest(BaseModel):
    """Optional no-show follow-up details sent with mark_no_show"""
    reached_out: Optional[bool] = None
    notes: Optional[str] = None


class ReachedOutRequest(BaseModel):
    """Follow-up on a no-show"""
    reached_out: bool = True
    notes: Optional[str] = ""


def _owns(user: Dict[str, Any], record) -> bool:
    return str(record.employee_id) == str(user.get("employee_id"))


def _for_role(row: Dict[str, Any], role: Optional[str]) -> Dict[str, Any]:
    row["attendance"] = display_status(row["attendance"], role)
    return row


@router.get("/")
async def list_onboardings(
    current_user: Dict[str, Any] = Depends(get_current_user),
    store: OnboardingStore = Depends(get_onboarding_store),
    employee_id: Optional[str] = Query(None, description="Filter by employee id"),
    month: Optional[str] = Query(None, description="Filter by month (YYYY-MM)"),
    attendance: Optional[str] = Query(None, description="Filter by attendance status"),
    start_date: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
):
    """
    List onboardings, newest first.
    Team members only see their own sessions.
    """
    role = current_user.get("role")
    try:
        if role == Role.TEAM.value:
            records = store.list_records_by_employee(current_user.get("employee_id"))
        elif employee_id:
            records = store.list_records_by_employee(employee_id)
        elif month:
            records = store.list_records_by_month(month)
        else:
            records = store.list_all_records()

        if month:
            records = [r for r in records if r.month == month]
        if start_date:
            records = [r for r in records if r.date and r.date >= start_date]
        if end_date:
            records = [r for r in records if r.date and r.date <= end_date]

        rows = [_for_role(r.to_api(), role) for r in records]
        if attendance:
            rows = [row for row in rows if row["attendance"] == attendance]

        return {"onboardings": rows, "total": len(rows)}

    except Exception as e:
        raise to_http_exception(e, "fetching onboardings")


@router.get("/{record_id}")
async def get_onboarding(
    record_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    store: OnboardingStore = Depends(get_onboarding_store),
):
    """Get a single onboarding"""
    try:
        record = store.get_record(record_id)
        if current_user.get("role") == Role.TEAM.value and not _owns(current_user, record):
            raise HTTPException(status_code=403, detail="Not your onboarding")
        return _for_role(record.to_api(), current_user.get("role"))
    except Exception as e:
        raise to_http_exception(e, "fetching onboarding")


@router.post("/", status_code=201)
async def create_onboarding(
    payload: Dict[str, Any],
    current_user: Dict[str, Any] = Depends(require_team),
    store: OnboardingStore = Depends(get_onboarding_store),
    exporter: SheetsExporter = Depends(get_sheets_exporter),
):
    """
    Log a new onboarding session.
    The session number is assigned here; any later sessions of the same
    account shift up by one.
    """
    data = dict(payload)
    # Team members always log sessions as themselves
    if current_user.get("role") == Role.TEAM.value:
        for key in ("employeeId", "employeeName"):
            data.pop(key, None)
        data["employee_id"] = current_user.get("employee_id")
        data["employee_name"] = current_user.get("employee_name")

    try:
        result = log_session(store, data, exporter)
    except Exception as e:
        raise to_http_exception(e, "creating onboarding")

    delivery = result["delivery"]
    return {
        "onboarding": result["record"].to_api(),
        "renumbered": result["renumbered"],
        "delivery": delivery.to_dict() if delivery else None,
        "warning": result["warning"],
    }


@router.post("/bulk", status_code=201)
async def bulk_create_onboardings(
    request: BulkCreateRequest,
    current_user: Dict[str, Any] = Depends(require_admin),
    store: OnboardingStore = Depends(get_onboarding_store),
):
    """Insert many onboardings, then renumber every account"""
    if not request.onboardings:
        raise HTTPException(status_code=400, detail="Onboardings array is required")

    try:
        result = import_records(store, request.onboardings)
    except Exception as e:
        raise to_http_exception(e, "bulk creating onboardings")

    return {
        "message": f"Successfully created {result['count']} onboardings",
        **result,
    }


@router.delete("/{record_id}")
async def delete_onboarding(
    record_id: str,
    current_user: Dict[str, Any] = Depends(require_admin),
    store: OnboardingStore = Depends(get_onboarding_store),
):
    """Delete an onboarding and close the gap in its account's numbering"""
    try:
        result = delete_and_renumber(store, record_id)
    except Exception as e:
        raise to_http_exception(e, "deleting onboarding")

    logger.info(f"{current_user.get('identity')} deleted onboarding {record_id}")
    return {
        "message": "Onboarding deleted successfully",
        "onboarding": result["record"].to_api(),
        "renumbered": result["renumbered"],
    }


@router.post("/{record_id}/no-show/reached-out")
async def mark_reached_out(
    record_id: str,
    request: ReachedOutRequest,
    current_user: Dict[str, Any] = Depends(require_team),
    store: OnboardingStore = Depends(get_onboarding_store),
):
    """Record that someone reached out to a no-show client"""
    try:
        record = store.get_record(record_id)
        if current_user.get("role") == Role.TEAM.value and not _owns(current_user, record):
            raise HTTPException(status_code=403, detail="Not your onboarding")
        updated = store.mark_no_show_reached_out(record_id, request.reached_out, request.notes or "")
        return updated.to_api()
    except Exception as e:
        raise to_http_exception(e, "updating no-show follow-up")


@router.post("/{record_id}/{action}")
async def apply_attendance_action(
    record_id: str,
    action: str,
    request: Optional[AttendanceActionRequest] = None,
    current_user: Dict[str, Any] = Depends(require_team),
    store: OnboardingStore = Depends(get_onboarding_store),
):
    """
    Apply an attendance action (request_completion, approve, reject, undo,
    mark_no_show, reschedule, cancel).
    """
    if action not in TRANSITIONS:
        raise HTTPException(status_code=404, detail=f"Unknown attendance action: {action}")

    role = current_user.get("role")
    if not can_perform(action, role):
        raise HTTPException(status_code=403, detail=f"Not allowed to '{action}'")

    try:
        record = store.get_record(record_id)
        if role == Role.TEAM.value and not _owns(current_user, record):
            raise HTTPException(status_code=403, detail="Not your onboarding")

        target = next_status(action, record.attendance)
        no_show = request.model_dump() if request else None
        updated = store.update_attendance(record_id, target, no_show=no_show)
        logger.info(f"{current_user.get('identity')} applied '{action}' to onboarding {record_id}")
        return updated.to_api()
    except Exception as e:
        raise to_http_exception(e, f"applying '{action}'")
