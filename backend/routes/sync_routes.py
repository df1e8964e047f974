"""
Google Sheets sync routes.
Full sync, renumbering, drift status, connection test and sheet import.
"""
from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, Any
import logging
import requests

from auth import get_current_user, require_admin
from routes.errors import to_http_exception
from services.onboarding_store import OnboardingStore, get_onboarding_store
from services.session_numbering import arrival_order, find_numbering_drift
from services.sheets_exporter import SheetsExporter, get_sheets_exporter
from services.sync import import_records, renumber_all, sync_all
from services.user_directory import UserDirectory, get_user_directory

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/sheets")
async def sync_to_sheets(
    current_user: Dict[str, Any] = Depends(require_admin),
    store: OnboardingStore = Depends(get_onboarding_store),
    exporter: SheetsExporter = Depends(get_sheets_exporter),
):
    """
    Recompute every session number, persist the changes and rewrite the sheet.
    A failed export is reported in the body; stored numbers stay updated.
    """
    try:
        result = sync_all(store, exporter)
    except Exception as e:
        raise to_http_exception(e, "syncing to Google Sheets")

    delivery = result["delivery"]
    result["delivery"] = delivery.to_dict() if delivery else None
    return result


@router.post("/renumber")
async def renumber_sessions(
    dry_run: bool = Query(False, description="Report drift without writing"),
    current_user: Dict[str, Any] = Depends(require_admin),
    store: OnboardingStore = Depends(get_onboarding_store),
):
    """Recompute session numbers for every account"""
    try:
        result = renumber_all(store, dry_run=dry_run)
    except Exception as e:
        raise to_http_exception(e, "renumbering sessions")

    return {
        "success": True,
        "dry_run": dry_run,
        "drift": result["drift"],
        "written": result["written"],
        "total": len(result["records"]),
    }


@router.get("/status")
async def numbering_status(
    current_user: Dict[str, Any] = Depends(get_current_user),
    store: OnboardingStore = Depends(get_onboarding_store),
):
    """Records whose stored session number is out of date"""
    try:
        records = arrival_order(store.list_all_records())
        drift = find_numbering_drift(records)
    except Exception as e:
        raise to_http_exception(e, "checking session numbers")

    return {
        "total": len(records),
        "in_sync": not drift,
        "drift": drift,
    }


@router.post("/test")
async def test_sheets_connection(
    current_user: Dict[str, Any] = Depends(get_current_user),
    exporter: SheetsExporter = Depends(get_sheets_exporter),
):
    """Check that the Apps Script web app answers"""
    result = exporter.test_connection()
    return result.to_dict()


@router.post("/import")
async def import_from_sheets(
    dry_run: bool = Query(False, description="Preview rows without inserting"),
    current_user: Dict[str, Any] = Depends(require_admin),
    store: OnboardingStore = Depends(get_onboarding_store),
    exporter: SheetsExporter = Depends(get_sheets_exporter),
    directory: UserDirectory = Depends(get_user_directory),
):
    """
    Import rows from the sheet into the store.
    Session numbers found in the sheet are recomputed after import.
    """
    try:
        records = exporter.import_from_sheet(directory.employee_id_for_name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except requests.RequestException as e:
        logger.error(f"Error reading Google Sheets: {e}")
        raise HTTPException(status_code=502, detail=f"Error reading Google Sheets: {str(e)}")

    unmatched = sorted({r.employee_name for r in records if r.employee_id is None and r.employee_name})
    if unmatched:
        logger.warning(f"Unmatched employee names in sheet: {unmatched}")

    if dry_run:
        return {
            "dry_run": True,
            "count": len(records),
            "unmatched_employees": unmatched,
            "preview": [r.to_api() for r in records[:20]],
        }

    try:
        result = import_records(store, records)
    except Exception as e:
        raise to_http_exception(e, "importing from Google Sheets")

    logger.info(f"Imported {result['count']} onboardings from Google Sheets ({result['skipped']} skipped)")
    return {"dry_run": False, "unmatched_employees": unmatched, **result}
