"""
Dashboard API Routes
Monthly stats, the sales table and no-show follow-ups.
"""
from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from pydantic import BaseModel
import logging

from auth import get_current_user, require_team
from models import Role
from services.onboarding_store import OnboardingStore, get_onboarding_store
from services.reporting import available_months, monthly_stats, no_show_follow_ups, sales_view

router = APIRouter()
logger = logging.getLogger(__name__)


class EmployeeStats(BaseModel):
    """Per-employee session counts for a month"""
    employee_name: str
    total: int
    completed: int
    pending: int
    other: int


class DataIssues(BaseModel):
    """Data quality counters"""
    invalid_dates: int
    missing_account_number: int


class MonthlyStats(BaseModel):
    """Monthly stats response"""
    month: str
    total: int
    total_overall: int
    by_attendance: Dict[str, int]
    by_employee: List[EmployeeStats]
    issues: DataIssues
    months: List[str]


def _visible_records(store: OnboardingStore, user: Dict[str, Any]):
    if user.get("role") == Role.TEAM.value:
        return store.list_records_by_employee(user.get("employee_id"))
    return store.list_all_records()


@router.get("/stats", response_model=MonthlyStats)
async def get_monthly_stats(
    month: Optional[str] = Query(None, description="Month (YYYY-MM), defaults to the current month"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    store: OnboardingStore = Depends(get_onboarding_store),
):
    """
    Attendance and per-employee counts for one month.
    Team members get stats over their own sessions only.
    """
    month = month or datetime.now(timezone.utc).strftime("%Y-%m")

    try:
        records = _visible_records(store, current_user)
        stats = monthly_stats(records, month)
        stats["months"] = available_months(records)
        logger.info(f"Stats for {current_user.get('identity')} ({month}): {stats['total']} sessions")
        return stats

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting monthly stats: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/sales")
async def get_sales_view(
    employee: Optional[str] = Query(None, description="Filter by employee name"),
    attendance: Optional[str] = Query(None, description="Filter by displayed attendance"),
    month: Optional[str] = Query(None, description="Filter by month (YYYY-MM)"),
    search: Optional[str] = Query(None, description="Search client, employee, account or notes"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    store: OnboardingStore = Depends(get_onboarding_store),
):
    """
    Read-only onboarding table for the sales team.
    Session numbers are derived on read; pending approvals show as pending.
    """
    try:
        records = store.list_all_records()
        rows = sales_view(records, employee=employee, attendance=attendance, month=month, search=search)
        return {"onboardings": rows, "total": len(rows), "months": available_months(records)}

    except Exception as e:
        logger.error(f"Error building sales view: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/no-show-follow-ups")
async def get_no_show_follow_ups(
    current_user: Dict[str, Any] = Depends(require_team),
    store: OnboardingStore = Depends(get_onboarding_store),
):
    """No-shows that still need someone to reach out"""
    try:
        items = no_show_follow_ups(_visible_records(store, current_user))
        return {"onboardings": items, "total": len(items)}

    except Exception as e:
        logger.error(f"Error getting no-show follow-ups: {e}")
        raise HTTPException(status_code=500, detail=str(e))
