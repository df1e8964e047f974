"""
Dashboard reporting service.
Monthly stats, the sales table and no-show follow-ups, computed with pandas.
"""
import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from models import Attendance, OnboardingRecord, Role
from services.attendance import display_status
from services.session_numbering import session_number_map
from utils.date_helpers import is_iso_date

logger = logging.getLogger(__name__)


def records_to_df(records: List[OnboardingRecord]) -> pd.DataFrame:
    """One row per record, snake_case columns, attendance as plain strings"""
    columns = list(OnboardingRecord.model_fields.keys())
    if not records:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([r.model_dump(mode="json") for r in records], columns=columns)


def available_months(records: List[OnboardingRecord]) -> List[str]:
    """Distinct months, newest first"""
    return sorted({r.month for r in records if r.month}, reverse=True)


def monthly_stats(records: List[OnboardingRecord], month: str) -> Dict[str, Any]:
    """
    Attendance and per-employee counts for one month, plus data quality checks.

    Args:
        records: All records (filtered here by month)
        month: YYYY-MM

    Returns:
        {month, total, total_overall, by_attendance, by_employee, issues}
    """
    df = records_to_df(records)
    month_df = df[df["month"] == month]

    by_attendance = {a.value: 0 for a in Attendance}
    if not month_df.empty:
        counts = month_df["attendance"].fillna(Attendance.PENDING.value).value_counts()
        for status, count in counts.items():
            by_attendance[str(status)] = int(count)

    by_employee = []
    if not month_df.empty:
        emp = month_df.assign(
            employee=month_df["employee_name"].fillna("").replace("", "Unknown"),
            is_completed=month_df["attendance"] == Attendance.COMPLETED.value,
            is_pending=month_df["attendance"].isin([Attendance.PENDING.value, Attendance.PENDING_APPROVAL.value]),
        )
        grouped = emp.groupby("employee").agg(
            total=("attendance", "size"),
            completed=("is_completed", "sum"),
            pending=("is_pending", "sum"),
        ).reset_index()
        for row in grouped.itertuples(index=False):
            total, completed, pending = int(row.total), int(row.completed), int(row.pending)
            by_employee.append({
                "employee_name": row.employee,
                "total": total,
                "completed": completed,
                "pending": pending,
                "other": total - completed - pending,
            })
        by_employee.sort(key=lambda e: (-e["total"], e["employee_name"]))

    missing_account = month_df["account_number"].fillna("").str.strip() == ""
    invalid_dates = [d for d in month_df["date"].tolist() if not is_iso_date(d)]

    stats = {
        "month": month,
        "total": int(len(month_df)),
        "total_overall": int(len(df)),
        "by_attendance": by_attendance,
        "by_employee": by_employee,
        "issues": {
            "invalid_dates": len(invalid_dates),
            "missing_account_number": int(missing_account.sum()),
        },
    }
    logger.debug(f"Stats for {month}: {stats['total']} sessions")
    return stats


def sales_view(
    records: List[OnboardingRecord],
    employee: Optional[str] = None,
    attendance: Optional[str] = None,
    month: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Records as the sales team sees them: derived session numbers and
    pending_approval shown as pending. Newest first.
    """
    numbers = session_number_map(records)
    query = (search or "").strip().lower()

    rows = []
    for record in records:
        status = display_status(record.attendance.value, Role.SALES.value)
        if employee and record.employee_name != employee:
            continue
        if attendance and status != attendance:
            continue
        if month and record.month != month:
            continue
        if query:
            haystack = " ".join(
                str(v or "") for v in (record.client_name, record.employee_name,
                                       record.account_number, record.notes)
            ).lower()
            if query not in haystack:
                continue

        row = record.to_api()
        row["sessionNumber"] = numbers.get(record.id, record.session_number)
        row["attendance"] = status
        rows.append(row)

    rows.sort(key=lambda r: r.get("date") or "", reverse=True)
    return rows


def no_show_follow_ups(records: List[OnboardingRecord]) -> List[Dict[str, Any]]:
    """No-show sessions nobody has reached out about yet, oldest first"""
    pending = [
        r for r in records
        if r.attendance == Attendance.NO_SHOW and not r.no_show_reached_out
    ]
    pending.sort(key=lambda r: r.date or "")
    return [r.to_api() for r in pending]
