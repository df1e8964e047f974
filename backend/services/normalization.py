"""
Record normalization service.
Coerces inbound records (form submissions, database rows, imported sheet rows)
to the canonical OnboardingRecord shape before numbering.
"""
import logging
from typing import Any, Dict, List, Optional

from exceptions import ValidationError
from models import ATTENDANCE_VALUES, Attendance, OnboardingRecord
from utils.date_helpers import is_iso_date, month_of, normalize_date

logger = logging.getLogger(__name__)

# camelCase (web client) -> snake_case (database)
FIELD_ALIASES = {
    "employeeId": "employee_id",
    "employeeName": "employee_name",
    "clientName": "client_name",
    "accountNumber": "account_number",
    "sessionNumber": "session_number",
    "noShowReachedOut": "no_show_reached_out",
    "noShowReachedOutDate": "no_show_reached_out_date",
    "noShowNotes": "no_show_notes",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

REQUIRED_FIELDS = ["client_name", "account_number", "date"]


def _to_snake_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {FIELD_ALIASES.get(k, k): v for k, v in raw.items()}


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value).strip()


def _session_number(value: Any) -> int:
    try:
        n = int(float(value))
    except (TypeError, ValueError):
        return 1
    return n if n >= 1 else 1


def normalize_attendance(value: Any) -> Attendance:
    """Known statuses pass through; anything else falls back to pending"""
    if isinstance(value, Attendance):
        return value
    s = (_clean_str(value) or "").lower()
    if s in ATTENDANCE_VALUES:
        return Attendance(s)
    if s:
        logger.debug(f"Unknown attendance value '{value}', using pending")
    return Attendance.PENDING


def normalize_record(raw: Any) -> OnboardingRecord:
    """
    Build a canonical OnboardingRecord from a loosely shaped dict.

    - date reparsed to YYYY-MM-DD where possible
    - account_number, client_name, employee_name trimmed
    - session_number defaults to 1
    - attendance defaults to pending (unknown values too)
    - month always recomputed from date
    """
    if isinstance(raw, OnboardingRecord):
        raw = raw.model_dump()
    data = _to_snake_keys(dict(raw))

    iso_date = normalize_date(data.get("date"))
    notes = _clean_str(data.get("notes"))

    record = {
        "id": data.get("id"),
        "employee_id": data.get("employee_id") if data.get("employee_id") != "" else None,
        "employee_name": _clean_str(data.get("employee_name")),
        "client_name": _clean_str(data.get("client_name")) or "",
        "account_number": _clean_str(data.get("account_number")),
        "date": iso_date,
        "month": month_of(iso_date),
        "session_number": _session_number(data.get("session_number")),
        "attendance": normalize_attendance(data.get("attendance")),
        "notes": notes or None,
        "no_show_reached_out": bool(data.get("no_show_reached_out") or False),
        "no_show_reached_out_date": _clean_str(data.get("no_show_reached_out_date")) or None,
        "no_show_notes": _clean_str(data.get("no_show_notes")) or None,
        "created_at": _clean_str(data.get("created_at")),
        "updated_at": _clean_str(data.get("updated_at")),
    }
    return OnboardingRecord(**record)


def normalize_records(raws: List[Any]) -> List[OnboardingRecord]:
    return [normalize_record(r) for r in raws]


def missing_required_fields(record: OnboardingRecord) -> List[str]:
    """Names of required fields that are empty on a normalized record"""
    missing = []
    if record.employee_id in (None, "") and not record.employee_name:
        missing.append("employee_id")
    for field in REQUIRED_FIELDS:
        if not getattr(record, field):
            missing.append(field)
    return missing


def validate_for_create(record: OnboardingRecord) -> OnboardingRecord:
    """
    Check a normalized record is complete enough to be stored.

    Raises:
        ValidationError: if required fields are missing or the date is not ISO
    """
    missing = missing_required_fields(record)
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            fields=missing,
        )
    if not is_iso_date(record.date):
        raise ValidationError(f"Invalid date '{record.date}', expected YYYY-MM-DD", fields=["date"])
    return record
