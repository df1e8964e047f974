"""
Database helper functions for the onboardings table.
Maps between database rows (snake_case) and OnboardingRecord.
"""
from typing import List, Dict, Any
import logging

from models import OnboardingRecord
from services.normalization import normalize_record

logger = logging.getLogger(__name__)

ONBOARDINGS_TABLE = 'onboardings'

# Columns written on insert; id, created_at and updated_at are set by Postgres
WRITABLE_COLUMNS = [
    'employee_id', 'employee_name', 'client_name', 'account_number',
    'session_number', 'date', 'month', 'attendance', 'notes',
    'no_show_reached_out', 'no_show_reached_out_date', 'no_show_notes',
]


def record_to_row(record: OnboardingRecord) -> Dict[str, Any]:
    """
    Convert a record to a row dict for insert.
    Empty date strings become None (Postgres rejects '' for date columns).
    """
    data = record.model_dump(mode='json')
    row = {col: data.get(col) for col in WRITABLE_COLUMNS}
    if not row.get('date'):
        row['date'] = None
    if not row.get('month'):
        row['month'] = None
    return row


def row_to_record(row: Dict[str, Any]) -> OnboardingRecord:
    """Convert a database row to a normalized record"""
    return normalize_record(row)


def rows_to_records(rows: List[Dict[str, Any]]) -> List[OnboardingRecord]:
    records = []
    for row in rows or []:
        try:
            records.append(row_to_record(row))
        except Exception as e:
            # Keep reading past a malformed row
            logger.error(f"Skipping unreadable onboarding row {row.get('id')}: {e}")
    return records

