"""
Onboarding store backed by the Supabase 'onboardings' table.

Write operations notify in-process subscribers so open dashboards converge
after any change. There is no version column: concurrent edits to the same
record resolve as last writer wins.
"""
import logging
import threading
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from database import DatabaseClient, get_database_client
from database_helpers import (
    ONBOARDINGS_TABLE,
    record_to_row,
    row_to_record,
    rows_to_records,
)
from exceptions import NotFoundError, ValidationError
from models import Attendance, OnboardingRecord, RecordId
from services.attendance import status_update_fields
from services.normalization import normalize_record, validate_for_create
from utils.date_helpers import now_iso_str

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Dict[str, Any]], None]


class OnboardingStore:
    """Persistence for onboarding records"""

    def __init__(self, db: Optional[DatabaseClient] = None, table: str = ONBOARDINGS_TABLE):
        self.db = db if db is not None else get_database_client()
        self.table = table
        self._subscribers: Dict[str, ChangeCallback] = {}
        self._lock = threading.Lock()

    # ==================== SUBSCRIPTIONS ====================

    def subscribe(self, on_change: ChangeCallback) -> str:
        """Register a change callback; returns a handle for unsubscribe()"""
        handle = str(uuid.uuid4())
        with self._lock:
            self._subscribers[handle] = on_change
        logger.debug(f"Subscriber added: {handle}")
        return handle

    def unsubscribe(self, handle: str) -> None:
        with self._lock:
            self._subscribers.pop(handle, None)

    def _notify(self, event: str, record: OnboardingRecord) -> None:
        with self._lock:
            callbacks = list(self._subscribers.items())
        payload = {"event": event, "record": record.to_api()}
        for handle, callback in callbacks:
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"Subscriber {handle} failed on {event}: {e}")

    # ==================== READS ====================

    def list_all_records(self) -> List[OnboardingRecord]:
        """All records, newest date first"""
        return rows_to_records(self.db.fetch_all(self.table))

    def list_records_by_employee(self, employee_id: RecordId) -> List[OnboardingRecord]:
        return rows_to_records(self.db.fetch_all(self.table, {"employee_id": employee_id}))

    def list_records_by_month(self, month: str) -> List[OnboardingRecord]:
        return rows_to_records(self.db.fetch_all(self.table, {"month": month}))

    def get_record(self, record_id: RecordId) -> OnboardingRecord:
        """
        Raises:
            NotFoundError: if no record has this id
        """
        result = self.db.query(self.table).eq("id", record_id).limit(1).execute()
        if not result.data:
            raise NotFoundError(record_id)
        return row_to_record(result.data[0])

    # ==================== WRITES ====================

    def create_record(self, record: Any) -> OnboardingRecord:
        """
        Insert a new record.

        The caller sets session_number beforehand (see services.sync.log_session).

        Raises:
            ValidationError: if required fields are missing
        """
        record = validate_for_create(normalize_record(record))
        inserted = self.db.insert(self.table, record_to_row(record))
        if not inserted:
            raise ValidationError("Insert returned no row")
        created = row_to_record(inserted[0])
        logger.info(f"Created onboarding {created.id} for account '{created.account_number}' "
                    f"on {created.date} (session #{created.session_number})")
        self._notify("INSERT", created)
        return created

    def bulk_insert(self, records: List[Any]) -> Tuple[List[OnboardingRecord], int]:
        """
        Insert many records, skipping invalid ones.

        Returns:
            (inserted records, number of skipped rows)
        """
        rows = []
        skipped = 0
        for raw in records:
            try:
                rows.append(record_to_row(validate_for_create(normalize_record(raw))))
            except ValidationError as e:
                skipped += 1
                logger.warning(f"Skipping invalid onboarding in bulk insert: {e}")

        inserted = rows_to_records(self.db.insert_many(self.table, rows))
        logger.info(f"Bulk inserted {len(inserted)} onboardings ({skipped} skipped)")
        for record in inserted:
            self._notify("INSERT", record)
        return inserted, skipped

    def _update(self, record_id: RecordId, fields: Dict[str, Any]) -> OnboardingRecord:
        updated = self.db.update(self.table, {**fields, "updated_at": now_iso_str()}, {"id": record_id})
        if not updated:
            raise NotFoundError(record_id)
        record = row_to_record(updated[0])
        self._notify("UPDATE", record)
        return record

    def update_attendance(self, record_id: RecordId, new_status: Any,
                          no_show: Optional[Dict[str, Any]] = None) -> OnboardingRecord:
        """
        Set a record's attendance status.

        Args:
            record_id: Record id
            new_status: Target status (validated by the caller's state machine)
            no_show: Optional {reached_out, notes} when marking no-show

        Raises:
            NotFoundError: if no record has this id
        """
        status = Attendance(new_status)
        fields = status_update_fields(status)

        if status == Attendance.NO_SHOW and no_show and no_show.get("reached_out") is not None:
            reached_out = bool(no_show.get("reached_out"))
            fields["no_show_reached_out"] = reached_out
            if reached_out:
                fields["no_show_reached_out_date"] = now_iso_str()
            if no_show.get("notes"):
                fields["no_show_notes"] = no_show["notes"]

        record = self._update(record_id, fields)
        logger.info(f"Onboarding {record_id} attendance -> {status.value}")
        return record

    def mark_no_show_reached_out(self, record_id: RecordId, reached_out: bool = True,
                                 notes: str = "") -> OnboardingRecord:
        """
        Record the follow-up on a no-show.

        Raises:
            NotFoundError: if no no-show record has this id
        """
        fields = {
            "no_show_reached_out": reached_out,
            "no_show_reached_out_date": now_iso_str() if reached_out else None,
            "no_show_notes": notes or None,
            "updated_at": now_iso_str(),
        }
        updated = self.db.update(self.table, fields, {"id": record_id, "attendance": Attendance.NO_SHOW.value})
        if not updated:
            raise NotFoundError(record_id)
        record = row_to_record(updated[0])
        self._notify("UPDATE", record)
        return record

    def update_session_numbers(self, recomputed: List[OnboardingRecord],
                               current: Optional[List[OnboardingRecord]] = None) -> int:
        """
        Persist recomputed session numbers.

        Args:
            recomputed: Records carrying their derived session numbers
            current: Stored versions; when given only changed rows are written

        Returns:
            Number of rows written
        """
        stored = {r.id: r.session_number for r in (current or [])}
        written = 0
        for record in recomputed:
            if record.id is None:
                continue
            if current is not None and stored.get(record.id) == record.session_number:
                continue
            self._update(record.id, {"session_number": record.session_number})
            written += 1
        if written:
            logger.info(f"Updated session numbers on {written} onboardings")
        return written

    def delete_record(self, record_id: RecordId) -> OnboardingRecord:
        """
        Raises:
            NotFoundError: if no record has this id
        """
        deleted = self.db.delete(self.table, {"id": record_id})
        if not deleted:
            raise NotFoundError(record_id)
        record = row_to_record(deleted[0])
        logger.info(f"Deleted onboarding {record_id}")
        self._notify("DELETE", record)
        return record


# Global store instance
_store: Optional[OnboardingStore] = None


def get_onboarding_store() -> OnboardingStore:
    """Get global onboarding store instance"""
    global _store
    if _store is None:
        _store = OnboardingStore()
    return _store
