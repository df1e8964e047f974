"""
Sync orchestration.

Every write that can change session numbers goes through here so the store
and the exported sheet always agree. Export failures never undo a store write;
they come back as warnings in the result.
"""
import logging
from typing import Any, Dict, List, Optional

from models import OnboardingRecord, RecordId
from services.normalization import normalize_record, validate_for_create
from services.onboarding_store import OnboardingStore
from services.session_numbering import (
    arrival_order,
    compute_insertion_session_number,
    find_numbering_drift,
    recompute_all_session_numbers,
    renumber_partition,
    sort_chronologically,
)
from services.sheets_exporter import DeliveryResult, DeliveryStatus, SheetsExporter

logger = logging.getLogger(__name__)


def _delivery_warning(result: Optional[DeliveryResult]) -> Optional[str]:
    if result is None:
        return None
    if result.status == DeliveryStatus.UNCERTAIN:
        return f"Google Sheets delivery unconfirmed: {result.message}"
    if result.status == DeliveryStatus.FAILED:
        return f"Google Sheets sync failed: {result.message}"
    return None


def log_session(store: OnboardingStore, raw: Any,
                exporter: Optional[SheetsExporter] = None) -> Dict[str, Any]:
    """
    Record a new onboarding session.

    1. Normalize and validate the submission
    2. Compute its session number against every stored record
    3. Persist it, then shift later sessions of the same account
    4. Append it to the sheet (if an exporter is given)

    Raises:
        ValidationError: if the submission is incomplete
    """
    candidate = validate_for_create(normalize_record(raw))
    existing = arrival_order(store.list_all_records())

    session_number = compute_insertion_session_number(existing, candidate)
    created = store.create_record(candidate.model_copy(update={"session_number": session_number}))

    partition = renumber_partition(existing + [created], created.account_number)
    renumbered = store.update_session_numbers(partition, current=existing + [created])
    if renumbered:
        logger.info(f"Shifted {renumbered} later sessions for account '{created.account_number}'")

    delivery = exporter.push_one(created) if exporter is not None else None
    warning = _delivery_warning(delivery)
    if warning:
        logger.warning(warning)

    return {
        "record": created,
        "renumbered": renumbered,
        "delivery": delivery,
        "warning": warning,
    }


def renumber_all(store: OnboardingStore, dry_run: bool = False) -> Dict[str, Any]:
    """
    Recompute every session number and persist the ones that drifted.

    Returns:
        {records, drift, written}
    """
    records = arrival_order(store.list_all_records())
    drift = find_numbering_drift(records)
    recomputed = recompute_all_session_numbers(records)

    written = 0
    if drift and not dry_run:
        written = store.update_session_numbers(recomputed, current=records)

    return {"records": recomputed, "drift": drift, "written": written}


def sync_all(store: OnboardingStore, exporter: SheetsExporter) -> Dict[str, Any]:
    """
    Full sync: recompute, persist, then rewrite the sheet with the same numbers.
    """
    results = {
        "success": False,
        "message": "",
        "records_synced": 0,
        "renumbered": 0,
        "delivery": None,
        "warning": None,
    }

    renumber = renumber_all(store)
    results["renumbered"] = renumber["written"]

    rows = sort_chronologically(renumber["records"])
    logger.info(f"Syncing {len(rows)} onboardings to Google Sheets")
    delivery = exporter.push_all(rows)

    results["delivery"] = delivery
    results["warning"] = _delivery_warning(delivery)
    results["success"] = delivery.accepted
    results["records_synced"] = len(rows) if delivery.accepted else 0
    if delivery.status == DeliveryStatus.DELIVERED:
        results["message"] = f"Successfully synced {len(rows)} records"
    else:
        results["message"] = results["warning"]
        logger.warning(results["warning"])

    return results


def delete_and_renumber(store: OnboardingStore, record_id: RecordId) -> Dict[str, Any]:
    """
    Delete a record and close the gap it leaves in its account's numbering.

    Raises:
        NotFoundError: if no record has this id
    """
    deleted = store.delete_record(record_id)
    remaining = arrival_order(store.list_all_records())
    partition = renumber_partition(remaining, deleted.account_number)
    written = store.update_session_numbers(partition, current=remaining)
    return {"record": deleted, "renumbered": written}


def import_records(store: OnboardingStore, raws: List[Any]) -> Dict[str, Any]:
    """
    Bulk import, then renumber everything so imported session numbers
    are never trusted as-is.
    """
    inserted, skipped = store.bulk_insert(raws)
    renumber = renumber_all(store)
    return {
        "count": len(inserted),
        "skipped": skipped,
        "renumbered": renumber["written"],
    }
