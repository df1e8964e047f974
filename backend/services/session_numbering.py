"""
Session numbering engine.

A record's session number is its 1-based chronological rank among all records
sharing the same trimmed account number. Every write path (single insert,
bulk sync, sheet export, delete) derives numbers through this module.

All functions are pure: inputs are never mutated.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from models import OnboardingRecord
from utils.date_helpers import is_iso_date

logger = logging.getLogger(__name__)

BLANK_ACCOUNT_KEY = ""


def normalize_account_key(account_number: Optional[Any]) -> str:
    """
    Partition key for an account number.

    Surrounding whitespace is ignored. None, empty and whitespace-only values
    all share the single blank key, so records missing an account number are
    numbered together.
    """
    if account_number is None:
        return BLANK_ACCOUNT_KEY
    return str(account_number).strip()


def _date_sort_key(record: OnboardingRecord) -> Tuple[int, str]:
    # Unparseable dates sort after every well-formed date
    if is_iso_date(record.date):
        return (0, record.date)
    return (1, "")


def _rank_partition(records: Sequence[OnboardingRecord]) -> List[int]:
    """Positions of records in stable chronological order"""
    indexed = sorted(range(len(records)), key=lambda i: _date_sort_key(records[i]))
    return indexed


def compute_insertion_session_number(
    existing_records: Sequence[OnboardingRecord],
    new_record: OnboardingRecord,
) -> int:
    """
    Session number a new record takes when added to the existing set.

    The new record is placed after any existing records with the same date,
    so repeated computations over identical inputs agree.

    Args:
        existing_records: All stored records (any account number)
        new_record: Candidate record with account_number and date set

    Returns:
        1-based rank of new_record within its account partition
    """
    key = normalize_account_key(new_record.account_number)
    partition = [r for r in existing_records if normalize_account_key(r.account_number) == key]
    combined = partition + [new_record]

    order = _rank_partition(combined)
    new_index = len(combined) - 1
    return order.index(new_index) + 1


def group_by_account(records: Sequence[OnboardingRecord]) -> Dict[str, List[OnboardingRecord]]:
    """Records grouped by partition key, groups in order of first appearance"""
    groups: Dict[str, List[OnboardingRecord]] = {}
    for record in records:
        groups.setdefault(normalize_account_key(record.account_number), []).append(record)
    return groups


def recompute_all_session_numbers(records: Sequence[OnboardingRecord]) -> List[OnboardingRecord]:
    """
    Re-derive every session number from scratch.

    Returns new record objects. Partitions keep the order in which they first
    appear in the input; within a partition records are ordered by their
    assigned session number, so row order can be persisted as-is.
    Idempotent.
    """
    result: List[OnboardingRecord] = []
    for key, partition in group_by_account(records).items():
        for number, index in enumerate(_rank_partition(partition), start=1):
            result.append(partition[index].model_copy(update={"session_number": number}))
    return result


def _id_key(record_id: Any):
    s = str(record_id) if record_id is not None else ""
    return (0, int(s), "") if s.isdigit() else (1, 0, s)


def arrival_order(records: Sequence[OnboardingRecord]) -> List[OnboardingRecord]:
    """
    Records in the order they were created.
    Same-date records keep this order when numbered.
    """
    return sorted(records, key=lambda r: (r.created_at or "", _id_key(r.id)))


def session_number_map(records: Sequence[OnboardingRecord]) -> Dict[Any, int]:
    """id -> derived session number, for read-only views. Input order is irrelevant."""
    return {r.id: r.session_number for r in recompute_all_session_numbers(arrival_order(records))}


def find_numbering_drift(records: Sequence[OnboardingRecord]) -> List[Dict[str, Any]]:
    """
    Records whose stored session number disagrees with the derived one.

    Returns:
        List of {id, account_number, stored, expected}
    """
    drift = []
    stored = {r.id: r.session_number for r in records}
    for record in recompute_all_session_numbers(records):
        if stored.get(record.id) != record.session_number:
            drift.append({
                "id": record.id,
                "account_number": record.account_number,
                "stored": stored.get(record.id),
                "expected": record.session_number,
            })
    if drift:
        logger.info(f"Session numbering drift on {len(drift)} of {len(records)} records")
    return drift


def sort_chronologically(records: Sequence[OnboardingRecord]) -> List[OnboardingRecord]:
    """Stable date-ascending order across all partitions (sheet row order)"""
    return sorted(records, key=_date_sort_key)


def renumber_partition(
    records: Sequence[OnboardingRecord],
    account_number: Optional[Any],
) -> List[OnboardingRecord]:
    """Recomputed records of a single partition"""
    key = normalize_account_key(account_number)
    partition = [r for r in records if normalize_account_key(r.account_number) == key]
    return recompute_all_session_numbers(partition)
