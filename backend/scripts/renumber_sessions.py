"""
Recompute session numbers for every account and persist the ones that drifted.

Usage:
    python scripts/renumber_sessions.py [--dry-run]
"""
import sys
import os
import argparse

# Add parent directory to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.onboarding_store import get_onboarding_store
from services.sync import renumber_all
import logging

# Configure logging to stdout
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logging.getLogger('httpx').setLevel(logging.WARNING)


def renumber_sessions(dry_run=False):
    print(f"--- Renumbering onboarding sessions{' (dry run)' if dry_run else ''} ---")

    result = renumber_all(get_onboarding_store(), dry_run=dry_run)
    drift = result["drift"]

    if not drift:
        print(f"✅ All {len(result['records'])} session numbers are correct.")
        return result

    for item in drift:
        print(f"  #{item['id']} account '{item['account_number']}': {item['stored']} -> {item['expected']}")

    if dry_run:
        print(f"⚠ {len(drift)} session numbers would change.")
    else:
        print(f"✅ Updated {result['written']} session numbers.")
    return result


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Recompute onboarding session numbers")
    parser.add_argument("--dry-run", action="store_true", help="Only report drift")
    args = parser.parse_args()

    try:
        renumber_sessions(dry_run=args.dry_run)
    except Exception as e:
        print(f"❌ Renumbering failed: {e}")
        sys.exit(1)
