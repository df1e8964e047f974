"""
Migration: Create onboardings table
One row per onboarding session; session_number is maintained by the backend
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import get_database_client
from database_helpers import ONBOARDINGS_TABLE
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


CREATE_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS {ONBOARDINGS_TABLE} (
    id BIGSERIAL PRIMARY KEY,
    employee_id TEXT,
    employee_name TEXT,
    client_name TEXT NOT NULL DEFAULT '',
    account_number TEXT,
    session_number INTEGER NOT NULL DEFAULT 1 CHECK (session_number >= 1),
    date DATE,
    month TEXT,
    attendance TEXT NOT NULL DEFAULT 'pending'
        CHECK (attendance IN ('pending', 'pending_approval', 'completed', 'cancelled', 'rescheduled', 'no-show')),
    notes TEXT,
    no_show_reached_out BOOLEAN NOT NULL DEFAULT FALSE,
    no_show_reached_out_date TIMESTAMPTZ,
    no_show_notes TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

CREATE_INDEXES_SQL = [
    f"CREATE INDEX IF NOT EXISTS idx_{ONBOARDINGS_TABLE}_account ON {ONBOARDINGS_TABLE}(account_number, date);",
    f"CREATE INDEX IF NOT EXISTS idx_{ONBOARDINGS_TABLE}_employee ON {ONBOARDINGS_TABLE}(employee_id);",
    f"CREATE INDEX IF NOT EXISTS idx_{ONBOARDINGS_TABLE}_month ON {ONBOARDINGS_TABLE}(month);",
    f"CREATE INDEX IF NOT EXISTS idx_{ONBOARDINGS_TABLE}_date ON {ONBOARDINGS_TABLE}(date DESC);",
]


def create_onboardings_table():
    """Check for the onboardings table and print its DDL when missing"""
    db = get_database_client()

    try:
        logger.info(f"Checking {ONBOARDINGS_TABLE} table...")

        # The Supabase client cannot run DDL, so the SQL is printed for the SQL Editor
        if db.ping(ONBOARDINGS_TABLE):
            logger.info(f"✓ {ONBOARDINGS_TABLE} table already exists")
        else:
            logger.warning("⚠ Please run the following SQL in Supabase SQL Editor:")
            print("\n" + CREATE_TABLE_SQL)
            for index_sql in CREATE_INDEXES_SQL:
                print(index_sql)
            print("\n")

        logger.info("✓ Migration completed")
        return True

    except Exception as e:
        logger.error(f"❌ Migration failed: {e}")
        raise


if __name__ == "__main__":
    try:
        create_onboardings_table()
        print("\n✓ Migration script completed successfully")
    except Exception as e:
        print(f"\n❌ Migration failed: {e}")
        sys.exit(1)
