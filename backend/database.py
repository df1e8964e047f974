"""
Supabase database client wrapper.
Handles all table operations for the onboarding tracker.
"""
from typing import Optional, Dict, Any, List
import logging
from supabase import create_client, Client

from config import get_supabase_config

logger = logging.getLogger(__name__)

# Supabase caps every select at 1000 rows
PAGE_SIZE = 1000

# Global Supabase client instance
_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create Supabase client instance"""
    global _supabase_client

    if _supabase_client is None:
        config = get_supabase_config()
        if not config:
            raise ValueError("Supabase configuration not found")

        _supabase_client = create_client(
            config["url"],
            config["service_role_key"]  # Use service_role for backend
        )
        logger.info("Supabase client initialized")

    return _supabase_client


class DatabaseClient:
    """Wrapper for Supabase database operations"""

    def __init__(self, client: Optional[Client] = None):
        self.client = client if client is not None else get_supabase_client()

    def query(self, table: str, columns: List[str] = None):
        """
        Query a table with optional column selection

        Args:
            table: Table name
            columns: List of column names to select (None = all)

        Returns:
            Query builder for further filtering
        """
        if columns:
            return self.client.table(table).select(','.join(columns))
        return self.client.table(table).select('*')

    def fetch_all(self, table: str, filters: Optional[Dict[str, Any]] = None,
                  order_by: str = 'date', desc: bool = True) -> List[Dict[str, Any]]:
        """
        Fetch every matching row, paginating past the per-request row cap.

        Args:
            table: Table name
            filters: Column equality filters
            order_by: Column to order by
            desc: Descending order if True

        Returns:
            All matching rows
        """
        all_rows: List[Dict[str, Any]] = []
        offset = 0

        while True:
            query = self.query(table)
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            # id keeps same-date rows in one order across pages
            query = query.order(order_by, desc=desc)
            if order_by != 'id':
                query = query.order('id')
            query = query.range(offset, offset + PAGE_SIZE - 1)
            result = query.execute()

            if not result.data:
                break

            all_rows.extend(result.data)

            # Short page means we've reached the end
            if len(result.data) < PAGE_SIZE:
                break

            offset += PAGE_SIZE

        logger.debug(f"Fetched {len(all_rows)} rows from '{table}'")
        return all_rows

    def insert(self, table: str, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Insert a record"""
        response = self.client.table(table).insert(data).execute()
        return response.data

    def insert_many(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert several records in one request"""
        if not rows:
            return []
        response = self.client.table(table).insert(rows).execute()
        return response.data

    def update(self, table: str, data: Dict[str, Any], match: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Update records matching criteria"""
        response = self.client.table(table).update(data).match(match).execute()
        return response.data

    def delete(self, table: str, match: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Delete records matching criteria"""
        response = self.client.table(table).delete().match(match).execute()
        return response.data

    def ping(self, table: str) -> bool:
        """True if the table answers a one-row select"""
        try:
            self.client.table(table).select('id').limit(1).execute()
            return True
        except Exception as e:
            logger.warning(f"Database ping on '{table}' failed: {e}")
            return False


# Global database client instance
_db_client: Optional[DatabaseClient] = None


def get_database_client() -> DatabaseClient:
    """Get global database client instance"""
    global _db_client
    if _db_client is None:
        _db_client = DatabaseClient()
    return _db_client
