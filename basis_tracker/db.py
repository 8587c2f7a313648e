"""
Supabase database integration module.

Handles the two datastore operations an import run needs:
- Checking whether an entry already exists for (date, commodity, elevator)
- Inserting a new basis entry

Table required:
- basis_entries: date, commodity, elevator_name, basis_value, cash_price,
  futures_month, notes

The existence check is best-effort; two concurrent runs could both insert
the same key. Runs are at most daily, so that race is accepted.
"""

import logging
from typing import Optional
import httpx
from postgrest.exceptions import APIError
from supabase import create_client, Client

from .config import SupabaseConfig, get_supabase_config
from .errors import ConfigError, DatastoreError
from .models import BasisEntry, Commodity

logger = logging.getLogger(__name__)

# postgrest rejections and httpx transport failures
DATASTORE_ERRORS = (APIError, httpx.HTTPError)


def _message(error: Exception) -> str:
    return getattr(error, "message", None) or str(error)


class Database:
    """
    Supabase database client wrapper.

    Provides the existence check and insert used by the import pipeline.
    """

    def __init__(self, config: Optional[SupabaseConfig] = None, client: Optional[Client] = None):
        """Initialize Supabase client."""
        config = config or get_supabase_config()
        self.table = config.table
        if client is None:
            if not config.url or not config.key:
                raise ConfigError("Supabase URL and key must be set in environment variables")
            client = create_client(config.url, config.key)
        self._client: Client = client

    @property
    def client(self) -> Client:
        """Get the Supabase client."""
        return self._client

    def entry_exists(self, date: str, commodity: Commodity, elevator_name: str) -> bool:
        """Check if an entry already exists for this date, commodity and elevator."""
        try:
            result = (
                self._client.table(self.table)
                .select("id")
                .eq("date", date)
                .eq("commodity", commodity.value)
                .eq("elevator_name", elevator_name)
                .limit(1)
                .execute()
            )
        except DATASTORE_ERRORS as e:
            raise DatastoreError(_message(e)) from e
        return len(result.data) > 0

    def insert_entry(self, entry: BasisEntry) -> dict:
        """
        Insert a new basis entry.

        Returns:
            The inserted row as returned by Supabase

        Raises:
            DatastoreError: if Supabase rejects the insert or cannot be reached
        """
        try:
            result = self._client.table(self.table).insert(entry.to_dict()).execute()
        except DATASTORE_ERRORS as e:
            raise DatastoreError(_message(e)) from e

        logger.info(f"Inserted {entry.elevator_name} {entry.commodity.value} for {entry.date}")
        return result.data[0] if result.data else entry.to_dict()

    def get_entries(self, date: str, commodity: Optional[Commodity] = None) -> list[BasisEntry]:
        """Get all entries for a day, optionally filtered by commodity."""
        query = self._client.table(self.table).select("*").eq("date", date)
        if commodity:
            query = query.eq("commodity", commodity.value)

        try:
            result = query.execute()
        except DATASTORE_ERRORS as e:
            raise DatastoreError(_message(e)) from e

        return [BasisEntry.from_dict(row) for row in result.data]


# Global database instance (lazy loaded)
_db: Optional[Database] = None


def get_db() -> Database:
    """Get database instance (singleton)."""
    global _db
    if _db is None:
        _db = Database()
    return _db
