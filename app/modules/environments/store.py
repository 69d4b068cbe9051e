"""
Persistence for the environments table.

SupabaseEnvironmentStore talks to Postgres through the Supabase SDK.
InMemoryEnvironmentStore backs local development and tests; it keeps rows in a
versioned snapshot that is replaced wholesale on every write so a batch
sort-order update is all-or-nothing.
"""

import copy
import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from app.core.exceptions import ConflictError, EnvironmentsNotFoundError, NotFoundError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
NO_DATA_FOUND = "P0002"


def sort_key(row: Dict) -> tuple:
    return (row["sort_order"], row["name"])


class SupabaseEnvironmentStore:
    table = "environments"

    def __init__(self, supabase: Client, rpc_client: Optional[Client] = None):
        self.supabase = supabase
        self.rpc_client = rpc_client or supabase

    def get(self, name: str) -> Optional[Dict]:
        result = self.supabase.table(self.table)\
            .select("*")\
            .eq("name", name)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def list_all(self) -> List[Dict]:
        result = self.supabase.table(self.table)\
            .select("*")\
            .order("sort_order")\
            .order("name")\
            .execute()
        return sorted(result.data or [], key=sort_key)

    def names(self) -> List[str]:
        result = self.supabase.table(self.table).select("name").execute()
        return [r["name"] for r in result.data or []]

    def max_sort_order(self) -> Optional[int]:
        result = self.supabase.table(self.table)\
            .select("sort_order")\
            .order("sort_order", desc=True)\
            .limit(1)\
            .execute()
        return result.data[0]["sort_order"] if result.data else None

    def count_enabled(self) -> int:
        result = self.supabase.table(self.table)\
            .select("name", count="exact")\
            .eq("enabled", True)\
            .execute()
        return result.count or 0

    def insert(self, row: Dict) -> Dict:
        try:
            result = self.supabase.table(self.table).insert(row).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise ConflictError(f"Environment '{row['name']}' already exists") from e
            raise
        return result.data[0]

    def update(self, name: str, fields: Dict) -> Optional[Dict]:
        fields = dict(fields, updated_at="now()")
        result = self.supabase.table(self.table)\
            .update(fields)\
            .eq("name", name)\
            .execute()
        return result.data[0] if result.data else None

    def delete(self, name: str) -> bool:
        result = self.supabase.table(self.table)\
            .delete()\
            .eq("name", name)\
            .execute()
        return len(result.data) > 0

    def update_sort_orders(self, sort_orders: Dict[str, int]) -> None:
        """Apply all sort orders in one transaction via the update_environment_sort_order function."""
        try:
            self.rpc_client.rpc("update_environment_sort_order", {"sort_orders": sort_orders}).execute()
        except APIError as e:
            if e.code == NO_DATA_FOUND:
                raise NotFoundError(e.message) from e
            raise


class InMemoryEnvironmentStore:
    def __init__(self, link_store=None):
        self._lock = threading.Lock()
        # Mirrors the project_environments foreign key: links go with the environment
        self.link_store = link_store
        self._rows: Dict[str, Dict] = {}
        self._version = 0

    @property
    def version(self) -> int:
        return self._version

    def _commit(self, rows: Dict[str, Dict]) -> None:
        # Caller holds the lock
        self._rows = rows
        self._version += 1

    def get(self, name: str) -> Optional[Dict]:
        row = self._rows.get(name)
        return copy.deepcopy(row) if row else None

    def list_all(self) -> List[Dict]:
        return sorted(copy.deepcopy(list(self._rows.values())), key=sort_key)

    def names(self) -> List[str]:
        return list(self._rows)

    def max_sort_order(self) -> Optional[int]:
        rows = list(self._rows.values())
        return max(r["sort_order"] for r in rows) if rows else None

    def count_enabled(self) -> int:
        return sum(1 for r in self._rows.values() if r["enabled"])

    def insert(self, row: Dict) -> Dict:
        with self._lock:
            if row["name"] in self._rows:
                raise ConflictError(f"Environment '{row['name']}' already exists")
            new_row = {"enabled": False, "updated_at": None, **row}
            new_row["created_at"] = datetime.now(timezone.utc)
            rows = dict(self._rows)
            rows[new_row["name"]] = new_row
            self._commit(rows)
        return copy.deepcopy(new_row)

    def update(self, name: str, fields: Dict) -> Optional[Dict]:
        with self._lock:
            if name not in self._rows:
                return None
            updated = {**self._rows[name], **fields, "updated_at": datetime.now(timezone.utc)}
            rows = dict(self._rows)
            rows[name] = updated
            self._commit(rows)
        return copy.deepcopy(updated)

    def delete(self, name: str) -> bool:
        with self._lock:
            if name not in self._rows:
                return False
            rows = dict(self._rows)
            del rows[name]
            self._commit(rows)
            if self.link_store is not None:
                self.link_store.delete_links_for_environment(name)
        return True

    def update_sort_orders(self, sort_orders: Dict[str, int]) -> None:
        with self._lock:
            missing = [n for n in sort_orders if n not in self._rows]
            if missing:
                raise EnvironmentsNotFoundError(missing)
            now = datetime.now(timezone.utc)
            rows = dict(self._rows)
            for name, order in sort_orders.items():
                rows[name] = {**rows[name], "sort_order": order, "updated_at": now}
            self._commit(rows)
        logger.debug(f"Sort order snapshot now at version {self._version}")
