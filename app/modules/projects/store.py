import copy
import threading
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from app.core.exceptions import ConflictError

UNIQUE_VIOLATION = "23505"


class SupabaseProjectStore:
    projects_table = "projects"
    links_table = "project_environments"

    def __init__(self, supabase: Client):
        self.supabase = supabase

    # Projects

    def get_project(self, project_id: str) -> Optional[Dict]:
        result = self.supabase.table(self.projects_table)\
            .select("*")\
            .eq("id", project_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def list_projects(self) -> List[Dict]:
        result = self.supabase.table(self.projects_table)\
            .select("*")\
            .order("id")\
            .execute()
        return result.data or []

    def insert_project(self, row: Dict) -> Dict:
        try:
            result = self.supabase.table(self.projects_table).insert(row).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise ConflictError(f"Project '{row['id']}' already exists") from e
            raise
        return result.data[0]

    # Links

    def get_link(self, project_id: str, environment_name: str) -> Optional[Dict]:
        result = self.supabase.table(self.links_table)\
            .select("*")\
            .eq("project_id", project_id)\
            .eq("environment_name", environment_name)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def list_links(self, project_id: str) -> List[Dict]:
        result = self.supabase.table(self.links_table)\
            .select("*")\
            .eq("project_id", project_id)\
            .execute()
        return result.data or []

    def list_links_for_environment(self, environment_name: str) -> List[Dict]:
        result = self.supabase.table(self.links_table)\
            .select("*")\
            .eq("environment_name", environment_name)\
            .execute()
        return result.data or []

    def count_links_by_environment(self) -> Dict[str, int]:
        result = self.supabase.table(self.links_table)\
            .select("environment_name")\
            .execute()
        return dict(Counter(r["environment_name"] for r in result.data or []))

    def upsert_link(self, project_id: str, environment_name: str, enabled: bool) -> Dict:
        result = self.supabase.table(self.links_table)\
            .upsert({
                "project_id": project_id,
                "environment_name": environment_name,
                "enabled_for_project": enabled,
            }, on_conflict="project_id,environment_name")\
            .execute()
        return result.data[0]

    def set_link_enabled(self, project_id: str, environment_name: str, enabled: bool) -> Optional[Dict]:
        result = self.supabase.table(self.links_table)\
            .update({"enabled_for_project": enabled})\
            .eq("project_id", project_id)\
            .eq("environment_name", environment_name)\
            .execute()
        return result.data[0] if result.data else None

    def delete_link(self, project_id: str, environment_name: str) -> bool:
        result = self.supabase.table(self.links_table)\
            .delete()\
            .eq("project_id", project_id)\
            .eq("environment_name", environment_name)\
            .execute()
        return len(result.data) > 0


class InMemoryProjectStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._projects: Dict[str, Dict] = {}
        self._links: Dict[tuple, Dict] = {}

    def get_project(self, project_id: str) -> Optional[Dict]:
        row = self._projects.get(project_id)
        return copy.deepcopy(row) if row else None

    def list_projects(self) -> List[Dict]:
        return [copy.deepcopy(self._projects[k]) for k in sorted(self._projects)]

    def insert_project(self, row: Dict) -> Dict:
        with self._lock:
            if row["id"] in self._projects:
                raise ConflictError(f"Project '{row['id']}' already exists")
            new_row = {"description": None, **row, "created_at": datetime.now(timezone.utc)}
            self._projects[row["id"]] = new_row
        return copy.deepcopy(new_row)

    def get_link(self, project_id: str, environment_name: str) -> Optional[Dict]:
        row = self._links.get((project_id, environment_name))
        return copy.deepcopy(row) if row else None

    def list_links(self, project_id: str) -> List[Dict]:
        return [copy.deepcopy(r) for (pid, _), r in self._links.items() if pid == project_id]

    def list_links_for_environment(self, environment_name: str) -> List[Dict]:
        return [copy.deepcopy(r) for (_, env), r in self._links.items() if env == environment_name]

    def count_links_by_environment(self) -> Dict[str, int]:
        return dict(Counter(env for (_, env) in self._links))

    def upsert_link(self, project_id: str, environment_name: str, enabled: bool) -> Dict:
        key = (project_id, environment_name)
        with self._lock:
            existing = self._links.get(key)
            row = {
                "project_id": project_id,
                "environment_name": environment_name,
                "enabled_for_project": enabled,
                "created_at": existing["created_at"] if existing else datetime.now(timezone.utc),
            }
            self._links[key] = row
        return copy.deepcopy(row)

    def set_link_enabled(self, project_id: str, environment_name: str, enabled: bool) -> Optional[Dict]:
        key = (project_id, environment_name)
        with self._lock:
            if key not in self._links:
                return None
            self._links[key] = {**self._links[key], "enabled_for_project": enabled}
            return copy.deepcopy(self._links[key])

    def delete_link(self, project_id: str, environment_name: str) -> bool:
        with self._lock:
            return self._links.pop((project_id, environment_name), None) is not None

    def delete_links_for_environment(self, environment_name: str) -> int:
        with self._lock:
            keys = [k for k in self._links if k[1] == environment_name]
            for key in keys:
                del self._links[key]
        return len(keys)
