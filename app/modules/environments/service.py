import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from app.config import Settings
from app.core.exceptions import (
    ConflictError, EnvironmentNotFoundError, EnvironmentsNotFoundError, ValidationError
)
from app.modules.environments.schemas import (
    EnvironmentCreate, EnvironmentUpdate, EnvironmentResponse,
    ENVIRONMENT_NAME_PATTERN, NAME_MAX_LENGTH, is_dot_segment
)

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(ENVIRONMENT_NAME_PATTERN)


def is_valid_environment_name(name: Optional[str]) -> bool:
    return (
        bool(name)
        and len(name) <= NAME_MAX_LENGTH
        and _NAME_RE.fullmatch(name) is not None
        and not is_dot_segment(name)
    )


@dataclass(frozen=True)
class EnvironmentPolicy:
    """Guards applied when deleting an environment."""
    min_enabled_environments: int = 1
    block_delete_when_linked: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "EnvironmentPolicy":
        return cls(
            min_enabled_environments=settings.min_enabled_environments,
            block_delete_when_linked=settings.block_delete_when_linked,
        )


class EnvironmentService:
    def __init__(self, store, project_store, policy: Optional[EnvironmentPolicy] = None):
        self.store = store
        self.project_store = project_store
        self.policy = policy or EnvironmentPolicy()

    def _to_response(self, row: Dict, project_count: int = 0) -> EnvironmentResponse:
        return EnvironmentResponse(**row, project_count=project_count)

    def _get_row(self, name: str) -> Dict:
        row = self.store.get(name)
        if not row:
            raise EnvironmentNotFoundError(name)
        return row

    def create_environment(self, environment_data: EnvironmentCreate) -> EnvironmentResponse:
        """Create a new environment, disabled until toggled on"""
        if self.store.get(environment_data.name):
            logger.warning(f"Rejected duplicate environment name: {environment_data.name}")
            raise ConflictError(f"Environment '{environment_data.name}' already exists")

        sort_order = environment_data.sort_order
        if sort_order is None:
            current_max = self.store.max_sort_order()
            sort_order = 1 if current_max is None else current_max + 1

        row = self.store.insert({
            "name": environment_data.name,
            "type": environment_data.type,
            "enabled": False,
            "sort_order": sort_order,
        })
        logger.info(f"Created environment {row['name']} (type={row['type']}, sort_order={row['sort_order']})")
        return self._to_response(row)

    def validate_name(self, name: str) -> bool:
        """True when the name is well-formed and not taken"""
        if not is_valid_environment_name(name):
            return False
        return self.store.get(name) is None

    def get(self, name: str) -> EnvironmentResponse:
        row = self._get_row(name)
        return self._to_response(row, len(self.project_store.list_links_for_environment(name)))

    def get_all(self) -> List[EnvironmentResponse]:
        """All environments ordered by sort_order, then name"""
        counts = self.project_store.count_links_by_environment()
        return [self._to_response(row, counts.get(row["name"], 0)) for row in self.store.list_all()]

    def update_environment(self, name: str, environment_data: EnvironmentUpdate) -> EnvironmentResponse:
        self._get_row(name)

        update_data = environment_data.model_dump(exclude_none=True)
        if not update_data:
            # No changes, return existing
            return self.get(name)

        row = self.store.update(name, update_data)
        if not row:
            raise EnvironmentNotFoundError(name)
        logger.info(f"Updated environment {name}: {update_data}")
        return self._to_response(row, len(self.project_store.list_links_for_environment(name)))

    def toggle_environment(self, name: str, enabled: bool) -> None:
        """Set the global enabled flag. Project links are left untouched; they are filtered at read time."""
        row = self._get_row(name)
        if row["enabled"] != enabled:
            row = self.store.update(name, {"enabled": enabled})
            if not row:
                raise EnvironmentNotFoundError(name)
            logger.info(f"Environment {name} {'enabled' if enabled else 'disabled'}")

    def _projects_relying_on(self, name: str, links: List[Dict]) -> List[str]:
        """Projects for which this environment is the only active one"""
        enabled = {row["name"] for row in self.store.list_all() if row["enabled"]}
        if name not in enabled:
            return []
        projects = []
        for link in links:
            if not link["enabled_for_project"]:
                continue
            others = [
                other for other in self.project_store.list_links(link["project_id"])
                if other["enabled_for_project"]
                and other["environment_name"] != name
                and other["environment_name"] in enabled
            ]
            if not others:
                projects.append(link["project_id"])
        return sorted(projects)

    def delete_environment(self, name: str) -> None:
        """Delete an environment; its project links go with it through the store's cascade"""
        row = self._get_row(name)

        links = self.project_store.list_links_for_environment(name)
        sole_users = self._projects_relying_on(name, links)
        if sole_users:
            logger.warning(f"Refused to delete environment {name}: only active environment of {sole_users}")
            raise ConflictError(
                f"Environment '{name}' is the only active environment of projects: {', '.join(sole_users)}"
            )

        if links and self.policy.block_delete_when_linked:
            projects = sorted(link["project_id"] for link in links)
            logger.warning(f"Refused to delete environment {name}: used by projects {projects}")
            raise ConflictError(
                f"Environment '{name}' is in use by projects: {', '.join(projects)}"
            )

        if row["enabled"] and self.store.count_enabled() - 1 < self.policy.min_enabled_environments:
            logger.warning(f"Refused to delete environment {name}: last usable environment")
            raise ConflictError(
                f"Cannot delete environment '{name}': at least "
                f"{self.policy.min_enabled_environments} enabled environment(s) must remain"
            )

        if not self.store.delete(name):
            raise EnvironmentNotFoundError(name)
        logger.info(f"Deleted environment {name}")

    def update_sort_order(self, sort_orders: Dict[str, int]) -> None:
        """Apply new sort orders to the named environments as one batch; others keep theirs"""
        if not sort_orders:
            raise ValidationError("Sort order mapping must name at least one environment")

        known = set(self.store.names())
        missing = [name for name in sort_orders if name not in known]
        if missing:
            logger.warning(f"Rejected sort order update, unknown environments: {missing}")
            raise EnvironmentsNotFoundError(missing)

        self.store.update_sort_orders(dict(sort_orders))
        logger.info(f"Updated sort order for {len(sort_orders)} environment(s)")
