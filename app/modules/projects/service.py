import logging
from typing import Dict, List

from app.core.exceptions import (
    EnvironmentNotFoundError, NotFoundError, PreconditionFailedError, ProjectNotFoundError
)
from app.modules.environments.schemas import EnvironmentResponse
from app.modules.projects.schemas import (
    ProjectCreate, ProjectResponse, ProjectEnvironmentResponse
)

logger = logging.getLogger(__name__)


class ProjectEnvironmentService:
    """
    Which environments are available to a project.

    An environment is available when it is enabled for the project AND globally
    enabled. The global flag is evaluated at read time, so disabling an
    environment hides it from every project without touching the links and
    re-enabling it restores them.
    """

    def __init__(self, project_store, environment_store):
        self.project_store = project_store
        self.environment_store = environment_store

    def _require_project(self, project_id: str) -> Dict:
        project = self.project_store.get_project(project_id)
        if not project:
            raise ProjectNotFoundError(project_id)
        return project

    def _require_environment(self, environment_name: str) -> Dict:
        environment = self.environment_store.get(environment_name)
        if not environment:
            raise EnvironmentNotFoundError(environment_name)
        return environment

    def _require_globally_enabled(self, project_id: str, environment: Dict) -> None:
        if not environment["enabled"]:
            logger.warning(
                f"Refused to enable environment {environment['name']} for project {project_id}: "
                f"environment is globally disabled"
            )
            raise PreconditionFailedError(
                f"Environment '{environment['name']}' must be enabled globally "
                f"before it can be enabled for a project"
            )

    def create_project(self, project_data: ProjectCreate) -> ProjectResponse:
        row = self.project_store.insert_project(project_data.model_dump())
        logger.info(f"Created project {row['id']}")
        return ProjectResponse(**row)

    def get_project(self, project_id: str) -> ProjectResponse:
        return ProjectResponse(**self._require_project(project_id))

    def list_projects(self) -> List[ProjectResponse]:
        return [ProjectResponse(**row) for row in self.project_store.list_projects()]

    def get_project_environments(self, project_id: str) -> List[EnvironmentResponse]:
        """Environments currently available to the project, ordered by sort_order then name"""
        self._require_project(project_id)
        linked = {
            link["environment_name"]
            for link in self.project_store.list_links(project_id)
            if link["enabled_for_project"]
        }
        if not linked:
            return []
        counts = self.project_store.count_links_by_environment()
        return [
            EnvironmentResponse(**row, project_count=counts.get(row["name"], 0))
            for row in self.environment_store.list_all()
            if row["enabled"] and row["name"] in linked
        ]

    def add_environment_to_project(self, project_id: str, environment_name: str) -> ProjectEnvironmentResponse:
        self._require_project(project_id)
        environment = self._require_environment(environment_name)
        self._require_globally_enabled(project_id, environment)

        link = self.project_store.upsert_link(project_id, environment_name, True)
        logger.info(f"Environment {environment_name} added to project {project_id}")
        return ProjectEnvironmentResponse(**link)

    def set_project_environment_enabled(self, project_id: str, environment_name: str, enabled: bool) -> None:
        self._require_project(project_id)
        environment = self._require_environment(environment_name)
        if not self.project_store.get_link(project_id, environment_name):
            raise NotFoundError(
                f"Environment '{environment_name}' is not linked to project '{project_id}'"
            )
        if enabled:
            self._require_globally_enabled(project_id, environment)

        if not self.project_store.set_link_enabled(project_id, environment_name, enabled):
            raise NotFoundError(
                f"Environment '{environment_name}' is not linked to project '{project_id}'"
            )
        logger.info(
            f"Environment {environment_name} {'enabled' if enabled else 'disabled'} for project {project_id}"
        )

    def remove_environment_from_project(self, project_id: str, environment_name: str) -> None:
        self._require_project(project_id)
        if not self.project_store.delete_link(project_id, environment_name):
            raise NotFoundError(
                f"Environment '{environment_name}' is not linked to project '{project_id}'"
            )
        logger.info(f"Environment {environment_name} removed from project {project_id}")
