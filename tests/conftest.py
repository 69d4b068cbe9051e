"""
Shared fixtures for the environment service test suite.
"""
import os
import pytest

# Set env vars before any imports that read them
os.environ["STORE_BACKEND"] = "memory"
os.environ["SUPABASE_URL"] = ""
os.environ["RATE_LIMIT"] = "10000/minute"
os.environ.setdefault("LOG_LEVEL", "WARNING")


@pytest.fixture
def project_store():
    """Fresh, empty InMemoryProjectStore."""
    from app.modules.projects.store import InMemoryProjectStore
    return InMemoryProjectStore()


@pytest.fixture
def environment_store(project_store):
    """Fresh, empty InMemoryEnvironmentStore cascading deletes into project_store."""
    from app.modules.environments.store import InMemoryEnvironmentStore
    return InMemoryEnvironmentStore(link_store=project_store)


@pytest.fixture
def environment_service(environment_store, project_store):
    from app.modules.environments.service import EnvironmentService
    return EnvironmentService(environment_store, project_store)


@pytest.fixture
def project_service(environment_store, project_store):
    from app.modules.projects.service import ProjectEnvironmentService
    return ProjectEnvironmentService(project_store, environment_store)


@pytest.fixture
def create_env(environment_service):
    """Create an environment, optionally enabling it."""
    from app.modules.environments.schemas import EnvironmentCreate

    def _create(name, env_type="development", sort_order=None, enabled=False):
        env = environment_service.create_environment(
            EnvironmentCreate(name=name, type=env_type, sort_order=sort_order)
        )
        if enabled:
            environment_service.toggle_environment(name, True)
            env = environment_service.get(name)
        return env
    return _create


@pytest.fixture
def create_project(project_service):
    from app.modules.projects.schemas import ProjectCreate

    def _create(project_id, name=None):
        return project_service.create_project(ProjectCreate(id=project_id, name=name or project_id))
    return _create


@pytest.fixture
def client(environment_store, project_store):
    """TestClient wired to fresh in-memory stores."""
    from fastapi.testclient import TestClient
    from app.main import app
    from app.core.dependencies import get_environment_store, get_project_store

    app.dependency_overrides[get_environment_store] = lambda: environment_store
    app.dependency_overrides[get_project_store] = lambda: project_store
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()
