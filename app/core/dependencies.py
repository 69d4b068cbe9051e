"""
Core dependencies for store selection and wiring
"""

import logging
from typing import Optional

from app.config import settings
from app.database.supabase_client import SupabaseClient, get_supabase
from app.modules.environments.store import InMemoryEnvironmentStore, SupabaseEnvironmentStore
from app.modules.projects.store import InMemoryProjectStore, SupabaseProjectStore

logger = logging.getLogger(__name__)


class MemoryStores:
    """Process-wide in-memory stores, seeded on first use."""
    _environment_store: Optional[InMemoryEnvironmentStore] = None
    _project_store: Optional[InMemoryProjectStore] = None

    @classmethod
    def _ensure(cls):
        if cls._environment_store is None:
            cls._project_store = InMemoryProjectStore()
            cls._environment_store = InMemoryEnvironmentStore(link_store=cls._project_store)
            seed_memory_stores(cls._environment_store, cls._project_store)

    @classmethod
    def environment_store(cls) -> InMemoryEnvironmentStore:
        cls._ensure()
        return cls._environment_store

    @classmethod
    def project_store(cls) -> InMemoryProjectStore:
        cls._ensure()
        return cls._project_store

    @classmethod
    def reset(cls):
        cls._environment_store = None
        cls._project_store = None


def seed_memory_stores(environment_store: InMemoryEnvironmentStore, project_store: InMemoryProjectStore) -> None:
    """Seed enabled default environments and link them to the default project"""
    seeds = settings.get_seed_environments()
    for sort_order, (name, env_type) in enumerate(seeds, start=1):
        environment_store.insert({
            "name": name,
            "type": env_type,
            "enabled": True,
            "sort_order": sort_order,
        })
    if settings.default_project_id:
        project_store.insert_project({
            "id": settings.default_project_id,
            "name": "Default",
            "description": "Default project",
        })
        for name, _ in seeds:
            project_store.upsert_link(settings.default_project_id, name, True)
    logger.info(f"Seeded memory store with environments: {[name for name, _ in seeds]}")


def using_memory_store() -> bool:
    backend = settings.resolved_store_backend
    if backend not in ("memory", "supabase"):
        raise ValueError(f"Unknown store_backend: {backend}")
    return backend == "memory"


def get_environment_store():
    if using_memory_store():
        return MemoryStores.environment_store()
    return SupabaseEnvironmentStore(get_supabase(), SupabaseClient.get_service_client())


def get_project_store():
    if using_memory_store():
        return MemoryStores.project_store()
    return SupabaseProjectStore(get_supabase())
