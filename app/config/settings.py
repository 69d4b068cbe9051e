from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List, Tuple


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for the sort-order RPC when RLS is on

    # Storage
    store_backend: str = ""  # supabase | memory; empty picks supabase when supabase_url is set
    seed_default_environments: str = "development:development,production:production"

    # Environment policy
    min_enabled_environments: int = 1
    block_delete_when_linked: bool = True
    default_project_id: str = "default"  # seeded into the memory store; empty disables

    # App
    app_name: str = "unleash-environments"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def resolved_store_backend(self) -> str:
        if self.store_backend:
            return self.store_backend.lower()
        return "supabase" if self.supabase_url else "memory"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_seed_environments(self) -> List[Tuple[str, str]]:
        """Parse `name:type` pairs; a bare name gets its own name as type."""
        seeds = []
        for item in self.seed_default_environments.split(","):
            item = item.strip()
            if not item:
                continue
            name, _, env_type = item.partition(":")
            seeds.append((name.strip(), env_type.strip() or name.strip()))
        return seeds

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
