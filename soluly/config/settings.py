from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # actor resolution, readiness probe and seeding; falls back to supabase_key

    # Session / actor resolution
    auth_timeout_seconds: float = 10.0  # per lookup step (member, organization, role)
    actor_cache_ttl_seconds: float = 300.0  # 0 disables expiry of resolved actor snapshots
    session_registry_max_size: int = 1000  # 0 disables the cap on cached sessions
    auth_user_cache_ttl_seconds: int = 60
    auth_user_cache_max_size: int = 500

    # App
    app_name: str = "soluly-authz"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
