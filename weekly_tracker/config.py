from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):
    # Database
    # Any SQLAlchemy URL. SQLite and PostgreSQL get a native atomic upsert.
    database_url: str = "sqlite:///./timesheets.db"

    # Identity used for every request (no authentication)
    default_user_id: str = "default.user@example.com"

    # Reject saves over 100% or with duplicate projects
    enforce_allocation_rules: bool = True

    # Application
    app_env: str = "development"
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_retention_days: int = 30
    scheduler_enabled: bool = True
    # Comma-separated list of allowed origins
    cors_origins: str = "*"
    host: str = "0.0.0.0"
    port: int = 8080

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    return Settings()
