"""xtask configuration via pydantic-settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class XTaskSettings(BaseSettings):
    environment: str = "development"
    database_url: str = "sqlite+aiosqlite:///xtask.db"
    echo_sql: bool = False
    app_title: str = "xtask"
    log_level: str = "INFO"

    auth_secret: str = ""
    auth_session_ttl_seconds: int = 86400
    auth_rate_limit_window_seconds: int = 300
    auth_rate_limit_max_attempts: int = 10
    auth_rate_limit_block_seconds: int = 600
    # Only enable behind a proxy that overwrites X-Forwarded-For
    trust_forwarded_for: bool = False

    max_seniority_level: int = 5

    # Used by `xtask create-admin` when no arguments are given
    bootstrap_email: str = "admin@example.com"
    bootstrap_password: str = ""
    bootstrap_name: str = "Administrator"

    model_config = {"env_prefix": "XTASK_", "env_file": ".env", "extra": "ignore"}

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in {"prod", "production"}


settings = XTaskSettings()
