from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_bool(key: str, default: str = "1") -> bool:
    return os.getenv(key, default).strip().lower() not in ("0", "false", "no", "off")


def _env_str(key: str, default: str) -> str:
    return os.getenv(key, default).strip()


def _default_log_level() -> str:
    raw = os.getenv("LOG_LEVEL", "").strip().upper()
    if raw:
        return raw
    return "WARNING" if _env_str("APP_ENVIRONMENT", "development") == "production" else "DEBUG"


@dataclass(frozen=True, slots=True)
class Settings:
    # development / testing / production; selects the section of the connections file
    environment: str = field(default_factory=lambda: _env_str("APP_ENVIRONMENT", "development"))

    # Database
    database_url: str = field(default_factory=lambda: _env_str("DATABASE_URL", "sqlite:///./slim_mvc.db"))
    database_config_file: str = field(default_factory=lambda: _env_str("DATABASE_CONFIG_FILE", "config/database.yaml"))
    db_echo: bool = field(default_factory=lambda: _env_bool("DB_ECHO", "0"))
    # Primary-key lookups are cached per table and cleared on every write to that table.
    query_cache_enabled: bool = field(default_factory=lambda: _env_bool("DB_QUERY_CACHE", "1"))

    # Observability
    log_level: str = field(default_factory=_default_log_level)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"
