"""Named database connections.

The connections file is a YAML mapping of environment -> connection name ->
settings::

    development:
      default:
        url: sqlite:///./dev.db
      reporting:
        url: postgresql+psycopg://report:report@db/report
        echo: false

A missing file, or a missing ``default`` entry for the active environment,
falls back to ``Settings.database_url``. Any other unknown name is a
configuration error.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.engine import Engine

from slim_mvc.core.errors import ConfigurationError, ConnectionNotConfigured
from slim_mvc.core.settings import Settings
from slim_mvc.db.session import create_engine_for_url

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION = "default"


class ConnectionConfig(BaseModel):
    url: str = Field(min_length=1)
    echo: bool = False
    pool_pre_ping: bool = True


def _repo_root() -> Path:
    # .../repo_root/slim_mvc/db/connections.py -> parents[2] == repo_root
    return Path(__file__).resolve().parents[2]


def _resolve(p: str) -> Path:
    path = Path(p)
    if path.is_absolute():
        return path
    return (_repo_root() / path).resolve()


def load_connection_configs(path: str, environment: str) -> Dict[str, ConnectionConfig]:
    """Read the section of the connections file for ``environment``."""
    file_path = _resolve(path)
    if not file_path.exists():
        logger.debug("Connections file %s not found; using DATABASE_URL only", file_path)
        return {}

    with file_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Invalid connections file {file_path}: expected a mapping")

    section = data.get(environment) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Invalid connections file {file_path}: '{environment}' must be a mapping")

    out: Dict[str, ConnectionConfig] = {}
    for name, raw in section.items():
        try:
            out[str(name)] = ConnectionConfig.model_validate(raw or {})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid connection '{name}' in {file_path}: {e}") from e
    return out


class ConnectionRegistry:
    """Lazily creates one engine per connection name.

    Engines are thread-safe and may be shared; connections taken from them
    belong to a single ``Database``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        configs: Optional[Dict[str, ConnectionConfig]] = None,
    ) -> None:
        self.settings = settings or Settings()
        self._lock = threading.Lock()
        self._engines: Dict[str, Engine] = {}
        if configs is None:
            configs = load_connection_configs(self.settings.database_config_file, self.settings.environment)
        self._configs: Dict[str, ConnectionConfig] = dict(configs)
        if DEFAULT_CONNECTION not in self._configs:
            self._configs[DEFAULT_CONNECTION] = ConnectionConfig(url=self.settings.database_url, echo=self.settings.db_echo)

    @property
    def names(self) -> list[str]:
        return sorted(self._configs)

    def config(self, name: str) -> ConnectionConfig:
        try:
            return self._configs[name]
        except KeyError:
            raise ConnectionNotConfigured(name, self.settings.environment) from None

    def configure(self, name: str, url: str, **options: Any) -> None:
        """Add or replace a connection at runtime (drops a cached engine of the same name)."""
        cfg = ConnectionConfig(url=url, **options)
        with self._lock:
            old = self._engines.pop(name, None)
            self._configs[name] = cfg
        if old is not None:
            old.dispose()

    def engine(self, name: str = DEFAULT_CONNECTION) -> Engine:
        with self._lock:
            engine = self._engines.get(name)
            if engine is None:
                cfg = self.config(name)
                engine = create_engine_for_url(cfg.url, echo=cfg.echo, pool_pre_ping=cfg.pool_pre_ping)
                self._engines[name] = engine
                logger.info("Configured database connection '%s' (%s)", name, engine.dialect.name)
            return engine

    def dispose(self) -> None:
        with self._lock:
            engines = list(self._engines.values())
            self._engines.clear()
        for engine in engines:
            engine.dispose()
