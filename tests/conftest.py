from __future__ import annotations

from pathlib import Path
import sys

# Ensure repo root is importable
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))


import pytest

from slim_mvc.core.settings import Settings
from slim_mvc.db.connections import ConnectionRegistry
from slim_mvc.db.database import Database
from slim_mvc.model.extensions import ExtensionRegistry

from sample_models import Group, Organization, metadata


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        environment="testing",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        # keep the repo's config/database.yaml out of the tests
        database_config_file=str(tmp_path / "database.yaml"),
        db_echo=False,
        query_cache_enabled=True,
        log_level="DEBUG",
    )


@pytest.fixture()
def registry(settings: Settings):
    reg = ConnectionRegistry(settings)
    metadata.create_all(bind=reg.engine())
    yield reg
    reg.dispose()


@pytest.fixture()
def db(registry: ConnectionRegistry):
    Group.seen = []
    Organization.seen = []
    with Database(registry, extensions=ExtensionRegistry()) as database:
        yield database
