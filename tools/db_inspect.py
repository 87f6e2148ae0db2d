"""Show the tables of a configured connection and which lifecycle columns each exposes.

    python tools/db_inspect.py [connection_name]
"""

import logging
import sys
from pathlib import Path

from sqlalchemy import inspect

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from slim_mvc.core.log import configure_logging  # noqa: E402
from slim_mvc.core.settings import Settings  # noqa: E402
from slim_mvc.db.connections import DEFAULT_CONNECTION, ConnectionRegistry  # noqa: E402

logger = logging.getLogger(__name__)

LIFECYCLE_COLUMNS = ("created_at", "updated_at", "disabled", "disabled_at", "deleted_at")


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    name = argv[0] if argv else DEFAULT_CONNECTION

    settings = Settings()
    configure_logging(settings)
    registry = ConnectionRegistry(settings)
    try:
        engine = registry.engine(name)
        inspector = inspect(engine)
        tables = inspector.get_table_names()
        logger.info("Connection '%s' (%s): %d table(s)", name, engine.dialect.name, len(tables))
        for tbl in tables:
            columns = [c["name"] for c in inspector.get_columns(tbl)]
            lifecycle = [c for c in LIFECYCLE_COLUMNS if c in columns]
            logger.info("Table %s: %s", tbl, ", ".join(columns))
            logger.info("  lifecycle columns: %s", ", ".join(lifecycle) or "-")
    except Exception as e:
        logger.exception("Error inspecting connection %s: %s", name, e)
        return 1
    finally:
        registry.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
