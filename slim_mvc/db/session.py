from __future__ import annotations

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool, StaticPool


def create_engine_for_url(
    database_url: str,
    *,
    echo: bool = False,
    pool_pre_ping: bool = True,
) -> Engine:
    """Create a SQLAlchemy engine for one named connection.

    Notes:
      - SQLite needs check_same_thread=False; a Database may be created on one thread and used on another.
      - In-memory SQLite uses StaticPool so every Connection sees the same database.
    """
    is_sqlite = database_url.startswith("sqlite")
    is_memory = is_sqlite and (":memory:" in database_url or database_url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:"))

    connect_args: dict = {}
    if is_sqlite:
        connect_args["check_same_thread"] = False
        connect_args.setdefault("timeout", 5)

    engine_kwargs = dict(
        echo=echo,
        future=True,
        connect_args=connect_args,
        pool_pre_ping=pool_pre_ping,
    )
    if is_memory:
        engine_kwargs["poolclass"] = StaticPool
    elif is_sqlite:
        # NullPool avoids "database is locked" from pooled file handles.
        engine_kwargs["poolclass"] = NullPool

    engine = create_engine(database_url, **engine_kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover
            try:
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                if not is_memory:
                    cursor.execute("PRAGMA journal_mode=WAL")
                    cursor.execute("PRAGMA synchronous=NORMAL")
                cursor.execute("PRAGMA busy_timeout=5000")
                cursor.close()
            except Exception:
                # If pragmas can't be applied (e.g., permissions), fail open for dev.
                pass

    return engine
