from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.sql import Executable

if TYPE_CHECKING:
    from slim_mvc.model.base import Model

logger = logging.getLogger(__name__)


class SqlTransactionHandle:
    """Physical transaction control for one SQLAlchemy connection."""

    def __init__(self, connection: Connection, *, on_rollback: Optional[Callable[[], None]] = None) -> None:
        self._connection = connection
        self._on_rollback = on_rollback

    def in_transaction(self) -> bool:
        return self._connection.in_transaction()

    def begin(self) -> bool:
        self._connection.begin()
        logger.debug("BEGIN")
        return True

    def commit(self) -> bool:
        if not self._connection.in_transaction():
            return False
        self._connection.commit()
        logger.debug("COMMIT")
        return True

    def rollback(self) -> bool:
        if not self._connection.in_transaction():
            return False
        try:
            self._connection.rollback()
            logger.debug("ROLLBACK")
        finally:
            if self._on_rollback is not None:
                self._on_rollback()
        return True


class SqlStore:
    """Statement execution for records on one connection.

    Outside an explicit transaction every statement is committed on its own,
    so the connection never lingers in an implicit (autobegun) transaction.
    """

    def __init__(self, connection: Connection, *, name: str = "default", cache_enabled: bool = True) -> None:
        self.name = name
        self.connection = connection
        self.handle = SqlTransactionHandle(connection, on_rollback=self.invalidate_cache)
        self.cache_enabled = cache_enabled
        # table name -> identifier -> row
        self._cache: Dict[str, Dict[Any, Dict[str, Any]]] = {}

    # ---------------- execution ----------------
    def _run(self, statement: Executable, consume: Callable[[CursorResult], Any]) -> Any:
        explicit = self.connection.in_transaction()
        try:
            result = self.connection.execute(statement)
            value = consume(result)
        except Exception:
            if not explicit and self.connection.in_transaction():
                self.connection.rollback()
            raise
        if not explicit:
            self.connection.commit()
        return value

    def execute(self, statement: Executable) -> bool:
        """Run a raw statement; False when a DML statement matched no rows."""
        rowcount = self._run(statement, lambda r: r.rowcount)
        table = getattr(statement, "table", None)
        self.invalidate_cache(table.name if isinstance(table, Table) else None)
        return rowcount != 0

    def fetch_one(self, statement: Executable) -> Optional[Dict[str, Any]]:
        row = self._run(statement, lambda r: r.mappings().first())
        return dict(row) if row is not None else None

    def fetch_all(self, statement: Executable) -> List[Dict[str, Any]]:
        rows = self._run(statement, lambda r: r.mappings().all())
        return [dict(r) for r in rows]

    def scalar(self, statement: Executable) -> Any:
        return self._run(statement, lambda r: r.scalar())

    # ---------------- record writes ----------------
    def insert(self, record: "Model") -> Any:
        """Insert the record's column values; returns the new identifier (None on failure)."""
        table = record.__table__
        id_column = record.id_column()
        values = {k: v for k, v in record.as_dict().items() if not (k == id_column and v is None)}
        pk = self._run(insert(table).values(**values), lambda r: r.inserted_primary_key)
        self.invalidate_cache(table.name)
        identifier = pk[0] if pk else None
        if identifier is None:
            identifier = values.get(id_column)
        logger.debug("Inserted %s.%s=%s", table.name, id_column, identifier)
        return identifier

    def update(self, record: "Model") -> bool:
        table = record.__table__
        values = record.dirty_values()
        if not values:
            return True
        pk = table.c[record.id_column()]
        rowcount = self._run(
            update(table).where(pk == record.identifier).values(**values),
            lambda r: r.rowcount,
        )
        self.invalidate_cache(table.name)
        return rowcount > 0

    def delete(self, record: "Model") -> bool:
        table = record.__table__
        pk = table.c[record.id_column()]
        rowcount = self._run(delete(table).where(pk == record.identifier), lambda r: r.rowcount)
        self.invalidate_cache(table.name)
        return rowcount > 0

    # ---------------- reads ----------------
    def count(
        self,
        table: Table,
        filters: Mapping[str, Any],
        *,
        exclude: Optional[Mapping[str, Any]] = None,
    ) -> int:
        stmt = select(func.count()).select_from(table)
        for key, value in filters.items():
            stmt = stmt.where(table.c[key] == value)
        for key, value in (exclude or {}).items():
            stmt = stmt.where(table.c[key] != value)
        return int(self.scalar(stmt) or 0)

    def find_by_id(self, table: Table, id_column: str, identifier: Any) -> Optional[Dict[str, Any]]:
        if self.cache_enabled:
            cached = self._cache.get(table.name, {}).get(identifier)
            if cached is not None:
                return dict(cached)
        row = self.fetch_one(select(table).where(table.c[id_column] == identifier))
        if row is not None and self.cache_enabled:
            self._cache.setdefault(table.name, {})[identifier] = dict(row)
        return row

    # ---------------- cache ----------------
    def invalidate_cache(self, table_name: Optional[str] = None) -> None:
        if table_name is None:
            self._cache.clear()
        else:
            self._cache.pop(table_name, None)

    def cached_tables(self) -> Iterable[str]:
        return tuple(self._cache)
