from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import Column, func, select
from sqlalchemy.sql import Select

from slim_mvc.core.errors import ConfigurationError

if TYPE_CHECKING:
    from slim_mvc.db.database import Database
    from slim_mvc.model.base import Model

M = TypeVar("M", bound="Model")


class Query(Generic[M]):
    """Finder for one model class on one connection.

    Filters accumulate in place so calls can be chained::

        users = User.query(db).where(group_id=3).order_by("name").find_many()
    """

    def __init__(self, model_cls: Type[M], database: "Database", connection_name: Optional[str] = None) -> None:
        self.model_cls = model_cls
        self.database = database
        self.connection_name = connection_name or model_cls.__connection_name__
        self.table = model_cls.__table__
        self._criteria: list = []
        self._order: list = []
        self._limit: Optional[int] = None

    def _column(self, name: str) -> Column:
        try:
            return self.table.c[name]
        except KeyError:
            raise ConfigurationError(f"Table '{self.table.name}' has no column '{name}'") from None

    @property
    def store(self):
        return self.database.store(self.connection_name)

    def where(self, **equals: Any) -> "Query[M]":
        for key, value in equals.items():
            self._criteria.append(self._column(key) == value)
        return self

    def where_not_equal(self, column: str, value: Any) -> "Query[M]":
        self._criteria.append(self._column(column) != value)
        return self

    def order_by(self, column: str, *, descending: bool = False) -> "Query[M]":
        col = self._column(column)
        self._order.append(col.desc() if descending else col.asc())
        return self

    def limit(self, n: int) -> "Query[M]":
        self._limit = max(0, int(n))
        return self

    def _select(self) -> Select:
        stmt = select(self.table)
        for criterion in self._criteria:
            stmt = stmt.where(criterion)
        if self._order:
            stmt = stmt.order_by(*self._order)
        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        return stmt

    def find_one(self, identifier: Any = None) -> Optional[M]:
        id_column = self.model_cls.id_column()
        if identifier is not None and not self._criteria:
            row = self.store.find_by_id(self.table, id_column, identifier)
        else:
            if identifier is not None:
                self._criteria.append(self._column(id_column) == identifier)
            row = self.store.fetch_one(self._select().limit(1))
        if row is None:
            return None
        return self.model_cls.from_row(self.database, row, connection_name=self.connection_name)

    def find_many(self) -> List[M]:
        rows = self.store.fetch_all(self._select())
        return [self.model_cls.from_row(self.database, r, connection_name=self.connection_name) for r in rows]

    def count(self) -> int:
        stmt = select(func.count()).select_from(self.table)
        for criterion in self._criteria:
            stmt = stmt.where(criterion)
        return int(self.store.scalar(stmt) or 0)
