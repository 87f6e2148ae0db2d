"""Database: the unit of work that records are bound to.

Invariants:
    - One SQLAlchemy Connection, store and transaction ledger per connection name
    - Ledger state lives here, never in module globals
    - A Database belongs to one thread / request at a time; the registry of
      engines behind it may be shared

Usage::

    registry = ConnectionRegistry(Settings())
    with Database(registry) as db:
        user = db.model("User", account="alice")
        if not user.save():
            print(user.errors)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Dict, Optional, Type, Union

from slim_mvc.db.connections import DEFAULT_CONNECTION, ConnectionRegistry
from slim_mvc.db.query import Query
from slim_mvc.db.store import SqlStore
from slim_mvc.model.extensions import ExtensionRegistry, default_extensions
from slim_mvc.model.observers import ModelRegistry, default_models
from slim_mvc.model.transactions import TransactionLedger

if TYPE_CHECKING:
    from slim_mvc.model.base import Model

logger = logging.getLogger(__name__)


class Database:
    def __init__(
        self,
        registry: Optional[ConnectionRegistry] = None,
        *,
        extensions: Optional[ExtensionRegistry] = None,
        models: Optional[ModelRegistry] = None,
    ) -> None:
        self.registry = registry or ConnectionRegistry()
        self.extensions = extensions if extensions is not None else default_extensions
        self.models = models if models is not None else default_models
        self._lock = threading.Lock()
        self._stores: Dict[str, SqlStore] = {}
        self._ledgers: Dict[str, TransactionLedger] = {}

    def store(self, name: str = DEFAULT_CONNECTION) -> SqlStore:
        with self._lock:
            store = self._stores.get(name)
            if store is None:
                connection = self.registry.engine(name).connect()
                store = SqlStore(
                    connection,
                    name=name,
                    cache_enabled=self.registry.settings.query_cache_enabled,
                )
                self._stores[name] = store
                self._ledgers[name] = TransactionLedger(store.handle, name=name)
            return store

    def ledger(self, name: str = DEFAULT_CONNECTION) -> TransactionLedger:
        self.store(name)
        return self._ledgers[name]

    def _model_class(self, model: Union[str, Type["Model"]]) -> Type["Model"]:
        if isinstance(model, str):
            return self.models.get(model)
        return model

    def model(
        self,
        model: Union[str, Type["Model"]],
        connection_name: Optional[str] = None,
        **values: Any,
    ) -> "Model":
        """New, unsaved record of ``model`` with ``values`` assigned."""
        cls = self._model_class(model)
        return cls(self, values, connection_name=connection_name)

    def query(self, model: Union[str, Type["Model"]], connection_name: Optional[str] = None) -> Query:
        cls = self._model_class(model)
        return Query(cls, self, connection_name)

    def close(self) -> None:
        with self._lock:
            stores = list(self._stores.items())
            ledgers = dict(self._ledgers)
            self._stores.clear()
            self._ledgers.clear()
        for name, store in stores:
            ledger = ledgers.get(name)
            if ledger is not None and ledger.depth > 0:
                logger.warning("Closing connection '%s' with %d open transaction level(s); rolling back", name, ledger.depth)
            try:
                if store.connection.in_transaction():
                    store.connection.rollback()
            finally:
                store.connection.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
