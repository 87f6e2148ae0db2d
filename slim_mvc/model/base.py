"""Base Model: record state plus the save/delete/disable lifecycle.

Invariants:
    - Errors are reset once, at the start of save(); delete()/disable() append to them
    - Validation and callback failures are reported as False + collected messages, never raised
    - Every write runs inside a ledger start/complete bracket; any failure calls fail() first
    - A create that fails after the INSERT restores the previous identifier and marks the record new

save() phase order (``<variant>`` is ``create`` for new records, ``update`` otherwise):

     1. reset errors                       9. after_validation
     2. load extension                    10. ledger.start()
     3. before_validation_on_<variant>    11. before_<variant>
     4. before_validation                 12. before_save
     5. validate_on_<variant> (+ ext)     13. stamp created_at / updated_at
     6. validate (+ ext)                  14. INSERT / UPDATE
     7. any error -> "Validation error"   15. after_<variant>
     8. after_validation_on_<variant>     16. after_save
                                          17. ledger.complete()

Every hook returns True to continue; by default it forwards to the model's
extension (if any) and otherwise succeeds.
"""

from __future__ import annotations

import datetime as dt
import enum
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, FrozenSet, List, Optional, Sequence, Union

from sqlalchemy import Boolean, Date, DateTime, Integer, Table, update

from slim_mvc.core.errors import ConfigurationError
from slim_mvc.db.connections import DEFAULT_CONNECTION
from slim_mvc.db.query import Query
from slim_mvc.model.errors import DELETE_KEY, DISABLE_KEY, SAVE_KEY, ErrorCollector
from slim_mvc.model.observers import default_models, notify
from slim_mvc.model.validation import Validations

if TYPE_CHECKING:
    from slim_mvc.db.database import Database
    from slim_mvc.db.store import SqlStore
    from slim_mvc.model.transactions import TransactionLedger

logger = logging.getLogger(__name__)


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Variant(enum.Enum):
    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class Hook:
    name: str
    call: Callable[["Model"], Any]


@dataclass(frozen=True)
class PhaseHooks:
    before_validation: Hook
    validate: Hook
    after_validation: Hook
    before_write: Hook
    after_write: Hook


PHASES: Dict[Variant, PhaseHooks] = {
    Variant.CREATE: PhaseHooks(
        before_validation=Hook("before_validation_on_create", lambda m: m.before_validation_on_create()),
        validate=Hook("validate_on_create", lambda m: m.validate_on_create()),
        after_validation=Hook("after_validation_on_create", lambda m: m.after_validation_on_create()),
        before_write=Hook("before_create", lambda m: m.before_create()),
        after_write=Hook("after_create", lambda m: m.after_create()),
    ),
    Variant.UPDATE: PhaseHooks(
        before_validation=Hook("before_validation_on_update", lambda m: m.before_validation_on_update()),
        validate=Hook("validate_on_update", lambda m: m.validate_on_update()),
        after_validation=Hook("after_validation_on_update", lambda m: m.after_validation_on_update()),
        before_write=Hook("before_update", lambda m: m.before_update()),
        after_write=Hook("after_update", lambda m: m.after_update()),
    ),
}

BEFORE_VALIDATION = Hook("before_validation", lambda m: m.before_validation())
AFTER_VALIDATION = Hook("after_validation", lambda m: m.after_validation())
BEFORE_SAVE = Hook("before_save", lambda m: m.before_save())
AFTER_SAVE = Hook("after_save", lambda m: m.after_save())


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == 0


class Model(Validations):
    """Active-record style base class.

    Subclasses bind a SQLAlchemy ``Table``::

        users = Table("users", metadata, Column("id", Integer, primary_key=True), ...)

        class User(Model):
            __table__ = users
            password_confirm = None          # non-column attribute, never persisted

            def validate(self):
                self.validates_presence_of(["account", "email"])
                self.validates_uniqueness_of("account")
    """

    __abstract__: ClassVar[bool] = True
    __table__: ClassVar[Table]
    __connection_name__: ClassVar[str] = DEFAULT_CONNECTION
    # Mass-assignment whitelist for set(); None allows every column.
    __fields__: ClassVar[Optional[Sequence[str]]] = None

    __created_column__: ClassVar[str] = "created_at"
    __updated_column__: ClassVar[str] = "updated_at"
    __disabled_column__: ClassVar[str] = "disabled"
    __disabled_at_column__: ClassVar[str] = "disabled_at"
    __deleted_at_column__: ClassVar[str] = "deleted_at"

    _columns: ClassVar[FrozenSet[str]] = frozenset()
    _id_column: ClassVar[str] = "id"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.__dict__.get("__abstract__", False):
            return
        table = getattr(cls, "__table__", None)
        if not isinstance(table, Table):
            raise ConfigurationError(f"Model {cls.__name__} must define __table__ as a sqlalchemy Table")
        cls._columns = frozenset(c.name for c in table.columns)
        pk = list(table.primary_key.columns)
        cls._id_column = pk[0].name if len(pk) == 1 else "id"
        default_models.register(cls)

    def __init__(
        self,
        database: "Database",
        values: Optional[Mapping[str, Any]] = None,
        *,
        connection_name: Optional[str] = None,
        **fields: Any,
    ) -> None:
        object.__setattr__(self, "_data", {})
        object.__setattr__(self, "_dirty", set())
        object.__setattr__(self, "_is_new", True)
        object.__setattr__(self, "_errors", ErrorCollector())
        object.__setattr__(self, "_extension", None)
        object.__setattr__(self, "_extension_loaded", False)
        object.__setattr__(self, "database", database)
        object.__setattr__(self, "connection_name", connection_name or type(self).__connection_name__)
        if values:
            self.set(values)
        if fields:
            self.set(fields)

    @classmethod
    def from_row(
        cls,
        database: "Database",
        row: Mapping[str, Any],
        *,
        connection_name: Optional[str] = None,
    ) -> "Model":
        record = cls(database, connection_name=connection_name)
        record._data.update({k: v for k, v in row.items() if k in cls._columns})
        object.__setattr__(record, "_is_new", False)
        return record

    @classmethod
    def query(cls, database: "Database", connection_name: Optional[str] = None) -> Query:
        return Query(cls, database, connection_name)

    @classmethod
    def find(cls, database: "Database", identifier: Any, connection_name: Optional[str] = None) -> Optional["Model"]:
        if identifier is None:
            return None
        return cls.query(database, connection_name).find_one(identifier)

    @classmethod
    def id_column(cls) -> str:
        return cls._id_column

    # ---------------- attribute access ----------------
    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails: column values live in _data.
        if name in type(self)._columns:
            return self.__dict__["_data"].get(name)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name in type(self)._columns:
            self._assign(name, value)
        else:
            object.__setattr__(self, name, value)

    def _assign(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._dirty.add(key)

    def _is_declared_attribute(self, key: str) -> bool:
        if key.startswith("_") or not hasattr(type(self), key):
            return False
        attr = getattr(type(self), key)
        return not callable(attr) and not isinstance(attr, property)

    def set(self, key: Union[str, Mapping[str, Any]], value: Any = None) -> "Model":
        """Assign columns (marked dirty) and declared attributes; unknown keys are ignored."""
        items = key.items() if isinstance(key, Mapping) else [(key, value)]
        allowed = type(self).__fields__
        for k, v in items:
            if k in type(self)._columns:
                if allowed is not None and k not in allowed:
                    continue
                self._assign(k, v)
            elif self._is_declared_attribute(k):
                object.__setattr__(self, k, v)
            else:
                logger.debug("Ignoring unknown field %r for %s", k, type(self).__name__)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        if key in type(self)._columns:
            return self._data.get(key, default)
        if key.startswith("_"):
            return default
        return getattr(self, key, default)

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def ignore(self, field: str) -> None:
        self._data.pop(field, None)
        self._dirty.discard(field)

    def is_dirty(self, key: str) -> bool:
        return key in self._dirty

    def dirty_values(self) -> Dict[str, Any]:
        return {k: self._data[k] for k in self._dirty if k in self._data}

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    @property
    def identifier(self) -> Any:
        return self._data.get(type(self)._id_column)

    @property
    def is_new(self) -> bool:
        return self._is_new

    # ---------------- errors ----------------
    @property
    def errors(self) -> Dict[str, List[str]]:
        return self._errors.all()

    def add_error(self, key: str, message: str) -> None:
        self._errors.add(key, message)

    def errors_for(self, key: str) -> List[str]:
        return self._errors.errors_for(key)

    def error_message(self, key: str, delimiter: Optional[str] = ",") -> str:
        return self._errors.message_for(key, delimiter)

    def has_error(self, key: Optional[str] = None) -> bool:
        return self._errors.has_error(key)

    # ---------------- connection ----------------
    @property
    def store(self) -> "SqlStore":
        return self.database.store(self.connection_name)

    @property
    def ledger(self) -> "TransactionLedger":
        return self.database.ledger(self.connection_name)

    def start_transaction(self) -> bool:
        return self.ledger.start()

    def complete_transaction(self) -> bool:
        return self.ledger.complete()

    def fail_transaction(self) -> bool:
        return self.ledger.fail()

    # ---------------- extension ----------------
    @property
    def extension(self) -> Any:
        return self.load_extension()

    def load_extension(self) -> Any:
        if not self._extension_loaded:
            object.__setattr__(self, "_extension", self.database.extensions.load(self))
            object.__setattr__(self, "_extension_loaded", True)
        return self._extension

    def call_extension(self, name: str) -> Any:
        extension = self._extension
        if extension is None:
            return True
        method = getattr(extension, name, None)
        if method is None or not callable(method):
            return True
        return method()

    # ---------------- observers ----------------
    def notify(self, event: str, models: Union[str, Sequence[str]]) -> bool:
        return notify(self, event, models, registry=self.database.models)

    # ---------------- lifecycle ----------------
    def _abort(self, key: str, message: str) -> bool:
        self.add_error(key, message)
        logger.info("%s(%s) %s aborted: %s", type(self).__name__, self.identifier, key.strip("_"), message)
        return False

    def _restore_after_failed_write(self, variant: Variant, identifier: Any, dirty: set) -> None:
        self._dirty.update(dirty)
        if variant is Variant.CREATE:
            self._data[type(self)._id_column] = identifier
            object.__setattr__(self, "_is_new", True)

    def _timestamp_for(self, column_name: str) -> Any:
        column_type = type(self).__table__.c[column_name].type
        now = utcnow()
        if isinstance(column_type, DateTime):
            return now if column_type.timezone else now.replace(tzinfo=None)
        if isinstance(column_type, Date):
            return now.date()
        if isinstance(column_type, Integer):
            return int(time.time())
        return now.strftime("%Y-%m-%d %H:%M:%S")

    def _stamp_timestamps(self, variant: Variant) -> None:
        cls = type(self)
        if variant is Variant.CREATE:
            column = cls.__created_column__
            if column in cls._columns and _is_blank(self._data.get(column)):
                self._assign(column, self._timestamp_for(column))
        else:
            column = cls.__updated_column__
            if column in cls._columns:
                self._assign(column, self._timestamp_for(column))

    def save(self) -> bool:
        variant = Variant.CREATE if self.is_new else Variant.UPDATE
        hooks = PHASES[variant]

        self._errors.reset()
        self.load_extension()

        for hook in (hooks.before_validation, BEFORE_VALIDATION):
            if not hook.call(self):
                return self._abort(SAVE_KEY, f"Callback error on {hook.name}")

        hooks.validate.call(self)
        self.call_extension(hooks.validate.name)
        self.validate()
        self.call_extension("validate")

        if self.has_error():
            return self._abort(SAVE_KEY, "Validation error")

        for hook in (hooks.after_validation, AFTER_VALIDATION):
            if not hook.call(self):
                return self._abort(SAVE_KEY, f"Callback error on {hook.name}")

        ledger = self.ledger
        if not ledger.start():
            logger.warning("%s: could not open a transaction on '%s'", type(self).__name__, self.connection_name)

        previous_identifier = self.identifier
        dirty = set(self._dirty)
        try:
            for hook in (hooks.before_write, BEFORE_SAVE):
                if not hook.call(self):
                    ledger.fail()
                    return self._abort(SAVE_KEY, f"Callback error on {hook.name}")

            self._stamp_timestamps(variant)
            dirty = set(self._dirty)

            if variant is Variant.CREATE:
                identifier = self.store.insert(self)
                written = identifier is not None
                if written:
                    self._data[type(self)._id_column] = identifier
                    object.__setattr__(self, "_is_new", False)
            else:
                written = self.store.update(self)

            if not written:
                ledger.fail()
                return self._abort(SAVE_KEY, "save error")
            self._dirty.clear()

            for hook in (hooks.after_write, AFTER_SAVE):
                if not hook.call(self):
                    ledger.fail()
                    self._restore_after_failed_write(variant, previous_identifier, dirty)
                    return self._abort(SAVE_KEY, f"Callback error on {hook.name}. rollback changes.")

            return ledger.complete()
        except Exception as e:
            logger.warning("%s save failed: %s", type(self).__name__, e, exc_info=True)
            ledger.fail()
            self._restore_after_failed_write(variant, previous_identifier, dirty)
            self.add_error(SAVE_KEY, str(e))
            return False

    def delete(self) -> bool:
        if self.is_new:
            return False

        self.load_extension()
        ledger = self.ledger
        ledger.start()
        try:
            if not self.before_delete():
                ledger.fail()
                return self._abort(DELETE_KEY, "Callback error on before_delete")

            if not self.store.delete(self):
                ledger.fail()
                return self._abort(DELETE_KEY, "delete error")

            if not self.after_delete():
                ledger.fail()
                return self._abort(DELETE_KEY, "Callback error on after_delete.")

            return ledger.complete()
        except Exception as e:
            logger.warning("%s delete failed: %s", type(self).__name__, e, exc_info=True)
            ledger.fail()
            self.add_error(DELETE_KEY, str(e))
            return False

    def _soft_delete_value(self) -> Optional[tuple[str, Any]]:
        cls = type(self)
        table = cls.__table__
        if cls.__disabled_column__ in cls._columns:
            column = cls.__disabled_column__
            return column, True if isinstance(table.c[column].type, Boolean) else 1
        for column in (cls.__disabled_at_column__, cls.__deleted_at_column__):
            if column in cls._columns:
                return column, self._timestamp_for(column)
        return None

    def disable(self) -> bool:
        """Soft delete: flag the row through ``disabled``, ``disabled_at`` or ``deleted_at``."""
        if self.is_new:
            return False

        self.load_extension()
        ledger = self.ledger
        ledger.start()
        try:
            if not self.before_disable():
                ledger.fail()
                return self._abort(DISABLE_KEY, "Callback error on before_disable")

            marker = self._soft_delete_value()
            if marker is None:
                ledger.fail()
                return self._abort(DISABLE_KEY, "Non-supported disable method")
            column, value = marker

            table = type(self).__table__
            stmt = (
                update(table)
                .where(table.c[type(self)._id_column] == self.identifier)
                .values({column: value})
            )
            if not self.store.execute(stmt):
                ledger.fail()
                return self._abort(DISABLE_KEY, "Error occurred on disable")

            if not self.after_disable():
                ledger.fail()
                return self._abort(DISABLE_KEY, "Callback error on after_disable")

            self._data[column] = value
            self.store.invalidate_cache(table.name)
            return ledger.complete()
        except Exception as e:
            logger.warning("%s disable failed: %s", type(self).__name__, e, exc_info=True)
            ledger.fail()
            self.add_error(DISABLE_KEY, str(e))
            return False

    # ---------------- overridable hooks ----------------
    def before_validation(self) -> bool:
        return self.call_extension("before_validation")

    def after_validation(self) -> bool:
        return self.call_extension("after_validation")

    def before_validation_on_create(self) -> bool:
        return self.call_extension("before_validation_on_create")

    def after_validation_on_create(self) -> bool:
        return self.call_extension("after_validation_on_create")

    def before_validation_on_update(self) -> bool:
        return self.call_extension("before_validation_on_update")

    def after_validation_on_update(self) -> bool:
        return self.call_extension("after_validation_on_update")

    def before_save(self) -> bool:
        return self.call_extension("before_save")

    def after_save(self) -> bool:
        return self.call_extension("after_save")

    def before_create(self) -> bool:
        return self.call_extension("before_create")

    def after_create(self) -> bool:
        return self.call_extension("after_create")

    def before_update(self) -> bool:
        return self.call_extension("before_update")

    def after_update(self) -> bool:
        return self.call_extension("after_update")

    def before_delete(self) -> bool:
        return self.call_extension("before_delete")

    def after_delete(self) -> bool:
        return self.call_extension("after_delete")

    def before_disable(self) -> bool:
        return self.call_extension("before_disable")

    def after_disable(self) -> bool:
        return self.call_extension("after_disable")

    # Validation hooks: override and call the validates_* helpers.
    def validate(self) -> None:
        pass

    def validate_on_create(self) -> None:
        pass

    def validate_on_update(self) -> None:
        pass

    def __repr__(self) -> str:
        state = "new" if self.is_new else f"{type(self)._id_column}={self.identifier!r}"
        return f"<{type(self).__name__} {state}>"
