"""Cross-model event notification.

A record announces an event to sibling model types; each sibling must expose
a handler named after the source type and the event::

    class User(Model):
        def after_save(self):
            return self.notify("save", ["Group", "Organization"])

    class Group(Model):
        @staticmethod
        def on_user_save(user):
            ...
            return True

A missing sibling type or handler is a wiring mistake and raises
``ObserverError``; it is never folded into the record's validation errors.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Type, Union

from slim_mvc.core.errors import ModelNotFound, ObserverError
from slim_mvc.core.inflection import capitalize, underscore

if TYPE_CHECKING:
    from slim_mvc.model.base import Model

logger = logging.getLogger(__name__)


class ModelRegistry:
    """Model classes by class name; populated as ``Model`` subclasses are defined."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._models: Dict[str, Type["Model"]] = {}

    def register(self, cls: Type["Model"]) -> None:
        name = cls.__name__
        with self._lock:
            previous = self._models.get(name)
            if previous is not None and previous is not cls:
                logger.debug("Model %s re-registered from %s", name, cls.__module__)
            self._models[name] = cls

    def find(self, name: str) -> Optional[Type["Model"]]:
        return self._models.get(name)

    def get(self, name: str) -> Type["Model"]:
        cls = self.find(capitalize(name) or name)
        if cls is None:
            raise ModelNotFound(name)
        return cls

    def names(self) -> list[str]:
        return sorted(self._models)


default_models = ModelRegistry()


def handler_name(source_type: str, event: str) -> str:
    return f"on_{underscore(source_type)}_{underscore(event)}"


def notify(
    source: "Model",
    event: str,
    models: Union[str, Iterable[str]],
    *,
    registry: Optional[ModelRegistry] = None,
) -> bool:
    """Invoke ``on_<source>_<event>`` on every named model; returns the AND of the results.

    Once a handler returns a falsy value the remaining handlers are still
    resolved (so wiring mistakes surface) but no longer invoked.
    """
    if not isinstance(event, str):
        return False
    if isinstance(models, str):
        models = [models]

    registry = registry or default_models
    method = handler_name(type(source).__name__, event)

    result = True
    for name in models:
        if not isinstance(name, str):
            raise ObserverError("Invalid model name")
        target_name = capitalize(name)
        target = registry.find(target_name)
        handler = getattr(target, method, None) if target is not None else None
        if handler is None or not callable(handler):
            raise ObserverError(f"Cannot call method {target_name}.{method}")
        result = result and bool(handler(source))
    return result
