"""Optional per-model extension objects.

An extension supplies lifecycle hook overrides for one model type without
subclassing it. Extensions are looked up in an explicit registry keyed by
the model class name and are instantiated at most once per record.

Invariant: ``ExtensionRegistry.load`` never raises. A missing extension, or
one whose factory fails, is simply absent.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

if TYPE_CHECKING:
    from slim_mvc.model.base import Model

logger = logging.getLogger(__name__)

ExtensionFactory = Callable[["Model"], Any]


class ModelExtension:
    """Convenience base class; any subset of the lifecycle hook names may be defined."""

    def __init__(self, model: "Model") -> None:
        self.model = model


class ExtensionRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._factories: Dict[str, ExtensionFactory] = {}

    def register(self, model_name: str, factory: ExtensionFactory) -> None:
        with self._lock:
            self._factories[model_name] = factory

    def unregister(self, model_name: str) -> None:
        with self._lock:
            self._factories.pop(model_name, None)

    def has(self, model_name: str) -> bool:
        return model_name in self._factories

    def load(self, record: "Model") -> Optional[Any]:
        name = type(record).__name__
        factory = self._factories.get(name)
        if factory is None:
            return None
        try:
            return factory(record)
        except Exception as e:
            logger.debug("Extension for %s could not be created: %s", name, e)
            return None

    def __contains__(self, model_name: str) -> bool:
        return self.has(model_name)


default_extensions = ExtensionRegistry()


def extension_for(model_name: str, registry: Optional[ExtensionRegistry] = None):
    """Class decorator registering an extension for ``model_name``::

        @extension_for("User")
        class UserExtension(ModelExtension):
            def before_save(self):
                ...
    """

    def decorator(cls):
        (registry or default_extensions).register(model_name, cls)
        return cls

    return decorator
