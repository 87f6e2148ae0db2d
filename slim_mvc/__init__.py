"""SlimMVC record layer: base Model lifecycle on top of SQLAlchemy connections."""

from .core.settings import Settings
from .db.connections import ConnectionRegistry
from .db.database import Database
from .model.base import Model, Variant
from .model.extensions import ExtensionRegistry, ModelExtension, default_extensions, extension_for

__all__ = [
    "ConnectionRegistry",
    "Database",
    "ExtensionRegistry",
    "Model",
    "ModelExtension",
    "Settings",
    "Variant",
    "default_extensions",
    "extension_for",
]
