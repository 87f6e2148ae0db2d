from .base import Model, Variant
from .errors import DELETE_KEY, DISABLE_KEY, SAVE_KEY, ErrorCollector
from .extensions import ExtensionRegistry, ModelExtension, default_extensions, extension_for
from .observers import ModelRegistry, default_models, notify
from .transactions import TransactionHandle, TransactionLedger

__all__ = [
    "DELETE_KEY",
    "DISABLE_KEY",
    "SAVE_KEY",
    "ErrorCollector",
    "ExtensionRegistry",
    "Model",
    "ModelExtension",
    "ModelRegistry",
    "TransactionHandle",
    "TransactionLedger",
    "Variant",
    "default_extensions",
    "default_models",
    "extension_for",
    "notify",
]
