"""Programmer and configuration errors.

Field validation problems are never raised; they are collected on the record
(see ``slim_mvc.model.errors``). The exceptions below signal wiring mistakes
and are meant to propagate to the caller.
"""

from __future__ import annotations


class SlimMVCError(RuntimeError):
    pass


class ConfigurationError(SlimMVCError):
    pass


class ConnectionNotConfigured(ConfigurationError):
    def __init__(self, connection_name: str, environment: str) -> None:
        super().__init__(f"No database connection '{connection_name}' configured for environment '{environment}'")
        self.connection_name = connection_name
        self.environment = environment


class ModelNotFound(ConfigurationError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Model class '{name}' is not registered")
        self.name = name


class ObserverError(ConfigurationError):
    pass
