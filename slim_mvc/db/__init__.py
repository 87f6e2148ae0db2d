"""Database package.

Named connections, the SQLAlchemy-backed store and the per-request Database
context records are bound to.
"""

from .connections import DEFAULT_CONNECTION, ConnectionConfig, ConnectionRegistry
from .session import create_engine_for_url

__all__ = ["DEFAULT_CONNECTION", "ConnectionConfig", "ConnectionRegistry", "create_engine_for_url"]
