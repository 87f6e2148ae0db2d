from .errors import ConfigurationError, ConnectionNotConfigured, ModelNotFound, ObserverError, SlimMVCError
from .settings import Settings

__all__ = [
    "ConfigurationError",
    "ConnectionNotConfigured",
    "ModelNotFound",
    "ObserverError",
    "Settings",
    "SlimMVCError",
]
