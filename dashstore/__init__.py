"""
dashstore Python Package

Remote resource clients and observable state stores for the admin dashboard.
"""

__version__ = "0.1.0"

from .core.dashboard import Dashboard
from .core.config import Config, StorageConfig
from .auth import TokenProvider, SessionManager, SessionConfig
from .transport import HttpTransport, TransportConfig, Upload
from .resources import (
    ResourceClient,
    ResourceEnvelope,
    ResourceState,
    ResourceStore,
    SingletonResourceStore,
)
from .tokenstore import Credential
from .errors import (
    DashStoreError,
    Unauthenticated,
    SessionExpired,
    NotFound,
    ValidationError,
    TransportError,
    RequestCancelled,
    ConfigurationError,
    ResourceError,
)

__all__ = [
    "Dashboard",
    "Config",
    "StorageConfig",
    "TokenProvider",
    "SessionManager",
    "SessionConfig",
    "HttpTransport",
    "TransportConfig",
    "Upload",
    "ResourceClient",
    "ResourceEnvelope",
    "ResourceState",
    "ResourceStore",
    "SingletonResourceStore",
    "Credential",
    "DashStoreError",
    "Unauthenticated",
    "SessionExpired",
    "NotFound",
    "ValidationError",
    "TransportError",
    "RequestCancelled",
    "ConfigurationError",
    "ResourceError",
]
