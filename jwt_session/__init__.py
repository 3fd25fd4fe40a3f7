"""
JWT Session
jwt-session

Client-side session management for APIs secured by JWT bearer tokens:
credential exchange, token persistence, startup restore and httpx clients
pre-bound to the access token. Sync and async managers.
"""

from .manager import (
    SessionManager,
    AsyncSessionManager,
    create_session_manager,
    create_async_session_manager,
)
from .types import (
    Session,
    SessionConfig,
    KeyValueStore,
    BatchKeyValueStore,
    STORAGE_KEY_USERNAME,
    STORAGE_KEY_ACCESS,
    STORAGE_KEY_REFRESH,
)
from .errors import (
    AuthError,
    SessionError,
    AuthenticationException,
    UnauthorizedError,
    APIError,
    StorageError,
    ConfigurationError,
    is_session_error,
    is_unauthorized,
)
from .storage import MemoryStore, FileStore, EnvironmentStore

__version__ = "0.1.0"
__all__ = [
    # Managers
    "SessionManager",
    "AsyncSessionManager",
    "create_session_manager",
    "create_async_session_manager",
    # Types
    "Session",
    "SessionConfig",
    "KeyValueStore",
    "BatchKeyValueStore",
    "STORAGE_KEY_USERNAME",
    "STORAGE_KEY_ACCESS",
    "STORAGE_KEY_REFRESH",
    # Errors
    "AuthError",
    "SessionError",
    "AuthenticationException",
    "UnauthorizedError",
    "APIError",
    "StorageError",
    "ConfigurationError",
    "is_session_error",
    "is_unauthorized",
    # Storage
    "MemoryStore",
    "FileStore",
    "EnvironmentStore",
]
