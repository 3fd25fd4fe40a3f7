"""
JWT Session Type Definitions

Session value object, configuration and storage interfaces.
"""

import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from .errors import ConfigurationError


# Fixed keys of the persisted session record
STORAGE_KEY_USERNAME = "auth_username"
STORAGE_KEY_ACCESS = "auth_access"
STORAGE_KEY_REFRESH = "auth_refresh"

STORAGE_KEYS = (STORAGE_KEY_USERNAME, STORAGE_KEY_ACCESS, STORAGE_KEY_REFRESH)

API_ADDRESS_REGEX = re.compile(r"^https?://[^\s/]+")


def is_valid_api_address(address: str) -> bool:
    """Validate API address format (http or https URL)."""
    return bool(API_ADDRESS_REGEX.match(address))


def _mask(token: str) -> str:
    if len(token) <= 8:
        return "***"
    return f"{token[:4]}...{token[-4:]}"


@runtime_checkable
class KeyValueStore(Protocol):
    """Persistent string key-value store interface for custom implementations."""

    def get(self, key: str) -> Optional[str]:
        """Get the value stored under key, or None."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key."""
        ...

    def remove(self, key: str) -> None:
        """Remove key if present."""
        ...


@runtime_checkable
class BatchKeyValueStore(KeyValueStore, Protocol):
    """Store that can write several keys in one operation."""

    def set_many(self, values: Mapping[str, str]) -> None:
        """Store all values together."""
        ...


@dataclass(frozen=True)
class Session:
    """An authenticated principal and its tokens."""

    username: str
    access_token: str
    refresh_token: str

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"

    def to_dict(self) -> Dict[str, str]:
        """Convert to the persisted record layout."""
        return {
            STORAGE_KEY_USERNAME: self.username,
            STORAGE_KEY_ACCESS: self.access_token,
            STORAGE_KEY_REFRESH: self.refresh_token,
        }

    def __repr__(self) -> str:
        return (
            f"Session(username={self.username!r}, "
            f"access_token={_mask(self.access_token)!r}, "
            f"refresh_token={_mask(self.refresh_token)!r})"
        )


@dataclass
class SessionConfig:
    """Session manager configuration."""

    # API root, used as base URL of authenticated clients
    api_address: str = "http://localhost:8000"
    # Token endpoint path, appended to api_address for login
    auth_endpoint: str = "/api/token/"
    # Request timeout in seconds (default: 30)
    timeout: float = 30.0
    # Storage for the persisted session (default: None, uses MemoryStore)
    storage: Optional[KeyValueStore] = None
    # Injected login HTTP client (httpx.Client for SessionManager,
    # httpx.AsyncClient for AsyncSessionManager)
    http_client: Optional[Any] = None
    # Extra default headers for authenticated clients
    headers: Optional[Dict[str, str]] = None
    # Enable debug logging (default: False)
    debug: bool = False

    @property
    def auth_url(self) -> str:
        return f"{self.api_address.rstrip('/')}{self.auth_endpoint}"

    @classmethod
    def from_env(cls, prefix: str = "JWT_SESSION_", **overrides: Any) -> "SessionConfig":
        """
        Build configuration from environment variables.

        Reads ``<prefix>API_ADDRESS``, ``<prefix>AUTH_ENDPOINT``,
        ``<prefix>TIMEOUT`` and ``<prefix>DEBUG``. Unset variables keep the
        defaults; keyword overrides win over the environment.
        """
        values: Dict[str, Any] = {}

        api_address = os.environ.get(f"{prefix}API_ADDRESS")
        if api_address:
            values["api_address"] = api_address

        auth_endpoint = os.environ.get(f"{prefix}AUTH_ENDPOINT")
        if auth_endpoint:
            values["auth_endpoint"] = auth_endpoint

        timeout = os.environ.get(f"{prefix}TIMEOUT")
        if timeout:
            try:
                values["timeout"] = float(timeout)
            except ValueError as e:
                raise ConfigurationError(
                    f"{prefix}TIMEOUT must be a number of seconds",
                    {"timeout": timeout},
                ) from e

        debug = os.environ.get(f"{prefix}DEBUG")
        if debug:
            values["debug"] = debug.strip().lower() in ("1", "true", "yes", "on")

        values.update(overrides)
        return cls(**values)
