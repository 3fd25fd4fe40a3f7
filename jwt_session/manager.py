"""
JWT Session Manager

Owns the current authentication session: exchanges credentials for
access/refresh tokens, persists them, restores them on startup and hands out
httpx clients bound to the current bearer token.

Provides both synchronous and asynchronous managers.
"""

import logging
import threading
from typing import Any, Dict, Optional, Tuple

import httpx

from .types import (
    STORAGE_KEYS,
    BatchKeyValueStore,
    Session,
    SessionConfig,
    is_valid_api_address,
)
from .errors import (
    APIError,
    ConfigurationError,
    UnauthorizedError,
)
from .storage import MemoryStore


logger = logging.getLogger("jwt_session")


class _BaseSessionManager:
    """State, persistence and response handling shared by both managers."""

    def __init__(self, config: Optional[SessionConfig] = None) -> None:
        config = config if config is not None else SessionConfig()
        self._validate_config(config)

        self._api_address = config.api_address.rstrip("/")
        self._auth_url = config.auth_url
        self._timeout = config.timeout
        self._storage = config.storage if config.storage is not None else MemoryStore()
        self._custom_headers = dict(config.headers or {})
        self._debug = config.debug

        # State
        self._session: Optional[Session] = None
        self._state_lock = threading.Lock()

    def _validate_config(self, config: SessionConfig) -> None:
        """Validate configuration."""
        if not config.api_address:
            raise ConfigurationError("api_address is required")
        if not is_valid_api_address(config.api_address):
            raise ConfigurationError(
                "Invalid api_address format. Expected http://host or https://host",
                {"api_address": config.api_address},
            )
        if not config.auth_endpoint.startswith("/"):
            raise ConfigurationError(
                "auth_endpoint must start with '/'",
                {"auth_endpoint": config.auth_endpoint},
            )
        if config.timeout <= 0:
            raise ConfigurationError("timeout must be positive", {"timeout": config.timeout})

    def _log(self, message: str, *args: Any) -> None:
        """Log debug message."""
        if self._debug:
            logger.debug(f"[jwt_session] {message}", *args)

    # =========================================================================
    # State Methods
    # =========================================================================

    def current_session(self) -> Optional[Session]:
        """Get the current session, or None when unauthenticated."""
        return self._session

    def is_authenticated(self) -> bool:
        """Check if a session is installed."""
        return self._session is not None

    def clear(self, purge: bool = False) -> None:
        """
        Discard the current session.

        Args:
            purge: Also remove the persisted credentials, so that
                restore() cannot bring the session back.
        """
        with self._state_lock:
            self._session = None
            if purge:
                for key in STORAGE_KEYS:
                    self._storage.remove(key)
        self._log("Session cleared (purge=%s)", purge)

    def from_credentials(self, username: str, access: str, refresh: str) -> Session:
        """Install the given credentials as the current session, unchecked."""
        session = Session(username=username, access_token=access, refresh_token=refresh)
        with self._state_lock:
            self._session = session
        self._log("Session installed for: %s", username)
        return session

    def restore(self) -> Optional[Session]:
        """
        Restore the session persisted by the last successful login.

        Returns:
            The restored session, or None if the store holds no complete
            record. Token validity is not checked.
        """
        username, access, refresh = (self._storage.get(key) for key in STORAGE_KEYS)
        if not (username and access and refresh):
            self._log("No stored session to restore")
            return None
        return self.from_credentials(username, access, refresh)

    # =========================================================================
    # Internal Methods
    # =========================================================================

    @staticmethod
    def _check_credentials(username: str, password: str) -> None:
        if not username or not password:
            raise ValueError("username and password are required")

    def _persist(self, record: Dict[str, str]) -> None:
        """Write the record; a plain store is rolled back if any write fails."""
        if isinstance(self._storage, BatchKeyValueStore):
            self._storage.set_many(record)
            return

        previous = {key: self._storage.get(key) for key in record}
        written = []
        try:
            for key, value in record.items():
                self._storage.set(key, value)
                written.append(key)
        except Exception:
            for key in written:
                old = previous[key]
                if old is None:
                    self._storage.remove(key)
                else:
                    self._storage.set(key, old)
            raise

    def _persist_and_install(self, session: Session) -> None:
        """Write the session record and make it current, as one step."""
        record = session.to_dict()
        with self._state_lock:
            try:
                self._persist(record)
            except Exception as e:
                logger.warning("Could not persist session for %s: %s", session.username, e)
                raise APIError(
                    "Could not persist session",
                    details={"storage_error": str(e)},
                ) from e
            self._session = session

    def _auth_headers(self, session: Session) -> Dict[str, str]:
        return {**self._custom_headers, "Authorization": session.authorization_header}

    @staticmethod
    def _error_detail(response: httpx.Response) -> Optional[str]:
        """Pull the server's error message out of a JSON error body."""
        try:
            data = response.json()
        except ValueError:
            return None
        if isinstance(data, dict) and isinstance(data.get("detail"), str):
            return data["detail"]
        return None

    def _handle_response(self, response: httpx.Response) -> Tuple[str, str]:
        """Classify the token response and return (access, refresh)."""
        status = response.status_code

        if status == 401:
            raise UnauthorizedError(self._error_detail(response) or "Invalid username or password")

        if not response.is_success:
            message = self._error_detail(response) or f"HTTP {status}"
            raise APIError(message, status)

        try:
            data = response.json()
        except ValueError as e:
            raise APIError("Token response is not valid JSON", status) from e

        if not isinstance(data, dict):
            raise APIError("Token response is not a JSON object", status)

        access = data.get("access")
        refresh = data.get("refresh")
        missing = [
            name for name, value in (("access", access), ("refresh", refresh))
            if not isinstance(value, str) or not value
        ]
        if missing:
            raise APIError(
                "Token response is missing " + ", ".join(missing),
                status,
                {"missing": missing},
            )

        return access, refresh


class SessionManager(_BaseSessionManager):
    """
    Session Manager - Synchronous entry point.

    Typical startup::

        manager = SessionManager(SessionConfig(api_address="https://api.example.com",
                                               storage=FileStore()))
        session = manager.restore() or manager.login("alice", "secret")
        with manager.authenticated_client(session) as client:
            client.get("/some/endpoint/")
    """

    def __init__(self, config: Optional[SessionConfig] = None) -> None:
        """Initialize the session manager."""
        config = config if config is not None else SessionConfig()
        super().__init__(config)

        # HTTP client (created lazily unless injected)
        if isinstance(config.http_client, httpx.AsyncClient):
            raise ConfigurationError(
                "SessionManager needs a synchronous httpx.Client; use AsyncSessionManager "
                "for httpx.AsyncClient"
            )
        self._owns_http_client = config.http_client is None
        self._http_client: Optional[httpx.Client] = config.http_client

        self._log("SessionManager initialized (auth_url=%s)", self._auth_url)

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=self._timeout)
        elif getattr(self._http_client, "is_closed", False):
            raise APIError("Login HTTP client is closed")
        return self._http_client

    def login(self, username: str, password: str) -> Session:
        """
        Login with username and password.

        Args:
            username: Account username
            password: Account password

        Returns:
            The new current Session

        Raises:
            UnauthorizedError: If the credentials are rejected (HTTP 401)
            APIError: On any other failure
        """
        self._check_credentials(username, password)
        self._log("Login attempt for: %s", username)

        try:
            response = self._get_client().post(
                self._auth_url,
                json={"username": username, "password": password},
            )
        except httpx.TimeoutException as e:
            raise APIError("Login request timeout", details={"timeout": self._timeout}) from e
        except httpx.HTTPError as e:
            raise APIError(str(e) or e.__class__.__name__) from e

        access, refresh = self._handle_response(response)

        session = Session(username=username, access_token=access, refresh_token=refresh)
        self._persist_and_install(session)

        self._log("Login successful for: %s", username)
        return session

    def authenticated_client(self, session: Session) -> httpx.Client:
        """
        Create an HTTP client bound to the session's access token.

        The client is independent of later logins; the caller owns it and
        should close it.
        """
        return httpx.Client(
            base_url=self._api_address,
            headers=self._auth_headers(session),
            timeout=self._timeout,
        )

    def close(self) -> None:
        """Close the login HTTP client if the manager created it."""
        if self._owns_http_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def __enter__(self) -> "SessionManager":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


# =============================================================================
# Async Manager
# =============================================================================

class AsyncSessionManager(_BaseSessionManager):
    """
    Session Manager - Asynchronous entry point.

    Same surface as SessionManager; login is a coroutine and authenticated
    clients are httpx.AsyncClient instances.

    Store writes during login are synchronous and run under the state lock,
    so a slow store (FileStore) blocks the event loop for the write.
    """

    def __init__(self, config: Optional[SessionConfig] = None) -> None:
        """Initialize the async session manager."""
        config = config if config is not None else SessionConfig()
        super().__init__(config)

        # HTTP client (created lazily unless injected)
        if isinstance(config.http_client, httpx.Client):
            raise ConfigurationError(
                "AsyncSessionManager needs an httpx.AsyncClient; use SessionManager "
                "for httpx.Client"
            )
        self._owns_http_client = config.http_client is None
        self._http_client: Optional[httpx.AsyncClient] = config.http_client

        self._log("AsyncSessionManager initialized (auth_url=%s)", self._auth_url)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        elif getattr(self._http_client, "is_closed", False):
            raise APIError("Login HTTP client is closed")
        return self._http_client

    async def login(self, username: str, password: str) -> Session:
        """Login with username and password."""
        self._check_credentials(username, password)
        self._log("Login attempt for: %s", username)

        try:
            response = await self._get_client().post(
                self._auth_url,
                json={"username": username, "password": password},
            )
        except httpx.TimeoutException as e:
            raise APIError("Login request timeout", details={"timeout": self._timeout}) from e
        except httpx.HTTPError as e:
            raise APIError(str(e) or e.__class__.__name__) from e

        access, refresh = self._handle_response(response)

        session = Session(username=username, access_token=access, refresh_token=refresh)
        self._persist_and_install(session)

        self._log("Login successful for: %s", username)
        return session

    def authenticated_client(self, session: Session) -> httpx.AsyncClient:
        """Create an async HTTP client bound to the session's access token."""
        return httpx.AsyncClient(
            base_url=self._api_address,
            headers=self._auth_headers(session),
            timeout=self._timeout,
        )

    async def close(self) -> None:
        """Close the login HTTP client if the manager created it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "AsyncSessionManager":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


# =============================================================================
# Factory Functions
# =============================================================================

def create_session_manager(config: Optional[SessionConfig] = None) -> SessionManager:
    """Create a new synchronous session manager."""
    return SessionManager(config)


def create_async_session_manager(config: Optional[SessionConfig] = None) -> AsyncSessionManager:
    """Create a new asynchronous session manager."""
    return AsyncSessionManager(config)
