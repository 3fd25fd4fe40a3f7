"""
JWT Session Error Classes

Login failures are tagged with one of two AuthError causes.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class AuthError(str, Enum):
    """Cause of a failed login."""
    UNAUTHORIZED = "UNAUTHORIZED"
    API_ERROR = "API_ERROR"


class SessionError(Exception):
    """Base error class for JWT Session."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "name": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class AuthenticationException(SessionError):
    """Login failed; ``cause`` tells why."""

    def __init__(
        self,
        cause: AuthError,
        message: str,
        status_code: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(cause.value, message, status_code, details)
        self.cause = cause


class UnauthorizedError(AuthenticationException):
    """The credential pair was rejected (HTTP 401)."""

    def __init__(
        self,
        message: str = "Invalid username or password",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(AuthError.UNAUTHORIZED, message, 401, details)


class APIError(AuthenticationException):
    """Any other login failure (network, non-401 status, malformed response)."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(AuthError.API_ERROR, message, status_code, details)


class StorageError(SessionError):
    """Persisting to a key-value store failed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("STORAGE_ERROR", message, 0, details)


class ConfigurationError(SessionError):
    """Configuration error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, 0, details)


def is_session_error(error: Any) -> bool:
    """Check if error is a SessionError."""
    return isinstance(error, SessionError)


def is_unauthorized(error: Any) -> bool:
    """Check if error means the credentials were rejected."""
    return isinstance(error, AuthenticationException) and error.cause is AuthError.UNAUTHORIZED
