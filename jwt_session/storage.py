"""
JWT Session Key-Value Store Implementations

Provides various storage backends for session persistence.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Mapping, Optional

from .errors import StorageError


logger = logging.getLogger("jwt_session")


class MemoryStore:
    """In-memory key-value store (default, non-persistent)."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        """Get the value stored under key."""
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        """Store value under key."""
        with self._lock:
            self._data[key] = value

    def set_many(self, values: Mapping[str, str]) -> None:
        """Store all values together."""
        with self._lock:
            self._data.update(values)

    def remove(self, key: str) -> None:
        """Remove key if present."""
        with self._lock:
            self._data.pop(key, None)


class FileStore:
    """File-based key-value store (persistent across restarts)."""

    def __init__(self, file_path: Optional[str] = None) -> None:
        """
        Initialize file storage.

        Args:
            file_path: Path to the store file. Defaults to ~/.jwt_session/session.json
        """
        if file_path:
            self._file_path = Path(file_path)
        else:
            self._file_path = Path.home() / ".jwt_session" / "session.json"

        self._lock = threading.Lock()
        self._ensure_directory()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def _ensure_directory(self) -> None:
        """Ensure the storage directory exists."""
        self._file_path.parent.mkdir(parents=True, exist_ok=True)

    def _read_data(self) -> Dict[str, str]:
        """Read stored data from file."""
        try:
            if self._file_path.exists():
                with open(self._file_path, "r") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
                logger.warning("Ignoring malformed session store %s", self._file_path)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not read session store %s: %s", self._file_path, e)
        return {}

    def _write_data(self, data: Dict[str, str]) -> None:
        """Write data to file."""
        try:
            with open(self._file_path, "w") as f:
                json.dump(data, f)
            # Owner read/write only
            os.chmod(self._file_path, 0o600)
        except OSError as e:
            logger.warning("Could not write session store %s: %s", self._file_path, e)
            raise StorageError(
                f"Could not write session store {self._file_path}",
                {"error": str(e)},
            ) from e

    def get(self, key: str) -> Optional[str]:
        """Get the value stored under key."""
        with self._lock:
            value = self._read_data().get(key)
            return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        """Store value under key."""
        self.set_many({key: value})

    def set_many(self, values: Mapping[str, str]) -> None:
        """Store all values with a single file write."""
        with self._lock:
            data = self._read_data()
            data.update(values)
            self._write_data(data)

    def remove(self, key: str) -> None:
        """Remove key if present; deletes the file once it is empty."""
        with self._lock:
            data = self._read_data()
            if key not in data:
                return
            del data[key]
            if data:
                self._write_data(data)
                return
            try:
                self._file_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("Could not delete session store %s: %s", self._file_path, e)
                raise StorageError(
                    f"Could not delete session store {self._file_path}",
                    {"error": str(e)},
                ) from e


class EnvironmentStore:
    """Environment variable based store (for serverless/containers)."""

    def __init__(self, prefix: str = "JWT_SESSION_") -> None:
        self._prefix = prefix
        self._lock = threading.Lock()

    def _var(self, key: str) -> str:
        return f"{self._prefix}{key.upper()}"

    def get(self, key: str) -> Optional[str]:
        """Get the value from environment."""
        return os.environ.get(self._var(key))

    def set(self, key: str, value: str) -> None:
        """Store value in environment variable."""
        with self._lock:
            os.environ[self._var(key)] = value

    def set_many(self, values: Mapping[str, str]) -> None:
        """Store all values in environment variables."""
        with self._lock:
            for key, value in values.items():
                os.environ[self._var(key)] = value

    def remove(self, key: str) -> None:
        """Remove value from environment."""
        with self._lock:
            os.environ.pop(self._var(key), None)
