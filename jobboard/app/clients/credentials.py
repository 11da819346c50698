"""Credential stores holding the access and refresh tokens.

ApiClient reads the access token before each request and removes both tokens
when the backend answers 401. The store is a plain key/value capability so
the client works the same in tests, scripts and long-running services.
"""

import json
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from jobboard.app.core.logging import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"


class CredentialStore(ABC):
    """Abstract key/value store for string credentials."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove the key. Removing an absent key is a no-op."""
        pass


class InMemoryCredentialStore(CredentialStore):
    """Process-local credential store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class JSONFileCredentialStore(CredentialStore):
    """Credential store persisted as a JSON object on disk.

    Every write rewrites the whole file through a temporary file and an
    atomic rename, so a crash never leaves a half-written token file. The
    file is created with owner-only permissions.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unreadable credential file {self.path}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring credential file {self.path}: not a JSON object")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key not in data:
                return
            del data[key]
            self._save(data)


def store_tokens(
    store: CredentialStore, access_token: str, refresh_token: Optional[str] = None
) -> None:
    """Save the tokens returned by a login or refresh call."""
    store.set(ACCESS_TOKEN_KEY, access_token)
    if refresh_token is not None:
        store.set(REFRESH_TOKEN_KEY, refresh_token)


def clear_tokens(store: CredentialStore) -> None:
    """Remove both the access and the refresh token."""
    store.remove(ACCESS_TOKEN_KEY)
    store.remove(REFRESH_TOKEN_KEY)
