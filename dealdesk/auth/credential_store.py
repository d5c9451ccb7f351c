"""Persistent bearer-token storage. One token, stored under a fixed key on disk."""

import json
from pathlib import Path
from typing import Protocol

from dealdesk.config import TOKEN_STORE_PATH
from dealdesk.utils.logger import get_logger

logger = get_logger("dealdesk.auth.credential_store")

# Key of the token inside the credentials document
TOKEN_KEY = "token"


class CredentialStore(Protocol):
    """Synchronous single-token store. No expiry tracking: the server reports expired tokens."""

    def read(self) -> str | None:
        """Return the persisted token, or None when absent. No side effects."""
        ...

    def write(self, token: str) -> None:
        """Persist token, overwriting any previous value."""
        ...

    def clear(self) -> None:
        """Remove the persisted token."""
        ...


class FileCredentialStore:
    """Token kept in a JSON document ({"token": ...}) that survives process restarts."""

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path) if path is not None else TOKEN_STORE_PATH

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> str | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("credential_store.read_error", path=str(self._path), error=str(e))
            return None
        token = data.get(TOKEN_KEY) if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            return None
        return token

    def write(self, token: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({TOKEN_KEY: token}), encoding="utf-8")
        try:
            self._path.chmod(0o600)
        except OSError:
            logger.debug("credential_store.chmod_unsupported", path=str(self._path))
        logger.debug("credential_store.write", path=str(self._path))

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
        logger.debug("credential_store.clear", path=str(self._path))


class MemoryCredentialStore:
    """Process-local store (tests, one-shot scripts against the mock server)."""

    def __init__(self, token: str | None = None):
        self._token = token

    def read(self) -> str | None:
        return self._token

    def write(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None
