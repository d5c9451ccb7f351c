"""Bearer-token persistence for the car-buyer API."""

from dealdesk.auth.credential_store import (
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
    TOKEN_KEY,
)

__all__ = [
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "TOKEN_KEY",
]
