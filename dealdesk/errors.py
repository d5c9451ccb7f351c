"""Error taxonomy shared by the API client, session controller and dashboard state."""

from __future__ import annotations


class DealdeskError(Exception):
    """Base class for every error surfaced to a user action."""


class ApiError(DealdeskError):
    """Server answered with a non-2xx status. `error` is the server's {"error": ...} text, if any."""

    def __init__(self, status_code: int, error: str | None = None, *, path: str = ""):
        self.status_code = status_code
        self.error = error
        self.path = path
        detail = error or "no error message"
        super().__init__(f"HTTP {status_code} from {path or 'API'}: {detail}")


class TransportError(DealdeskError):
    """Request never produced a response (connection refused, DNS, timeout, ...)."""

    def __init__(self, message: str, *, path: str = ""):
        self.path = path
        super().__init__(message)


INVALID_RESPONSE_BODY = "invalid response body"


class ValidationError(DealdeskError):
    """Local precondition failed; raised before any network call."""


def error_message(exc: BaseException, fallback: str) -> str:
    """Text to show the user for a failed action.

    Server-supplied errors and local validation messages are shown as-is;
    anything else (transport failures, servers that send no error body) falls
    back to the generic message.
    """
    if isinstance(exc, ApiError) and exc.error:
        return exc.error
    if isinstance(exc, ValidationError) and str(exc):
        return str(exc)
    return fallback
