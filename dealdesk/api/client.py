"""Async HTTP client for the car-buyer REST API (bearer auth, JSON, error mapping)."""

from __future__ import annotations

from typing import Any, Callable, Generator, TypeVar

import httpx
import pydantic
from opentelemetry.trace import SpanKind, Status, StatusCode

from dealdesk.api.resources import (
    AuthAPI,
    GmailAPI,
    MessageAPI,
    OfferAPI,
    PreferencesAPI,
    ThreadAPI,
    TwilioAPI,
)
from dealdesk.auth.credential_store import CredentialStore
from dealdesk.config import API_URL
from dealdesk.errors import INVALID_RESPONSE_BODY, ApiError, TransportError
from dealdesk.utils.logger import get_logger
from dealdesk.utils.tracing import get_tracer

logger = get_logger("dealdesk.api.client")

T = TypeVar("T")


class BearerTokenAuth(httpx.Auth):
    """Single interception point: attaches the stored token (if any) to every request.

    The store is read at send time, so a token written by login is used by the
    very next request and a cleared token stops being sent immediately.
    """

    def __init__(self, credentials: CredentialStore):
        self._credentials = credentials

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._credentials.read()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request


def _extract_error(response: httpx.Response) -> str | None:
    """Pull {"error": "..."} out of a failed response; None when the body has no such field."""
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, str) and error.strip():
            return error
    return None


class ApiClient:
    """Transport for every resource group. Use as an async context manager or call aclose()."""

    def __init__(
        self,
        credentials: CredentialStore,
        base_url: str = API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"Content-Type": "application/json"},
            auth=BearerTokenAuth(credentials),
            transport=transport,
        )
        self.auth = AuthAPI(self)
        self.preferences = PreferencesAPI(self)
        self.thread = ThreadAPI(self)
        self.message = MessageAPI(self)
        self.offer = OfferAPI(self)
        self.gmail = GmailAPI(self)
        self.twilio = TwilioAPI(self)
        logger.debug("api_client.init", base_url=base_url)

    @property
    def base_url(self) -> str:
        return str(self._http.base_url)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        parse: Callable[[Any], T] | None = None,
    ) -> Any:
        """Send one request; return the decoded JSON body ({} for empty bodies).

        When `parse` is given it is applied to the decoded body and its result
        returned instead. Raises ApiError for non-2xx responses and for 2xx
        bodies that are not JSON or fail `parse`, and TransportError when no
        response was received.
        """
        tracer = get_tracer()
        attrs = {"http.method": method, "url.path": path}
        with tracer.start_as_current_span("api.request", kind=SpanKind.CLIENT, attributes=attrs) as span:
            try:
                response = await self._http.request(method, path, json=json)
            except httpx.HTTPError as e:
                logger.warning(
                    "api.request.transport_error",
                    method=method,
                    path=path,
                    error=str(e) or repr(e),
                    error_type=type(e).__name__,
                )
                span.set_status(Status(StatusCode.ERROR, type(e).__name__))
                raise TransportError(str(e) or type(e).__name__, path=path) from e

            span.set_attribute("http.status_code", response.status_code)
            if not response.is_success:
                error = _extract_error(response)
                logger.info(
                    "api.request.error",
                    method=method,
                    path=path,
                    status=response.status_code,
                    error=error,
                )
                span.set_status(Status(StatusCode.ERROR, error or str(response.status_code)))
                raise ApiError(response.status_code, error, path=path)

            logger.debug("api.request.ok", method=method, path=path, status=response.status_code)
            try:
                payload = response.json() if response.content else {}
                return parse(payload) if parse is not None else payload
            except (ValueError, pydantic.ValidationError) as e:
                logger.warning(
                    "api.request.invalid_body",
                    method=method,
                    path=path,
                    status=response.status_code,
                    error=str(e),
                )
                span.set_status(Status(StatusCode.ERROR, INVALID_RESPONSE_BODY))
                raise ApiError(response.status_code, INVALID_RESPONSE_BODY, path=path) from e

    async def get(self, path: str, parse: Callable[[Any], T] | None = None) -> Any:
        return await self.request("GET", path, parse=parse)

    async def post(self, path: str, json: Any = None, parse: Callable[[Any], T] | None = None) -> Any:
        return await self.request("POST", path, json=json if json is not None else {}, parse=parse)

    async def put(self, path: str, json: Any = None, parse: Callable[[Any], T] | None = None) -> Any:
        return await self.request("PUT", path, json=json if json is not None else {}, parse=parse)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
