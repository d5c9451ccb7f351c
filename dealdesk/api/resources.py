"""Typed operations grouped by resource: auth, preferences, threads, messages, offers, Gmail, SMS."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, TypeVar
from urllib.parse import quote

from pydantic import BaseModel

from dealdesk.models import (
    AssignInboxMessageRequest,
    AuthResponse,
    ConsolidateRequest,
    ConsolidationResult,
    CreateThreadRequest,
    Credentials,
    GmailAuthUrl,
    GmailStatus,
    InboxMessage,
    Message,
    PreferencesRequest,
    RenameThreadRequest,
    SellerType,
    SmsReplyRequest,
    Thread,
    TrackedOffer,
    User,
    UserPreferences,
)

if TYPE_CHECKING:
    from dealdesk.api.client import ApiClient

M = TypeVar("M", bound=BaseModel)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _items(payload: Any, key: str) -> list[Any]:
    """List responses come wrapped ({"threads": [...]}); tolerate a bare list too."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        return payload.get(key) or []
    raise ValueError(f"expected a {key} list, got {type(payload).__name__}")


def _list_of(model: type[M], key: str) -> Callable[[Any], list[M]]:
    return lambda payload: [model.model_validate(item) for item in _items(payload, key)]


def _consolidation(payload: Any) -> ConsolidationResult:
    """Response is the merged thread, optionally with supersededThreadIds, or a wrapped result."""
    if isinstance(payload, dict) and "thread" in payload:
        return ConsolidationResult.model_validate(payload)
    superseded = payload.get("supersededThreadIds") if isinstance(payload, dict) else None
    return ConsolidationResult(
        thread=Thread.model_validate(payload),
        superseded_thread_ids=list(superseded or []),
    )


class _Resource:
    def __init__(self, client: "ApiClient"):
        self._client = client


class AuthAPI(_Resource):
    """/auth endpoints."""

    async def register(self, email: str, password: str) -> AuthResponse:
        body = Credentials(email=email, password=password).to_wire()
        return await self._client.post("/auth/register", body, parse=AuthResponse.model_validate)

    async def login(self, email: str, password: str) -> AuthResponse:
        body = Credentials(email=email, password=password).to_wire()
        return await self._client.post("/auth/login", body, parse=AuthResponse.model_validate)

    async def me(self) -> User:
        return await self._client.get("/auth/me", parse=User.model_validate)

    async def logout(self) -> None:
        await self._client.post("/auth/logout")


class PreferencesAPI(_Resource):
    """/preferences endpoints (one locked target vehicle per user)."""

    async def get(self) -> UserPreferences:
        return await self._client.get("/preferences", parse=UserPreferences.model_validate)

    async def create(self, year: int, make: str, model: str) -> UserPreferences:
        body = PreferencesRequest(year=year, make=make, model=model).to_wire()
        return await self._client.post("/preferences", body, parse=UserPreferences.model_validate)


class ThreadAPI(_Resource):
    """/threads endpoints."""

    async def get_all(self) -> list[Thread]:
        return await self._client.get("/threads", parse=_list_of(Thread, "threads"))

    async def get(self, thread_id: str) -> Thread:
        return await self._client.get(f"/threads/{_segment(thread_id)}", parse=Thread.model_validate)

    async def create(self, seller_name: str, seller_type: SellerType = SellerType.DEALERSHIP) -> Thread:
        body = CreateThreadRequest(seller_name=seller_name, seller_type=seller_type).to_wire()
        return await self._client.post("/threads", body, parse=Thread.model_validate)

    async def consolidate(self, thread_ids: list[str]) -> ConsolidationResult:
        """Merge threads server-side."""
        body = ConsolidateRequest(thread_ids=list(thread_ids)).to_wire()
        return await self._client.post("/threads/consolidate", body, parse=_consolidation)

    async def rename(self, thread_id: str, seller_name: str) -> Thread:
        body = RenameThreadRequest(seller_name=seller_name).to_wire()
        return await self._client.put(f"/threads/{_segment(thread_id)}", body, parse=Thread.model_validate)

    async def archive(self, thread_id: str) -> None:
        await self._client.delete(f"/threads/{_segment(thread_id)}")

    async def mark_read(self, thread_id: str) -> None:
        await self._client.post(f"/threads/{_segment(thread_id)}/read")


class MessageAPI(_Resource):
    """Thread messages and the unassigned inbox."""

    async def get_thread_messages(self, thread_id: str) -> list[Message]:
        return await self._client.get(f"/threads/{_segment(thread_id)}/messages", parse=_list_of(Message, "messages"))

    async def get_inbox_messages(self) -> list[InboxMessage]:
        return await self._client.get("/inbox/messages", parse=_list_of(InboxMessage, "messages"))

    async def assign_inbox_message_to_thread(self, inbox_message_id: str, thread_id: str) -> None:
        body = AssignInboxMessageRequest(thread_id=thread_id).to_wire()
        await self._client.post(f"/inbox/messages/{_segment(inbox_message_id)}/assign", body)


class OfferAPI(_Resource):
    """/offers endpoint."""

    async def get_all(self) -> list[TrackedOffer]:
        return await self._client.get("/offers", parse=_list_of(TrackedOffer, "offers"))


class GmailAPI(_Resource):
    """Gmail OAuth connection status."""

    async def get_status(self) -> GmailStatus:
        return await self._client.get("/gmail/status", parse=GmailStatus.model_validate)

    async def get_auth_url(self) -> GmailAuthUrl:
        return await self._client.get("/gmail/auth-url", parse=GmailAuthUrl.model_validate)

    async def disconnect(self) -> None:
        await self._client.post("/gmail/disconnect")


class TwilioAPI(_Resource):
    """SMS replies through the user's allocated Twilio number."""

    async def send_sms(self, message_id: str, content: str) -> None:
        body = SmsReplyRequest(content=content).to_wire()
        await self._client.post(f"/messages/{_segment(message_id)}/sms-reply", body)

    async def get_phone_number(self) -> str | None:
        payload = await self._client.get("/sms/phone-number")
        if isinstance(payload, dict):
            return payload.get("phoneNumber") or None
        return None
