"""In-memory backing store for the mock API server.

Mirrors the production server's rules closely enough for offline development
and tests: opaque bearer tokens, one locked preference per user, soft-archived
threads, consolidation into a parent thread, inbox assignment and SMS replies.
"""

from __future__ import annotations

import hashlib
import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from dealdesk.models import (
    GmailStatus,
    InboxMessage,
    Message,
    Sender,
    SellerType,
    Thread,
    TrackedOffer,
    User,
    UserPreferences,
)
from dealdesk.utils.logger import get_logger

logger = get_logger("dealdesk.mock_api.store")

MIN_PASSWORD_LENGTH = 8
PREVIEW_LENGTH = 100


class MockApiError(Exception):
    """Rendered by the server as {"error": message} with status_code."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _hash_password(password: str, salt: str) -> str:
    return hashlib.sha256(f"{salt}:{password}".encode("utf-8")).hexdigest()


@dataclass
class _UserRecord:
    id: str
    email: str
    password_salt: str
    password_hash: str
    created_at: datetime
    preferences: Optional[UserPreferences] = None
    inbox_email: Optional[str] = None
    phone_number: Optional[str] = None
    gmail_email: Optional[str] = None

    def to_user(self) -> User:
        return User(
            id=self.id,
            email=self.email,
            created_at=self.created_at,
            preferences=self.preferences,
            inbox_email=self.inbox_email,
            phone_number=self.phone_number,
        )


@dataclass
class _ThreadRecord:
    id: str
    user_id: str
    seller_name: str
    seller_type: SellerType
    created_at: datetime
    phone: Optional[str] = None
    last_message_at: Optional[datetime] = None
    last_read_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None

    @property
    def has_meaningful_name(self) -> bool:
        return bool(self.seller_name) and self.seller_name != self.phone


@dataclass
class _MessageRecord:
    id: str
    user_id: str
    thread_id: str
    sender: Sender
    content: str
    timestamp: datetime
    channel: str = "email"  # "email" | "sms"


@dataclass
class _InboxRecord:
    id: str
    user_id: str
    sender_email: str
    content: str
    timestamp: datetime
    subject: Optional[str] = None
    thread_id: Optional[str] = None


@dataclass
class _OfferRecord:
    id: str
    user_id: str
    thread_id: str
    offer_text: str
    tracked_at: datetime
    message_id: Optional[str] = None


@dataclass
class MockStore:
    """All mock server state. Not thread-safe; the server runs on one event loop."""

    users: dict[str, _UserRecord] = field(default_factory=dict)
    tokens: dict[str, str] = field(default_factory=dict)  # token -> user_id
    threads: dict[str, _ThreadRecord] = field(default_factory=dict)
    messages: dict[str, _MessageRecord] = field(default_factory=dict)
    inbox: dict[str, _InboxRecord] = field(default_factory=dict)
    offers: dict[str, _OfferRecord] = field(default_factory=dict)

    # -- auth -----------------------------------------------------------

    def register(self, email: str, password: str) -> tuple[User, str]:
        email = (email or "").strip().lower()
        if "@" not in email:
            raise MockApiError(400, "valid email is required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise MockApiError(400, f"password must be at least {MIN_PASSWORD_LENGTH} characters")
        if any(u.email == email for u in self.users.values()):
            raise MockApiError(409, "email already registered")
        salt = secrets.token_hex(8)
        user_id = _new_id()
        record = _UserRecord(
            id=user_id,
            email=email,
            password_salt=salt,
            password_hash=_hash_password(password, salt),
            created_at=_now(),
            inbox_email=f"{email.split('@')[0]}-{user_id[:8]}@inbox.dealdesk.local",
        )
        self.users[user_id] = record
        logger.info("mock_store.register", user_id=user_id)
        return record.to_user(), self._issue_token(user_id)

    def login(self, email: str, password: str) -> tuple[User, str]:
        email = (email or "").strip().lower()
        for record in self.users.values():
            if record.email == email and record.password_hash == _hash_password(password or "", record.password_salt):
                return record.to_user(), self._issue_token(record.id)
        raise MockApiError(401, "invalid email or password")

    def _issue_token(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        self.tokens[token] = user_id
        return token

    def authenticate(self, authorization: str | None) -> _UserRecord:
        if not authorization:
            raise MockApiError(401, "missing authorization header")
        parts = authorization.split(" ")
        if len(parts) != 2 or parts[0] != "Bearer":
            raise MockApiError(401, "invalid authorization header format")
        user_id = self.tokens.get(parts[1])
        if user_id is None or user_id not in self.users:
            raise MockApiError(401, "invalid or expired token")
        return self.users[user_id]

    def logout(self, authorization: str) -> None:
        token = authorization.split(" ", 1)[1]
        self.tokens.pop(token, None)

    # -- preferences ----------------------------------------------------

    def get_preferences(self, user: _UserRecord) -> UserPreferences:
        if user.preferences is None:
            raise MockApiError(404, "preferences not found")
        return user.preferences

    def create_preferences(self, user: _UserRecord, year: int, make: str, model: str) -> UserPreferences:
        if year < 1900 or year > 2100:
            raise MockApiError(400, "invalid year")
        if not make.strip() or not model.strip():
            raise MockApiError(400, "make and model are required")
        if user.preferences is not None:
            raise MockApiError(409, "preferences already exist for this user")
        user.preferences = UserPreferences(year=year, make=make.strip(), model=model.strip())
        return user.preferences

    # -- threads --------------------------------------------------------

    def _thread_for(self, user: _UserRecord, thread_id: str) -> _ThreadRecord:
        record = self.threads.get(thread_id)
        if record is None or record.user_id != user.id or record.archived_at is not None:
            raise MockApiError(404, "thread not found")
        return record

    def _thread_messages(self, thread_id: str) -> list[_MessageRecord]:
        matching = [m for m in self.messages.values() if m.thread_id == thread_id]
        matching.sort(key=lambda m: m.timestamp)
        return matching

    def to_thread(self, record: _ThreadRecord) -> Thread:
        messages = self._thread_messages(record.id)
        unread = [
            m
            for m in messages
            if m.sender is Sender.SELLER and (record.last_read_at is None or m.timestamp > record.last_read_at)
        ]
        preview = messages[-1].content[:PREVIEW_LENGTH] if messages else None
        return Thread(
            id=record.id,
            seller_name=record.seller_name,
            seller_type=record.seller_type,
            display_name=record.seller_name if record.has_meaningful_name else (record.phone or ""),
            phone=record.phone,
            unread_count=len(unread),
            message_count=len(messages),
            last_message_preview=preview,
            last_message_at=record.last_message_at,
            created_at=record.created_at,
        )

    def list_threads(self, user: _UserRecord) -> list[Thread]:
        active = [t for t in self.threads.values() if t.user_id == user.id and t.archived_at is None]
        active.sort(key=lambda t: t.last_message_at or t.created_at, reverse=True)
        return [self.to_thread(t) for t in active]

    def get_thread(self, user: _UserRecord, thread_id: str) -> Thread:
        return self.to_thread(self._thread_for(user, thread_id))

    def create_thread(
        self,
        user: _UserRecord,
        seller_name: str,
        seller_type: SellerType,
        phone: str | None = None,
    ) -> Thread:
        if not (seller_name or "").strip():
            raise MockApiError(400, "seller name is required")
        record = _ThreadRecord(
            id=_new_id(),
            user_id=user.id,
            seller_name=seller_name.strip(),
            seller_type=seller_type,
            created_at=_now(),
            phone=phone,
        )
        self.threads[record.id] = record
        return self.to_thread(record)

    def rename_thread(self, user: _UserRecord, thread_id: str, seller_name: str) -> Thread:
        if not (seller_name or "").strip():
            raise MockApiError(400, "seller name is required")
        record = self._thread_for(user, thread_id)
        record.seller_name = seller_name.strip()
        return self.to_thread(record)

    def archive_thread(self, user: _UserRecord, thread_id: str) -> None:
        self._thread_for(user, thread_id).archived_at = _now()

    def mark_thread_read(self, user: _UserRecord, thread_id: str) -> None:
        self._thread_for(user, thread_id).last_read_at = _now()

    def consolidate(self, user: _UserRecord, thread_ids: list[str]) -> tuple[Thread, list[str]]:
        """Merge threads into a parent; returns (parent, superseded ids).

        Parent: first thread in selection order with a meaningful name (not
        just its phone number), else the first selected.
        """
        ordered = list(dict.fromkeys(thread_ids))
        if len(ordered) < 2:
            raise MockApiError(400, "at least 2 threads required for consolidation")
        records = []
        for thread_id in ordered:
            record = self.threads.get(thread_id)
            if record is None or record.user_id != user.id or record.archived_at is not None:
                raise MockApiError(400, "one or more threads not found or already archived")
            records.append(record)

        named = [r for r in records if r.has_meaningful_name]
        parent = named[0] if named else records[0]
        sources = [r for r in records if r.id != parent.id]
        source_ids = {r.id for r in sources}

        for message in self.messages.values():
            if message.thread_id in source_ids:
                message.thread_id = parent.id
        for offer in self.offers.values():
            if offer.thread_id in source_ids:
                offer.thread_id = parent.id

        latest = [r.last_message_at for r in records if r.last_message_at is not None]
        if latest:
            parent.last_message_at = max(latest)
        if parent.phone is None:
            parent.phone = next((r.phone for r in sources if r.phone), None)

        archived_at = _now()
        for record in sources:
            record.archived_at = archived_at
        logger.info("mock_store.consolidate", parent=parent.id, sources=sorted(source_ids))
        return self.to_thread(parent), [r.id for r in sources]

    # -- messages -------------------------------------------------------

    def add_message(
        self,
        user: _UserRecord,
        thread_id: str,
        sender: Sender,
        content: str,
        channel: str = "email",
        timestamp: datetime | None = None,
    ) -> Message:
        record = self._thread_for(user, thread_id)
        message = _MessageRecord(
            id=_new_id(),
            user_id=user.id,
            thread_id=record.id,
            sender=sender,
            content=content,
            timestamp=timestamp or _now(),
            channel=channel,
        )
        self.messages[message.id] = message
        if record.last_message_at is None or message.timestamp > record.last_message_at:
            record.last_message_at = message.timestamp
        return self._to_message(message)

    @staticmethod
    def _to_message(record: _MessageRecord) -> Message:
        return Message(
            id=record.id,
            thread_id=record.thread_id,
            sender=record.sender,
            content=record.content,
            timestamp=record.timestamp,
        )

    def list_thread_messages(self, user: _UserRecord, thread_id: str) -> list[Message]:
        record = self._thread_for(user, thread_id)
        return [self._to_message(m) for m in self._thread_messages(record.id)]

    def send_sms_reply(self, user: _UserRecord, message_id: str, content: str) -> Message:
        if not (content or "").strip():
            raise MockApiError(400, "content is required")
        message = self.messages.get(message_id)
        if message is None or message.user_id != user.id:
            raise MockApiError(404, "message not found")
        thread = self._thread_for(user, message.thread_id)
        if not user.phone_number:
            raise MockApiError(400, "user does not have a Twilio phone number allocated")
        if not thread.phone:
            raise MockApiError(400, "thread does not have a phone number assigned")
        return self.add_message(user, thread.id, Sender.USER, content, channel="sms")

    # -- inbox ----------------------------------------------------------

    def add_inbox_message(
        self,
        user: _UserRecord,
        sender_email: str,
        content: str,
        subject: str | None = None,
        timestamp: datetime | None = None,
    ) -> InboxMessage:
        record = _InboxRecord(
            id=_new_id(),
            user_id=user.id,
            sender_email=sender_email,
            content=content,
            subject=subject,
            timestamp=timestamp or _now(),
        )
        self.inbox[record.id] = record
        return self._to_inbox(record)

    @staticmethod
    def _to_inbox(record: _InboxRecord) -> InboxMessage:
        return InboxMessage(
            id=record.id,
            subject=record.subject,
            sender_email=record.sender_email,
            content=record.content,
            timestamp=record.timestamp,
            thread_id=record.thread_id,
        )

    def list_inbox(self, user: _UserRecord) -> list[InboxMessage]:
        pending = [m for m in self.inbox.values() if m.user_id == user.id and m.thread_id is None]
        pending.sort(key=lambda m: m.timestamp, reverse=True)
        return [self._to_inbox(m) for m in pending]

    def assign_inbox_message(self, user: _UserRecord, inbox_message_id: str, thread_id: str) -> Message:
        record = self.inbox.get(inbox_message_id)
        if record is None or record.user_id != user.id:
            raise MockApiError(404, "inbox message not found")
        if record.thread_id is not None:
            raise MockApiError(409, "inbox message already assigned")
        self._thread_for(user, thread_id)
        record.thread_id = thread_id
        return self.add_message(user, thread_id, Sender.SELLER, record.content, timestamp=record.timestamp)

    # -- offers ---------------------------------------------------------

    def track_offer(self, user: _UserRecord, thread_id: str, offer_text: str, message_id: str | None = None) -> TrackedOffer:
        self._thread_for(user, thread_id)
        record = _OfferRecord(
            id=_new_id(),
            user_id=user.id,
            thread_id=thread_id,
            offer_text=offer_text,
            tracked_at=_now(),
            message_id=message_id,
        )
        self.offers[record.id] = record
        return self._to_offer(record)

    @staticmethod
    def _to_offer(record: _OfferRecord) -> TrackedOffer:
        return TrackedOffer(
            id=record.id,
            thread_id=record.thread_id,
            message_id=record.message_id,
            offer_text=record.offer_text,
            tracked_at=record.tracked_at,
        )

    def list_offers(self, user: _UserRecord) -> list[TrackedOffer]:
        active_threads = {t.id for t in self.threads.values() if t.user_id == user.id and t.archived_at is None}
        offers = [o for o in self.offers.values() if o.user_id == user.id and o.thread_id in active_threads]
        offers.sort(key=lambda o: o.tracked_at, reverse=True)
        return [self._to_offer(o) for o in offers]

    # -- gmail ----------------------------------------------------------

    def gmail_status(self, user: _UserRecord) -> GmailStatus:
        return GmailStatus(connected=user.gmail_email is not None, gmail_email=user.gmail_email)

    def gmail_auth_url(self, user: _UserRecord) -> str:
        state = secrets.token_urlsafe(16)
        return f"https://accounts.google.com/o/oauth2/auth?client_id=dealdesk-mock&state={state}&login_hint={user.email}"

    def gmail_disconnect(self, user: _UserRecord) -> None:
        if user.gmail_email is None:
            raise MockApiError(404, "gmail not connected")
        user.gmail_email = None


def seed_demo_data(store: MockStore, email: str = "demo@example.com", password: str = "demo-password") -> User:
    """Create a demo user with a target vehicle, two threads, an inbox email and an offer."""
    user, _ = store.register(email, password)
    record = store.users[user.id]
    record.phone_number = "+12065550100"
    record.gmail_email = email
    store.create_preferences(record, 2022, "Subaru", "Outback")

    dealer = store.create_thread(record, "Subaru of Renton", SellerType.DEALERSHIP)
    private = store.create_thread(record, "+14255550123", SellerType.PRIVATE, phone="+14255550123")

    store.add_message(record, dealer.id, Sender.USER, "Hi, is the 2022 Outback Touring still available?")
    store.add_message(record, dealer.id, Sender.AGENT, "Drafted a follow-up asking for the out-the-door price.")
    offer_msg = store.add_message(record, dealer.id, Sender.SELLER, "Yes! We can do $34,500 plus fees.")
    store.add_message(record, private.id, Sender.SELLER, "Still have the Outback, 41k miles.", channel="sms")

    store.track_offer(record, dealer.id, "$34,500 + fees, 2022 Outback Touring", message_id=offer_msg.id)
    store.add_inbox_message(
        record,
        "sales@eastsidesubaru.example",
        "Following up on your Outback inquiry, we have two in stock.",
        subject="Your Outback inquiry",
    )
    logger.info("mock_store.seeded", user_id=user.id, email=email)
    return store.users[user.id].to_user()
