"""Seller threads, their messages and tracked offers."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from dealdesk.models.base import WireModel


class SellerType(str, Enum):
    PRIVATE = "private"
    DEALERSHIP = "dealership"
    OTHER = "other"


class Sender(str, Enum):
    USER = "user"
    AGENT = "agent"
    SELLER = "seller"


def seller_type_label(seller_type: SellerType) -> str:
    """Human label for a seller type."""
    if seller_type is SellerType.PRIVATE:
        return "Private Seller"
    if seller_type is SellerType.DEALERSHIP:
        return "Dealership"
    if seller_type is SellerType.OTHER:
        return "Other"
    raise ValueError(f"Unhandled seller type: {seller_type!r}")


def sender_label(sender: Sender, seller_name: str | None = None) -> str:
    """Who a message bubble is attributed to."""
    if sender is Sender.USER:
        return "You"
    if sender is Sender.AGENT:
        return "AI Agent"
    if sender is Sender.SELLER:
        return seller_name or "Seller"
    raise ValueError(f"Unhandled sender: {sender!r}")


class Thread(WireModel):
    """Negotiation with one seller."""

    id: str
    seller_name: str = ""
    seller_type: SellerType = SellerType.OTHER
    display_name: Optional[str] = None
    phone: Optional[str] = None
    unread_count: int = 0
    message_count: int = 0
    last_message_preview: Optional[str] = None
    last_message_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def title(self) -> str:
        return self.display_name or self.seller_name or self.phone or "Unknown"


class Message(WireModel):
    """Single message in a thread (append-only from the client's side)."""

    id: str
    thread_id: Optional[str] = None
    sender: Sender
    content: str
    timestamp: datetime


class TrackedOffer(WireModel):
    """Seller price/terms snapshot captured from a thread."""

    id: str
    thread_id: str
    message_id: Optional[str] = None
    offer_text: str
    tracked_at: datetime


class ConsolidationResult(WireModel):
    """Merged thread plus the ids it superseded (empty when the server does not report them)."""

    thread: Thread
    superseded_thread_ids: list[str] = Field(default_factory=list)
