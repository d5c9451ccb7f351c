"""Pydantic models for the car-buyer API."""

from dealdesk.models.user import AuthResponse, User, UserPreferences
from dealdesk.models.thread import (
    ConsolidationResult,
    Message,
    Sender,
    SellerType,
    Thread,
    TrackedOffer,
    sender_label,
    seller_type_label,
)
from dealdesk.models.inbox import InboxMessage
from dealdesk.models.integrations import GmailAuthUrl, GmailStatus
from dealdesk.models.payloads import (
    AssignInboxMessageRequest,
    ConsolidateRequest,
    CreateThreadRequest,
    Credentials,
    PreferencesRequest,
    RenameThreadRequest,
    SmsReplyRequest,
)

__all__ = [
    "AuthResponse",
    "User",
    "UserPreferences",
    "ConsolidationResult",
    "Message",
    "Sender",
    "SellerType",
    "Thread",
    "TrackedOffer",
    "sender_label",
    "seller_type_label",
    "InboxMessage",
    "GmailAuthUrl",
    "GmailStatus",
    "AssignInboxMessageRequest",
    "ConsolidateRequest",
    "CreateThreadRequest",
    "Credentials",
    "PreferencesRequest",
    "RenameThreadRequest",
    "SmsReplyRequest",
]
