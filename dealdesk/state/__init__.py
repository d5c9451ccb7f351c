"""Client-side state kept in sync with the API: dashboard, onboarding, Gmail and SMS."""

from dealdesk.state.dashboard import DashboardState, validate_seller_name
from dealdesk.state.events import INBOX_REFRESH, Notice, NoticeLevel, Notifier, RefreshBus
from dealdesk.state.gmail import GmailConnection
from dealdesk.state.onboarding import submit_preferences, validate_preferences
from dealdesk.state.sms import SmsReply, format_phone_number

__all__ = [
    "DashboardState",
    "validate_seller_name",
    "INBOX_REFRESH",
    "Notice",
    "NoticeLevel",
    "Notifier",
    "RefreshBus",
    "GmailConnection",
    "submit_preferences",
    "validate_preferences",
    "SmsReply",
    "format_phone_number",
]
