"""Gmail OAuth status payloads."""

from typing import Optional

from dealdesk.models.base import WireModel


class GmailStatus(WireModel):
    connected: bool = False
    gmail_email: Optional[str] = None


class GmailAuthUrl(WireModel):
    auth_url: str
