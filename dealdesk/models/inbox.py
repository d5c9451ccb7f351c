"""Unassigned incoming email."""

from datetime import datetime
from typing import Optional

from dealdesk.models.base import WireModel


class InboxMessage(WireModel):
    """Email waiting to be assigned to a seller thread."""

    id: str
    subject: Optional[str] = None
    sender_email: str = ""
    content: str = ""
    timestamp: datetime
    thread_id: Optional[str] = None

    @property
    def is_assigned(self) -> bool:
        return self.thread_id is not None
