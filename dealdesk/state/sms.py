"""SMS replies to a seller thread."""

from __future__ import annotations

import re
from typing import Optional

from dealdesk.api.client import ApiClient
from dealdesk.errors import DealdeskError, error_message
from dealdesk.state.events import Notifier
from dealdesk.utils.logger import get_logger

logger = get_logger("dealdesk.state.sms")

_NON_DIGITS = re.compile(r"\D")


def format_phone_number(phone: str) -> str:
    """Format a US number (E.164 or 10 digits) as (XXX) XXX-XXXX; anything else is returned unchanged."""
    cleaned = _NON_DIGITS.sub("", phone or "")
    if len(cleaned) == 11 and cleaned.startswith("1"):
        return f"({cleaned[1:4]}) {cleaned[4:7]}-{cleaned[7:]}"
    if len(cleaned) == 10:
        return f"({cleaned[0:3]}) {cleaned[3:6]}-{cleaned[6:]}"
    return phone


class SmsReply:
    """Send-SMS action for one thread.

    Which seller message is replyable is decided server-side; the client only
    checks that an id was resolved and that the thread has a phone number.
    """

    def __init__(
        self,
        api: ApiClient,
        replyable_message_id: Optional[str],
        phone_number: Optional[str],
        notifier: Notifier | None = None,
    ):
        self._api = api
        self.replyable_message_id = replyable_message_id
        self.phone_number = phone_number
        self.notifier = notifier if notifier is not None else Notifier()
        self.sending = False
        self.error: Optional[str] = None

    @property
    def eligible(self) -> bool:
        return bool(self.replyable_message_id) and bool(self.phone_number)

    @property
    def recipient_label(self) -> str:
        return format_phone_number(self.phone_number or "")

    async def send(self, content: str) -> bool:
        self.error = None
        if not self.replyable_message_id:
            self.error = "No SMS message found to reply to in this thread"
            self.notifier.error(self.error)
            return False
        if not (content or "").strip():
            self.error = "Message content is required"
            self.notifier.error(self.error)
            return False

        self.sending = True
        try:
            await self._api.twilio.send_sms(self.replyable_message_id, content)
        except DealdeskError as e:
            self.error = error_message(e, "Failed to send SMS")
            logger.warning("sms.send.error", message_id=self.replyable_message_id, error=str(e))
            self.notifier.error(self.error)
            return False
        finally:
            self.sending = False

        logger.info("sms.send.ok", message_id=self.replyable_message_id)
        self.notifier.success("SMS sent successfully!")
        return True
