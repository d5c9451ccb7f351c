"""Gmail OAuth connection state shown in the user menu."""

from __future__ import annotations

from typing import Optional

from dealdesk.api.client import ApiClient
from dealdesk.errors import DealdeskError
from dealdesk.state.events import Notifier
from dealdesk.utils.logger import get_logger

logger = get_logger("dealdesk.state.gmail")


class GmailConnection:
    """Connected flag and address; `loading` stays True until the first status fetch settles."""

    def __init__(self, api: ApiClient, notifier: Notifier | None = None):
        self._api = api
        self.notifier = notifier if notifier is not None else Notifier()
        self.connected = False
        self.gmail_email: Optional[str] = None
        self.loading = True

    async def refresh(self) -> bool:
        try:
            status = await self._api.gmail.get_status()
        except DealdeskError as e:
            logger.error("gmail.status.error", error=str(e))
            return self.connected
        finally:
            self.loading = False
        self.connected = status.connected
        self.gmail_email = status.gmail_email
        return self.connected

    async def connect(self) -> str | None:
        """Return the OAuth consent URL for the caller to open."""
        try:
            result = await self._api.gmail.get_auth_url()
        except DealdeskError as e:
            logger.error("gmail.auth_url.error", error=str(e))
            self.notifier.error("Failed to start Gmail connection")
            return None
        return result.auth_url

    async def disconnect(self) -> bool:
        try:
            await self._api.gmail.disconnect()
        except DealdeskError as e:
            logger.error("gmail.disconnect.error", error=str(e))
            self.notifier.error("Failed to disconnect Gmail")
            return False
        self.connected = False
        self.gmail_email = None
        self.notifier.success("Gmail disconnected successfully")
        return True
