"""Dashboard state: threads, selection, messages, offers and inbox kept in sync with the API.

Collections are loaded by explicit calls and patched locally after mutations
(create, consolidate, rename, archive); nothing polls the server.

Thread selection is generation-tagged. Every selection bumps a counter and a
message response is applied only if its generation is still current, so the
pane shows the last-selected thread no matter which response arrives first.
`start_select_thread` also cancels the previous in-flight fetch.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from dealdesk.api.client import ApiClient
from dealdesk.errors import DealdeskError, ValidationError, error_message
from dealdesk.models import (
    ConsolidationResult,
    InboxMessage,
    Message,
    SellerType,
    Thread,
    TrackedOffer,
)
from dealdesk.session.controller import SessionState, SessionView
from dealdesk.state.events import INBOX_REFRESH, Notifier, RefreshBus, maybe_await
from dealdesk.utils.logger import get_logger

logger = get_logger("dealdesk.state.dashboard")

MIN_THREADS_TO_CONSOLIDATE = 2


def validate_seller_name(seller_name: str) -> str:
    """Trimmed seller name; raises ValidationError before any network call when blank."""
    name = (seller_name or "").strip()
    if not name:
        raise ValidationError("Seller name is required")
    return name


class DashboardState:
    """In-memory dashboard collections for one authenticated session."""

    def __init__(
        self,
        api: ApiClient,
        notifier: Notifier | None = None,
        refresh_bus: RefreshBus | None = None,
    ):
        self._api = api
        self.notifier = notifier if notifier is not None else Notifier()
        self.refresh_bus = refresh_bus if refresh_bus is not None else RefreshBus()

        self.threads: list[Thread] = []
        self.selected_thread_id: Optional[str] = None
        self.messages: list[Message] = []
        self.offers: list[TrackedOffer] = []
        self.inbox: list[InboxMessage] = []

        # Edit mode keeps selection order (the server picks the merge parent by it)
        self.edit_mode = False
        self._selection: list[str] = []

        self.thread_form_error: Optional[str] = None

        self.loading_threads = False
        self.loading_messages = False
        self.loading_offers = False
        self.loading_inbox = False
        self.creating_thread = False
        self.consolidating = False
        self.assigning = False

        self._threads_loaded = False
        self._generation = 0
        self._messages_task: asyncio.Task | None = None

        self._unsubscribe_inbox = self.refresh_bus.subscribe(INBOX_REFRESH, self.load_inbox)

    def close(self) -> None:
        """Detach from the refresh bus and cancel any in-flight message fetch."""
        self._unsubscribe_inbox()
        if self._messages_task is not None and not self._messages_task.done():
            self._messages_task.cancel()

    # -- derived --------------------------------------------------------

    @property
    def selected_thread(self) -> Thread | None:
        return self.find_thread(self.selected_thread_id) if self.selected_thread_id else None

    @property
    def total_unread_count(self) -> int:
        return sum(t.unread_count for t in self.threads)

    @property
    def selected_thread_ids(self) -> tuple[str, ...]:
        return tuple(self._selection)

    @property
    def can_consolidate(self) -> bool:
        return self.edit_mode and len(self._selection) >= MIN_THREADS_TO_CONSOLIDATE and not self.consolidating

    @property
    def generation(self) -> int:
        return self._generation

    def find_thread(self, thread_id: str) -> Thread | None:
        for thread in self.threads:
            if thread.id == thread_id:
                return thread
        return None

    # -- loading --------------------------------------------------------

    async def open(self, session: SessionView) -> bool:
        """Load threads, offers and inbox once a session with a target vehicle exists."""
        if session.loading or session.state is not SessionState.AUTHENTICATED:
            return False
        if self._threads_loaded:
            return True
        await self.load_threads()
        await self.load_offers()
        await self.load_inbox()
        return True

    async def load_threads(self) -> list[Thread]:
        self.loading_threads = True
        try:
            threads = await self._api.thread.get_all()
        except DealdeskError as e:
            logger.error("dashboard.load_threads.error", error=str(e))
            self.notifier.error(error_message(e, "Failed to load threads"))
            return self.threads
        finally:
            self.loading_threads = False
        self.threads = threads
        self._threads_loaded = True
        logger.info("dashboard.load_threads.ok", count=len(threads))
        return threads

    async def load_offers(self) -> list[TrackedOffer]:
        self.loading_offers = True
        try:
            offers = await self._api.offer.get_all()
        except DealdeskError as e:
            logger.error("dashboard.load_offers.error", error=str(e))
            return self.offers
        finally:
            self.loading_offers = False
        self.offers = offers
        return offers

    async def load_inbox(self) -> list[InboxMessage]:
        self.loading_inbox = True
        try:
            messages = await self._api.message.get_inbox_messages()
        except DealdeskError as e:
            logger.error("dashboard.load_inbox.error", error=str(e))
            return self.inbox
        finally:
            self.loading_inbox = False
        self.inbox = [m for m in messages if not m.is_assigned]
        logger.debug("dashboard.load_inbox.ok", count=len(self.inbox))
        return self.inbox

    # -- selection ------------------------------------------------------

    async def select_thread(self, thread_id: str) -> list[Message] | None:
        """Select thread_id and fetch its messages (always re-fetched, no cache).

        Returns the applied messages, or None when the fetch failed or a newer
        selection superseded this one.
        """
        self._generation += 1
        generation = self._generation
        if thread_id != self.selected_thread_id:
            self.messages = []
        self.selected_thread_id = thread_id
        self.loading_messages = True
        log = logger.bind(thread_id=thread_id, generation=generation)
        try:
            messages = await self._api.message.get_thread_messages(thread_id)
        except DealdeskError as e:
            if generation == self._generation:
                log.error("dashboard.select_thread.error", error=str(e))
                self.notifier.error(error_message(e, "Failed to load messages"))
            return None
        finally:
            if generation == self._generation:
                self.loading_messages = False

        if generation != self._generation:
            log.debug("dashboard.select_thread.stale", current=self._generation)
            return None
        self.messages = messages
        log.debug("dashboard.select_thread.ok", count=len(messages))
        await self._mark_read(thread_id)
        return messages

    def start_select_thread(self, thread_id: str) -> asyncio.Task:
        """Fire-and-forget selection; cancels the previous in-flight fetch."""
        if self._messages_task is not None and not self._messages_task.done():
            self._messages_task.cancel()
        task = asyncio.create_task(self.select_thread(thread_id))
        self._messages_task = task
        return task

    async def _mark_read(self, thread_id: str) -> None:
        """Clear the unread badge locally and tell the server (best effort)."""
        thread = self.find_thread(thread_id)
        if thread is None or thread.unread_count == 0:
            return
        self._replace_thread(thread.model_copy(update={"unread_count": 0}))
        try:
            await self._api.thread.mark_read(thread_id)
        except DealdeskError as e:
            logger.warning("dashboard.mark_read.error", thread_id=thread_id, error=str(e))

    def clear_selection(self) -> None:
        self._generation += 1
        self.selected_thread_id = None
        self.messages = []
        self.loading_messages = False

    # -- thread mutations -----------------------------------------------

    async def create_thread(
        self,
        seller_name: str,
        seller_type: SellerType = SellerType.DEALERSHIP,
    ) -> Thread | None:
        """Create a seller thread, append it and select it (no list re-fetch).

        On failure returns None and leaves the message in `thread_form_error`.
        """
        try:
            name = validate_seller_name(seller_name)
        except ValidationError as e:
            self.thread_form_error = str(e)
            return None

        self.creating_thread = True
        self.thread_form_error = None
        try:
            thread = await self._api.thread.create(name, seller_type)
        except DealdeskError as e:
            logger.warning("dashboard.create_thread.error", error=str(e))
            self.thread_form_error = error_message(e, "Failed to create thread")
            return None
        finally:
            self.creating_thread = False

        self.threads.append(thread)
        logger.info("dashboard.create_thread.ok", thread_id=thread.id, seller_type=thread.seller_type.value)
        await self.select_thread(thread.id)
        return thread

    async def rename_thread(self, thread_id: str, seller_name: str) -> Thread | None:
        try:
            name = validate_seller_name(seller_name)
        except ValidationError as e:
            self.thread_form_error = str(e)
            return None
        self.thread_form_error = None
        try:
            thread = await self._api.thread.rename(thread_id, name)
        except DealdeskError as e:
            self.thread_form_error = error_message(e, "Failed to rename thread")
            return None
        self._replace_thread(thread)
        return thread

    async def archive_thread(self, thread_id: str) -> bool:
        try:
            await self._api.thread.archive(thread_id)
        except DealdeskError as e:
            logger.warning("dashboard.archive_thread.error", thread_id=thread_id, error=str(e))
            self.notifier.error(error_message(e, "Failed to archive thread"))
            return False
        self.threads = [t for t in self.threads if t.id != thread_id]
        if self.selected_thread_id == thread_id:
            self.clear_selection()
        self.notifier.success("Thread archived")
        return True

    def _replace_thread(self, thread: Thread) -> None:
        self.threads = [thread if t.id == thread.id else t for t in self.threads]

    # -- edit mode / consolidation -------------------------------------

    def toggle_edit_mode(self) -> None:
        self.edit_mode = not self.edit_mode
        self._selection = []

    def cancel_edit(self) -> None:
        self.edit_mode = False
        self._selection = []

    def toggle_thread_selection(self, thread_id: str) -> None:
        if not self.edit_mode:
            return
        if thread_id in self._selection:
            self._selection.remove(thread_id)
        else:
            self._selection.append(thread_id)

    async def consolidate(self) -> ConsolidationResult | None:
        """Merge the selected threads (edit mode and at least 2 selected); no-op otherwise."""
        if not self.can_consolidate:
            return None

        thread_ids = list(self._selection)
        self.consolidating = True
        try:
            result = await self._api.thread.consolidate(thread_ids)
        except DealdeskError as e:
            logger.warning("dashboard.consolidate.error", thread_ids=thread_ids, error=str(e))
            self.notifier.error(error_message(e, "Failed to consolidate threads"))
            return None
        finally:
            self.consolidating = False

        self.edit_mode = False
        self._selection = []
        self.notifier.success("Threads consolidated successfully")

        merged = result.thread
        superseded = set(result.superseded_thread_ids) or set(thread_ids)
        superseded.discard(merged.id)
        self._apply_merge(merged, superseded)
        logger.info("dashboard.consolidate.ok", thread_id=merged.id, superseded=sorted(superseded))
        await self.select_thread(merged.id)
        return result

    def _apply_merge(self, merged: Thread, superseded: set[str]) -> None:
        kept: list[Thread] = []
        replaced = False
        for thread in self.threads:
            if thread.id == merged.id:
                kept.append(merged)
                replaced = True
            elif thread.id not in superseded:
                kept.append(thread)
        if not replaced:
            kept.append(merged)
        self.threads = kept

    # -- inbox ----------------------------------------------------------

    async def assign_inbox_message(
        self,
        inbox_message_id: str,
        thread_id: str,
        on_assigned: Callable[[], object] | None = None,
    ) -> bool:
        """Assign an inbox email to a thread, then broadcast the inbox refresh signal."""
        self.assigning = True
        try:
            await self._api.message.assign_inbox_message_to_thread(inbox_message_id, thread_id)
        except DealdeskError as e:
            logger.error(
                "dashboard.assign_inbox_message.error",
                inbox_message_id=inbox_message_id,
                thread_id=thread_id,
                error=str(e),
            )
            self.notifier.error("Failed to assign message to thread")
            return False
        finally:
            self.assigning = False

        logger.info("dashboard.assign_inbox_message.ok", inbox_message_id=inbox_message_id, thread_id=thread_id)
        await self.refresh_bus.broadcast(INBOX_REFRESH)
        if on_assigned is not None:
            await maybe_await(on_assigned())
        return True
