"""In-process signals between state holders and views: refresh broadcasts and user notices."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from enum import Enum
from typing import Any, Awaitable, Callable, Union

from pydantic import BaseModel

from dealdesk.utils.logger import get_logger

logger = get_logger("dealdesk.state.events")

# Broadcast after an inbox message is assigned so every inbox view reloads
INBOX_REFRESH = "refreshInboxMessages"

Listener = Callable[[], Union[None, Awaitable[None]]]


async def maybe_await(value: Any) -> Any:
    """Await if value is a coroutine; otherwise return as-is (sync callback)."""
    if asyncio.iscoroutine(value):
        return await value
    return value


class RefreshBus:
    """Named refresh signals. A failing listener is logged and does not stop the others."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, topic: str, listener: Listener) -> Callable[[], None]:
        self._listeners[topic].append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners[topic]:
                self._listeners[topic].remove(listener)

        return _unsubscribe

    async def broadcast(self, topic: str) -> int:
        """Run every listener for topic in subscription order; return how many ran."""
        listeners = list(self._listeners.get(topic, ()))
        logger.debug("refresh_bus.broadcast", topic=topic, listeners=len(listeners))
        for listener in listeners:
            try:
                await maybe_await(listener())
            except Exception as e:
                logger.error("refresh_bus.listener_failed", topic=topic, error=str(e), error_type=type(e).__name__)
        return len(listeners)


class NoticeLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Notice(BaseModel):
    """Toast-style message for the user."""

    level: NoticeLevel
    text: str

    model_config = {"frozen": True}


class Notifier:
    """Collects notices until a view drains and renders them."""

    def __init__(self) -> None:
        self._pending: list[Notice] = []

    def success(self, text: str) -> None:
        self._push(NoticeLevel.SUCCESS, text)

    def error(self, text: str) -> None:
        self._push(NoticeLevel.ERROR, text)

    def info(self, text: str) -> None:
        self._push(NoticeLevel.INFO, text)

    def _push(self, level: NoticeLevel, text: str) -> None:
        logger.debug("notice", level=level.value, text=text)
        self._pending.append(Notice(level=level, text=text))

    @property
    def pending(self) -> tuple[Notice, ...]:
        return tuple(self._pending)

    def drain(self) -> list[Notice]:
        notices, self._pending = self._pending, []
        return notices
