"""Client routes and the guards pages run before rendering."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from dealdesk.utils.logger import get_logger

if TYPE_CHECKING:
    from dealdesk.session.controller import SessionView

logger = get_logger("dealdesk.session.routes")


class Route(str, Enum):
    LOGIN = "/login"
    ONBOARDING = "/onboarding"
    DASHBOARD = "/dashboard"
    SETTINGS = "/settings"


class PageRender(str, Enum):
    """What a page should do after running its guard."""

    LOADING = "loading"  # session still resolving: show only a loading indicator
    REDIRECT = "redirect"  # guard navigated elsewhere: render nothing
    CONTENT = "content"


class Navigator:
    """Active route plus history. Session transitions and pages push through here."""

    def __init__(self, initial: Route | None = None):
        self._history: list[Route] = [initial] if initial is not None else []

    @property
    def current(self) -> Route | None:
        return self._history[-1] if self._history else None

    @property
    def history(self) -> tuple[Route, ...]:
        return tuple(self._history)

    def push(self, route: Route) -> None:
        logger.debug("navigator.push", route=route.value, previous=self.current.value if self.current else None)
        self._history.append(route)


def guard_protected_route(session: "SessionView", navigator: Navigator) -> PageRender:
    """Guard for /dashboard and /settings.

    Anonymous users go to /login and users without a target vehicle go to
    /onboarding. Only a session with preferences renders content.
    """
    if session.loading:
        return PageRender.LOADING
    if not session.is_authenticated:
        navigator.push(Route.LOGIN)
        return PageRender.REDIRECT
    if not session.has_preferences:
        navigator.push(Route.ONBOARDING)
        return PageRender.REDIRECT
    return PageRender.CONTENT


def guard_onboarding_route(session: "SessionView", navigator: Navigator) -> PageRender:
    """Guard for /onboarding: the target vehicle is locked once set."""
    if session.loading:
        return PageRender.LOADING
    if not session.is_authenticated:
        navigator.push(Route.LOGIN)
        return PageRender.REDIRECT
    if session.has_preferences:
        navigator.push(Route.DASHBOARD)
        return PageRender.REDIRECT
    return PageRender.CONTENT
