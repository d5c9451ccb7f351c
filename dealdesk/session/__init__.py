"""Session lifecycle: controller, read-only views, routes and guards."""

from dealdesk.session.controller import SessionController, SessionState, SessionView
from dealdesk.session.routes import (
    Navigator,
    PageRender,
    Route,
    guard_onboarding_route,
    guard_protected_route,
)

__all__ = [
    "SessionController",
    "SessionState",
    "SessionView",
    "Navigator",
    "PageRender",
    "Route",
    "guard_onboarding_route",
    "guard_protected_route",
]
