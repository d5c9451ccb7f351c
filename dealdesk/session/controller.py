"""Session controller: the single writer of current-user state.

Lifecycle:
    UNKNOWN -> RESTORING -> AUTHENTICATED        (token valid, target vehicle set)
                         -> ONBOARDING_REQUIRED  (token valid, no preferences yet)
                         -> ANONYMOUS            (no token, or token rejected)

Views never mutate the session; they read `SessionView` snapshots and call the
controller's actions. Navigation follows state transitions through the
Navigator.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel

from dealdesk.api.client import ApiClient
from dealdesk.auth.credential_store import CredentialStore
from dealdesk.models import User
from dealdesk.session.routes import Navigator, Route
from dealdesk.utils.logger import bind_context, get_logger, unbind_context

logger = get_logger("dealdesk.session.controller")


class SessionState(str, Enum):
    UNKNOWN = "unknown"
    RESTORING = "restoring"
    AUTHENTICATED = "authenticated"
    ONBOARDING_REQUIRED = "onboarding_required"
    ANONYMOUS = "anonymous"


class SessionView(BaseModel):
    """Read-only projection of the session handed to views."""

    state: SessionState
    user: Optional[User] = None
    loading: bool = True

    model_config = {"frozen": True}

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.state in (
            SessionState.AUTHENTICATED,
            SessionState.ONBOARDING_REQUIRED,
        )

    @property
    def has_preferences(self) -> bool:
        return self.user is not None and self.user.has_preferences


SessionListener = Callable[[SessionView], None]


def _state_for(user: User | None) -> SessionState:
    if user is None:
        return SessionState.ANONYMOUS
    if user.has_preferences:
        return SessionState.AUTHENTICATED
    return SessionState.ONBOARDING_REQUIRED


class SessionController:
    """Owns user, state and loading flag; derives them from the credential store and /auth/me."""

    def __init__(
        self,
        api: ApiClient,
        credentials: CredentialStore | None = None,
        navigator: Navigator | None = None,
    ):
        self._api = api
        self._credentials = credentials if credentials is not None else api.credentials
        self.navigator = navigator if navigator is not None else Navigator()
        self._state = SessionState.UNKNOWN
        self._user: User | None = None
        self._loading = True
        self._listeners: list[SessionListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def loading(self) -> bool:
        return self._loading

    def view(self) -> SessionView:
        return SessionView(state=self._state, user=self._user, loading=self._loading)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call listener with a fresh SessionView after every transition. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = self.view()
        for listener in list(self._listeners):
            listener(snapshot)

    def _set_user(self, user: User | None) -> None:
        previous = self._state
        self._user = user
        self._state = _state_for(user)
        if user is not None:
            bind_context(user_id=user.id)
        else:
            unbind_context("user_id")
        if previous != self._state:
            logger.info("session.transition", previous=previous.value, state=self._state.value)
        self._notify()

    async def restore(self) -> SessionView:
        """Resolve the session at process start. Always ends with loading=False."""
        self._state = SessionState.RESTORING
        self._loading = True
        user: User | None = None
        try:
            if self._credentials.read():
                try:
                    user = await self._api.auth.me()
                except Exception as e:
                    # Expired or invalid token: demote silently
                    logger.info("session.restore.rejected", error=str(e))
                    self._credentials.clear()
                    user = None
            else:
                logger.debug("session.restore.no_credential")
        finally:
            self._loading = False
            self._set_user(user)
        return self.view()

    async def login(self, email: str, password: str) -> SessionView:
        """Authenticate, persist the token, re-fetch the full user and navigate.

        A failed login call propagates to the caller (shown as a form error).
        """
        response = await self._api.auth.login(email, password)
        self._credentials.write(response.token)

        try:
            user = await self._api.auth.me()
        except Exception as e:
            logger.warning("session.login.refetch_failed", error=str(e))
            # Fall back to the user embedded in the login response
            self._set_user(response.user)
            self.navigator.push(Route.DASHBOARD)
            return self.view()

        self._set_user(user)
        self.navigator.push(Route.DASHBOARD if user.has_preferences else Route.ONBOARDING)
        logger.info("session.login.ok", user_id=user.id, has_preferences=user.has_preferences)
        return self.view()

    async def register(self, email: str, password: str) -> SessionView:
        """Create the account, persist the token and go to the dashboard (its guard redirects to onboarding)."""
        response = await self._api.auth.register(email, password)
        self._credentials.write(response.token)
        self._set_user(response.user)
        self.navigator.push(Route.DASHBOARD)
        logger.info("session.register.ok", user_id=response.user.id)
        return self.view()

    async def logout(self) -> SessionView:
        """Best-effort server logout; the local session always ends logged out on /login."""
        try:
            await self._api.auth.logout()
        except Exception as e:
            logger.warning("session.logout.server_failed", error=str(e))
        finally:
            self._credentials.clear()
            self._set_user(None)
            self.navigator.push(Route.LOGIN)
        logger.info("session.logout.ok")
        return self.view()

    async def refresh_user(self) -> SessionView:
        """Re-fetch /auth/me after server-side user changes (e.g. onboarding). Failures leave state unchanged."""
        try:
            user = await self._api.auth.me()
        except Exception as e:
            logger.warning("session.refresh_user.failed", error=str(e))
            return self.view()
        self._set_user(user)
        return self.view()
