"""Onboarding: set the locked target vehicle, refresh the session, go to the dashboard."""

from __future__ import annotations

from dealdesk.api.client import ApiClient
from dealdesk.errors import ValidationError
from dealdesk.models import UserPreferences
from dealdesk.session.controller import SessionController
from dealdesk.session.routes import Route
from dealdesk.utils.logger import get_logger

logger = get_logger("dealdesk.state.onboarding")

MIN_YEAR = 1900
MAX_YEAR = 2100


def validate_preferences(year: int | str, make: str, model: str) -> tuple[int, str, str]:
    """Normalise form input; raises ValidationError for anything the server would reject."""
    make = (make or "").strip()
    model = (model or "").strip()
    if not make or not model:
        raise ValidationError("Make and model are required")
    try:
        year_value = int(str(year).strip())
    except ValueError as e:
        raise ValidationError("Year must be a number") from e
    if year_value < MIN_YEAR or year_value > MAX_YEAR:
        raise ValidationError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
    return year_value, make, model


async def submit_preferences(
    session: SessionController,
    api: ApiClient,
    year: int | str,
    make: str,
    model: str,
) -> UserPreferences:
    """Create preferences for the signed-in user.

    Raises ValidationError (no network call) for bad input, for anonymous
    sessions and when a target vehicle is already locked. API errors propagate.
    """
    user = session.user
    if user is None:
        raise ValidationError("Sign in before choosing a target vehicle")
    if user.has_preferences:
        raise ValidationError(f"Target vehicle is locked: {user.preferences.label}")
    year_value, make, model = validate_preferences(year, make, model)

    preferences = await api.preferences.create(year_value, make, model)
    logger.info("onboarding.preferences_saved", user_id=user.id, vehicle=preferences.label)
    await session.refresh_user()
    session.navigator.push(Route.DASHBOARD)
    return preferences
