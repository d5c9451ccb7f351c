"""User, locked target-vehicle preferences and auth responses."""

from datetime import datetime
from typing import Optional

from dealdesk.models.base import WireModel


class UserPreferences(WireModel):
    """Target vehicle. Locked once set, so instances are immutable."""

    year: int
    make: str
    model: str

    model_config = {"frozen": True}

    @property
    def label(self) -> str:
        return f"{self.year} {self.make} {self.model}"


class User(WireModel):
    """Authenticated user as returned by /auth/me (login/register may omit preferences)."""

    id: str
    email: str
    created_at: Optional[datetime] = None
    preferences: Optional[UserPreferences] = None
    inbox_email: Optional[str] = None  # Forwarding address for seller emails
    phone_number: Optional[str] = None  # Allocated Twilio number

    @property
    def has_preferences(self) -> bool:
        return self.preferences is not None

    @property
    def display_name(self) -> str:
        return self.email.split("@")[0] or "User"


class AuthResponse(WireModel):
    """Body of POST /auth/login and /auth/register."""

    user: User
    token: str
