"""REST client for the car-buyer API."""

from dealdesk.api.client import ApiClient, BearerTokenAuth
from dealdesk.api.resources import (
    AuthAPI,
    GmailAPI,
    MessageAPI,
    OfferAPI,
    PreferencesAPI,
    ThreadAPI,
    TwilioAPI,
)

__all__ = [
    "ApiClient",
    "BearerTokenAuth",
    "AuthAPI",
    "GmailAPI",
    "MessageAPI",
    "OfferAPI",
    "PreferencesAPI",
    "ThreadAPI",
    "TwilioAPI",
]
