"""In-memory mock of the car-buyer REST API for offline development and tests."""

from dealdesk.mock_api.server import API_PREFIX, create_app
from dealdesk.mock_api.store import MockApiError, MockStore, seed_demo_data

__all__ = ["API_PREFIX", "create_app", "MockApiError", "MockStore", "seed_demo_data"]
