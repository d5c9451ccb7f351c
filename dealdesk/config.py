"""Configuration and settings."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
DEALDESK_HOME = Path(os.getenv("DEALDESK_HOME", str(Path.home() / ".dealdesk"))).expanduser()
TOKEN_STORE_PATH = Path(
    os.getenv("TOKEN_STORE_PATH", str(DEALDESK_HOME / "credentials.json"))
).expanduser()

# Remote API (base path includes /api/v1)
API_URL = os.getenv("API_URL", "http://localhost:8080/api/v1").rstrip("/")

# Logging
LOG_DIR = Path(os.getenv("LOG_DIR", str(DEALDESK_HOME / "logs"))).expanduser()
LOG_FILE = LOG_DIR / "dealdesk.jsonl"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
VERBOSE_LOGGING = os.getenv("VERBOSE_LOGGING", "false").lower() == "true"
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() == "true"

# OpenTelemetry
TRACING_ENABLED = os.getenv("TRACING_ENABLED", "false").lower() == "true"
OTEL_EXPORTER_ENDPOINT = os.getenv(
    "OTEL_EXPORTER_ENDPOINT",
    "http://localhost:4318/v1/traces",
)
OTEL_SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "dealdesk")
OTEL_API_KEY = os.getenv("OTEL_API_KEY", "")
DEPLOYMENT_ENVIRONMENT = os.getenv("DEPLOYMENT_ENVIRONMENT", "development")

# Local mock API server
MOCK_API_HOST = os.getenv("MOCK_API_HOST", "127.0.0.1")
MOCK_API_PORT = int(os.getenv("MOCK_API_PORT", "8080"))
