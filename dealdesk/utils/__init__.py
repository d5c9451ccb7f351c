"""Utility modules."""

from dealdesk.utils.logger import bind_context, clear_context, get_logger, unbind_context
from dealdesk.utils.tracing import get_tracer, init_tracing, shutdown_tracing

__all__ = [
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "get_tracer",
    "init_tracing",
    "shutdown_tracing",
]
