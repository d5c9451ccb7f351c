"""Dealdesk: terminal client for an AI-assisted car-buying negotiation service."""

__version__ = "0.1.0"
