"""Structured error taxonomy for storybridge.

Callers catch specific failure modes (fetch, delivery, auth, config)
instead of bare ``Exception``.  Fetch and delivery errors are recorded
per cycle and never end the process; auth and config errors are only
raised during startup.
"""
from __future__ import annotations


class StorybridgeError(Exception):
    """Base error for all storybridge subsystems."""
    pass


class FetchError(StorybridgeError):
    """The story source failed to list candidates for this cycle."""

    def __init__(self, message: str, *, source: str = ""):
        self.source = source
        super().__init__(message)


class DeliveryError(StorybridgeError):
    """The sink failed to forward one story."""

    def __init__(self, message: str, *, item_id: str = "", status_code: int | None = None):
        self.item_id = item_id
        self.status_code = status_code
        super().__init__(message)


class AuthError(StorybridgeError):
    """Authentication against an external service failed at startup."""

    def __init__(self, message: str, *, service: str = ""):
        self.service = service
        super().__init__(message)


class ConfigError(StorybridgeError):
    """Invalid or missing configuration value."""
    pass
