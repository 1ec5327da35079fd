"""API route modules."""

from . import admin_usage, health, subscriptions, usage_limits

__all__ = ["admin_usage", "health", "subscriptions", "usage_limits"]
