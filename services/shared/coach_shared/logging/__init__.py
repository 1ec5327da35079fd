"""Structured logging helpers shared by the API and operator scripts."""

from .config import (
    ServiceInfo,
    bind_user,
    configure_logging,
    get_correlation_id,
    get_logger,
    request_scope,
)

__all__ = [
    "ServiceInfo",
    "bind_user",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "request_scope",
]
