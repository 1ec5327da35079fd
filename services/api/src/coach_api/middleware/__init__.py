"""HTTP middleware."""

from .correlation import CORRELATION_ID_HEADER, CorrelationIdMiddleware, get_correlation_id

__all__ = ["CORRELATION_ID_HEADER", "CorrelationIdMiddleware", "get_correlation_id"]
