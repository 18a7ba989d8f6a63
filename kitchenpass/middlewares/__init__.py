"""HTTP middlewares."""

from .idempotency import IdempotencyMiddleware
from .logging import LoggingMiddleware
from .request_id import RequestIdMiddleware

__all__ = ["IdempotencyMiddleware", "LoggingMiddleware", "RequestIdMiddleware"]
