import json
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Fields in requests that should be redacted from logs
PII_KEYS = {"contact_info", "customer_name", "phone", "email", "reference"}

logger = logging.getLogger("kitchenpass.http")


def _redact(obj):
    if isinstance(obj, dict):
        return {k: ("***" if k.lower() in PII_KEYS else _redact(v)) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_redact(v) for v in obj]
    return obj


class LoggingMiddleware(BaseHTTPMiddleware):
    """Emit one structured line per request with latency and a redacted body."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        body_bytes = await request.body()

        async def receive() -> dict:
            return {"type": "http.request", "body": body_bytes, "more_body": False}

        request._receive = receive

        body = None
        if body_bytes:
            try:
                body = _redact(json.loads(body_bytes))
            except ValueError:
                body = None

        response = await call_next(request)
        latency_ms = int((time.perf_counter() - start) * 1000)
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            json.dumps({"method": request.method, "path": request.url.path, "body": body}),
            extra={
                "route": request.url.path,
                "status": response.status_code,
                "latency_ms": latency_ms,
                "actor": request.headers.get("X-Actor-Id"),
            },
        )
        return response
