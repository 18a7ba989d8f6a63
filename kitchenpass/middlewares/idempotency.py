from __future__ import annotations

import base64
import hashlib
import json

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

IDEMPOTENT_PREFIXES = ("/api/orders", "/api/kds/")


class IdempotencyMiddleware(BaseHTTPMiddleware):
    """Cache responses for POSTs with an ``Idempotency-Key`` header.

    Keys are stored in Redis so a till retrying on a flaky network gets the
    first response back instead of submitting the order or payment twice.
    Only successful responses are cached; a rejected request may be retried
    after the caller fixes it.
    """

    def __init__(self, app, ttl: int = 86400) -> None:
        super().__init__(app)
        self.ttl = ttl

    async def dispatch(self, request: Request, call_next):
        if (
            request.method == "POST"
            and request.url.path.startswith(IDEMPOTENT_PREFIXES)
            and (key := request.headers.get("Idempotency-Key"))
        ):
            redis = request.app.state.redis
            key_hash = hashlib.sha256(key.encode()).hexdigest()
            cache_key = f"idem:{request.url.path}:{key_hash}"
            cached = await redis.get(cache_key)
            if cached:
                data = json.loads(cached)
                body = base64.b64decode(data["body"])
                headers = dict(data.get("headers") or {})
                headers["Idempotent-Replay"] = "true"
                return Response(
                    content=body,
                    status_code=data["status"],
                    headers=headers,
                    media_type=data.get("media_type", "application/json"),
                )

            response = await call_next(request)
            body = b"".join([section async for section in response.body_iterator])
            headers = {
                k: v for k, v in response.headers.items() if k.lower() != "content-length"
            }
            if response.status_code < 400:
                payload = {
                    "status": response.status_code,
                    "body": base64.b64encode(body).decode(),
                    "headers": headers,
                    "media_type": response.media_type,
                }
                await redis.set(cache_key, json.dumps(payload), ex=self.ttl)
            return Response(
                content=body,
                status_code=response.status_code,
                headers=headers,
                media_type=response.media_type,
            )

        return await call_next(request)
