"""FastAPI application for the kitchenpass restaurant POS.

:func:`create_app` wires configuration, logging, Redis, the database and the
change feed onto ``app.state`` so each app (and each test) owns its own
collaborators.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.asyncio import from_url
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .db import create_schema, get_engine, session_factory
from .domain.errors import InvariantViolation, PosError
from .events import ChangeFeed
from .middlewares import IdempotencyMiddleware, LoggingMiddleware, RequestIdMiddleware
from .obs import configure_logging
from .routes_kds import router as kds_router
from .routes_menu import router as menu_router
from .routes_orders import router as orders_router
from .routes_payments import router as payments_router
from .routes_realtime import router as realtime_router
from .routes_reports import router as reports_router
from .utils.clock import Clock, SystemClock
from .utils.responses import err, ok

logger = logging.getLogger("kitchenpass")


def create_app(
    settings: Settings | None = None,
    redis=None,
    clock: Clock | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level.upper())

    app = FastAPI(title="kitchenpass")
    app.state.settings = settings
    app.state.redis = redis if redis is not None else from_url(
        settings.redis_url, decode_responses=True
    )
    app.state.feed = ChangeFeed()
    app.state.clock = clock or SystemClock()

    app.add_middleware(IdempotencyMiddleware, ttl=settings.idempotency_ttl_secs)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(menu_router)
    app.include_router(orders_router)
    app.include_router(payments_router)
    app.include_router(kds_router)
    app.include_router(reports_router)
    app.include_router(realtime_router)

    @app.on_event("startup")
    async def open_database() -> None:
        engine = get_engine(settings.database_url)
        await create_schema(engine)
        app.state.engine = engine
        app.state.sessionmaker = session_factory(engine)

    @app.on_event("shutdown")
    async def close_database() -> None:
        await app.state.engine.dispose()

    @app.exception_handler(PosError)
    async def pos_error_handler(request: Request, exc: PosError):
        if isinstance(exc, InvariantViolation):
            logger.error(
                exc.message, extra={"status": exc.status_code, "route": request.url.path}
            )
        else:
            logger.warning(
                "%s: %s",
                exc.code,
                exc.message,
                extra={"status": exc.status_code, "route": request.url.path},
            )
        return JSONResponse(
            err(exc.code, exc.message, jsonable_encoder(exc.details)),
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            err("VALIDATION", "invalid request", {"errors": jsonable_encoder(exc.errors())}),
            status_code=422,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            exc.detail, extra={"status": exc.status_code, "route": request.url.path}
        )
        return JSONResponse(err(exc.status_code, exc.detail), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", extra={"status": 500, "route": request.url.path})
        return JSONResponse(err(500, "Internal Server Error"), status_code=500)

    @app.get("/health")
    async def health() -> dict:
        return ok({"status": "ok"})

    return app


app = create_app()
