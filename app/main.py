from __future__ import annotations

import uuid
from collections.abc import Iterable
from contextlib import asynccontextmanager

import anyio
import anyio.to_thread
import psycopg
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.core.config import settings
from app.core.errors import RestError
from app.core.logging import configure_logging, request_id_ctx
from app.core.sentry import init_sentry
from app.menus.resource import build_menu_item_resource
from app.posts.pg_store import PostgresPostStore
from app.posts.store import InMemoryPostStore, PostStore
from app.rest.hooks import ResponseFilter
from app.rest.server import RestDispatcher

configure_logging(settings.log_level, service=settings.app_name)
logger = structlog.get_logger(__name__)


def build_store() -> PostStore:
    if settings.post_store == "postgres":
        return PostgresPostStore()
    if settings.seed_path:
        return InMemoryPostStore.from_json(settings.seed_path)
    return InMemoryPostStore()


def create_app(
    store: PostStore | None = None,
    response_filters: Iterable[ResponseFilter] = (),
) -> FastAPI:
    store = store if store is not None else build_store()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_sentry()
        logger.info("service_started", post_store=type(store).__name__)
        try:
            yield
        finally:
            close = getattr(store, "close", None)
            if close is not None:
                close()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.api_rate_limit])
    app.state.limiter = limiter
    app.state.store = store
    app.add_middleware(SlowAPIMiddleware)

    @app.middleware("http")
    async def add_request_context(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers["x-request-id"] = request_id
        return response

    @app.exception_handler(RestError)
    async def rest_error_handler(request: Request, exc: RestError):
        logger.info(
            "rest_request_rejected",
            path=request.url.path,
            code=exc.code,
            status_code=exc.status_code,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(psycopg.OperationalError)
    async def store_unavailable_handler(request: Request, exc: psycopg.OperationalError):
        logger.warning("store_unavailable", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=503,
            content={
                "code": "store_unavailable",
                "message": "The content store is unavailable.",
                "data": {"status": 503},
            },
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning("rate_limit_exceeded", path=request.url.path)
        return JSONResponse(
            status_code=429,
            content={
                "code": "rate_limit_exceeded",
                "message": "Rate limit exceeded. Please slow down.",
                "data": {"status": 429},
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_exception", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={
                "code": "internal_server_error",
                "message": "Internal Server Error",
                "data": {"status": 500},
            },
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/ready")
    async def ready() -> JSONResponse:
        try:
            with anyio.fail_after(1.5):
                await anyio.to_thread.run_sync(store.ping)
        except Exception as exc:  # noqa: BLE001
            return JSONResponse(
                status_code=503,
                content={"status": "error", "checks": {"store": {"status": "error", "error": str(exc)}}},
            )
        return JSONResponse(content={"status": "ok", "checks": {"store": {"status": "ok"}}})

    dispatcher = RestDispatcher(app)
    build_menu_item_resource(store, response_filters=response_filters).register_routes(dispatcher)
    app.state.dispatcher = dispatcher
    return app


app = create_app()
