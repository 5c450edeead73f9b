from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from tabletalk.api.error_handling import register_exception_handlers
from tabletalk.api.middleware.request_id import RequestIDMiddleware
from tabletalk.api.routes.auth import router as auth_router
from tabletalk.api.routes.health import router as health_router
from tabletalk.api.routes.menu import router as menu_router
from tabletalk.api.routes.metrics import router as metrics_router
from tabletalk.api.routes.orders import router as orders_router
from tabletalk.api.ws.channel import BroadcastChannel
from tabletalk.api.ws.registry import DEFAULT_MAILBOX_SIZE, SubscriberRegistry
from tabletalk.api.ws.routes import router as ws_router
from tabletalk.application.ports.publisher import EventPublisher
from tabletalk.domain.order.policy import transition_policy_for
from tabletalk.infrastructure.cache.redis_client import redis_url
from tabletalk.infrastructure.messaging.local_publisher import InProcessEventPublisher
from tabletalk.infrastructure.messaging.redis_event_listener import relay_redis_events
from tabletalk.infrastructure.messaging.redis_publisher import RedisEventPublisher
from tabletalk.infrastructure.observability.logging_config import configure_logging
from tabletalk.infrastructure.observability.otel import configure_otel

logger = logging.getLogger("tabletalk.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()

    # Dev/test: unblock everything (no credentials allowed)
    if env in {"dev", "test"}:
        return ["*"]

    # Staging/prod: restrict to explicit allowlist
    default_value = "https://tabletalk.example.com"
    raw_value = os.getenv("CORS_ALLOW_ORIGINS", default_value)
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def _mailbox_size() -> int:
    raw_value = os.getenv("BROADCAST_MAILBOX_SIZE")
    if not raw_value:
        return DEFAULT_MAILBOX_SIZE
    return int(raw_value)


def _route_path(request: Request) -> str:
    # templated path keeps order ids out of metric labels
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        method = request.method
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - started) * 1000
            path = _route_path(request)
            REQUEST_COUNT.labels(method=method, path=path, status_code="500").inc()
            REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
            logger.exception(
                "request_error",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": 500,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        path = _route_path(request)
        REQUEST_COUNT.labels(method=method, path=path, status_code=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
        logger.info(
            "request_complete",
            extra={
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    channel = BroadcastChannel(
        SubscriberRegistry(mailbox_size=_mailbox_size()),
        loop=asyncio.get_running_loop(),
    )
    app.state.broadcast_channel = channel
    app.state.transition_policy = transition_policy_for(
        os.getenv("ORDER_TRANSITION_POLICY", "permissive")
    )

    # with Redis every replica publishes there and relays back into its own channel
    relay_task: asyncio.Task[None] | None = None
    publisher: EventPublisher
    configured_redis_url = redis_url()
    if configured_redis_url:
        publisher = RedisEventPublisher()
        relay_task = asyncio.create_task(relay_redis_events(channel, configured_redis_url))
    else:
        publisher = InProcessEventPublisher(channel)
    app.state.event_publisher = publisher
    logger.info(
        "broadcast_channel_ready",
        extra={"channel": "redis" if relay_task is not None else "in_process"},
    )

    try:
        yield
    finally:
        if relay_task is not None:
            relay_task.cancel()
            with suppress(asyncio.CancelledError):
                await relay_task
        await channel.close()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="TableTalk Backend", version="0.1.0", lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(menu_router)
    app.include_router(auth_router)
    app.include_router(orders_router)
    app.include_router(ws_router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )

    configure_otel(app)
    return app


app = create_app()
