"""FastAPI application factory and configuration."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi_keycloak_middleware import setup_keycloak_middleware

from taskmarket.cache import PresenceCache, close_redis, init_redis
from taskmarket.db.session import close_db, init_db
from taskmarket.events import EventBus, EventType
from taskmarket.events.handlers import LoggingEventHandler, WebSocketEventHandler
from taskmarket.logging_setup import configure_logging

from .auth import get_keycloak_config, user_mapper
from .config import (
    get_api_settings,
    get_auth_settings,
    get_cache_settings,
    get_database_settings,
)
from .handlers import register_exception_handlers
from .middleware import LoggingMiddleware, RequestIDMiddleware
from .routers import (
    auth_router,
    chat_router,
    experts_router,
    health_router,
    tasks_router,
    websocket_router,
)
from .websocket import ConnectionManager

logger = structlog.get_logger()

RELAYED_EVENTS = (
    EventType.EXPERT_AVAILABILITY_CHANGED,
    EventType.TASK_ASSIGNED,
    EventType.TASK_STATUS_UPDATED,
    EventType.MESSAGE_SENT,
)


def build_event_bus(ws_manager: ConnectionManager, max_queue_size: int) -> EventBus:
    """Create the event bus with the relay and audit-log subscribers.

    Args:
        ws_manager: Connection manager the relay delivers through
        max_queue_size: Pending events kept before publish drops

    Returns:
        Configured (not yet started) EventBus
    """
    event_bus = EventBus(max_queue_size=max_queue_size)

    ws_handler = WebSocketEventHandler(ws_manager)
    for event_type in RELAYED_EVENTS:
        event_bus.subscribe(event_type, ws_handler.handle)

    event_bus.subscribe_all(LoggingEventHandler().handle)
    return event_bus


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens the database and Redis connections, then wires the connection
    manager and event bus onto ``app.state``.

    Args:
        app: FastAPI application

    Yields:
        None
    """
    api_settings = get_api_settings()
    db_settings = get_database_settings()
    cache_settings = get_cache_settings()

    logger.info("starting_application")

    init_db(
        db_settings.url,
        pool_size=db_settings.pool_size,
        max_overflow=db_settings.max_overflow,
        echo=db_settings.echo,
    )

    presence = None
    if cache_settings.presence_enabled:
        redis_client = await init_redis()
        presence = PresenceCache(redis_client, ttl=cache_settings.presence_ttl)

    ws_manager = ConnectionManager(presence=presence)
    event_bus = build_event_bus(ws_manager, api_settings.event_queue_size)
    event_bus.start()

    app.state.presence = presence
    app.state.ws_manager = ws_manager
    app.state.event_bus = event_bus

    yield

    logger.info("shutting_down_application")
    await event_bus.stop()
    if presence is not None:
        await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_api_settings()
    auth_settings = get_auth_settings()

    configure_logging(settings.log_level, json_logs=settings.log_json)

    app = FastAPI(
        title=settings.title,
        description=settings.description,
        version=settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "health", "description": "Health check endpoints"},
            {"name": "auth", "description": "Marketplace profiles"},
            {"name": "tasks", "description": "Task posting and lifecycle"},
            {"name": "chat", "description": "Task chat between poster and expert"},
            {"name": "experts", "description": "Expert directory and profiles"},
            {"name": "websocket", "description": "Real-time WebSocket notifications"},
        ],
    )

    # Register middleware (order matters - first added = last executed)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    if auth_settings.auth_enabled:
        setup_keycloak_middleware(
            app,
            keycloak_configuration=get_keycloak_config(),
            user_mapper=user_mapper,
            exclude_patterns=[
                "^/health$",
                "^/ready$",
                "^/docs",
                "^/redoc",
                "^/openapi.json$",
                f"^{settings.api_prefix}/ws",
            ],
        )

    # CORS
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    # Health checks (no prefix)
    app.include_router(health_router)

    # API routes
    api_prefix = settings.api_prefix
    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(tasks_router, prefix=api_prefix)
    app.include_router(chat_router, prefix=api_prefix)
    app.include_router(experts_router, prefix=api_prefix)

    # WebSocket (under api prefix)
    app.include_router(websocket_router, prefix=api_prefix)

    logger.info(
        "application_configured",
        title=settings.title,
        version=settings.version,
        debug=settings.debug,
        auth_enabled=auth_settings.auth_enabled,
    )

    return app


# Application instance
app = create_app()
