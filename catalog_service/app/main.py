"""
Catalog Service FastAPI Application
===================================

Main application entry point for the Catalog Service microservice.
Serves the category tree, attribute/action inheritance resolution and the
admin operations that edit them.
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.actions import router as actions_router
from .api.v1.attributes import router as attributes_router
from .api.v1.categories import router as categories_router
from .api.v1.health import router as health_router
from .core.database import database_manager
from .core.event_management import close_events, get_event_producer, init_events
from .core.setting import get_settings
from .middleware.error.error_handler import setup_catalog_error_handling
from .services.cache import CategoryPathCache
from .services.maintenance import TreeMaintenanceScheduler, database_path_loader
from .utils.logging import setup_catalog_logging as setup_logging

settings = get_settings()
enable_file_logging = settings.ENVIRONMENT.lower() in ["production", "staging"]

logger = setup_logging(
    "catalog_service",
    log_level=settings.LOG_LEVEL,
    enable_file_logging=enable_file_logging,
)


# Lifespan management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager for startup and shutdown."""
    startup_start = time.time()

    try:
        await _initialize_services(app)
    except Exception as e:
        logger.error(
            "Failed to start catalog service",
            exc_info=True,
            extra={
                "startup_duration_ms": int((time.time() - startup_start) * 1000),
                "error_type": type(e).__name__,
            },
        )
        raise

    logger.info(
        "Catalog service started successfully",
        extra={"total_startup_duration_ms": int((time.time() - startup_start) * 1000)},
    )

    yield

    await _shutdown_services(app)


async def _initialize_services(app: FastAPI) -> None:
    """Initialize all application services during startup."""
    logger.info(
        "Starting catalog service initialization",
        extra={
            "environment": settings.ENVIRONMENT,
            "debug_mode": settings.DEBUG,
            "file_logging_enabled": enable_file_logging,
            "service_version": settings.APP_VERSION,
        },
    )

    await database_manager.create_tables()
    await init_events()
    app.state.tree_scheduler.event_producer = get_event_producer()

    # Repairs drift left by an earlier crash and warms the path cache
    app.state.tree_scheduler.schedule("startup")


async def _shutdown_services(app: FastAPI) -> None:
    """Shutdown all application services gracefully."""
    shutdown_start = time.time()
    try:
        logger.info("Starting catalog service shutdown")
        await app.state.tree_scheduler.stop()
        await close_events()
        logger.info(
            "Catalog service shutdown completed",
            extra={"shutdown_duration_ms": int((time.time() - shutdown_start) * 1000)},
        )
    except Exception as e:
        logger.error(
            "Error during catalog service shutdown",
            exc_info=True,
            extra={
                "shutdown_duration_ms": int((time.time() - shutdown_start) * 1000),
                "error_type": type(e).__name__,
            },
        )
        raise


# Application factory
def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    _setup_state(app)
    _setup_middleware(app)
    _setup_cors(app)
    _setup_routers(app)

    return app


def _setup_state(app: FastAPI) -> None:
    """Process-wide collaborators, handed to requests through app.state"""
    session_maker = database_manager.async_session_maker
    app.state.path_cache = CategoryPathCache(
        database_path_loader(session_maker), max_size=settings.PATH_CACHE_MAX_SIZE
    )
    app.state.tree_scheduler = TreeMaintenanceScheduler(
        session_maker,
        app.state.path_cache,
        max_retries=settings.TREE_MAINTENANCE_MAX_RETRIES,
        retry_delay=settings.TREE_MAINTENANCE_RETRY_DELAY,
    )


def _setup_middleware(app: FastAPI) -> None:
    """Configure middleware components."""

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next: Any):
        correlation_id = request.headers.get("X-Correlation-ID") or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = f"{(time.perf_counter() - started) * 1000:.2f}ms"
        return response

    setup_catalog_error_handling(app)


def _setup_cors(app: FastAPI) -> None:
    """Configure CORS settings with logging."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_CREDENTIALS,
        allow_methods=settings.CORS_METHODS,
        allow_headers=settings.CORS_HEADERS,
    )
    logger.info(
        "CORS middleware configured",
        extra={
            "allowed_origins": len(settings.CORS_ORIGINS),
            "credentials_allowed": settings.CORS_CREDENTIALS,
        },
    )


def _setup_routers(app: FastAPI) -> None:
    """Configure all application routers."""
    app.include_router(health_router, tags=["Health"])
    for router in (categories_router, attributes_router, actions_router):
        app.include_router(router, prefix="/api/v1")

    logger.info(
        "API routes configured",
        extra={"routers": ["health", "categories", "attributes", "actions"]},
    )


app = create_app()
