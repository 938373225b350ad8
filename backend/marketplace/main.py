"""
Dropship Marketplace API

Builds the FastAPI app: approval queues, workflow transitions, supplier
submissions and platform settings under /api/v1, with /health outside it.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import settings
from .api.routes import api_router
from .api.middleware import CorrelationIdMiddleware, register_error_handlers
from .api.deps import get_record_store_dep
from .repositories.record_store import RecordStore
from .utils.logger import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)

APP_VERSION = "1.0.0"
API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ensure Mongo indexes on startup and release the client on shutdown"""
    logger.info(f"Starting marketplace API ({settings.environment}, {settings.record_store} store)")

    if settings.uses_memory_store:
        logger.warning("In-memory record store: queues and audit trail are lost on restart")
    else:
        from .repositories.mongo_client import create_indexes
        try:
            create_indexes()
        except Exception as e:
            # Requests still fail fast with STORE_UNAVAILABLE if Mongo stays down
            logger.error(f"Index setup failed, continuing without it: {e}")

    yield

    if not settings.uses_memory_store:
        from .repositories.mongo_client import close_connection
        close_connection()
    logger.info("Marketplace API stopped")


def create_app() -> FastAPI:
    docs_enabled = settings.debug and not settings.is_production
    application = FastAPI(
        title="Dropship Marketplace",
        description="Approval and promotion workflows for a multi-role dropshipping marketplace",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/api/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if docs_enabled else None,
    )

    # Wildcard origins cannot be combined with credentials
    allow_all = settings.cors_origins.strip() == "*"
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_origins_list,
        allow_credentials=not allow_all,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Correlation-Id"],
        expose_headers=["X-Correlation-Id"],
    )
    application.add_middleware(CorrelationIdMiddleware)

    register_error_handlers(application)
    application.include_router(api_router, prefix=API_PREFIX)
    application.add_api_route("/health", health, methods=["GET"], tags=["Health"])
    application.add_api_route("/", root, methods=["GET"], tags=["Health"])
    return application


def health(store: RecordStore = Depends(get_record_store_dep)) -> Dict[str, Any]:
    """Liveness plus a record store probe; unauthenticated"""
    store_health = store.health_check()
    return {
        "status": "healthy" if store_health.get("status") == "healthy" else "degraded",
        "version": APP_VERSION,
        "environment": settings.environment,
        "store": store_health,
    }


def root() -> Dict[str, Any]:
    return {
        "name": "Dropship Marketplace",
        "version": APP_VERSION,
        "api": API_PREFIX,
        "docs": "/api/docs" if settings.debug and not settings.is_production else None,
    }


app = create_app()
