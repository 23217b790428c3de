"""
FastAPI application entry point.
Configures middleware, routers, and lifecycle events.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy import text

from app.core.config import get_settings
from app.core.logging import configure_logging, get_logger
from app.db.session import close_db, get_db_session, get_session_factory, init_db
from app.modules.lca.router import router as analysis_router
from app.modules.materials.catalog import MaterialsCatalog
from app.modules.materials.router import router as materials_router
from app.modules.materials.store import MaterialStoreError, SqlMaterialStore
from app.modules.pcr.router import router as pcr_router

# Configure logging before anything else
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Opens the database pool and builds the materials catalog on startup,
    releases the pool on shutdown.
    """
    settings = get_settings()
    logger.info(
        "starting_application",
        environment=settings.environment,
        version=settings.version,
    )

    # Startup: Initialize connections
    await init_db()
    logger.info("database_initialized")

    catalog = MaterialsCatalog(
        SqlMaterialStore(get_session_factory()),
        ttl_seconds=settings.materials_cache_ttl_seconds,
    )
    try:
        await catalog.refresh()
    except MaterialStoreError:
        # Readers retry the load on first access.
        logger.warning("materials_catalog_preload_failed", exc_info=True)
    app.state.materials_catalog = catalog

    yield

    # Shutdown: Clean up connections
    await close_db()
    logger.info("application_shutdown_complete")


def create_application() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application with all middleware,
    routers, and settings applied.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        openapi_url=f"{settings.api_v1_prefix}/openapi.json",
        docs_url=f"{settings.api_v1_prefix}/docs",
        redoc_url=f"{settings.api_v1_prefix}/redoc",
        lifespan=lifespan,
    )

    # ==========================================================================
    # Middleware Configuration
    # ==========================================================================

    # CORS middleware for frontend communication
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
    )

    # Gzip compression for responses
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # ==========================================================================
    # Router Registration
    # ==========================================================================

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, object]:
        checks: dict[str, str] = {}

        # Probe PostgreSQL
        try:
            async for session in get_db_session():
                await session.execute(text("SELECT 1"))
            checks["db"] = "ok"
        except Exception:
            checks["db"] = "unavailable"

        overall = "healthy" if all(v == "ok" for v in checks.values()) else "degraded"
        return {"status": overall, "version": settings.version, "checks": checks}

    app.include_router(
        materials_router,
        prefix=f"{settings.api_v1_prefix}/materials",
        tags=["Materials"],
    )
    app.include_router(
        pcr_router,
        prefix=f"{settings.api_v1_prefix}/pcr",
        tags=["PCR Categories"],
    )
    app.include_router(
        analysis_router,
        prefix=f"{settings.api_v1_prefix}/analysis",
        tags=["Analysis"],
    )

    return app


# Create application instance
app = create_application()
