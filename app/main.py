from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from app.analytics import AnalyticsCollector, AnalyticsRuntime
from app.api.v1 import create_router
from app.api.v1.models import HealthResponse
from app.core.cache import BaseCache, create_cache
from app.core.config import Settings, settings as default_settings
from app.core.database import DatabaseManager
from app.core.logging import logger, setup_logging
from app.core.middleware import setup_error_handlers
from app.models import AnalyticsEvent
from app.repositories.analytics_events import AnalyticsEventRepository


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[AnalyticsEventRepository] = None,
    cache: Optional[BaseCache] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application

    ``repository`` and ``cache`` replace the MongoDB repository and the
    configured cache backend when given.
    """
    settings = settings or default_settings
    analytics_config = settings.get_analytics_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db_manager = None
        repo = repository
        if repo is None:
            db_manager = DatabaseManager(settings.get_mongo_config())
            repo = AnalyticsEventRepository(db_manager.get_collection("analytics_events"))
            try:
                await repo.ensure_indexes()
                logger.info("Successfully created MongoDB indexes")
            except Exception as e:
                logger.error(f"Failed to create indexes: {str(e)}")
        app.state.analytics_repo = repo

        runtime = None
        if settings.ANALYTICS_ENABLED:
            buffer = cache or await create_cache(
                settings,
                namespace="analytics:",
                model=AnalyticsEvent,
                cleanup_interval_ms=analytics_config.CACHE_CLEANUP_MS,
            )
            runtime = AnalyticsRuntime(analytics_config, repo.insert_many, buffer)
            runtime.initialize()
        app.state.analytics = runtime

        try:
            yield
        finally:
            await collector.wait_idle()
            if runtime is not None:
                await runtime.destroy()
            app.state.analytics = None
            if db_manager is not None:
                db_manager.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.DESCRIPTION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    setup_error_handlers(app)

    # processor is resolved per request from app.state.analytics
    collector = AnalyticsCollector(
        generalize_ids=analytics_config.GENERALIZE_IDS,
        additional_sensitive_params=analytics_config.EXTRA_SENSITIVE_PARAMS,
    )
    app.middleware("http")(collector)
    app.state.analytics_collector = collector

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    async def health():
        runtime = getattr(app.state, "analytics", None)
        return {
            "status": "ok",
            "version": settings.VERSION,
            "environment": "development" if settings.DEBUG else "production",
            "analytics": runtime.status() if runtime is not None else None,
        }

    app.include_router(create_router(prefix=settings.API_V1_STR))

    return app


setup_logging(config=default_settings.get_log_config())

app = create_app()
