"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import auth, projects, reports, users
from backend.app.core.config import settings
from backend.app.core.exception_handlers import register_exception_handlers
from backend.app.db.base import Database
from backend.app.services.enrichment import (
    EnrichmentClient,
    NewsClient,
    create_enrichment_client,
    create_news_client,
)
from backend.app.services.llm import LLMService, get_llm_service
from backend.app.services.report_pipeline import ReportPipeline

logger = logging.getLogger(__name__)


def create_app(
    database: Database | None = None,
    pipeline: ReportPipeline | None = None,
    llm_service: LLMService | None = None,
    enrichment: EnrichmentClient | None = None,
    news: NewsClient | None = None,
) -> FastAPI:
    """
    Build the application with its storage and generation services.

    Services default to the configured ones; tests pass their own.
    """
    logging.basicConfig(level=settings.log_level)

    database = database or Database(settings.database_url, echo=settings.debug)
    llm_service = llm_service or get_llm_service()
    if pipeline is None:
        pipeline = ReportPipeline(
            database,
            enrichment or create_enrichment_client(),
            news or create_news_client(),
            llm_service,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        await database.create_all()
        logger.info("[STARTUP] Lead report service ready")

        yield

        await pipeline.shutdown()
        await database.dispose()
        logger.info("[SHUTDOWN] Cleaned up resources")

    app = FastAPI(
        title="Lead Reports API",
        description="AI-assisted lead intelligence reports for sales meetings",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.llm_service = llm_service
    app.state.pipeline = pipeline

    register_exception_handlers(app)

    logger.debug(f"[CORS] Allowed origins: {settings.cors_origins_list}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(reports.router, prefix="/api")
    app.include_router(projects.router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Lead Reports API",
            "version": "1.0.0",
            "description": "AI-assisted lead intelligence reports for sales meetings",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
