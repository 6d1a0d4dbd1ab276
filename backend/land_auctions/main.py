from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from land_auctions.config import settings

logger = structlog.get_logger()

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting Land Auctions API", env=settings.app_env)
    settings.require_extraction_credentials()
    for warning in settings.validate_production():
        logger.warning("Configuration warning", detail=warning)

    from land_auctions.database import create_all_tables
    await create_all_tables()

    db_type = "sqlite" if settings.is_sqlite else "postgresql"
    logger.info("Database ready", backend=db_type)

    # Start periodic discovery scheduler
    from land_auctions.tasks.runner import start_scheduler, stop_scheduler
    if settings.scheduler_enabled:
        start_scheduler(interval_hours=settings.scheduler_interval_hours)

    yield

    if settings.scheduler_enabled:
        stop_scheduler()
    logger.info("Shutting down Land Auctions API")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Land Auctions API",
        description="Discovers Iowa farmland auction listings and serves enriched, geocoded auctions.",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from land_auctions.api.v1.router import api_router

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check: DB connectivity and auction counts per enrichment status."""
        from sqlalchemy import func, select, text

        from land_auctions.database import async_session
        from land_auctions.models.auction import Auction

        result = {
            "status": "healthy",
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "unknown",
            "auction_count": 0,
            "enrichment": {},
            "scheduler_enabled": settings.scheduler_enabled,
            "extraction_configured": bool(settings.firecrawl_api_key),
        }

        try:
            async with async_session() as session:
                await session.execute(text("SELECT 1"))
                result["database"] = "connected"

                counts = await session.execute(
                    select(Auction.enrichment_status, func.count(Auction.id)).group_by(
                        Auction.enrichment_status
                    )
                )
                result["enrichment"] = {status: count for status, count in counts.all()}
                result["auction_count"] = sum(result["enrichment"].values())

        except Exception as e:
            result["status"] = "degraded"
            result["database"] = f"error: {str(e)[:100]}"

        return result

    return app


app = create_app()
