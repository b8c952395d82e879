"""FastAPI collector application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from web3analytics.config import get_settings
from web3analytics.infrastructure.dependencies import build_analytics
from web3analytics.infrastructure.logging.log_config import setup_logging
from web3analytics.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Collector lifespan — build and initialize the client, flush it on shutdown."""
    settings = get_settings()
    setup_logging(settings)

    resources = await build_analytics(settings)
    app.state.analytics = resources.analytics

    session = await resources.analytics.initialize()
    logger.info("Collector started — tracking %s", "enabled" if session.ready else "disabled")

    yield

    await resources.aclose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.include_router(api_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "web3analytics.main:app",
        host="0.0.0.0",
        port=8030,
        reload=False,
    )
