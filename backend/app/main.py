"""
FastAPI application for the episode summarize pipeline.

Provides HTTP API for summarizing episodes with WebSocket progress updates.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import routes, summary_routes, websocket
from app.config import get_settings
from app.logging_config import setup_logging
from app.services.session import get_pipeline_session
from app.services.summary_generator import get_configured_providers

# Configure logging before anything else
settings = get_settings()
setup_logging(settings)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs startup info and which summary providers are configured.
    """
    logger.info("Starting Episode Summarizer API")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Config directory: {settings.config_dir}")

    providers = get_configured_providers(settings)
    logger.info(
        "AI providers - "
        + ", ".join(f"{p.value}: {'yes' if ok else 'no'}" for p, ok in providers.items())
    )
    if not any(providers.values()):
        logger.warning("No AI provider configured; summaries will fail at step 4")

    yield

    await get_pipeline_session().aclose()
    logger.info("Shutting down Episode Summarizer API")


app = FastAPI(
    title="Episode Summarizer API",
    description="API for the YouTube episode summarize pipeline",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routes.router)
app.include_router(summary_routes.router)
app.include_router(websocket.router)


@app.get("/health")
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        Basic health status
    """
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8801,
        reload=True,
    )
