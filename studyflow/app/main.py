"""FastAPI application."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from studyflow.app.api.deps import create_schema, get_services
from studyflow.app.api.routes.documents import router as documents_router
from studyflow.app.api.routes.health import router as health_router
from studyflow.app.api.routes.metrics import router as metrics_router
from studyflow.app.api.routes.plans import router as plans_router
from studyflow.app.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create schema on startup, stop background runs on shutdown."""
    await create_schema(get_settings())
    yield
    logger.info("Shutting down: cancelling outstanding processing runs")
    await get_services().orchestrator.shutdown()


app = FastAPI(title="StudyFlow API", version="0.1.0", lifespan=lifespan)

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(documents_router)
app.include_router(plans_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "StudyFlow API", "version": "0.1.0"}
