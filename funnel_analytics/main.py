"""
FastAPI application entry point for the Funnel Analytics API.

This module configures logging, CORS, request validation errors and router
registration, and starts the ASGI server when run directly.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from funnel_analytics import __version__
from funnel_analytics.api import api_router
from funnel_analytics.core.config import get_settings
from funnel_analytics.services.api_clients import get_api_status

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for application startup and shutdown.

    On startup, logs which integrations will serve live data and which
    fall back to mock data.
    """
    # Startup
    logger.info("Funnel Analytics API starting")
    status = get_api_status(get_settings())
    logger.info(
        f"Integrations: youtube={status.youtube.value}, kajabi={status.kajabi.value}, "
        f"calcom={status.calcom.value}, openai={status.openai.value}"
    )

    yield

    # Shutdown
    logger.info("Funnel Analytics API shutting down")


# Create FastAPI application
app = FastAPI(
    title="Funnel Analytics API",
    version=__version__,
    description=(
        "Backend for the YouTube-to-sales funnel dashboard. "
        "Provides the dashboard payload, AI insights, and analytics endpoints "
        "for trends, attribution, funnel drop-offs, campaigns and alerts."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors: 400 with the validation details."""
    logger.warning(f"Rejected request to {request.url.path}: {len(exc.errors())} validation errors")
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())},
    )


# Register API routers
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Funnel Analytics API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "funnel_analytics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
