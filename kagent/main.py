#!/usr/bin/env python3
"""
kagent API - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Initializes modules
3. Runs the HTTP server

All business logic is in the modules, following black box principles.
"""

import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from kagent import __version__
from kagent.logging_config import get_logging_config, setup_logging
from kagent.modules.config import get_config
from kagent.modules.modelconfig import router as modelconfig_router
from kagent.modules.storage import StorageModule
from kagent.modules.store import ResourceStore

config = get_config()

setup_logging(config.get("log_level"))
logger = logging.getLogger("kagent.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle - initialize and cleanup resources.
    """
    logger.info("Starting kagent API...")

    storage = StorageModule.from_config(config)
    redis_client = await storage.connect()
    app.state.storage = storage
    app.state.store = ResourceStore(redis_client)

    logger.info(f"kagent API started (namespace: {config.get('resource_namespace')})")

    yield

    logger.info("Shutting down kagent API...")
    app.state.store = None
    await storage.disconnect()
    logger.info("kagent API shutdown complete")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """Build the FastAPI application; tests pass use_lifespan=False and set app.state.store."""
    app = FastAPI(
        title="kagent API",
        description="ModelConfig management for kagent agents",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )
    app.include_router(modelconfig_router)

    @app.get("/healthz")
    async def healthz():
        """
        Minimal health check endpoint for Kubernetes readiness/liveness probes.

        Returns:
            200: Service is running
        """
        return {"status": "ok"}

    @app.get("/health")
    async def health_check(request: Request):
        """
        Health check including the Redis connection.

        Returns:
            200: Service healthy
            503: Service unhealthy
        """
        store = getattr(request.app.state, "store", None)
        if store is None:
            return JSONResponse(
                status_code=503, content={"status": "unhealthy", "redis": "disconnected"}
            )
        try:
            await store.redis.ping()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return JSONResponse(status_code=503, content={"status": "unhealthy", "error": str(e)})
        return {"status": "healthy", "redis": "connected", "version": __version__}

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request, exc):
        """Malformed request bodies are client errors."""
        logger.error(f"Invalid request body: {exc.errors()}")
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request body", "details": jsonable_errors(exc)},
        )

    @app.exception_handler(redis.ConnectionError)
    async def redis_error_handler(request, exc):
        """Handle Redis connection errors."""
        logger.error(f"Redis connection error: {exc}")
        return JSONResponse(status_code=503, content={"error": "Database connection failed"})

    @app.exception_handler(ValueError)
    async def validation_error_handler(request, exc):
        """Handle validation errors."""
        logger.error(f"Validation error: {exc}")
        return JSONResponse(status_code=400, content={"error": str(exc)})

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with only JSON-safe fields."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


app = create_app()


def run():
    """Serve the API with uvicorn."""
    uvicorn.run(
        "kagent.main:app",
        host=config.get("host"),
        port=config.get("port"),
        log_level=config.get("log_level").lower(),
        reload=config.get("debug"),
        log_config=get_logging_config(config.get("log_level")),
    )


if __name__ == "__main__":
    run()
