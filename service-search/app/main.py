"""Search service main application."""

import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from .api.routes import router as api_router
from .hybrid.search_manager import SearchManager
from .runtime.metrics import get_metrics_collector
from libs.catalog.embedding import HttpEmbeddingProvider
from libs.common.auth import AuthManager
from libs.common.config import SearchConfig
from libs.common.logging import configure_logging

logger = structlog.get_logger("search_service")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    config = SearchConfig()
    configure_logging("search-service", config.shelf_log_level, config.shelf_log_format)

    logger.info("Starting search service", backend=config.shelf_catalog_backend)

    app.state.search_manager = SearchManager(config)
    await app.state.search_manager.initialize()

    app.state.auth_manager = AuthManager(
        secret_key=config.shelf_jwt_secret_key,
        algorithm=config.shelf_jwt_algorithm,
    )
    app.state.metrics_collector = get_metrics_collector("search-service")

    if config.shelf_embedding_service_url:
        app.state.embedding_provider = HttpEmbeddingProvider(
            base_url=config.shelf_embedding_service_url,
            model=config.shelf_embedding_model,
            timeout=config.shelf_embedding_timeout,
        )
    else:
        app.state.embedding_provider = None
        logger.info("No embedding service configured, GET searches run lexically")

    logger.info("Search service started successfully")

    yield

    logger.info("Shutting down search service")
    if app.state.embedding_provider is not None:
        await app.state.embedding_provider.close()
    await app.state.search_manager.cleanup()
    logger.info("Search service shutdown complete")


app = FastAPI(
    title="Shelf Search Service",
    description="Hybrid lexical and semantic search over a personal library",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Collect metrics for HTTP requests."""
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    if hasattr(app.state, 'metrics_collector'):
        app.state.metrics_collector.record_http_request(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code,
            duration=duration
        )

    return response


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    if hasattr(app.state, 'search_manager') and await app.state.search_manager.health_check():
        return {"status": "healthy", "service": "search-service"}

    return JSONResponse(
        status_code=503,
        content={"status": "unhealthy", "service": "search-service"}
    )


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    if hasattr(app.state, 'metrics_collector'):
        metrics_data = app.state.metrics_collector.get_metrics()
        return Response(content=metrics_data, media_type="text/plain")
    else:
        return Response(content="# No metrics available\n", media_type="text/plain")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "search-service",
        "version": "0.1.0",
        "status": "running",
        "endpoints": {
            "health": "/health",
            "metrics": "/metrics",
            "search": "/api/v1/books/search"
        }
    }


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=SearchConfig().shelf_search_port,
        reload=True,
        log_level="info"
    )
