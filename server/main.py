"""
Fath-AI Server Main Application
FastAPI server for query-adaptive web research and grounded chat
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import configuration and setup
from config import settings, setup_logging
from core.exceptions import AppException, ErrorCode

# Import API routers
from api import (
    search_router,
    chat_router,
    memory_router,
    title_router,
    models_router,
    health_router,
)
from agentic.ollama_client import close_ollama_client
from agentic.searxng_search import get_searxng_searcher
from agentic.scraper import get_content_scraper

# Setup logging
setup_logging()
logger = logging.getLogger("fathai_server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info(f"Starting Fath-AI Server ({settings.environment})")
    logger.info(f"SearXNG: {settings.searxng_url} | Ollama: {settings.ollama_base_url}")

    try:
        yield
    finally:
        logger.info("Shutting down Fath-AI Server...")
        await close_ollama_client()
        await get_searxng_searcher().close()
        await get_content_scraper().close()
        logger.info("Fath-AI Server shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Fath-AI Research Server",
    description="Query-adaptive web research pipeline with grounded chat",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

if settings.enable_cors:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Tag every request with an id, echoed in X-Request-ID and error envelopes"""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(search_router)
app.include_router(chat_router)
app.include_router(memory_router)
app.include_router(title_router)
app.include_router(models_router)
app.include_router(health_router)


def _error_envelope(request: Request, errors: list) -> dict:
    return {
        "success": False,
        "data": None,
        "meta": {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": getattr(request.state, "request_id", None),
            "path": str(request.url.path)
        },
        "errors": errors
    }


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """
    Handle all AppException instances with unified response format.

    Response format:
    {
        "success": false,
        "data": null,
        "meta": {"timestamp": "...", "request_id": "...", "path": "..."},
        "errors": [{"code": "ERR_xxxx", "message": "...", "details": {...}}]
    }
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_envelope(request, [exc.to_dict()])
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled errors and answer with the unified error format"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    error_details = {"type": type(exc).__name__}
    if settings.debug:
        error_details["detail"] = str(exc)

    return JSONResponse(
        status_code=500,
        content=_error_envelope(request, [{
            "code": ErrorCode.INTERNAL_ERROR.value,
            "message": "An unexpected error occurred" if not settings.debug else str(exc),
            "details": error_details
        }])
    )


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if not settings.debug else "debug",
        access_log=True
    )
