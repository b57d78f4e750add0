"""
Health Check API Endpoints for the Fath-AI Server
Reports reachability of the model server and the metasearch backend
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from agentic.ollama_client import OllamaClient, get_ollama_client
from agentic.searxng_search import SearXNGSearcher, get_searxng_searcher

router = APIRouter(prefix="/api/v1/health", tags=["health"])


def get_health_llm() -> OllamaClient:
    return get_ollama_client()


def get_health_searcher() -> SearXNGSearcher:
    return get_searxng_searcher()


@router.get("")
async def health_check(
    llm: OllamaClient = Depends(get_health_llm),
    searcher: SearXNGSearcher = Depends(get_health_searcher)
) -> Dict[str, Any]:
    """
    Health check for external services.

    Search degrades gracefully without either service, so an unreachable
    dependency marks the server as degraded rather than failing the check.
    """
    ollama_healthy = await llm.is_available()
    searxng_healthy = await searcher.is_available()

    health_status = {
        "status": "healthy" if ollama_healthy and searxng_healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": "1.0.0",
        "services": {
            "ollama": {
                "status": "healthy" if ollama_healthy else "unavailable",
                "url": llm.base_url,
            },
            "searxng": {
                "status": "healthy" if searxng_healthy else "unavailable",
                "url": searcher.base_url,
            },
        },
    }
    return health_status


@router.get("/ping")
async def ping() -> Dict[str, str]:
    """Liveness check without touching external services"""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
