"""
Model Listing API Endpoint
Proxies the installed Ollama models for model pickers
"""

import logging

from fastapi import APIRouter, Depends

from agentic.ollama_client import OllamaClient, get_ollama_client

logger = logging.getLogger("api.models")

router = APIRouter(prefix="/api/v1/models", tags=["Models"])


def get_models_llm() -> OllamaClient:
    return get_ollama_client()


@router.get("")
async def list_models(llm: OllamaClient = Depends(get_models_llm)):
    """Installed models as reported by Ollama /api/tags"""
    models = await llm.list_models()
    logger.debug(f"Listed {len(models)} models")
    return {"models": models}
