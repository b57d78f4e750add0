"""
Title Generation API Endpoint
Names a conversation in a few words for the history list
"""

import logging
import re
from typing import Sequence

from fastapi import APIRouter, Depends

from agentic.models import ChatMessage, ConversationRequest
from agentic.ollama_client import OllamaClient, get_ollama_client
from agentic.prompts import GENERATION_OPTIONS, get_template
from core.exceptions import ExternalServiceError

logger = logging.getLogger("api.title")

router = APIRouter(prefix="/api/v1/title", tags=["Title"])

DEFAULT_TITLE = "New Chat"
MAX_TITLE_CHARS = 50
EXCERPT_CHARS = 500

_EDGE_QUOTES = re.compile(r"^[\"']|[\"']$")


def get_title_llm() -> OllamaClient:
    return get_ollama_client()


def _first_content(messages: Sequence[ChatMessage], role: str) -> str:
    return next((m.content for m in messages if m.role == role), "")


def clean_title(raw: str) -> str:
    """Strip surrounding quotes and a trailing period, then cap the length"""
    title = _EDGE_QUOTES.sub("", raw.strip())
    if title.endswith("."):
        title = title[:-1]
    title = title[:MAX_TITLE_CHARS]
    return title or DEFAULT_TITLE


@router.post("/generate")
async def generate_title(
    request: ConversationRequest,
    llm: OllamaClient = Depends(get_title_llm)
):
    # A title needs at least one exchange
    if len(request.messages) < 2:
        return {"title": DEFAULT_TITLE}

    prompt = get_template(
        "title_generation",
        user_message=_first_content(request.messages, "user")[:EXCERPT_CHARS],
        assistant_message=_first_content(request.messages, "assistant")[:EXCERPT_CHARS],
    )
    try:
        reply = await llm.generate(
            prompt,
            model=request.model,
            options=GENERATION_OPTIONS["title_generation"],
        )
    except ExternalServiceError as e:
        logger.warning(f"Title generation failed: {e.message}")
        return {"title": DEFAULT_TITLE}

    return {"title": clean_title(reply)}
