"""
Memory Extraction API Endpoint
Distills a conversation into short facts worth remembering about the user
"""

import json
import logging
import re
from typing import List, Sequence

from fastapi import APIRouter, Depends

from agentic.models import ChatMessage, ConversationRequest
from agentic.ollama_client import OllamaClient, get_ollama_client
from agentic.prompts import GENERATION_OPTIONS, get_template
from core.exceptions import ExternalServiceError

logger = logging.getLogger("api.memory")

router = APIRouter(prefix="/api/v1/memory", tags=["Memory"])

MAX_MEMORIES = 5
MAX_MEMORY_CHARS = 300

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


def get_memory_llm() -> OllamaClient:
    return get_ollama_client()


def conversation_text(messages: Sequence[ChatMessage]) -> str:
    return "\n".join(
        f"{'User' if m.role == 'user' else 'Assistant'}: {m.content}"
        for m in messages
    )


def parse_memory_facts(text: str) -> List[str]:
    """
    Pull the fact list out of a model reply.

    The first "[...]" span is parsed as JSON. Items may be strings or
    objects with a "content" key; empty and non-string items are dropped.
    """
    match = _JSON_ARRAY.search(text or "")
    if not match:
        return []

    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        logger.warning(f"Unparseable memory extraction reply: {text[:200]}")
        return []

    if not isinstance(parsed, list):
        return []

    facts = []
    for item in parsed:
        content = item.get("content") if isinstance(item, dict) else item
        if isinstance(content, str) and content:
            facts.append(content)
    return [fact[:MAX_MEMORY_CHARS] for fact in facts[:MAX_MEMORIES]]


@router.post("/extract")
async def extract_memories(
    request: ConversationRequest,
    llm: OllamaClient = Depends(get_memory_llm)
):
    """Up to five remembered facts; an empty list when the model is unavailable"""
    if not request.messages:
        return {"memories": []}

    prompt = get_template("memory_extraction", conversation=conversation_text(request.messages))
    try:
        reply = await llm.generate(
            prompt,
            model=request.model,
            options=GENERATION_OPTIONS["memory_extraction"],
        )
    except ExternalServiceError as e:
        logger.warning(f"Memory extraction failed: {e.message}")
        return {"memories": []}

    facts = parse_memory_facts(reply.strip())
    logger.info(f"Extracted {len(facts)} memories from {len(request.messages)} messages")
    return {"memories": [{"content": fact} for fact in facts]}
