"""
Chat API Endpoint
Streams an Ollama chat answer, optionally grounded in a web research pass
"""

import json
import logging
from datetime import date
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from agentic.models import ChatMessage, ChatRequest, SearchResponse
from agentic.ollama_client import OllamaClient, get_ollama_client
from agentic.orchestrator import ResearchOrchestrator
from agentic.prompts import THINKING_FRAMEWORK, format_memories, get_system_prompt, get_template
from core.exceptions import ExternalServiceError

from .search import get_search_orchestrator

logger = logging.getLogger("api.chat")

router = APIRouter(prefix="/api/v1", tags=["Chat"])

CHAT_SEARCH_MAX_RESULTS = 8


def get_chat_llm() -> OllamaClient:
    return get_ollama_client()


def chat_options(thinking: bool, web_search: bool) -> Dict[str, Any]:
    """Sampling options: lower temperature for reasoning and grounded answers"""
    return {
        "temperature": 0.4 if thinking else (0.3 if web_search else 0.7),
        "top_p": 0.95 if thinking else 0.9,
        "repeat_penalty": 1.15,
        "num_ctx": 8192 if thinking else 4096,
        "num_predict": 2048 if thinking else 1024,
    }


def _to_ollama(message: ChatMessage, content: Optional[str] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"role": message.role, "content": message.content if content is None else content}
    if message.images:
        payload["images"] = message.images
    return payload


def build_system_prompt(request: ChatRequest, today: Optional[date] = None) -> str:
    system_prompt = get_system_prompt(request.search_mode, today)
    system_prompt += format_memories(request.memories)
    if request.thinking:
        system_prompt += THINKING_FRAMEWORK
    return system_prompt


def augment_question(question: str, search: Optional[SearchResponse], today: Optional[date] = None) -> str:
    """Rewrite the last user message around the research context"""
    today = today or date.today()
    if search is None or not search.results:
        return get_template("no_results_note", question=question)
    return get_template(
        "rag_context",
        today=today.isoformat(),
        year=today.year,
        question=question,
        source_count=len(search.results),
        formatted_context=search.formatted_context,
    )


async def prepare_chat(
    request: ChatRequest,
    orchestrator: ResearchOrchestrator
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]], List[str]]:
    """
    Build the Ollama message list.

    Returns:
        (messages, sources, queries); sources and queries are empty when no
        search ran
    """
    messages = [_to_ollama(m) for m in request.messages]
    sources: List[Dict[str, Any]] = []
    queries: List[str] = []

    last = request.messages[-1]
    if request.web_search and last.role == "user":
        search: Optional[SearchResponse] = None
        try:
            search = await orchestrator.intelligent_search(
                question=last.content,
                model=request.model,
                max_results=CHAT_SEARCH_MAX_RESULTS,
                fetch_content=True,
                search_mode=request.search_mode,
            )
        except Exception as e:
            logger.warning(f"Web search failed, answering without context: {e}")

        if search is not None:
            queries = list(search.queries)
            sources = [
                {"title": r.title, "url": r.url, "domain": r.domain, "favicon": r.favicon}
                for r in search.results
            ]
        messages[-1] = _to_ollama(last, augment_question(last.content, search))

    system = {"role": "system", "content": build_system_prompt(request)}
    return [system] + messages, sources, queries


def _sse(payload: Dict[str, Any]) -> str:
    return f"data: {json.dumps(payload)}\n\n"


@router.post("/chat")
async def chat(
    request: ChatRequest,
    orchestrator: ResearchOrchestrator = Depends(get_search_orchestrator),
    llm: OllamaClient = Depends(get_chat_llm)
):
    """
    Stream a chat answer as Server-Sent Events.

    Events:
    - {"sources": [...], "queries": [...]} once, first, when a search ran
    - {"content": "..."} for every streamed fragment
    - {"error": "..."} if the model stream fails
    """
    logger.info(
        f"Chat request: {len(request.messages)} messages, web_search={request.web_search}, "
        f"thinking={request.thinking}, mode={request.search_mode.value}"
    )

    messages, sources, queries = await prepare_chat(request, orchestrator)
    options = chat_options(request.thinking, request.web_search)

    async def generate_events() -> AsyncIterator[str]:
        if sources or queries:
            yield _sse({"sources": sources, "queries": queries})
        try:
            async for chunk in llm.chat_stream(messages, model=request.model, options=options):
                yield _sse({"content": chunk})
        except ExternalServiceError as e:
            logger.error(f"Chat stream failed: {e.message}")
            yield _sse({"error": e.message})

    return StreamingResponse(
        generate_events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        }
    )
