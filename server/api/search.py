"""
Web Research API Endpoint
Exposes intelligent_search to the chat layer and other callers
"""

import logging

from fastapi import APIRouter, Depends

from agentic.models import IntelligentSearchRequest, IntelligentSearchResponse
from agentic.orchestrator import ResearchOrchestrator, get_orchestrator
from core.exceptions import AppException, SearchError

logger = logging.getLogger("api.search")

router = APIRouter(prefix="/api/v1/search", tags=["Search"])


def get_search_orchestrator() -> ResearchOrchestrator:
    return get_orchestrator()


@router.post("/intelligent", response_model=IntelligentSearchResponse)
async def intelligent_search_endpoint(
    request: IntelligentSearchRequest,
    orchestrator: ResearchOrchestrator = Depends(get_search_orchestrator)
):
    """
    Research a question on the web and return ranked sources plus a
    formatted context block.

    Search Modes:
    - auto: LLM picks the domain profile, gap evaluation between iterations
    - scientific / industrial / code: fixed profile, no classification call
    - general: fast path, one search and no model calls

    A search that finds nothing is not an error: the response carries
    empty results and a context stating that nothing was found.
    """
    logger.info(f"Intelligent search request: {request.question[:50]}... (mode={request.search_mode.value})")

    try:
        response = await orchestrator.intelligent_search(
            question=request.question,
            model=request.model,
            max_results=request.max_results,
            fetch_content=request.fetch_content,
            search_mode=request.search_mode,
        )
    except AppException:
        raise
    except Exception as e:
        logger.error(f"Intelligent search failed: {e}", exc_info=True)
        raise SearchError(f"Search failed: {e}")

    return IntelligentSearchResponse.from_search_response(response)
