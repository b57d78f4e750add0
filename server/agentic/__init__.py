"""
Agentic Web Research Module for Fath-AI

Implements query-adaptive web research:
- Classifier: picks a domain profile (preferred sources, keywords, engines)
- Query Generator: expands the question into a few search queries
- Searcher: SearXNG metasearch with an engine fallback ladder
- Ranker: engineering-oriented scoring and relevance filtering
- Scraper: desktop/mobile page fetch with optional PDF text
- Gap Evaluator: decides whether another search iteration is needed
- Context Assembler: mode-specific, numbered context for the answering model

The orchestrator ties these together behind intelligent_search().
"""

from .models import (
    SearchMode,
    SearchCategory,
    TimeRange,
    SearchResult,
    EnrichedSearchResult,
    DomainProfile,
    SearchResponse,
    GapEvaluation,
)
from .ollama_client import OllamaClient, get_ollama_client, close_ollama_client
from .searxng_search import SearXNGSearcher, get_searxng_searcher
from .scraper import ContentScraper, get_content_scraper
from .orchestrator import ResearchOrchestrator, get_orchestrator, intelligent_search

__all__ = [
    # Models
    "SearchMode",
    "SearchCategory",
    "TimeRange",
    "SearchResult",
    "EnrichedSearchResult",
    "DomainProfile",
    "SearchResponse",
    "GapEvaluation",
    # Services
    "OllamaClient",
    "get_ollama_client",
    "close_ollama_client",
    "SearXNGSearcher",
    "get_searxng_searcher",
    "ContentScraper",
    "get_content_scraper",
    # Orchestration
    "ResearchOrchestrator",
    "get_orchestrator",
    "intelligent_search",
]
