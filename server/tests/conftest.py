"""
Shared pytest fixtures for Fath-AI server tests.

Every external service is replaced: the LLM by an AsyncMock, SearXNG and
page fetches by httpx.MockTransport handlers.
"""

import pytest
import sys
from pathlib import Path
from typing import Callable, List
from unittest.mock import AsyncMock

import httpx

# Add server directory to path
SERVER_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(SERVER_DIR))

from agentic.models import EnrichedSearchResult, SearchResult


# ============================================
# Configuration Fixtures
# ============================================

@pytest.fixture
def settings():
    """Get application settings."""
    from config.settings import get_settings
    return get_settings()


# ============================================
# Mock Service Fixtures
# ============================================

@pytest.fixture
def mock_llm():
    """Mock Ollama client; generate() returns an empty answer by default."""
    mock = AsyncMock()
    mock.generate.return_value = ""
    mock.base_url = "http://localhost:11434"
    return mock


@pytest.fixture
def mock_transport_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for an AsyncClient whose requests are answered by a handler."""
    def _make(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return _make


# ============================================
# Sample Data Fixtures
# ============================================

@pytest.fixture
def result_factory():
    """Build a raw SearchResult."""
    return _make_result


def _make_result(url: str, title: str = "Result", content: str = "", engine: str = "google") -> SearchResult:
    return SearchResult(title=title, url=url, content=content, engine=engine)


@pytest.fixture
def enriched_factory():
    """Build an EnrichedSearchResult with domain and favicon filled in."""
    return _make_enriched


def _make_enriched(
    url: str,
    title: str = "Result",
    content: str = "",
    score: float = 0.0,
    full_content=None
) -> EnrichedSearchResult:
    from agentic.domain_profiles import extract_domain, favicon_url
    domain = extract_domain(url)
    return EnrichedSearchResult(
        title=title,
        url=url,
        content=content,
        domain=domain,
        engine="google",
        favicon=favicon_url(domain),
        score=score,
        full_content=full_content,
    )


@pytest.fixture
def sample_backend_items() -> List[dict]:
    """SearXNG JSON items with one blocked domain."""
    return [
        {
            "title": "NMC cathode calendering density",
            "url": "https://www.sciencedirect.com/science/article/pii/S1",
            "content": "Effect of calendering on NMC cathode porosity and density.",
            "engine": "google",
        },
        {
            "title": "How does calendering work?",
            "url": "https://www.quora.com/How-does-calendering-work",
            "content": "Some answer",
            "engine": "bing",
        },
        {
            "title": "Battery electrode manufacturing",
            "url": "https://example.org/electrode-manufacturing",
            "content": "Overview of coating, drying and calendering steps.",
            "engine": "bing",
        },
    ]
