"""
SearXNG Search Integration for the Research Pipeline

Runs one query against the self-hosted SearXNG metasearch backend, walking a
fallback ladder of engine sets until one yields usable results.

Usage:
    from agentic.searxng_search import SearXNGSearcher, get_searxng_searcher

    searcher = get_searxng_searcher()
    results = await searcher.execute_search("calendering NMC cathode")
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from .models import SearchResult, TimeRange
from .relevance_ranker import filter_blocked_domains
from .user_agent_config import get_search_headers

logger = logging.getLogger("agentic.searxng")

DEFAULT_ENGINES = "google,bing,arxiv,github,stack_overflow"


@dataclass(frozen=True)
class EngineAttempt:
    """One rung of the fallback ladder; empty engines means backend default"""
    engines: str
    timeout: float


class SearXNGSearcher:
    """
    SearXNG-based web searcher for the research pipeline.

    Features:
    - Engine fallback ladder: requested engines, then brave, then
      duckduckgo, then whatever the backend enables by default
    - Globally blocked domains removed before a rung counts as successful
    - Never raises; exhausting the ladder yields an empty list
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8888",
        primary_timeout: float = 6.0,
        fallback_timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize SearXNG searcher.

        Args:
            base_url: SearXNG server URL
            primary_timeout: Timeout for the caller's own engine set
            fallback_timeout: Timeout for every fallback rung
            client: Pre-built HTTP client (tests inject a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.primary_timeout = primary_timeout
        self.fallback_timeout = fallback_timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                headers=get_search_headers()
            )
        return self._client

    def build_ladder(self, engines: str) -> List[EngineAttempt]:
        return [
            EngineAttempt(engines, self.primary_timeout),
            EngineAttempt("brave", self.fallback_timeout),
            EngineAttempt("duckduckgo", self.fallback_timeout),
            EngineAttempt("", self.fallback_timeout),
        ]

    async def is_available(self) -> bool:
        """Check if SearXNG is available"""
        try:
            client = await self._get_client()
            response = await client.get(
                f"{self.base_url}/search",
                params={"q": "test", "format": "json"},
                timeout=5.0
            )
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"SearXNG not available: {e}")
            return False

    async def execute_search(
        self,
        query: str,
        engines: str = DEFAULT_ENGINES,
        time_range: TimeRange = TimeRange.NONE
    ) -> List[SearchResult]:
        """
        Execute one query, falling through the engine ladder.

        Args:
            query: Search query string
            engines: Comma-joined engine names for the first attempt
            time_range: Recency filter, omitted when NONE

        Returns:
            Results of the first rung with at least one non-blocked result,
            in backend order; empty when every rung fails
        """
        for attempt in self.build_ladder(engines):
            label = attempt.engines or "default"
            results = await self._attempt(query, attempt, time_range)
            if results is None:
                continue

            usable = filter_blocked_domains(results)
            dropped = len(results) - len(usable)
            if dropped:
                logger.debug(f"Filtered out {dropped} blocked-domain results")

            if usable:
                logger.info(f"SearXNG '{query[:40]}' via {label}: {len(usable)} usable results")
                return usable

            logger.warning(f"Engine set '{label}' returned 0 usable results for '{query[:40]}'")

        logger.error(f"All engine attempts failed for query: '{query[:60]}'")
        return []

    async def _attempt(
        self,
        query: str,
        attempt: EngineAttempt,
        time_range: TimeRange
    ) -> Optional[List[SearchResult]]:
        """Run one rung; None means the rung failed outright"""
        params: Dict[str, Any] = {"q": query, "format": "json"}
        if attempt.engines:
            params["engines"] = attempt.engines
        if time_range != TimeRange.NONE:
            params["time_range"] = time_range.value

        label = attempt.engines or "default"
        try:
            client = await self._get_client()
            response = await client.get(
                f"{self.base_url}/search",
                params=params,
                timeout=attempt.timeout
            )
            if response.status_code != 200:
                logger.warning(f"Engine set '{label}' failed with status {response.status_code}")
                return None

            data = response.json()
        except httpx.TimeoutException:
            logger.warning(f"Engine set '{label}' timed out after {attempt.timeout}s")
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Engine set '{label}' error: {e}")
            return None

        items = data.get("results") if isinstance(data, dict) else None
        return [
            SearchResult.from_backend(item)
            for item in (items or [])
            if isinstance(item, dict)
        ]

    async def search_many(
        self,
        queries: List[str],
        engines: str = DEFAULT_ENGINES,
        time_range: TimeRange = TimeRange.NONE
    ) -> List[SearchResult]:
        """Run execute_search for every query concurrently and flatten in query order"""
        results_lists = await asyncio.gather(*[
            self.execute_search(query, engines, time_range)
            for query in queries
        ])
        return [result for results in results_lists for result in results]

    async def close(self):
        """Close the HTTP client"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None


# Singleton instance
_searxng_searcher: Optional[SearXNGSearcher] = None


def get_searxng_searcher() -> SearXNGSearcher:
    """Get or create the SearXNG searcher singleton"""
    global _searxng_searcher
    if _searxng_searcher is None:
        from config.settings import get_settings
        settings = get_settings()
        _searxng_searcher = SearXNGSearcher(
            base_url=settings.searxng_url,
            primary_timeout=settings.search_primary_timeout,
            fallback_timeout=settings.search_fallback_timeout,
        )
    return _searxng_searcher
