"""
Research Orchestrator

Coordinates the web research pipeline for one question:
Classifier → Query Generator → Search (iterative) → Ranker → Fetcher → Assembler

Two paths:
- Fast path (general mode): one search, lightweight ranking, snippets only,
  zero model calls
- Standard path (auto / scientific / industrial / code): profile selection,
  query expansion, up to two search iterations, filtering, content fetch
  and a mode-specific context template

Every stage degrades instead of failing. The only exception that escapes
intelligent_search is ValidationError for a malformed request.
"""

import logging
import time
import uuid
from typing import List, Optional, Union

from config.logging_config import get_research_logger
from core.exceptions import ValidationError

from .context_assembler import format_context, format_general_context, rerank_with_full_content
from .domain_profiles import MANUAL_PROFILES
from .gap_evaluator import GapEvaluator
from .models import DomainProfile, EnrichedSearchResult, SearchMode, SearchResponse, SearchResult, TimeRange
from .ollama_client import OllamaClient
from .query_classifier import DomainClassifier
from .query_generator import QueryGenerator, detect_timeliness, with_timely_query
from .relevance_ranker import (
    dedupe_by_url,
    filter_results_by_mode,
    rank_results,
    rank_results_general,
    select_ranked,
    top_scores,
)
from .scraper import ContentScraper
from .searxng_search import SearXNGSearcher
from .summarizer import ContentSummarizer

logger = logging.getLogger("agentic.orchestrator")

MANUAL_MIN_HIGH_QUALITY = 3


def _unique(queries: List[str]) -> List[str]:
    seen = set()
    ordered = []
    for query in queries:
        if query not in seen:
            seen.add(query)
            ordered.append(query)
    return ordered


class ResearchOrchestrator:
    """
    Runs intelligent_search requests.

    Holds only long-lived clients; all per-request data lives in locals so
    concurrent requests never share state.
    """

    def __init__(
        self,
        llm: OllamaClient,
        searcher: SearXNGSearcher,
        scraper: ContentScraper,
        max_iterations: int = 2,
        high_quality_score: float = 15.0,
        summarize_content: bool = False
    ):
        self.llm = llm
        self.searcher = searcher
        self.scraper = scraper
        self.max_iterations = max_iterations
        self.high_quality_score = high_quality_score
        self.summarize_content = summarize_content

        self.classifier = DomainClassifier(llm)
        self.query_generator = QueryGenerator(llm)
        self.gap_evaluator = GapEvaluator(llm, high_quality_score)
        self.summarizer = ContentSummarizer(llm)
        self.research_logger = get_research_logger()

    @staticmethod
    def _validate(question: str, max_results: int, search_mode: Union[SearchMode, str]) -> SearchMode:
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("Question must not be empty", field="question")
        if not isinstance(max_results, int) or max_results < 1:
            raise ValidationError("max_results must be at least 1", field="max_results", value=max_results)
        try:
            return SearchMode(search_mode)
        except ValueError:
            raise ValidationError(
                f"Unknown search mode: {search_mode}",
                field="search_mode",
                allowed=[m.value for m in SearchMode],
            )

    async def intelligent_search(
        self,
        question: str,
        model: Optional[str] = None,
        max_results: int = 5,
        fetch_content: bool = True,
        search_mode: Union[SearchMode, str] = SearchMode.AUTO
    ) -> SearchResponse:
        """
        Research a question on the web and build a context block for it.

        Args:
            question: The user's question
            model: Ollama model for the pipeline's small generation calls
            max_results: Cap on returned results
            fetch_content: Download page text for the capped result set
            search_mode: auto | scientific | industrial | code | general

        Returns:
            SearchResponse with every issued query, the final results and
            the formatted context

        Raises:
            ValidationError: empty question, max_results < 1, unknown mode
        """
        mode = self._validate(question, max_results, search_mode)
        request_id = uuid.uuid4().hex[:8]
        start_time = time.time()

        if mode == SearchMode.GENERAL:
            response = await self._fast_path(question, max_results)
            strategy = "fast"
        else:
            response, strategy = await self._standard_path(
                question, model, max_results, fetch_content, mode, request_id
            )

        response.duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"[{request_id}] Completed '{question[:50]}' mode={mode.value} "
            f"results={len(response.results)} in {response.duration_ms:.0f}ms"
        )
        self.research_logger.log_search_completed(
            question=question,
            mode=mode.value,
            strategy=strategy,
            queries=response.queries,
            result_count=len(response.results),
            duration_ms=response.duration_ms,
            fast_path=mode == SearchMode.GENERAL,
        )
        return response

    async def _fast_path(self, question: str, max_results: int) -> SearchResponse:
        profile = MANUAL_PROFILES[SearchMode.GENERAL]
        _, time_range = detect_timeliness(question)

        raw_results = await self.searcher.execute_search(question, profile.engines, time_range)
        filtered = filter_results_by_mode(raw_results, SearchMode.GENERAL)
        ranked = dedupe_by_url(rank_results_general(filtered, question))
        top_results = ranked[:max_results]

        return SearchResponse(
            queries=[question],
            results=top_results,
            formatted_context=format_general_context(top_results, question),
            profile=profile,
        )

    async def _standard_path(
        self,
        question: str,
        model: Optional[str],
        max_results: int,
        fetch_content: bool,
        mode: SearchMode,
        request_id: str
    ):
        is_timely, time_range = detect_timeliness(question)
        profile = await self.classifier.classify(question, model, mode)
        logger.info(
            f"[{request_id}] Strategy: {'AUTO' if mode == SearchMode.AUTO else 'MANUAL'}:"
            f"{profile.category.value} | Timely: {is_timely} | Engines: {profile.engines}"
        )

        queries = await self.query_generator.generate(question, model)
        queries = with_timely_query(queries, question, is_timely)

        issued, raw_results = await self._search_loop(
            question, queries, profile, time_range, model, mode, request_id
        )

        if not raw_results:
            logger.warning(f"[{request_id}] Zero results, trying the question directly")
            self.research_logger.log_degradation(
                "search", "zero results after iterations", {"request_id": request_id, "queries": len(issued)}
            )
            raw_results = await self.searcher.execute_search(question, profile.engines, time_range)

        pool = filter_results_by_mode(raw_results, mode)
        logger.debug(f"[{request_id}] {len(raw_results)} raw, {len(pool)} after mode filter")

        ranked, strategy = select_ranked(pool, question, profile.preferred_domains)
        if strategy == "desperation":
            self.research_logger.log_degradation(
                "ranker", "all results filtered out", {"request_id": request_id, "pool": len(pool)}
            )
        top_results = ranked[:max_results]

        if fetch_content and top_results:
            top_results = await self.scraper.fetch_many(top_results)
            if self.summarize_content:
                top_results = await self.summarizer.summarize_results(top_results, question, model)

        final_results = rerank_with_full_content(top_results, question, profile)

        response = SearchResponse(
            queries=_unique(issued),
            results=final_results,
            formatted_context=format_context(final_results, question, mode),
            profile=profile,
        )
        return response, strategy

    async def _search_loop(
        self,
        question: str,
        queries: List[str],
        profile: DomainProfile,
        time_range: TimeRange,
        model: Optional[str],
        mode: SearchMode,
        request_id: str
    ):
        """
        Iterative search: each iteration runs all pending queries concurrently,
        then decides whether another iteration is worth it.
        """
        issued: List[str] = [question]
        all_results: List[SearchResult] = []

        for iteration in range(self.max_iterations):
            if not queries:
                break

            logger.info(f"[{request_id}] Iteration {iteration + 1}: {len(queries)} queries")
            issued.extend(queries)
            all_results.extend(await self.searcher.search_many(queries, profile.engines, time_range))

            if iteration == self.max_iterations - 1:
                break

            current: List[EnrichedSearchResult] = rank_results(
                all_results, question, strict=False, preferred_domains=profile.preferred_domains
            )

            if mode == SearchMode.AUTO:
                evaluation = await self.gap_evaluator.evaluate(question, current, model)
                if evaluation.sufficient:
                    break
                queries = evaluation.new_queries
            else:
                high_quality = top_scores(current, self.high_quality_score)
                if high_quality >= MANUAL_MIN_HIGH_QUALITY:
                    logger.info(f"[{request_id}] {high_quality} high-quality results, stopping")
                    break
                queries = [f"{question} detailed"]

        return issued, all_results


# Singleton instance
_orchestrator: Optional[ResearchOrchestrator] = None


def get_orchestrator() -> ResearchOrchestrator:
    """Get or create the orchestrator wired to the configured services"""
    global _orchestrator
    if _orchestrator is None:
        from config.settings import get_settings
        from .ollama_client import get_ollama_client
        from .scraper import get_content_scraper
        from .searxng_search import get_searxng_searcher

        settings = get_settings()
        _orchestrator = ResearchOrchestrator(
            llm=get_ollama_client(),
            searcher=get_searxng_searcher(),
            scraper=get_content_scraper(),
            max_iterations=settings.search_max_iterations,
            high_quality_score=settings.high_quality_score,
            summarize_content=settings.summarize_fetched_content,
        )
    return _orchestrator


async def intelligent_search(
    question: str,
    model: Optional[str] = None,
    max_results: int = 5,
    fetch_content: bool = True,
    search_mode: Union[SearchMode, str] = SearchMode.AUTO
) -> SearchResponse:
    """Convenience wrapper around the singleton orchestrator"""
    return await get_orchestrator().intelligent_search(
        question, model, max_results, fetch_content, search_mode
    )
