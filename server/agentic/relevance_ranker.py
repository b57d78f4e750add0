"""
Relevance Ranker

Scores, filters and orders raw search results. All functions are pure: the
same input always yields the same output order and scores, and inputs are
never mutated.

Two scoring schemes exist:
- rank_results: engineering-oriented scoring with relevance filtering
  (lenient or strict) used by the standard research path
- rank_results_general: lightweight scoring for the general fast path
"""

import logging
import re
from typing import Iterable, List, Sequence, Tuple

from .domain_profiles import (
    NEWS_DOMAINS,
    PREFERRED_DOMAINS,
    extract_domain,
    favicon_url,
    first_match,
    is_blocked_domain,
    is_code_domain,
    is_industrial_domain,
    is_whitelisted_domain,
)
from .models import EnrichedSearchResult, SearchMode, SearchResult
from .query_generator import detect_timeliness

logger = logging.getLogger("agentic.ranker")

# Authority bonus by substring of the URL
AUTHORITY_BONUSES: Tuple[Tuple[str, float], ...] = (
    ("ieee", 3.0),
    ("springer", 3.0),
    ("arxiv", 2.5),
    ("github", 2.0),
    ("siemens", 2.0),
    ("sciencedirect", 3.0),
)

GENERIC_PHRASES = ("ultimate guide", "top 10")

PREFERRED_DOMAIN_BONUS = 10.0
TIMELY_NEWS_BONUS = 15.0
TITLE_TERM_BONUS = 5.0
SNIPPET_TERM_BONUS = 2.0
PDF_BONUS = 5.0
DOCS_BONUS = 3.0
SHORT_TEXT_THRESHOLD = 250

# Only applied in strict mode; checked against title+snippet and the URL
NOISE_PATTERNS = [
    re.compile(r"buy cheap|discount|promo code|coupon", re.IGNORECASE),
    re.compile(r"best\s+\w+\s+reviews\s+20\d\d", re.IGNORECASE),
    re.compile(r"top\s+10\s+reasons", re.IGNORECASE),
    re.compile(r"beginners guide to", re.IGNORECASE),
    re.compile(r"simple explanation of", re.IGNORECASE),
    re.compile(r"pinterest\.com|instagram\.com|facebook\.com|tiktok\.com", re.IGNORECASE),
    re.compile(r"quora\.com", re.IGNORECASE),
    re.compile(r"geeksforgeeks|w3schools|javatpoint", re.IGNORECASE),
]

# (term in query, vocabulary that makes the other meaning intended, pattern of the other meaning)
AMBIGUOUS_TERMS = [
    (
        re.compile(r"jakarta", re.IGNORECASE),
        re.compile(r"java|code|software", re.IGNORECASE),
        re.compile(r"jakarta\s*(ee|enterprise|servlet)", re.IGNORECASE),
    ),
]

DESPERATION_LIMIT = 3


def query_terms(query: str) -> List[str]:
    """Lower-cased whitespace-split terms longer than two characters"""
    return [term for term in query.lower().split() if len(term) > 2]


def _combined_text(result: SearchResult) -> str:
    return f"{result.title} {result.content}".lower()


def _enrich(result: SearchResult, score: float) -> EnrichedSearchResult:
    domain = extract_domain(result.url)
    return EnrichedSearchResult.from_result(result, domain, favicon_url(domain), score)


def _sort_by_score(results: Iterable[EnrichedSearchResult]) -> List[EnrichedSearchResult]:
    # sorted() is stable with reverse=True, so ties keep backend order
    return sorted(results, key=lambda r: r.score or 0.0, reverse=True)


def engineering_score(result: SearchResult) -> float:
    """Authority bonus minus penalties for thin or listicle-style text"""
    score = 0.0
    url = (result.url or "").lower()
    text = _combined_text(result)

    for marker, bonus in AUTHORITY_BONUSES:
        if marker in url:
            score += bonus

    if len(text) < SHORT_TEXT_THRESHOLD:
        score -= 1
    for phrase in GENERIC_PHRASES:
        if phrase in text:
            score -= 2

    return score


def score_result(
    result: SearchResult,
    terms: Sequence[str],
    is_timely: bool,
    preferred_domains: Sequence[str] = PREFERRED_DOMAINS
) -> float:
    domain = extract_domain(result.url)
    score = engineering_score(result)

    if first_match(domain, preferred_domains):
        score += PREFERRED_DOMAIN_BONUS
    if is_timely and first_match(domain, NEWS_DOMAINS):
        score += TIMELY_NEWS_BONUS

    title = result.title.lower()
    snippet = result.content.lower()
    for term in terms:
        if term in title:
            score += TITLE_TERM_BONUS
        if term in snippet:
            score += SNIPPET_TERM_BONUS

    url = result.url.lower()
    if url.endswith(".pdf"):
        score += PDF_BONUS
    if "docs" in url or "manual" in url:
        score += DOCS_BONUS

    return score


def is_result_relevant(
    result: SearchResult,
    query: str,
    strict: bool = True,
    preferred_domains: Sequence[str] = PREFERRED_DOMAINS
) -> bool:
    """
    Decide whether a scored result survives relevance filtering.

    Blocked domains never survive. Whitelisted (preferred or news) domains
    always do. Strict mode additionally removes noise-pattern matches.
    """
    domain = extract_domain(result.url)
    if is_blocked_domain(domain):
        return False

    if is_whitelisted_domain(domain, preferred_domains):
        return True

    text = _combined_text(result)
    if strict:
        for pattern in NOISE_PATTERNS:
            if pattern.search(text) or pattern.search(result.url):
                return False

    for term, intended, other_meaning in AMBIGUOUS_TERMS:
        if term.search(query) and not intended.search(query) and other_meaning.search(text):
            return False

    return True


def rank_results(
    results: Sequence[SearchResult],
    query: str,
    strict: bool = True,
    preferred_domains: Sequence[str] = PREFERRED_DOMAINS
) -> List[EnrichedSearchResult]:
    """
    Score, filter and sort results for the standard research path.

    Args:
        results: Raw backend results
        query: The user's question (terms and timeliness come from it)
        strict: Also drop noise-pattern matches
        preferred_domains: Active profile's preferred list for the +10 bonus

    Returns:
        Enriched results in descending score order, ties in input order
    """
    is_timely, _ = detect_timeliness(query)
    terms = query_terms(query)

    scored = [
        _enrich(result, score_result(result, terms, is_timely, preferred_domains))
        for result in results
        if is_result_relevant(result, query, strict, preferred_domains)
    ]
    return _sort_by_score(scored)


def general_mode_score(result: SearchResult, terms: Sequence[str]) -> float:
    domain = extract_domain(result.url)
    score = 0.0

    if "wikipedia" in domain:
        score += 5
    if first_match(domain, NEWS_DOMAINS):
        score += 3
    if len(result.title) > 20:
        score += 1
    if len(result.content) > 100:
        score += 1

    title = result.title.lower()
    snippet = result.content.lower()
    for term in terms:
        if term in title:
            score += 3
        if term in snippet:
            score += 1

    return score


def rank_results_general(
    results: Sequence[SearchResult],
    query: str
) -> List[EnrichedSearchResult]:
    """Fast-path scoring: no strict pass, blocked domains still removed"""
    terms = query_terms(query)
    scored = [
        _enrich(result, general_mode_score(result, terms))
        for result in filter_blocked_domains(results)
    ]
    return _sort_by_score(scored)


def filter_blocked_domains(results: Sequence[SearchResult]) -> List[SearchResult]:
    """Global domain filter, applied everywhere results enter the pipeline"""
    kept = []
    for result in results:
        domain = extract_domain(result.url)
        if is_blocked_domain(domain):
            logger.debug(f"Blocked low-quality domain: {domain}")
            continue
        kept.append(result)
    return kept


def filter_results_by_mode(
    results: Sequence[SearchResult],
    mode: SearchMode
) -> List[SearchResult]:
    """
    Mode-based domain filter.

    - Blocked domains are always removed
    - Code domains only survive in code and auto mode
    - Industrial domains only survive in scientific, industrial and auto mode
    """
    allow_code = mode in (SearchMode.CODE, SearchMode.AUTO)
    allow_industrial = mode in (SearchMode.SCIENTIFIC, SearchMode.INDUSTRIAL, SearchMode.AUTO)

    kept = []
    for result in results:
        domain = extract_domain(result.url)
        if is_blocked_domain(domain):
            continue
        if not allow_code and is_code_domain(domain):
            logger.debug(f"Dropped code domain {domain} (mode: {mode.value})")
            continue
        if not allow_industrial and is_industrial_domain(domain):
            logger.debug(f"Dropped industrial domain {domain} (mode: {mode.value})")
            continue
        kept.append(result)
    return kept


def dedupe_by_url(results: Iterable[EnrichedSearchResult]) -> List[EnrichedSearchResult]:
    """Keep the first occurrence of every URL"""
    seen = set()
    unique = []
    for result in results:
        if result.url in seen:
            continue
        seen.add(result.url)
        unique.append(result)
    return unique


def desperation_fallback(
    results: Sequence[SearchResult],
    limit: int = DESPERATION_LIMIT
) -> List[EnrichedSearchResult]:
    """First URL-distinct raw results with a flat score of 1"""
    fallback: List[EnrichedSearchResult] = []
    seen = set()
    for result in results:
        if result.url in seen:
            continue
        seen.add(result.url)
        fallback.append(_enrich(result, 1.0))
        if len(fallback) >= limit:
            break
    return fallback


def select_ranked(
    pool: Sequence[SearchResult],
    query: str,
    preferred_domains: Sequence[str] = PREFERRED_DOMAINS,
    strict_threshold: int = 10,
    strict_minimum: int = 3
) -> Tuple[List[EnrichedSearchResult], str]:
    """
    Lenient rank, optional strict replacement, then desperation fallback.

    Returns:
        (ranked results, strategy label for the research trail)
    """
    ranked = dedupe_by_url(rank_results(pool, query, strict=False, preferred_domains=preferred_domains))
    strategy = "lenient"

    if len(ranked) > strict_threshold:
        strict_ranked = dedupe_by_url(rank_results(pool, query, strict=True, preferred_domains=preferred_domains))
        if len(strict_ranked) >= strict_minimum:
            ranked = strict_ranked
            strategy = "strict"

    if not ranked and pool:
        logger.warning(f"All results filtered out, using desperation fallback for '{query[:50]}'")
        ranked = desperation_fallback(pool)
        strategy = "desperation"

    return ranked, strategy


def top_scores(results: Sequence[EnrichedSearchResult], threshold: float) -> int:
    """Number of results scoring strictly above the threshold"""
    return sum(1 for r in results if (r.score or 0.0) > threshold)
