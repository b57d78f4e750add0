"""
Context Assembler

Turns the final result list into the text block handed to the answering
model: re-ranks with fetched page text, groups results into source buckets
and renders a mode-specific template with numbered SOURCE entries.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .domain_profiles import first_match
from .models import DomainProfile, EnrichedSearchResult, SearchMode
from .relevance_ranker import GENERIC_PHRASES, query_terms

logger = logging.getLogger("agentic.context_assembler")

EXCERPT_MAX_CHARS = 800
TERM_MATCH_CAP = 15

IGNORE_WORDS = frozenset({
    "the", "is", "at", "which", "on", "and", "a", "an", "in", "to", "of",
    "for", "it", "with", "as", "by",
})

SPEC_VOCABULARY = ("specification", "data sheet", "parameter")

_SENTENCE = re.compile(r"[^.!?]+[.!?]+(?:\s|$)")
_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_DIGIT = re.compile(r"\d")


class Bucket:
    ACADEMIC = "academic"
    CODE = "code"
    INDUSTRIAL = "industrial"
    GENERAL = "general"


# Precedence order: a result lands in the first bucket whose pattern matches its domain
BUCKET_PATTERNS: Tuple[Tuple[str, re.Pattern], ...] = (
    (Bucket.ACADEMIC, re.compile(r"arxiv|ieee|springer|sciencedirect|nature|mdpi|researchgate", re.IGNORECASE)),
    (Bucket.CODE, re.compile(r"github|stackoverflow|gitlab|huggingface", re.IGNORECASE)),
    (Bucket.INDUSTRIAL, re.compile(r"siemens|asml|rockwell|honeywell|iso|iatf|batteryuniversity|catl", re.IGNORECASE)),
)


@dataclass(frozen=True)
class ContextTemplate:
    """Ordered (header, buckets) sections plus the closing instruction"""
    sections: Tuple[Tuple[str, Tuple[str, ...]], ...]
    instruction: str
    skip_empty: bool = False


ADDITIONAL_SOURCES_HEADER = "=== ADDITIONAL SOURCES ==="

TEMPLATES: Dict[SearchMode, ContextTemplate] = {
    SearchMode.SCIENTIFIC: ContextTemplate(
        sections=(("=== ACADEMIC & RESEARCH ===", (Bucket.ACADEMIC, Bucket.GENERAL)),),
        instruction="Focus on scientific methodology, experimental results, and theoretical foundations.",
    ),
    SearchMode.INDUSTRIAL: ContextTemplate(
        sections=(("=== INDUSTRIAL STANDARDS & SPECIFICATIONS ===",
                   (Bucket.INDUSTRIAL, Bucket.ACADEMIC, Bucket.GENERAL)),),
        instruction="Focus on compliance standards, specifications, and manufacturing constraints.",
    ),
    SearchMode.CODE: ContextTemplate(
        sections=(("=== IMPLEMENTATION & CODE ===", (Bucket.CODE, Bucket.GENERAL)),),
        instruction="Focus on implementation details, code examples, and technical documentation.",
    ),
    SearchMode.AUTO: ContextTemplate(
        sections=(
            ("=== ACADEMIC & THEORY (Papers) ===", (Bucket.ACADEMIC,)),
            ("=== IMPLEMENTATION (Code) ===", (Bucket.CODE,)),
            ("=== INDUSTRIAL STANDARDS ===", (Bucket.INDUSTRIAL,)),
            ("=== GENERAL CONTEXT ===", (Bucket.GENERAL,)),
        ),
        instruction="Explain using theory (papers), implementation (code), and industrial constraints.",
        skip_empty=True,
    ),
}

GENERAL_INSTRUCTION = "Provide a clear, concise answer based on the snippets above."


# =============================================================================
# Re-ranking
# =============================================================================

def full_content_score(
    result: EnrichedSearchResult,
    terms: Sequence[str],
    profile: DomainProfile
) -> float:
    """Score adjustment from fetched text (snippet when nothing was fetched)"""
    score = result.score or 0.0
    text = (result.full_content or result.content or "").lower()
    domain = (result.domain or "").lower()

    if first_match(domain, profile.preferred_domains):
        score += 3
    for keyword in profile.scoring_keywords:
        if keyword in text:
            score += 0.5

    if len(text) < 300:
        score -= 1
    if any(phrase in text for phrase in GENERIC_PHRASES):
        score -= 2

    if len(text) > 200:
        occurrences = sum(text.count(term) for term in terms)
        score += min(occurrences, TERM_MATCH_CAP)
        if any(word in text for word in SPEC_VOCABULARY):
            score += 3
        if _DIGIT.search(text):
            score += 1

    return score


def rerank_with_full_content(
    results: Sequence[EnrichedSearchResult],
    question: str,
    profile: DomainProfile
) -> List[EnrichedSearchResult]:
    logger.debug(f"Re-ranking {len(results)} results with full content")
    terms = query_terms(question)
    rescored = [r.with_score(full_content_score(r, terms, profile)) for r in results]
    return sorted(rescored, key=lambda r: r.score or 0.0, reverse=True)


# =============================================================================
# Excerpts and buckets
# =============================================================================

def excerpt_terms(question: str) -> List[str]:
    cleaned = _NON_WORD.sub("", question.lower())
    return [w for w in cleaned.split() if len(w) > 2 and w not in IGNORE_WORDS]


def extract_relevant_context(content: str, question: str, max_length: int = EXCERPT_MAX_CHARS) -> str:
    """
    Pick the query-relevant sentences of a page under a character limit.

    Sentences are scored by the number of query terms they contain, with a
    small bonus for the first three. The highest scoring ones are taken
    greedily until the next one would overflow the limit, then put back into
    document order.
    """
    if not content:
        return ""

    clean = _WHITESPACE.sub(" ", content)
    sentences = [m.group(0) for m in _SENTENCE.finditer(clean)] or [clean]
    terms = excerpt_terms(question)

    scored = []
    for index, sentence in enumerate(sentences):
        lower = sentence.lower()
        score = sum(1 for term in terms if term in lower)
        if index < 3:
            score += 0.5
        scored.append((score, index, sentence))

    ranked = sorted(scored, key=lambda item: item[0], reverse=True)

    selected = []
    length = 0
    for score, index, sentence in ranked:
        if length + len(sentence) > max_length:
            break
        selected.append((index, sentence))
        length += len(sentence)

    if not selected:
        return clean[:max_length] + "..."

    selected.sort(key=lambda item: item[0])
    return " ".join(sentence.strip() for _, sentence in selected)


def bucket_for(domain: str) -> str:
    for bucket, pattern in BUCKET_PATTERNS:
        if pattern.search(domain or ""):
            return bucket
    return Bucket.GENERAL


def bucket_results(results: Sequence[EnrichedSearchResult]) -> Dict[str, List[Tuple[int, EnrichedSearchResult]]]:
    """Group (1-based position, result) pairs by bucket, keeping list order"""
    buckets: Dict[str, List[Tuple[int, EnrichedSearchResult]]] = {
        Bucket.ACADEMIC: [], Bucket.CODE: [], Bucket.INDUSTRIAL: [], Bucket.GENERAL: [],
    }
    for position, result in enumerate(results, 1):
        buckets[bucket_for(result.domain)].append((position, result))
    return buckets


# =============================================================================
# Rendering
# =============================================================================

def format_source(position: int, result: EnrichedSearchResult, question: str) -> str:
    text = f"SOURCE {position}:\nTitle: {result.title}\nDomain: {result.domain}\nURL: {result.url}\n"
    if result.full_content:
        text += f"Content: {extract_relevant_context(result.full_content, question)}\n"
    else:
        text += f"Snippet: {result.content}\n"
    return text + "\n"


def format_no_results(question: str) -> str:
    return (
        f"No search results found for: \"{question}\".\n\n"
        "INSTRUCTION: State that no current sources were found and answer from general knowledge."
    )


def format_context(
    results: Sequence[EnrichedSearchResult],
    question: str,
    mode: SearchMode
) -> str:
    """
    Render the mode template over the final results.

    Every result appears exactly once, numbered by its position in results.
    Buckets that the template does not name go under ADDITIONAL SOURCES.
    """
    if not results:
        return format_no_results(question)

    template = TEMPLATES.get(mode, TEMPLATES[SearchMode.AUTO])
    buckets = bucket_results(results)

    parts: List[str] = []
    rendered = set()
    for header, section_buckets in template.sections:
        entries = [entry for bucket in section_buckets for entry in buckets[bucket]]
        rendered.update(section_buckets)
        if not entries and template.skip_empty:
            continue
        parts.append(header + "\n")
        parts.extend(format_source(position, result, question) for position, result in entries)

    leftovers = sorted(
        (entry for bucket, entries in buckets.items() if bucket not in rendered for entry in entries),
        key=lambda entry: entry[0]
    )
    if leftovers:
        parts.append(ADDITIONAL_SOURCES_HEADER + "\n")
        parts.extend(format_source(position, result, question) for position, result in leftovers)

    parts.append(f"\nINSTRUCTION: {template.instruction}")
    return "".join(parts)


def format_general_context(results: Sequence[EnrichedSearchResult], question: str) -> str:
    """Minimal fast-path template: snippets only"""
    if not results:
        return format_no_results(question)

    parts = [f"Found {len(results)} results for general query:\n\n"]
    parts.extend(
        f"SOURCE {i}:\nTitle: {r.title}\nDomain: {r.domain}\nURL: {r.url}\nSnippet: {r.content}\n\n"
        for i, r in enumerate(results, 1)
    )
    parts.append(f"\nINSTRUCTION: {GENERAL_INSTRUCTION}")
    return "".join(parts)
