"""
Unit tests for the context assembler: re-ranking, excerpts, buckets and
mode templates.
"""

import re

import pytest

from agentic.context_assembler import (
    ADDITIONAL_SOURCES_HEADER,
    GENERAL_INSTRUCTION,
    Bucket,
    bucket_for,
    extract_relevant_context,
    format_context,
    format_general_context,
    format_source,
    rerank_with_full_content,
)
from agentic.domain_profiles import MANUAL_PROFILES
from agentic.models import SearchMode


def _source_numbers(context: str):
    return [int(n) for n in re.findall(r"^SOURCE (\d+):", context, flags=re.MULTILINE)]


@pytest.fixture
def mixed_results(enriched_factory):
    return [
        enriched_factory("https://arxiv.org/abs/1", title="Paper"),
        enriched_factory("https://github.com/org/repo", title="Repo"),
        enriched_factory("https://example.org/post", title="Post"),
        enriched_factory("https://www.siemens.com/doc", title="Manual"),
    ]


class TestBuckets:

    @pytest.mark.parametrize("domain,bucket", [
        ("arxiv.org", Bucket.ACADEMIC),
        ("ieeexplore.ieee.org", Bucket.ACADEMIC),
        ("github.com", Bucket.CODE),
        ("stackoverflow.com", Bucket.CODE),
        ("siemens.com", Bucket.INDUSTRIAL),
        ("batteryuniversity.com", Bucket.INDUSTRIAL),
        ("example.org", Bucket.GENERAL),
        ("", Bucket.GENERAL),
    ])
    def test_bucket_for(self, domain, bucket):
        assert bucket_for(domain) == bucket


class TestFormatContext:
    """Every result appears exactly once, numbered by list position."""

    @pytest.mark.parametrize("mode", [
        SearchMode.AUTO, SearchMode.SCIENTIFIC, SearchMode.INDUSTRIAL, SearchMode.CODE,
    ])
    def test_each_source_once(self, mixed_results, mode):
        context = format_context(mixed_results, "question", mode)
        assert sorted(_source_numbers(context)) == [1, 2, 3, 4]

    def test_scientific_layout(self, mixed_results):
        context = format_context(mixed_results, "question", SearchMode.SCIENTIFIC)

        assert context.startswith("=== ACADEMIC & RESEARCH ===\n")
        assert _source_numbers(context) == [1, 3, 2, 4]
        assert context.index(ADDITIONAL_SOURCES_HEADER) < context.index("SOURCE 2:")
        assert context.rstrip().endswith(
            "INSTRUCTION: Focus on scientific methodology, experimental results, and theoretical foundations."
        )

    def test_auto_skips_empty_sections(self, enriched_factory):
        results = [enriched_factory("https://example.org/a"), enriched_factory("https://example.net/b")]
        context = format_context(results, "question", SearchMode.AUTO)

        assert context.startswith("=== GENERAL CONTEXT ===\n")
        assert "ACADEMIC" not in context
        assert "IMPLEMENTATION" not in context
        assert ADDITIONAL_SOURCES_HEADER not in context

    def test_auto_section_order(self, mixed_results):
        context = format_context(mixed_results, "question", SearchMode.AUTO)
        headers = re.findall(r"^=== (.+) ===$", context, flags=re.MULTILINE)
        assert headers == [
            "ACADEMIC & THEORY (Papers)",
            "IMPLEMENTATION (Code)",
            "INDUSTRIAL STANDARDS",
            "GENERAL CONTEXT",
        ]

    def test_no_results(self):
        context = format_context([], "solid state electrolyte", SearchMode.AUTO)
        assert context.startswith('No search results found for: "solid state electrolyte".')
        assert "INSTRUCTION:" in context

    def test_source_uses_excerpt_when_fetched(self, enriched_factory):
        fetched = enriched_factory("https://a.org", content="snippet text", full_content="Fetched body text.")
        unfetched = enriched_factory("https://b.org", content="snippet text")

        assert "Content: Fetched body text." in format_source(1, fetched, "body")
        assert "Snippet: snippet text" in format_source(2, unfetched, "body")

    def test_general_context(self, enriched_factory):
        results = [enriched_factory("https://en.wikipedia.org/wiki/X", content="s1"),
                   enriched_factory("https://bbc.com/n", content="s2")]
        context = format_general_context(results, "what is x")

        assert context.startswith("Found 2 results for general query:\n\n")
        assert _source_numbers(context) == [1, 2]
        assert context.endswith(f"INSTRUCTION: {GENERAL_INSTRUCTION}")

    def test_general_context_empty(self):
        assert format_general_context([], "what is x").startswith('No search results found for: "what is x".')


class TestExtractRelevantContext:

    def test_length_limit_respected(self):
        content = "PID tuning improves loop stability considerably. " * 100
        excerpt = extract_relevant_context(content, "PID tuning", max_length=800)
        assert 0 < len(excerpt) <= 800

    def test_document_order_of_selected_sentences(self):
        content = (
            "Intro sentence one. Cats are nice. PID tuning matters a lot. "
            "Another filler. PID tuning with relay."
        )
        excerpt = extract_relevant_context(content, "PID tuning", max_length=60)
        assert excerpt == "PID tuning matters a lot. PID tuning with relay."

    def test_oversized_first_sentence_truncated(self):
        content = "word " * 400 + "."
        excerpt = extract_relevant_context(content, "word", max_length=100)
        assert excerpt.endswith("...")
        assert len(excerpt) == 103

    def test_empty(self):
        assert extract_relevant_context("", "anything") == ""


class TestRerank:

    def test_fetched_content_lifts_result(self, enriched_factory):
        profile = MANUAL_PROFILES[SearchMode.SCIENTIFIC]
        snippet_only = enriched_factory("https://example.org/a", content="short", score=5.0)
        fetched = enriched_factory(
            "https://example.net/b",
            content="short",
            score=4.0,
            full_content="The experiment data shows calendering pressure of 300 MPa. " * 6,
        )

        reranked = rerank_with_full_content([snippet_only, fetched], "calendering pressure", profile)

        assert [r.url for r in reranked] == ["https://example.net/b", "https://example.org/a"]
        assert reranked[0].score == 18.0
        assert reranked[1].score == 4.0
        assert snippet_only.score == 5.0

    def test_preferred_domain_bonus(self, enriched_factory):
        profile = MANUAL_PROFILES[SearchMode.SCIENTIFIC]
        result = enriched_factory("https://www.nature.com/x", content="short", score=0.0)

        reranked = rerank_with_full_content([result], "q", profile)

        # +3 preferred, -1 thin text
        assert reranked[0].score == 2.0
