"""
Unit tests for QueryGenerator and timeliness detection.
"""

from datetime import date

import pytest

from agentic.models import TimeRange
from agentic.query_generator import (
    QueryGenerator,
    detect_timeliness,
    parse_generated_queries,
    with_timely_query,
)
from core.exceptions import ExternalServiceError

TODAY = date(2026, 10, 19)


class TestParseGeneratedQueries:
    """Test cleanup of model output."""

    def test_strips_enumeration(self):
        text = "1. calendering pressure NMC\n2. electrode porosity roll press"
        assert parse_generated_queries(text) == [
            "calendering pressure NMC",
            "electrode porosity roll press",
        ]

    def test_drops_short_and_long_lines(self):
        text = "- abc\n- " + "x" * 120 + "\n- valid query here"
        assert parse_generated_queries(text) == ["valid query here"]

    def test_keeps_at_most_two(self):
        text = "* first query\n* second query\n* third query"
        assert parse_generated_queries(text) == ["first query", "second query"]

    def test_empty(self):
        assert parse_generated_queries("") == []


class TestDetectTimeliness:
    """Test recency pattern precedence."""

    @pytest.mark.parametrize("question,expected", [
        ("What is the latest Siemens S7 firmware?", TimeRange.DAY),
        ("battery news this week", TimeRange.WEEK),
        ("recent advances in solid state electrolytes", TimeRange.MONTH),
        ("lithium price forecast", TimeRange.YEAR),
        ("semiconductor capex in 2026", TimeRange.YEAR),
        ("wafer demand 2027", TimeRange.YEAR),
    ])
    def test_timely(self, question, expected):
        assert detect_timeliness(question, today=TODAY) == (True, expected)

    def test_not_timely(self):
        assert detect_timeliness("How does a PID controller work?", today=TODAY) == (False, TimeRange.NONE)

    def test_first_pattern_wins(self):
        """'current' (day) is checked before 'recent' (month)."""
        assert detect_timeliness("current and recent trends", today=TODAY) == (True, TimeRange.DAY)

    def test_word_boundaries(self):
        """'currently' is not 'current'."""
        assert detect_timeliness("what is currently used", today=TODAY) == (False, TimeRange.NONE)

    def test_old_year_not_timely(self):
        assert detect_timeliness("battery recalls in 2019", today=TODAY) == (False, TimeRange.NONE)


class TestWithTimelyQuery:
    """Test the year-suffixed extra query."""

    def test_appends_year(self):
        queries = with_timely_query(["latest PLC news"], "latest PLC news", True, today=TODAY)
        assert queries == ["latest PLC news", "latest PLC news 2026"]

    def test_not_timely_unchanged(self):
        assert with_timely_query(["q"], "q", False, today=TODAY) == ["q"]

    def test_explicit_year_unchanged(self):
        queries = with_timely_query(["chip trend 2025"], "chip trend 2025", True, today=TODAY)
        assert queries == ["chip trend 2025"]

    def test_input_not_mutated(self):
        original = ["latest news"]
        with_timely_query(original, "latest news", True, today=TODAY)
        assert original == ["latest news"]


class TestQueryGenerator:
    """Test the generate() call."""

    @pytest.mark.asyncio
    async def test_question_first(self, mock_llm):
        mock_llm.generate.return_value = "1. roll press calendering NMC\n2. cathode porosity vs density"
        generator = QueryGenerator(mock_llm)

        queries = await generator.generate("NMC calendering", model="m1")

        assert queries == [
            "NMC calendering",
            "roll press calendering NMC",
            "cathode porosity vs density",
        ]
        assert mock_llm.generate.call_args.kwargs["model"] == "m1"

    @pytest.mark.asyncio
    async def test_llm_failure_returns_question_only(self, mock_llm):
        mock_llm.generate.side_effect = ExternalServiceError("ollama", "timeout")
        generator = QueryGenerator(mock_llm)

        assert await generator.generate("NMC calendering") == ["NMC calendering"]

    @pytest.mark.asyncio
    async def test_garbage_answer_returns_question_only(self, mock_llm):
        mock_llm.generate.return_value = "ok\n\n-"
        generator = QueryGenerator(mock_llm)

        assert await generator.generate("NMC calendering") == ["NMC calendering"]
