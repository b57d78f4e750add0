"""
Query Generator

Expands a question into a short list of search queries: the question itself
first, then up to two model-generated supplementary queries. Also detects
time-sensitive questions and derives the backend time range for them.
"""

import logging
import re
from datetime import date
from typing import List, Optional, Tuple

from core.exceptions import ExternalServiceError

from .models import TimeRange
from .ollama_client import OllamaClient
from .prompts import GENERATION_OPTIONS, get_template

logger = logging.getLogger("agentic.query_generator")

MAX_GENERATED_QUERIES = 2

# Leading enumeration such as "1.", "-", "* "
_ENUMERATION_PREFIX = re.compile(r"^[\d\-\*\.]+\s*")
_EXPLICIT_YEAR = re.compile(r"\b202\d\b")


def _timeliness_patterns(today: date) -> List[Tuple[re.Pattern, TimeRange]]:
    # The year rung tracks the calendar so "this year"/"next year" questions stay timely
    years = f"{today.year}|{today.year + 1}"
    return [
        (re.compile(r"\b(today|right now|current|latest|newest)\b", re.IGNORECASE), TimeRange.DAY),
        (re.compile(r"\b(this week|past week)\b", re.IGNORECASE), TimeRange.WEEK),
        (re.compile(r"\b(this month|recent)\b", re.IGNORECASE), TimeRange.MONTH),
        (re.compile(rf"\b({years}|forecast|trend)\b", re.IGNORECASE), TimeRange.YEAR),
    ]


def detect_timeliness(question: str, today: Optional[date] = None) -> Tuple[bool, TimeRange]:
    """
    Detect whether a question asks about recent events.

    Returns:
        (is_timely, time_range); the first matching pattern decides the range
    """
    for pattern, time_range in _timeliness_patterns(today or date.today()):
        if pattern.search(question):
            return True, time_range
    return False, TimeRange.NONE


def with_timely_query(
    queries: List[str],
    question: str,
    is_timely: bool,
    today: Optional[date] = None
) -> List[str]:
    """Append '<question> <year>' for timely questions that name no year"""
    if not is_timely or _EXPLICIT_YEAR.search(question):
        return list(queries)
    year = (today or date.today()).year
    return list(queries) + [f"{question} {year}"]


def parse_generated_queries(response_text: str) -> List[str]:
    """Strip enumeration from each line and keep plausible query lengths"""
    queries = []
    for line in (response_text or "").split("\n"):
        query = _ENUMERATION_PREFIX.sub("", line).strip()
        if 5 < len(query) < 100:
            queries.append(query)
    return queries[:MAX_GENERATED_QUERIES]


class QueryGenerator:
    """Generates supplementary search queries with one model call"""

    def __init__(self, llm: OllamaClient):
        self.llm = llm

    async def generate(self, question: str, model: Optional[str] = None) -> List[str]:
        """
        Build the query list for a question.

        The original question is always first. Any model failure leaves the
        list as just the question.
        """
        queries = [question]

        prompt = get_template("query_generation", question=question)
        try:
            response_text = await self.llm.generate(
                prompt,
                model=model,
                options=GENERATION_OPTIONS["query_generation"]
            )
        except ExternalServiceError as e:
            logger.warning(f"Query generation failed, using question only: {e.message}")
            return queries

        generated = parse_generated_queries(response_text)
        logger.debug(f"Generated {len(generated)} supplementary queries")
        return queries + generated
