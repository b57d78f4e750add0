"""
Gap Evaluator

Decides between search iterations whether the current results are enough
to answer the question, and if not, proposes follow-up queries.

Only used in auto mode. Any model failure counts as sufficient so that a
broken model never prolongs a search.
"""

import logging
import re
from typing import List, Optional, Sequence

from core.exceptions import ExternalServiceError

from .models import EnrichedSearchResult, GapEvaluation
from .ollama_client import OllamaClient
from .prompts import GENERATION_OPTIONS, get_template

logger = logging.getLogger("agentic.gap_evaluator")

SUFFICIENT_MARKER = "SUFFICIENT"
HIGH_QUALITY_SCORE = 15.0
HIGH_QUALITY_COUNT = 3
SUMMARY_RESULTS = 4
MAX_FOLLOW_UP_QUERIES = 2

_ENUMERATION_PREFIX = re.compile(r"^[-\d.]+\s*")


def parse_gap_response(response_text: str) -> GapEvaluation:
    """Interpret the model's answer as a verdict plus follow-up queries"""
    text = (response_text or "").strip()
    if SUFFICIENT_MARKER in text:
        return GapEvaluation(sufficient=True)

    queries: List[str] = []
    for line in text.split("\n"):
        query = _ENUMERATION_PREFIX.sub("", line).strip()
        if len(query) > 5:
            queries.append(query)

    return GapEvaluation(sufficient=False, new_queries=queries[:MAX_FOLLOW_UP_QUERIES])


class GapEvaluator:
    """Chooses between stopping and searching again"""

    def __init__(self, llm: OllamaClient, high_quality_score: float = HIGH_QUALITY_SCORE):
        self.llm = llm
        self.high_quality_score = high_quality_score

    async def evaluate(
        self,
        question: str,
        results: Sequence[EnrichedSearchResult],
        model: Optional[str] = None
    ) -> GapEvaluation:
        """
        Evaluate whether results answer the question.

        - No results: insufficient, search the question itself again
        - Enough high-scoring results: sufficient, no model call
        - Otherwise: ask the model using the top results' titles and domains
        """
        if not results:
            return GapEvaluation(sufficient=False, new_queries=[question])

        high_quality = sum(1 for r in results if (r.score or 0.0) > self.high_quality_score)
        if high_quality >= HIGH_QUALITY_COUNT:
            logger.debug(f"{high_quality} high-quality results, skipping gap evaluation")
            return GapEvaluation(sufficient=True)

        summaries = "\n".join(
            f"- {r.title} ({r.domain})" for r in list(results)[:SUMMARY_RESULTS]
        )
        prompt = get_template("gap_evaluation", question=question, summaries=summaries)

        try:
            response_text = await self.llm.generate(
                prompt,
                model=model,
                options=GENERATION_OPTIONS["gap_evaluation"]
            )
        except ExternalServiceError as e:
            logger.warning(f"Gap evaluation failed, treating results as sufficient: {e.message}")
            return GapEvaluation(sufficient=True)

        evaluation = parse_gap_response(response_text)
        if evaluation.sufficient:
            logger.info("Results deemed SUFFICIENT")
        else:
            logger.info(f"Gap evaluation proposed {len(evaluation.new_queries)} follow-up queries")
        return evaluation
