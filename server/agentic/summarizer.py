"""
Content Summarizer

Optional condensation of fetched page text into a few query-focused bullet
points before it reaches the context assembler.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from core.exceptions import ExternalServiceError

from .models import EnrichedSearchResult
from .ollama_client import OllamaClient
from .prompts import GENERATION_OPTIONS, get_template

logger = logging.getLogger("agentic.summarizer")

MIN_SUMMARIZE_LENGTH = 100
PROMPT_CONTENT_CHARS = 2500
FALLBACK_CHARS = 300


class ContentSummarizer:
    """Summarizes fetched content with one model call per page"""

    def __init__(self, llm: OllamaClient):
        self.llm = llm

    async def summarize(self, content: str, question: str, model: Optional[str] = None) -> str:
        if not content or len(content) < MIN_SUMMARIZE_LENGTH:
            return content

        prompt = get_template(
            "content_summary",
            question=question,
            content=content[:PROMPT_CONTENT_CHARS]
        )
        try:
            summary = await self.llm.generate(
                prompt,
                model=model,
                options=GENERATION_OPTIONS["summarization"]
            )
        except ExternalServiceError as e:
            logger.warning(f"Summarization failed, truncating instead: {e.message}")
            return content[:FALLBACK_CHARS]

        return summary.strip() or content[:FALLBACK_CHARS]

    async def summarize_results(
        self,
        results: Sequence[EnrichedSearchResult],
        question: str,
        model: Optional[str] = None
    ) -> List[EnrichedSearchResult]:
        """Replace full_content with its summary wherever content was fetched"""

        async def _one(result: EnrichedSearchResult) -> EnrichedSearchResult:
            if not result.full_content:
                return result
            summary = await self.summarize(result.full_content, question, model)
            return result.with_full_content(summary)

        return list(await asyncio.gather(*[_one(r) for r in results]))
