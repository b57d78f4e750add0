"""
Domain Classifier

Chooses the DomainProfile that steers a search. Manual modes map straight to
their fixed profile; auto mode asks the LLM for a single category label.

The classifier never fails: any model error, timeout or unparseable answer
falls back to the general profile.
"""

import logging
from typing import Optional

from core.exceptions import ExternalServiceError

from .domain_profiles import get_category_profile, get_manual_profile
from .models import DomainProfile, SearchCategory, SearchMode
from .ollama_client import OllamaClient
from .prompts import GENERATION_OPTIONS, get_template

logger = logging.getLogger("agentic.classifier")

# Checked in this order against the lower-cased answer; first hit wins
CATEGORY_PRECEDENCE = (
    SearchCategory.BATTERY,
    SearchCategory.AUTOMATION,
    SearchCategory.SEMICONDUCTOR,
)


def parse_category(response_text: str) -> SearchCategory:
    """Map a free-text model answer onto a category label"""
    text = (response_text or "").strip().lower()
    for category in CATEGORY_PRECEDENCE:
        if category.value in text:
            return category
    return SearchCategory.GENERAL


class DomainClassifier:
    """
    Selects the domain profile for a question.

    Makes at most one model call, and only in auto mode.
    """

    def __init__(self, llm: OllamaClient):
        self.llm = llm

    async def classify(
        self,
        question: str,
        model: Optional[str] = None,
        mode: SearchMode = SearchMode.AUTO
    ) -> DomainProfile:
        manual = get_manual_profile(mode)
        if manual is not None:
            logger.debug(f"Manual mode {mode.value}: using fixed profile")
            return manual

        prompt = get_template("domain_classification", question=question)
        try:
            response_text = await self.llm.generate(
                prompt,
                model=model,
                options=GENERATION_OPTIONS["classification"]
            )
        except ExternalServiceError as e:
            logger.warning(f"Classification failed, using general profile: {e.message}")
            return get_category_profile(SearchCategory.GENERAL)

        category = parse_category(response_text)
        logger.info(f"Classified '{question[:50]}' as {category.value}")
        return get_category_profile(category)
