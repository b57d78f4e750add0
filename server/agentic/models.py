"""
Data models for the web research pipeline

Pipeline records (SearchResult, EnrichedSearchResult, DomainProfile,
SearchResponse) are plain dataclasses that live for a single request.
Request/response shapes for the HTTP boundary are Pydantic models that
validate and coerce caller input before it reaches the pipeline.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


class SearchMode(str, Enum):
    """User-selectable search mode"""
    AUTO = "auto"               # LLM classification + gap evaluation
    SCIENTIFIC = "scientific"   # Papers and research
    INDUSTRIAL = "industrial"   # Standards, specifications, vendors
    CODE = "code"               # Repositories, Q&A, library docs
    GENERAL = "general"         # Fast path, no model calls


class SearchCategory(str, Enum):
    """Topical category of a domain profile"""
    BATTERY = "battery"
    AUTOMATION = "automation"
    SEMICONDUCTOR = "semiconductor"
    GENERAL = "general"
    # Manual modes map onto their own profiles
    SCIENTIFIC = "scientific"
    INDUSTRIAL = "industrial"
    CODE = "code"


class TimeRange(str, Enum):
    """Recency filter forwarded to the search backend"""
    NONE = "none"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


# =============================================================================
# Pipeline records
# =============================================================================

@dataclass(frozen=True)
class SearchResult:
    """Raw result as returned by the search backend"""
    title: str
    url: str
    content: str
    engine: Optional[str] = None

    @classmethod
    def from_backend(cls, item: Dict[str, Any]) -> "SearchResult":
        """Coerce one backend JSON item; missing fields become empty strings"""
        return cls(
            title=str(item.get("title") or ""),
            url=str(item.get("url") or ""),
            content=str(item.get("content") or ""),
            engine=str(item.get("engine") or "unknown"),
        )


@dataclass
class EnrichedSearchResult:
    """Search result annotated with domain, score and fetched page text"""
    title: str
    url: str
    content: str
    domain: str
    engine: Optional[str] = None
    favicon: Optional[str] = None
    score: Optional[float] = None
    full_content: Optional[str] = None

    @classmethod
    def from_result(
        cls,
        result: SearchResult,
        domain: str,
        favicon: Optional[str],
        score: float
    ) -> "EnrichedSearchResult":
        return cls(
            title=result.title,
            url=result.url,
            content=result.content,
            domain=domain,
            engine=result.engine,
            favicon=favicon,
            score=score,
        )

    def with_score(self, score: float) -> "EnrichedSearchResult":
        """Copy carrying a new score; ranking passes never mutate their input"""
        return replace(self, score=score)

    def with_full_content(self, full_content: Optional[str]) -> "EnrichedSearchResult":
        return replace(self, full_content=full_content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "content": self.content,
            "domain": self.domain,
            "engine": self.engine,
            "favicon": self.favicon,
            "score": self.score,
            "full_content": self.full_content,
        }


@dataclass(frozen=True)
class DomainProfile:
    """Preferred sources, scoring keywords and engine set for one category"""
    category: SearchCategory
    preferred_domains: Tuple[str, ...]
    scoring_keywords: Tuple[str, ...]
    engines: str


@dataclass
class SearchResponse:
    """Final output of one intelligent_search call"""
    queries: List[str]
    results: List[EnrichedSearchResult]
    formatted_context: str
    profile: Optional[DomainProfile] = None
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "queries": list(self.queries),
            "results": [r.to_dict() for r in self.results],
            "formatted_context": self.formatted_context,
        }


@dataclass
class GapEvaluation:
    """Verdict of the gap evaluator"""
    sufficient: bool
    new_queries: List[str] = field(default_factory=list)


# =============================================================================
# HTTP boundary models
# =============================================================================

class IntelligentSearchRequest(BaseModel):
    """Request for the web research pipeline"""
    question: str = Field(..., min_length=1, description="The user's question")
    model: Optional[str] = Field(None, description="Ollama model for classification and query generation")
    max_results: int = Field(default=5, ge=1, le=20, description="Maximum results to return")
    fetch_content: bool = Field(default=True, description="Fetch full page text for the top results")
    search_mode: SearchMode = Field(default=SearchMode.AUTO, description="auto | scientific | industrial | code | general")


class SourceItem(BaseModel):
    """Result entry as returned to the caller"""
    title: str
    url: str
    content: str
    domain: str
    engine: Optional[str] = None
    favicon: Optional[str] = None
    score: Optional[float] = None
    full_content: Optional[str] = None


class IntelligentSearchResponse(BaseModel):
    """Response of the web research pipeline"""
    success: bool = True
    queries: List[str]
    results: List[SourceItem]
    formatted_context: str
    category: Optional[str] = None
    duration_ms: float = 0.0

    @classmethod
    def from_search_response(cls, response: SearchResponse) -> "IntelligentSearchResponse":
        return cls(
            queries=response.queries,
            results=[SourceItem(**r.to_dict()) for r in response.results],
            formatted_context=response.formatted_context,
            category=response.profile.category.value if response.profile else None,
            duration_ms=round(response.duration_ms, 1),
        )


class MemoryType(str, Enum):
    INSTRUCTION = "instruction"  # manual user rule
    MEMORY = "memory"            # learned from past conversations


class MemoryItem(BaseModel):
    content: str
    type: MemoryType = MemoryType.MEMORY


class ChatMessage(BaseModel):
    role: str = Field(..., description="system | user | assistant")
    content: str = ""
    images: Optional[List[str]] = None


class ChatRequest(BaseModel):
    """Chat request consuming the research pipeline"""
    messages: List[ChatMessage] = Field(..., min_length=1)
    model: Optional[str] = None
    web_search: bool = False
    thinking: bool = False
    search_mode: SearchMode = SearchMode.AUTO
    memories: List[MemoryItem] = Field(default_factory=list)


class ConversationRequest(BaseModel):
    """A finished conversation handed to the memory and title helpers"""
    messages: List[ChatMessage] = Field(default_factory=list)
    model: Optional[str] = None
