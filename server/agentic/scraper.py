"""
Content Fetcher for the Research Pipeline

Downloads the pages behind the final result set and reduces them to plain
text. Fetching walks an ordered list of strategies (desktop browser, then
mobile browser) until one produces text or definitively fails.

PDF text extraction is optional: PyMuPDF is used when installed, pypdf
otherwise. With neither installed, PDF results simply keep their snippet.
"""

import asyncio
import io
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

import httpx

from .models import EnrichedSearchResult
from .user_agent_config import get_desktop_headers, get_mobile_headers

logger = logging.getLogger("agentic.scraper")

DESKTOP_MAX_CHARS = 3000
MOBILE_MAX_CHARS = 5000
PDF_MAX_CHARS = 5000
PDF_MAX_PAGES = 50

# Desktop HTML shorter than this is treated as an empty shell
MIN_HTML_LENGTH = 500
JS_REQUIRED_MARKER = "JavaScript is needed"

_DESKTOP_STRIP_TAGS = ("script", "style", "nav", "header", "footer")
_MOBILE_STRIP_TAGS = ("script", "style")
_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one strategy: text, or whether the next strategy should run"""
    content: Optional[str] = None
    try_next: bool = False


FALL_THROUGH = FetchOutcome(try_next=True)
GIVE_UP = FetchOutcome()


def _strip_html(html: str, tags: Sequence[str]) -> str:
    content = html
    for tag in tags:
        content = re.sub(f"<{tag}[^>]*>.*?</{tag}>", "", content, flags=re.IGNORECASE | re.DOTALL)
    content = _TAG.sub(" ", content)
    return _WHITESPACE.sub(" ", content).strip()


def extract_html_text(html: str) -> str:
    """Readable text of a desktop page: boilerplate sections and tags removed"""
    return _strip_html(html, _DESKTOP_STRIP_TAGS)[:DESKTOP_MAX_CHARS]


def extract_html_text_simple(html: str) -> str:
    """Readable text of a mobile page: only scripts, styles and tags removed"""
    return _strip_html(html, _MOBILE_STRIP_TAGS)[:MOBILE_MAX_CHARS]


def extract_pdf_text(pdf_bytes: bytes) -> Optional[str]:
    """
    Extract text from a PDF document.

    Returns:
        Up to PDF_MAX_CHARS of text, or None when no PDF library is installed

    Raises whatever the PDF library raises for a document it cannot parse.
    """
    # Try PyMuPDF (fitz) first - best quality
    try:
        import fitz  # PyMuPDF

        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        try:
            text_parts = []
            for page_num in range(min(doc.page_count, PDF_MAX_PAGES)):
                text = doc[page_num].get_text()
                if text.strip():
                    text_parts.append(text)
        finally:
            doc.close()
        return "\n".join(text_parts)[:PDF_MAX_CHARS]

    except ImportError:
        logger.debug("PyMuPDF not installed, trying pypdf")

    try:
        from pypdf import PdfReader

        reader = PdfReader(io.BytesIO(pdf_bytes))
        text_parts = []
        for page in reader.pages[:PDF_MAX_PAGES]:
            text = page.extract_text()
            if text and text.strip():
                text_parts.append(text)
        return "\n".join(text_parts)[:PDF_MAX_CHARS]

    except ImportError:
        logger.warning("PDF extraction libraries not installed (pip install pymupdf or pypdf)")
        return None


def _is_pdf(url: str, content_type: str) -> bool:
    return "application/pdf" in content_type or url.lower().endswith(".pdf")


class ContentScraper:
    """
    Fetches page text for search results.

    Features:
    - Desktop fetch with full browser headers
    - Mobile fallback for access-denied, empty or script-only pages
    - Optional PDF text extraction
    - Concurrent, independent fetches; one failure never affects the others
    """

    def __init__(
        self,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.timeout = timeout
        self.session = client
        self.strategies: List[Callable[[str], Awaitable[FetchOutcome]]] = [
            self._fetch_desktop,
            self._fetch_mobile,
        ]

    async def _get_session(self) -> httpx.AsyncClient:
        """Get or create HTTP session"""
        if self.session is None or self.session.is_closed:
            self.session = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True
            )
        return self.session

    async def fetch_page_content(self, url: str) -> Optional[str]:
        """
        Fetch readable text for one URL.

        Returns:
            Extracted text, or None when every strategy failed
        """
        for strategy in self.strategies:
            outcome = await strategy(url)
            if outcome.content is not None:
                return outcome.content
            if not outcome.try_next:
                return None
        return None

    async def _fetch_desktop(self, url: str) -> FetchOutcome:
        try:
            session = await self._get_session()
            response = await session.get(url, headers=get_desktop_headers(), timeout=self.timeout)

            if response.status_code in (401, 403):
                logger.warning(f"Access denied ({response.status_code}) for {url[:80]}, using mobile fallback")
                return FALL_THROUGH

            if not response.is_success:
                logger.debug(f"HTTP {response.status_code} for {url[:80]}")
                return GIVE_UP

            content_type = response.headers.get("content-type", "").lower()
            if _is_pdf(url, content_type):
                return FetchOutcome(content=await self._extract_pdf(url, response.content))

            html = response.text
            if len(html) < MIN_HTML_LENGTH or JS_REQUIRED_MARKER in html:
                logger.warning(f"Page empty or requires JavaScript: {url[:80]}, using mobile fallback")
                return FALL_THROUGH

            return FetchOutcome(content=extract_html_text(html))

        except Exception as e:
            logger.warning(f"Desktop fetch failed for {url[:80]}: {e}; using mobile fallback")
            return FALL_THROUGH

    async def _fetch_mobile(self, url: str) -> FetchOutcome:
        logger.debug(f"Mobile fetch for: {url[:80]}")
        try:
            session = await self._get_session()
            response = await session.get(url, headers=get_mobile_headers(), timeout=self.timeout)
            if not response.is_success:
                return GIVE_UP
            content_type = response.headers.get("content-type", "").lower()
            if _is_pdf(url, content_type):
                logger.debug(f"Mobile fetch returned a PDF for {url[:80]}, not parsing as HTML")
                return GIVE_UP
            return FetchOutcome(content=extract_html_text_simple(response.text))
        except Exception as e:
            logger.warning(f"Mobile fetch failed for {url[:80]}: {e}")
            return GIVE_UP

    async def _extract_pdf(self, url: str, pdf_bytes: bytes) -> Optional[str]:
        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(None, extract_pdf_text, pdf_bytes)
        except Exception as e:
            logger.warning(f"PDF parsing failed for {url[:80]}: {e}")
            return None
        if text is None:
            logger.warning(f"PDF parsing skipped (no PDF library) for {url[:80]}")
        return text

    async def fetch_many(
        self,
        results: Sequence[EnrichedSearchResult]
    ) -> List[EnrichedSearchResult]:
        """
        Attach fetched text to every result concurrently.

        Results whose fetch failed keep full_content unset. Order is preserved.
        """
        contents = await asyncio.gather(*[
            self.fetch_page_content(result.url) for result in results
        ])
        fetched = sum(1 for c in contents if c)
        logger.info(f"Fetched content for {fetched}/{len(results)} results")
        return [
            result.with_full_content(content or None)
            for result, content in zip(results, contents)
        ]

    async def close(self):
        """Close HTTP session"""
        if self.session and not self.session.is_closed:
            await self.session.aclose()


# Singleton instance
_content_scraper: Optional[ContentScraper] = None


def get_content_scraper() -> ContentScraper:
    global _content_scraper
    if _content_scraper is None:
        from config.settings import get_settings
        _content_scraper = ContentScraper(timeout=get_settings().fetch_timeout)
    return _content_scraper
