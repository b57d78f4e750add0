"""
Unit tests for ContentScraper.

Page fetches are answered by httpx.MockTransport; the User-Agent header
tells the handler which strategy is asking.
"""

import sys

import httpx
import pytest

from agentic.scraper import (
    DESKTOP_MAX_CHARS,
    PDF_MAX_CHARS,
    ContentScraper,
    extract_html_text,
    extract_html_text_simple,
    extract_pdf_text,
)
from agentic import scraper as scraper_module
from agentic.user_agent_config import UserAgents

ARTICLE = "Calendering compacts the coated electrode to a target porosity. " * 20

DESKTOP_PAGE = (
    "<html><head><style>body {color: red}</style><script>var x = 1;</script></head>"
    "<body><nav>Home | About</nav><header>Site header</header>"
    f"<main><p>{ARTICLE}</p></main><footer>Copyright</footer></body></html>"
)

MOBILE_PAGE = "<html><body><nav>Menu</nav><p>Mobile article text.</p><script>x()</script></body></html>"


def _is_mobile(request: httpx.Request) -> bool:
    return request.headers.get("user-agent") == UserAgents.MOBILE_BROWSER


def _pdf_bytes(lines) -> bytes:
    """Minimal one-page PDF with one Helvetica text line per entry."""
    ops = " ".join(f"({line}) Tj 0 -14 Td" for line in lines)
    stream = f"BT /F1 12 Tf 72 720 Td {ops} ET"
    objects = [
        "<< /Type /Catalog /Pages 2 0 R >>",
        "<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        "/Resources << /Font << /F1 5 0 R >> >> >>",
        f"<< /Length {len(stream)} >>\nstream\n{stream}\nendstream",
        "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    pdf = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(pdf))
        pdf += f"{number} 0 obj\n{body}\nendobj\n".encode()

    xref_offset = len(pdf)
    pdf += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode()
    for offset in offsets:
        pdf += f"{offset:010d} 00000 n \n".encode()
    pdf += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode()
    return pdf


CORRUPT_PDF = b"%PDF-1.4 garbage > stream \x00\x01 not a real pdf"


class TestExtraction:
    """Test HTML text extraction."""

    def test_desktop_strips_boilerplate(self):
        text = extract_html_text(DESKTOP_PAGE)
        assert "Calendering compacts" in text
        assert "Home | About" not in text
        assert "Site header" not in text
        assert "Copyright" not in text
        assert "var x" not in text
        assert "color: red" not in text
        assert "<" not in text

    def test_desktop_truncated(self):
        assert len(extract_html_text(DESKTOP_PAGE * 5)) <= DESKTOP_MAX_CHARS

    def test_mobile_keeps_nav(self):
        text = extract_html_text_simple(MOBILE_PAGE)
        assert text == "Menu Mobile article text."

    def test_pdf_without_libraries(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "fitz", None)
        monkeypatch.setitem(sys.modules, "pypdf", None)
        assert extract_pdf_text(b"%PDF-1.4") is None

    def test_pdf_text_with_pypdf(self, monkeypatch):
        pytest.importorskip("pypdf")
        monkeypatch.setitem(sys.modules, "fitz", None)

        text = extract_pdf_text(_pdf_bytes(["Calendering pressure 300 MPa", "Porosity target 30"]))

        assert "Calendering pressure 300 MPa" in text
        assert "Porosity target 30" in text

    def test_pdf_text_capped(self, monkeypatch):
        pytest.importorskip("pypdf")
        monkeypatch.setitem(sys.modules, "fitz", None)
        lines = [f"Line {i:03d} " + "electrode " * 10 for i in range(60)]

        text = extract_pdf_text(_pdf_bytes(lines))

        assert text.startswith("Line 000")
        assert len(text) == PDF_MAX_CHARS

    def test_pdf_text_with_pymupdf(self):
        fitz = pytest.importorskip("fitz")
        doc = fitz.open()
        doc.new_page().insert_text((72, 72), "Wafer dicing yield")
        pdf_bytes = doc.tobytes()
        doc.close()

        assert "Wafer dicing yield" in extract_pdf_text(pdf_bytes)


class TestFetchPageContent:
    """Test the desktop to mobile strategy chain."""

    @pytest.mark.asyncio
    async def test_desktop_success(self, mock_transport_client):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, html=DESKTOP_PAGE)

        scraper = ContentScraper(client=mock_transport_client(handler))
        text = await scraper.fetch_page_content("https://example.org/a")

        assert text.startswith("Calendering compacts")
        assert len(requests) == 1
        assert requests[0].headers["referer"] == "https://www.google.com/"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_access_denied_uses_mobile(self, mock_transport_client, status):
        def handler(request):
            if _is_mobile(request):
                return httpx.Response(200, html=MOBILE_PAGE)
            return httpx.Response(status)

        scraper = ContentScraper(client=mock_transport_client(handler))

        assert await scraper.fetch_page_content("https://example.org/a") == "Menu Mobile article text."

    @pytest.mark.asyncio
    async def test_javascript_shell_uses_mobile(self, mock_transport_client):
        shell = "<html><body>" + "x" * 600 + "JavaScript is needed to view this page</body></html>"

        def handler(request):
            return httpx.Response(200, html=MOBILE_PAGE if _is_mobile(request) else shell)

        scraper = ContentScraper(client=mock_transport_client(handler))

        assert await scraper.fetch_page_content("https://example.org/a") == "Menu Mobile article text."

    @pytest.mark.asyncio
    async def test_short_page_uses_mobile(self, mock_transport_client):
        def handler(request):
            return httpx.Response(200, html=MOBILE_PAGE if _is_mobile(request) else "<html></html>")

        scraper = ContentScraper(client=mock_transport_client(handler))

        assert await scraper.fetch_page_content("https://example.org/a") == "Menu Mobile article text."

    @pytest.mark.asyncio
    async def test_network_error_uses_mobile(self, mock_transport_client):
        def handler(request):
            if _is_mobile(request):
                return httpx.Response(200, html=MOBILE_PAGE)
            raise httpx.ConnectError("reset")

        scraper = ContentScraper(client=mock_transport_client(handler))

        assert await scraper.fetch_page_content("https://example.org/a") == "Menu Mobile article text."

    @pytest.mark.asyncio
    async def test_not_found_gives_up(self, mock_transport_client):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(404)

        scraper = ContentScraper(client=mock_transport_client(handler))

        assert await scraper.fetch_page_content("https://example.org/a") is None
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_both_strategies_fail(self, mock_transport_client):
        def handler(request):
            return httpx.Response(500 if _is_mobile(request) else 403)

        scraper = ContentScraper(client=mock_transport_client(handler))

        assert await scraper.fetch_page_content("https://example.org/a") is None

    @pytest.mark.asyncio
    async def test_pdf_without_library_returns_none(self, mock_transport_client, monkeypatch):
        monkeypatch.setitem(sys.modules, "fitz", None)
        monkeypatch.setitem(sys.modules, "pypdf", None)

        def handler(request):
            return httpx.Response(200, content=b"%PDF-1.4", headers={"content-type": "application/pdf"})

        scraper = ContentScraper(client=mock_transport_client(handler))

        assert await scraper.fetch_page_content("https://example.org/paper.pdf") is None

    @pytest.mark.asyncio
    async def test_unparseable_pdf_gives_up(self, mock_transport_client, monkeypatch):
        requests = []

        def broken_parser(pdf_bytes):
            raise ValueError("EOF marker not found")

        def handler(request):
            requests.append(request)
            return httpx.Response(200, content=CORRUPT_PDF, headers={"content-type": "application/pdf"})

        monkeypatch.setattr(scraper_module, "extract_pdf_text", broken_parser)
        scraper = ContentScraper(client=mock_transport_client(handler))

        assert await scraper.fetch_page_content("https://example.org/paper.pdf") is None
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_corrupt_pdf_never_returns_raw_bytes(self, mock_transport_client):
        def handler(request):
            return httpx.Response(200, content=CORRUPT_PDF, headers={"content-type": "application/pdf"})

        scraper = ContentScraper(client=mock_transport_client(handler))

        assert not await scraper.fetch_page_content("https://example.org/paper")

    @pytest.mark.asyncio
    async def test_mobile_refuses_pdf(self, mock_transport_client):
        def handler(request):
            if _is_mobile(request):
                return httpx.Response(200, content=CORRUPT_PDF, headers={"content-type": "application/pdf"})
            return httpx.Response(403)

        scraper = ContentScraper(client=mock_transport_client(handler))

        assert await scraper.fetch_page_content("https://example.org/report") is None


class TestFetchMany:
    """Test concurrent enrichment of results."""

    @pytest.mark.asyncio
    async def test_failures_isolated_and_order_kept(self, mock_transport_client, enriched_factory):
        def handler(request):
            if "broken" in str(request.url):
                return httpx.Response(404)
            return httpx.Response(200, html=DESKTOP_PAGE)

        results = [
            enriched_factory("https://a.org/ok", title="first"),
            enriched_factory("https://b.org/broken", title="second"),
            enriched_factory("https://c.org/ok", title="third"),
        ]
        scraper = ContentScraper(client=mock_transport_client(handler))

        enriched = await scraper.fetch_many(results)

        assert [r.title for r in enriched] == ["first", "second", "third"]
        assert enriched[0].full_content.startswith("Calendering")
        assert enriched[1].full_content is None
        assert enriched[2].full_content is not None
        assert results[0].full_content is None
