"""
Centralized User-Agent and Header Configuration for Page Fetching

Provides the header sets used by the content fetcher strategies and the
identifying User-Agent used against the metasearch backend.

Format for own components: FathAI/1.0 (Component/1.0; Purpose)
"""

from typing import Dict

# Base information
BOT_NAME = "FathAI"
BOT_VERSION = "1.0"

USER_AGENT_TEMPLATE = "{bot}/{version} ({component}/{comp_version}; {purpose})"


def build_user_agent(
    component: str,
    purpose: str,
    component_version: str = "1.0"
) -> str:
    """
    Build a standardized User-Agent string.

    Args:
        component: Name of the component (e.g., "Searcher")
        purpose: Brief description of purpose (e.g., "Web Search")
        component_version: Version of the component

    Returns:
        Formatted User-Agent string
    """
    return USER_AGENT_TEMPLATE.format(
        bot=BOT_NAME,
        version=BOT_VERSION,
        component=component,
        comp_version=component_version,
        purpose=purpose,
    )


class UserAgents:
    """User-Agent strings for each fetch context."""

    # Metasearch backend is self-hosted, so identify honestly
    SEARCH_PROVIDER = build_user_agent("Searcher", "Web Search")

    # Page fetch, first attempt: full desktop browser
    DESKTOP_BROWSER = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    # Page fetch, second attempt: many sites serve a lighter mobile page
    MOBILE_BROWSER = "Mozilla/5.0 (Linux; Android 13) AppleWebKit/537.36"


def get_desktop_headers() -> Dict[str, str]:
    """Headers for the desktop fetch strategy"""
    return {
        "User-Agent": UserAgents.DESKTOP_BROWSER,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Referer": "https://www.google.com/",
    }


def get_mobile_headers() -> Dict[str, str]:
    """Headers for the mobile fetch strategy"""
    return {
        "User-Agent": UserAgents.MOBILE_BROWSER,
        "Accept": "text/html",
    }


def get_search_headers() -> Dict[str, str]:
    return {
        "User-Agent": UserAgents.SEARCH_PROVIDER,
        "Accept": "application/json",
    }
