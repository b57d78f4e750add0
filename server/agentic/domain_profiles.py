"""
Domain Profiles and Source Lists

Read-only registry of the domain lists and per-category search profiles used
by the research pipeline. Everything here is built once at import time and
never mutated; helpers are pure functions over it.

Domain matching is substring based throughout ("ieee.org" matches
"ieeexplore.ieee.org"), mirroring how the lists are curated.
"""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional
from urllib.parse import urlparse

from .models import DomainProfile, SearchCategory, SearchMode


# Who the searches are tailored for; prepended to classifier/query prompts
USER_SEARCH_PROFILE = """
The user is a SENIOR PROCESS ENGINEER and TECHNICAL BUILDER.
- Preferences: Technical papers (ScienceDirect, IEEE), Industrial whitepapers (Siemens, Rockwell), GitHub repos, Engineering docs, High-quality Industry News.
- AVOID: Marketing fluff, "Top 10" lists, consumer-level articles, basic tutorials (w3schools, etc.).
"""

PREFERRED_DOMAINS = (
    # Scientific & technical
    "sciencedirect.com", "ieee.org", "springer.com", "nature.com",
    "arxiv.org", "semanticscholar.org", "mdpi.com", "researchgate.net",
    # Industrial & automation
    "siemens.com", "plm.automation.siemens.com", "rockwellautomation.com",
    "micron.com", "asml.com", "honeywell.com",
    # Battery & standards
    "iso.org", "iatfglobaloversight.org", "batteryuniversity.com",
    # Code & Linux
    "github.com", "stackoverflow.com", "wiki.archlinux.org", "archlinux.org",
    "cachyos.org", "tibco.com", "community.tibco.com",
)

NEWS_DOMAINS = (
    # Tech & industry news
    "reuters.com", "bloomberg.com", "techcrunch.com", "arstechnica.com",
    "wired.com", "theverge.com", "engadget.com", "cnet.com",
    # Battery / energy
    "electrek.co", "greencarcongress.com", "cleantechnica.com", "mining.com",
    "energy-storage.news", "pv-magazine.com", "batteryindustry.net",
    "sciencedaily.com", "eurekalert.org", "phys.org", "sciencenews.org",
    # General news
    "bbc.com", "cnn.com", "apnews.com", "news.google.com",
)

# Removed unless the mode asks for them
CODE_DOMAINS = (
    "github.com", "stackoverflow.com", "gitlab.com", "huggingface.co",
    "codepen.io", "replit.com",
)
INDUSTRIAL_DOMAINS = (
    "iso.org", "iatfglobaloversight.org", "siemens.com",
    "rockwellautomation.com", "honeywell.com", "nema.org",
)

# Always removed, in every mode
BLOCKED_DOMAINS = (
    # Low-quality Q&A
    "baidu.com", "zhidao.baidu.com", "tieba.baidu.com",
    "quora.com", "answers.yahoo.com",
    # Social media
    "pinterest.com", "instagram.com", "facebook.com", "tiktok.com",
    "twitter.com", "x.com",
    # Beginner tutorial sites
    "geeksforgeeks.com", "w3schools.com", "javatpoint.com", "tutorialspoint.com",
    # Content farms
    "medium.com", "dev.to", "hashnode.com",
    # Spam
    "copyprogramming.com", "codegrepper.com", "programmerall.com",
)

# Preferred + news: these bypass relevance filtering in the ranker
WHITELISTED_DOMAINS = PREFERRED_DOMAINS + NEWS_DOMAINS

FAVICON_URL_TEMPLATE = "https://www.google.com/s2/favicons?domain={domain}&sz=32"


def _profile(
    category: SearchCategory,
    preferred: Iterable[str],
    keywords: Iterable[str],
    engines: str
) -> DomainProfile:
    return DomainProfile(
        category=category,
        preferred_domains=tuple(preferred),
        scoring_keywords=tuple(keywords),
        engines=engines,
    )


# Profiles chosen by the classifier in auto mode
CATEGORY_PROFILES: Mapping[SearchCategory, DomainProfile] = MappingProxyType({
    SearchCategory.BATTERY: _profile(
        SearchCategory.BATTERY,
        ["sciencedirect.com", "springer.com", "batteryuniversity.com",
         "catl.com", "electrochem.org", "nature.com"],
        ["electrode", "cathode", "anode", "electrolyte", "calendering",
         "coating", "capacity", "cycle life"],
        "google,bing,brave,arxiv,semantic_scholar",
    ),
    SearchCategory.AUTOMATION: _profile(
        SearchCategory.AUTOMATION,
        ["siemens.com", "rockwellautomation.com", "github.com",
         "stackoverflow.com", "inductiveautomation.com"],
        ["plc", "scada", "hmi", "modbus", "mqtt", "pid", "ladder",
         "structured text", "motion control"],
        "google,bing,github,stack_overflow,brave",
    ),
    SearchCategory.SEMICONDUCTOR: _profile(
        SearchCategory.SEMICONDUCTOR,
        ["ieee.org", "asml.com", "appliedmaterials.com", "semiconductor.net", "tsmc.com"],
        ["wafer", "lithography", "etching", "deposition", "yield", "defect",
         "cleanroom", "node"],
        "google,bing,brave,arxiv,ieee",
    ),
    SearchCategory.GENERAL: _profile(
        SearchCategory.GENERAL,
        PREFERRED_DOMAINS,
        ["process", "engineering", "system", "method"],
        "google,bing,brave,arxiv,semantic_scholar",
    ),
})

# Fixed profiles for manual modes; picking one skips classification entirely
MANUAL_PROFILES: Mapping[SearchMode, DomainProfile] = MappingProxyType({
    SearchMode.SCIENTIFIC: _profile(
        SearchCategory.SCIENTIFIC,
        ["sciencedirect.com", "ieee.org", "springer.com", "nature.com",
         "arxiv.org", "mdpi.com", "researchgate.net"],
        ["methodology", "result", "discussion", "conclusion", "experiment", "data"],
        "google,bing,brave,arxiv,semantic_scholar",
    ),
    SearchMode.INDUSTRIAL: _profile(
        SearchCategory.INDUSTRIAL,
        ["siemens.com", "rockwellautomation.com", "honeywell.com", "iso.org", "nema.org"],
        ["specification", "standard", "manual", "guide", "datasheet", "compliance"],
        "google,bing,brave",
    ),
    SearchMode.CODE: _profile(
        SearchCategory.CODE,
        [
            "github.com", "stackoverflow.com", "gitlab.com",
            "readthedocs.io", "docs.python.org", "pypi.org",
            "wiki.archlinux.org", "archlinux.org", "cachyos.org",
            "pymodbus.readthedocs.io", "pymodbustcp.readthedocs.io",
        ],
        ["error", "exception", "api", "function", "class", "install",
         "config", "example", "usage"],
        "github,stack_overflow,google,bing",
    ),
    SearchMode.GENERAL: _profile(
        SearchCategory.GENERAL,
        NEWS_DOMAINS + ("wikipedia.org", "britannica.com"),
        ["overview", "summary", "meaning", "news", "what is"],
        "google,bing,duckduckgo,wikipedia",
    ),
})


def get_category_profile(category: SearchCategory) -> DomainProfile:
    return CATEGORY_PROFILES.get(category, CATEGORY_PROFILES[SearchCategory.GENERAL])


def get_manual_profile(mode: SearchMode) -> Optional[DomainProfile]:
    """Profile for a manual mode, None for auto"""
    return MANUAL_PROFILES.get(mode)


def extract_domain(url: str) -> str:
    """Lower-cased host with a leading www. removed; the raw URL if unparseable"""
    try:
        host = urlparse(url).hostname
    except ValueError:
        host = None
    if not host:
        return url.lower()
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def favicon_url(domain: str) -> str:
    return FAVICON_URL_TEMPLATE.format(domain=domain)


def first_match(domain: str, candidates: Iterable[str]) -> Optional[str]:
    """First candidate that is a substring of the domain"""
    domain = domain.lower()
    for candidate in candidates:
        if candidate in domain:
            return candidate
    return None


def matches_any(domain: str, candidates: Iterable[str]) -> bool:
    return first_match(domain, candidates) is not None


def is_blocked_domain(domain: str) -> bool:
    """Check if domain is globally blocked (low-quality sites)"""
    return matches_any(domain, BLOCKED_DOMAINS)


def is_code_domain(domain: str) -> bool:
    return matches_any(domain, CODE_DOMAINS)


def is_industrial_domain(domain: str) -> bool:
    return matches_any(domain, INDUSTRIAL_DOMAINS)


def is_whitelisted_domain(domain: str, preferred: Iterable[str] = ()) -> bool:
    """Preferred (profile or global) and news domains bypass relevance filtering"""
    return matches_any(domain, preferred) or matches_any(domain, WHITELISTED_DOMAINS)
