"""Locate and scrape a contact's biography page on their institution's site.

Lookup order: site-restricted web search (when configured), then direct
probing of common profile URL patterns, then scanning staff-directory pages
for a link carrying the person's name.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import requests
from bs4 import BeautifulSoup

import search_client
from html_utils import BROWSER_HEADERS, host_variants, is_document_url, make_absolute_url
from models import BioContent
from name_matching import normalize_name

PROBE_TIMEOUT_SECONDS = 2
PAGE_TIMEOUT_SECONDS = 4
SCRAPE_TIMEOUT_SECONDS = 6
MAX_HTML_CHARS = 500_000
MAX_CONTENT_CHARS = 2500
MAX_SECTION_CHARS = 400

_BLOCKED_URL_SEGMENTS = ("/news/", "/events/", "/apply", "/admissions", "digitalcollections", "/archive")
_PROFILE_PATH_RE = re.compile(r"/(people|faculty|staff|directory|leadership|about|profile|team)/")

_PROBE_PATTERNS = (
    "/about/leadership/{first}-{last}",
    "/about/leadership/{last}-{first}",
    "/leadership/{first}-{last}",
    "/people/{first}-{last}",
    "/faculty/{first}-{last}",
    "/directory/{first}-{last}",
    "/staff/{first}-{last}",
    "/team/{first}-{last}",
    "/{first}-{last}",
)
_DIRECTORY_PAGES = ("/about/leadership", "/leadership", "/administration", "/directory", "/our-team")

_NOISE_SELECTOR = "nav, header, footer, aside, script, style, .nav, .menu, .sidebar"
_BIO_SELECTORS = (
    ".bio",
    ".biography",
    ".profile-bio",
    ".about-text",
    ".profile-content",
    '[class*="biography"]',
    '[class*="bio-text"]',
    "article",
    "main",
    ".content",
)

LOGGER = logging.getLogger(__name__)


def _name_tokens(name: str) -> tuple[str, str]:
    parts = normalize_name(name).split()
    if not parts:
        return "", ""
    return parts[0], parts[-1]


def rank_bio_results(results: list[dict[str, Any]], name: str) -> str | None:
    """Pick the most likely bio page from ranked search results.

    Documents and news/admissions/archive pages are skipped. The first result
    mentioning the last name, or sitting under a profile-style path, wins.
    When nothing qualifies the first raw result is returned.
    """
    if not results:
        return None

    _, last_name = _name_tokens(name)

    for item in results:
        url = item.get("url") or ""
        if not url:
            continue
        url_lower = url.lower()
        title_lower = (item.get("title") or "").lower()

        if is_document_url(url_lower):
            continue
        if any(segment in url_lower for segment in _BLOCKED_URL_SEGMENTS):
            continue

        has_name = bool(last_name) and (last_name in url_lower or last_name in title_lower)
        if has_name or _PROFILE_PATH_RE.search(url_lower):
            return url

    return results[0].get("url") or None


def search_for_bio(name: str, domain: str) -> str | None:
    """Site-restricted search for the person's name, ranked by rank_bio_results."""
    query = f'site:{domain} "{name}"'
    try:
        results = search_client.custom_search(query, num=5)
    except (requests.RequestException, RuntimeError, ValueError) as exc:
        LOGGER.warning("Bio search failed for %r: %s", name, exc)
        return None
    return rank_bio_results(results, name)


def probe_common_urls(name: str, domain: str) -> str | None:
    """HEAD-probe common profile URL patterns; return the first that resolves."""
    first, last = _name_tokens(name)
    if not first or not last:
        return None

    for base in host_variants(domain):
        for pattern in _PROBE_PATTERNS:
            url = f"{base}{pattern.format(first=first, last=last)}"
            try:
                response = requests.head(url, allow_redirects=True, timeout=PROBE_TIMEOUT_SECONDS)
            except requests.RequestException:
                continue
            if response.ok:
                return response.url or url
    return None


def search_directory_pages(name: str, domain: str) -> str | None:
    """Scan leadership/directory pages for a link whose text names the person."""
    first, last = _name_tokens(name)
    if not first or not last:
        return None

    for base in host_variants(domain):
        for page in _DIRECTORY_PAGES:
            try:
                response = requests.get(f"{base}{page}", headers=BROWSER_HEADERS, timeout=PAGE_TIMEOUT_SECONDS)
            except requests.RequestException:
                continue
            if not response.ok:
                continue

            soup = BeautifulSoup(response.text, "html.parser")
            for anchor in soup.find_all("a", href=True):
                text = anchor.get_text(" ").lower()
                if first in text and last in text:
                    return make_absolute_url(anchor["href"], base)
    return None


def find_bio_page(name: str, domain: str | None) -> str | None:
    """Find the URL of a person's bio page on ``domain``, or None."""
    if not domain or not name:
        return None

    if search_client.is_configured():
        url = search_for_bio(name, domain)
        if url:
            return url

    url = probe_common_urls(name, domain)
    if url:
        return url

    return search_directory_pages(name, domain)


def scrape_bio_content(url: str) -> BioContent | None:
    """Fetch a bio page and extract its main text plus education/experience sections."""
    if is_document_url(url):
        LOGGER.info("Skipping non-HTML bio URL: %s", url)
        return None

    try:
        response = requests.get(url, headers=BROWSER_HEADERS, timeout=SCRAPE_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        LOGGER.warning("Bio scrape failed for %s: %s", url, exc)
        return None
    if not response.ok:
        return None

    content_type = response.headers.get("content-type", "")
    if "text/html" not in content_type:
        LOGGER.info("Skipping non-HTML bio content: %s", content_type)
        return None

    return parse_bio_html(response.text[:MAX_HTML_CHARS], url)


def parse_bio_html(html: str, url: str) -> BioContent:
    soup = BeautifulSoup(html, "html.parser")
    for node in soup.select(_NOISE_SELECTOR):
        node.decompose()

    content = ""
    for selector in _BIO_SELECTORS:
        text = " ".join(" ".join(el.get_text(" ") for el in soup.select(selector)).split())
        if 100 < len(text) < 5000:
            content = text
            break

    if not content:
        paragraphs = [" ".join(p.get_text(" ").split()) for p in soup.find_all("p")]
        content = " ".join([p for p in paragraphs if len(p) > 40][:5])

    education = _extract_section(soup, ("education", "academic background", "degrees"))
    experience = _extract_section(soup, ("experience", "career", "background"))

    h1 = soup.find("h1")
    title = h1.get_text(strip=True) if h1 else ""
    if not title and soup.title:
        title = soup.title.get_text(strip=True)

    return BioContent(
        url=url,
        content=content[:MAX_CONTENT_CHARS],
        education=education[:MAX_SECTION_CHARS] if education else None,
        experience=experience[:MAX_SECTION_CHARS] if experience else None,
        title=title or None,
    )


def _extract_section(soup: BeautifulSoup, headings: tuple[str, ...]) -> str | None:
    """Collect the text following the first heading that mentions one of ``headings``."""
    for heading in headings:
        header = next(
            (el for el in soup.find_all(["h2", "h3", "h4", "strong"]) if heading in el.get_text().lower()),
            None,
        )
        if header is None:
            continue

        node = header.parent.find_next_sibling() if header.parent is not None else None
        if node is None:
            node = header.find_next_sibling()

        parts: list[str] = []
        for _ in range(5):
            if node is None:
                break
            text = " ".join(node.get_text(" ").split())
            if len(text) > 10:
                parts.append(text)
            if node.name in ("h2", "h3", "h4"):
                break
            node = node.find_next_sibling()

        content = " ".join(parts)
        if len(content) > 20:
            return content
    return None
