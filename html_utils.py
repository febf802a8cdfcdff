"""Small helpers shared by the HTML and feed scrapers."""

from __future__ import annotations

from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
}

NON_DOCUMENT_EXTENSIONS = (".pdf", ".doc", ".docx", ".ppt", ".xlsx", ".zip")


def host_variants(domain: str) -> list[str]:
    """Base URLs to try for a domain: bare host first, then ``www.``."""
    bare = domain.strip().lower().removeprefix("www.")
    return [f"https://{bare}", f"https://www.{bare}"]


def make_absolute_url(href: str | None, base_url: str) -> str | None:
    if not href:
        return None
    href = href.strip()
    if href.startswith(("http://", "https://")):
        return href
    try:
        return urljoin(base_url.rstrip("/") + "/", href)
    except ValueError:
        return None


def is_document_url(url: str) -> bool:
    """True when the URL path points at a file that cannot be scraped as HTML."""
    return urlparse(url).path.lower().endswith(NON_DOCUMENT_EXTENSIONS)


def clean_text(text: str | None) -> str:
    """Strip markup and collapse whitespace."""
    if not text:
        return ""
    if "<" in text:
        text = BeautifulSoup(text, "html.parser").get_text(" ")
    return " ".join(text.replace("\xa0", " ").split())
