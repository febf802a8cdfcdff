"""Recent institution news: feeds first, then news-page scraping, then web search.

Each strategy is tried only while the previous ones came up short. Results
are capped at MAX_NEWS_ITEMS and are not deduplicated across strategies.
"""

from __future__ import annotations

import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from time import struct_time
from typing import Any

import feedparser
import requests
from bs4 import BeautifulSoup

import search_client
from html_utils import BROWSER_HEADERS, clean_text, host_variants, make_absolute_url
from models import NewsItem

REQUEST_TIMEOUT_SECONDS = 4
MAX_FEED_CHARS = 200_000
MAX_PAGE_CHARS = 300_000

MAX_NEWS_ITEMS = 8
MAX_FEED_ITEMS = 6
MAX_PAGE_ITEMS = 5
FEED_SUFFICIENT = 3
SCRAPE_SUFFICIENT = 2

_FEED_PATHS = (
    "/feed", "/rss", "/news/feed", "/news/rss",
    "/feed/", "/rss/", "/news/feed/", "/news/rss/",
    "/blog/feed", "/newsroom/feed", "/stories/feed",
)
_NEWS_PAGE_PATHS = ("/news", "/newsroom", "/stories", "/press", "/media")
_FEED_LINK_SELECTORS = (
    'link[type="application/rss+xml"]',
    'link[type="application/atom+xml"]',
    'a[href*="/feed"]',
    'a[href*="/rss"]',
)
_ARTICLE_SELECTOR = 'article, .news-item, .post, [class*="news-"], [class*="story"]'
_FEED_HEADERS = {**BROWSER_HEADERS, "Accept": "application/rss+xml, application/xml, text/xml, */*"}

LOGGER = logging.getLogger(__name__)


def get_institution_news(institution: str | None, domain: str | None) -> list[NewsItem]:
    """Collect up to MAX_NEWS_ITEMS recent news items for an institution."""
    if not domain:
        return []

    feed_news = find_feed_news(domain)
    if len(feed_news) >= FEED_SUFFICIENT:
        return feed_news[:MAX_NEWS_ITEMS]

    scraped_news = scrape_news_pages(domain)
    combined = feed_news + scraped_news
    if len(combined) >= SCRAPE_SUFFICIENT:
        return combined[:MAX_NEWS_ITEMS]

    if institution and search_client.is_configured():
        combined += search_news(institution)

    return combined[:MAX_NEWS_ITEMS]


def find_feed_news(domain: str) -> list[NewsItem]:
    """Autodiscover or probe an RSS/Atom feed and return its first items."""
    for base in host_variants(domain):
        feed_url = autodiscover_feed(base)
        if feed_url:
            news = parse_feed(feed_url)
            if news:
                LOGGER.info("News: using autodiscovered feed %s", feed_url)
                return news

        for path in _FEED_PATHS:
            news = parse_feed(f"{base}{path}")
            if news:
                LOGGER.info("News: found feed at %s%s", base, path)
                return news
    return []


def autodiscover_feed(base_url: str) -> str | None:
    """Return the feed URL advertised by a homepage, if any."""
    try:
        response = requests.get(base_url, headers=BROWSER_HEADERS, timeout=REQUEST_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        LOGGER.debug("Feed autodiscovery failed for %s: %s", base_url, exc)
        return None
    if not response.ok:
        return None

    soup = BeautifulSoup(response.text, "html.parser")
    for selector in _FEED_LINK_SELECTORS:
        element = soup.select_one(selector)
        if element is not None and element.get("href"):
            return make_absolute_url(element["href"], base_url)
    return None


def parse_feed(feed_url: str) -> list[NewsItem]:
    """Fetch and parse one feed; any failure yields no items."""
    try:
        response = requests.get(feed_url, headers=_FEED_HEADERS, timeout=REQUEST_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        LOGGER.debug("Feed fetch failed for %s: %s", feed_url, exc)
        return []
    if not response.ok:
        return []

    text = response.text[:MAX_FEED_CHARS]
    if "<rss" not in text and "<feed" not in text and "<item" not in text:
        return []

    parsed = feedparser.parse(text)
    news: list[NewsItem] = []
    for entry in parsed.entries:
        if len(news) >= MAX_FEED_ITEMS:
            break

        title = clean_text(entry.get("title"))
        if len(title) <= 10:
            continue

        summary = clean_text(entry.get("summary") or entry.get("description"))
        raw_date = entry.get("published") or entry.get("updated")
        parsed_date = entry.get("published_parsed") or entry.get("updated_parsed")
        news.append(
            NewsItem(
                headline=title[:200],
                summary=summary[:300] or None,
                date=_format_struct_time(parsed_date) or format_date(raw_date),
                url=entry.get("link") or None,
                source="RSS",
            )
        )
    return news


def scrape_news_pages(domain: str) -> list[NewsItem]:
    """Scrape article teasers from conventional news landing pages."""
    for base in host_variants(domain):
        for path in _NEWS_PAGE_PATHS:
            try:
                response = requests.get(f"{base}{path}", headers=BROWSER_HEADERS, timeout=REQUEST_TIMEOUT_SECONDS)
            except requests.RequestException as exc:
                LOGGER.debug("News page fetch failed for %s%s: %s", base, path, exc)
                continue
            if not response.ok:
                continue

            news = parse_news_page(response.text[:MAX_PAGE_CHARS], base)
            if news:
                LOGGER.info("News: scraped %s items from %s%s", len(news), base, path)
                return news
    return []


def parse_news_page(html: str, base_url: str) -> list[NewsItem]:
    soup = BeautifulSoup(html, "html.parser")
    news: list[NewsItem] = []

    for element in soup.select(_ARTICLE_SELECTOR):
        if len(news) >= MAX_PAGE_ITEMS:
            break

        heading = element.select_one("h2, h3, h4, .title, .headline")
        headline = clean_text(heading.get_text(" ")) if heading else ""
        if len(headline) <= 15:
            continue

        excerpt = element.select_one("p, .excerpt, .summary")
        date_el = element.select_one('time, .date, [class*="date"]')
        link = element.find("a", href=True)

        summary = clean_text(excerpt.get_text(" "))[:300] if excerpt else ""
        news.append(
            NewsItem(
                headline=headline[:200],
                summary=summary or None,
                date=format_date(clean_text(date_el.get_text(" "))) if date_el else None,
                url=make_absolute_url(link["href"], base_url) if link else None,
                source="Website",
            )
        )
    return news


def search_news(institution: str) -> list[NewsItem]:
    """Search for announcement-style coverage of the institution."""
    query = f'"{institution}" (announcement OR program OR partnership OR initiative)'
    try:
        results = search_client.custom_search(query, num=5, sort="date")
    except (requests.RequestException, RuntimeError, ValueError) as exc:
        LOGGER.warning("News search failed for %r: %s", institution, exc)
        return []

    news: list[NewsItem] = []
    for item in results:
        url_lower = item["url"].lower()
        if "/apply" in url_lower or "/admissions" in url_lower:
            continue
        news.append(
            NewsItem(
                headline=(item.get("title") or "")[:200],
                summary=(item.get("snippet") or "")[:300] or None,
                url=item["url"],
                source="Google",
            )
        )
    return news


def format_date(raw: str | None) -> str | None:
    """Render a date as ``Mon D, YYYY``; unparseable values are kept, truncated."""
    if not raw:
        return None
    value = raw.strip()
    if not value:
        return None

    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            parsed = None

    if parsed is None:
        return value[:20]
    return _display_date(parsed)


def _format_struct_time(value: Any) -> str | None:
    if not isinstance(value, struct_time):
        return None
    return _display_date(datetime(value.tm_year, value.tm_mon, value.tm_mday))


def _display_date(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}"
