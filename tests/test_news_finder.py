from unittest.mock import MagicMock, patch

import pytest
import requests

from models import NewsItem
from news_finder import find_feed_news, format_date, get_institution_news, parse_feed, parse_news_page, search_news

_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel>
<title>Example University News</title>
<item>
  <title>Example University launches online MBA</title>
  <link>https://example.edu/news/online-mba</link>
  <description>&lt;p&gt;New &lt;b&gt;online&lt;/b&gt; MBA for working adults.&lt;/p&gt;</description>
  <pubDate>Tue, 05 Mar 2024 10:00:00 GMT</pubDate>
</item>
<item>
  <title>Hi</title>
  <link>https://example.edu/news/hi</link>
</item>
<item>
  <title>Nursing school expands clinical partnerships</title>
  <link>https://example.edu/news/nursing</link>
</item>
</channel></rss>
"""


def _items(prefix: str, count: int, source: str = "RSS") -> list[NewsItem]:
    return [NewsItem(headline=f"{prefix} headline number {i}", source=source) for i in range(count)]


def _ok(text: str) -> MagicMock:
    response = MagicMock()
    response.ok = True
    response.text = text
    return response


# ---------------------------------------------------------------------------
# Strategy cascade
# ---------------------------------------------------------------------------

def test_three_feed_items_skip_other_strategies() -> None:
    feed = _items("feed", 3)
    with patch("news_finder.find_feed_news", return_value=feed), \
         patch("news_finder.scrape_news_pages") as mock_scrape, \
         patch("news_finder.search_news") as mock_search:
        news = get_institution_news("Example University", "example.edu")

    assert news == feed
    mock_scrape.assert_not_called()
    mock_search.assert_not_called()


def test_result_is_capped_at_eight() -> None:
    feed = _items("feed", 11)
    with patch("news_finder.find_feed_news", return_value=feed):
        news = get_institution_news("Example University", "example.edu")

    assert news == feed[:8]


def test_feed_and_scrape_combined_keep_arrival_order() -> None:
    feed = _items("feed", 1)
    scraped = _items("page", 2, source="Website")
    with patch("news_finder.find_feed_news", return_value=feed), \
         patch("news_finder.scrape_news_pages", return_value=scraped), \
         patch("news_finder.search_news") as mock_search:
        news = get_institution_news("Example University", "example.edu")

    assert news == feed + scraped
    mock_search.assert_not_called()


def test_search_runs_only_when_configured() -> None:
    found = _items("search", 2, source="Google")
    env = {"GOOGLE_API_KEY": "key", "GOOGLE_CSE_ID": "cse"}
    with patch("news_finder.find_feed_news", return_value=[]), \
         patch("news_finder.scrape_news_pages", return_value=[]), \
         patch("news_finder.search_news", return_value=found) as mock_search:
        with patch.dict("os.environ", env, clear=True):
            assert get_institution_news("Example University", "example.edu") == found
        with patch.dict("os.environ", {}, clear=True):
            assert get_institution_news("Example University", "example.edu") == []

    mock_search.assert_called_once_with("Example University")


def test_no_domain_returns_empty() -> None:
    assert get_institution_news("Example University", None) == []


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def test_parse_feed_reads_items_and_skips_short_titles() -> None:
    with patch("news_finder.requests.get", return_value=_ok(_RSS)):
        news = parse_feed("https://example.edu/feed")

    assert [item.headline for item in news] == [
        "Example University launches online MBA",
        "Nursing school expands clinical partnerships",
    ]
    first = news[0]
    assert first.summary == "New online MBA for working adults."
    assert first.date == "Mar 5, 2024"
    assert first.url == "https://example.edu/news/online-mba"
    assert first.source == "RSS"
    assert news[1].summary is None


def test_parse_feed_ignores_non_feed_documents() -> None:
    with patch("news_finder.requests.get", return_value=_ok("<html><body>Not a feed</body></html>")):
        assert parse_feed("https://example.edu/feed") == []


def test_parse_news_page() -> None:
    html = """
    <div>
      <article>
        <h3><a href="/news/partnership">University signs statewide community college partnership</a></h3>
        <p>The agreement creates transfer pathways into online degrees.</p>
        <time>2024-02-10</time>
      </article>
      <article><h3>Too short</h3></article>
    </div>
    """
    news = parse_news_page(html, "https://example.edu")

    assert len(news) == 1
    item = news[0]
    assert item.headline == "University signs statewide community college partnership"
    assert item.summary == "The agreement creates transfer pathways into online degrees."
    assert item.date == "Feb 10, 2024"
    assert item.url == "https://example.edu/news/partnership"
    assert item.source == "Website"


def test_search_news_filters_admissions_pages() -> None:
    results = [
        {"url": "https://example.edu/apply/now", "title": "Apply today", "snippet": ""},
        {"url": "https://press.example.com/partnership", "title": "Example University partnership", "snippet": "Big news"},
    ]
    with patch("news_finder.search_client.custom_search", return_value=results) as mock_search:
        news = search_news("Example University")

    assert [item.url for item in news] == ["https://press.example.com/partnership"]
    assert news[0].source == "Google"
    assert mock_search.call_args.kwargs["sort"] == "date"


@pytest.mark.parametrize("raw, expected", [
    ("2024-03-05T10:00:00Z", "Mar 5, 2024"),
    ("Tue, 05 Mar 2024 10:00:00 GMT", "Mar 5, 2024"),
    ("2023-11-20", "Nov 20, 2023"),
    ("Spring semester announcement", "Spring semester anno"),
    (None, None),
    ("   ", None),
])
def test_format_date(raw: str | None, expected: str | None) -> None:
    assert format_date(raw) == expected


# ---------------------------------------------------------------------------
# Fetch failures and discovery
# ---------------------------------------------------------------------------

_NEWS_PAGE = """
<section>
  <div class="news-item">
    <h3><a href="/newsroom/online-nursing">Example University expands online nursing programs</a></h3>
    <p>New RN-to-BSN cohorts start each term.</p>
  </div>
</section>
"""


def _not_found() -> MagicMock:
    response = MagicMock()
    response.ok = False
    response.text = ""
    return response


def _site(pages: dict[str, str]):
    """Fake requests.get: mapped URLs answer with their body, all others 404."""
    def fake_get(url: str, **kwargs) -> MagicMock:
        return _ok(pages[url]) if url in pages else _not_found()
    return fake_get


def test_connection_errors_on_every_branch_yield_no_news() -> None:
    with patch.dict("os.environ", {}, clear=True), \
         patch("news_finder.requests.get", side_effect=requests.ConnectionError("refused")) as mock_get:
        assert get_institution_news("Example University", "example.edu") == []

    requested = [c.args[0] for c in mock_get.call_args_list]
    assert "https://example.edu" in requested
    assert "https://www.example.edu/stories/feed" in requested
    assert "https://www.example.edu/media" in requested


def test_non_ok_responses_yield_no_news() -> None:
    with patch.dict("os.environ", {}, clear=True), \
         patch("news_finder.requests.get", return_value=_not_found()):
        assert get_institution_news("Example University", "example.edu") == []


def test_search_failure_yields_no_news() -> None:
    env = {"GOOGLE_API_KEY": "key", "GOOGLE_CSE_ID": "cse"}
    with patch.dict("os.environ", env, clear=True), \
         patch("news_finder.requests.get", side_effect=requests.Timeout("slow")), \
         patch("news_finder.search_client.custom_search", side_effect=RuntimeError("quota exceeded")) as mock_search:
        assert get_institution_news("Example University", "example.edu") == []

    mock_search.assert_called_once()


def test_search_news_returns_empty_when_search_raises() -> None:
    with patch("news_finder.search_client.custom_search", side_effect=RuntimeError("GOOGLE_API_KEY missing")):
        assert search_news("Example University") == []


def test_autodiscovered_feed_is_resolved_and_parsed() -> None:
    homepage = '<html><head><link rel="alternate" type="application/rss+xml" href="/news/rss"></head></html>'
    site = _site({"https://example.edu": homepage, "https://example.edu/news/rss": _RSS})

    with patch("news_finder.requests.get", side_effect=site) as mock_get:
        news = find_feed_news("example.edu")

    assert [item.url for item in news] == [
        "https://example.edu/news/online-mba",
        "https://example.edu/news/nursing",
    ]
    requested = [c.args[0] for c in mock_get.call_args_list]
    assert requested == ["https://example.edu", "https://example.edu/news/rss"]


def test_two_feed_items_are_enough_after_empty_scrape() -> None:
    homepage = '<html><head><link type="application/rss+xml" href="/news/rss"></head></html>'
    site = _site({"https://example.edu": homepage, "https://example.edu/news/rss": _RSS})

    with patch.dict("os.environ", {}, clear=True), \
         patch("news_finder.requests.get", side_effect=site):
        news = get_institution_news("Example University", "example.edu")

    assert [item.source for item in news] == ["RSS", "RSS"]


def test_news_pages_fall_through_to_www_host() -> None:
    site = _site({"https://www.example.edu/newsroom": _NEWS_PAGE})

    with patch.dict("os.environ", {}, clear=True), \
         patch("news_finder.requests.get", side_effect=site):
        news = get_institution_news("Example University", "example.edu")

    assert len(news) == 1
    assert news[0].headline == "Example University expands online nursing programs"
    assert news[0].url == "https://www.example.edu/newsroom/online-nursing"
    assert news[0].source == "Website"
