from unittest.mock import MagicMock, patch

import requests

from bio_finder import (
    find_bio_page,
    parse_bio_html,
    probe_common_urls,
    rank_bio_results,
    scrape_bio_content,
    search_directory_pages,
)

_BIO_TEXT = (
    "Jane Doe is Vice Provost for Digital Learning at Example University, where she leads "
    "online program strategy and partnerships across the graduate schools."
)

_BIO_PAGE = f"""
<html><head><title>Jane Doe | Example University</title></head>
<body>
<nav>Home Admissions Apply Now Give</nav>
<h1>Dr. Jane Doe</h1>
<div class="bio"><p>{_BIO_TEXT}</p></div>
<h2>Education</h2>
<p>B.A., Example College; Ph.D., Another University</p>
<h2>Experience</h2>
<p>Served as dean of online learning for ten years.</p>
</body></html>
"""


def _results(*urls: str) -> list[dict[str, str]]:
    return [{"url": url, "title": "", "snippet": ""} for url in urls]


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

def test_rank_skips_news_and_picks_named_profile() -> None:
    results = _results("https://example.edu/news/x", "https://example.edu/faculty/jane-doe")
    assert rank_bio_results(results, "Jane Doe") == "https://example.edu/faculty/jane-doe"


def test_rank_skips_documents() -> None:
    results = _results("https://example.edu/files/doe-cv.pdf", "https://example.edu/people/jdoe")
    assert rank_bio_results(results, "Jane Doe") == "https://example.edu/people/jdoe"


def test_rank_matches_last_name_in_title() -> None:
    results = [
        {"url": "https://example.edu/admissions/visit", "title": "Visit", "snippet": ""},
        {"url": "https://example.edu/p/123", "title": "Jane Doe, Provost", "snippet": ""},
    ]
    assert rank_bio_results(results, "Jane Doe") == "https://example.edu/p/123"


def test_rank_falls_back_to_first_raw_result() -> None:
    results = _results("https://example.edu/news/2024/award", "https://example.edu/events/gala")
    assert rank_bio_results(results, "Jane Doe") == "https://example.edu/news/2024/award"


def test_rank_empty_results() -> None:
    assert rank_bio_results([], "Jane Doe") is None


# ---------------------------------------------------------------------------
# Lookup strategies
# ---------------------------------------------------------------------------

def test_find_bio_page_uses_search_when_configured() -> None:
    env = {"GOOGLE_API_KEY": "key", "GOOGLE_CSE_ID": "cse"}
    with patch.dict("os.environ", env, clear=True), \
         patch("bio_finder.search_client.custom_search",
               return_value=_results("https://example.edu/about/leadership/jane-doe")) as mock_search, \
         patch("bio_finder.probe_common_urls") as mock_probe:
        url = find_bio_page("Jane Doe", "example.edu")

    assert url == "https://example.edu/about/leadership/jane-doe"
    assert mock_search.call_args.args[0] == 'site:example.edu "Jane Doe"'
    mock_probe.assert_not_called()


def test_find_bio_page_falls_back_to_probe_then_directory() -> None:
    with patch.dict("os.environ", {}, clear=True), \
         patch("bio_finder.probe_common_urls", return_value=None) as mock_probe, \
         patch("bio_finder.search_directory_pages", return_value="https://example.edu/people/jane") as mock_dir:
        url = find_bio_page("Jane Doe", "example.edu")

    assert url == "https://example.edu/people/jane"
    mock_probe.assert_called_once_with("Jane Doe", "example.edu")
    mock_dir.assert_called_once_with("Jane Doe", "example.edu")


def test_find_bio_page_without_domain() -> None:
    assert find_bio_page("Jane Doe", None) is None


def test_probe_common_urls_returns_first_resolving_pattern() -> None:
    target = "https://example.edu/faculty/jane-doe"

    def fake_head(url: str, **kwargs) -> MagicMock:
        response = MagicMock()
        response.ok = url == target
        response.url = url
        return response

    with patch("bio_finder.requests.head", side_effect=fake_head) as mock_head:
        assert probe_common_urls("Jane Doe", "example.edu") == target

    assert mock_head.call_args.kwargs["allow_redirects"] is True


def test_probe_common_urls_tolerates_connection_errors() -> None:
    with patch("bio_finder.requests.head", side_effect=requests.ConnectionError("refused")):
        assert probe_common_urls("Jane Doe", "example.edu") is None


def test_search_directory_pages_finds_named_link() -> None:
    response = MagicMock()
    response.ok = True
    response.text = (
        '<ul><li><a href="/people/john-smith">John Smith</a></li>'
        '<li><a href="/people/jane-doe">Dr. Jane Doe, Provost</a></li></ul>'
    )
    with patch("bio_finder.requests.get", return_value=response):
        assert search_directory_pages("Jane Doe", "example.edu") == "https://example.edu/people/jane-doe"


# ---------------------------------------------------------------------------
# Scraping
# ---------------------------------------------------------------------------

def test_parse_bio_html_extracts_content_and_sections() -> None:
    bio = parse_bio_html(_BIO_PAGE, "https://example.edu/people/jane-doe")

    assert bio.content == _BIO_TEXT
    assert "Apply Now" not in bio.content
    assert bio.title == "Dr. Jane Doe"
    assert bio.education == "B.A., Example College; Ph.D., Another University"
    assert bio.experience == "Served as dean of online learning for ten years."


def test_parse_bio_html_falls_back_to_paragraphs() -> None:
    html = (
        "<html><body>"
        "<p>Short.</p>"
        "<p>Jane Doe has led academic partnerships at Example University since 2015.</p>"
        "</body></html>"
    )
    bio = parse_bio_html(html, "https://example.edu/p/1")
    assert bio.content == "Jane Doe has led academic partnerships at Example University since 2015."
    assert bio.education is None


def test_scrape_bio_content_skips_non_html() -> None:
    response = MagicMock()
    response.ok = True
    response.headers = {"content-type": "application/json"}
    with patch("bio_finder.requests.get", return_value=response):
        assert scrape_bio_content("https://example.edu/people/jane-doe") is None


def test_scrape_bio_content_skips_documents_without_fetching() -> None:
    with patch("bio_finder.requests.get") as mock_get:
        assert scrape_bio_content("https://example.edu/cv.pdf") is None
    mock_get.assert_not_called()
