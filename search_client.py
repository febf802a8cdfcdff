"""Google Custom Search JSON API client used by the bio and news lookups."""

from __future__ import annotations

import logging
import os
from typing import Any

import requests

GOOGLE_SEARCH_API_URL = "https://www.googleapis.com/customsearch/v1"
REQUEST_TIMEOUT_SECONDS = 5

LOGGER = logging.getLogger(__name__)


def is_configured() -> bool:
    """Return True when both the API key and search engine id are set."""
    return bool(os.getenv("GOOGLE_API_KEY") and os.getenv("GOOGLE_CSE_ID"))


def custom_search(query: str, num: int = 5, sort: str | None = None) -> list[dict[str, str]]:
    """Run one search query and return ``[{url, title, snippet}]`` in ranking order."""
    api_key = os.getenv("GOOGLE_API_KEY")
    cse_id = os.getenv("GOOGLE_CSE_ID")
    if not api_key:
        raise RuntimeError("GOOGLE_API_KEY environment variable is required")
    if not cse_id:
        raise RuntimeError("GOOGLE_CSE_ID environment variable is required")

    params: dict[str, Any] = {"key": api_key, "cx": cse_id, "q": query, "num": num}
    if sort:
        params["sort"] = sort

    LOGGER.debug("Google search: %s", query)
    response = requests.get(GOOGLE_SEARCH_API_URL, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
    response.raise_for_status()
    return _parse_search_payload(response.json())


def _parse_search_payload(payload: Any) -> list[dict[str, str]]:
    if not isinstance(payload, dict):
        return []

    results: list[dict[str, str]] = []
    for item in payload.get("items") or []:
        if not isinstance(item, dict):
            continue
        link = item.get("link")
        if not isinstance(link, str) or not link:
            continue
        results.append({
            "url": link,
            "title": item.get("title") if isinstance(item.get("title"), str) else "",
            "snippet": item.get("snippet") if isinstance(item.get("snippet"), str) else "",
        })
    return results
