"""Semantic Scholar citation profiles with author disambiguation."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

import requests

from models import CandidateMatch, CitationProfile
from name_matching import normalize_name

SEMANTIC_SCHOLAR_API_URL = "https://api.semanticscholar.org/graph/v1"
USER_AGENT = "Prospect-Enrichment/1.0"
SEARCH_TIMEOUT_SECONDS = 6
TOPICS_TIMEOUT_SECONDS = 4
MAX_TOPICS = 5

# A last-name hit alone (5) is enough to accept a candidate.
MIN_AUTHOR_SCORE = 5

LOGGER = logging.getLogger(__name__)


def score_author(candidate: dict[str, Any], target_name: str, institution: str | None) -> CandidateMatch:
    """Score one author record against the target person."""
    target = normalize_name(target_name)
    last_name = target.split()[-1] if target else ""
    author_name = normalize_name(candidate.get("name"))
    inst = normalize_name(institution)

    score = 0
    reasons: list[str] = []

    if last_name and last_name in author_name:
        score += 5
        reasons.append("last_name")
    if target and author_name == target:
        score += 5
        reasons.append("full_name")

    if inst:
        for affiliation in candidate.get("affiliations") or []:
            aff = normalize_name(affiliation) if isinstance(affiliation, str) else ""
            if aff and (inst in aff or aff in inst):
                score += 8
                reasons.append("affiliation")
                break

    citations = candidate.get("citationCount")
    if isinstance(citations, int) and citations > 100:
        score += 2
        reasons.append("citations")

    return CandidateMatch(payload=candidate, score=score, reasons=tuple(reasons))


def disambiguate_author(
    candidates: list[dict[str, Any]],
    target_name: str,
    institution: str | None = None,
) -> CandidateMatch | None:
    """Pick the best-scoring author; first seen wins ties. None below MIN_AUTHOR_SCORE."""
    best: CandidateMatch | None = None
    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        match = score_author(candidate, target_name, institution)
        if best is None or match.score > best.score:
            best = match

    if best is None or best.score < MIN_AUTHOR_SCORE:
        return None
    return best


def get_citation_profile(name: str, institution: str | None) -> CitationProfile | None:
    """Search Semantic Scholar for the person and return their citation profile."""
    if not name:
        return None

    try:
        response = requests.get(
            f"{SEMANTIC_SCHOLAR_API_URL}/author/search",
            params={"query": name, "fields": "name,affiliations,paperCount,citationCount,hIndex"},
            headers={"User-Agent": USER_AGENT},
            timeout=SEARCH_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        LOGGER.warning("Semantic Scholar search failed for %r: %s", name, exc)
        return None

    candidates = payload.get("data") if isinstance(payload, dict) else None
    if not candidates:
        return None

    match = disambiguate_author(candidates, name, institution)
    if match is None:
        LOGGER.info("Semantic Scholar: no author above threshold for %r", name)
        return None

    author = match.payload
    LOGGER.debug("Semantic Scholar: picked %r score=%s reasons=%s", author.get("name"), match.score, match.reasons)
    return CitationProfile(
        name=author.get("name") or name,
        citations=author.get("citationCount") or 0,
        h_index=author.get("hIndex") or 0,
        papers=author.get("paperCount") or 0,
        topics=get_author_topics(author.get("authorId")),
    )


def get_author_topics(author_id: str | None) -> list[str]:
    """Return the author's most frequent fields of study, most common first."""
    if not author_id:
        return []

    try:
        response = requests.get(
            f"{SEMANTIC_SCHOLAR_API_URL}/author/{author_id}",
            params={"fields": "papers.fieldsOfStudy"},
            headers={"User-Agent": USER_AGENT},
            timeout=TOPICS_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        LOGGER.debug("Semantic Scholar topics failed for author_id=%s: %s", author_id, exc)
        return []

    counts: Counter[str] = Counter()
    for paper in (payload.get("papers") if isinstance(payload, dict) else None) or []:
        for field_name in (paper.get("fieldsOfStudy") if isinstance(paper, dict) else None) or []:
            counts[field_name] += 1

    return [topic for topic, _ in counts.most_common(MAX_TOPICS)]
