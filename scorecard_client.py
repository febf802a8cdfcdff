"""Institutional statistics from the College Scorecard API (IPEDS-backed)."""

from __future__ import annotations

import logging
import os
from typing import Any

import requests

from models import InstitutionStats
from name_matching import normalize_name, word_overlap

SCORECARD_API_URL = "https://api.data.gov/ed/collegescorecard/v1/schools"
REQUEST_TIMEOUT_SECONDS = 8
_MIN_SHARED_WORDS = 2

_FIELDS = (
    "school.name",
    "school.city",
    "school.state",
    "school.ownership",
    "latest.student.size",
    "latest.student.enrollment.grad_12_month",
    "latest.admissions.admission_rate.overall",
    "latest.cost.tuition.in_state",
    "latest.cost.tuition.out_of_state",
)

_OWNERSHIP = {1: "Public", 2: "Private nonprofit", 3: "Private for-profit"}

LOGGER = logging.getLogger(__name__)


def get_institution_stats(institution_name: str | None) -> InstitutionStats | None:
    """Look up enrollment, admissions and cost figures for an institution."""
    if not institution_name:
        return None

    params = {
        "school.name": institution_name,
        "api_key": os.getenv("DATA_GOV_API_KEY", "DEMO_KEY"),
        "fields": ",".join(_FIELDS),
        "per_page": 5,
    }

    try:
        response = requests.get(SCORECARD_API_URL, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        LOGGER.warning("Scorecard lookup failed for %r: %s", institution_name, exc)
        return None

    results = payload.get("results") if isinstance(payload, dict) else None
    if not results:
        return None

    match = find_best_match(results, institution_name)
    if match is None:
        LOGGER.info("Scorecard: no confident match for %r among %s results", institution_name, len(results))
        return None

    return InstitutionStats(
        name=match.get("school.name") or institution_name,
        city=match.get("school.city"),
        state=match.get("school.state"),
        ownership=_OWNERSHIP.get(match.get("school.ownership"), "Unknown"),
        total_enrollment=_as_int(match.get("latest.student.size")),
        graduate_enrollment=_as_int(match.get("latest.student.enrollment.grad_12_month")),
        acceptance_rate=_as_float(match.get("latest.admissions.admission_rate.overall")),
        tuition_in_state=_as_int(match.get("latest.cost.tuition.in_state")),
        tuition_out_of_state=_as_int(match.get("latest.cost.tuition.out_of_state")),
    )


def find_best_match(results: list[dict[str, Any]], target: str) -> dict[str, Any] | None:
    """Exact name match first, then the result sharing the most words (at least two)."""
    target_norm = normalize_name(target)
    best: dict[str, Any] | None = None
    best_score = 0

    for result in results:
        if not isinstance(result, dict):
            continue
        name = normalize_name(result.get("school.name"))
        if name == target_norm:
            return result

        score = word_overlap(target_norm, name)
        if score > best_score:
            best_score = score
            best = result

    return best if best_score >= _MIN_SHARED_WORDS else None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
