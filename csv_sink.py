"""CSV export of prospect briefs, used for dry runs instead of CRM writes."""

from __future__ import annotations

import csv
import json
import logging
import os
from pathlib import Path
from typing import Any

from models import Contact, ProspectAnalysis

BRIEF_CSV_PATH = os.getenv("BRIEF_CSV_PATH", "prospect_briefs.csv")

LOGGER = logging.getLogger(__name__)

CSV_COLUMNS = [
    "contact_id",
    "name",
    "email",
    "company",
    "title",
    # Data quality
    "confidence",        # high | medium | low, from the number of sources
    "sources",           # comma-separated source labels
    "analysis_error",    # set when the model reply could not be parsed
    # Analysis
    "executive_summary",
    "scope_level",
    "leader_type",
    "recommended_tone",
    "primary_service",
    "formatted_summary",  # the text that would be written to the CRM
    "analysis_json",
    "created_at",
]


def brief_already_exists(contact: Contact) -> bool:
    """Return True if a row for this contact id is already in the CSV."""
    path = Path(BRIEF_CSV_PATH)
    if not path.exists():
        return False

    with path.open(newline="", encoding="utf-8") as fh:
        for row in csv.DictReader(fh):
            if row.get("contact_id") == contact.contact_id:
                return True
    return False


def write_brief_entry(contact: Contact, result: ProspectAnalysis) -> None:
    """Append one brief to the CSV, writing the header for a new file."""
    path = Path(BRIEF_CSV_PATH)
    write_header = not path.exists() or path.stat().st_size == 0

    analysis = result.analysis
    profile = _section(analysis, "contact_profile")
    persona = _section(analysis, "persona_analysis")
    tone = _section(analysis, "tone_strategy")
    primary_service = _section(_section(analysis, "service_prioritization"), "primary_service")

    row = {
        "contact_id": contact.contact_id,
        "name": contact.full_name,
        "email": contact.email or "",
        "company": contact.company or "",
        "title": contact.title or "",
        "confidence": result.confidence,
        "sources": ", ".join(result.sources),
        "analysis_error": _as_text(analysis.get("error")),
        "executive_summary": _as_text(analysis.get("executive_summary"), max_len=1000),
        "scope_level": _as_text(profile.get("scope_level")),
        "leader_type": _as_text(persona.get("leader_type")),
        "recommended_tone": _as_text(tone.get("recommended_tone")),
        "primary_service": _as_text(primary_service.get("service")),
        "formatted_summary": result.formatted_summary,
        "analysis_json": json.dumps(analysis),
        "created_at": result.timestamp,
    }

    with path.open("a", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=CSV_COLUMNS)
        if write_header:
            writer.writeheader()
        writer.writerow(row)

    LOGGER.info("Wrote CSV row for contact_id=%s to %s", contact.contact_id, BRIEF_CSV_PATH)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _as_text(value: Any, max_len: int = 500) -> str:
    """Convert value to a stripped string, truncated to max_len chars."""
    s = value.strip() if isinstance(value, str) else ""
    if len(s) > max_len:
        return s[: max_len - 1] + "…"
    return s
