"""Online graduate completions trends from the IPEDS completions extract.

The CSV is parsed once per process, on first use, and shared read-only by
every lookup afterwards.
"""

from __future__ import annotations

import csv
import logging
import os
import threading
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from models import CompletionRecord, OverallTrend, ProgramTrend, TrendReport
from name_matching import normalize_name, resolve_key

COMPLETIONS_CSV_PATH = os.getenv("COMPLETIONS_CSV_PATH", "data/completions.csv")

REPORT_START_YEAR = 2020
REPORT_END_YEAR = 2024

GROWTH_THRESHOLD_PCT = 20
_FASTEST_GROWING_MIN_END = 10
_LARGEST_MIN_END = 20
_DECLINING_MIN_START = 10

LOGGER = logging.getLogger(__name__)

CompletionsIndex = Mapping[str, list[CompletionRecord]]


def load_completions(path: str | os.PathLike[str]) -> dict[str, list[CompletionRecord]]:
    """Parse the completions CSV into records keyed by normalized institution name.

    A missing or unreadable file yields an empty mapping, so every lookup
    reports "no data" instead of failing.
    """
    csv_path = Path(path)
    index: dict[str, list[CompletionRecord]] = {}

    try:
        with csv_path.open(newline="", encoding="utf-8-sig") as fh:
            for row in csv.DictReader(fh):
                record = _parse_row(row)
                if record is None:
                    continue
                index.setdefault(record.institution, []).append(record)
    except (OSError, csv.Error, UnicodeDecodeError) as exc:
        LOGGER.error("Failed to load completions CSV from %s: %s", csv_path, exc)
        return {}

    LOGGER.info("Loaded completions data: %s institutions from %s", len(index), csv_path)
    return index


def _parse_row(row: dict[str, str | None]) -> CompletionRecord | None:
    institution = normalize_name(row.get("Institution"))
    if not institution:
        return None

    year = _as_whole_number(row.get("ConferralYear"))
    if year is None:
        return None

    completions = max(_as_whole_number(row.get("Completions")) or 0, 0)

    program = (row.get("CIPCODE_LABEL") or "").strip().removesuffix(".").strip()
    return CompletionRecord(
        institution=institution,
        program=program,
        cip_code=(row.get("CIPCODE") or "").strip(),
        year=year,
        completions=completions,
    )


def _as_whole_number(value: str | None) -> int | None:
    """Parse "40" or a spreadsheet-style "40.0"; anything else is None."""
    try:
        return int(float((value or "").strip()))
    except (ValueError, OverflowError):
        return None


class CompletionsStore:
    """Lazily loaded, read-only completions index.

    The first ``get()`` parses the CSV under a lock; later calls return the
    same immutable mapping without locking.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._index: CompletionsIndex | None = None

    def get(self) -> CompletionsIndex:
        index = self._index
        if index is not None:
            return index
        with self._lock:
            if self._index is None:
                self._index = MappingProxyType(load_completions(self._path))
            return self._index

    @property
    def loaded(self) -> bool:
        return self._index is not None


_STORE = CompletionsStore(COMPLETIONS_CSV_PATH)


def completions_index() -> CompletionsIndex:
    """Process-wide accessor for the completions index."""
    return _STORE.get()


def classify_growth(start: int, end: int) -> tuple[int | None, str]:
    """Return (growth_pct, trend) for a start/end completions pair."""
    if start > 0 and end > 0:
        growth = round((end - start) / start * 100)
        return growth, _trend_label(growth)
    if start == 0 and end > 0:
        return None, "new"
    if start > 0 and end == 0:
        return -100, "discontinued"
    return None, "stable"


def _trend_label(growth_pct: int | None) -> str:
    if growth_pct is None:
        return "stable"
    if growth_pct > GROWTH_THRESHOLD_PCT:
        return "growing"
    if growth_pct < -GROWTH_THRESHOLD_PCT:
        return "declining"
    return "stable"


def get_trends(institution_name: str, index: CompletionsIndex | None = None) -> TrendReport | None:
    """Build a completions trend report for an institution, or None if unknown."""
    if index is None:
        index = completions_index()

    key = resolve_key(institution_name, index.keys())
    if key is None:
        LOGGER.info("No completions data found for: %s", institution_name)
        return None

    records = index[key]
    if not records:
        return None

    LOGGER.info("Completions: matched %r to %r (%s records)", institution_name, key, len(records))

    by_program: dict[str, dict[int, int]] = {}
    cip_codes: dict[str, str] = {}
    for record in records:
        years = by_program.setdefault(record.program, {})
        years[record.year] = years.get(record.year, 0) + record.completions
        cip_codes.setdefault(record.program, record.cip_code)

    programs: list[ProgramTrend] = []
    for program, years in by_program.items():
        start_year = min(years)
        end_year = max(years)
        start_val = years[start_year]
        end_val = years[end_year]

        if start_val == 0 and end_val == 0:
            continue

        growth_pct, trend = classify_growth(start_val, end_val)
        programs.append(
            ProgramTrend(
                program=program,
                cip_code=cip_codes[program],
                start_year=start_year,
                end_year=end_year,
                start_completions=start_val,
                end_completions=end_val,
                growth_pct=growth_pct,
                trend=trend,
                yearly_data=dict(sorted(years.items())),
            )
        )

    programs.sort(key=lambda p: p.end_completions, reverse=True)

    total_start = sum(p.start_completions for p in programs)
    total_end = sum(p.end_completions for p in programs)
    overall_growth = round((total_end - total_start) / total_start * 100) if total_start > 0 else None
    overall = OverallTrend(
        start_year=REPORT_START_YEAR,
        end_year=REPORT_END_YEAR,
        start_completions=total_start,
        end_completions=total_end,
        growth_pct=overall_growth,
        trend=_trend_label(overall_growth),
    )

    growing = [p for p in programs if p.trend == "growing" and p.end_completions >= _FASTEST_GROWING_MIN_END]
    fastest_growing = sorted(growing, key=lambda p: p.growth_pct or 0, reverse=True)[:3]
    largest = [p for p in programs if p.end_completions >= _LARGEST_MIN_END][:5]
    declining = [p for p in programs if p.trend == "declining" and p.start_completions >= _DECLINING_MIN_START][:3]

    return TrendReport(
        institution=institution_name,
        matched_key=key,
        total_programs=len(programs),
        overall=overall,
        fastest_growing=fastest_growing,
        largest_programs=largest,
        declining=declining,
        programs=programs,
        summary=format_trend_summary(institution_name, overall, fastest_growing, largest, declining),
    )


def format_trend_summary(
    institution: str,
    overall: OverallTrend,
    growing: list[ProgramTrend],
    largest: list[ProgramTrend],
    declining: list[ProgramTrend],
) -> str:
    """Render a trend report as plain text for the brief context."""
    lines = [
        "=== ONLINE GRADUATE COMPLETIONS TRENDS ===",
        f"Institution: {institution}",
        f"Period: {overall.start_year}-{overall.end_year}",
        "",
        f"OVERALL: {overall.start_completions} -> {overall.end_completions} completions",
    ]
    if overall.growth_pct is not None:
        lines.append(f"   {_signed(overall.growth_pct)}% change")
    lines.append("")

    if largest:
        lines.append(f"LARGEST ONLINE GRAD PROGRAMS ({overall.end_year}):")
        for p in largest:
            change = f" ({_signed(p.growth_pct)}%)" if p.growth_pct is not None else ""
            lines.append(f"   - {p.program}: {p.end_completions} completions{change}")
        lines.append("")

    if growing:
        lines.append("FASTEST GROWING:")
        for p in growing:
            lines.append(f"   - {p.program}: {p.start_completions} -> {p.end_completions} (+{p.growth_pct}%)")
        lines.append("")

    if declining:
        lines.append("DECLINING PROGRAMS:")
        for p in declining:
            lines.append(f"   - {p.program}: {p.start_completions} -> {p.end_completions} ({p.growth_pct}%)")
        lines.append("")

    lines.append("SALES INSIGHT:")
    growth = overall.growth_pct
    if growth is not None and growth > 30:
        lines.append("   Strong online grad growth suggests working infrastructure; there is room to scale further or launch adjacent programs.")
    elif growth is not None and growth < -10:
        lines.append("   Declining completions may point to enrollment challenges that marketing and enrollment services can address.")
    elif overall.end_completions < 100:
        lines.append("   Smaller online footprint; opportunity to grow existing programs or launch new ones efficiently.")
    else:
        lines.append("   Established online presence; explore program-specific opportunities or new program launches.")

    return "\n".join(lines)


def _signed(value: int | None) -> str:
    if value is None:
        return ""
    return f"+{value}" if value > 0 else str(value)
