"""Shared typed models for the enrichment pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Contact:
    """Normalized CRM contact awaiting enrichment."""

    contact_id: str
    email: str | None
    first_name: str | None
    last_name: str | None
    company: str | None
    title: str | None

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def email_domain(self) -> str | None:
        if not self.email or "@" not in self.email:
            return None
        return self.email.split("@", 1)[1].strip().lower() or None


@dataclass(frozen=True, slots=True)
class CompletionRecord:
    """One (institution, program, year) degree-completion count."""

    institution: str
    program: str
    cip_code: str
    year: int
    completions: int


@dataclass(frozen=True, slots=True)
class ProgramTrend:
    program: str
    cip_code: str
    start_year: int
    end_year: int
    start_completions: int
    end_completions: int
    growth_pct: int | None
    trend: str
    yearly_data: dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class OverallTrend:
    start_year: int
    end_year: int
    start_completions: int
    end_completions: int
    growth_pct: int | None
    trend: str


@dataclass(frozen=True, slots=True)
class TrendReport:
    """Completions growth summary for one institution."""

    institution: str
    matched_key: str
    total_programs: int
    overall: OverallTrend
    fastest_growing: list[ProgramTrend]
    largest_programs: list[ProgramTrend]
    declining: list[ProgramTrend]
    programs: list[ProgramTrend]
    summary: str


@dataclass(frozen=True, slots=True)
class CandidateMatch:
    """A scored candidate awaiting disambiguation."""

    payload: dict[str, Any]
    score: int
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class InstitutionStats:
    name: str
    city: str | None
    state: str | None
    ownership: str
    total_enrollment: int | None
    graduate_enrollment: int | None
    acceptance_rate: float | None
    tuition_in_state: int | None
    tuition_out_of_state: int | None


@dataclass(frozen=True, slots=True)
class CitationProfile:
    name: str
    citations: int
    h_index: int
    papers: int
    topics: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class NewsItem:
    headline: str
    summary: str | None = None
    date: str | None = None
    url: str | None = None
    source: str = "RSS"


@dataclass(frozen=True, slots=True)
class BioContent:
    url: str
    content: str
    education: str | None = None
    experience: str | None = None
    title: str | None = None


@dataclass(slots=True)
class EnrichmentBundle:
    """Findings for one contact, assembled by the orchestrator.

    ``sources`` lists the labels of lookups that contributed data, in the
    order they were merged.
    """

    stats: InstitutionStats | None = None
    completions: TrendReport | None = None
    citations: CitationProfile | None = None
    news: list[NewsItem] = field(default_factory=list)
    bio_url: str | None = None
    bio: BioContent | None = None
    sources: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ProspectAnalysis:
    """Summarizer output: structured analysis plus its CRM-ready rendering."""

    analysis: dict[str, Any]
    formatted_summary: str
    confidence: str
    sources: list[str]
    timestamp: str


@dataclass(slots=True)
class BatchResult:
    processed: int = 0
    failed: int = 0
    elapsed_seconds: float = 0.0
    contacts: list[str] = field(default_factory=list)
    queue_empty: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "processed": self.processed,
            "failed": self.failed,
            "time": round(self.elapsed_seconds, 1),
            "contacts": list(self.contacts),
        }
