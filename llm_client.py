"""LLM summarization step: turn an enrichment bundle into an outreach strategy."""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from json import JSONDecodeError
from typing import Any

from openai import OpenAI

from brief_format import format_strategic_summary
from models import Contact, EnrichmentBundle, ProspectAnalysis

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-5.1")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.2"))
MAX_COMPLETION_TOKENS = 6000

LOGGER = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a senior sales strategist for a higher-education services partner
that helps universities grow ONLINE degree programs (marketing and recruitment,
enrollment services, student retention, new program market research, employer
partnerships, and, only where there is explicit evidence of need, course design).

Create a comprehensive outreach strategy that tells an email writer who this
person is, how to address them, what their likely pain points are, and exactly
what each email in a five-email sequence should say.

Rules:
1. No unfounded assumptions. Only state what the research supports; list
   missing information as data gaps. Never fabricate pain points.
2. Determine scope from the title: President/Provost/VP -> INSTITUTIONAL;
   Dean -> COLLEGE; Department Chair -> DEPARTMENT; Program Director -> PROGRAM.
   Only analyze data within that scope.
3. Completions data counts degrees awarded, not enrollment. Do not mix them up.
4. When news is about the contact personally, refer to it as "your ...".
5. Recommend course design only with explicit evidence of need.
6. Be specific: every recommendation must tie to the research provided.

Respond only with a valid JSON object. Do not include markdown.

Required JSON schema:
{
  "contact_profile": {"scope_level": "", "division": "", "relevant_programs": [], "scope_reasoning": ""},
  "persona_analysis": {"leader_type": "", "persona_evidence": "", "likely_priorities": [], "communication_preferences": ""},
  "tone_strategy": {"recommended_tone": "", "formality_level": "", "technical_depth": "", "urgency_level": "",
                    "tone_reasoning": "", "phrases_to_use": [], "phrases_to_avoid": []},
  "evidence_summary": {"confirmed_facts": [], "inferred_insights": [], "data_gaps": [], "news_about_contact_personally": ""},
  "pain_point_analysis": {
    "primary_pain": {"pain": "", "evidence": "", "solution": "", "email_to_mention": ""},
    "secondary_pain": {"pain": "", "evidence": "", "solution": "", "email_to_mention": ""},
    "tertiary_pain": {"pain": "", "evidence": "", "solution": "", "email_to_mention": ""}
  },
  "service_prioritization": {
    "primary_service": {"service": "", "why_primary": "", "proof_point": ""},
    "secondary_service": {"service": "", "why_relevant": "", "when_to_mention": ""},
    "services_to_avoid": [],
    "course_design_appropriate": "YES with evidence | NO | INSUFFICIENT DATA"
  },
  "email_by_email_strategy": {
    "email_1": {"purpose": "", "lead_with": "", "angle": "", "tone_note": "", "word_count": "50-75"},
    "email_2": {"purpose": "", "pivot_to": "", "case_study": "", "connection": "", "word_count": "40-60"},
    "email_3": {"purpose": "", "lead_with": "", "service_focus": "", "value_prop": "", "word_count": "90-120"},
    "email_4": {"purpose": "", "new_angle": "", "detail_to_reference": "", "service_focus": "", "word_count": "90-120"},
    "email_5": {"purpose": "", "circle_back_to": "", "easy_out": "", "word_count": "40-60"}
  },
  "specific_references": {"must_mention": [], "good_to_mention": [], "do_not_mention": []},
  "objection_anticipation": {"likely_objections": [{"objection": "", "counter_approach": ""}], "trust_builders": []},
  "subject_line_suggestions": {"email_1": "", "email_4": ""},
  "executive_summary": ""
}
"""


def analyze_prospect(contact: Contact, bundle: EnrichmentBundle) -> ProspectAnalysis:
    """Summarize one contact's research into a strategy plus its formatted brief.

    An unparseable model reply is kept as ``{"error", "raw"}`` rather than
    failing; missing credentials or API errors raise.
    """
    name = contact.full_name
    institution = contact.company or ""
    user_prompt = build_user_prompt(contact, bundle)

    LOGGER.info("Analyzing prospect %s @ %s (%s sources)", name, institution, len(bundle.sources))
    content = _complete(SYSTEM_PROMPT, user_prompt)

    try:
        analysis = parse_analysis_json(content)
    except RuntimeError as exc:
        LOGGER.error("Failed to parse analysis for %s: %s", name, exc)
        analysis = {"error": "Failed to parse analysis", "raw": content}

    return ProspectAnalysis(
        analysis=analysis,
        formatted_summary=format_strategic_summary(analysis, name, institution),
        confidence=confidence_level(bundle.sources),
        sources=list(bundle.sources),
        timestamp=datetime.now(UTC).isoformat(),
    )


def confidence_level(sources: list[str]) -> str:
    if len(sources) >= 3:
        return "high"
    if len(sources) >= 2:
        return "medium"
    return "low"


def _complete(system_prompt: str, user_prompt: str) -> str:
    """Dispatch to the configured provider and return the raw reply text."""
    provider = os.getenv("SUMMARY_PROVIDER", "openai").strip().lower()
    if provider == "anthropic":
        from anthropic_client import claude_json_reply  # noqa: PLC0415

        return claude_json_reply(system_prompt, user_prompt, max_tokens=MAX_COMPLETION_TOKENS)
    if provider != "openai":
        raise RuntimeError(f"Unsupported SUMMARY_PROVIDER: {provider}")

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is required")

    client = OpenAI(api_key=api_key)
    response = client.chat.completions.create(
        model=OPENAI_MODEL,
        temperature=OPENAI_TEMPERATURE,
        max_completion_tokens=MAX_COMPLETION_TOKENS,
        response_format={"type": "json_object"},
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    )
    content = response.choices[0].message.content
    if not content:
        raise RuntimeError("OpenAI returned an empty response")
    return content


def build_user_prompt(contact: Contact, bundle: EnrichmentBundle) -> str:
    return (
        "Create a comprehensive outreach strategy for this prospect:\n\n"
        f"PROSPECT: {contact.full_name}\n"
        f"TITLE: {contact.title or 'Unknown'}\n"
        f"INSTITUTION: {contact.company or 'Unknown'}\n\n"
        f"{build_context(bundle)}\n"
    )


def build_context(bundle: EnrichmentBundle) -> str:
    """Render the bundle as labelled text sections for the prompt."""
    sections: list[str] = []

    if bundle.bio and bundle.bio.content:
        section = "=== BIOGRAPHICAL INFORMATION ===\n" + bundle.bio.content
        if bundle.bio.education:
            section += f"\nEducation: {bundle.bio.education}"
        if bundle.bio.experience:
            section += f"\nExperience: {bundle.bio.experience}"
        section += f"\nSource: {bundle.bio.url}"
        sections.append(section)

    stats = bundle.stats
    if stats:
        lines = [
            "=== IPEDS INSTITUTIONAL DATA ===",
            "NOTE: This is ENROLLMENT data (students currently attending).",
            "",
            f"Institution: {stats.name}",
            f"Type: {stats.ownership}",
        ]
        if stats.city and stats.state:
            lines.append(f"Location: {stats.city}, {stats.state}")
        if stats.total_enrollment:
            lines.append(f"Total Enrollment: {stats.total_enrollment:,}")
        if stats.graduate_enrollment:
            lines.append(f"Graduate Enrollment (12-month): {stats.graduate_enrollment:,}")
        if stats.acceptance_rate is not None:
            lines.append(f"Acceptance Rate: {stats.acceptance_rate:.0%}")
        if stats.tuition_in_state:
            lines.append(f"Tuition (in-state): ${stats.tuition_in_state:,}")
        if stats.tuition_out_of_state:
            lines.append(f"Tuition (out-of-state): ${stats.tuition_out_of_state:,}")
        sections.append("\n".join(lines))

    citations = bundle.citations
    if citations:
        lines = [
            "=== ACADEMIC PROFILE (Semantic Scholar) ===",
            f"Total Citations: {citations.citations:,}",
            f"h-index: {citations.h_index}",
            f"Published Papers: {citations.papers}",
        ]
        if citations.topics:
            lines.append(f"Research Areas: {', '.join(citations.topics)}")
        sections.append("\n".join(lines))

    if bundle.news:
        lines = ["=== RECENT NEWS & ANNOUNCEMENTS ===", f"Found {len(bundle.news)} recent articles:", ""]
        for index, item in enumerate(bundle.news, start=1):
            lines.append(f'[{index}] "{item.headline}"')
            if item.date:
                lines.append(f"    Date: {item.date}")
            if item.summary:
                lines.append(f"    Summary: {item.summary}")
            if item.url:
                lines.append(f"    URL: {item.url}")
            lines.append("")
        sections.append("\n".join(lines))

    trends = bundle.completions
    if trends:
        overall = trends.overall
        lines = [
            f"=== ONLINE GRADUATE DEGREE COMPLETIONS (IPEDS {overall.start_year}-{overall.end_year}) ===",
            "IMPORTANT: This is DEGREES AWARDED, not enrollment. Completions = graduates.",
            "",
            f"Total Online Grad Completions: {overall.start_completions} ({overall.start_year}) "
            f"-> {overall.end_completions} ({overall.end_year})",
        ]
        if overall.growth_pct is not None:
            lines.append(f"5-Year Change: {_signed(overall.growth_pct)}%")
        lines.append(f"Trend: {overall.trend.upper()}")
        lines.append("")

        if trends.largest_programs:
            lines.append(f"Largest Online Grad Programs ({overall.end_year} completions):")
            for p in trends.largest_programs:
                change = f" [{_signed(p.growth_pct)}% since {p.start_year}]" if p.growth_pct is not None else ""
                lines.append(f"  - {p.program}: {p.end_completions} graduates{change}")
            lines.append("")
        if trends.fastest_growing:
            lines.append("Fastest Growing Programs:")
            for p in trends.fastest_growing:
                lines.append(f"  - {p.program}: {p.start_completions} -> {p.end_completions} [+{p.growth_pct}%]")
            lines.append("")
        if trends.declining:
            lines.append("DECLINING Programs:")
            for p in trends.declining:
                lines.append(f"  - {p.program}: {p.start_completions} -> {p.end_completions} [{p.growth_pct}%]")
            lines.append("")
        sections.append("\n".join(lines))

    return "\n\n".join(sections) or "Limited data available for this prospect."


def _signed(value: int) -> str:
    return f"+{value}" if value > 0 else str(value)


def parse_analysis_json(content: str) -> dict[str, Any]:
    """Parse possibly noisy model output into a strict JSON object."""
    try:
        parsed = json.loads(content)
    except JSONDecodeError:
        parsed = _extract_first_json_object(content)

    if not isinstance(parsed, dict):
        raise RuntimeError("Expected JSON object from model response")
    return parsed


def _extract_first_json_object(content: str) -> dict[str, Any]:
    """Extract the first decodable JSON object from an arbitrary string."""
    decoder = json.JSONDecoder()
    for index, char in enumerate(content):
        if char != "{":
            continue
        try:
            candidate, _ = decoder.raw_decode(content[index:])
        except JSONDecodeError:
            continue
        if isinstance(candidate, dict):
            return candidate
    raise RuntimeError("Could not extract valid JSON object from model output")
