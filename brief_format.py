"""Plain-text rendering of a prospect analysis for the CRM summary field."""

from __future__ import annotations

from typing import Any

_WIDTH = 78
_RAW_PREVIEW_CHARS = 2000


def format_strategic_summary(analysis: dict[str, Any], name: str, institution: str) -> str:
    """Render every analysis section that is present, in a fixed order."""
    lines: list[str] = [
        "=" * _WIDTH,
        f"STRATEGIC OUTREACH PLAN: {name} @ {institution}".center(_WIDTH),
        "=" * _WIDTH,
        "",
    ]

    if "error" in analysis:
        _header(lines, "ANALYSIS UNAVAILABLE")
        lines.append(f"Error: {_as_text(analysis.get('error'))}")
        raw = _as_text(analysis.get("raw"))
        if raw:
            lines.append("Raw model output:")
            lines.append(_truncate(raw, _RAW_PREVIEW_CHARS))
        lines.append("")
        return "\n".join(lines)

    summary = _as_text(analysis.get("executive_summary"))
    if summary:
        _header(lines, "EXECUTIVE SUMMARY")
        lines.append(summary)
        lines.append("")

    for key, title, renderer in _SECTIONS:
        section = analysis.get(key)
        if isinstance(section, dict) and section:
            _header(lines, title)
            renderer(lines, section)
            lines.append("")

    return "\n".join(lines)


def _contact_profile(lines: list[str], p: dict[str, Any]) -> None:
    lines.append(f"Scope Level: {_as_text(p.get('scope_level'))}")
    lines.append(f"Division: {_as_text(p.get('division'))}")
    programs = _as_list(p.get("relevant_programs"))
    if programs:
        lines.append(f"Relevant Programs: {', '.join(programs)}")


def _persona(lines: list[str], p: dict[str, Any]) -> None:
    lines.append(f"Leader Type: {_as_text(p.get('leader_type'))}")
    _optional(lines, "Evidence", p.get("persona_evidence"))
    _bullets(lines, "Likely Priorities:", p.get("likely_priorities"), "-")
    _optional(lines, "Communication Style", p.get("communication_preferences"))


def _tone(lines: list[str], t: dict[str, Any]) -> None:
    lines.append(f"Recommended Tone: {_as_text(t.get('recommended_tone'))}")
    lines.append(
        f"Formality: {_as_text(t.get('formality_level'))} | "
        f"Technical Depth: {_as_text(t.get('technical_depth'))} | "
        f"Urgency: {_as_text(t.get('urgency_level'))}"
    )
    _optional(lines, "Reasoning", t.get("tone_reasoning"))
    use = _as_list(t.get("phrases_to_use"))
    if use:
        lines.append(f"Phrases to Use: {' | '.join(use)}")
    avoid = _as_list(t.get("phrases_to_avoid"))
    if avoid:
        lines.append(f"Phrases to Avoid: {' | '.join(avoid)}")


def _evidence(lines: list[str], e: dict[str, Any]) -> None:
    _bullets(lines, "Confirmed Facts:", e.get("confirmed_facts"), "+")
    _bullets(lines, "Inferred Insights:", e.get("inferred_insights"), "->")
    personal = _as_text(e.get("news_about_contact_personally"))
    if personal:
        lines.append("")
        lines.append(f"NEWS ABOUT CONTACT: {personal}")
        lines.append('   Use "your", not their name, when referencing it.')
    _bullets(lines, "Data Gaps:", e.get("data_gaps"), "?")


def _pain_points(lines: list[str], ppa: dict[str, Any]) -> None:
    for rank, (key, label) in enumerate(
        (("primary_pain", "PRIMARY"), ("secondary_pain", "SECONDARY"), ("tertiary_pain", "TERTIARY")),
        start=1,
    ):
        pain = ppa.get(key)
        if not isinstance(pain, dict):
            continue
        lines.append(f"#{rank} {label}: {_as_text(pain.get('pain'))}")
        lines.append(f"   Evidence: {_as_text(pain.get('evidence'))}")
        lines.append(f"   Solution: {_as_text(pain.get('solution'))}")
        lines.append(f"   Use in Email: {_as_text(pain.get('email_to_mention'))}")
        lines.append("")


def _services(lines: list[str], sp: dict[str, Any]) -> None:
    primary = sp.get("primary_service")
    if isinstance(primary, dict):
        lines.append(f"#1 {_as_text(primary.get('service'))}")
        lines.append(f"   Why: {_as_text(primary.get('why_primary'))}")
        lines.append(f"   Proof Point: {_as_text(primary.get('proof_point'))}")
    secondary = sp.get("secondary_service")
    if isinstance(secondary, dict):
        lines.append(f"#2 {_as_text(secondary.get('service'))}")
        lines.append(f"   Why: {_as_text(secondary.get('why_relevant'))}")
        lines.append(f"   Mention in: Email {_as_text(secondary.get('when_to_mention'))}")
    avoid = _as_list(sp.get("services_to_avoid"))
    if avoid:
        lines.append(f"Avoid: {', '.join(avoid)}")
    lines.append(f"Course Design Appropriate: {_as_text(sp.get('course_design_appropriate')) or 'UNKNOWN'}")


# (key, label) pairs rendered for each email, after its purpose line.
_EMAIL_FIELDS: dict[str, tuple[tuple[str, str], ...]] = {
    "email_1": (("lead_with", "Lead with"), ("angle", "Angle"), ("tone_note", "Tone")),
    "email_2": (("pivot_to", "Pivot to"), ("case_study", "Case Study"), ("connection", "Connection")),
    "email_3": (("lead_with", "Lead with"), ("service_focus", "Service Focus"), ("value_prop", "Value Prop")),
    "email_4": (("new_angle", "New Angle"), ("detail_to_reference", "Reference"), ("service_focus", "Service Focus")),
    "email_5": (("circle_back_to", "Circle back to"), ("easy_out", "Easy out")),
}
_CALENDAR_EMAILS = frozenset({"email_3", "email_4", "email_5"})


def _emails(lines: list[str], ebs: dict[str, Any]) -> None:
    for index, (key, fields) in enumerate(_EMAIL_FIELDS.items(), start=1):
        email = ebs.get(key)
        if not isinstance(email, dict):
            continue
        suffix = " - NEW THREAD" if key == "email_4" else ""
        lines.append(
            f"EMAIL {index}: {_as_text(email.get('purpose'))} "
            f"({_as_text(email.get('word_count'))} words){suffix}"
        )
        for field_key, label in fields:
            value = _as_text(email.get(field_key))
            if value:
                lines.append(f"  {label}: {value}")
        if key in _CALENDAR_EMAILS:
            lines.append("  [Include calendar link]")
        lines.append("")


def _references(lines: list[str], sr: dict[str, Any]) -> None:
    _bullets(lines, "MUST Mention:", sr.get("must_mention"), "*")
    _bullets(lines, "Good to Mention:", sr.get("good_to_mention"), "o")
    _bullets(lines, "DO NOT Mention:", sr.get("do_not_mention"), "x")


def _objections(lines: list[str], oa: dict[str, Any]) -> None:
    for item in oa.get("likely_objections") or []:
        if not isinstance(item, dict):
            continue
        lines.append(f'Objection: "{_as_text(item.get("objection"))}"')
        lines.append(f"  -> Counter: {_as_text(item.get('counter_approach'))}")
    builders = _as_list(oa.get("trust_builders"))
    if builders:
        lines.append("")
        _bullets(lines, "Trust Builders:", builders, "-")


def _subject_lines(lines: list[str], sls: dict[str, Any]) -> None:
    for key, label in (("email_1", "Email 1"), ("email_4", "Email 4")):
        value = _as_text(sls.get(key))
        if value:
            lines.append(f'{label}: "{value}"')


_SECTIONS = (
    ("contact_profile", "CONTACT SCOPE", _contact_profile),
    ("persona_analysis", "PERSONA ANALYSIS", _persona),
    ("tone_strategy", "TONE & COMMUNICATION STRATEGY", _tone),
    ("evidence_summary", "EVIDENCE SUMMARY", _evidence),
    ("pain_point_analysis", "PAIN POINT ANALYSIS (Ranked)", _pain_points),
    ("service_prioritization", "SERVICE PRIORITIZATION", _services),
    ("email_by_email_strategy", "EMAIL-BY-EMAIL STRATEGY", _emails),
    ("specific_references", "SPECIFIC REFERENCES", _references),
    ("objection_anticipation", "OBJECTION ANTICIPATION", _objections),
    ("subject_line_suggestions", "SUBJECT LINE SUGGESTIONS", _subject_lines),
)


def _header(lines: list[str], title: str) -> None:
    lines.append("+" + "-" * (_WIDTH - 2) + "+")
    lines.append(f"| {title}".ljust(_WIDTH - 1) + "|")
    lines.append("+" + "-" * (_WIDTH - 2) + "+")


def _optional(lines: list[str], label: str, value: Any) -> None:
    text = _as_text(value)
    if text:
        lines.append(f"{label}: {text}")


def _bullets(lines: list[str], heading: str, values: Any, marker: str) -> None:
    items = _as_list(values)
    if not items:
        return
    lines.append(heading)
    lines.extend(f"  {marker} {item}" for item in items)


def _as_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [text for text in (_as_text(v) for v in value) if text]


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _truncate(text: str, max_len: int) -> str:
    return text if len(text) <= max_len else f"{text[: max_len - 3]}..."
