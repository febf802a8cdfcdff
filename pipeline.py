"""Per-contact enrichment and the time-boxed batch loop."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable

from bio_finder import find_bio_page, scrape_bio_content
from completions import completions_index, get_trends
from fanout import SourceTask, fetch_or_absent, gather_sources
from hubspot_client import get_contacts_in_list, update_contact_summary
from llm_client import analyze_prospect
from models import BatchResult, Contact, EnrichmentBundle, ProspectAnalysis
from news_finder import get_institution_news
from scholar_client import get_citation_profile
from scorecard_client import get_institution_stats

HUBSPOT_LIST_ID = os.getenv("HUBSPOT_LIST_ID", "1241")
BATCH_SIZE = int(os.getenv("ENRICH_BATCH_SIZE", "8"))
TIME_BUDGET_SECONDS = float(os.getenv("ENRICH_TIME_BUDGET_SECONDS", "300"))

STATS_TIMEOUT_SECONDS = 6
COMPLETIONS_TIMEOUT_SECONDS = 6
CITATIONS_TIMEOUT_SECONDS = 6
NEWS_TIMEOUT_SECONDS = 8
BIO_SEARCH_TIMEOUT_SECONDS = 10
BIO_SCRAPE_TIMEOUT_SECONDS = 5

LOGGER = logging.getLogger(__name__)

BriefWriter = Callable[[Contact, ProspectAnalysis], None]


def gather_enrichment(contact: Contact) -> EnrichmentBundle:
    """Run the five lookups concurrently and merge whatever came back."""
    name = contact.full_name
    company = contact.company or ""
    domain = contact.email_domain

    results = gather_sources({
        "stats": SourceTask(lambda: get_institution_stats(company), STATS_TIMEOUT_SECONDS),
        "completions": SourceTask(lambda: get_trends(company), COMPLETIONS_TIMEOUT_SECONDS),
        "citations": SourceTask(lambda: get_citation_profile(name, company), CITATIONS_TIMEOUT_SECONDS),
        "news": SourceTask(lambda: get_institution_news(company, domain), NEWS_TIMEOUT_SECONDS, default=[]),
        "bio_url": SourceTask(lambda: find_bio_page(name, domain), BIO_SEARCH_TIMEOUT_SECONDS),
    })

    bundle = EnrichmentBundle()

    if results["stats"]:
        bundle.stats = results["stats"]
        bundle.sources.append("IPEDS")
        LOGGER.info("   IPEDS: %s students", bundle.stats.total_enrollment or "?")

    if results["completions"]:
        bundle.completions = results["completions"]
        bundle.sources.append("Completions")
        overall = bundle.completions.overall
        LOGGER.info(
            "   Completions: %s -> %s (%s%%)",
            overall.start_completions,
            overall.end_completions,
            overall.growth_pct,
        )

    if results["citations"]:
        bundle.citations = results["citations"]
        bundle.sources.append("Scholar")
        LOGGER.info("   Scholar: %s citations", bundle.citations.citations)

    if results["news"]:
        bundle.news = list(results["news"])
        bundle.sources.append("News")
        LOGGER.info("   News: %s articles", len(bundle.news))

    if results["bio_url"]:
        bundle.bio_url = results["bio_url"]
        LOGGER.info("   Bio URL: %s", bundle.bio_url)
        bio = fetch_or_absent(
            lambda: scrape_bio_content(bundle.bio_url),
            BIO_SCRAPE_TIMEOUT_SECONDS,
            name="bio_scrape",
        )
        if bio and bio.content:
            bundle.bio = bio
            bundle.sources.append("Bio")
            LOGGER.info("   Bio scraped: %s chars", len(bio.content))

    return bundle


def write_to_crm(contact: Contact, result: ProspectAnalysis) -> None:
    update_contact_summary(contact.contact_id, result.formatted_summary)
    LOGGER.info("   HubSpot updated for contact_id=%s", contact.contact_id)


def enrich_contact(contact: Contact, writer: BriefWriter = write_to_crm) -> ProspectAnalysis:
    """Gather, summarize and persist one contact. Summarizer and writer errors propagate."""
    bundle = gather_enrichment(contact)
    result = analyze_prospect(contact, bundle)
    writer(contact, result)
    return result


def run_batch(
    list_id: str = HUBSPOT_LIST_ID,
    batch_size: int = BATCH_SIZE,
    time_budget_seconds: float = TIME_BUDGET_SECONDS,
    writer: BriefWriter = write_to_crm,
    skip: Callable[[Contact], bool] | None = None,
) -> BatchResult:
    """Enrich one batch of queued contacts, one at a time, within a time budget.

    The budget is checked before each contact; a contact already in progress
    always finishes. A contact-list failure propagates to the caller.
    """
    started = time.monotonic()
    LOGGER.info("Prospect enrichment: list=%s batch_size=%s", list_id, batch_size)

    contacts = get_contacts_in_list(list_id, batch_size)
    result = BatchResult(queue_empty=not contacts)
    if contacts:
        # The completions timeout covers lookups only, never the CSV load.
        completions_index()

    for contact in contacts:
        name = contact.full_name
        if not name or not contact.company:
            LOGGER.info("Skipping contact_id=%s: missing name or company", contact.contact_id)
            continue
        if skip is not None and skip(contact):
            LOGGER.info("Skipping contact_id=%s: already exported", contact.contact_id)
            continue

        if time.monotonic() - started > time_budget_seconds:
            LOGGER.info("Time budget of %ss reached; stopping batch", time_budget_seconds)
            break

        LOGGER.info("Enriching %s @ %s", name, contact.company)
        try:
            analysis = enrich_contact(contact, writer=writer)
        except Exception as exc:  # one contact never stops the batch
            result.failed += 1
            LOGGER.exception("Failed enriching contact_id=%s: %s", contact.contact_id, exc)
            continue

        result.processed += 1
        result.contacts.append(name)
        LOGGER.info("Done %s - sources: %s", name, ", ".join(analysis.sources) or "none")

    result.elapsed_seconds = time.monotonic() - started
    LOGGER.info(
        "Batch complete: processed=%s failed=%s time=%.1fs",
        result.processed,
        result.failed,
        result.elapsed_seconds,
    )
    return result
