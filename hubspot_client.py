"""HubSpot CRM integration: read the enrichment queue, write briefs back."""

from __future__ import annotations

import logging
import os
from typing import Any

import requests

from models import Contact

HUBSPOT_API_BASE_URL = "https://api.hubapi.com"
REQUEST_TIMEOUT_SECONDS = 10
SUMMARY_PROPERTY = "prospect_research_summary"
# HubSpot multi-line text properties hold at most 65,536 characters.
MAX_PROPERTY_CHARS = 65_000
_LIST_PAGE_MAX = 100

_CONTACT_PROPERTIES = ("email", "firstname", "lastname", "company", "jobtitle", SUMMARY_PROPERTY)

LOGGER = logging.getLogger(__name__)


def get_contacts_in_list(list_id: str, limit: int = 10) -> list[Contact]:
    """Return up to ``limit`` contacts from a list that have no brief yet.

    Over-fetches so that already-enriched contacts can be filtered out.
    """
    params: list[tuple[str, Any]] = [("count", min(limit * 3, _LIST_PAGE_MAX))]
    params.extend(("property", prop) for prop in _CONTACT_PROPERTIES)

    LOGGER.info("Fetching contacts from HubSpot list %s", list_id)
    response = _request(
        "GET",
        f"{HUBSPOT_API_BASE_URL}/contacts/v1/lists/{list_id}/contacts/all",
        params=params,
    )
    body = response.json()
    raw_contacts = (body.get("contacts") or []) if isinstance(body, dict) else []
    LOGGER.info("HubSpot returned %s contacts", len(raw_contacts))

    contacts: list[Contact] = []
    for raw in raw_contacts:
        if not isinstance(raw, dict):
            continue
        vid = raw.get("vid")
        if vid is None:
            LOGGER.warning("Skipping HubSpot list entry without a vid")
            continue
        properties = raw.get("properties") or {}
        if _property_value(properties, SUMMARY_PROPERTY):
            continue
        contacts.append(
            Contact(
                contact_id=str(vid),
                email=_property_value(properties, "email"),
                first_name=_property_value(properties, "firstname"),
                last_name=_property_value(properties, "lastname"),
                company=_property_value(properties, "company"),
                title=_property_value(properties, "jobtitle"),
            )
        )

    contacts = contacts[:limit]
    LOGGER.info("After filtering: %s unenriched contacts", len(contacts))
    return contacts


def update_contact_summary(contact_id: str, summary: str) -> dict[str, Any]:
    """Write the formatted brief into the contact's summary property."""
    payload = {"properties": {SUMMARY_PROPERTY: _truncate(summary or "Enrichment failed")}}
    response = _request(
        "PATCH",
        f"{HUBSPOT_API_BASE_URL}/crm/v3/objects/contacts/{contact_id}",
        json_payload=payload,
    )
    return response.json()


def _property_value(properties: dict[str, Any], name: str) -> str | None:
    prop = properties.get(name)
    value = prop.get("value") if isinstance(prop, dict) else None
    return value.strip() if isinstance(value, str) and value.strip() else None


def _truncate(text: str, max_len: int = MAX_PROPERTY_CHARS) -> str:
    return text if len(text) <= max_len else f"{text[: max_len - 3]}..."


def _headers() -> dict[str, str]:
    token = os.getenv("HUBSPOT_ACCESS_TOKEN")
    if not token:
        raise RuntimeError("HUBSPOT_ACCESS_TOKEN environment variable is required")
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }


def _request(
    method: str,
    url: str,
    *,
    params: list[tuple[str, Any]] | None = None,
    json_payload: dict[str, Any] | None = None,
) -> requests.Response:
    """Send one HubSpot request; any transport error or non-2xx status raises RuntimeError."""
    try:
        response = requests.request(
            method=method,
            url=url,
            headers=_headers(),
            params=params,
            json=json_payload,
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise RuntimeError(f"HubSpot request failed: {exc}") from exc

    if not response.ok:
        LOGGER.error("HubSpot API error: %s - %s", response.status_code, response.text[:500])
        raise RuntimeError(f"HubSpot API error {response.status_code}: {response.text[:500]}")
    return response
