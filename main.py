"""CLI entrypoint for the scheduled prospect enrichment run."""

from __future__ import annotations

import argparse
import json
import logging

from dotenv import load_dotenv

import pipeline
from csv_sink import brief_already_exists, write_brief_entry


def parse_args() -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Enrich queued HubSpot contacts with prospect research briefs")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of contacts to process (default: ENRICH_BATCH_SIZE or 8)",
    )
    parser.add_argument(
        "--list-id",
        default=None,
        help="HubSpot list to read the queue from (default: HUBSPOT_LIST_ID or 1241)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Write briefs to the local CSV (BRIEF_CSV_PATH) instead of updating HubSpot",
    )
    return parser.parse_args()


def run(limit: int | None, list_id: str | None, dry_run: bool) -> dict:
    """Run one batch and return the JSON-able batch summary."""
    kwargs: dict = {}
    if limit is not None:
        kwargs["batch_size"] = limit
    if list_id:
        kwargs["list_id"] = list_id
    if dry_run:
        kwargs["writer"] = write_brief_entry
        kwargs["skip"] = brief_already_exists
        logging.info("[dry-run] Briefs go to CSV; HubSpot will not be updated")

    result = pipeline.run_batch(**kwargs)
    if result.queue_empty:
        logging.info("Queue empty")
        return {"message": "Queue empty"}
    return result.to_dict()


def main() -> None:
    """Initialize config and execute one enrichment batch."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args()
    summary = run(limit=args.limit, list_id=args.list_id, dry_run=args.dry_run)
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
