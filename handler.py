"""HTTP-triggered entry point for the scheduled enrichment batch.

Deploy as a functions-framework HTTP function (``--target enrich_queue``) and
point the scheduler at it. The platform's execution ceiling is mirrored in
ENRICH_MAX_DURATION_SECONDS so the batch time budget never exceeds it.
"""

from __future__ import annotations

import logging
import os

from flask import jsonify
from functions_framework import http

import pipeline

MAX_DURATION_SECONDS = float(os.getenv("ENRICH_MAX_DURATION_SECONDS", "800"))

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
LOGGER = logging.getLogger(__name__)


@http
def enrich_queue(request):
    """Process one batch of queued contacts and report the outcome as JSON."""
    LOGGER.info("=" * 50)
    LOGGER.info("  PROSPECT ENRICHMENT (%s %s)", request.method, request.path)
    LOGGER.info("=" * 50)

    budget = min(pipeline.TIME_BUDGET_SECONDS, MAX_DURATION_SECONDS)
    try:
        result = pipeline.run_batch(time_budget_seconds=budget)
    except Exception as exc:
        LOGGER.exception("Fatal: enrichment batch failed: %s", exc)
        return jsonify({"error": str(exc)}), 500

    if result.queue_empty:
        return jsonify({"message": "Queue empty"}), 200

    LOGGER.info("=== %s contacts in %.1fs ===", result.processed, result.elapsed_seconds)
    return jsonify(result.to_dict()), 200
