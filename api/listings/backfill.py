"""Listing backfill endpoint (can be called via Vercel cron)."""

import json
import asyncio
import logging
from src.services.listing_backfill import backfill_listings
from src.utils.errors import SupabaseError
from src.utils.logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


def handler(request):
    """
    Backfill missing optional fields on all listings.

    Pass ``?dry_run=true`` to report without writing.
    """
    try:
        query_params = request.get("query", {}) or {}
        dry_run = str(query_params.get("dry_run", "false")).lower() == "true"

        try:
            loop = asyncio.get_event_loop()
        except RuntimeError:
            loop = None
        if loop is None or loop.is_closed():
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)

        report = loop.run_until_complete(backfill_listings(dry_run=dry_run))

        return {
            "statusCode": 200,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"ok": True, **report.model_dump(mode="json")})
        }

    except SupabaseError as e:
        logger.error(f"Listing store unavailable during backfill: {e}")
        return {
            "statusCode": 503,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"error": str(e)})
        }
    except Exception as e:
        logger.error(f"Error running listing backfill: {e}", exc_info=True)
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"error": str(e)})
        }
