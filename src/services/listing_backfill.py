"""Backfill optional listing fields on legacy records.

Only adds missing fields: completed_bookings_count, province (inferred from
the location text when possible) and coords. Never deletes or hides a
listing.
"""

from typing import Optional

from pydantic import BaseModel, Field

from src.services import supabase_client
from src.services.geocoding import infer_province
from src.utils.errors import SupabaseError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)


class BackfillSummary(BaseModel):
    completed_bookings_count_added: int = 0
    province_added: int = 0
    province_inferred: int = 0
    coords_set_to_null: int = 0


class BackfillReport(BaseModel):
    """Outcome of one backfill run."""
    dry_run: bool = False
    total_scanned: int = 0
    modified: list[dict] = Field(default_factory=list)
    errors: list[dict] = Field(default_factory=list)
    summary: BackfillSummary = Field(default_factory=BackfillSummary)


def plan_backfill(record: dict, summary: Optional[BackfillSummary] = None) -> dict:
    """Updates needed to give one stored listing every optional field."""
    updates = {}

    if record.get("completed_bookings_count") is None:
        updates["completed_bookings_count"] = 0
        if summary:
            summary.completed_bookings_count_added += 1

    province = record.get("province")
    if not province or not str(province).strip():
        inferred = infer_province(record.get("location"))
        updates["province"] = inferred
        if summary:
            if inferred:
                summary.province_inferred += 1
            else:
                summary.province_added += 1

    if "coords" not in record:
        updates["coords"] = None
        if summary:
            summary.coords_set_to_null += 1

    return updates


async def backfill_listings(dry_run: bool = False) -> BackfillReport:
    """
    Scan every listing and add missing optional fields.

    Per-listing write failures are recorded in the report and do not stop
    the run. Failure to read the collection propagates as SupabaseError.
    """
    report = BackfillReport(dry_run=dry_run)

    with log_timing("backfill_listings", logger=logger, dry_run=dry_run):
        records = await supabase_client.get_all_listings()
        report.total_scanned = len(records)

        for record in records:
            listing_id = record.get("listing_id")
            updates = plan_backfill(record, report.summary)
            if not updates:
                continue

            if not dry_run:
                try:
                    await supabase_client.update_listing(listing_id, updates)
                except SupabaseError as e:
                    logger.error("Backfill update failed", listing_id=listing_id, error=str(e))
                    report.errors.append({"listing_id": listing_id, "error": str(e)})
                    continue

            report.modified.append({
                "listing_id": listing_id,
                "title": record.get("title") or "Untitled",
                "updates": sorted(updates),
            })

    logger.info(
        "Listing backfill finished",
        dry_run=dry_run,
        total_scanned=report.total_scanned,
        modified=len(report.modified),
        errors=len(report.errors),
    )
    return report
