"""Auto-assign unassigned leads job."""
import argparse
import logging
import sys
from datetime import datetime
from typing import Optional

import pandas as pd
from tqdm import tqdm

from src.match.errors import VehicleNotFound
from src.match.service import MatchingService, build_service
from src.storage.repository import DuckDBLeadStore
from src.utils.cli import non_negative_int
from src.utils.io import timestamped_output_path, write_csv
from src.utils.logs import setup_job_logging

logger = logging.getLogger(__name__)


def run_auto_assign(
    store: DuckDBLeadStore,
    service: MatchingService,
    dry_run: bool = False,
    limit: Optional[int] = None
) -> pd.DataFrame:
    """
    Decide and apply auto-assignment for open, unassigned leads.

    Each lead is scored against fresh workload counts, so an assignment made
    earlier in the run is reflected in later decisions.

    Args:
        store: Lead store used for reading leads and writing assignments
        service: Matching service
        dry_run: Decide only, do not write assignments
        limit: Maximum number of leads to process

    Returns:
        DataFrame with one decision row per lead
    """
    leads_df = store.unassigned_leads(limit)
    logger.info(f"Found {len(leads_df)} unassigned leads")

    results = []
    for _, lead in tqdm(leads_df.iterrows(), total=len(leads_df), desc="Assigning leads"):
        row = {
            "lead_id": lead["id"],
            "vehicle_id": lead["vehicle_id"],
            "should_auto_assign": False,
            "salesperson_id": None,
            "score": None,
            "assigned": False,
            "status": "manual_review",
        }

        try:
            decision = service.should_auto_assign(lead["vehicle_id"])
        except VehicleNotFound as e:
            logger.warning(f"Lead {lead['id']} skipped: {e}")
            row["status"] = "vehicle_not_found"
            results.append(row)
            continue

        row["should_auto_assign"] = decision.should_auto_assign
        row["salesperson_id"] = decision.salesperson_id
        row["score"] = decision.score

        if decision.should_auto_assign:
            if dry_run:
                row["status"] = "would_assign"
            else:
                row["assigned"] = store.assign_lead(lead["id"], decision.salesperson_id)
                row["status"] = "assigned" if row["assigned"] else "assign_failed"

        results.append(row)

    columns = ["lead_id", "vehicle_id", "should_auto_assign", "salesperson_id", "score", "assigned", "status"]
    return pd.DataFrame(results, columns=columns)


def main(argv=None) -> int:
    """Main entry point for the auto-assign job."""
    parser = argparse.ArgumentParser(description="Auto-assign unassigned leads to salespeople")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Dry run mode: decide but do not write assignments"
    )
    parser.add_argument(
        "--limit",
        type=non_negative_int,
        help="Limit number of leads to process"
    )
    args = parser.parse_args(argv)

    setup_job_logging("auto_assign_leads")
    start_time = datetime.now()
    logger.info("Starting auto-assign job...")

    store = DuckDBLeadStore()
    store.init_schema()
    service = build_service(store)
    decisions_df = run_auto_assign(store, service, dry_run=args.dry_run, limit=args.limit)

    if decisions_df.empty:
        logger.warning("No unassigned leads found")
        return 0

    output_path = timestamped_output_path("auto_assign_decisions")
    write_csv(decisions_df, output_path)

    assigned = int(decisions_df["assigned"].sum())
    would_assign = int((decisions_df["status"] == "would_assign").sum())
    duration = (datetime.now() - start_time).total_seconds()
    if args.dry_run:
        logger.info(f"DRY RUN: would assign {would_assign} of {len(decisions_df)} leads")
    logger.info(
        f"Auto-assign complete: {assigned} of {len(decisions_df)} leads assigned in {duration:.2f} seconds",
        extra={"duration": duration}
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
