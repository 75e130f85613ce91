"""Suggest salespeople for a vehicle job."""
import argparse
import logging
import sys
from datetime import datetime

from src.match.errors import VehicleNotFound
from src.match.reasons import compose_reasons
from src.match.scorer import scored_to_frame
from src.match.service import build_service
from src.storage.repository import DuckDBLeadStore
from src.utils.cli import non_negative_int
from src.utils.io import write_csv
from src.utils.logs import setup_job_logging

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    """Main entry point for salesperson suggestions."""
    parser = argparse.ArgumentParser(description="Recommend salespeople for a vehicle")
    parser.add_argument(
        "--vehicle-id",
        type=str,
        required=True,
        help="Vehicle the lead is interested in"
    )
    parser.add_argument(
        "--limit",
        type=non_negative_int,
        help="Number of recommendations to return (default: MATCH_DEFAULT_LIMIT)"
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Optional CSV path for the recommendations"
    )
    args = parser.parse_args(argv)

    setup_job_logging("suggest_salesperson")
    start_time = datetime.now()

    store = DuckDBLeadStore()
    store.init_schema()
    service = build_service(store)
    try:
        recommendations = service.get_top_recommendations(args.vehicle_id, args.limit)
    except VehicleNotFound as e:
        logger.error(str(e))
        return 1

    if not recommendations:
        logger.warning(f"No eligible salesperson for vehicle {args.vehicle_id}")
    for rank, candidate in enumerate(recommendations, start=1):
        logger.info(
            f"#{rank} {candidate.salesperson.name or candidate.salesperson_id} "
            f"score={candidate.score} {candidate.breakdown.scores()} - {compose_reasons(candidate.reasons)}"
        )

    if args.output:
        write_csv(scored_to_frame(args.vehicle_id, recommendations), args.output)

    duration = (datetime.now() - start_time).total_seconds()
    logger.info(f"Suggestions complete in {duration:.2f} seconds", extra={"duration": duration})
    return 0


if __name__ == "__main__":
    sys.exit(main())
