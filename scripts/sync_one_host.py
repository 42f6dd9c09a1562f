import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse

import structlog

from sync_guesty.db.engine import engine
from sync_guesty.logging_config import setup_logging
from sync_guesty.services.calendar_sync import sync_calendar
from sync_guesty.services.listing_sync import sync_all_listings

setup_logging()
logger = structlog.get_logger(__name__)


def main() -> None:
    """
    Sync one host's listings inline, bypassing the job queue.

    Useful for debugging a single host against the real Guesty API.
    """
    parser = argparse.ArgumentParser(description="Run a Guesty listing sync for one host")
    parser.add_argument("host_id", type=int, help="Host ID to sync")
    parser.add_argument(
        "--calendars",
        action="store_true",
        help="Also sync the availability window of every synced listing",
    )
    args = parser.parse_args()

    logger.info("manual_sync_started", host_id=args.host_id, calendars=args.calendars)

    try:
        listings = sync_all_listings(engine, args.host_id)
        if args.calendars:
            for listing in listings:
                sync_calendar(engine, listing["id"])
        logger.info("manual_sync_completed", host_id=args.host_id, listings=len(listings))
    except Exception:
        logger.exception("manual_sync_failed", host_id=args.host_id)
        raise


if __name__ == "__main__":
    main()
