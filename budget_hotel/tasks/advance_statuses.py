"""
Scheduled status sweep.

Run daily (for example from cron) to check in and check out bookings whose
dates have passed:

    python -m budget_hotel.tasks.advance_statuses
"""

import sys
from datetime import date
from typing import Optional

from budget_hotel.config.logging import setup_logging
from budget_hotel.core.logging import get_logger
from budget_hotel.db.session import session_scope
from budget_hotel.services.booking_service import BookingService, SweepResult
from budget_hotel.utils.datetime_utils import today as utc_today

logger = get_logger(__name__)


def run(on_date: Optional[date] = None) -> SweepResult:
    with session_scope() as db:
        result = BookingService(db).advance_statuses(on_date or utc_today())
    logger.info("Status sweep finished", extra=result.as_dict())
    return result


def main(argv=None) -> int:
    setup_logging()
    args = sys.argv[1:] if argv is None else argv
    on_date = date.fromisoformat(args[0]) if args else None
    result = run(on_date)
    print(f"no_show={result.no_show} checked_in={result.checked_in} checked_out={result.checked_out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
