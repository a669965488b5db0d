"""
Booking export.

Produces the spreadsheet-friendly CSV used by the staff bookings screen:
UTF-8 with a byte order mark, RFC 4180 quoting, and US-style dates.
"""

import csv
import io
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from budget_hotel.core.pagination import sanitize_search_term
from budget_hotel.models import Booking
from budget_hotel.models.base import BookingStatus, UserRole
from budget_hotel.repositories.booking_repository import BookingRepository
from budget_hotel.services.access import AccessScope
from budget_hotel.services.base_service import BaseService
from budget_hotel.utils.datetime_utils import format_us_date, format_us_datetime

CSV_HEADERS = [
    "BookingId",
    "UserEmail",
    "UserName",
    "RoomNumber",
    "RoomType",
    "CheckIn",
    "CheckOut",
    "TotalPrice",
    "Status",
    "BookingDate",
    "PaymentStatus",
    "PaymentMethod",
]

BOM = "\ufeff"


def booking_row(booking: Booking) -> List[str]:
    user = booking.user
    room = booking.room
    return [
        booking.id,
        user.email if user else "",
        user.full_name if user else "",
        room.room_number if room else "",
        room.room_type.name if room and room.room_type else "",
        format_us_date(booking.check_in_date),
        format_us_date(booking.check_out_date),
        f"{booking.total_price:.2f}",
        booking.status.value,
        format_us_datetime(booking.booking_date),
        booking.payment_status.value,
        booking.payment_method.value if booking.payment_method else "",
    ]


def render_bookings_csv(bookings: List[Booking]) -> str:
    output = io.StringIO()
    output.write(BOM)
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(CSV_HEADERS)
    for booking in bookings:
        writer.writerow(booking_row(booking))
    return output.getvalue()


def export_filename(at_time: datetime) -> str:
    return f"bookings_{at_time:%Y%m%d_%H%M%S}.csv"


class ExportService(BaseService):

    def __init__(self, db_session: Session):
        super().__init__(db_session)
        self.bookings = BookingRepository(db_session)

    def export_bookings_csv(
        self,
        scope: AccessScope,
        search: Optional[str] = None,
        status: Optional[BookingStatus] = None,
    ) -> str:
        """
        Every booking the caller could list with the same filters, newest first.

        Returns:
            CSV document as text, BOM included
        """
        scope.require_any()
        search = sanitize_search_term(search)
        include_deleted = scope.has_role(UserRole.ADMIN, UserRole.MANAGER)
        bookings = self.bookings.find_all_scoped(scope, search, status, include_deleted)
        self._log_operation("bookings exported", extra={"rows": len(bookings), "by": scope.user_id})
        return render_bookings_csv(bookings)
