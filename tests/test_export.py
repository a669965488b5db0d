import csv
import io
from datetime import date, datetime

from conftest import context, make_user
from budget_hotel.models.base import PaymentMethod, UserRole
from budget_hotel.services.booking_service import BookingService
from budget_hotel.services.export_service import (
    CSV_HEADERS,
    ExportService,
    export_filename,
    render_bookings_csv,
)


def test_empty_export_has_bom_and_header_only():
    content = render_bookings_csv([])

    assert content.startswith("\ufeff")
    assert content == "\ufeff" + ",".join(CSV_HEADERS) + "\r\n"


def test_export_rows_use_us_dates_and_quote_commas(db, room, admin):
    guest = make_user(db, UserRole.CUSTOMER, email="smith@budgethotel.com")
    guest.full_name = "Smith, Jane"
    db.commit()
    service = BookingService(db)
    booking = service.create_booking(context(guest), room.id, date(2030, 6, 10), date(2030, 6, 12))
    service.confirm_payment(context(guest), booking.id, booking.total_price, PaymentMethod.CREDIT_CARD)

    content = ExportService(db).export_bookings_csv(context(admin).scope)

    assert content.startswith("\ufeff")
    assert "\r\n" in content
    assert '"Smith, Jane"' in content
    rows = list(csv.reader(io.StringIO(content.lstrip("\ufeff"))))
    assert rows[0] == CSV_HEADERS
    row = dict(zip(rows[0], rows[1]))
    assert row["BookingId"] == booking.id
    assert row["UserEmail"] == "smith@budgethotel.com"
    assert row["RoomNumber"] == "101"
    assert row["CheckIn"] == "06/10/2030"
    assert row["CheckOut"] == "06/12/2030"
    assert row["TotalPrice"] == "200.00"
    assert row["Status"] == "Confirmed"
    assert row["PaymentMethod"] == "CreditCard"


def test_export_filename_is_timestamped():
    assert export_filename(datetime(2030, 6, 1, 9, 5, 7)) == "bookings_20300601_090507.csv"
