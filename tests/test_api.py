from datetime import timedelta

from conftest import auth_headers, make_promotion, make_user
from budget_hotel.models.base import UserRole
from budget_hotel.utils.datetime_utils import utcnow


def _stay(days_ahead=30, nights=2):
    check_in = utcnow().date() + timedelta(days=days_ahead)
    return check_in.isoformat(), (check_in + timedelta(days=nights)).isoformat()


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "X-Request-ID" in response.headers


def test_missing_token_is_401_with_error_envelope(client):
    response = client.get("/api/v1/bookings")

    assert response.status_code == 401
    error = response.json()["error"]
    assert error["code"] == "AUTHENTICATION_FAILED"
    assert "timestamp" in error


def test_validation_errors_use_envelope(client):
    response = client.post("/api/v1/auth/register", json={"email": "not-an-email"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_register_verify_login(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"full_name": "Jane Guest", "email": "jane@budgethotel.com", "password": "secret123"},
    )
    assert response.status_code == 201
    code = response.json()["fallback_code"]
    assert response.json()["email_sent"] is False

    response = client.post("/api/v1/auth/verify-email", json={"email": "jane@budgethotel.com", "code": code})
    assert response.status_code == 200

    response = client.post("/api/v1/auth/login", json={"email": "jane@budgethotel.com", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "jane@budgethotel.com"
    assert me.json()["role"] == "Customer"


def test_public_catalog_lists_room_types(client, room_type, room):
    response = client.get("/api/v1/room-types")

    assert response.status_code == 200
    assert room_type.id in [item["id"] for item in response.json()["items"]]


def test_booking_flow_over_http(client, customer, room_type, room):
    check_in, check_out = _stay()
    headers = auth_headers(customer)

    quote = client.post(
        "/api/v1/bookings/quote",
        json={"room_type_id": room_type.id, "check_in": check_in, "check_out": check_out},
        headers=headers,
    )
    assert quote.status_code == 200
    assert quote.json()["total"] == "200.00"

    created = client.post(
        "/api/v1/bookings",
        json={"room_type_id": room_type.id, "check_in": check_in, "check_out": check_out},
        headers=headers,
    )
    assert created.status_code == 201
    booking = created.json()
    assert booking["status"] == "Pending"

    paid = client.post(
        f"/api/v1/bookings/{booking['id']}/pay",
        json={"amount": "200.00", "payment_method": "CreditCard"},
        headers=headers,
    )
    assert paid.status_code == 200
    assert paid.json()["status"] == "Confirmed"
    assert paid.json()["transaction_id"].startswith("CC-")

    again = client.post(
        "/api/v1/bookings",
        json={"room_id": room.id, "check_in": check_in, "check_out": check_out},
        headers=headers,
    )
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "ROOM_UNAVAILABLE"

    mine = client.get("/api/v1/bookings", headers=headers)
    assert [b["id"] for b in mine.json()] == [booking["id"]]


def test_unknown_promotion_is_404(client, customer, room_type, room):
    check_in, check_out = _stay()

    response = client.post(
        "/api/v1/bookings/quote",
        json={
            "room_type_id": room_type.id,
            "check_in": check_in,
            "check_out": check_out,
            "promotion_code": "MISSING",
        },
        headers=auth_headers(customer),
    )

    assert response.status_code == 404


def test_customer_cannot_reach_admin_routes(client, customer):
    response = client.get("/api/v1/admin/bookings", headers=auth_headers(customer))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "AUTHORIZATION_FAILED"


def test_staff_export_is_csv_attachment(client, staff):
    response = client.get("/api/v1/admin/bookings/export", headers=auth_headers(staff))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    assert response.content.startswith("\ufeff".encode("utf-8"))


def test_manager_lists_only_own_hotel(client, db, manager, hotel):
    other_manager = make_user(db, UserRole.MANAGER, email="other.manager@budgethotel.com")

    response = client.get("/api/v1/admin/hotels", headers=auth_headers(manager))
    assert [h["id"] for h in response.json()["items"]] == [hotel.id]

    unassigned = client.get("/api/v1/admin/hotels", headers=auth_headers(other_manager))
    assert unassigned.status_code == 403


def test_admin_promotion_listing_reports_usage(client, db, admin):
    make_promotion(db, code="WELCOME", start_date=utcnow() - timedelta(days=1), end_date=utcnow() + timedelta(days=5))

    response = client.get("/api/v1/admin/promotions", headers=auth_headers(admin))

    assert response.status_code == 200
    item = response.json()["items"][0]
    assert item["code"] == "WELCOME"
    assert item["usage_count"] == 0
