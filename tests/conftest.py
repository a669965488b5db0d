import os
import tempfile

# Settings are read at import time, so the environment is fixed first.
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["PASSWORD_BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-budget-hotel-suite"
os.environ["ENCRYPTION_KEY"] = "test-encryption-key"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="budget-hotel-uploads-")
os.environ.pop("SMTP_HOST", None)

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from budget_hotel.core.security import create_access_token, hash_password
from budget_hotel.db.session import get_db
from budget_hotel.main import create_app
from budget_hotel.models import Base, Hotel, Promotion, Room, RoomType, Service, User
from budget_hotel.models.base import DiscountType, UserRole
from budget_hotel.services.access import RequestContext

NOW = datetime(2030, 6, 1, 9, 0, 0)
PASSWORD = "Passw0rd123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    app = create_app()

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    return TestClient(app)


# --- factories ----------------------------------------------------------------

def make_hotel(db, name="Harbour Inn", city="Penang"):
    hotel = Hotel(
        name=name,
        address="1 Jalan Pantai",
        city=city,
        postal_code="10200",
        country="Malaysia",
    )
    db.add(hotel)
    db.commit()
    return hotel


def make_room_type(db, hotel, name="Standard Double", base_price="100.00"):
    room_type = RoomType(hotel_id=hotel.id, name=name, occupancy=2, base_price=Decimal(base_price))
    db.add(room_type)
    db.commit()
    return room_type


def make_room(db, room_type, number="101"):
    room = Room(room_type_id=room_type.id, room_number=number)
    db.add(room)
    db.commit()
    return room


def make_user(db, role=UserRole.CUSTOMER, email=None, hotel=None, verified=True):
    user = User(
        email=email or f"{role.value.lower()}@budgethotel.com",
        full_name=f"{role.value} Person",
        password_hash=hash_password(PASSWORD),
        role=role,
        hotel_id=hotel.id if hotel is not None else None,
        is_email_verified=verified,
    )
    db.add(user)
    db.commit()
    return user


def make_service(db, name="Breakfast", price="15.00"):
    service = Service(name=name, price=Decimal(price))
    db.add(service)
    db.commit()
    return service


def make_promotion(db, code="SAVE10", **overrides):
    fields = dict(
        code=code,
        discount_type=DiscountType.PERCENTAGE,
        value=Decimal("10"),
        start_date=NOW - timedelta(days=10),
        end_date=NOW + timedelta(days=10),
        is_active=True,
    )
    fields.update(overrides)
    promotion = Promotion(**fields)
    db.add(promotion)
    db.commit()
    return promotion


def context(user, now=NOW):
    return RequestContext.for_user(user, now)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}


@pytest.fixture
def hotel(db):
    return make_hotel(db)


@pytest.fixture
def room_type(db, hotel):
    return make_room_type(db, hotel)


@pytest.fixture
def room(db, room_type):
    return make_room(db, room_type)


@pytest.fixture
def customer(db):
    return make_user(db, UserRole.CUSTOMER, email="guest@budgethotel.com")


@pytest.fixture
def admin(db):
    return make_user(db, UserRole.ADMIN, email="boss@budgethotel.com")


@pytest.fixture
def manager(db, hotel):
    return make_user(db, UserRole.MANAGER, email="manager@budgethotel.com", hotel=hotel)


@pytest.fixture
def staff(db, hotel):
    return make_user(db, UserRole.STAFF, email="desk@budgethotel.com", hotel=hotel)
