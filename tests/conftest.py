from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from agrorent.config import Settings, update_settings
from agrorent.database import create_tables, get_db
from agrorent.models.booking import Booking, BookingStatus
from agrorent.models.equipment import Equipment, EquipmentCategory, PricingType
from agrorent.models.user import User

# Pune, used as the default point for listings and searches
PUNE = (18.5204, 73.8567)


@pytest.fixture(autouse=True)
def settings():
    # Fresh defaults per test so no config file on disk leaks in.
    s = Settings()
    update_settings(s)
    yield s


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    from agrorent.main import create_app

    app = create_app(use_lifespan=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(name=None, phone=None, **kwargs):
        counter["n"] += 1
        user = User(
            name=name or f"User {counter['n']}",
            phone=phone or f"98765{counter['n']:05d}",
            password_hash="not-a-real-hash",
            **kwargs,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_equipment(db):
    def _make(owner, **kwargs):
        values = {
            "name": "Mahindra 575 DI",
            "category": EquipmentCategory.TRACTOR,
            "price_per_hour": 100.0,
            "price_per_day": 1000.0,
            "price_per_week": 6000.0,
            "latitude": PUNE[0],
            "longitude": PUNE[1],
            "images": [],
        }
        values.update(kwargs)
        equipment = Equipment(
            owner_id=owner.id,
            owner_name=owner.name,
            owner_phone=owner.phone,
            **values,
        )
        db.add(equipment)
        db.commit()
        db.refresh(equipment)
        return equipment

    return _make


@pytest.fixture
def make_booking(db):
    def _make(equipment, rent_taker, start=None, end=None, status=BookingStatus.PENDING, **kwargs):
        start = start or datetime(2026, 3, 2, 9, 0)
        end = end or start + timedelta(hours=8)
        booking = Booking(
            equipment_id=equipment.id,
            equipment_name=equipment.name,
            equipment_category=equipment.category.value,
            renter_id=equipment.owner_id,
            renter_name=equipment.owner_name,
            renter_phone=equipment.owner_phone,
            rent_taker_id=rent_taker.id,
            rent_taker_name=rent_taker.name,
            rent_taker_phone=rent_taker.phone,
            start_date=start,
            end_date=end,
            duration_hours=int((end - start).total_seconds() // 3600),
            total_cost=0.0,
            pricing_type=PricingType.HOURLY,
            status=status,
            **kwargs,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make
