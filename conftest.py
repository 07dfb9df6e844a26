import os

# Point the app at an in-memory database before anything imports db.session
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

import models  # noqa: F401  registers every table
from core.deps import get_current_driver
from db.session import build_engine, get_session
from main import app
from models.time_card import TimeCard, TimeCardStatus
from models.vehicle import Vehicle
from utils.timezone_helpers import local_date

# Wednesday Oct 16 2024, 11:00 AM Pacific
NOW = datetime(2024, 10, 16, 18, 0, tzinfo=timezone.utc)

DRIVER = {"uid": "driver-1", "name": "Test Driver", "email": "driver@test.com", "role": "driver"}
OTHER_DRIVER = {"uid": "driver-2", "name": "Other Driver", "email": "other@test.com", "role": "driver"}
ADMIN = {"uid": "admin-1", "name": "Dispatch", "email": "admin@test.com", "role": "owner"}


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def vehicles(session):
    fleet = {
        "sprinter": Vehicle(vehicle_number="Sprinter 1", make="Mercedes-Benz", model="Sprinter"),
        "transit": Vehicle(vehicle_number="Transit 1", make="Ford", model="Transit"),
        "retired": Vehicle(vehicle_number="Bus 9", make="Ford", model="E-450", is_active=False),
    }
    for vehicle in fleet.values():
        session.add(vehicle)
    session.commit()
    for vehicle in fleet.values():
        session.refresh(vehicle)
    return fleet


def _client_for(session, user):
    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_current_driver] = lambda: user
    return TestClient(app)


@pytest.fixture
def client(session):
    yield _client_for(session, DRIVER)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_client(session):
    yield _client_for(session, ADMIN)
    app.dependency_overrides.clear()


def make_card(
    session: Session,
    clock_in: datetime,
    driver: dict = DRIVER,
    vehicle_id: Optional[int] = None,
    hours: Optional[float] = None,
    status: TimeCardStatus = TimeCardStatus.ON_DUTY,
) -> TimeCard:
    """Insert a time card; passing hours closes it that many hours after clock-in."""
    card = TimeCard(
        driver_id=driver["uid"],
        driver_name=driver["name"],
        vehicle_id=vehicle_id,
        date=local_date(clock_in),
        clock_in_time=clock_in,
        status=status,
    )
    if hours is not None:
        card.clock_out_time = clock_in + timedelta(hours=hours)
        card.on_duty_hours = hours
        card.driver_signature = driver["name"]
        card.signature_timestamp = card.clock_out_time
        if status == TimeCardStatus.ON_DUTY:
            card.status = TimeCardStatus.COMPLETED
    session.add(card)
    session.commit()
    session.refresh(card)
    return card
