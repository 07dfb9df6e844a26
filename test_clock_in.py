import logging
from datetime import date, timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from conftest import DRIVER, NOW, OTHER_DRIVER, make_card
from models.clock import GeoLocation
from models.time_card import SYSTEM_AUTO_CLOSE_SIGNATURE, TimeCard, TimeCardStatus
from models.vehicle import VehicleStatus
from services import clock_service
from services.clock_service import NON_DRIVING_LABEL, ClockService
from utils.datetime_helpers import as_utc
from utils.timezone_helpers import local_end_of_day


def open_cards(session, driver_id):
    return session.exec(
        select(TimeCard)
        .where(TimeCard.driver_id == driver_id)
        .where(TimeCard.clock_out_time.is_(None))
    ).all()


def test_clock_in_without_vehicle_starts_non_driving_shift(session):
    result = ClockService.clock_in(session, DRIVER["uid"], DRIVER["name"], now=NOW)

    assert result.status == "success"
    assert result.vehicle == NON_DRIVING_LABEL
    assert result.time_card.vehicle_id is None
    assert result.time_card.status == TimeCardStatus.ON_DUTY
    assert result.time_card.date == date(2024, 10, 16)
    assert result.time_card.work_reporting_location == "Location not provided"
    assert result.message == "Successfully clocked in at 11:00 AM"


def test_clock_in_with_vehicle_records_location(session, vehicles):
    result = ClockService.clock_in(
        session,
        DRIVER["uid"],
        DRIVER["name"],
        vehicle_id=vehicles["sprinter"].id,
        location=GeoLocation(latitude=46.0654, longitude=-118.343),
        now=NOW,
    )

    assert result.status == "success"
    assert result.vehicle == "Mercedes-Benz Sprinter (Sprinter 1)"
    assert result.time_card.vehicle_id == vehicles["sprinter"].id
    assert result.time_card.work_reporting_location == "Lat: 46.0654, Lng: -118.3430"
    assert "Remember to complete your pre-trip inspection" in result.reminders


def test_double_clock_in_returns_existing_card(session):
    first = ClockService.clock_in(session, DRIVER["uid"], now=NOW)
    second = ClockService.clock_in(session, DRIVER["uid"], now=NOW + timedelta(hours=1))

    assert second.status == "already_clocked_in"
    assert second.time_card.id == first.time_card.id
    assert second.message == "You're already clocked in as of 11:00 AM"
    assert len(open_cards(session, DRIVER["uid"])) == 1


def test_unknown_vehicle_is_rejected(session, vehicles):
    result = ClockService.clock_in(session, DRIVER["uid"], vehicle_id=9999, now=NOW)

    assert result.status == "invalid_vehicle"
    assert result.suggestions
    assert open_cards(session, DRIVER["uid"]) == []


def test_inactive_vehicle_is_rejected(session, vehicles):
    result = ClockService.clock_in(session, DRIVER["uid"], vehicle_id=vehicles["retired"].id, now=NOW)

    assert result.status == "vehicle_inactive"
    assert result.message == "Vehicle Bus 9 is not currently active"
    assert open_cards(session, DRIVER["uid"]) == []


def test_vehicle_held_by_another_driver_is_rejected(session, vehicles):
    make_card(session, NOW - timedelta(hours=2), driver=OTHER_DRIVER, vehicle_id=vehicles["sprinter"].id)

    result = ClockService.clock_in(session, DRIVER["uid"], vehicle_id=vehicles["sprinter"].id, now=NOW)

    assert result.status == "vehicle_in_use"
    assert result.current_holder == "Other Driver"
    assert "in use by Other Driver" in result.message
    assert open_cards(session, DRIVER["uid"]) == []


def test_vehicle_released_after_clock_out_can_be_taken(session, vehicles):
    make_card(
        session,
        NOW - timedelta(hours=5),
        driver=OTHER_DRIVER,
        vehicle_id=vehicles["sprinter"].id,
        hours=4,
    )

    result = ClockService.clock_in(session, DRIVER["uid"], vehicle_id=vehicles["sprinter"].id, now=NOW)

    assert result.status == "success"


def test_stale_previous_day_card_is_auto_closed_before_new_shift(session):
    # Monday 9:00 AM Pacific, never clocked out
    stale = make_card(session, NOW - timedelta(days=2, hours=2))

    result = ClockService.clock_in(session, DRIVER["uid"], now=NOW)

    assert result.status == "success"
    session.refresh(stale)
    assert stale.status == TimeCardStatus.AUTO_CLOSED
    assert stale.driver_signature == SYSTEM_AUTO_CLOSE_SIGNATURE
    assert as_utc(stale.clock_out_time) == local_end_of_day(date(2024, 10, 14))
    assert stale.on_duty_hours == pytest.approx(15.0, abs=0.001)
    assert [card.id for card in open_cards(session, DRIVER["uid"])] == [result.time_card.id]


def test_recent_previous_day_card_must_be_resolved_first(session):
    # Tuesday 9:00 PM Pacific, 14 hours ago
    previous = make_card(session, NOW - timedelta(hours=14))

    result = ClockService.clock_in(session, DRIVER["uid"], now=NOW)

    assert result.status == "incomplete_previous"
    assert result.previous_card.id == previous.id
    assert result.message == "You have an incomplete time card from Oct 15, 2024"
    assert len(open_cards(session, DRIVER["uid"])) == 1


def test_force_clock_out_closes_recent_previous_day_card(session):
    previous = make_card(session, NOW - timedelta(hours=14))

    result = ClockService.clock_in(session, DRIVER["uid"], force_clock_out=True, now=NOW)

    assert result.status == "success"
    session.refresh(previous)
    assert previous.status == TimeCardStatus.AUTO_CLOSED
    assert previous.clock_out_time is not None


def test_at_most_one_open_card_after_mixed_sequence(session, vehicles):
    ClockService.clock_in(session, DRIVER["uid"], vehicle_id=vehicles["transit"].id, now=NOW)
    ClockService.clock_in(session, DRIVER["uid"], now=NOW + timedelta(minutes=5))
    ClockService.clock_out(session, DRIVER["uid"], signature="Test Driver", now=NOW + timedelta(hours=1))
    ClockService.clock_in(session, DRIVER["uid"], vehicle_id=vehicles["sprinter"].id, now=NOW + timedelta(hours=2))
    ClockService.clock_in(session, DRIVER["uid"], now=NOW + timedelta(hours=3))

    assert len(open_cards(session, DRIVER["uid"])) == 1


def test_database_rejects_second_open_card_for_driver(session):
    make_card(session, NOW - timedelta(hours=1))

    with pytest.raises(IntegrityError):
        make_card(session, NOW)
    session.rollback()


def test_database_rejects_second_open_card_for_vehicle(session, vehicles):
    make_card(session, NOW - timedelta(hours=1), vehicle_id=vehicles["sprinter"].id)

    with pytest.raises(IntegrityError):
        make_card(session, NOW, driver=OTHER_DRIVER, vehicle_id=vehicles["sprinter"].id)
    session.rollback()


def test_out_of_service_vehicle_is_rejected(session, vehicles):
    sprinter = vehicles["sprinter"]
    sprinter.status = VehicleStatus.OUT_OF_SERVICE
    sprinter.defect_notes = "Brake warning light on"
    session.add(sprinter)
    session.commit()

    result = ClockService.clock_in(session, DRIVER["uid"], vehicle_id=sprinter.id, now=NOW)

    assert result.status == "vehicle_inactive"
    assert result.message == "Vehicle Sprinter 1 is out of service: Brake warning light on"
    assert open_cards(session, DRIVER["uid"]) == []


def miss_first_call(real):
    """Wrap a lookup so its first call sees nothing, like a read that ran before a concurrent commit."""
    calls = []

    def lookup(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            return None
        return real(*args, **kwargs)

    return lookup


def test_concurrent_clock_in_for_same_driver_returns_existing_card(session, monkeypatch, caplog):
    existing = make_card(session, NOW - timedelta(hours=1))
    monkeypatch.setattr(
        clock_service, "get_active_time_card", miss_first_call(clock_service.get_active_time_card)
    )

    with caplog.at_level(logging.WARNING, logger="services.clock_service"):
        result = ClockService.clock_in(session, DRIVER["uid"], now=NOW)

    assert result.status == "already_clocked_in"
    assert result.time_card.id == existing.id
    assert "lost a concurrent insert" in caplog.text
    assert len(open_cards(session, DRIVER["uid"])) == 1


def test_concurrent_clock_in_for_same_vehicle_returns_vehicle_in_use(session, vehicles, monkeypatch):
    make_card(session, NOW - timedelta(hours=1), driver=OTHER_DRIVER, vehicle_id=vehicles["sprinter"].id)
    monkeypatch.setattr(
        clock_service, "get_vehicle_holder", miss_first_call(clock_service.get_vehicle_holder)
    )

    result = ClockService.clock_in(session, DRIVER["uid"], vehicle_id=vehicles["sprinter"].id, now=NOW)

    assert result.status == "vehicle_in_use"
    assert result.current_holder == "Other Driver"
    assert open_cards(session, DRIVER["uid"]) == []
    assert len(open_cards(session, OTHER_DRIVER["uid"])) == 1
