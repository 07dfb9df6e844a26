"""
Pairwise booking conflict check for the admin schedule view.

Two bookings conflict when both are live (not cancelled), they share a
driver or a vehicle, and their [start, end) windows overlap. Bookings that
merely touch (one ends when the next starts) do not conflict.

The scan is O(n^2) within a day, which is fine for one operator's daily
schedule of a few dozen tours.
"""

from typing import Iterable, List, Set

from models.booking import Booking, BookingStatus


def _shares_resource(a: Booking, b: Booking) -> bool:
    same_driver = a.driver_id is not None and a.driver_id == b.driver_id
    same_vehicle = a.vehicle_id is not None and a.vehicle_id == b.vehicle_id
    return same_driver or same_vehicle


def _overlaps(a: Booking, b: Booking) -> bool:
    return a.start_time < b.end_time and b.start_time < a.end_time


def find_conflicts(bookings: Iterable[Booking]) -> Set[int]:
    """Ids of every booking involved in at least one conflict."""
    live = sorted(
        (b for b in bookings if b.status != BookingStatus.CANCELLED),
        key=lambda b: (b.tour_date, b.start_time),
    )

    conflicting: Set[int] = set()
    for i, a in enumerate(live):
        for b in live[i + 1:]:
            # Sorted by date, so nothing further on can share a's day
            if b.tour_date != a.tour_date:
                break
            if _shares_resource(a, b) and _overlaps(a, b):
                conflicting.add(a.id)
                conflicting.add(b.id)
    return conflicting


def conflicting_bookings(bookings: Iterable[Booking]) -> List[Booking]:
    bookings = list(bookings)
    conflict_ids = find_conflicts(bookings)
    return [b for b in bookings if b.id in conflict_ids]
