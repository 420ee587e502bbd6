"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Booking``: enforces the booking lifecycle
  (PENDING -> ACCEPTED | REJECTED | CANCELLED, ACCEPTED -> CANCELLED) and
  reports how many seats a transition hands back to the ride.
- **State Pattern** on ``Ride``: SCHEDULED -> ONGOING -> COMPLETED.
- ``Ride.can_reserve`` tells the ledger whether a locked ride row can still
  take a request; the counter itself only moves in conditional UPDATEs.

These are plain objects; the persistent counterparts live in
``unipool.infrastructure.models`` and are converted with ``from_row``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .enums import (
    BOOKING_TRANSITIONS,
    DRIVER_ONLY_STATUSES,
    RIDE_TRANSITIONS,
    SEAT_HOLDING_STATUSES,
    BookingStatus,
    RideStatus,
)
from .exceptions import InvalidTransition, Unauthorized


@dataclass
class Ride:
    id: Optional[str] = None
    driver_id: str = ""
    seats_total: int = 1
    seats_available: int = 1
    status: RideStatus = RideStatus.SCHEDULED
    is_active: bool = True
    departure_time: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> "Ride":
        return cls(
            id=row.id,
            driver_id=row.driver_id,
            seats_total=row.seats_total,
            seats_available=row.seats_available,
            status=RideStatus(row.status),
            is_active=bool(row.is_active),
            departure_time=row.departure_time,
        )

    @property
    def is_bookable(self) -> bool:
        return self.is_active and self.status == RideStatus.SCHEDULED

    def is_driver(self, user_id: str) -> bool:
        return str(self.driver_id) == str(user_id)

    def can_reserve(self, seats: int) -> bool:
        return self.is_bookable and 0 < seats <= self.seats_available

    def transition_to(self, new_status: RideStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = RIDE_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidTransition(
                f"Cannot move ride from {self.status.value} to {new_status.value}"
            )
        self.status = new_status
        if new_status == RideStatus.COMPLETED:
            self.is_active = False


@dataclass
class Booking:
    id: Optional[str] = None
    ride_id: str = ""
    passenger_id: str = ""
    seats_booked: int = 1
    status: BookingStatus = BookingStatus.PENDING

    @classmethod
    def from_row(cls, row) -> "Booking":
        return cls(
            id=row.id,
            ride_id=row.ride_id,
            passenger_id=row.passenger_id,
            seats_booked=row.seats_booked,
            status=BookingStatus(row.status),
        )

    def authorize(self, caller_id: str, ride: Ride, new_status: BookingStatus) -> None:
        """Accept/reject belong to the driver; cancel to the driver or owner."""
        if ride.is_driver(caller_id):
            return
        if new_status in DRIVER_ONLY_STATUSES:
            raise Unauthorized("Only the ride's driver can accept or reject bookings")
        if str(self.passenger_id) != str(caller_id):
            raise Unauthorized("Not authorized to change this booking")

    def transition_to(self, new_status: BookingStatus) -> int:
        """
        Move to *new_status* if the transition is legal, else raise.

        Returns the number of seats the ride gets back.
        """
        allowed = BOOKING_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            if new_status in DRIVER_ONLY_STATUSES:
                raise InvalidTransition("Booking not pending")
            raise InvalidTransition(
                f"Cannot move booking from {self.status.value} to {new_status.value}"
            )
        released = self.seats_booked if new_status not in SEAT_HOLDING_STATUSES else 0
        self.status = new_status
        return released
