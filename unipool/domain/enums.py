"""Domain enumerations and state-transition rules."""

import enum


class RideStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    ONGOING = "ongoing"
    COMPLETED = "completed"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


# State machine: maps current status -> set of valid next statuses
RIDE_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.SCHEDULED: {RideStatus.ONGOING, RideStatus.COMPLETED},
    RideStatus.ONGOING: {RideStatus.COMPLETED},
    RideStatus.COMPLETED: set(),
}

BOOKING_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {
        BookingStatus.ACCEPTED,
        BookingStatus.REJECTED,
        BookingStatus.CANCELLED,
    },
    BookingStatus.ACCEPTED: {BookingStatus.CANCELLED},
    BookingStatus.REJECTED: set(),
    BookingStatus.CANCELLED: set(),
}

# Statuses whose seats are held against the ride's capacity
SEAT_HOLDING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.ACCEPTED})

# Targets only the ride's driver may request
DRIVER_ONLY_STATUSES = frozenset({BookingStatus.ACCEPTED, BookingStatus.REJECTED})
