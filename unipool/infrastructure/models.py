"""
SQLAlchemy ORM models.

Tables
------
* ``rides``     -- driver-posted trips with a fixed seat capacity
* ``bookings``  -- passenger seat requests against a ride

``bookings.ride_id`` is deliberately not a foreign key: deleting a ride
keeps its (rejected) bookings as history.

Constraints
-----------
CHECK constraints back up the seat ledger at the storage layer:
``0 <= seats_available <= seats_total`` and ``seats_booked > 0``.

Indexes
-------
* **B-Tree** on ``driver_id``, ``departure_time``, ``is_active`` for ride
  listings; on ``ride_id``, ``passenger_id``, ``status`` for booking
  look-ups used by the ledger cascade.
"""

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    func,
)

from .database import Base
from unipool.domain.enums import BookingStatus, RideStatus


def _new_id() -> str:
    return str(uuid.uuid4())


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class RideModel(Base):
    __tablename__ = "rides"

    id = Column(String(36), primary_key=True, default=_new_id)
    driver_id = Column(String(64), nullable=False)
    vehicle_id = Column(String(64), nullable=True)

    source_lat = Column(Float, nullable=False)
    source_lng = Column(Float, nullable=False)
    source_address = Column(String(255), nullable=False)
    dest_lat = Column(Float, nullable=False)
    dest_lng = Column(Float, nullable=False)
    dest_address = Column(String(255), nullable=False)
    departure_time = Column(DateTime(timezone=True), nullable=False)

    seats_total = Column(Integer, nullable=False)
    seats_available = Column(Integer, nullable=False)
    cost_per_seat = Column(Integer, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    status = Column(
        Enum(RideStatus, name="ridestatus", values_callable=_enum_values),
        default=RideStatus.SCHEDULED,
        nullable=False,
    )
    current_lat = Column(Float, nullable=True)
    current_lng = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("seats_total > 0", name="ck_rides_seats_total_positive"),
        CheckConstraint(
            "seats_available >= 0", name="ck_rides_seats_available_non_negative"
        ),
        CheckConstraint(
            "seats_available <= seats_total", name="ck_rides_seats_within_total"
        ),
        Index("idx_rides_driver", "driver_id"),
        Index("idx_rides_departure", "departure_time"),
        Index("idx_rides_active", "is_active"),
    )
    __mapper_args__ = {"eager_defaults": True}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "driverId": self.driver_id,
            "seatsTotal": self.seats_total,
            "seatsAvailable": self.seats_available,
            "status": RideStatus(self.status).value,
            "isActive": self.is_active,
        }


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=_new_id)
    ride_id = Column(String(36), nullable=False)
    passenger_id = Column(String(64), nullable=False)
    status = Column(
        Enum(BookingStatus, name="bookingstatus", values_callable=_enum_values),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    seats_booked = Column(Integer, default=1, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("seats_booked > 0", name="ck_bookings_seats_positive"),
        Index("idx_bookings_ride", "ride_id"),
        Index("idx_bookings_passenger", "passenger_id"),
        Index("idx_bookings_status", "status"),
    )
    __mapper_args__ = {"eager_defaults": True}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "rideId": self.ride_id,
            "passengerId": self.passenger_id,
            "status": BookingStatus(self.status).value,
            "seatsBooked": self.seats_booked,
        }
