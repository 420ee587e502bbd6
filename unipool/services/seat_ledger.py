"""
Seat Ledger
===========

Keeps every ride's ``seats_available`` consistent with the statuses of its
bookings:

    seats_total - seats_available == sum(seats_booked of PENDING/ACCEPTED bookings)

Concurrency safety
------------------
* **Booking creation** reserves seats with one conditional UPDATE
  (``seats_available >= n``), so two passengers racing for the last seat
  can never both succeed.  Seats are held from request time; accepting a
  booking does not touch the counter.
* **Transitions** lock the ride row and then the booking row
  (``SELECT ... FOR UPDATE``), the same order the delete cascade uses,
  and write the new status with a compare-and-swap on the old one, so a
  release is applied at most once even under concurrent requests.
* Each operation is one transaction; notifications go out after commit and
  can never undo it.

State machine
-------------
::

    pending  --accept (driver)-------------> accepted   no seat change
    pending  --reject (driver)-------------> rejected   release seats
    pending  --cancel (driver|passenger)---> cancelled  release seats
    accepted --cancel (driver|passenger)---> cancelled  release seats
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from unipool.domain.entities import Booking, Ride
from unipool.domain.enums import BookingStatus
from unipool.domain.exceptions import (
    CapacityExceeded,
    InfrastructureFailure,
    InvalidRequest,
    InvalidTransition,
    NotFound,
    Unauthorized,
)
from unipool.infrastructure.models import BookingModel
from unipool.infrastructure.notifier import (
    Notifier,
    booking_channel,
    driver_channel,
    passenger_channel,
)
from unipool.infrastructure.repositories import BookingRepository, RideRepository
from unipool.services.unit_of_work import SqlAlchemyUnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerAudit:
    ride_id: str
    seats_total: int
    seats_available: int
    seats_held: int

    @property
    def consistent(self) -> bool:
        return self.seats_total - self.seats_available == self.seats_held


class SeatLedger:
    def __init__(self, session: AsyncSession, notifier: Notifier):
        self.session = session
        self.notifier = notifier

    def _unit_of_work(self) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(self.session, self.notifier)

    # ── Create ────────────────────────────────────────────────────────

    async def create_booking(
        self, ride_id: str, passenger_id: str, seats_requested: int
    ) -> BookingModel:
        if seats_requested < 1:
            raise InvalidRequest("At least one seat must be requested")

        async with self._unit_of_work() as uow:
            if not await uow.rides.try_reserve_seats(ride_id, seats_requested):
                ride_row = await uow.rides.get_for_update(ride_id)
                if ride_row is None:
                    raise NotFound("Ride not found")
                ride = Ride.from_row(ride_row)
                if not ride.is_bookable:
                    raise InvalidTransition("Ride is not accepting bookings")
                # Seats released since the first attempt; the row is locked now.
                if not ride.can_reserve(seats_requested) or not (
                    await uow.rides.try_reserve_seats(ride_id, seats_requested)
                ):
                    logger.warning(
                        "Ride %s: %d seats requested, %d available",
                        ride_id,
                        seats_requested,
                        ride_row.seats_available,
                    )
                    raise CapacityExceeded(ride_row.seats_available, seats_requested)

            booking = await uow.bookings.create(
                BookingModel(
                    ride_id=ride_id,
                    passenger_id=passenger_id,
                    seats_booked=seats_requested,
                    status=BookingStatus.PENDING,
                )
            )
            ride_row = await uow.rides.get_for_update(ride_id)

            payload = booking.to_dict()
            uow.notify(booking_channel(booking.id), "booking.created", payload)
            uow.notify(
                driver_channel(ride_row.driver_id),
                "booking.created",
                {"booking": payload, "ride": ride_row.to_dict()},
            )
            await uow.commit()

        logger.info(
            "Booking %s created: %d seats on ride %s (%d left)",
            booking.id,
            seats_requested,
            ride_id,
            ride_row.seats_available,
        )
        return booking

    # ── Transition ────────────────────────────────────────────────────

    async def transition_booking(
        self, booking_id: str, caller_id: str, new_status: BookingStatus
    ) -> BookingModel:
        async with self._unit_of_work() as uow:
            # Ride before booking, the same order as delete_ride.
            ride_id = await uow.bookings.get_ride_id(booking_id)
            if ride_id is None:
                raise NotFound("Booking not found")
            ride_row = await uow.rides.get_for_update(ride_id)
            if ride_row is None:
                raise NotFound("Ride not found")
            booking_row = await uow.bookings.get_for_update(booking_id)
            if booking_row is None:
                raise NotFound("Booking not found")

            booking = Booking.from_row(booking_row)
            booking.authorize(caller_id, Ride.from_row(ride_row), new_status)

            previous = booking.status
            released = booking.transition_to(new_status)

            if not await uow.bookings.compare_and_set_status(
                booking_id, previous, new_status
            ):
                raise InvalidTransition("Booking was changed by another request")
            if released and not await uow.rides.release_seats(ride_row.id, released):
                raise InfrastructureFailure(
                    f"Ride {ride_row.id} cannot take back {released} seats"
                )

            await self.session.refresh(booking_row)
            await self.session.refresh(ride_row)

            payload = booking_row.to_dict()
            envelope = {"booking": payload, "ride": ride_row.to_dict()}
            uow.notify(booking_channel(booking_id), "booking.updated", payload)
            uow.notify(driver_channel(ride_row.driver_id), "booking.updated", envelope)
            uow.notify(
                passenger_channel(booking_row.passenger_id), "booking.updated", envelope
            )
            await uow.commit()

        logger.info(
            "Booking %s %s -> %s by %s (released %d seats)",
            booking_id,
            previous.value,
            new_status.value,
            caller_id,
            released,
        )
        return booking_row

    # ── Delete cascade ────────────────────────────────────────────────

    async def delete_ride(self, ride_id: str, caller_id: str) -> list[BookingModel]:
        """
        Reject every seat-holding booking, then remove the ride.

        Seats are not handed back because the ride itself goes away.
        Returns the bookings that were force-rejected.
        """
        async with self._unit_of_work() as uow:
            ride_row = await uow.rides.get_for_update(ride_id)
            if ride_row is None:
                raise NotFound("Ride not found")
            if not Ride.from_row(ride_row).is_driver(caller_id):
                raise Unauthorized("Only the ride's driver can delete it")

            affected = await uow.bookings.list_seat_holding_for_update(ride_id)
            await uow.bookings.reject_seat_holding(ride_id)
            for booking_row in affected:
                await self.session.refresh(booking_row)

            ride_payload = ride_row.to_dict()
            ride_payload["isActive"] = False
            await uow.rides.delete(ride_row)

            for booking_row in affected:
                payload = booking_row.to_dict()
                envelope = {"booking": payload, "ride": ride_payload}
                uow.notify(booking_channel(booking_row.id), "booking.updated", payload)
                uow.notify(
                    passenger_channel(booking_row.passenger_id),
                    "booking.updated",
                    envelope,
                )
            uow.notify(
                driver_channel(ride_payload["driverId"]),
                "ride.deleted",
                {"ride": ride_payload, "rejected": [b.id for b in affected]},
            )
            await uow.commit()

        logger.info(
            "Ride %s deleted by %s; %d bookings rejected", ride_id, caller_id, len(affected)
        )
        return affected

    # ── Audit ─────────────────────────────────────────────────────────

    async def audit(self, ride_id: str) -> LedgerAudit:
        ride_row = await RideRepository(self.session).get_by_id(ride_id)
        if ride_row is None:
            raise NotFound("Ride not found")
        await self.session.refresh(ride_row)
        held = await BookingRepository(self.session).reserved_seats(ride_id)
        return LedgerAudit(
            ride_id=ride_id,
            seats_total=ride_row.seats_total,
            seats_available=ride_row.seats_available,
            seats_held=held,
        )
