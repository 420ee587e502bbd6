"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Seat counters are never written with a
read-modify-write: ``try_reserve_seats`` and ``release_seats`` are single
conditional UPDATE statements evaluated by the database.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import BookingModel, RideModel
from unipool.domain.enums import SEAT_HOLDING_STATUSES, BookingStatus, RideStatus

_SEAT_HOLDING = sorted(SEAT_HOLDING_STATUSES, key=lambda s: s.value)


class RideRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, ride: RideModel) -> RideModel:
        self.session.add(ride)
        await self.session.flush()
        return ride

    async def get_by_id(self, ride_id: str) -> Optional[RideModel]:
        return await self.session.get(RideModel, ride_id)

    async def get_for_update(self, ride_id: str) -> Optional[RideModel]:
        """SELECT ... FOR UPDATE so concurrent transitions serialise on the ride."""
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.id == ride_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_active(self) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.is_active.is_(True))
            .order_by(RideModel.departure_time)
        )
        return list(result.scalars().all())

    async def list_by_driver(self, driver_id: str) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.driver_id == driver_id)
            .order_by(RideModel.departure_time)
        )
        return list(result.scalars().all())

    async def try_reserve_seats(self, ride_id: str, seats: int) -> bool:
        """
        Atomically decrement ``seats_available`` by *seats*.

        Succeeds only if the ride is open for booking and has at least
        *seats* available at the moment the UPDATE runs.
        """
        result = await self.session.execute(
            update(RideModel)
            .where(
                RideModel.id == ride_id,
                RideModel.seats_available >= seats,
                RideModel.is_active.is_(True),
                RideModel.status == RideStatus.SCHEDULED,
            )
            .values(seats_available=RideModel.seats_available - seats)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def release_seats(self, ride_id: str, seats: int) -> bool:
        """Atomically give *seats* back, never past ``seats_total``."""
        result = await self.session.execute(
            update(RideModel)
            .where(
                RideModel.id == ride_id,
                RideModel.seats_available + seats <= RideModel.seats_total,
            )
            .values(seats_available=RideModel.seats_available + seats)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def delete(self, ride: RideModel) -> None:
        await self.session.delete(ride)
        await self.session.flush()


class BookingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, booking: BookingModel) -> BookingModel:
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_by_id(self, booking_id: str) -> Optional[BookingModel]:
        return await self.session.get(BookingModel, booking_id)

    async def get_ride_id(self, booking_id: str) -> Optional[str]:
        """Unlocked read used to lock the ride before the booking."""
        result = await self.session.execute(
            select(BookingModel.ride_id).where(BookingModel.id == booking_id)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, booking_id: str) -> Optional[BookingModel]:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_filtered(
        self,
        *,
        passenger_id: str | None = None,
        ride_id: str | None = None,
    ) -> list[BookingModel]:
        query = select(BookingModel).order_by(BookingModel.created_at)
        if passenger_id:
            query = query.where(BookingModel.passenger_id == passenger_id)
        if ride_id:
            query = query.where(BookingModel.ride_id == ride_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_seat_holding_for_update(self, ride_id: str) -> list[BookingModel]:
        result = await self.session.execute(
            select(BookingModel)
            .where(
                BookingModel.ride_id == ride_id,
                BookingModel.status.in_(_SEAT_HOLDING),
            )
            .with_for_update()
        )
        return list(result.scalars().all())

    async def compare_and_set_status(
        self,
        booking_id: str,
        expected: BookingStatus,
        new_status: BookingStatus,
    ) -> bool:
        """Write *new_status* only if the row still holds *expected*."""
        result = await self.session.execute(
            update(BookingModel)
            .where(BookingModel.id == booking_id, BookingModel.status == expected)
            .values(status=new_status, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def reject_seat_holding(self, ride_id: str) -> int:
        """Force every pending/accepted booking on a ride to REJECTED."""
        result = await self.session.execute(
            update(BookingModel)
            .where(
                BookingModel.ride_id == ride_id,
                BookingModel.status.in_(_SEAT_HOLDING),
            )
            .values(status=BookingStatus.REJECTED, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def reserved_seats(self, ride_id: str) -> int:
        result = await self.session.execute(
            select(func.coalesce(func.sum(BookingModel.seats_booked), 0)).where(
                BookingModel.ride_id == ride_id,
                BookingModel.status.in_(_SEAT_HOLDING),
            )
        )
        return int(result.scalar() or 0)
