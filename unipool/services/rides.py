"""Driver-side ride operations: posting, status changes and live location."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from unipool.domain.entities import Ride
from unipool.domain.enums import RideStatus
from unipool.domain.exceptions import NotFound, Unauthorized
from unipool.infrastructure.models import RideModel
from unipool.infrastructure.notifier import Notifier
from unipool.infrastructure.repositories import RideRepository
from unipool.services.unit_of_work import SqlAlchemyUnitOfWork

logger = logging.getLogger(__name__)


class RideService:
    def __init__(self, session: AsyncSession, notifier: Notifier):
        self.session = session
        self.notifier = notifier

    async def create_ride(
        self,
        *,
        driver_id: str,
        source_lat: float,
        source_lng: float,
        source_address: str,
        dest_lat: float,
        dest_lng: float,
        dest_address: str,
        departure_time: datetime,
        seats_total: int,
        cost_per_seat: int,
        vehicle_id: Optional[str] = None,
    ) -> RideModel:
        async with SqlAlchemyUnitOfWork(self.session, self.notifier) as uow:
            ride = await uow.rides.create(
                RideModel(
                    driver_id=driver_id,
                    vehicle_id=vehicle_id,
                    source_lat=source_lat,
                    source_lng=source_lng,
                    source_address=source_address,
                    dest_lat=dest_lat,
                    dest_lng=dest_lng,
                    dest_address=dest_address,
                    departure_time=departure_time,
                    seats_total=seats_total,
                    seats_available=seats_total,
                    cost_per_seat=cost_per_seat,
                    status=RideStatus.SCHEDULED,
                    is_active=True,
                )
            )
            await uow.commit()
        logger.info("Ride %s posted by %s with %d seats", ride.id, driver_id, seats_total)
        return ride

    async def get_ride(self, ride_id: str) -> RideModel:
        ride = await RideRepository(self.session).get_by_id(ride_id)
        if ride is None:
            raise NotFound("Ride not found")
        return ride

    async def list_rides(self, driver_id: Optional[str] = None) -> list[RideModel]:
        repo = RideRepository(self.session)
        if driver_id:
            return await repo.list_by_driver(driver_id)
        return await repo.list_active()

    async def update_status(
        self, ride_id: str, caller_id: str, new_status: RideStatus
    ) -> RideModel:
        async with SqlAlchemyUnitOfWork(self.session, self.notifier) as uow:
            row = await self._owned_ride(uow, ride_id, caller_id)
            ride = Ride.from_row(row)
            ride.transition_to(new_status)
            row.status = ride.status
            row.is_active = ride.is_active
            await self.session.flush()
            await uow.commit()
        logger.info("Ride %s is now %s", ride_id, new_status.value)
        return row

    async def update_location(
        self, ride_id: str, caller_id: str, lat: float, lng: float
    ) -> RideModel:
        async with SqlAlchemyUnitOfWork(self.session, self.notifier) as uow:
            row = await self._owned_ride(uow, ride_id, caller_id)
            row.current_lat = lat
            row.current_lng = lng
            await self.session.flush()
            await uow.commit()
        return row

    async def _owned_ride(
        self, uow: SqlAlchemyUnitOfWork, ride_id: str, caller_id: str
    ) -> RideModel:
        row = await uow.rides.get_for_update(ride_id)
        if row is None:
            raise NotFound("Ride not found")
        if not Ride.from_row(row).is_driver(caller_id):
            raise Unauthorized("Only the ride's driver can change it")
        return row
