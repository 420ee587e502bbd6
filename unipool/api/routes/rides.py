"""
Ride endpoints
==============

POST   /api/v1/rides                -- post a ride (driver)
GET    /api/v1/rides                -- active rides, or every ride of ``driverId``
GET    /api/v1/rides/{id}           -- fetch one ride
PATCH  /api/v1/rides/{id}/status    -- scheduled -> ongoing -> completed
PATCH  /api/v1/rides/{id}/location  -- driver's live position
DELETE /api/v1/rides/{id}           -- delete, rejecting open bookings
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from unipool.api.dependencies import get_caller_id, get_ride_service, get_seat_ledger
from unipool.api.middleware import RATE_LIMIT, limiter
from unipool.api.schemas import (
    ErrorResponse,
    RideCreateRequest,
    RideDeletedResponse,
    RideLocationRequest,
    RideResponse,
    RideStatusRequest,
)
from unipool.services.rides import RideService
from unipool.services.seat_ledger import SeatLedger

router = APIRouter(prefix="/rides", tags=["rides"])


@router.post("", response_model=RideResponse, summary="Post a ride")
@limiter.limit(RATE_LIMIT)
async def create_ride(
    request: Request,
    body: RideCreateRequest,
    service: RideService = Depends(get_ride_service),
):
    return await service.create_ride(**body.model_dump())


@router.get("", response_model=list[RideResponse], summary="List rides")
@limiter.limit(RATE_LIMIT)
async def list_rides(
    request: Request,
    driver_id: Optional[str] = Query(None, alias="driverId"),
    service: RideService = Depends(get_ride_service),
):
    return await service.list_rides(driver_id)


@router.get(
    "/{ride_id}",
    response_model=RideResponse,
    summary="Get a ride",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def get_ride(
    request: Request,
    ride_id: str,
    service: RideService = Depends(get_ride_service),
):
    return await service.get_ride(ride_id)


@router.patch(
    "/{ride_id}/status",
    response_model=RideResponse,
    summary="Advance the ride's status",
    description="Completing a ride also marks it inactive.",
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
@limiter.limit(RATE_LIMIT)
async def update_ride_status(
    request: Request,
    ride_id: str,
    body: RideStatusRequest,
    caller_id: str = Depends(get_caller_id),
    service: RideService = Depends(get_ride_service),
):
    return await service.update_status(ride_id, caller_id, body.status)


@router.patch(
    "/{ride_id}/location",
    response_model=RideResponse,
    summary="Update the driver's live location",
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
@limiter.limit(RATE_LIMIT)
async def update_ride_location(
    request: Request,
    ride_id: str,
    body: RideLocationRequest,
    caller_id: str = Depends(get_caller_id),
    service: RideService = Depends(get_ride_service),
):
    return await service.update_location(ride_id, caller_id, body.lat, body.lng)


@router.delete(
    "/{ride_id}",
    response_model=RideDeletedResponse,
    summary="Delete a ride",
    description=(
        "Every pending or accepted booking on the ride is rejected and its "
        "passenger notified before the ride is removed."
    ),
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
@limiter.limit(RATE_LIMIT)
async def delete_ride(
    request: Request,
    ride_id: str,
    caller_id: str = Depends(get_caller_id),
    ledger: SeatLedger = Depends(get_seat_ledger),
):
    rejected = await ledger.delete_ride(ride_id, caller_id)
    return RideDeletedResponse(success=True, rejected_bookings=[b.id for b in rejected])
