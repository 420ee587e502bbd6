"""
Booking endpoints
=================

POST  /api/v1/bookings       -- request seats on a ride (reserves them atomically)
GET   /api/v1/bookings       -- list bookings, optionally by passenger or ride
GET   /api/v1/bookings/{id}  -- fetch one booking
PATCH /api/v1/bookings/{id}  -- accept / reject / cancel (``x-user-id`` required)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from unipool.api.dependencies import get_caller_id, get_db, get_seat_ledger
from unipool.api.middleware import RATE_LIMIT, limiter
from unipool.api.schemas import (
    BookingCreateRequest,
    BookingResponse,
    BookingUpdateRequest,
    ErrorResponse,
)
from unipool.domain.exceptions import NotFound
from unipool.infrastructure.repositories import BookingRepository
from unipool.services.seat_ledger import SeatLedger

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=BookingResponse,
    summary="Request seats on a ride",
    responses={
        400: {"model": ErrorResponse, "description": "Not enough seats left."},
        404: {"model": ErrorResponse, "description": "Ride not found."},
        409: {"model": ErrorResponse, "description": "Ride is not accepting bookings."},
    },
)
@limiter.limit(RATE_LIMIT)
async def create_booking(
    request: Request,
    body: BookingCreateRequest,
    ledger: SeatLedger = Depends(get_seat_ledger),
):
    return await ledger.create_booking(
        body.ride_id, body.passenger_id, body.seats_booked
    )


@router.get("", response_model=list[BookingResponse], summary="List bookings")
@limiter.limit(RATE_LIMIT)
async def list_bookings(
    request: Request,
    passenger_id: Optional[str] = Query(None, alias="passengerId"),
    ride_id: Optional[str] = Query(None, alias="rideId"),
    db: AsyncSession = Depends(get_db),
):
    return await BookingRepository(db).list_filtered(
        passenger_id=passenger_id, ride_id=ride_id
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def get_booking(
    request: Request,
    booking_id: str,
    db: AsyncSession = Depends(get_db),
):
    booking = await BookingRepository(db).get_by_id(booking_id)
    if not booking:
        raise NotFound("Booking not found")
    return booking


@router.patch(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Accept, reject or cancel a booking",
    description=(
        "Accept and reject are reserved for the ride's driver and only apply "
        "to pending bookings.  Cancel is open to the driver and the booking's "
        "passenger.  Reject and cancel hand the booked seats back to the ride "
        "in the same transaction."
    ),
    responses={
        401: {"model": ErrorResponse, "description": "Missing x-user-id header."},
        403: {"model": ErrorResponse, "description": "Caller may not do this."},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "Booking not pending."},
    },
)
@limiter.limit(RATE_LIMIT)
async def update_booking(
    request: Request,
    booking_id: str,
    body: BookingUpdateRequest,
    caller_id: str = Depends(get_caller_id),
    ledger: SeatLedger = Depends(get_seat_ledger),
):
    return await ledger.transition_booking(booking_id, caller_id, body.status)
