"""
Pydantic request / response schemas for the REST API.

Bodies use camelCase on the wire (``rideId``, ``seatsBooked``) to match the
web client; snake_case field names are accepted as well.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from unipool.config import settings
from unipool.domain.enums import BookingStatus, RideStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── Requests ──────────────────────────────────────────────────────────


class BookingCreateRequest(CamelModel):
    ride_id: str
    passenger_id: str
    seats_booked: int = Field(1, ge=1, le=settings.max_seats_per_ride)


class BookingUpdateRequest(CamelModel):
    status: BookingStatus


class RideCreateRequest(CamelModel):
    driver_id: str
    vehicle_id: Optional[str] = None
    source_lat: float = Field(..., ge=-90, le=90)
    source_lng: float = Field(..., ge=-180, le=180)
    source_address: str = Field(..., min_length=1, max_length=255)
    dest_lat: float = Field(..., ge=-90, le=90)
    dest_lng: float = Field(..., ge=-180, le=180)
    dest_address: str = Field(..., min_length=1, max_length=255)
    departure_time: datetime
    seats_total: int = Field(..., ge=1, le=settings.max_seats_per_ride)
    cost_per_seat: int = Field(..., ge=0)


class RideStatusRequest(CamelModel):
    status: RideStatus


class RideLocationRequest(CamelModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


# ── Responses ─────────────────────────────────────────────────────────


class BookingResponse(CamelModel):
    id: str
    ride_id: str
    passenger_id: str
    status: BookingStatus
    seats_booked: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RideResponse(CamelModel):
    id: str
    driver_id: str
    vehicle_id: Optional[str] = None
    source_lat: float
    source_lng: float
    source_address: str
    dest_lat: float
    dest_lng: float
    dest_address: str
    departure_time: datetime
    seats_total: int
    seats_available: int
    cost_per_seat: int
    is_active: bool
    status: RideStatus
    current_lat: Optional[float] = None
    current_lng: Optional[float] = None
    created_at: Optional[datetime] = None


class RideDeletedResponse(CamelModel):
    success: bool = True
    rejected_bookings: list[str] = []


class LedgerAuditResponse(CamelModel):
    ride_id: str
    seats_total: int
    seats_available: int
    seats_held: int
    consistent: bool


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    error: str
