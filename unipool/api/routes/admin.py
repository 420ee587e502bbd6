"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health                  -- simple health check
GET /api/v1/admin/rides/{ride_id}/ledger  -- seat-ledger consistency for one ride
"""

from fastapi import APIRouter, Depends, Request

from unipool.api.dependencies import get_seat_ledger
from unipool.api.middleware import RATE_LIMIT, limiter
from unipool.api.schemas import ErrorResponse, HealthResponse, LedgerAuditResponse
from unipool.services.seat_ledger import SeatLedger

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/rides/{ride_id}/ledger",
    response_model=LedgerAuditResponse,
    summary="Check a ride's seat count against its bookings",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMIT)
async def ride_ledger(
    request: Request,
    ride_id: str,
    ledger: SeatLedger = Depends(get_seat_ledger),
):
    audit = await ledger.audit(ride_id)
    return LedgerAuditResponse.model_validate(audit)


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
