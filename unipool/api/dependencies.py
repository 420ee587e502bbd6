"""FastAPI dependency injection helpers."""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from unipool.domain.exceptions import MissingIdentity
from unipool.infrastructure.database import async_session_factory
from unipool.infrastructure.notifier import Notifier
from unipool.services.rides import RideService
from unipool.services.seat_ledger import SeatLedger


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_caller_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Caller identity from the ``x-user-id`` header (set by the auth proxy)."""
    if not x_user_id:
        raise MissingIdentity("Missing x-user-id header for auth")
    return x_user_id


def get_seat_ledger(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> SeatLedger:
    return SeatLedger(db, notifier)


def get_ride_service(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> RideService:
    return RideService(db, notifier)
