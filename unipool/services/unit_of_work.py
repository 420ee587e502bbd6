"""
Unit of work for seat-ledger writes.

Wraps one ``AsyncSession`` transaction plus the notifications it produces.
Notifications are collected while the transaction runs and are only sent
after a successful commit; publishing failures are logged and dropped.

A committed unit detaches everything it loaded, so rows handed back to the
caller keep their committed values even if a later unit on the same session
fails and rolls back.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from unipool.domain.exceptions import InfrastructureFailure
from unipool.infrastructure.notifier import Notifier, publish_all
from unipool.infrastructure.repositories import BookingRepository, RideRepository

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork:
    def __init__(self, session: AsyncSession, notifier: Notifier):
        self.session = session
        self.notifier = notifier
        self.rides = RideRepository(session)
        self.bookings = BookingRepository(session)
        self._outbox: list[tuple[str, str, dict[str, Any]]] = []
        self._committed = False

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self._outbox.clear()
        self._committed = False
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self._committed:
            return False
        await self.session.rollback()
        self._outbox.clear()
        if exc is not None and isinstance(exc, DBAPIError):
            logger.error("Seat ledger transaction failed: %s", exc)
            raise InfrastructureFailure(
                "Could not save the booking change, please retry"
            ) from exc
        return False

    def notify(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        self._outbox.append((channel, event, payload))

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except DBAPIError as exc:
            await self.session.rollback()
            self._outbox.clear()
            logger.error("Seat ledger commit failed: %s", exc)
            raise InfrastructureFailure(
                "Could not save the booking change, please retry"
            ) from exc
        self._committed = True
        self.session.expunge_all()
        outbox, self._outbox = self._outbox, []
        await publish_all(self.notifier, outbox)
