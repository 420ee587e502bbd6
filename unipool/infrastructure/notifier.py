"""
Best-effort publish/subscribe notifications.

Channels are keyed by audience: ``driver:{id}``, ``passenger:{id}`` and
``booking:{id}``.  Each message is a JSON object ``{"event", "data"}``;
clients treat it as a hint to re-fetch, never as the source of truth.

Delivery is fire-and-forget and at-most-once.  ``publish`` never raises:
failures are logged and discarded so they cannot affect an already
committed booking change.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Protocol

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        ...


def driver_channel(driver_id: str) -> str:
    return f"driver:{driver_id}"


def passenger_channel(passenger_id: str) -> str:
    return f"passenger:{passenger_id}"


def booking_channel(booking_id: str) -> str:
    return f"booking:{booking_id}"


class RedisNotifier:
    """Publishes to Redis pub/sub, one Redis channel per logical channel."""

    def __init__(
        self,
        client_factory: Callable[[], Awaitable[aioredis.Redis]],
        prefix: str = "",
    ):
        self._client_factory = client_factory
        self._prefix = prefix

    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        target = f"{self._prefix}{channel}"
        try:
            client = await self._client_factory()
            message = json.dumps({"event": event, "data": payload}, default=str)
            receivers = await client.publish(target, message)
            logger.debug("Published %s -> %s (%s receivers)", event, target, receivers)
        except Exception:
            logger.warning("Publish of %s to %s failed", event, target, exc_info=True)


class NullNotifier:
    """Used when notifications are disabled."""

    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        logger.debug("Notifications disabled; dropping %s -> %s", event, channel)


async def publish_all(
    notifier: Notifier,
    messages: list[tuple[str, str, dict[str, Any]]],
) -> None:
    """Send each ``(channel, event, payload)``; one failure never stops the rest."""
    for channel, event, payload in messages:
        try:
            await notifier.publish(channel, event, payload)
        except Exception:
            logger.exception("Notifier raised while publishing %s to %s", event, channel)


def build_notifier(settings) -> Notifier:
    if not settings.notifications_enabled:
        return NullNotifier()
    from .redis_client import get_redis

    return RedisNotifier(get_redis, prefix=settings.notification_channel_prefix)
