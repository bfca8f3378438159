"""
Rate limiting utilities for controlling outbound call frequency.

Telegram rejects bursts of messages to the same chat and the search API
reacts badly to rapid repeated queries, so the poll cycle inserts fixed
pauses between notifications and between subscriptions.
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable, Iterable, Optional, TypeVar

from ..utils.logging import get_logger

logger = get_logger("rate_limiter")

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


class Pacer:
    """Fixed-interval gate invoked between outbound calls."""

    def __init__(
        self,
        notification_delay: float = 3.0,
        subscription_delay: float = 15.0,
        sleep: Optional[SleepFunc] = None,
    ):
        """
        Initialize pacer.

        Args:
            notification_delay: Seconds to wait between two notifications
            subscription_delay: Seconds to wait between two subscriptions
            sleep: Awaitable sleep function, ``asyncio.sleep`` by default
        """
        if notification_delay < 0 or subscription_delay < 0:
            raise ValueError("Pacing delays cannot be negative")

        self.notification_delay = notification_delay
        self.subscription_delay = subscription_delay
        self._sleep = sleep or asyncio.sleep
        self.total_paused = 0.0

    async def wait(self, seconds: float) -> None:
        if seconds <= 0:
            return
        logger.debug("Pacing outbound calls", extra={"seconds": seconds})
        self.total_paused += seconds
        await self._sleep(seconds)

    async def pause_between_notifications(self) -> None:
        await self.wait(self.notification_delay)

    async def pause_between_subscriptions(self) -> None:
        await self.wait(self.subscription_delay)

    async def pace(self, items: Iterable[T], delay: Optional[float] = None) -> AsyncIterator[T]:
        """
        Yield items with a pause between consecutive ones.

        No pause follows the last item.

        Args:
            items: Items to iterate over
            delay: Pause length, defaults to the notification delay
        """
        seconds = self.notification_delay if delay is None else delay
        first = True
        for item in items:
            if not first:
                await self.wait(seconds)
            first = False
            yield item
