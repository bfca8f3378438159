"""
Poll cycle orchestrator for the Stay Watch system.

One call to ``RunOrchestrator.run_once`` is one poll cycle: every active
subscription is processed strictly in sequence, search then diff then
notify then persist, with fixed pauses between outbound calls. Blocking
calls share a single worker thread, so a call left running by a cycle that
timed out finishes before the next cycle reads the store.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Optional

from .components.diff_engine import diff_listings, next_known_set
from .components.notifier import TelegramNotifier
from .components.search_executor import SearchExecutor
from .components.telegram_client import TelegramClient
from .interfaces import INotifier, ISearchExecutor, ISubscriptionStore
from .models.config import Configuration, KnownSetPolicy
from .models.listing import Listing
from .models.run import PollOutcome, RunReport
from .models.subscription import Subscription
from .services.subscription_store import JsonSubscriptionStore
from .utils.error_handling import (
    ErrorSeverity,
    ErrorTracker,
    NotificationDeliveryFailed,
    categorize,
    get_error_tracker,
)
from .utils.logging import get_logger
from .utils.rate_limiter import Pacer


class RunOrchestrator:
    """
    Runs poll cycles over all active subscriptions.

    Collaborators are injected so a process builds them once and tests can
    replace any of them.
    """

    def __init__(
        self,
        store: ISubscriptionStore,
        search_executor: ISearchExecutor,
        notifier: INotifier,
        pacer: Optional[Pacer] = None,
        known_set_policy: KnownSetPolicy = KnownSetPolicy.REPLACE,
        error_tracker: Optional[ErrorTracker] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            store: Subscription store
            search_executor: Runs one search per subscription
            notifier: Sends one message per new listing
            pacer: Pauses between notifications and subscriptions
            known_set_policy: How known listings are updated after a poll
            error_tracker: Sink for per-subscription failures
        """
        self.logger = get_logger("orchestrator")
        self.store = store
        self.search_executor = search_executor
        self.notifier = notifier
        self.pacer = pacer or Pacer()
        self.known_set_policy = known_set_policy
        self.error_tracker = error_tracker or get_error_tracker()
        # One worker: blocking calls run in order, including across cycles
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="stay-watch")

    @classmethod
    def from_config(cls, config: Configuration) -> "RunOrchestrator":
        """Build an orchestrator and its collaborators from configuration."""
        client = TelegramClient(
            bot_token=config.telegram.bot_token,
            api_base=config.telegram.api_base,
            timeout=config.telegram.timeout,
        )
        return cls(
            store=JsonSubscriptionStore(config.storage.subscriptions_file),
            search_executor=SearchExecutor(config.search),
            notifier=TelegramNotifier(client, button_text=config.telegram.button_text),
            pacer=Pacer(
                notification_delay=config.system.notification_delay,
                subscription_delay=config.system.subscription_delay,
            ),
            known_set_policy=config.storage.known_set_policy,
        )

    async def run_once(self) -> RunReport:
        """
        Run one poll cycle.

        Returns:
            Report with one outcome per processed subscription

        Raises:
            Exception: Whatever the store raises while listing subscriptions;
                that failure is fatal for the cycle
        """
        report = RunReport(started_at=datetime.now())
        subscriptions = await self._call(self.store.list_active)

        self.logger.info(
            "Poll cycle started",
            extra={
                "subscriptions": len(subscriptions),
                "policy": self.known_set_policy.value,
            },
        )

        for index, subscription in enumerate(subscriptions):
            if index > 0:
                await self.pacer.pause_between_subscriptions()

            outcome = await self.process_subscription(subscription)
            report.outcomes.append(outcome)

        report.finished_at = datetime.now()
        error_stats = self.error_tracker.get_error_stats()
        self.logger.info(
            "Poll cycle finished",
            extra={
                "subscriptions": len(report.outcomes),
                "notified": report.total_notified,
                "failed": len(report.failed_subscriptions),
                "duration_seconds": report.duration_seconds(),
                "errors_last_day": error_stats["errors_last_day"],
                "error_categories": {
                    category: count
                    for category, count in error_stats["category_breakdown"].items()
                    if count
                },
            },
        )
        return report

    async def process_subscription(self, subscription: Subscription) -> PollOutcome:
        """
        Search, diff, notify and persist for one subscription.

        Any exception is logged and recorded here; the known listings are
        then left unchanged.
        """
        outcome = PollOutcome(subscription_id=subscription.id, chat_id=subscription.chat_id)

        try:
            await self._process(subscription, outcome)
        except Exception as e:
            outcome.error = f"{type(e).__name__}: {e}"
            severity = (
                ErrorSeverity.HIGH
                if isinstance(e, NotificationDeliveryFailed)
                else ErrorSeverity.MEDIUM
            )
            self.error_tracker.record_error(
                component="orchestrator",
                category=categorize(e),
                severity=severity,
                message=f"Subscription {subscription.id} failed: {e}",
                exception=e,
                context={
                    "subscription_id": subscription.id,
                    "chat_id": subscription.chat_id,
                    "notified": outcome.notified,
                },
            )

        return outcome

    async def _call(self, func, *args):
        """Run a blocking collaborator call on the orchestrator's worker thread."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, func, *args)

    def close(self) -> None:
        """Wait for any in-flight blocking call and release the worker thread."""
        self._executor.shutdown(wait=True)

    async def _process(self, subscription: Subscription, outcome: PollOutcome) -> None:
        fetched: List[Listing] = await self._call(self.search_executor.search, subscription)
        outcome.fetched = len(fetched)
        outcome.skipped_items = getattr(self.search_executor, "skipped_items", 0)

        known = subscription.known_listings
        new_listings = diff_listings(fetched, known)
        outcome.new = len(new_listings)

        self.logger.info(
            f"Total listings: {len(fetched)}, new listings: {len(new_listings)}",
            extra={"subscription_id": subscription.id, "chat_id": subscription.chat_id},
        )

        delivered: List[Listing] = []
        try:
            async for listing in self.pacer.pace(new_listings):
                self.logger.info(
                    f"Processing listing {listing.id}",
                    extra={"subscription_id": subscription.id, "listing_name": listing.name},
                )
                await self._call(self.notifier.notify, listing, subscription)
                delivered.append(listing)
                outcome.notified += 1
        except NotificationDeliveryFailed:
            if delivered:
                await self._persist_delivered(subscription, delivered, outcome)
            raise

        if self.known_set_policy == KnownSetPolicy.APPEND and not new_listings:
            return

        updated = next_known_set(fetched, known, self.known_set_policy)
        await self._persist(subscription, updated, outcome)

    async def _persist_delivered(
        self, subscription: Subscription, delivered: List[Listing], outcome: PollOutcome
    ) -> None:
        """Remember listings already sent before a delivery failure aborted the batch."""
        updated = next_known_set(delivered, subscription.known_listings, KnownSetPolicy.APPEND)
        try:
            await self._persist(subscription, updated, outcome)
        except Exception as e:
            self.logger.error(
                "Could not save delivered listings after delivery failure",
                extra={"subscription_id": subscription.id, "error": str(e)},
                exc_info=True,
            )

    async def _persist(
        self, subscription: Subscription, listing_ids: List[str], outcome: PollOutcome
    ) -> None:
        await self._call(self.store.update_known_listings, subscription.id, listing_ids)
        subscription.known_listings = listing_ids
        outcome.persisted = True
