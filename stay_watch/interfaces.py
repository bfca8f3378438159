"""
Protocol interfaces for the Stay Watch system.

This module defines the protocol interfaces that establish system
boundaries and let the orchestrator receive its collaborators by
dependency injection.
"""

from typing import List, Optional, Protocol, Tuple

from .models.delivery import DeliveryResult
from .models.listing import Listing
from .models.subscription import Subscription


class ISearchExecutor(Protocol):
    """Protocol for running one subscription's listings search."""

    def search(self, subscription: Subscription) -> List[Listing]:
        """Return normalized listings in provider order."""
        ...


class INotifier(Protocol):
    """Protocol for delivering one listing notification."""

    def notify(self, listing: Listing, subscription: Subscription) -> DeliveryResult:
        """Send one message about a listing to the subscription's chat."""
        ...


class IChatClient(Protocol):
    """Protocol for the chat delivery primitives."""

    def send_text(
        self, chat_id: str, text: str, button: Optional[Tuple[str, str]] = None
    ) -> DeliveryResult:
        """Send a rich-markup text message."""
        ...

    def send_photo(
        self,
        chat_id: str,
        photo_url: str,
        caption: str,
        button: Optional[Tuple[str, str]] = None,
    ) -> DeliveryResult:
        """Send an image with a rich-markup caption."""
        ...


class ISubscriptionStore(Protocol):
    """Protocol for the subscription document store."""

    def list_active(self) -> List[Subscription]:
        """Return all subscriptions flagged active, in stored order."""
        ...

    def update_known_listings(self, subscription_id: str, listing_ids: List[str]) -> None:
        """Overwrite a subscription's known listing ids."""
        ...
