"""
Listing notification for the Stay Watch system.

This module formats a Listing into a Telegram HTML message and delivers it
to the subscription's chat, as a photo with caption when the listing has a
picture and as plain text otherwise.
"""

import html
import logging
from typing import Optional
from urllib.parse import urlencode

from ..interfaces import IChatClient
from ..models.delivery import DeliveryResult
from ..models.listing import Listing
from ..models.subscription import Subscription
from ..utils.error_handling import NotificationDeliveryFailed

logger = logging.getLogger(__name__)

ROOM_BASE_URL = "https://www.airbnb.com/rooms"
NO_RATING_TEXT = "No rating"


def build_room_url(listing_id: str, subscription: Subscription, base_url: str = ROOM_BASE_URL) -> str:
    """Build the listing detail page URL for the subscription's stay."""
    query = urlencode(
        {
            "currency": subscription.currency,
            "check_in": subscription.filters["checkin"],
            "check_out": subscription.filters["checkout"],
            "adults": subscription.filters["adults"],
        }
    )
    return f"{base_url.rstrip('/')}/{listing_id}?{query}"


def format_listing_message(listing: Listing, subscription: Subscription, room_url: Optional[str] = None) -> str:
    """Render the HTML message body for one listing."""
    url = room_url or build_room_url(listing.id, subscription)
    rating = listing.rating if listing.rating is not None else NO_RATING_TEXT

    message_lines = [
        f'<b><a href="{html.escape(url)}">{html.escape(listing.name)}</a></b>',
        "",
        f"💰 <b>{html.escape(listing.price.total)}</b>"
        f" ({html.escape(listing.price.nightly)})",
        f"⭐️ {html.escape(rating)}",
        "",
        f"ID: {html.escape(listing.id)}",
    ]
    return "\n".join(message_lines)


class TelegramNotifier:
    """Delivers exactly one Telegram message per new listing."""

    def __init__(
        self,
        client: IChatClient,
        button_text: str = "Open on Airbnb",
        room_base_url: str = ROOM_BASE_URL,
    ):
        """
        Initialize notifier.

        Args:
            client: Chat client exposing send_text and send_photo
            button_text: Label of the inline button opening the listing page
            room_base_url: Base URL of listing detail pages
        """
        self.client = client
        self.button_text = button_text
        self.room_base_url = room_base_url

    def notify(self, listing: Listing, subscription: Subscription) -> DeliveryResult:
        """
        Send one message about ``listing`` to the subscription's chat.

        Raises:
            NotificationDeliveryFailed: If the chat API rejects the message
                or the transport fails
        """
        room_url = build_room_url(listing.id, subscription, self.room_base_url)
        message = format_listing_message(listing, subscription, room_url)
        button = (self.button_text, room_url)

        try:
            if listing.image_url:
                result = self.client.send_photo(
                    subscription.chat_id, listing.image_url, message, button
                )
            else:
                result = self.client.send_text(subscription.chat_id, message, button)
        except Exception as e:
            raise NotificationDeliveryFailed(
                f"Failed to notify chat {subscription.chat_id} about listing {listing.id}: {e}",
                chat_id=subscription.chat_id,
                listing_id=listing.id,
            ) from e

        if not result.success:
            raise NotificationDeliveryFailed(
                result.error_message or "Unknown delivery error",
                chat_id=subscription.chat_id,
                listing_id=listing.id,
            )

        logger.info(f"Notified chat {subscription.chat_id} about listing {listing.id}")
        return result
