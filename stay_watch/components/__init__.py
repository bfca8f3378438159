"""
Core components for the Stay Watch system.

This module contains the components that run a subscription's search,
normalize and diff its listings, and deliver Telegram notifications.
"""

from .diff_engine import diff_listings, next_known_set
from .listing_normalizer import ListingNormalizer, normalize_listing
from .notifier import TelegramNotifier, build_room_url, format_listing_message
from .search_executor import SearchExecutor, find_section
from .telegram_client import TelegramClient

__all__ = [
    "ListingNormalizer",
    "normalize_listing",
    "SearchExecutor",
    "find_section",
    "diff_listings",
    "next_known_set",
    "TelegramNotifier",
    "TelegramClient",
    "build_room_url",
    "format_listing_message",
]
