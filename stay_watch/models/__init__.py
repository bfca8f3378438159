"""
Data models for the Stay Watch system.

This module contains the data classes used throughout the application for
representing subscriptions, listings, configuration and run outcomes.
"""

from .config import (
    Configuration,
    KnownSetPolicy,
    MalformedItemPolicy,
    SearchConfig,
    StorageConfig,
    SystemConfig,
    TelegramConfig,
)
from .delivery import DeliveryResult
from .listing import Listing, ListingPrice
from .run import PollOutcome, RunReport
from .subscription import Subscription

__all__ = [
    "Listing",
    "ListingPrice",
    "Subscription",
    "DeliveryResult",
    "PollOutcome",
    "RunReport",
    "Configuration",
    "SearchConfig",
    "TelegramConfig",
    "StorageConfig",
    "SystemConfig",
    "KnownSetPolicy",
    "MalformedItemPolicy",
]
