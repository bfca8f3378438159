"""
Service layer for the Stay Watch system.

This module contains the configuration manager and the subscription store
the poll cycle reads from and writes back to.
"""

from .config_manager import ConfigurationManager
from .subscription_store import JsonSubscriptionStore

__all__ = [
    "ConfigurationManager",
    "JsonSubscriptionStore",
]
