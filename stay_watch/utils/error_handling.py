"""
Error handling utilities for the Stay Watch system.

This module defines the exception taxonomy raised by the poll cycle and an
in-memory error tracker that the orchestrator feeds at its per-subscription
boundary. Nothing here retries: a failed step is picked up again on the
next scheduled run.
"""

import traceback
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from .logging import get_logger


class StayWatchError(Exception):
    """Base class for errors raised by Stay Watch components."""


class MalformedUpstreamItem(StayWatchError):
    """A search result item lacks the fields needed to build a Listing."""

    def __init__(self, message: str, item: Any = None):
        super().__init__(message)
        self.item = item


class ListingsSectionNotFound(StayWatchError):
    """The search response has no section tagged as the listings section."""


class SearchRequestFailed(StayWatchError):
    """The search request failed in transport or returned an unusable body."""


class NotificationDeliveryFailed(StayWatchError):
    """The chat API rejected or failed to deliver a notification."""

    def __init__(self, message: str, chat_id: Optional[str] = None, listing_id: Optional[str] = None):
        super().__init__(message)
        self.chat_id = chat_id
        self.listing_id = listing_id


class SubscriptionStoreError(StayWatchError):
    """Reading or writing the subscription store failed."""


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""

    NETWORK = "network"
    CONFIGURATION = "configuration"
    PARSING = "parsing"
    MESSAGE_DELIVERY = "message_delivery"
    STORAGE = "storage"
    SYSTEM = "system"


def categorize(exception: Exception) -> ErrorCategory:
    """Map an exception raised during a poll cycle to its category."""
    if isinstance(exception, (MalformedUpstreamItem, ListingsSectionNotFound)):
        return ErrorCategory.PARSING
    if isinstance(exception, SearchRequestFailed):
        return ErrorCategory.NETWORK
    if isinstance(exception, NotificationDeliveryFailed):
        return ErrorCategory.MESSAGE_DELIVERY
    if isinstance(exception, SubscriptionStoreError):
        return ErrorCategory.STORAGE
    return ErrorCategory.SYSTEM


@dataclass
class ErrorInfo:
    """Information about an error occurrence."""

    timestamp: datetime
    component: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    exception_type: str
    traceback: str
    context: Dict[str, Any]


class ErrorTracker:
    """
    Tracks errors and provides statistics for monitoring.
    """

    def __init__(self, max_errors: int = 1000):
        """
        Initialize error tracker.

        Args:
            max_errors: Maximum number of errors to keep in memory
        """
        self.max_errors = max_errors
        self.errors: List[ErrorInfo] = []
        self.error_counts: Dict[str, int] = {}
        self.logger = get_logger("error_tracker")

    def record_error(
        self,
        component: str,
        category: ErrorCategory,
        severity: ErrorSeverity,
        message: str,
        exception: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> ErrorInfo:
        """
        Record an error occurrence.

        Args:
            component: Component where error occurred
            category: Error category
            severity: Error severity
            message: Error message
            exception: Exception object if available
            context: Additional context information

        Returns:
            ErrorInfo object
        """
        error_info = ErrorInfo(
            timestamp=datetime.now(),
            component=component,
            category=category,
            severity=severity,
            message=message,
            exception_type=type(exception).__name__ if exception else "Unknown",
            traceback=traceback.format_exc() if exception else "",
            context=context or {},
        )

        self.errors.append(error_info)
        if len(self.errors) > self.max_errors:
            self.errors.pop(0)

        error_key = f"{component}.{category.value}.{severity.value}"
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        self.logger.error(
            f"Error recorded: {message}",
            extra={
                "component": component,
                "category": category.value,
                "severity": severity.value,
                "exception_type": error_info.exception_type,
                "context": context,
            },
            exc_info=exception is not None,
        )

        return error_info

    def get_error_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        last_day = datetime.now() - timedelta(days=1)

        return {
            "total_errors": len(self.errors),
            "errors_last_day": len([e for e in self.errors if e.timestamp >= last_day]),
            "error_counts": self.error_counts.copy(),
            "category_breakdown": {
                category.value: len([e for e in self.errors if e.category == category])
                for category in ErrorCategory
            },
        }

    def clear(self) -> None:
        self.errors.clear()
        self.error_counts.clear()


# Global error tracker instance
_error_tracker: Optional[ErrorTracker] = None


def get_error_tracker() -> ErrorTracker:
    """Get global error tracker instance."""
    global _error_tracker
    if _error_tracker is None:
        _error_tracker = ErrorTracker()
    return _error_tracker
