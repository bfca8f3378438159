"""
Tests for error handling utilities.
"""

import pytest

from stay_watch.utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    ErrorTracker,
    ListingsSectionNotFound,
    MalformedUpstreamItem,
    NotificationDeliveryFailed,
    SearchRequestFailed,
    StayWatchError,
    SubscriptionStoreError,
    categorize,
    get_error_tracker,
)


class TestExceptions:
    """Test cases for the exception taxonomy."""

    @pytest.mark.parametrize(
        "exception, category",
        [
            (MalformedUpstreamItem("no id"), ErrorCategory.PARSING),
            (ListingsSectionNotFound("Unable to find listings"), ErrorCategory.PARSING),
            (SearchRequestFailed("HTTP 500"), ErrorCategory.NETWORK),
            (NotificationDeliveryFailed("blocked"), ErrorCategory.MESSAGE_DELIVERY),
            (SubscriptionStoreError("disk"), ErrorCategory.STORAGE),
            (KeyError("x"), ErrorCategory.SYSTEM),
        ],
    )
    def test_categorize(self, exception, category):
        """Test that each exception maps to its category."""
        assert categorize(exception) == category

    def test_common_base(self):
        """Test that component errors share a base class."""
        for exc_type in (
            MalformedUpstreamItem,
            ListingsSectionNotFound,
            SearchRequestFailed,
            NotificationDeliveryFailed,
            SubscriptionStoreError,
        ):
            assert issubclass(exc_type, StayWatchError)

    def test_exception_context(self):
        """Test the context carried by exceptions."""
        item = {"listing": {}}
        malformed = MalformedUpstreamItem("has no id", item=item)
        delivery = NotificationDeliveryFailed("blocked", chat_id="@c", listing_id="9")

        assert malformed.item is item
        assert str(delivery) == "blocked"
        assert (delivery.chat_id, delivery.listing_id) == ("@c", "9")


class TestErrorTracker:
    """Test cases for ErrorTracker."""

    def setup_method(self):
        """Set up test fixtures."""
        self.tracker = ErrorTracker(max_errors=3)

    def test_record_error(self):
        """Test recording an error."""
        try:
            raise SearchRequestFailed("HTTP 503")
        except SearchRequestFailed as e:
            info = self.tracker.record_error(
                "orchestrator",
                ErrorCategory.NETWORK,
                ErrorSeverity.MEDIUM,
                "Subscription 1 failed",
                exception=e,
                context={"subscription_id": "1"},
            )

        assert info.exception_type == "SearchRequestFailed"
        assert "HTTP 503" in info.traceback
        assert info.context == {"subscription_id": "1"}
        assert self.tracker.error_counts == {"orchestrator.network.medium": 1}

    def test_max_errors(self):
        """Test that old errors are dropped past the limit."""
        for index in range(5):
            self.tracker.record_error(
                "store", ErrorCategory.STORAGE, ErrorSeverity.LOW, f"error {index}"
            )

        assert len(self.tracker.errors) == 3
        assert self.tracker.errors[0].message == "error 2"
        assert self.tracker.error_counts["store.storage.low"] == 5

    def test_error_stats(self):
        """Test statistics output."""
        self.tracker.record_error(
            "orchestrator", ErrorCategory.PARSING, ErrorSeverity.MEDIUM, "a"
        )
        self.tracker.record_error(
            "orchestrator", ErrorCategory.MESSAGE_DELIVERY, ErrorSeverity.HIGH, "b"
        )

        stats = self.tracker.get_error_stats()

        assert stats["total_errors"] == 2
        assert stats["errors_last_day"] == 2
        assert stats["category_breakdown"]["parsing"] == 1
        assert stats["category_breakdown"]["message_delivery"] == 1
        assert stats["category_breakdown"]["network"] == 0

    def test_clear(self):
        """Test clearing tracked errors."""
        self.tracker.record_error("x", ErrorCategory.SYSTEM, ErrorSeverity.LOW, "a")

        self.tracker.clear()

        assert self.tracker.get_error_stats()["total_errors"] == 0

    def test_global_tracker(self):
        """Test that the global tracker is a singleton."""
        assert get_error_tracker() is get_error_tracker()
