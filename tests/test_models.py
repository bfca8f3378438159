"""
Unit tests for data models.
"""

from datetime import datetime, timedelta

import pytest

from stay_watch.models.config import (
    Configuration,
    SearchConfig,
    StorageConfig,
    SystemConfig,
    TelegramConfig,
)
from stay_watch.models.delivery import DeliveryResult
from stay_watch.models.listing import Listing, ListingPrice
from stay_watch.models.run import PollOutcome, RunReport
from stay_watch.models.subscription import Subscription


class TestSubscription:
    """Test cases for Subscription model."""

    def test_valid_subscription(self, sample_subscription):
        """Test validation of a complete subscription."""
        assert sample_subscription.validate() is True

    def test_empty_chat_id(self, sample_subscription):
        """Test that chat ID is required."""
        sample_subscription.chat_id = "  "

        with pytest.raises(ValueError, match="chat ID cannot be empty"):
            sample_subscription.validate()

    def test_missing_required_filter(self, sample_subscription):
        """Test that the dates and guest count are required filters."""
        del sample_subscription.filters["checkout"]

        with pytest.raises(ValueError, match="checkout"):
            sample_subscription.validate()

    def test_from_dict(self):
        """Test building a subscription from a stored document."""
        subscription = Subscription.from_dict(
            {
                "chatId": -1001,
                "currency": "USD",
                "filters": {"checkin": "a", "checkout": "b", "adults": 1},
                "knownListings": [1, "2"],
            },
            doc_id="abc",
        )

        assert subscription.id == "abc"
        assert subscription.chat_id == "-1001"
        assert subscription.active is True
        assert subscription.known_listings == ["1", "2"]

    def test_to_dict(self, sample_subscription):
        """Test serialization to the stored shape."""
        data = sample_subscription.to_dict()

        assert data["chatId"] == "@lisbon_stays"
        assert data["knownListings"] == ["A", "B"]
        assert Subscription.from_dict(data).filters == sample_subscription.filters


class TestListing:
    """Test cases for Listing model."""

    def test_valid_listing(self, sample_listing):
        """Test validation of a valid listing."""
        assert sample_listing.validate() is True

    def test_empty_id(self, sample_listing):
        """Test that listing ID is required."""
        sample_listing.id = ""

        with pytest.raises(ValueError, match="Listing ID cannot be empty"):
            sample_listing.validate()

    def test_optional_fields(self):
        """Test that image and rating may be absent."""
        listing = Listing(
            id="1",
            name="",
            image_url=None,
            rating=None,
            price=ListingPrice(total="$1", nightly="$1"),
        )

        assert listing.validate() is True

    def test_raw_response_not_in_repr(self, sample_listing):
        """Test that the raw payload stays out of the repr."""
        sample_listing.raw_response = {"secret": "payload"}

        assert "payload" not in repr(sample_listing)


class TestRunReport:
    """Test cases for poll cycle reports."""

    def test_aggregates(self):
        """Test totals and failure listing."""
        started = datetime(2024, 1, 1, 12, 0, 0)
        report = RunReport(
            started_at=started,
            finished_at=started + timedelta(seconds=42),
            outcomes=[
                PollOutcome(subscription_id="1", chat_id="a", notified=2),
                PollOutcome(subscription_id="2", chat_id="b", error="boom"),
                PollOutcome(subscription_id="3", chat_id="c", notified=1),
            ],
        )

        assert report.total_notified == 3
        assert [o.subscription_id for o in report.failed_subscriptions] == ["2"]
        assert report.duration_seconds() == 42.0

    def test_unfinished_duration(self):
        """Test that an unfinished report has zero duration."""
        assert RunReport(started_at=datetime.now()).duration_seconds() == 0.0


class TestDeliveryResult:
    """Test cases for DeliveryResult model."""

    def test_failed_result_needs_message(self):
        """Test that failures must carry an error message."""
        result = DeliveryResult(success=False, delivery_time=datetime.now(), error_message=None)

        with pytest.raises(ValueError, match="error_message should be provided"):
            result.validate()

    def test_error_message_length(self):
        """Test the error message length limit."""
        result = DeliveryResult(
            success=False, delivery_time=datetime.now(), error_message="x" * 501
        )

        with pytest.raises(ValueError, match="too long"):
            result.validate()


class TestConfiguration:
    """Test cases for configuration models."""

    def get_configuration(self, **system):
        return Configuration(
            search=SearchConfig(api_key="key"),
            telegram=TelegramConfig(bot_token="token"),
            storage=StorageConfig(),
            system=SystemConfig(**system),
        )

    def test_valid_defaults(self):
        """Test that defaults validate."""
        assert self.get_configuration().validate() is True

    def test_missing_env_placeholder_rejected(self):
        """Test that unexpanded variables are reported as missing."""
        config = self.get_configuration()
        config.telegram.bot_token = "__MISSING_ENV_VAR_TELEGRAM_TOKEN__"

        with pytest.raises(ValueError, match="TELEGRAM_TOKEN"):
            config.validate()

    def test_invalid_endpoint(self):
        """Test that the search endpoint must be an http(s) URL."""
        config = self.get_configuration()
        config.search.endpoint = "ftp://example.com"

        with pytest.raises(ValueError, match="Invalid search endpoint"):
            config.validate()

    @pytest.mark.parametrize(
        "system, message",
        [
            ({"poll_interval": 30}, "at least 60 seconds"),
            ({"run_timeout": 0}, "Run timeout must be a positive integer"),
            ({"notification_delay": -1}, "cannot be negative"),
            ({"log_level": "LOUD"}, "Invalid log level"),
        ],
    )
    def test_invalid_system_settings(self, system, message):
        """Test system setting validation."""
        with pytest.raises(ValueError, match=message):
            self.get_configuration(**system).validate()
