"""
Unit tests for listing message formatting and the Telegram notifier.
"""

from datetime import datetime
from unittest.mock import Mock
from urllib.parse import parse_qs, urlparse

import pytest

from factories import make_listing
from stay_watch.components.notifier import (
    NO_RATING_TEXT,
    TelegramNotifier,
    build_room_url,
    format_listing_message,
)
from stay_watch.models.delivery import DeliveryResult
from stay_watch.utils.error_handling import NotificationDeliveryFailed


def ok_result():
    return DeliveryResult(success=True, delivery_time=datetime.now(), error_message=None)


class TestBuildRoomUrl:
    """Test cases for room URL construction."""

    def test_room_url(self, sample_subscription):
        """Test the detail page URL and its query."""
        url = build_room_url("12345", sample_subscription)
        parsed = urlparse(url)

        assert parsed.scheme == "https"
        assert parsed.netloc == "www.airbnb.com"
        assert parsed.path == "/rooms/12345"
        assert parse_qs(parsed.query) == {
            "currency": ["EUR"],
            "check_in": ["2024-06-01"],
            "check_out": ["2024-06-05"],
            "adults": ["2"],
        }

    def test_query_values_are_encoded(self, sample_subscription):
        """Test that query values are URL-encoded."""
        sample_subscription.filters["checkin"] = "2024-06-01&x=1"

        url = build_room_url("1", sample_subscription)

        assert "check_in=2024-06-01%26x%3D1" in url


class TestFormatListingMessage:
    """Test cases for message formatting."""

    def test_message_lines(self, sample_listing, sample_subscription):
        """Test the message layout."""
        message = format_listing_message(sample_listing, sample_subscription)
        lines = message.split("\n")

        assert lines[0].startswith('<b><a href="https://www.airbnb.com/rooms/12345?')
        assert lines[0].endswith('">Cosy loft near the old town</a></b>')
        assert lines[1] == ""
        assert lines[2] == "💰 <b>€ 512 total</b> (€ 128 per night)"
        assert lines[3] == "⭐️ 4.92 (37)"
        assert lines[4] == ""
        assert lines[5] == "ID: 12345"

    def test_href_ampersands_are_escaped(self, sample_listing, sample_subscription):
        """Test that the link attribute is valid HTML."""
        message = format_listing_message(sample_listing, sample_subscription)

        assert "&amp;check_in=" in message

    def test_no_rating_fallback(self, sample_subscription):
        """Test that a missing rating renders the fallback text."""
        listing = make_listing("77", rating=None)

        message = format_listing_message(listing, sample_subscription)

        assert f"⭐️ {NO_RATING_TEXT}" in message
        assert NO_RATING_TEXT == "No rating"

    def test_name_is_html_escaped(self, sample_subscription):
        """Test that listing names cannot break the markup."""
        listing = make_listing("5")
        listing.name = "Loft <b>& garden</b>"

        message = format_listing_message(listing, sample_subscription)

        assert "Loft &lt;b&gt;&amp; garden&lt;/b&gt;" in message


class TestTelegramNotifier:
    """Test cases for TelegramNotifier."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = Mock()
        self.client.send_text.return_value = ok_result()
        self.client.send_photo.return_value = ok_result()
        self.notifier = TelegramNotifier(self.client, button_text="Open on Airbnb")

    def test_listing_with_image_sends_photo(self, sample_listing, sample_subscription):
        """Test that listings with an image are sent as a photo with caption."""
        self.notifier.notify(sample_listing, sample_subscription)

        self.client.send_text.assert_not_called()
        self.client.send_photo.assert_called_once()
        chat_id, photo_url, caption, button = self.client.send_photo.call_args[0]
        assert chat_id == "@lisbon_stays"
        assert photo_url == sample_listing.image_url
        assert caption == format_listing_message(sample_listing, sample_subscription)
        assert button == ("Open on Airbnb", build_room_url("12345", sample_subscription))

    def test_listing_without_image_sends_text(self, sample_subscription):
        """Test that listings without an image are sent as text."""
        listing = make_listing("88", image_url=None)

        self.notifier.notify(listing, sample_subscription)

        self.client.send_photo.assert_not_called()
        self.client.send_text.assert_called_once()
        chat_id, text, button = self.client.send_text.call_args[0]
        assert chat_id == "@lisbon_stays"
        assert text == format_listing_message(listing, sample_subscription)
        assert button[1].startswith("https://www.airbnb.com/rooms/88?")

    def test_photo_caption_matches_text_message(self, sample_subscription):
        """Test that the caption equals the text sent for image-less listings."""
        with_image = make_listing("1", image_url="https://example.com/p.jpg")
        without_image = make_listing("1", image_url=None)

        self.notifier.notify(with_image, sample_subscription)
        self.notifier.notify(without_image, sample_subscription)

        assert self.client.send_photo.call_args[0][2] == self.client.send_text.call_args[0][1]

    def test_failed_delivery_raises(self, sample_listing, sample_subscription):
        """Test that a failed DeliveryResult raises NotificationDeliveryFailed."""
        self.client.send_photo.return_value = DeliveryResult(
            success=False,
            delivery_time=datetime.now(),
            error_message="Bad Request: chat not found",
        )

        with pytest.raises(NotificationDeliveryFailed, match="chat not found") as exc_info:
            self.notifier.notify(sample_listing, sample_subscription)

        assert exc_info.value.listing_id == "12345"
        assert exc_info.value.chat_id == "@lisbon_stays"
        assert self.client.send_photo.call_count == 1

    def test_client_exception_raises(self, sample_subscription):
        """Test that client exceptions are surfaced as NotificationDeliveryFailed."""
        self.client.send_text.side_effect = ConnectionError("reset by peer")

        with pytest.raises(NotificationDeliveryFailed, match="reset by peer"):
            self.notifier.notify(make_listing("3"), sample_subscription)
