"""
Pytest configuration and shared fixtures.

This module provides common fixtures for all tests in the Stay Watch
test suite. Builders and fakes live in ``factories``.
"""

import copy

import pytest

from factories import RecordingSleep, make_raw_item, make_search_response
from stay_watch.models.listing import Listing, ListingPrice
from stay_watch.models.subscription import Subscription


# Test data fixtures
@pytest.fixture
def raw_item():
    """Create a sample raw search result item."""
    return make_raw_item()


@pytest.fixture
def search_response(raw_item):
    """Create a sample search response containing two items."""
    second = make_raw_item(listing_id="67890", name="Sunny flat", picture=None)
    return make_search_response([copy.deepcopy(raw_item), second])


@pytest.fixture
def sample_subscription():
    """Create a sample Subscription."""
    return Subscription(
        id="sub-1",
        chat_id="@lisbon_stays",
        currency="EUR",
        filters={
            "checkin": "2024-06-01",
            "checkout": "2024-06-05",
            "adults": 2,
            "query": "Lisbon, Portugal",
        },
        known_listings=["A", "B"],
    )


@pytest.fixture
def sample_listing():
    """Create a sample Listing with an image."""
    return Listing(
        id="12345",
        name="Cosy loft near the old town",
        image_url="https://a0.muscache.com/im/pictures/loft.jpg",
        rating="4.92 (37)",
        price=ListingPrice(total="€ 512 total", nightly="€ 128 per night"),
    )


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to every test not marked otherwise."""
    for item in items:
        if not any(
            marker.name in ["integration", "slow"] for marker in item.iter_markers()
        ):
            item.add_marker(pytest.mark.unit)
