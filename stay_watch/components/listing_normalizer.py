"""
Listing normalization for the Stay Watch system.

This module converts one raw explore-search result item into a Listing.
"""

import logging
from typing import Any, Dict, Optional

from ..models.listing import Listing, ListingPrice
from ..utils.error_handling import MalformedUpstreamItem

logger = logging.getLogger(__name__)


def _dig(node: Any, *path: str) -> Any:
    """Follow ``path`` through nested mappings, returning None when a key is missing."""
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


class ListingNormalizer:
    """Builds Listing records from explore-search result items."""

    PRICE_PATH = ("pricingQuote", "structuredStayDisplayPrice")

    def normalize(self, item: Dict[str, Any]) -> Listing:
        """
        Convert a raw search result item into a Listing.

        Args:
            item: One entry of the listings section ``items`` array

        Returns:
            Listing built from the item

        Raises:
            MalformedUpstreamItem: If identity, name or display prices are missing
        """
        if not isinstance(item, dict):
            raise MalformedUpstreamItem(
                f"Search result item must be an object, got {type(item).__name__}",
                item,
            )

        listing_data = item.get("listing")
        if not isinstance(listing_data, dict):
            raise MalformedUpstreamItem("Search result item has no listing", item)

        listing_id = listing_data.get("id")
        if listing_id is None or str(listing_id).strip() == "":
            raise MalformedUpstreamItem("Listing has no id", item)

        name = listing_data.get("name")
        if name is None:
            raise MalformedUpstreamItem(f"Listing {listing_id} has no name", item)

        display_price = _dig(item, *self.PRICE_PATH)
        total = _dig(display_price, "secondaryLine", "accessibilityLabel")
        nightly = _dig(display_price, "primaryLine", "accessibilityLabel")
        if total is None or nightly is None:
            raise MalformedUpstreamItem(
                f"Listing {listing_id} has no display price", item
            )

        return Listing(
            id=str(listing_id),
            name=str(name),
            image_url=self._extract_image(listing_data),
            rating=self._extract_rating(listing_data),
            price=ListingPrice(total=str(total), nightly=str(nightly)),
            raw_response=item,
        )

    def _extract_image(self, listing_data: Dict[str, Any]) -> Optional[str]:
        pictures = listing_data.get("contextualPictures") or []
        for picture in pictures:
            url = picture.get("picture") if isinstance(picture, dict) else None
            if url:
                return url
            # Only the first picture is considered
            break
        return None

    def _extract_rating(self, listing_data: Dict[str, Any]) -> Optional[str]:
        localized = listing_data.get("avgRatingLocalized")
        if localized is not None:
            return str(localized)

        numeric = listing_data.get("avgRating")
        if numeric is not None and numeric != "":
            return str(numeric)

        return None


_default_normalizer = ListingNormalizer()


def normalize_listing(item: Dict[str, Any]) -> Listing:
    """Normalize an item with the shared normalizer."""
    return _default_normalizer.normalize(item)
