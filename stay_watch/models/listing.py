"""
Listing data models for the Stay Watch system.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ListingPrice:
    """Pre-formatted display prices for a stay."""

    total: str
    nightly: str


@dataclass
class Listing:
    """Normalized search result built fresh on every poll."""

    id: str
    name: str
    image_url: Optional[str]
    rating: Optional[str]
    price: ListingPrice
    raw_response: Dict[str, Any] = field(default_factory=dict, repr=False)

    def validate(self) -> bool:
        """Validate the listing data."""
        if not self.id or not self.id.strip():
            raise ValueError("Listing ID cannot be empty")

        if not isinstance(self.name, str):
            raise ValueError("Listing name must be a string")

        if not isinstance(self.price, ListingPrice):
            raise ValueError("Listing price must be a ListingPrice")

        if self.image_url is not None and not self.image_url.strip():
            raise ValueError("Listing image URL cannot be blank")

        return True
