"""
Subscription data models for the Stay Watch system.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

REQUIRED_FILTER_KEYS = ("checkin", "checkout", "adults")


@dataclass
class Subscription:
    """One monitored search and the chat that receives its alerts."""

    chat_id: str
    currency: str
    filters: Dict[str, Any]
    active: bool = True
    known_listings: List[str] = field(default_factory=list)
    id: Optional[str] = None

    def validate(self) -> bool:
        """Validate subscription data."""
        if not self.chat_id or not str(self.chat_id).strip():
            raise ValueError("Subscription chat ID cannot be empty")

        if not self.currency or not self.currency.strip():
            raise ValueError("Subscription currency cannot be empty")

        if not isinstance(self.filters, dict):
            raise ValueError("Subscription filters must be a dictionary")

        for key in REQUIRED_FILTER_KEYS:
            if key not in self.filters or self.filters[key] in (None, ""):
                raise ValueError(f"Subscription filters must include '{key}'")

        if not isinstance(self.known_listings, list):
            raise ValueError("Known listings must be a list")

        return True

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "Subscription":
        """Build a subscription from a stored document."""
        return cls(
            chat_id=str(data.get("chatId", "")),
            currency=data.get("currency", ""),
            filters=dict(data.get("filters") or {}),
            active=bool(data.get("active", True)),
            known_listings=[str(i) for i in data.get("knownListings") or []],
            id=doc_id if doc_id is not None else data.get("id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the stored document shape."""
        return {
            "id": self.id,
            "chatId": self.chat_id,
            "currency": self.currency,
            "filters": self.filters,
            "active": self.active,
            "knownListings": list(self.known_listings),
        }
