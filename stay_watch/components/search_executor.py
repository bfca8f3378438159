"""
Search execution for the Stay Watch system.

This module issues one explore-search request per subscription against the
Airbnb ``ExploreSections`` persisted query and turns the listings section
of the response into Listing records.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from ..models.config import MalformedItemPolicy, SearchConfig
from ..models.listing import Listing
from ..models.subscription import Subscription
from ..utils.error_handling import (
    ListingsSectionNotFound,
    MalformedUpstreamItem,
    SearchRequestFailed,
)
from .listing_normalizer import ListingNormalizer

logger = logging.getLogger(__name__)

OPERATION_NAME = "ExploreSections"
PERSISTED_QUERY_HASH = "a4f62dd4a0c881ddc9a3a00bc376e15c3fd1b10e6bc0a7c38d48f048a20b6c17"
LISTINGS_SECTION_TYPENAME = "ExploreListingsSection"
API_KEY_HEADER = "X-Airbnb-API-Key"

BASE_EXPLORE_REQUEST: Dict[str, Any] = {
    "metadataOnly": False,
    "version": "1.8.3",
    "itemsPerGrid": 40,
    "refinementPaths": ["/homes"],
}

SECTIONS_PATH = ("data", "presentation", "explore", "sections", "sections")


def find_section(node: Any, predicate: Callable[[Dict[str, Any]], bool]) -> Optional[Dict[str, Any]]:
    """
    Depth-first search for the first mapping in a JSON tree matching ``predicate``.

    Args:
        node: Decoded JSON value (dict, list or scalar)
        predicate: Test applied to every mapping encountered

    Returns:
        The first matching mapping, or None
    """
    if isinstance(node, dict):
        if predicate(node):
            return node
        children = node.values()
    elif isinstance(node, list):
        children = node
    else:
        return None

    for child in children:
        found = find_section(child, predicate)
        if found is not None:
            return found
    return None


def is_listings_section(node: Dict[str, Any]) -> bool:
    return node.get("__typename") == LISTINGS_SECTION_TYPENAME


class SearchExecutor:
    """Runs a subscription's search and normalizes the listings it returns."""

    def __init__(
        self,
        config: SearchConfig,
        session: Optional[requests.Session] = None,
        normalizer: Optional[ListingNormalizer] = None,
    ):
        """
        Initialize search executor.

        Args:
            config: Search API configuration
            session: HTTP session to reuse; a plain session is created if None
            normalizer: Listing normalizer, the default one if None
        """
        self.config = config
        self.normalizer = normalizer or ListingNormalizer()
        self.session = session or self._create_session()
        self.skipped_items = 0

    def _create_session(self) -> requests.Session:
        """Create a plain session. No retry adapter is mounted."""
        session = requests.Session()
        session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": "Stay-Watch/0.1 (listing alerts)",
            }
        )
        return session

    def build_params(self, subscription: Subscription) -> Dict[str, str]:
        """
        Build the query parameters for a subscription's search.

        Subscription filters override the baseline explore request keys.
        """
        explore_request = {**BASE_EXPLORE_REQUEST, **subscription.filters}
        return {
            "operationName": OPERATION_NAME,
            "locale": self.config.locale,
            "currency": subscription.currency,
            "variables": json.dumps({"exploreRequest": explore_request}),
            "extensions": json.dumps(
                {
                    "persistedQuery": {
                        "version": 1,
                        "sha256Hash": PERSISTED_QUERY_HASH,
                    }
                }
            ),
        }

    def search(self, subscription: Subscription) -> List[Listing]:
        """
        Fetch and normalize the listings for one subscription.

        Args:
            subscription: Subscription whose filters drive the search

        Returns:
            Listings in the order the provider returned them

        Raises:
            SearchRequestFailed: On transport, HTTP status or JSON decoding errors
            ListingsSectionNotFound: If the response carries no listings section
            MalformedUpstreamItem: If an item is unusable and the policy is ABORT
        """
        document = self._fetch(subscription)
        items = self.extract_items(document)
        return self.normalize_items(items)

    def _fetch(self, subscription: Subscription) -> Any:
        params = self.build_params(subscription)
        logger.debug(
            f"Searching listings for chat {subscription.chat_id} "
            f"in {subscription.currency}"
        )

        try:
            response = self.session.get(
                self.config.endpoint,
                params=params,
                headers={API_KEY_HEADER: self.config.api_key},
                timeout=self.config.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            raise SearchRequestFailed(f"Search request timed out: {e}") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            raise SearchRequestFailed(f"Search request returned HTTP {status}") from e
        except requests.exceptions.RequestException as e:
            raise SearchRequestFailed(f"Search request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise SearchRequestFailed(f"Search response is not valid JSON: {e}") from e

    def extract_items(self, document: Any) -> List[Any]:
        """
        Locate the listings section and return its items.

        The search starts at the explore sections list and falls back to the
        whole document, since sections may be wrapped in generic containers.
        """
        sections = document
        for key in SECTIONS_PATH:
            sections = sections.get(key) if isinstance(sections, dict) else None

        section = None
        if sections is not None:
            section = find_section(sections, is_listings_section)
        if section is None:
            section = find_section(document, is_listings_section)
        if section is None:
            raise ListingsSectionNotFound("Unable to find listings")

        items = section.get("items") or []
        if not isinstance(items, list):
            raise ListingsSectionNotFound("Listings section items is not a list")
        return items

    def normalize_items(self, items: List[Any]) -> List[Listing]:
        """Normalize items, skipping or aborting on malformed ones per config."""
        listings: List[Listing] = []
        self.skipped_items = 0

        for index, item in enumerate(items):
            try:
                listings.append(self.normalizer.normalize(item))
            except MalformedUpstreamItem as e:
                if self.config.on_malformed_item == MalformedItemPolicy.ABORT:
                    raise
                self.skipped_items += 1
                logger.warning(f"Skipping malformed search result #{index}: {e}")

        logger.info(
            f"Normalized {len(listings)} listings "
            f"({self.skipped_items} skipped)"
        )
        return listings
