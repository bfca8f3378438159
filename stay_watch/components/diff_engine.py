"""
Known-set diffing for the Stay Watch system.
"""

from typing import Iterable, List

from ..models.config import KnownSetPolicy
from ..models.listing import Listing


def diff_listings(fetched: Iterable[Listing], known: Iterable[str]) -> List[Listing]:
    """
    Return the fetched listings whose id is not in ``known``.

    Fetch order is preserved and ids are compared as exact strings.
    """
    known_ids = set(known)
    return [listing for listing in fetched if listing.id not in known_ids]


def next_known_set(
    fetched: Iterable[Listing],
    known: Iterable[str],
    policy: KnownSetPolicy = KnownSetPolicy.REPLACE,
) -> List[str]:
    """
    Compute the known listing ids to persist after a poll.

    REPLACE keeps exactly the ids seen in this fetch. APPEND keeps every
    previously known id and adds the unseen ones in fetch order.
    """
    if policy == KnownSetPolicy.REPLACE:
        base: List[str] = []
    else:
        base = list(dict.fromkeys(known))

    seen = set(base)
    for listing in fetched:
        if listing.id not in seen:
            seen.add(listing.id)
            base.append(listing.id)
    return base
