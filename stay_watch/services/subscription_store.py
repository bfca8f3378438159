"""
Subscription storage service.

Subscriptions live in a JSON document holding a ``searches`` collection::

    {"searches": [{"id": "...", "chatId": "...", "currency": "EUR",
                   "filters": {...}, "active": true, "knownListings": [...]}]}

The poll cycle only needs list-active and update-one-field; the CLI adds
subscriptions.
"""

import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from ..models.subscription import Subscription
from ..utils.error_handling import SubscriptionStoreError
from ..utils.logging import get_logger

logger = get_logger("subscription.store")

COLLECTION_KEY = "searches"


class JsonSubscriptionStore:
    """File-backed subscription store."""

    def __init__(self, path: str):
        """
        Initialize the store.

        Args:
            path: Path of the JSON document; created empty on first write
        """
        self.path = Path(path)

    def _load_documents(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            logger.warning(
                "Subscriptions file not found, treating as empty",
                extra={"path": str(self.path)},
            )
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SubscriptionStoreError(
                f"Could not read subscriptions from {self.path}: {e}"
            ) from e

        documents = data.get(COLLECTION_KEY) if isinstance(data, dict) else None
        if not isinstance(documents, list):
            raise SubscriptionStoreError(
                f"Subscriptions file {self.path} must contain a '{COLLECTION_KEY}' list"
            )

        for index, document in enumerate(documents):
            if not isinstance(document, dict):
                raise SubscriptionStoreError(
                    f"Subscription #{index} in {self.path} is not an object"
                )
            doc_id = document.get("id")
            document["id"] = str(index) if doc_id is None else str(doc_id)
        return documents

    def _save_documents(self, documents: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            COLLECTION_KEY: documents,
            "last_updated": datetime.now().isoformat(),
        }

        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise SubscriptionStoreError(
                f"Could not write subscriptions to {self.path}: {e}"
            ) from e

    def list_all(self) -> List[Subscription]:
        return [
            Subscription.from_dict(document, document["id"])
            for document in self._load_documents()
        ]

    def list_active(self) -> List[Subscription]:
        """
        Return valid active subscriptions in stored order.

        Invalid documents are logged and skipped so they never reach a search.
        """
        subscriptions = []
        for subscription in self.list_all():
            if not subscription.active:
                continue
            try:
                subscription.validate()
            except ValueError as e:
                logger.error(
                    "Skipping invalid subscription",
                    extra={"subscription_id": subscription.id, "error": str(e)},
                )
                continue
            subscriptions.append(subscription)

        logger.info(
            f"Loaded {len(subscriptions)} active subscriptions",
            extra={"path": str(self.path)},
        )
        return subscriptions

    def update_known_listings(self, subscription_id: str, listing_ids: List[str]) -> None:
        """
        Overwrite the ``knownListings`` field of one subscription.

        Raises:
            SubscriptionStoreError: If the subscription does not exist or the
                file cannot be written
        """
        documents = self._load_documents()
        for document in documents:
            if document["id"] == subscription_id:
                document["knownListings"] = list(listing_ids)
                break
        else:
            raise SubscriptionStoreError(f"Unknown subscription: {subscription_id}")

        self._save_documents(documents)
        logger.debug(
            "Known listings updated",
            extra={"subscription_id": subscription_id, "count": len(listing_ids)},
        )

    def add(self, subscription: Subscription) -> Subscription:
        """Validate and append a subscription, assigning an id if it has none."""
        subscription.validate()
        documents = self._load_documents()

        existing_ids = {document["id"] for document in documents}
        if subscription.id is None:
            next_id = len(documents)
            while str(next_id) in existing_ids:
                next_id += 1
            subscription.id = str(next_id)
        elif subscription.id in existing_ids:
            raise SubscriptionStoreError(f"Duplicate subscription id: {subscription.id}")

        documents.append(subscription.to_dict())
        self._save_documents(documents)
        logger.info(
            "Subscription added",
            extra={"subscription_id": subscription.id, "chat_id": subscription.chat_id},
        )
        return subscription
