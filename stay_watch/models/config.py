"""
Configuration models for the system.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import urlparse


class KnownSetPolicy(Enum):
    """How a subscription's known listings are updated after a poll."""

    REPLACE = "replace"
    APPEND = "append"


class MalformedItemPolicy(Enum):
    """What to do with a search result item that cannot be normalized."""

    SKIP = "skip"
    ABORT = "abort"


@dataclass
class SearchConfig:
    """Configuration for the upstream listings search API."""

    api_key: str
    endpoint: str = "https://www.airbnb.com/api/v3/ExploreSections"
    locale: str = "en"
    timeout: int = 30
    on_malformed_item: MalformedItemPolicy = MalformedItemPolicy.SKIP

    def validate(self) -> bool:
        """Validate search API configuration."""
        if not self.api_key or self.api_key.startswith("__MISSING_ENV_VAR_"):
            raise ValueError(
                "Search API key is required. Please set the AIRBNB_API_KEY "
                "environment variable."
            )

        parsed_url = urlparse(self.endpoint)
        if parsed_url.scheme not in ["http", "https"] or not parsed_url.netloc:
            raise ValueError(f"Invalid search endpoint URL: {self.endpoint}")

        if not self.locale or not self.locale.strip():
            raise ValueError("Search locale cannot be empty")

        if not isinstance(self.timeout, int) or self.timeout <= 0:
            raise ValueError("Search timeout must be a positive integer")

        if not isinstance(self.on_malformed_item, MalformedItemPolicy):
            raise ValueError("on_malformed_item must be 'skip' or 'abort'")

        return True


@dataclass
class TelegramConfig:
    """Configuration for the Telegram bot used to deliver alerts."""

    bot_token: str
    api_base: str = "https://api.telegram.org"
    button_text: str = "Open on Airbnb"
    timeout: int = 30

    def validate(self) -> bool:
        """Validate Telegram configuration."""
        if not self.bot_token or self.bot_token.startswith("__MISSING_ENV_VAR_"):
            raise ValueError(
                "Telegram bot token is required. Please set the TELEGRAM_TOKEN "
                "environment variable."
            )

        if not self.button_text or not self.button_text.strip():
            raise ValueError("Telegram button text cannot be empty")

        if not isinstance(self.timeout, int) or self.timeout <= 0:
            raise ValueError("Telegram timeout must be a positive integer")

        return True


@dataclass
class StorageConfig:
    """Configuration for the subscription store."""

    subscriptions_file: str = "data/searches.json"
    known_set_policy: KnownSetPolicy = KnownSetPolicy.REPLACE

    def validate(self) -> bool:
        """Validate storage configuration."""
        if not self.subscriptions_file or not self.subscriptions_file.strip():
            raise ValueError("Subscriptions file path cannot be empty")

        if not isinstance(self.known_set_policy, KnownSetPolicy):
            raise ValueError("known_set_policy must be 'replace' or 'append'")

        return True


@dataclass
class SystemConfig:
    """Scheduling, pacing and logging settings."""

    poll_interval: int = 300
    run_timeout: int = 540
    notification_delay: float = 3.0
    subscription_delay: float = 15.0
    log_level: str = "INFO"
    log_dir: Optional[str] = "logs"

    def validate(self) -> bool:
        """Validate system settings."""
        if not isinstance(self.poll_interval, int) or self.poll_interval <= 0:
            raise ValueError("Poll interval must be a positive integer")

        if self.poll_interval < 60:
            raise ValueError("Poll interval must be at least 60 seconds")

        if not isinstance(self.run_timeout, int) or self.run_timeout <= 0:
            raise ValueError("Run timeout must be a positive integer")

        if self.run_timeout > self.poll_interval * 2:
            raise ValueError("Run timeout cannot exceed twice the poll interval")

        if self.notification_delay < 0 or self.subscription_delay < 0:
            raise ValueError("Pacing delays cannot be negative")

        if self.log_level.upper() not in [
            "DEBUG",
            "INFO",
            "WARNING",
            "ERROR",
            "CRITICAL",
        ]:
            raise ValueError(f"Invalid log level: {self.log_level}")

        return True


@dataclass
class Configuration:
    """System configuration."""

    search: SearchConfig
    telegram: TelegramConfig
    storage: StorageConfig = field(default_factory=StorageConfig)
    system: SystemConfig = field(default_factory=SystemConfig)

    def validate(self) -> bool:
        """Validate system configuration."""
        self.search.validate()
        self.telegram.validate()
        self.storage.validate()
        self.system.validate()
        return True
