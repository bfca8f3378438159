"""
Configuration management for Stay Watch.
"""

import json
import os
from typing import Any, Dict, Optional

import yaml

from ..models.config import (
    Configuration,
    KnownSetPolicy,
    MalformedItemPolicy,
    SearchConfig,
    StorageConfig,
    SystemConfig,
    TelegramConfig,
)


class ConfigurationManager:
    """Manages loading and validation of system configuration."""

    DEFAULT_PATHS = [
        "config/config.yaml",
        "config/config.yml",
        "config/config.json",
        "config.yaml",
        "config.yml",
        "config.json",
    ]

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file. If None, uses default paths.
        """
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Configuration] = None

    def _find_config_file(self) -> str:
        """Find the configuration file in standard locations."""
        for path in self.DEFAULT_PATHS:
            if os.path.exists(path):
                return path

        if os.path.exists("config/config.example.yaml"):
            raise ValueError(
                "No configuration file found. Please copy 'config/config.example.yaml' "
                "to 'config/config.yaml' and customize it for your needs."
            )

        raise ValueError(
            "No configuration file found. Please create a configuration file "
            "at one of these locations: " + ", ".join(self.DEFAULT_PATHS)
        )

    def _read_raw(self, config_path: str) -> Dict[str, Any]:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.endswith(".json"):
                raw_config = json.load(f)
            else:
                raw_config = yaml.safe_load(f)
        return raw_config or {}

    def load_config(self) -> Configuration:
        """
        Load configuration from file.

        Returns:
            Configuration object with validated settings.

        Raises:
            ValueError: If configuration is invalid or file cannot be read.
            FileNotFoundError: If configuration file doesn't exist.
        """
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            raw_config = self._read_raw(self.config_path)
            raw_config = self._expand_env_vars(raw_config)
            config = self._parse_config(raw_config)
            config.validate()
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")
        except ValueError:
            raise
        except Exception as e:
            raise ValueError(f"Error loading configuration: {e}")

        self._config = config
        return config

    def _expand_env_vars(self, obj: Any, strict: bool = True) -> Any:
        """Recursively expand ``${VAR_NAME}`` values from the environment."""
        if isinstance(obj, dict):
            return {key: self._expand_env_vars(value, strict) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._expand_env_vars(item, strict) for item in obj]
        elif isinstance(obj, str):
            if obj.startswith("${") and obj.endswith("}"):
                var_name = obj[2:-1]
                env_value = os.getenv(var_name)
                if env_value is None:
                    if strict:
                        raise ValueError(f"Environment variable '{var_name}' not found")
                    return f"__MISSING_ENV_VAR_{var_name}__"
                return env_value
            return obj
        else:
            return obj

    def _parse_config(self, raw_config: Dict[str, Any]) -> Configuration:
        """Parse raw configuration dictionary into Configuration object."""
        if not isinstance(raw_config, dict):
            raise ValueError("Configuration root must be a mapping")

        search_data = raw_config.get("search") or {}
        telegram_data = raw_config.get("telegram") or {}
        storage_data = raw_config.get("storage") or {}
        system_data = raw_config.get("system") or {}

        try:
            search = SearchConfig(
                api_key=search_data.get("api_key", ""),
                endpoint=search_data.get("endpoint", SearchConfig.endpoint),
                locale=search_data.get("locale", "en"),
                timeout=search_data.get("timeout", 30),
                on_malformed_item=MalformedItemPolicy(
                    search_data.get("on_malformed_item", "skip")
                ),
            )

            telegram = TelegramConfig(
                bot_token=telegram_data.get("bot_token", ""),
                api_base=telegram_data.get("api_base", TelegramConfig.api_base),
                button_text=telegram_data.get("button_text", TelegramConfig.button_text),
                timeout=telegram_data.get("timeout", 30),
            )

            storage = StorageConfig(
                subscriptions_file=storage_data.get(
                    "subscriptions_file", StorageConfig.subscriptions_file
                ),
                known_set_policy=KnownSetPolicy(
                    storage_data.get("known_set_policy", "replace")
                ),
            )

            system = SystemConfig(
                poll_interval=system_data.get("poll_interval", 300),
                run_timeout=system_data.get("run_timeout", 540),
                notification_delay=float(system_data.get("notification_delay", 3)),
                subscription_delay=float(system_data.get("subscription_delay", 15)),
                log_level=system_data.get("log_level", "INFO"),
                log_dir=system_data.get("log_dir", "logs"),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Error parsing configuration: {e}")

        return Configuration(
            search=search, telegram=telegram, storage=storage, system=system
        )

    def get_config(self) -> Configuration:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            return self.load_config()
        return self._config

    def validate_config_file(self, config_path: str) -> bool:
        """
        Validate a configuration file without keeping it.

        Missing environment variables are reported by the section that
        needs them rather than by the expansion step.

        Raises:
            ValueError: If configuration is invalid with detailed error message.
        """
        if not os.path.exists(config_path):
            raise ValueError(f"Configuration file not found: {config_path}")

        try:
            raw_config = self._expand_env_vars(self._read_raw(config_path), strict=False)
            self._parse_config(raw_config).validate()
            return True
        except Exception as e:
            raise ValueError(f"Configuration validation failed: {e}")
