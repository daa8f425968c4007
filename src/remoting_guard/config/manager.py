"""Configuration Manager - Two-Tier Configuration System.

This module implements configuration management for the interception pipeline:
1. Static configuration loading from TOML files and environment variables
2. Dynamic configuration defaults with in-process hot updates
3. Update notification for subscribers (e.g. the pipeline host)

Design:
- Static Config: Loaded once at startup, before the pipeline accepts traffic
- Dynamic Config: Seeded from TOML, updated at runtime via update_dynamic_config
- Malformed identifier lists are cleaned up, never fatal to startup
"""

import os
from pathlib import Path
from typing import Any, Optional
from collections.abc import Callable

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # type: ignore

from dotenv import load_dotenv
import structlog

from .registry import (
    get_config_key,
    validate_config_value,
    get_default_values,
    get_static_keys,
    get_dynamic_keys,
)

logger = structlog.get_logger(__name__)

ENV_PREFIX = "REMOTING_GUARD_"


class ConfigManager:
    """Manages two-tier configuration with hot-update support.

    Attributes:
        static_config: Static configuration (read once at startup)
        dynamic_config: Dynamic configuration (hot-reloadable)
        _subscribers: Callbacks notified of dynamic config updates
    """

    def __init__(self, config_file: Optional[Path] = None, env_file: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_file: Path to TOML config file (default: config/default.toml)
            env_file: Path to .env file (default: .env in project root)
        """
        self.static_config: dict[str, Any] = {}
        self.dynamic_config: dict[str, Any] = {}
        self._subscribers: list[Callable[[str, Any], None]] = []

        if config_file is None:
            config_file = Path("config/default.toml")
        if env_file is None:
            env_file = Path(".env")

        self.config_file = config_file
        self.env_file = env_file

        logger.info("config_manager_initialized",
                    config_file=str(config_file),
                    env_file=str(env_file))

    def load_static_config(self) -> dict[str, Any]:
        """Load static configuration from TOML and environment variables.

        Precedence: code defaults < TOML file < environment variables

        Returns:
            Dictionary of static configuration key-value pairs

        Raises:
            ValueError: If a value has the wrong type
        """
        logger.info("loading_static_config", config_file=str(self.config_file))

        if self.env_file.exists():
            load_dotenv(self.env_file)
            logger.info("env_file_loaded", env_file=str(self.env_file))

        static_keys = get_static_keys()
        config = self._defaults_for(static_keys)
        self._apply_toml(config, static_keys)

        # Environment variables use REMOTING_GUARD_ prefix and underscores
        # Example: REMOTING_GUARD_DENYLIST_ADDITIONAL overrides denylist.additional
        for key in static_keys:
            env_key = ENV_PREFIX + key.replace(".", "_").upper()
            env_value = os.getenv(env_key)
            if env_value is not None:
                config_key_def = get_config_key(key)
                try:
                    config[key] = self._parse_env_value(env_value, config_key_def.value_type)
                    logger.info("env_override_applied", key=key, env_key=env_key)
                except ValueError as e:
                    logger.error("env_parse_error", key=key, env_key=env_key, error=str(e))
                    raise ValueError(f"Failed to parse env var {env_key}: {e}")

        self._validate_all(config, "static")
        self.static_config = config
        logger.info("static_config_loaded", keys_count=len(config))
        return config

    def load_dynamic_config_defaults(self) -> dict[str, Any]:
        """Load dynamic configuration seed values from defaults and TOML."""
        logger.info("loading_dynamic_config_defaults")

        dynamic_keys = get_dynamic_keys()
        config = self._defaults_for(dynamic_keys)
        self._apply_toml(config, dynamic_keys)

        self._validate_all(config, "dynamic")
        self.dynamic_config = config
        logger.info("dynamic_config_defaults_loaded", keys_count=len(config))
        return config

    def update_dynamic_config(self, key: str, value: Any) -> None:
        """Update a dynamic configuration value and notify subscribers.

        Raises:
            KeyError: If key is not a dynamic config key
            ValueError: If value validation fails
        """
        config_key_def = get_config_key(key)

        if config_key_def.tier != "dynamic":
            raise KeyError(f"Cannot hot-update static config key '{key}' - restart required")

        is_valid, error_msg = validate_config_value(key, value)
        if not is_valid:
            raise ValueError(f"Config validation failed for '{key}': {error_msg}")

        old_value = self.dynamic_config.get(key)
        self.dynamic_config[key] = value
        logger.info("dynamic_config_updated", key=key, old_value=old_value, new_value=value)

        self._notify_subscribers(key, value)

    def _notify_subscribers(self, key: str, value: Any) -> None:
        for subscriber in self._subscribers:
            try:
                subscriber(key, value)
            except Exception as e:
                logger.error("subscriber_notification_failed",
                             key=key,
                             subscriber=getattr(subscriber, "__name__", repr(subscriber)),
                             error=str(e))

    def subscribe(self, callback: Callable[[str, Any], None]) -> None:
        """Subscribe to dynamic configuration updates.

        Args:
            callback: Called as callback(key, value) after each update
        """
        self._subscribers.append(callback)
        logger.info("config_subscriber_added",
                    callback=getattr(callback, "__name__", repr(callback)))

    def get(self, key: str) -> Any:
        """Get configuration value (static or dynamic).

        Raises:
            KeyError: If key not found
        """
        config_key_def = get_config_key(key)

        if config_key_def.tier == "static":
            return self.static_config.get(key, config_key_def.default)
        else:
            return self.dynamic_config.get(key, config_key_def.default)

    def _defaults_for(self, keys: list[str]) -> dict[str, Any]:
        defaults = get_default_values()
        return {
            key: list(defaults[key]) if isinstance(defaults[key], list) else defaults[key]
            for key in keys
        }

    def _apply_toml(self, config: dict[str, Any], keys: list[str]) -> None:
        if not self.config_file.exists():
            logger.warning("config_file_not_found",
                           config_file=str(self.config_file),
                           using_defaults=True)
            return

        with open(self.config_file, "rb") as f:
            toml_data = tomllib.load(f)

        flattened = self._flatten_toml(toml_data)
        for key in keys:
            if key in flattened:
                value = flattened[key]
                if get_config_key(key).value_type is list:
                    value = self._clean_list(key, value)
                config[key] = value

        logger.info("toml_config_loaded", keys_count=len(flattened))

    def _validate_all(self, config: dict[str, Any], tier: str) -> None:
        for key, value in config.items():
            is_valid, error_msg = validate_config_value(key, value)
            if not is_valid:
                logger.error(f"{tier}_config_validation_failed", key=key, error=error_msg)
                raise ValueError(f"{tier.capitalize()} config validation failed for '{key}': {error_msg}")

    def _clean_list(self, key: str, value: Any) -> list[str]:
        """Normalize a configured identifier list.

        Comma-separated strings are split; entries are trimmed and empty or
        non-string entries dropped.
        """
        if isinstance(value, str):
            value = value.split(",")
        elif not isinstance(value, list):
            logger.warning("config_list_malformed", key=key, value_type=type(value).__name__)
            return []

        cleaned = []
        for item in value:
            if isinstance(item, str) and item.strip():
                cleaned.append(item.strip())
            else:
                logger.warning("config_list_entry_ignored", key=key, entry=repr(item))
        return cleaned

    def _flatten_toml(self, data: dict) -> dict[str, Any]:
        """Flatten nested TOML structure to dotted keys.

        Example: {"denylist": {"additional": [...]}} -> {"denylist.additional": [...]}
        """
        result = {}

        def _flatten(d: dict, prefix: str = ""):
            for key, value in d.items():
                full_key = f"{prefix}.{key}" if prefix else key
                if isinstance(value, dict):
                    _flatten(value, full_key)
                else:
                    result[full_key] = value

        _flatten(data)
        return result

    def _parse_env_value(self, value: str, target_type: type) -> Any:
        """Parse environment variable string to target type.

        Raises:
            ValueError: If parsing fails
        """
        if target_type == bool:
            return value.strip().lower() in ("true", "1", "yes", "on")
        elif target_type == int:
            return int(value)
        elif target_type == list:
            return [item.strip() for item in value.split(",") if item.strip()]
        elif target_type == str:
            return value
        else:
            raise ValueError(f"Unsupported type for env parsing: {target_type}")


def initialize_config(config_file: Optional[Path] = None,
                      env_file: Optional[Path] = None) -> ConfigManager:
    """Create a configuration manager and load both tiers.

    Args:
        config_file: Path to TOML config file
        env_file: Path to .env file

    Returns:
        Loaded ConfigManager instance
    """
    manager = ConfigManager(config_file, env_file)
    manager.load_static_config()
    manager.load_dynamic_config_defaults()
    return manager
