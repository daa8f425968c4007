"""Configuration Registry - Defines all configuration keys with tier classification.

Two-Tier System:
- Static Config (tier="static"): Read once before the pipeline is reachable
  Examples: denylist additions, role check bypass flag and allowlist additions
- Dynamic Config (tier="dynamic"): Can be hot-reloaded without restart
  Examples: host default for operations predating the scope contract
"""

from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional


@dataclass
class ConfigKey:
    """Defines a single configuration key with validation and tier classification.

    Attributes:
        tier: "static" (restart required) or "dynamic" (hot-reloadable)
        value_type: Expected Python type (str, int, bool, list)
        default: Default value if not specified in config files
        restart_required: Auto-derived from tier (True for static, False for dynamic)
        validator: Custom validation function (optional)
    """
    tier: Literal["static", "dynamic"]
    value_type: type
    default: Any
    restart_required: bool = False
    validator: Optional[Callable[[Any], bool]] = None

    def __post_init__(self):
        """Auto-derive restart_required from tier."""
        self.restart_required = (self.tier == "static")


def _all_strings(value: list) -> bool:
    return all(isinstance(item, str) for item in value)


REGISTRY: dict[str, ConfigKey] = {
    # ===== DENYLIST (Static - Security Boundary) =====
    "denylist.additional": ConfigKey(
        tier="static",
        value_type=list,
        default=[],
        validator=_all_strings,
    ),

    # ===== ROLE CHECK (Static - Security Boundary) =====
    "role_check.bypass_all": ConfigKey(
        tier="static",
        value_type=bool,
        default=False,
    ),
    "role_check.bypass_additional": ConfigKey(
        tier="static",
        value_type=list,
        default=[],
        validator=_all_strings,
    ),

    # ===== PIPELINE HOST (Dynamic - Operational override) =====
    "pipeline.allow_legacy_operations": ConfigKey(
        tier="dynamic",
        value_type=bool,
        default=False,
    ),
}


def get_config_key(key: str) -> ConfigKey:
    """Get configuration key definition from registry.

    Raises:
        KeyError: If key not found in registry
    """
    if key not in REGISTRY:
        raise KeyError(f"Configuration key '{key}' not found in registry")
    return REGISTRY[key]


def validate_config_value(key: str, value: Any) -> tuple[bool, Optional[str]]:
    """Validate a configuration value against its registered definition.

    Args:
        key: Configuration key path
        value: Value to validate

    Returns:
        Tuple of (is_valid, error_message)
        error_message is None if valid
    """
    try:
        config_key = get_config_key(key)
    except KeyError as e:
        return False, str(e)

    if not isinstance(value, config_key.value_type):
        return False, f"Expected type {config_key.value_type.__name__}, got {type(value).__name__}"

    if config_key.validator is not None:
        try:
            if not config_key.validator(value):
                return False, f"Custom validation failed for value: {value}"
        except Exception as e:
            return False, f"Validator error: {str(e)}"

    return True, None


def get_default_values() -> dict[str, Any]:
    """Get default values for all configuration keys."""
    return {key: config_key.default for key, config_key in REGISTRY.items()}


def get_static_keys() -> list[str]:
    return [key for key, config_key in REGISTRY.items() if config_key.tier == "static"]


def get_dynamic_keys() -> list[str]:
    return [key for key, config_key in REGISTRY.items() if config_key.tier == "dynamic"]
