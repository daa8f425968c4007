"""Two-tier configuration (static startup keys, hot-reloadable dynamic keys)."""

from .manager import ConfigManager, initialize_config

__all__ = ["ConfigManager", "initialize_config"]
