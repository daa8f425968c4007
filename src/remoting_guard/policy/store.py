"""Process-wide policy consulted by every pipeline stage."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Iterable

import structlog

from .defaults import BUILTIN_BYPASS_ALLOWLIST, BUILTIN_DENYLIST, parse_identifier_list

if TYPE_CHECKING:
    from ..config.manager import ConfigManager

logger = structlog.get_logger(__name__)


def _validate_identifier(identifier: str) -> str:
    if not isinstance(identifier, str):
        raise ValueError(f"Type identifier must be a string, got {type(identifier).__name__}")
    if not identifier or identifier != identifier.strip():
        raise ValueError(f"Type identifier must be non-empty and trimmed: {identifier!r}")
    return identifier


class PolicyStore:
    """Denylist, bypass allowlist and global bypass flag.

    Reads happen for every inbound operation, writes are rare. Each set is an
    immutable snapshot swapped under a writer lock, so readers never block and
    always see a complete set.
    """

    def __init__(
        self,
        denylist: Iterable[str] = (),
        bypass_allowlist: Iterable[str] = (),
        global_bypass: bool = False,
    ):
        self._write_lock = threading.Lock()
        self._denylist = frozenset(_validate_identifier(t) for t in denylist)
        self._bypass_allowlist = frozenset(_validate_identifier(t) for t in bypass_allowlist)
        self._global_bypass = bool(global_bypass)

    @classmethod
    def from_config(cls, config_manager: "ConfigManager") -> "PolicyStore":
        """Seed the store from built-in defaults plus startup configuration.

        Must run once, before the pipeline is reachable by inbound traffic.
        """
        additional_denied = parse_identifier_list(config_manager.get("denylist.additional"))
        if additional_denied:
            logger.info(
                "denylist_additions_configured",
                operation_types=additional_denied,
            )

        additional_bypass = parse_identifier_list(config_manager.get("role_check.bypass_additional"))
        if additional_bypass:
            logger.info(
                "role_check_bypass_additions_configured",
                operation_types=additional_bypass,
            )

        global_bypass = bool(config_manager.get("role_check.bypass_all"))
        if global_bypass:
            logger.warning("role_check_disabled_for_all_operations")

        return cls(
            denylist=BUILTIN_DENYLIST | set(additional_denied),
            bypass_allowlist=BUILTIN_BYPASS_ALLOWLIST | set(additional_bypass),
            global_bypass=global_bypass,
        )

    # Reads

    def is_denied(self, operation_type: str) -> bool:
        return operation_type in self._denylist

    def is_bypassed(self, operation_type: str) -> bool:
        return operation_type in self._bypass_allowlist

    @property
    def global_bypass(self) -> bool:
        return self._global_bypass

    @property
    def denylist(self) -> frozenset[str]:
        return self._denylist

    @property
    def bypass_allowlist(self) -> frozenset[str]:
        return self._bypass_allowlist

    # Writes

    @global_bypass.setter
    def global_bypass(self, value: bool) -> None:
        with self._write_lock:
            self._global_bypass = bool(value)
        logger.warning("role_check_global_bypass_changed", global_bypass=bool(value))

    def deny(self, *operation_types: str) -> None:
        """Add type identifiers to the denylist."""
        added = {_validate_identifier(t) for t in operation_types}
        with self._write_lock:
            self._denylist = self._denylist | added
        logger.info("denylist_updated", added=sorted(added))

    def allow(self, *operation_types: str) -> None:
        """Remove type identifiers from the denylist."""
        removed = {_validate_identifier(t) for t in operation_types}
        with self._write_lock:
            self._denylist = self._denylist - removed
        logger.info("denylist_updated", removed=sorted(removed))

    def add_bypass(self, *operation_types: str) -> None:
        added = {_validate_identifier(t) for t in operation_types}
        with self._write_lock:
            self._bypass_allowlist = self._bypass_allowlist | added
        logger.info("bypass_allowlist_updated", added=sorted(added))

    def remove_bypass(self, *operation_types: str) -> None:
        removed = {_validate_identifier(t) for t in operation_types}
        with self._write_lock:
            self._bypass_allowlist = self._bypass_allowlist - removed
        logger.info("bypass_allowlist_updated", removed=sorted(removed))
