# Policy Layer - shared denylist and bypass configuration

from .defaults import (
    BUILTIN_BYPASS_ALLOWLIST,
    BUILTIN_DENYLIST,
    PROTOCOL_INTERNAL_OPERATIONS,
    parse_identifier_list,
)
from .store import PolicyStore

__all__ = [
    "BUILTIN_BYPASS_ALLOWLIST",
    "BUILTIN_DENYLIST",
    "PROTOCOL_INTERNAL_OPERATIONS",
    "parse_identifier_list",
    "PolicyStore",
]
