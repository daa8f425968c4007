"""Built-in policy seeds and identifier list parsing."""

from __future__ import annotations

from typing import Any, Iterable

from ..operations import type_identifier
from ..protocol import FileCallableWrapper, IOSyncer, Ping, RPCRequest
from ..verification.probes import BlockedByDefaultNoOpOperation


# Rejected regardless of the role check result.
BUILTIN_DENYLIST = frozenset({
    "hudson.scm.SubversionSCM$DescriptorImpl$SshPublicKeyCredential$1",  # SECURITY-2506
    "hudson.FilePath$FileCallableWrapper",  # SECURITY-2455
    type_identifier(FileCallableWrapper),  # SECURITY-2455
    "org.jenkinsci.squashtm.tawrapper.TestListSaver$TestListCallable",  # SECURITY-2525
    type_identifier(BlockedByDefaultNoOpOperation),  # channel self-test
})

# Patched upstream, but peers running older protocol versions still send them.
# Operations are never shipped as code, so there is no bytecode level
# negotiation operation to exempt alongside them.
BUILTIN_BYPASS_ALLOWLIST = frozenset({
    type_identifier(IOSyncer),
    type_identifier(Ping),
})

# Matched by class, not by name. Look-alike types are never exempt.
PROTOCOL_INTERNAL_OPERATIONS = frozenset({
    RPCRequest,
})


def parse_identifier_list(value: Any) -> list[str]:
    """Parse a configured list of type identifiers.

    Accepts a comma-separated string or an iterable of strings. Entries are
    trimmed; empty and non-string entries are dropped rather than failing.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    else:
        items = value

    parsed = []
    for item in items:
        if not isinstance(item, str):
            continue
        item = item.strip()
        if item and item not in parsed:
            parsed.append(item)
    return parsed
