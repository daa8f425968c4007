"""Channel self-test package."""

from .probes import (
    AllowedByDefaultNoOpOperation,
    BlockedByDefaultNoOpOperation,
    NoOpFileCallable,
    NonScopeDeclaringOperation,
)
from .tester import (
    ChannelVerificationOperation,
    VerificationReport,
    verify_channel,
    verify_remote,
)

__all__ = [
    "AllowedByDefaultNoOpOperation",
    "BlockedByDefaultNoOpOperation",
    "NoOpFileCallable",
    "NonScopeDeclaringOperation",
    "ChannelVerificationOperation",
    "VerificationReport",
    "verify_channel",
    "verify_remote",
]
