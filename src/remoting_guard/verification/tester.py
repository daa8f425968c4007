"""Channel self-test.

Sends known-bad and known-good operations across a channel and checks that the
receiving side refuses or runs each of them as expected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import structlog

from ..errors import PolicyRejection, RemoteCallError, VerificationError
from ..operations import ControllerToAgentOperation
from ..protocol import RemotePath
from .probes import (
    AllowedByDefaultNoOpOperation,
    BlockedByDefaultNoOpOperation,
    NoOpFileCallable,
    NonScopeDeclaringOperation,
)

logger = structlog.get_logger(__name__)


@dataclass
class VerificationReport:
    """Outcome of a successful channel self-test."""

    channel: str
    rejected: list[str] = field(default_factory=list)
    executed: list[str] = field(default_factory=list)


def _expect_rejected(name: str, send: Callable[[], Any]) -> PolicyRejection:
    try:
        send()
    except RemoteCallError as e:
        if isinstance(e.__cause__, PolicyRejection):
            logger.debug("expected_rejection", check=name, code=e.__cause__.code)
            return e.__cause__
        raise VerificationError(name, f"Unexpected exception: {e!r}") from e
    except RuntimeError as e:
        # Raised from inside call() when the operation actually ran.
        raise VerificationError(name, str(e)) from e
    raise VerificationError(name, "No rejection for an operation expected to be refused")


def _expect_executed(channel: Any, operation: Any) -> None:
    name = type(operation).__name__
    try:
        channel.call(operation)
    except RemoteCallError as e:
        if isinstance(e.__cause__, PolicyRejection):
            raise VerificationError(name, "Rejected an operation expected to run") from e
        raise VerificationError(name, f"Unexpected exception: {e!r}") from e


def verify_channel(channel: Any) -> VerificationReport:
    """
    Run the self-test against ``channel``.

    Args:
        channel: Object with ``call(operation)`` and a ``name``

    Returns:
        VerificationReport listing the operations that behaved as expected

    Raises:
        VerificationError: On the first operation with an unexpected outcome,
            including one that executed when it should have been refused
    """
    if channel is None:
        raise ValueError("Can only check an open channel, but channel was None")

    report = VerificationReport(channel=getattr(channel, "name", repr(channel)))

    checks = (
        (NonScopeDeclaringOperation.__name__,
         lambda: channel.call(NonScopeDeclaringOperation())),
        (NoOpFileCallable.__name__,
         lambda: RemotePath(channel, "test").act(NoOpFileCallable())),
        (BlockedByDefaultNoOpOperation.__name__,
         lambda: channel.call(BlockedByDefaultNoOpOperation())),
    )
    for name, send in checks:
        _expect_rejected(name, send)
        report.rejected.append(name)

    _expect_executed(channel, AllowedByDefaultNoOpOperation())
    report.executed.append(AllowedByDefaultNoOpOperation.__name__)

    logger.info(
        "channel_verified",
        channel=report.channel,
        rejected=report.rejected,
        executed=report.executed,
    )
    return report


class ChannelVerificationOperation(ControllerToAgentOperation):
    """Runs ``verify_channel`` on an agent, against its channel to the controller."""

    def call(self) -> VerificationReport:
        from ..channel import LocalChannel

        channel = LocalChannel.current()
        if channel is None:
            raise ValueError("Can only check an open channel, but channel was None")
        return verify_channel(channel)


def verify_remote(to_agent: Any) -> VerificationReport:
    """
    Have the agent at the other end of ``to_agent`` verify its channel back to
    the controller, i.e. that the controller refuses what it should.

    Raises:
        VerificationError: If the agent's self-test failed
        RemoteCallError: If the agent refused to run the self-test
    """
    report = to_agent.call(ChannelVerificationOperation())
    logger.info("remote_channel_verified", channel=getattr(to_agent, "name", repr(to_agent)))
    return report
