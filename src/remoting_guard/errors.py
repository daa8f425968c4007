"""Structured errors raised by the interception pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


REMEDIATION_URL = "https://www.jenkins.io/redirect/remoting-security-workaround/"


@dataclass
class PolicyRejection(Exception):
    """Deliberate security denial of an inbound operation.

    Always fail-closed: the operation is never executed once this is raised.
    Retrying a rejected operation changes nothing, so ``retryable`` stays False.
    """

    code: str
    message: str
    operation_type: str
    stage: str
    remediation: str = REMEDIATION_URL
    retryable: bool = False

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": {
                "operation_type": self.operation_type,
                "stage": self.stage,
                "remediation": self.remediation,
            },
            "retryable": self.retryable,
        }


class RemoteCallError(IOError):
    """Request failure reported to the calling peer.

    When execution was refused, ``__cause__`` is the ``PolicyRejection``.
    """


@dataclass
class VerificationError(Exception):
    """A channel self-test produced an unexpected outcome."""

    probe: str
    message: str

    def __str__(self) -> str:
        return f"{self.probe}: {self.message}"
