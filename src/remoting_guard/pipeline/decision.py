"""Shared decision contract for pipeline stages."""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from ..errors import PolicyRejection, REMEDIATION_URL

logger = structlog.get_logger(__name__)


class Verdict(enum.Enum):
    ALLOWED = "allowed"
    DENIED = "denied"
    NOT_APPLICABLE = "not_applicable"


@dataclass(frozen=True)
class StageDecision:
    """Outcome of a single stage for a single operation."""

    verdict: Verdict
    stage: str
    operation_type: str
    code: str
    rejection: Optional[PolicyRejection] = None


class Stage(ABC):
    """One decision step in the interception pipeline.

    Stages are stateless across operations; the only shared state is the
    policy store they are constructed with.
    """

    name: str = "stage"

    @abstractmethod
    def decide(self, operation: Any) -> StageDecision:
        """Return the stage's verdict for ``operation`` without raising."""

    def evaluate(self, operation: Any, continuation: Any) -> Any:
        """Return ``continuation`` unchanged, or raise ``PolicyRejection``.

        A stage that takes no position (``NOT_APPLICABLE``) also returns the
        continuation; the host decides what happens to such operations.
        """
        decision = self.decide(operation)
        if decision.verdict is Verdict.DENIED:
            raise decision.rejection
        return continuation

    def _allow(self, operation_type: str, code: str) -> StageDecision:
        return StageDecision(Verdict.ALLOWED, self.name, operation_type, code)

    def _abstain(self, operation_type: str, code: str) -> StageDecision:
        return StageDecision(Verdict.NOT_APPLICABLE, self.name, operation_type, code)

    def _deny(self, operation: Any, operation_type: str, code: str, message: str) -> StageDecision:
        """Log and build a rejection. Denials are always logged before raising."""
        rejection = PolicyRejection(
            code=code,
            message=f"{message}, see {REMEDIATION_URL}",
            operation_type=operation_type,
            stage=self.name,
        )
        audit(
            "warning",
            "operation_rejected",
            stage=self.name,
            code=code,
            operation=repr(operation),
            operation_type=operation_type,
            remediation=REMEDIATION_URL,
        )
        return StageDecision(Verdict.DENIED, self.name, operation_type, code, rejection)


def audit(level: str, event: str, **fields: Any) -> None:
    """Emit a decision record. Output problems never change a verdict."""
    try:
        getattr(logger, level)(event, **fields)
    except Exception:
        logging.getLogger(__name__).exception(
            "Failed to emit decision record %s: %s", event, fields
        )
