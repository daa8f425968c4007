"""Denylist stage - rejects operation types regardless of their role check."""

from typing import Any

from ..operations import type_identifier
from ..policy.store import PolicyStore
from .decision import Stage, StageDecision, audit


class DenylistStage(Stage):
    """Rejects any operation whose concrete type is on the denylist.

    Runs independently of the role check so that a buggy, missing or
    self-satisfied scope declaration cannot get a denied type executed.
    """

    name = "denylist"

    def __init__(self, policy: PolicyStore):
        self.policy = policy

    def decide(self, operation: Any) -> StageDecision:
        operation_type = type_identifier(operation)

        if self.policy.is_denied(operation_type):
            return self._deny(
                operation,
                operation_type,
                code="denylisted",
                message=(
                    f"Custom security configuration prohibits execution of "
                    f"{operation!r} of type {operation_type} regardless of role check"
                ),
            )

        audit(
            "info",
            "operation_not_denylisted",
            stage=self.name,
            operation=repr(operation),
            operation_type=operation_type,
        )
        return self._allow(operation_type, code="not_denylisted")
