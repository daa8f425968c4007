"""Role check enforcement stage.

Operations are expected to declare the authorization scope they need by
calling into the ``ScopeRecorder`` passed to ``declare_scope``. An operation
that never calls in is either unaware of the contract or deliberately
skipping the check, and is rejected unless policy exempts it.

Only the fact that a declaration happened is enforced here, not its content.
"""

from typing import Any

from ..operations import (
    ScopeRecorder,
    has_verified_identity,
    supports_scope_declaration,
    type_identifier,
)
from ..policy.defaults import PROTOCOL_INTERNAL_OPERATIONS
from ..policy.store import PolicyStore
from .decision import Stage, StageDecision, audit


class RoleCheckStage(Stage):
    """Rejects operations that do not declare a required scope."""

    name = "role_check"

    def __init__(self, policy: PolicyStore, protocol_internal: frozenset[type] = PROTOCOL_INTERNAL_OPERATIONS):
        self.policy = policy
        self.protocol_internal = protocol_internal

    def decide(self, operation: Any) -> StageDecision:
        operation_type = type_identifier(operation)

        if self.policy.global_bypass:
            audit("debug", "role_check_bypassed_globally", operation_type=operation_type)
            return self._allow(operation_type, code="global_bypass")

        if not supports_scope_declaration(operation):
            audit("info", "role_check_contract_unsupported", operation_type=operation_type)
            return self._abstain(operation_type, code="contract_unsupported")

        recorder = ScopeRecorder()
        operation.declare_scope(recorder)

        if recorder.checked:
            audit(
                "debug",
                "scope_declared",
                operation_type=operation_type,
                scopes=[scope.name for scope in recorder.declared],
            )
            return self._allow(operation_type, code="scope_declared")

        if type(operation) in self.protocol_internal:
            audit("debug", "protocol_internal_operation", operation_type=operation_type)
            return self._allow(operation_type, code="protocol_internal")

        if self.policy.is_bypassed(operation_type) and has_verified_identity(operation):
            audit("debug", "role_check_bypassed", operation_type=operation_type)
            return self._allow(operation_type, code="bypass_allowlist")

        return self._deny(
            operation,
            operation_type,
            code="scope_not_declared",
            message=(
                f"Security hardening prohibits the operation {operation_type} "
                f"from ignoring the scope recorder"
            ),
        )
