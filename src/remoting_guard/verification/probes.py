"""Known-good and known-bad operations used by the channel self-test."""

from __future__ import annotations

from ..operations import CONTROLLER_SCOPE, AgentToControllerOperation, Operation, ScopeRecorder


class NonScopeDeclaringOperation(Operation):
    """Implements the contract but deliberately declares nothing."""

    def declare_scope(self, recorder: ScopeRecorder) -> None:
        pass

    def call(self) -> None:
        raise RuntimeError(
            "An operation not declaring a scope successfully executed"
        )


class BlockedByDefaultNoOpOperation(AgentToControllerOperation):
    """Declares its scope properly but is on the built-in denylist."""

    def call(self) -> None:
        raise RuntimeError(
            "BlockedByDefaultNoOpOperation successfully executed, indicating "
            "that the denylist is ineffective or customized"
        )


class AllowedByDefaultNoOpOperation(AgentToControllerOperation):
    """Declares its scope and is not denied by default."""

    def call(self) -> None:
        return None


class NoOpFileCallable:
    """File operation sent to the controller wrapped in ``FileCallableWrapper``."""

    def declare_scope(self, recorder: ScopeRecorder) -> None:
        recorder.declare(CONTROLLER_SCOPE)

    def invoke(self, path: str) -> None:
        raise RuntimeError(
            "A file operation successfully executed, indicating that file "
            "access is not fully blocked"
        )
