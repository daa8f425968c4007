"""Pipeline host - chains stages and gates dispatch of inbound operations."""

from __future__ import annotations

from typing import Any, Optional, Sequence

import structlog

from ..errors import PolicyRejection, REMEDIATION_URL
from ..operations import type_identifier
from ..policy.store import PolicyStore
from .decision import Stage, StageDecision, Verdict
from .denylist import DenylistStage
from .role_check import RoleCheckStage

logger = structlog.get_logger(__name__)


class InterceptionPipeline:
    """Runs every installed stage before an operation is executed.

    Admission Order (NON-NEGOTIABLE):
    1. Each stage decides in installation order
    2. The first denial aborts admission; later stages do not run
    3. If a stage took no position, the host default for legacy operations applies
    4. Only then is the operation executed
    """

    def __init__(self, stages: Sequence[Stage], allow_legacy_operations: bool = False):
        """
        Initialize pipeline.

        Args:
            stages: Stages in evaluation order
            allow_legacy_operations: Host default for operations some stage
                could not evaluate because they predate the scope contract
        """
        self.stages = list(stages)
        self.allow_legacy_operations = allow_legacy_operations

    def admit(self, operation: Any) -> list[StageDecision]:
        """
        Evaluate ``operation`` against every stage.

        Returns:
            The decision of each stage, in order

        Raises:
            PolicyRejection: If any stage denies, or the host default rejects
                an operation that a stage could not evaluate
        """
        decisions = []
        for stage in self.stages:
            decision = stage.decide(operation)
            if decision.verdict is Verdict.DENIED:
                raise decision.rejection
            decisions.append(decision)

        abstained = [d.stage for d in decisions if d.verdict is Verdict.NOT_APPLICABLE]
        if abstained and not self.allow_legacy_operations:
            operation_type = type_identifier(operation)
            logger.warning(
                "legacy_operation_rejected",
                operation_type=operation_type,
                abstained_stages=abstained,
            )
            raise PolicyRejection(
                code="legacy_operation",
                message=(
                    f"The operation {operation_type} does not implement scope "
                    f"declaration and legacy operations are not allowed, see {REMEDIATION_URL}"
                ),
                operation_type=operation_type,
                stage="host",
            )

        return decisions

    def dispatch(self, operation: Any) -> Any:
        """Admit ``operation`` and execute it."""
        self.admit(operation)
        return operation.call()

    def on_config_updated(self, key: str, value: Any) -> None:
        """ConfigManager subscriber applying hot-reloadable pipeline settings."""
        if key == "pipeline.allow_legacy_operations":
            self.allow_legacy_operations = bool(value)
            logger.info("pipeline_legacy_default_changed", allow_legacy_operations=bool(value))


def build_pipeline(policy: PolicyStore, config_manager: Optional[Any] = None) -> InterceptionPipeline:
    """
    Install the default stages on a new pipeline.

    Args:
        policy: Seeded policy store shared by both stages
        config_manager: Optional ConfigManager; when given, the legacy default
            is read from it and kept in sync with dynamic updates

    Returns:
        InterceptionPipeline with the denylist stage followed by the role check
    """
    allow_legacy = False
    if config_manager is not None:
        allow_legacy = bool(config_manager.get("pipeline.allow_legacy_operations"))

    pipeline = InterceptionPipeline(
        stages=[DenylistStage(policy), RoleCheckStage(policy)],
        allow_legacy_operations=allow_legacy,
    )
    if config_manager is not None:
        config_manager.subscribe(pipeline.on_config_updated)

    logger.debug(
        "pipeline_built",
        stages=[stage.name for stage in pipeline.stages],
        allow_legacy_operations=allow_legacy,
    )
    return pipeline
