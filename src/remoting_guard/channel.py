"""In-process channel that gates every inbound operation through the pipeline."""

from __future__ import annotations

import threading
from typing import Any

import structlog

from .errors import PolicyRejection, RemoteCallError
from .operations import type_identifier
from .pipeline.host import InterceptionPipeline

logger = structlog.get_logger(__name__)

_executing = threading.local()


class LocalChannel:
    """Delivers operations to a receiving side guarded by ``pipeline``.

    ``peer`` is the channel pointing back at the sending side, if any. While an
    operation runs, ``LocalChannel.current()`` returns that peer so the
    operation can call back.
    """

    def __init__(self, pipeline: InterceptionPipeline, name: str = "local"):
        self.pipeline = pipeline
        self.name = name
        self.peer: LocalChannel | None = None

    @staticmethod
    def current() -> LocalChannel | None:
        """Channel back to the sender of the operation executing on this thread."""
        return getattr(_executing, "channel", None)

    def call(self, operation: Any) -> Any:
        """
        Execute ``operation`` on the receiving side.

        Raises:
            RemoteCallError: If the receiving side refused execution; the
                ``PolicyRejection`` is available as ``__cause__``
        """
        try:
            self.pipeline.admit(operation)
        except PolicyRejection as e:
            logger.info(
                "remote_call_refused",
                channel=self.name,
                operation_type=e.operation_type,
                code=e.code,
            )
            raise RemoteCallError(
                f"Remote call on {self.name} failed: {type_identifier(operation)} was rejected"
            ) from e

        previous = LocalChannel.current()
        _executing.channel = self.peer
        try:
            return operation.call()
        finally:
            _executing.channel = previous


def connect(
    controller_pipeline: InterceptionPipeline,
    agent_pipeline: InterceptionPipeline,
    name: str = "agent",
) -> tuple[LocalChannel, LocalChannel]:
    """Link a controller and an agent.

    Returns ``(to_agent, to_controller)``: the channel the controller uses to
    reach the agent, guarded by ``agent_pipeline``, and the one the agent uses
    to reach the controller, guarded by ``controller_pipeline``.
    """
    to_agent = LocalChannel(agent_pipeline, name=name)
    to_controller = LocalChannel(controller_pipeline, name=f"{name}->controller")
    to_agent.peer = to_controller
    to_controller.peer = to_agent
    return to_agent, to_controller
