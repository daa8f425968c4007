"""Remotely dispatched operations and the scope declaration contract.

An operation announces which authorization scope it needs by calling into the
``ScopeRecorder`` it is handed in ``declare_scope``. The pipeline only cares
whether a declaration happened; matching scopes against the caller's trust
level is done by whoever supplies the real authorization check.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Protocol, runtime_checkable


@dataclass(frozen=True)
class Scope:
    """Category of trust an operation claims to need."""

    name: str


AGENT_SCOPE = Scope("agent")
CONTROLLER_SCOPE = Scope("controller")


def type_identifier(operation: Any) -> str:
    """Return the fully-qualified name of an operation's concrete type.

    Accepts either an instance or a class. The name comes from the class, not
    the instance, but a class author controls ``__module__`` and
    ``__qualname__``. Anything that grants an exemption must also check
    ``has_verified_identity``.
    """
    cls = operation if isinstance(operation, type) else type(operation)
    return f"{cls.__module__}.{cls.__qualname__}"


def has_verified_identity(operation: Any) -> bool:
    """True if the type's claimed name resolves back to the type itself.

    Classes defined inside functions, or claiming another module's name,
    cannot be looked up and are never verified.
    """
    cls = operation if isinstance(operation, type) else type(operation)
    resolved: Any = sys.modules.get(cls.__module__)
    for part in cls.__qualname__.split("."):
        if resolved is None:
            return False
        resolved = getattr(resolved, part, None)
    return resolved is cls


class ScopeRecorder:
    """Witnesses whether an operation declared any scope.

    Created fresh for a single evaluation and never shared between threads.
    """

    def __init__(self):
        self._declared: list[Scope] = []
        self.checked = False

    def declare(self, scope: Scope) -> None:
        self.checked = True
        self._declared.append(scope)

    def declare_all(self, *scopes: Scope) -> None:
        self.checked = True
        self._declared.extend(scopes)

    def declare_collection(self, scopes: Iterable[Scope]) -> None:
        self.checked = True
        self._declared.extend(scopes)

    @property
    def declared(self) -> tuple[Scope, ...]:
        return tuple(self._declared)


@runtime_checkable
class ScopeDeclaring(Protocol):
    """Operations that implement the scope declaration contract."""

    def declare_scope(self, recorder: ScopeRecorder) -> None:
        ...


def supports_scope_declaration(operation: Any) -> bool:
    """Capability probe: does the operation implement ``declare_scope``?"""
    return isinstance(operation, ScopeDeclaring) and callable(
        getattr(operation, "declare_scope", None)
    )


class Operation(ABC):
    """Unit of work sent across the channel.

    Subclasses that predate the scope contract do not define ``declare_scope``.
    """

    @abstractmethod
    def call(self) -> Any:
        """Execute the operation on the receiving side."""

    def __repr__(self) -> str:
        return f"<{type_identifier(self)}>"


class ControllerToAgentOperation(Operation):
    """Operation sent by the controller for execution on an agent."""

    def declare_scope(self, recorder: ScopeRecorder) -> None:
        recorder.declare(AGENT_SCOPE)


class AgentToControllerOperation(Operation):
    """Operation sent by an agent for execution on the controller."""

    def declare_scope(self, recorder: ScopeRecorder) -> None:
        recorder.declare(CONTROLLER_SCOPE)
