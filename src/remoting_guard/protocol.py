"""Low-level channel protocol operations.

Most of these predate the scope declaration contract: they implement
``declare_scope`` but never declare anything. ``FileCallableWrapper`` delegates
the declaration to the file operation it carries.
"""

from __future__ import annotations

import time
from typing import Any, Callable

from .operations import Operation, ScopeRecorder, supports_scope_declaration


class RPCRequest(Operation):
    """Invoke a method on an object exported over the channel."""

    def __init__(self, target: Any, method: str, *args: Any, **kwargs: Any):
        self.target = target
        self.method = method
        self.args = args
        self.kwargs = kwargs

    def declare_scope(self, recorder: ScopeRecorder) -> None:
        pass

    def call(self) -> Any:
        return getattr(self.target, self.method)(*self.args, **self.kwargs)


class Ping(Operation):
    """Liveness probe sent periodically by the channel."""

    def declare_scope(self, recorder: ScopeRecorder) -> None:
        pass

    def call(self) -> float:
        return time.monotonic()


class IOSyncer(Operation):
    """Wait until pending I/O on the receiving side has been flushed."""

    def __init__(self, flush: Callable[[], None] | None = None):
        self.flush = flush

    def declare_scope(self, recorder: ScopeRecorder) -> None:
        pass

    def call(self) -> None:
        if self.flush is not None:
            self.flush()


class FileCallableWrapper(Operation):
    """Run a file operation against a path on the receiving side."""

    def __init__(self, file_callable: Any, path: str):
        self.file_callable = file_callable
        self.path = path

    def declare_scope(self, recorder: ScopeRecorder) -> None:
        if supports_scope_declaration(self.file_callable):
            self.file_callable.declare_scope(recorder)

    def call(self) -> Any:
        return self.file_callable.invoke(self.path)


class RemotePath:
    """Path on the other side of a channel."""

    def __init__(self, channel: Any, path: str):
        self.channel = channel
        self.path = path

    def act(self, file_callable: Any) -> Any:
        """Send ``file_callable`` across the channel to run against this path."""
        return self.channel.call(FileCallableWrapper(file_callable, self.path))
