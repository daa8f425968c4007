"""Security interception pipeline for remote operation dispatch."""

from .channel import LocalChannel, connect
from .errors import PolicyRejection, RemoteCallError, VerificationError
from .operations import Operation, Scope, ScopeRecorder, type_identifier
from .pipeline import DenylistStage, InterceptionPipeline, RoleCheckStage, build_pipeline
from .policy import PolicyStore

__version__ = "0.1.0"

__all__ = [
    "LocalChannel",
    "connect",
    "PolicyRejection",
    "RemoteCallError",
    "VerificationError",
    "Operation",
    "Scope",
    "ScopeRecorder",
    "type_identifier",
    "DenylistStage",
    "InterceptionPipeline",
    "RoleCheckStage",
    "build_pipeline",
    "PolicyStore",
]
