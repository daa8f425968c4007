# Pipeline Layer - decision stages and the host that chains them

from .decision import Stage, StageDecision, Verdict
from .denylist import DenylistStage
from .role_check import RoleCheckStage
from .host import InterceptionPipeline, build_pipeline

__all__ = [
    "Stage",
    "StageDecision",
    "Verdict",
    "DenylistStage",
    "RoleCheckStage",
    "InterceptionPipeline",
    "build_pipeline",
]
