"""Instruction plan models, validation and builders."""

from canvas_flow.plan.models import (
    ConnectionType,
    ConnectSequentiallyStep,
    ConnectToFramesConfig,
    CreateNodeStep,
    DeleteNodeStep,
    FrameSource,
    GroupNodesStep,
    InstructionPlan,
    NodeConfig,
    NodeKind,
    Step,
)
from canvas_flow.plan.validator import validate_plan

__all__ = [
    "ConnectSequentiallyStep",
    "ConnectToFramesConfig",
    "ConnectionType",
    "CreateNodeStep",
    "DeleteNodeStep",
    "FrameSource",
    "GroupNodesStep",
    "InstructionPlan",
    "NodeConfig",
    "NodeKind",
    "Step",
    "validate_plan",
]
