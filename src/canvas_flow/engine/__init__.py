"""Instruction plan execution engine."""

from canvas_flow.engine.connections import ConnectionResolver
from canvas_flow.engine.deletion import DeletionCascade
from canvas_flow.engine.errors import (
    CanvasFlowError,
    ConfigMismatch,
    ExternalServiceFailure,
    MissingReference,
    PersistenceFailure,
    UserInputValidation,
)
from canvas_flow.engine.executor import ExecutionEnvironment, PlanExecutor, execute_plan
from canvas_flow.engine.layout import Column, LayoutAllocator, LayoutConfig
from canvas_flow.engine.materializer import NodeMaterializer
from canvas_flow.engine.registry import StepRegistry
from canvas_flow.engine.report import ExecutionReport

__all__ = [
    "CanvasFlowError",
    "Column",
    "ConfigMismatch",
    "ConnectionResolver",
    "DeletionCascade",
    "ExecutionEnvironment",
    "ExecutionReport",
    "ExternalServiceFailure",
    "LayoutAllocator",
    "LayoutConfig",
    "MissingReference",
    "NodeMaterializer",
    "PersistenceFailure",
    "PlanExecutor",
    "StepRegistry",
    "UserInputValidation",
    "execute_plan",
]
